import logging
import sys
import json
from datetime import datetime
from pathlib import Path
from tutorconnect.config import get_settings

LOGS_DIR = Path(get_settings().logs_dir)

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def _with_format(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    handler.setLevel(logging.INFO)
    return handler

def setup_logger(name: str = "tutorconnect") -> logging.Logger:
    """
    Return the package logger, writing to stdout and to logs/server_<date>.log.
    Calling it again returns the same logger without stacking handlers.
    """
    log = logging.getLogger(name)
    log.setLevel(logging.INFO)
    if log.handlers:
        return log

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log.addHandler(_with_format(logging.StreamHandler(sys.stdout), CONSOLE_FORMAT))
    log.addHandler(_with_format(
        logging.FileHandler(LOGS_DIR / f"server_{datetime.now():%Y%m%d}.log"),
        FILE_FORMAT
    ))
    return log

class SecurityAuditLogger:
    """Appends one JSON object per line to logs/security_audit.log (failed logins, blocks)."""

    def __init__(self):
        self.logger = logging.getLogger('tutorconnect.security_audit')
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        if not self.logger.handlers:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            self.logger.addHandler(_with_format(logging.FileHandler(LOGS_DIR / 'security_audit.log'), '%(asctime)s - %(message)s'))

    def log_security_event(self, event_type: str, user_id, details: dict):
        self.logger.info(json.dumps({
            "at": datetime.utcnow().isoformat(),
            "event": event_type,
            "user_id": user_id,
            "details": details
        }))

# Shared by every module of the package
logger = setup_logger()
audit_logger = SecurityAuditLogger()
