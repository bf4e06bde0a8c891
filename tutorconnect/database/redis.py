"""
Refresh token storage.

A refresh token is only honoured while its id is present in the store, which is
what makes logout and blocking effective before the token's own expiry.
"""
from tutorconnect.config import get_settings
from functools import lru_cache
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
import redis

KEY_PREFIX = "refresh:"

class RedisClient:
    """Keeps refresh tokens in Redis under `refresh:<token_id>` with a TTL."""

    def __init__(self):
        settings = get_settings()
        self.client = redis.StrictRedis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            decode_responses=True  # str values instead of bytes
        )

    def set_refresh_token(self, token: str, token_id: str, expiration: int):
        """Store `token` for `expiration` seconds."""
        self.client.setex(KEY_PREFIX + token_id, expiration, token)

    def get_refresh_token(self, token_id: str) -> Optional[str]:
        return self.client.get(KEY_PREFIX + token_id)

    def delete_refresh_token(self, token_id: str):
        self.client.delete(KEY_PREFIX + token_id)

class MemoryTokenStore:
    """Per-process stand-in for RedisClient, used when USE_REDIS is off."""

    def __init__(self):
        self._tokens: Dict[str, Tuple[str, datetime]] = {}

    def set_refresh_token(self, token: str, token_id: str, expiration: int):
        now = datetime.utcnow()
        self.prune(now)
        if expiration > 0:
            self._tokens[token_id] = (token, now + timedelta(seconds=expiration))

    def prune(self, now: Optional[datetime] = None) -> int:
        """Drop expired tokens, like Redis TTLs would. Returns how many were removed."""
        now = now or datetime.utcnow()
        expired = [token_id for token_id, (_, expires_at) in self._tokens.items() if expires_at <= now]
        for token_id in expired:
            del self._tokens[token_id]
        return len(expired)

    def get_refresh_token(self, token_id: str) -> Optional[str]:
        entry = self._tokens.get(token_id)
        if entry is None:
            return None
        token, expires_at = entry
        if expires_at <= datetime.utcnow():
            del self._tokens[token_id]
            return None
        return token

    def delete_refresh_token(self, token_id: str):
        self._tokens.pop(token_id, None)

@lru_cache()
def get_token_store():
    if get_settings().use_redis:
        return RedisClient()
    return MemoryTokenStore()
