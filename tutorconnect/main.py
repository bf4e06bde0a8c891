from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from contextlib import asynccontextmanager
import time
from tutorconnect.logger import logger
from tutorconnect.config import get_settings
from tutorconnect.errors import TutorConnectError
from tutorconnect.database.database import SessionLocal
from tutorconnect.controllers.account_controller import ensure_admin_account

### ROUTERS
from tutorconnect.routers.admin import router as admin_router
from tutorconnect.routers.authentication import router as auth_router, limiter
from tutorconnect.routers.booking import router as booking_router
from tutorconnect.routers.request import router as request_router
from tutorconnect.routers.tutor import router as tutor_router
from tutorconnect.routers.user import router as user_router


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with the status and duration of its response."""
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        logger.info(f"--> {request.method} {request.url.path}")
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} failed: {e}")
            raise
        logger.info(f"<-- {request.method} {request.url.path} {response.status_code} ({time.perf_counter() - started:.3f}s)")
        return response

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Creates the bootstrap admin account (when ADMIN_PASSWORD is set) before serving."""
    logger.info(f"{get_settings().app_name} {get_settings().app_version} starting")
    db = SessionLocal()
    try:
        ensure_admin_account(db)
    finally:
        db.close()
    yield
    logger.info("Shutting down")

app = FastAPI(
    title=get_settings().app_name,
    version=get_settings().app_version,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# CORS origins come from CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
    max_age=3600
)

##########################
### ERROR ENVELOPES ######
##########################

@app.exception_handler(TutorConnectError)
async def tutorconnect_error_handler(request: Request, exc: TutorConnectError):
    return JSONResponse(status_code=exc.status_code, content={"status": "fail", "message": exc.message})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    status = "fail" if exc.status_code < 500 else "error"
    return JSONResponse(status_code=exc.status_code, content={"status": status, "message": str(exc.detail)}, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"status": "fail", "message": "; ".join(problems)})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if get_settings().local else "Internal Server Error"
    return JSONResponse(status_code=500, content={"status": "error", "message": message})

# Include routers
app.include_router(admin_router, tags=['admin'])
app.include_router(auth_router, tags=['authentication'])
app.include_router(booking_router, tags=['bookings'])
app.include_router(request_router, tags=['requests'])
app.include_router(tutor_router, tags=['tutors'])
app.include_router(user_router, tags=['users'])

@app.get("/")
def read_root():
    """Health check"""
    return {"status": "success", "message": "TutorConnectPro API is running..."}

def run():
    import uvicorn
    uvicorn.run(app, host=get_settings().app_host, port=get_settings().app_port)

if __name__ == '__main__':
    run()
