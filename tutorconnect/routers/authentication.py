"""
Authentication router handling registration, email/password login, token refresh and logout.
Implements JWT token based authentication with access and refresh tokens.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
from tutorconnect.database.database import get_db
from tutorconnect.auth_tools import get_current_user, get_refresh_token, issue_tokens, oauth2_scheme
from tutorconnect.controllers import account_controller
from tutorconnect.errors import ForbiddenError
from tutorconnect.schemas.user_schema import UserCreate
from tutorconnect.schemas.authentication_schema import LoginRequest, LoggedInResponse, RefreshedResponse, LoggedOutResponse, DecodedAccessToken, DecodedRefreshToken
from tutorconnect.utilities import account_view
from tutorconnect.config import get_settings

# Initialize router
router = APIRouter(prefix='/auth')

# Add rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)

def verify_localhost(request: Request):
    """Verify that the request is coming from localhost"""
    host = request.client.host if request.client else None
    if host not in ["127.0.0.1", "localhost", "::1", "testclient"]:
        raise ForbiddenError("Forbidden. This endpoint can only be accessed from localhost.")

@router.post('/register', response_model=LoggedInResponse, status_code=201)
@limiter.limit("10/minute")
def register(request: Request, data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a student or tutor account.

    Tutors also get an empty tutor profile. The new user is logged in straight away.

    Raises:
    - 400: If the email is already registered or the role is admin
    """
    user, access_token, refresh_token = account_controller.register(db, data)
    return {"token": access_token, "refresh_token": refresh_token, "data": {"user": account_view(db, user)}}

@router.post('/login', response_model=LoggedInResponse)
@limiter.limit("10/minute")
def login(request: Request, credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Login with email and password. When `role` is supplied it must match the account.

    Raises:
    - 401: Bad credentials, role mismatch or blocked account
    """
    user, access_token, refresh_token = account_controller.login(db, credentials)
    return {"token": access_token, "refresh_token": refresh_token, "data": {"user": account_view(db, user)}}

@router.post('/refresh', response_model=RefreshedResponse)
def refresh_token(request: Request, token: str = Depends(oauth2_scheme), db: Session = Depends(get_db), payload: DecodedRefreshToken = Depends(get_refresh_token)):
    """Exchange a refresh token (sent as bearer token) for a new access token"""
    access_token = account_controller.refresh(db, payload)
    return {"token": access_token, "refresh_token": token}

@router.post('/logout', response_model=LoggedOutResponse)
def logout(request: Request, user: DecodedAccessToken = Depends(get_current_user)):
    """Invalidate the refresh token issued alongside the current access token"""
    account_controller.logout(user)
    return {"message": "Logged out successfully. Refresh token invalidated."}

@router.get('/generate-admin-token', response_model=LoggedInResponse)
def generate_admin_token(request: Request, db: Session = Depends(get_db), _=Depends(verify_localhost)):
    """
    Generate a token for the bootstrap admin account, for development purposes.
    Creates (or resets) the admin user configured by ADMIN_NAME / ADMIN_EMAIL.
    This endpoint is only available in development, and can only be accessed from localhost.
    """
    # Only allow this endpoint in development
    if not get_settings().local:
        raise ForbiddenError("Forbidden")

    user = account_controller.create_user_in_db(db, {}, is_temp_admin=True, replace=True)
    access_token, refresh_token = issue_tokens(user)
    return {"token": access_token, "refresh_token": refresh_token, "data": {"user": account_view(db, user)}}
