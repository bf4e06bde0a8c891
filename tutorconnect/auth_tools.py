from typing import Any, Tuple
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from tutorconnect.logger import logger
from tutorconnect.database.database import User, UserRole, get_db
from tutorconnect.database.redis import get_token_store
from tutorconnect.errors import AuthError, ForbiddenError
from tutorconnect.schemas.authentication_schema import DecodedAccessToken, DecodedRefreshToken
from tutorconnect.config import get_settings
from datetime import datetime, timedelta
import uuid

# CONSTANTS
SECRET_KEY = get_settings().secret_key
ALGORITHM = get_settings().hash_algorithm
TOKEN_EXPIRE_MINUTES = get_settings().access_token_expire_minutes
REFRESH_TOKEN_EXPIRE_DAYS = get_settings().refresh_token_expire_days

# security scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

######################
### TOKEN CREATION ###
######################

def create_access_token(user: User, refresh_token_id: str, expires_in: int = TOKEN_EXPIRE_MINUTES) -> str:
    """Create a signed access token carrying the user ID in `sub`"""
    to_encode = {
        "sub": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "exp": datetime.utcnow() + timedelta(minutes=expires_in),
        "refresh_token_id": refresh_token_id
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_refresh_token(user_id: str) -> Tuple[str, str]:
    """Create a refresh token and register it in the token store. Returns the token and the token id"""
    token_id = str(uuid.uuid4())
    to_encode = {
        "sub": user_id,
        "exp": datetime.utcnow() + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        "refresh": True,
        "token_id": token_id
    }
    refresh_token = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    get_token_store().set_refresh_token(refresh_token, token_id, REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60)
    return refresh_token, token_id

def issue_tokens(user: User) -> Tuple[str, str]:
    """Issue an access token and its refresh token for a user"""
    refresh_token, refresh_token_id = create_refresh_token(user.id)
    return create_access_token(user, refresh_token_id), refresh_token

##################################
### AUTHORIZATION DEPENDENCIES ###
##################################

def _decode(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Error decoding token: {str(e)}")
        raise AuthError("Invalid or expired token. Please log in again.")

def get_current_user(token: str = Depends(oauth2_scheme)) -> DecodedAccessToken:
    """
    Decode the bearer access token.

    Args:
    - token (str): The user's token

    Returns:
    - DecodedAccessToken: The token claims
    """
    payload: dict[str, Any] = _decode(token)

    if not payload.get("sub"):
        raise AuthError("Invalid token. Missing user ID.")

    if payload.get("refresh"):
        raise AuthError("Invalid token. Refresh token provided.")

    return DecodedAccessToken(**payload)

def get_refresh_token(token: str = Depends(oauth2_scheme)) -> DecodedRefreshToken:
    """Decode a bearer refresh token and check it is still registered in the token store"""
    payload: dict[str, Any] = _decode(token)

    if not payload.get("sub") or not payload.get("refresh"):
        raise AuthError("Invalid token. Not a refresh token.")

    decoded = DecodedRefreshToken(**payload)
    if get_token_store().get_refresh_token(decoded.token_id) is None:
        raise AuthError("Invalid refresh token. The refresh token may have expired.")
    return decoded

def get_current_account(current_user: DecodedAccessToken = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
    """Load the user behind the access token. Blocked and inactive accounts are rejected."""
    user = User.get_by_id(db, current_user.sub)
    if not user:
        raise AuthError("The user belonging to this token no longer exists.")
    if user.is_blocked:
        raise AuthError("Your account has been blocked. Please contact admin.")
    if not user.is_active:
        raise AuthError("Your account is inactive.")
    return user

def verify_user_role(user: User, allowed_roles) -> User:
    """
    Raise ForbiddenError unless the user has one of allowed_roles.

    Args:
    - user (User): The user
    - allowed_roles (list): List of allowed roles

    Returns:
    - User: The same user
    """
    if not user or user.role not in allowed_roles:
        raise ForbiddenError(f"User must have one of these roles: {[role.value for role in allowed_roles]}")
    return user

def admin_only(current_account: User = Depends(get_current_account)) -> User:
    """Dependency: the caller must be an admin"""
    return verify_user_role(current_account, [UserRole.ADMIN])
