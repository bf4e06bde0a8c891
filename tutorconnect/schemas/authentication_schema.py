from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
from tutorconnect.database.database import UserRole
from tutorconnect.schemas.user_schema import UserData

class LoginRequest(BaseModel):
    """Login credentials. When role is given it must match the account's role."""
    email: EmailStr
    password: str
    role: Optional[UserRole] = None

    @field_validator('email')
    def normalize_email(cls, v):
        return v.lower()

class LoggedInResponse(BaseModel):
    """Authentication response data"""
    status: str = "success"
    token: str
    refresh_token: str
    data: UserData

class RefreshedResponse(BaseModel):
    """Token refresh response data"""
    status: str = "success"
    token: str
    refresh_token: str

class LoggedOutResponse(BaseModel):
    """Logout response data"""
    status: str = "success"
    message: str

class DecodedAccessToken(BaseModel):
    """
    Decoded access token data
        Args:
        - sub (str): User ID
        - name (str): User name
        - email (str): User email
        - role (str): User role
        - exp (int): Token expiration time
        - refresh_token_id (str): ID of the refresh token issued with this access token
    """
    sub: str
    name: str
    email: str
    role: str
    exp: int
    refresh_token_id: str = ""

class DecodedRefreshToken(BaseModel):
    """
    Decoded refresh token data
        Args:
        - sub (str): User ID
        - exp (int): Token expiration time
        - token_id (str): Token ID
        - refresh (bool): Refresh token status
    """
    sub: str
    exp: int
    token_id: str
    refresh: bool
