"""
Account controller: registration, login, token refresh/logout and self-service profile updates.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple
from tutorconnect.database.database import User, TutorProfile, UserRole
from tutorconnect.database.redis import get_token_store
from tutorconnect.auth_tools import issue_tokens, create_access_token
from tutorconnect.errors import AuthError, ValidationError
from tutorconnect.schemas.user_schema import UserCreate, UserUpdate
from tutorconnect.schemas.authentication_schema import LoginRequest, DecodedAccessToken, DecodedRefreshToken
from tutorconnect.logger import logger, audit_logger
from tutorconnect.config import get_settings
import secrets

# Columns that must never be written as NULL through a profile update
REQUIRED_USER_FIELDS = ('name', 'subjects')

def register(db: Session, data: UserCreate) -> Tuple[User, str, str]:
    """
    Create a student or tutor account and log it in.

    Tutors get an empty TutorProfile in the same transaction.

    Returns:
        (user, access_token, refresh_token)

    Raises:
        ValidationError: If the email is taken or the role is admin.
    """
    if data.role == UserRole.ADMIN:
        raise ValidationError("Admin accounts cannot be registered")

    if db.query(User).filter(User.email == data.email).first():
        raise ValidationError("Email already in use")

    user = User(
        name=data.name,
        email=data.email,
        role=data.role,
        phone_number=data.phone_number,
        address=data.address.model_dump() if data.address else None,
        grade_level=data.grade_level,
        subjects=data.subjects,
        learning_goals=data.learning_goals
    )
    user.set_password(data.password)
    db.add(user)

    try:
        db.flush()
        if user.role == UserRole.TUTOR:
            db.add(TutorProfile(user_id=user.id, subjects=[], experience=0, availability="", monthly_rate=0, education=[]))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Email already in use")

    db.refresh(user)
    logger.info(f"Registered {user.role.value} {user.id}")
    access_token, refresh_token = issue_tokens(user)
    return user, access_token, refresh_token

def login(db: Session, credentials: LoginRequest) -> Tuple[User, str, str]:
    """
    Check credentials and issue tokens.

    Raises:
        AuthError: On unknown email, wrong password, role mismatch, blocked or inactive account.
    """
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not user.check_password(credentials.password):
        audit_logger.log_security_event("login_failed", user.id if user else None, {"email": credentials.email})
        raise AuthError("Incorrect email or password")

    if credentials.role and user.role != credentials.role:
        audit_logger.log_security_event("login_failed", user.id, {"reason": "role_mismatch", "role": credentials.role.value})
        raise AuthError(f"Invalid credentials for {credentials.role.value} role")

    if user.is_blocked:
        audit_logger.log_security_event("login_blocked", user.id, {"email": user.email})
        raise AuthError("Your account has been blocked. Please contact admin.")

    if not user.is_active:
        raise AuthError("Your account is inactive.")

    logger.info(f"User {user.id} logged in")
    access_token, refresh_token = issue_tokens(user)
    return user, access_token, refresh_token

def refresh(db: Session, payload: DecodedRefreshToken) -> str:
    """Issue a new access token for a registered refresh token"""
    user = User.get_by_id(db, payload.sub)
    if not user or user.is_blocked or not user.is_active:
        get_token_store().delete_refresh_token(payload.token_id)
        raise AuthError("Cannot refresh this token.")
    return create_access_token(user, payload.token_id)

def logout(current_user: DecodedAccessToken):
    """Invalidate the refresh token issued together with the access token"""
    if current_user.refresh_token_id:
        get_token_store().delete_refresh_token(current_user.refresh_token_id)
    logger.info(f"User {current_user.sub} logged out")

def update_me(db: Session, user: User, changes: UserUpdate) -> User:
    """
    Apply the fields that were sent; unset fields are left untouched.
    Optional fields sent as null are cleared; name and subjects are never nulled.
    """
    updates = {
        field: value for field, value in changes.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_USER_FIELDS
    }
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated fields {sorted(updates)}")
    return user

def create_user_in_db(db: Session, user_data: dict, is_temp_admin: bool = False, replace: bool = False) -> User:
    """Create a new user in the database using the provided data.
    If is_temp_admin is True, the user is created as the bootstrap admin account
    configured by ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD.
    """
    if is_temp_admin:
        settings = get_settings()
        user_data = {
            "name": settings.admin_name,
            "email": settings.admin_email.lower(),
            "role": UserRole.ADMIN,
            # Without ADMIN_PASSWORD the account is only reachable through a generated token
            "password": settings.admin_password or secrets.token_urlsafe(32)
        }
    else:
        assert 'name' in user_data, "Name is required to create a user"
        assert 'email' in user_data, "Email is required to create a user"
        assert 'role' in user_data, "Role is required to create a user"
        assert 'password' in user_data, "Password is required to create a user"

    # Check if the user already exists
    user = db.query(User).filter(User.email == user_data['email']).first()
    if user:
        if not replace:
            return user # Return the existing user

        user.name = user_data['name']
        user.role = UserRole(user_data['role'])
        user.is_blocked = False
        user.is_active = True
        user.set_password(user_data['password'])
        db.commit()
        db.refresh(user)
        return user

    user = User(
        name=user_data['name'],
        email=user_data['email'],
        role=UserRole(user_data['role'])
    )
    user.set_password(user_data['password'])
    db.add(user)
    db.flush()
    if user.role == UserRole.TUTOR:
        db.add(TutorProfile(user_id=user.id, subjects=[], experience=0, availability="", monthly_rate=0, education=[]))
    db.commit()
    db.refresh(user)
    return user

def ensure_admin_account(db: Session) -> Optional[User]:
    """Create the bootstrap admin at startup when ADMIN_PASSWORD is configured"""
    if not get_settings().admin_password:
        return None
    admin = create_user_in_db(db, {}, is_temp_admin=True)
    logger.info(f"Bootstrap admin account {admin.email} ready")
    return admin
