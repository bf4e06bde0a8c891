from sqlalchemy.orm import Session
from typing import Dict, Iterable, Optional
from tutorconnect.database.database import User, TutorProfile, TuitionRequest, UserRole
from tutorconnect.errors import NotFoundError
from tutorconnect.schemas.user_schema import UserSummary, TutorResponse, TutorProfileResponse

def get_user_by_id(db: Session, user_id: str) -> User:
    """Get user by ID, raising NotFoundError when it does not exist"""
    user = User.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("No user found with that ID")
    return user

def fetch_user_summaries(db: Session, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
    """Load the summaries of all given users with a single query, keyed by user ID"""
    ids = {user_id for user_id in user_ids if user_id}
    if not ids:
        return {}
    users = db.query(User).filter(User.id.in_(ids)).all()
    return {user.id: UserSummary.model_validate(user) for user in users}

def fetch_tutor_profiles(db: Session, user_ids: Iterable[str]) -> Dict[str, TutorProfile]:
    """Load the tutor profiles of the given users with a single query, keyed by user ID"""
    ids = {user_id for user_id in user_ids if user_id}
    if not ids:
        return {}
    profiles = db.query(TutorProfile).filter(TutorProfile.user_id.in_(ids)).all()
    return {profile.user_id: profile for profile in profiles}

def fetch_requests(db: Session, request_ids: Iterable[str]) -> Dict[str, TuitionRequest]:
    ids = {request_id for request_id in request_ids if request_id}
    if not ids:
        return {}
    requests = db.query(TuitionRequest).filter(TuitionRequest.id.in_(ids)).all()
    return {request.id: request for request in requests}

def tutor_view(user: User, profile: Optional[TutorProfile]) -> TutorResponse:
    """Combine a user row with its tutor profile (if any) into one response object"""
    view = TutorResponse.model_validate(user)
    if profile is not None:
        view.tutor_profile = TutorProfileResponse.model_validate(profile)
    return view

def account_view(db: Session, user: User) -> TutorResponse:
    """Response shape for the caller's own account; tutors include their profile"""
    profile = None
    if user.role == UserRole.TUTOR:
        profile = db.query(TutorProfile).filter(TutorProfile.user_id == user.id).first()
    return tutor_view(user, profile)
