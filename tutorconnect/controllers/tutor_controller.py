"""
Tutor directory and tutor profile management.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
from tutorconnect.database.database import User, UserRole, TutorProfile, Booking
from tutorconnect.errors import ForbiddenError, NotFoundError
from tutorconnect.schemas.user_schema import TutorProfileUpdate, TutorResponse
from tutorconnect.utilities import fetch_tutor_profiles, tutor_view
from tutorconnect.logger import logger

def _matches_subject(profile: Optional[TutorProfile], subject: str) -> bool:
    if profile is None:
        return False
    needle = subject.lower()
    return any(needle in s.lower() for s in profile.subjects or [])

def _matches_location(user: User, location: str) -> bool:
    address = user.address or {}
    needle = location.lower()
    return any(needle in (address.get(part) or '').lower() for part in ('city', 'area'))

def list_tutors(db: Session, subject: Optional[str] = None, location: Optional[str] = None, experience: Optional[int] = None) -> List[TutorResponse]:
    """
    List active, non-blocked tutors with their profiles.

    Filters are applied in memory after the role/active/blocked query:
    - subject: case-insensitive substring of any profile subject
    - location: case-insensitive substring of the address city or area
    - experience: minimum years of experience
    """
    tutors = db.query(User).filter(
        User.role == UserRole.TUTOR,
        User.is_active == True,
        User.is_blocked == False
    ).order_by(User.created_at.desc()).all()
    profiles = fetch_tutor_profiles(db, [tutor.id for tutor in tutors])

    if subject:
        tutors = [t for t in tutors if _matches_subject(profiles.get(t.id), subject)]

    if location:
        tutors = [t for t in tutors if _matches_location(t, location)]

    if experience is not None:
        tutors = [t for t in tutors if t.id in profiles and profiles[t.id].experience >= experience]

    return [tutor_view(tutor, profiles.get(tutor.id)) for tutor in tutors]

def get_tutor(db: Session, tutor_id: str) -> TutorResponse:
    tutor = User.get_by_id(db, tutor_id)
    if not tutor or tutor.role != UserRole.TUTOR:
        raise NotFoundError("No tutor found with that ID")
    profile = db.query(TutorProfile).filter(TutorProfile.user_id == tutor.id).first()
    return tutor_view(tutor, profile)

def update_tutor_profile(db: Session, current_user: User, tutor_id: str, changes: TutorProfileUpdate) -> TutorProfile:
    """
    Update the profile of the calling tutor.

    Raises:
        ForbiddenError: If the caller is not a tutor or tries to update another tutor's profile.
        NotFoundError: If the tutor has no profile.
    """
    if current_user.role != UserRole.TUTOR:
        raise ForbiddenError("Only tutors can update tutor profiles")
    if current_user.id != tutor_id:
        raise ForbiddenError("You can only update your own tutor profile")

    profile = db.query(TutorProfile).filter(TutorProfile.user_id == current_user.id).first()
    if not profile:
        raise NotFoundError("No tutor profile found for this user")

    updates = changes.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in updates.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    logger.info(f"Tutor {current_user.id} updated profile fields {sorted(updates)}")
    return profile

def rate_tutor(db: Session, current_user: User, tutor_id: str, rating: int) -> TutorProfile:
    """Add a rating to a tutor's running average. Only students with a booking with the tutor may rate."""
    if current_user.role != UserRole.STUDENT:
        raise ForbiddenError("Only students can rate tutors")

    profile = db.query(TutorProfile).filter(TutorProfile.user_id == tutor_id).first()
    if not profile:
        raise NotFoundError("No tutor found with that ID")

    has_booking = db.query(Booking).filter(
        Booking.student_id == current_user.id,
        Booking.tutor_id == tutor_id
    ).first()
    if not has_booking:
        raise ForbiddenError("You can only rate tutors you have booked")

    profile.rating = (profile.rating * profile.num_reviews + rating) / (profile.num_reviews + 1)
    profile.num_reviews += 1
    db.commit()
    db.refresh(profile)
    logger.info(f"Student {current_user.id} rated tutor {tutor_id} with {rating}")
    return profile
