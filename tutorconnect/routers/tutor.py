"""
Tutor router: public directory browsing and tutor profile management.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from tutorconnect.database.database import get_db, User
from tutorconnect.auth_tools import get_current_account
from tutorconnect.controllers import tutor_controller
from tutorconnect.schemas.user_schema import TutorListEnvelope, TutorEnvelope, TutorProfileEnvelope, TutorProfileUpdate, RatingCreate

router = APIRouter(prefix='/tutors')

@router.get('', response_model=TutorListEnvelope)
def get_tutors(
        request: Request,
        subject: Optional[str] = None,
        location: Optional[str] = None,
        experience: Optional[int] = Query(default=None, ge=0),
        db: Session = Depends(get_db)
    ):
    """
    Get a list of active tutors. No login required.

    Parameters:
    - subject: Part of a subject the tutor teaches (case-insensitive)
    - location: Part of the tutor's city or area (case-insensitive)
    - experience: Minimum years of experience

    Returns:
    - List of tutors matching the filters
    """
    tutors = tutor_controller.list_tutors(db, subject=subject, location=location, experience=experience)
    return {"results": len(tutors), "data": {"tutors": tutors}}

@router.get('/{tutor_id}', response_model=TutorEnvelope)
def get_tutor(request: Request, tutor_id: str, db: Session = Depends(get_db)):
    """Get a single tutor with their profile. No login required."""
    return {"data": {"tutor": tutor_controller.get_tutor(db, tutor_id)}}

@router.put('/{tutor_id}', response_model=TutorProfileEnvelope)
def update_tutor_profile(request: Request, tutor_id: str, changes: TutorProfileUpdate, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Update a tutor profile. Only the tutor owning the profile may do this.

    Raises:
    - 403: If the caller is not this tutor
    """
    profile = tutor_controller.update_tutor_profile(db, current_account, tutor_id, changes)
    return {"data": {"tutor_profile": profile}}

@router.post('/{tutor_id}/rate', response_model=TutorProfileEnvelope)
def rate_tutor(request: Request, tutor_id: str, rating: RatingCreate, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """Rate a tutor from 1 to 5. Only students with a booking with the tutor may rate."""
    profile = tutor_controller.rate_tutor(db, current_account, tutor_id, rating.rating)
    return {"data": {"tutor_profile": profile}}
