"""
User router handling the caller's own account.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from tutorconnect.database.database import get_db, User
from tutorconnect.auth_tools import get_current_account
from tutorconnect.controllers import account_controller
from tutorconnect.schemas.user_schema import UserUpdate, UserEnvelope
from tutorconnect.utilities import account_view

router = APIRouter(prefix='/users')

@router.get('/me', response_model=UserEnvelope)
def get_me(request: Request, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Return the logged in user. Tutors include their tutor profile.
    """
    return {"data": {"user": account_view(db, current_account)}}

@router.put('/update', response_model=UserEnvelope)
def update_me(request: Request, changes: UserUpdate, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Updates the profile of the logged in user.

    Parameters:
    - changes: Any of name, phone_number, address, profile_pic, grade_level, subjects, learning_goals

    Returns:
    - The updated user
    """
    user = account_controller.update_me(db, current_account, changes)
    return {"data": {"user": account_view(db, user)}}
