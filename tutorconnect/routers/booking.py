"""
Booking router: list the caller's bookings and change their status.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from tutorconnect.database.database import get_db, User
from tutorconnect.auth_tools import get_current_account
from tutorconnect.controllers import booking_controller
from tutorconnect.schemas.booking_schema import BookingStatusUpdate, BookingEnvelope, BookingListEnvelope

router = APIRouter(prefix='/bookings')

@router.get('', response_model=BookingListEnvelope)
def get_bookings(request: Request, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Bookings of the caller, newest first.
    Active bookings whose end date has been reached are marked completed first.
    """
    bookings = booking_controller.list_bookings(db, current_account)
    return {"results": len(bookings), "data": {"bookings": bookings}}

@router.put('/{booking_id}/status', response_model=BookingEnvelope)
def update_booking_status(request: Request, booking_id: str, update: BookingStatusUpdate, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Change the status of a booking.

    Students and tutors may cancel an active booking; only the tutor may mark it completed.

    Raises:
    - 403: If the caller is not a party of the booking or may not make this change
    - 404: If the booking does not exist
    - 409: If the booking is no longer active
    """
    booking = booking_controller.update_booking_status(db, current_account, booking_id, update.status)
    return {"data": {"booking": booking}}
