"""
Tuition request router: students send requests, tutors accept or reject them,
students extend the bookings created from accepted requests.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from tutorconnect.database.database import get_db, User
from tutorconnect.auth_tools import get_current_account
from tutorconnect.controllers import request_controller, booking_controller
from tutorconnect.schemas.request_schema import TuitionRequestCreate, ExtendBookingRequest, RequestEnvelope, AcceptedEnvelope, RequestListEnvelope
from tutorconnect.schemas.booking_schema import BookingEnvelope

router = APIRouter(prefix='/requests')

@router.post('', response_model=RequestEnvelope, status_code=201)
def create_request(request: Request, data: TuitionRequestCreate, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Send a tuition request to a tutor. Only students may do this.
    The end date is computed from start_date and duration (months).

    Raises:
    - 403: If the caller is not a student
    - 404: If the tutor does not exist
    """
    tuition_request = request_controller.create_request(db, current_account, data)
    return {"data": {"request": tuition_request}}

@router.get('', response_model=RequestListEnvelope)
def get_requests(request: Request, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """Requests sent by the calling student or addressed to the calling tutor, newest first"""
    requests = request_controller.list_requests(db, current_account)
    return {"results": len(requests), "data": {"requests": requests}}

@router.put('/{request_id}/accept', response_model=AcceptedEnvelope)
def accept_request(request: Request, request_id: str, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Accept a pending request. Creates the booking for it.

    Raises:
    - 403: If the caller is not the tutor the request is addressed to
    - 404: If the request does not exist
    - 409: If the request was already accepted or rejected
    """
    tuition_request, booking = request_controller.accept_request(db, current_account, request_id)
    return {"data": {"request": tuition_request, "booking": booking}}

@router.put('/{request_id}/reject', response_model=RequestEnvelope)
def reject_request(request: Request, request_id: str, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Reject a pending request.

    Raises:
    - 403: If the caller is not the tutor the request is addressed to
    - 404: If the request does not exist
    - 409: If the request was already accepted or rejected
    """
    tuition_request = request_controller.reject_request(db, current_account, request_id)
    return {"data": {"request": tuition_request}}

@router.post('/extend', response_model=BookingEnvelope)
def extend_booking(request: Request, data: ExtendBookingRequest, current_account: User = Depends(get_current_account), db: Session = Depends(get_db)):
    """
    Extend an active booking by a number of months. Only the booking's student may do this.

    Raises:
    - 403: If the caller is not the booking's student
    - 404: If the booking does not exist
    - 409: If the booking is not active
    """
    booking = booking_controller.extend_booking(db, current_account, data.booking_id, data.additional_months)
    return {"data": {"booking": booking}}
