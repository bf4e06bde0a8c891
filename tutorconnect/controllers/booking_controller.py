"""
Booking lifecycle: listing with lazy completion, status transitions and extensions.

Status transitions (anything else is a conflict):

    active --cancel--> cancelled   (student or tutor)
    active --finish--> completed   (tutor, or automatically once the end date is reached)
"""
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from tutorconnect.database.database import User, UserRole, Booking, BookingStatus
from tutorconnect.errors import ConflictError, ForbiddenError, NotFoundError
from tutorconnect.schemas.booking_schema import BookingDetail, TuitionRequestLink
from tutorconnect.utilities import fetch_user_summaries, fetch_requests
from tutorconnect.logger import logger

# Roles allowed to move an active booking into each status
ALLOWED_TRANSITIONS = {
    BookingStatus.ACTIVE: {
        BookingStatus.CANCELLED: {UserRole.STUDENT, UserRole.TUTOR},
        BookingStatus.COMPLETED: {UserRole.TUTOR},
    },
    BookingStatus.COMPLETED: {},
    BookingStatus.CANCELLED: {},
}

def _scope(query, current_user: User):
    if current_user.role == UserRole.STUDENT:
        return query.filter(Booking.student_id == current_user.id)
    if current_user.role == UserRole.TUTOR:
        return query.filter(Booking.tutor_id == current_user.id)
    return query

def complete_expired_bookings(db: Session, current_user: Optional[User] = None, now: Optional[datetime] = None) -> int:
    """
    Mark active bookings whose end date has been reached as completed.

    Scoped to the bookings of current_user when given, otherwise every booking
    (suitable for a scheduled sweep). Returns the number of bookings changed.
    """
    now = now or datetime.now()
    query = db.query(Booking).filter(
        Booking.status == BookingStatus.ACTIVE,
        Booking.end_date <= now.date()
    )
    if current_user is not None:
        query = _scope(query, current_user)
    changed = query.update(
        {Booking.status: BookingStatus.COMPLETED, Booking.updated_at: now},
        synchronize_session=False
    )
    db.commit()
    if changed:
        logger.info(f"Marked {changed} expired booking(s) as completed")
    return changed

def list_bookings(db: Session, current_user: User, now: Optional[datetime] = None) -> List[BookingDetail]:
    """
    Bookings where the caller is the student or the tutor (admins: all), newest first.
    Expired active bookings are completed before they are read.
    """
    complete_expired_bookings(db, current_user, now)

    bookings = _scope(db.query(Booking), current_user).order_by(Booking.created_at.desc()).all()
    summaries = fetch_user_summaries(db, [b.student_id for b in bookings] + [b.tutor_id for b in bookings])
    requests = fetch_requests(db, [b.tuition_request_id for b in bookings])

    details = []
    for booking in bookings:
        detail = BookingDetail.model_validate(booking)
        detail.student = summaries.get(booking.student_id)
        detail.tutor = summaries.get(booking.tutor_id)
        request = requests.get(booking.tuition_request_id)
        if request is not None:
            detail.tuition_request = TuitionRequestLink.model_validate(request)
        details.append(detail)
    return details

def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("No booking found with that ID")
    return booking

def _check_party(booking: Booking, current_user: User):
    if current_user.role == UserRole.STUDENT and booking.student_id == current_user.id:
        return
    if current_user.role == UserRole.TUTOR and booking.tutor_id == current_user.id:
        return
    raise ForbiddenError("You can only update your own bookings")

def update_booking_status(db: Session, current_user: User, booking_id: str, new_status: BookingStatus) -> Booking:
    """
    Move a booking to a new status following ALLOWED_TRANSITIONS.

    Raises:
        NotFoundError: If the booking does not exist.
        ForbiddenError: If the caller is not the booking's student or tutor, or their role may not make this transition.
        ConflictError: If the transition is not allowed from the current status.
    """
    booking = get_booking(db, booking_id)
    _check_party(booking, current_user)

    allowed = ALLOWED_TRANSITIONS[booking.status]
    if new_status not in allowed:
        raise ConflictError(f"Cannot change a {booking.status.value} booking to {new_status.value}")
    if current_user.role not in allowed[new_status]:
        raise ForbiddenError(f"A {current_user.role.value} cannot mark a booking as {new_status.value}")

    previous = booking.status
    booking.status = new_status
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} moved from {previous.value} to {new_status.value} by {current_user.id}")
    return booking

def extend_booking(db: Session, current_user: User, booking_id: str, additional_months: int, now: Optional[datetime] = None) -> Booking:
    """
    Push the end date of an active booking forward by whole months.

    Raises:
        ForbiddenError: If the caller is not the booking's student.
        NotFoundError: If the booking does not exist.
        ConflictError: If the booking is not active.
    """
    if current_user.role != UserRole.STUDENT:
        raise ForbiddenError("Only students can extend bookings")

    booking = get_booking(db, booking_id)

    if booking.student_id != current_user.id:
        raise ForbiddenError("You can only extend your own bookings")

    if booking.status != BookingStatus.ACTIVE:
        raise ConflictError("Only active bookings can be extended")

    entry = booking.extend(additional_months, now)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} extended from {entry.previous_end_date} to {entry.new_end_date}")
    return booking
