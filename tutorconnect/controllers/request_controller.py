"""
Tuition request workflow.

A request starts as pending and is decided once by its tutor:

    pending --accept--> accepted   (creates exactly one active Booking)
    pending --reject--> rejected

Accepting flips the status with a conditional update and inserts the booking in the
same transaction, so either both become visible or neither does.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Tuple
from tutorconnect.database.database import User, UserRole, TuitionRequest, RequestStatus, Booking, BookingStatus
from tutorconnect.errors import ConflictError, ForbiddenError, NotFoundError
from tutorconnect.schemas.request_schema import TuitionRequestCreate, TuitionRequestDetail, RequestCounts
from tutorconnect.utilities import fetch_user_summaries
from tutorconnect.logger import logger

def create_request(db: Session, current_user: User, data: TuitionRequestCreate) -> TuitionRequest:
    """
    Create a pending tuition request from the calling student to a tutor.

    Raises:
        ForbiddenError: If the caller is not a student.
        NotFoundError: If the tutor does not exist or is not a tutor.
    """
    if current_user.role != UserRole.STUDENT:
        raise ForbiddenError("Only students can create tuition requests")

    tutor = User.get_by_id(db, data.tutor_id)
    if not tutor or tutor.role != UserRole.TUTOR:
        raise NotFoundError("No tutor found with that ID")

    request = TuitionRequest(
        student_id=current_user.id,
        tutor_id=tutor.id,
        subject=data.subject,
        grade_level=data.grade_level,
        preferred_days=data.preferred_days,
        preferred_time=data.preferred_time,
        duration=data.duration,
        start_date=data.start_date,
        monthly_fee=data.monthly_fee,
        notes=data.notes,
        status=RequestStatus.PENDING
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(f"Tuition request {request.id} created by student {current_user.id} for tutor {tutor.id}")
    return request

def get_request(db: Session, request_id: str) -> TuitionRequest:
    request = db.query(TuitionRequest).filter(TuitionRequest.id == request_id).first()
    if not request:
        raise NotFoundError("No request found with that ID")
    return request

def _load_for_decision(db: Session, current_user: User, request_id: str, action: str) -> TuitionRequest:
    """Fetch a request the calling tutor may decide on"""
    if current_user.role != UserRole.TUTOR:
        raise ForbiddenError(f"Only tutors can {action} tuition requests")

    request = get_request(db, request_id)

    if request.tutor_id != current_user.id:
        raise ForbiddenError(f"You can only {action} requests assigned to you")

    if request.status != RequestStatus.PENDING:
        raise ConflictError(f"This request has already been {request.status.value}")

    return request

def _claim_pending(db: Session, request: TuitionRequest, new_status: RequestStatus):
    """Move a request out of pending unless a concurrent call already did"""
    claimed = db.query(TuitionRequest).filter(
        TuitionRequest.id == request.id,
        TuitionRequest.status == RequestStatus.PENDING
    ).update({TuitionRequest.status: new_status}, synchronize_session='fetch')
    if not claimed:
        db.rollback()
        db.refresh(request)
        raise ConflictError(f"This request has already been {request.status.value}")

def accept_request(db: Session, current_user: User, request_id: str) -> Tuple[TuitionRequest, Booking]:
    """
    Accept a pending request and create its booking.

    Raises:
        ForbiddenError: If the caller is not the assigned tutor.
        NotFoundError: If the request does not exist.
        ConflictError: If the request is no longer pending.
    """
    request = _load_for_decision(db, current_user, request_id, "accept")

    try:
        _claim_pending(db, request, RequestStatus.ACCEPTED)
        booking = Booking(
            tuition_request_id=request.id,
            student_id=request.student_id,
            tutor_id=request.tutor_id,
            subject=request.subject,
            start_date=request.start_date,
            end_date=request.end_date,
            days_of_week=list(request.preferred_days),
            time_slot=request.preferred_time,
            monthly_fee=request.monthly_fee,
            status=BookingStatus.ACTIVE
        )
        db.add(booking)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A booking already exists for this request")
    except ConflictError:
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(request)
    db.refresh(booking)
    logger.info(f"Tuition request {request.id} accepted; booking {booking.id} created")
    return request, booking

def reject_request(db: Session, current_user: User, request_id: str) -> TuitionRequest:
    """
    Reject a pending request. No booking is created.

    Raises:
        ForbiddenError: If the caller is not the assigned tutor.
        NotFoundError: If the request does not exist.
        ConflictError: If the request is no longer pending.
    """
    request = _load_for_decision(db, current_user, request_id, "reject")
    _claim_pending(db, request, RequestStatus.REJECTED)
    db.commit()
    db.refresh(request)
    logger.info(f"Tuition request {request.id} rejected")
    return request

def list_requests(db: Session, current_user: User) -> List[TuitionRequestDetail]:
    """
    Requests visible to the caller, newest first, with student and tutor summaries.
    Students see the requests they sent, tutors the requests addressed to them, admins all.
    """
    query = db.query(TuitionRequest)
    if current_user.role == UserRole.STUDENT:
        query = query.filter(TuitionRequest.student_id == current_user.id)
    elif current_user.role == UserRole.TUTOR:
        query = query.filter(TuitionRequest.tutor_id == current_user.id)

    requests = query.order_by(TuitionRequest.created_at.desc()).all()
    summaries = fetch_user_summaries(db, [r.student_id for r in requests] + [r.tutor_id for r in requests])

    details = []
    for request in requests:
        detail = TuitionRequestDetail.model_validate(request)
        detail.student = summaries.get(request.student_id)
        detail.tutor = summaries.get(request.tutor_id)
        details.append(detail)
    return details

def count_requests(requests: List[TuitionRequestDetail]) -> RequestCounts:
    by_status = {status: 0 for status in RequestStatus}
    for request in requests:
        by_status[request.status] += 1
    return RequestCounts(
        total=len(requests),
        pending=by_status[RequestStatus.PENDING],
        accepted=by_status[RequestStatus.ACCEPTED],
        rejected=by_status[RequestStatus.REJECTED]
    )
