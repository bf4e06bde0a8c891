"""
Admin oversight: aggregate views over users, requests and bookings, and the block toggle.
"""
from sqlalchemy.orm import Session
from typing import List, Tuple
from tutorconnect.database.database import User, UserRole, TuitionRequest, RequestStatus, Booking, BookingStatus
from tutorconnect.errors import ConflictError
from tutorconnect.schemas.admin_schema import UserCounts, AdminDashboardResponse
from tutorconnect.utilities import get_user_by_id
from tutorconnect.logger import logger, audit_logger

def list_users(db: Session) -> Tuple[List[User], UserCounts]:
    """All users, newest first, with counts per role"""
    users = db.query(User).order_by(User.created_at.desc()).all()
    by_role = {role: 0 for role in UserRole}
    for user in users:
        by_role[user.role] += 1
    counts = UserCounts(
        total=len(users),
        students=by_role[UserRole.STUDENT],
        tutors=by_role[UserRole.TUTOR],
        admins=by_role[UserRole.ADMIN]
    )
    return users, counts

def toggle_block(db: Session, admin: User, user_id: str) -> User:
    """
    Flip the blocked flag of a user. Blocked users cannot log in or use existing tokens.

    Raises:
        NotFoundError: If the user does not exist.
        ConflictError: If the admin targets their own account.
    """
    user = get_user_by_id(db, user_id)
    if user.id == admin.id:
        raise ConflictError("You cannot block your own account")

    user.is_blocked = not user.is_blocked
    db.commit()
    db.refresh(user)

    audit_logger.log_security_event("user_block_toggled", user.id, {"blocked": user.is_blocked, "by": admin.id})
    logger.info(f"User {user.id} {'blocked' if user.is_blocked else 'unblocked'} by admin {admin.id}")
    return user

def dashboard(db: Session) -> AdminDashboardResponse:
    """Headline counts for the admin dashboard"""
    return AdminDashboardResponse(
        user_count=db.query(User).count(),
        tutor_count=db.query(User).filter(User.role == UserRole.TUTOR).count(),
        student_count=db.query(User).filter(User.role == UserRole.STUDENT).count(),
        blocked_count=db.query(User).filter(User.is_blocked == True).count(),
        request_count=db.query(TuitionRequest).count(),
        pending_request_count=db.query(TuitionRequest).filter(TuitionRequest.status == RequestStatus.PENDING).count(),
        booking_count=db.query(Booking).count(),
        active_booking_count=db.query(Booking).filter(Booking.status == BookingStatus.ACTIVE).count()
    )
