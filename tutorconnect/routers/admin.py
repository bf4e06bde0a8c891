"""
Admin router providing oversight endpoints for users and tuition requests.
Requires admin authentication for all endpoints.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from tutorconnect.routers.authentication import limiter
from tutorconnect.auth_tools import admin_only
from tutorconnect.database.database import get_db, User
from tutorconnect.controllers import admin_controller, request_controller
from tutorconnect.utilities import get_user_by_id
from tutorconnect.schemas.admin_schema import AdminDashboardEnvelope, AdminUsersEnvelope, AdminUserEnvelope
from tutorconnect.schemas.request_schema import RequestListEnvelope

router = APIRouter(prefix='/admin')

@router.get('/dashboard', response_model=AdminDashboardEnvelope)
@limiter.limit("10/minute")
def admin_dashboard(request: Request, db: Session = Depends(get_db), _=Depends(admin_only)):
    """
    Fetch admin dashboard counts for users, requests and bookings.
    Rate limited to 10 requests per minute.
    """
    return {"data": admin_controller.dashboard(db)}

@router.get('/users', response_model=AdminUsersEnvelope)
def get_all_users(request: Request, db: Session = Depends(get_db), _=Depends(admin_only)):
    """
    Retrieve all users together with their count per role.
    """
    users, counts = admin_controller.list_users(db)
    return {"results": len(users), "data": {"users": users, "counts": counts}}

@router.get('/users/{user_id}', response_model=AdminUserEnvelope)
def get_user(request: Request, user_id: str, db: Session = Depends(get_db), _=Depends(admin_only)):
    """
    Retrieve a user by their ID.

    Raises:
    - 404: If the user does not exist
    """
    return {"data": {"user": get_user_by_id(db, user_id)}}

@router.get('/requests', response_model=RequestListEnvelope)
def get_all_requests(request: Request, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    """
    Retrieve every tuition request with student/tutor summaries and counts per status.
    """
    requests = request_controller.list_requests(db, admin)
    counts = request_controller.count_requests(requests)
    return {"results": len(requests), "data": {"requests": requests, "counts": counts}}

@router.put('/users/{user_id}/block', response_model=AdminUserEnvelope)
def toggle_block_user(request: Request, user_id: str, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    """
    Block or unblock a user. Blocked users cannot log in.

    Raises:
    - 404: If the user does not exist
    - 409: If the admin targets their own account
    """
    user = admin_controller.toggle_block(db, admin, user_id)
    return {"data": {"user": user}}
