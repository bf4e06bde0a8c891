from pydantic import BaseModel
from typing import List
from tutorconnect.schemas.user_schema import UserResponse

class UserCounts(BaseModel):
    """Users counted by role"""
    total: int
    students: int
    tutors: int
    admins: int

class AdminUsersData(BaseModel):
    users: List[UserResponse]
    counts: UserCounts

class AdminUsersEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: AdminUsersData

class AdminUserData(BaseModel):
    user: UserResponse

class AdminUserEnvelope(BaseModel):
    status: str = "success"
    data: AdminUserData

class AdminDashboardResponse(BaseModel):
    """Admin dashboard data"""
    user_count: int
    tutor_count: int
    student_count: int
    blocked_count: int
    request_count: int
    pending_request_count: int
    booking_count: int
    active_booking_count: int

class AdminDashboardEnvelope(BaseModel):
    status: str = "success"
    data: AdminDashboardResponse
