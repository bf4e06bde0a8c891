from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from tutorconnect.database.database import BookingStatus, RequestStatus
from tutorconnect.schemas.user_schema import UserSummary

class BookingExtensionResponse(BaseModel):
    """One entry of a booking's extension history"""
    model_config = ConfigDict(from_attributes=True)

    previous_end_date: date
    new_end_date: date
    extended_on: datetime

class BookingResponse(BaseModel):
    """Booking response data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    tuition_request_id: str
    student_id: str
    tutor_id: str
    subject: str
    start_date: date
    end_date: date
    days_of_week: List[str]
    time_slot: str
    monthly_fee: float
    status: BookingStatus
    extended: bool
    extension_history: List[BookingExtensionResponse] = []
    created_at: datetime
    updated_at: datetime

class TuitionRequestLink(BaseModel):
    """Read-only backlink from a booking to the request it was created from"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    grade_level: str
    duration: int
    status: RequestStatus
    notes: Optional[str] = None

class BookingDetail(BookingResponse):
    """Booking with the student, tutor and originating request fetched alongside it"""
    student: Optional[UserSummary] = None
    tutor: Optional[UserSummary] = None
    tuition_request: Optional[TuitionRequestLink] = None

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

############################
##### ENVELOPES ############
############################

class BookingData(BaseModel):
    booking: BookingResponse

class BookingEnvelope(BaseModel):
    status: str = "success"
    data: BookingData

class BookingListData(BaseModel):
    bookings: List[BookingDetail]

class BookingListEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: BookingListData
