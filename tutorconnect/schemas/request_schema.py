from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, List, Optional
from datetime import date, datetime
from bleach import clean
from tutorconnect.database.database import RequestStatus, WEEKDAYS
from tutorconnect.schemas.user_schema import UserSummary
from tutorconnect.schemas.booking_schema import BookingResponse

class TuitionRequestCreate(BaseModel):
    """Tuition request creation data. The end date is derived, never supplied."""
    tutor_id: str
    subject: Annotated[str, Field(min_length=1, max_length=100)]
    grade_level: Annotated[str, Field(min_length=1, max_length=50)]
    preferred_days: List[str] = Field(min_length=1)
    preferred_time: Annotated[str, Field(min_length=1, max_length=50)]
    duration: int = Field(default=1, ge=1)  # Months
    start_date: date
    monthly_fee: float = Field(ge=0)
    notes: Optional[str] = None

    @field_validator('subject', 'grade_level', 'preferred_time', 'notes')
    def sanitize_text(cls, v):
        return clean(v, tags=[], strip=True).strip() if v else v

    @field_validator('preferred_days')
    def validate_days(cls, v):
        days = []
        for day in v:
            day = day.strip().capitalize()
            if day not in WEEKDAYS:
                raise ValueError(f"'{day}' is not a day of the week")
            if day not in days:
                days.append(day)
        # Keep calendar order
        return sorted(days, key=WEEKDAYS.index)

class TuitionRequestResponse(BaseModel):
    """Tuition request response data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    tutor_id: str
    subject: str
    grade_level: str
    preferred_days: List[str]
    preferred_time: str
    duration: int
    start_date: date
    end_date: date
    status: RequestStatus
    monthly_fee: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class TuitionRequestDetail(TuitionRequestResponse):
    """Tuition request with the student and tutor summaries fetched alongside it"""
    student: Optional[UserSummary] = None
    tutor: Optional[UserSummary] = None

class ExtendBookingRequest(BaseModel):
    booking_id: str
    additional_months: int = Field(ge=1)

class RequestCounts(BaseModel):
    total: int
    pending: int
    accepted: int
    rejected: int

############################
##### ENVELOPES ############
############################

class RequestData(BaseModel):
    request: TuitionRequestResponse

class RequestEnvelope(BaseModel):
    status: str = "success"
    data: RequestData

class AcceptedData(BaseModel):
    request: TuitionRequestResponse
    booking: BookingResponse

class AcceptedEnvelope(BaseModel):
    status: str = "success"
    data: AcceptedData

class RequestListData(BaseModel):
    requests: List[TuitionRequestDetail]
    counts: Optional[RequestCounts] = None

class RequestListEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: RequestListData
