from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from typing import Annotated, Optional, List
from tutorconnect.database.database import UserRole
from bleach import clean
from datetime import datetime

def sanitize_list(values: Optional[List[str]]) -> Optional[List[str]]:
    """Strip markup from every entry and drop the empty ones."""
    if values is None:
        return values
    cleaned = [clean(v, tags=[], strip=True).strip() for v in values]
    return [v for v in cleaned if v]

############################
##### ADDRESS SCHEMA #######
############################

class Address(BaseModel):
    """Postal address. Tutor location filters match on city and area."""
    street: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None

    @field_validator('street', 'area', 'city')
    def sanitize_part(cls, v):
        return clean(v, tags=[], strip=True).strip() if v else v

############################
### USER ACCOUNT SCHEMAS ###
############################

class UserBase(BaseModel):
    """Base user data"""
    email: EmailStr
    # Add constraints to name field (min length: 1, max length: 100)
    name: Annotated[str, StringConstraints(min_length=1, max_length=100, strip_whitespace=True)]

    @field_validator('name')
    def sanitize_name(cls, v):
        return clean(v, tags=[], strip=True)

    @field_validator('email')
    def normalize_email(cls, v):
        return v.lower()

class UserCreate(UserBase):
    """Registration data. Admin accounts cannot be self-registered."""
    password: Annotated[str, StringConstraints(min_length=8)]
    role: UserRole = UserRole.STUDENT
    phone_number: Optional[str] = None
    address: Optional[Address] = None
    grade_level: Optional[str] = None
    subjects: List[str] = []
    learning_goals: Optional[str] = None

    @field_validator('subjects')
    def sanitize_subjects(cls, v):
        return sanitize_list(v)

    @field_validator('learning_goals', 'grade_level', 'phone_number')
    def sanitize_text(cls, v):
        return clean(v, tags=[], strip=True) if v else v

class UserUpdate(BaseModel):
    """Fields a user may change on their own account. Unset fields are left untouched."""
    name: Optional[Annotated[str, StringConstraints(min_length=1, max_length=100, strip_whitespace=True)]] = None
    phone_number: Optional[str] = None
    address: Optional[Address] = None
    profile_pic: Optional[str] = None
    grade_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    learning_goals: Optional[str] = None

    @field_validator('subjects')
    def sanitize_subjects(cls, v):
        return sanitize_list(v)

    @field_validator('name', 'learning_goals', 'grade_level', 'phone_number', 'profile_pic')
    def sanitize_text(cls, v):
        return clean(v, tags=[], strip=True) if v else v

class UserSummary(BaseModel):
    """Short user view embedded in requests and bookings"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    profile_pic: Optional[str] = None

class UserResponse(BaseModel):
    """User response data. The password hash is never included."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    phone_number: Optional[str] = None
    address: Optional[Address] = None
    profile_pic: Optional[str] = None
    grade_level: Optional[str] = None
    subjects: List[str] = []
    learning_goals: Optional[str] = None
    is_active: bool
    is_blocked: bool
    created_at: datetime
    updated_at: datetime

############################
#### TUTOR PROFILE SCHEMAS #
############################

class TutorProfileResponse(BaseModel):
    """Tutor profile response"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    subjects: List[str]
    experience: int
    availability: str
    monthly_rate: float
    rating: float
    num_reviews: int
    education: List[str]
    about: Optional[str] = None

class TutorProfileUpdate(BaseModel):
    """Tutor profile update data. Unset fields are left untouched."""
    subjects: Optional[List[str]] = None
    experience: Optional[int] = Field(default=None, ge=0)
    availability: Optional[str] = None
    monthly_rate: Optional[float] = Field(default=None, ge=0)
    education: Optional[List[str]] = None
    about: Optional[str] = None

    @field_validator('subjects', 'education')
    def sanitize_lists(cls, v):
        return sanitize_list(v)

    @field_validator('availability', 'about')
    def sanitize_text(cls, v):
        return clean(v, tags=[], strip=True) if v else v

class TutorResponse(UserResponse):
    """Tutor account together with its profile"""
    tutor_profile: Optional[TutorProfileResponse] = None

class RatingCreate(BaseModel):
    rating: int = Field(ge=1, le=5)

############################
##### ENVELOPES ############
############################

class UserData(BaseModel):
    user: TutorResponse

class UserEnvelope(BaseModel):
    status: str = "success"
    data: UserData

class TutorData(BaseModel):
    tutor: TutorResponse

class TutorEnvelope(BaseModel):
    status: str = "success"
    data: TutorData

class TutorListData(BaseModel):
    tutors: List[TutorResponse]

class TutorListEnvelope(BaseModel):
    status: str = "success"
    results: int
    data: TutorListData

class TutorProfileData(BaseModel):
    tutor_profile: TutorProfileResponse

class TutorProfileEnvelope(BaseModel):
    status: str = "success"
    data: TutorProfileData
