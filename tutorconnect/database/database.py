from sqlalchemy import create_engine, event, Column, Integer, String, Float, Text, Date, DateTime, Boolean, ForeignKey, Enum, Index, CheckConstraint, JSON
from sqlalchemy.orm import relationship, declarative_base, sessionmaker
from dateutil.relativedelta import relativedelta
from datetime import datetime, date
from passlib.context import CryptContext
from tutorconnect.config import get_settings
import enum
import uuid
from typing import Optional

"""
Database models for the tutoring marketplace.
Includes models for users, tutor profiles, tuition requests, bookings and their extension history.
Uses SQLAlchemy ORM with SQLite/PostgreSQL backend.
"""

# Declarative base and password hashing shared by the models
Base = declarative_base()
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,
    argon2__time_cost=3,
    argon2__parallelism=4
)

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

# Enum for user roles
class UserRole(enum.Enum):
    ADMIN = "admin"
    STUDENT = "student"
    TUTOR = "tutor"

class RequestStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class BookingStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

def generate_uuid() -> str:
    """Primary keys are lower-case UUID4 strings."""
    return str(uuid.uuid4()).lower()

def add_months(start: date, months: int) -> date:
    """Add calendar months to a date, clamping to the last day of the target month."""
    return start + relativedelta(months=months)

# User Model
class User(Base):
    """User model with role-based access control. Tutors own a TutorProfile."""
    __tablename__ = 'users'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    email = Column(String(255), unique=True, nullable=False, index=True)  # Stored lower-case
    password = Column(String(255), nullable=False)  # Store hashed passwords
    name = Column(String(100), nullable=False)
    phone_number = Column(String(30))
    address = Column(JSON)  # {"street", "area", "city"}
    profile_pic = Column(String(500))
    grade_level = Column(String(50))
    subjects = Column(JSON, default=list, nullable=False)
    learning_goals = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def set_password(self, password: str):
        """Hash and set the user's password."""
        self.password = pwd_context.hash(password)

    def check_password(self, password: str) -> bool:
        """Verify the user's password."""
        return pwd_context.verify(password, self.password)

    @classmethod
    def get_by_id(cls, db, user_id: str) -> Optional['User']:
        return db.query(cls).filter(cls.id == user_id).first()

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

# Tutor Profile Model
class TutorProfile(Base):
    """Teaching-specific attributes of a tutor, 1:1 with a tutor user."""
    __tablename__ = 'tutor_profiles'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    subjects = Column(JSON, default=list, nullable=False)
    experience = Column(Integer, default=0, nullable=False)  # Years
    availability = Column(String(255), default="", nullable=False)
    monthly_rate = Column(Float, default=0, nullable=False)
    rating = Column(Float, default=0, nullable=False)
    num_reviews = Column(Integer, default=0, nullable=False)
    education = Column(JSON, default=list, nullable=False)
    about = Column(Text)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    # Non-negative amounts, rating within 0..5
    __table_args__ = (
        CheckConstraint('monthly_rate >= 0', name='check_monthly_rate_positive'),
        CheckConstraint('experience >= 0', name='check_experience_positive'),
        CheckConstraint('rating >= 0 AND rating <= 5', name='check_rating_range'),
    )

    def __repr__(self):
        return f"<TutorProfile(id={self.id}, user_id={self.user_id}, subjects={self.subjects})>"

# Tuition Request Model
class TuitionRequest(Base):
    """A student's proposal to engage a tutor. end_date is always start_date + duration months."""
    __tablename__ = 'tuition_requests'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    student_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    tutor_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    grade_level = Column(String(50), nullable=False)
    preferred_days = Column(JSON, nullable=False)
    preferred_time = Column(String(50), nullable=False)
    duration = Column(Integer, default=1, nullable=False)  # Months
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)
    monthly_fee = Column(Float, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    __table_args__ = (
        CheckConstraint('duration >= 1', name='check_duration_positive'),
        CheckConstraint('monthly_fee >= 0', name='check_monthly_fee_positive'),
    )

    def __repr__(self):
        return f"<TuitionRequest(id={self.id}, student_id={self.student_id}, tutor_id={self.tutor_id}, status={self.status})>"

@event.listens_for(TuitionRequest, 'before_insert')
@event.listens_for(TuitionRequest, 'before_update')
def compute_end_date(mapper, connection, target: TuitionRequest):
    """Derive end_date from start_date and duration before every write."""
    if target.duration is None:
        target.duration = 1
    target.end_date = add_months(target.start_date, target.duration)

# Booking Model
class Booking(Base):
    """Schedulable engagement created when a tuition request is accepted."""
    __tablename__ = 'bookings'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    tuition_request_id = Column(String(36), ForeignKey('tuition_requests.id', ondelete='CASCADE'), nullable=False, unique=True)
    student_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    tutor_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days_of_week = Column(JSON, nullable=False)
    time_slot = Column(String(50), nullable=False)
    monthly_fee = Column(Float, nullable=False)
    status = Column(Enum(BookingStatus), default=BookingStatus.ACTIVE, nullable=False, index=True)
    extended = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    # Relationships
    extension_history = relationship(
        "BookingExtension",
        back_populates="booking",
        order_by="BookingExtension.sequence",
        cascade='all, delete-orphan'
    )

    def extend(self, additional_months: int, now: Optional[datetime] = None) -> 'BookingExtension':
        """Push end_date forward and append the change to the extension history."""
        previous_end_date = self.end_date
        new_end_date = add_months(previous_end_date, additional_months)
        entry = BookingExtension(
            sequence=len(self.extension_history) + 1,
            previous_end_date=previous_end_date,
            new_end_date=new_end_date,
            extended_on=now or datetime.now()
        )
        self.extension_history.append(entry)
        self.end_date = new_end_date
        self.extended = True
        return entry

    def __repr__(self):
        return f"<Booking(id={self.id}, tuition_request_id={self.tuition_request_id}, status={self.status})>"

class BookingExtension(Base):
    __tablename__ = 'booking_extensions'
    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(String(36), ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    previous_end_date = Column(Date, nullable=False)
    new_end_date = Column(Date, nullable=False)
    extended_on = Column(DateTime, default=datetime.now, nullable=False)

    booking = relationship("Booking", back_populates="extension_history")

    def __repr__(self):
        return f"<BookingExtension(booking_id={self.booking_id}, new_end_date={self.new_end_date})>"

# Tutor directory and expiry sweep lookups
Index('idx_user_role_active', User.role, User.is_active, User.is_blocked)
Index('idx_booking_status_end', Booking.status, Booking.end_date)

# Database setup
DATABASE_URL = get_settings().db_url

def create_db_engine(url: str):
    """Create an engine; SQLite connections may be shared across threads, other backends get a pool."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30
    )

engine = create_db_engine(DATABASE_URL)
Base.metadata.create_all(engine)
SessionLocal = sessionmaker(bind=engine)


def get_db():
    """One session per request, closed when the request is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
