from datetime import date, datetime
from tutorconnect.database.database import add_months, User, UserRole, TuitionRequest, Booking, BookingStatus

def make_pair(db):
    student = User(name="Sam Student", email="sam@example.com", role=UserRole.STUDENT)
    student.set_password("password123")
    tutor = User(name="Tia Tutor", email="tia@example.com", role=UserRole.TUTOR)
    tutor.set_password("password123")
    db.add_all([student, tutor])
    db.commit()
    return student, tutor

def make_request(db, student, tutor, **terms):
    request = TuitionRequest(
        student_id=student.id,
        tutor_id=tutor.id,
        subject="Mathematics",
        grade_level="Grade 9",
        preferred_days=["Monday"],
        preferred_time="17:00-18:00",
        monthly_fee=100,
        **terms
    )
    db.add(request)
    db.commit()
    return request

def test_add_months():
    assert add_months(date(2024, 1, 1), 3) == date(2024, 4, 1)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 2) == date(2025, 1, 15)

def test_end_date_is_computed_on_insert(db):
    student, tutor = make_pair(db)
    request = make_request(db, student, tutor, start_date=date(2024, 1, 1), duration=3)
    assert request.end_date == date(2024, 4, 1)

def test_duration_defaults_to_one(db):
    student, tutor = make_pair(db)
    request = make_request(db, student, tutor, start_date=date(2024, 5, 10))
    assert request.duration == 1
    assert request.end_date == date(2024, 6, 10)

def test_end_date_follows_updates(db):
    student, tutor = make_pair(db)
    request = make_request(db, student, tutor, start_date=date(2024, 1, 1), duration=3)

    request.duration = 6
    db.commit()
    assert request.end_date == date(2024, 7, 1)

    request.start_date = date(2024, 2, 1)
    db.commit()
    assert request.end_date == date(2024, 8, 1)

    # A stale end date written directly is overwritten
    request.end_date = date(2030, 1, 1)
    db.commit()
    assert request.end_date == date(2024, 8, 1)

def test_booking_extend(db):
    student, tutor = make_pair(db)
    request = make_request(db, student, tutor, start_date=date(2024, 1, 1), duration=3)
    booking = Booking(
        tuition_request_id=request.id,
        student_id=student.id,
        tutor_id=tutor.id,
        subject=request.subject,
        start_date=request.start_date,
        end_date=request.end_date,
        days_of_week=request.preferred_days,
        time_slot=request.preferred_time,
        monthly_fee=request.monthly_fee,
        status=BookingStatus.ACTIVE
    )
    db.add(booking)
    db.commit()

    entry = booking.extend(2, now=datetime(2024, 3, 1, 12, 0))
    db.commit()

    assert entry.sequence == 1
    assert entry.previous_end_date == date(2024, 4, 1)
    assert entry.new_end_date == date(2024, 6, 1)
    assert booking.end_date == date(2024, 6, 1)
    assert booking.extended is True

    booking.extend(1)
    db.commit()
    assert [e.sequence for e in booking.extension_history] == [1, 2]
    assert booking.end_date == date(2024, 7, 1)
    assert booking.start_date == date(2024, 1, 1)
