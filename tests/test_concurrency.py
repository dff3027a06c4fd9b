"""Interleaved bookings against a file-backed SQLite database"""

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic_api.auth import build_principal
from clinic_api.database import Base
from clinic_api.domain.bookings.channels import SELF_SERVICE
from clinic_api.domain.bookings.service import BookingService
from clinic_api.domain.slots.repository import SlotRepository
from clinic_api.models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    Doctor,
    RoleType,
    TokenAppointment,
    User,
)
from tests.conftest import TOMORROW
from tests.test_booking_service import patient_request


@pytest.fixture
def file_sessions(tmp_path):
    """Two independent sessions on their own connections to one database file"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clinic.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    first, second = Session(), Session()
    try:
        yield first, second
    finally:
        first.close()
        second.close()
        engine.dispose()


@pytest.fixture
def single_place_slot(file_sessions):
    db, _ = file_sessions
    doctor_user = User(email="grey@clinic.test", role=RoleType.DOCTOR.value, full_name="Dr. Grey")
    clinic = Clinic(
        location_name="Downtown Clinic",
        address="1 Main St",
        city="Springfield",
        state="IL",
        postal_code="62701",
        phone="+15551230000",
    )
    jane = User(email="jane@example.com", role=RoleType.USER.value, full_name="Jane")
    bob = User(email="bob@example.com", role=RoleType.USER.value, full_name="Bob")
    db.add_all([doctor_user, clinic, jane, bob])
    db.commit()

    doctor = Doctor(
        user_id=doctor_user.id,
        name="Dr. Grey",
        specialization="Cardiology",
        license_number="LIC-grey",
        consultation_fee=500.0,
    )
    db.add(doctor)
    db.commit()

    slot = Appointment(
        doctor_id=doctor.id,
        clinic_id=clinic.id,
        date=TOMORROW,
        start_time="09:00",
        end_time="10:00",
        duration=60,
        max_patients=1,
        current_bookings=0,
        status=AppointmentStatus.AVAILABLE.value,
    )
    db.add(slot)
    db.commit()
    return slot, build_principal(jane), build_principal(bob)


def test_second_writer_loses_the_last_place(file_sessions, single_place_slot, monkeypatch):
    """Bob books in another session after Jane passed the capacity check but before her write"""
    db_a, db_b = file_sessions
    slot, jane, bob = single_place_slot
    slot_id = slot.id
    original_claim = SlotRepository.claim_place
    bob_bookings = []

    def claim_after_rival(db, claimed_slot_id):
        if db is db_a and not bob_bookings:
            bob_bookings.append(
                BookingService(db_b).book_slot(
                    slot_id,
                    patient_request(slot, email="bob@example.com"),
                    SELF_SERVICE,
                    bob,
                )
            )
        return original_claim(db, claimed_slot_id)

    monkeypatch.setattr(SlotRepository, "claim_place", staticmethod(claim_after_rival))

    with pytest.raises(HTTPException) as exc:
        BookingService(db_a).book_slot(slot_id, patient_request(slot), SELF_SERVICE, jane)

    assert exc.value.status_code == 409
    assert bob_bookings[0].patient_email == "bob@example.com"

    db_a.expire_all()
    stored = db_a.get(Appointment, slot_id)
    assert stored.current_bookings == 1
    assert stored.status == AppointmentStatus.BOOKED.value
    assert db_a.query(TokenAppointment).filter(TokenAppointment.appointment_id == slot_id).count() == 1


class TestClaimAndRelease:
    def test_claim_refused_when_full(self, file_sessions, single_place_slot):
        db, _ = file_sessions
        slot_id = single_place_slot[0].id

        assert SlotRepository.claim_place(db, slot_id) is True
        assert SlotRepository.claim_place(db, slot_id) is False
        db.commit()

        db.expire_all()
        assert db.get(Appointment, slot_id).current_bookings == 1

    def test_claim_refused_on_closed_slot(self, file_sessions, single_place_slot):
        db, _ = file_sessions
        slot = single_place_slot[0]
        slot.status = AppointmentStatus.COMPLETED.value
        db.commit()

        assert SlotRepository.claim_place(db, slot.id) is False

    def test_release_reopens_and_floors_at_zero(self, file_sessions, single_place_slot):
        db, _ = file_sessions
        slot_id = single_place_slot[0].id
        SlotRepository.claim_place(db, slot_id)
        db.commit()

        SlotRepository.release_place(db, slot_id)
        SlotRepository.release_place(db, slot_id)
        db.commit()

        db.expire_all()
        stored = db.get(Appointment, slot_id)
        assert stored.current_bookings == 0
        assert stored.status == AppointmentStatus.AVAILABLE.value

    def test_release_keeps_manual_status(self, file_sessions, single_place_slot):
        db, _ = file_sessions
        slot = single_place_slot[0]
        slot.current_bookings = 1
        slot.status = AppointmentStatus.CANCELLED.value
        db.commit()

        SlotRepository.release_place(db, slot.id)
        db.commit()

        db.expire_all()
        stored = db.get(Appointment, slot.id)
        assert stored.current_bookings == 0
        assert stored.status == AppointmentStatus.CANCELLED.value
