"""Tests for schedule generation and the doctor dashboard"""

from datetime import date, timedelta

import pytest

from clinic_api.domain.bookings.repository import BookingRepository
from clinic_api.domain.schedules.generator import generate_time_slots
from clinic_api.domain.slots.repository import SlotRepository
from clinic_api.models import Appointment, TokenAppointment
from tests.conftest import TOMORROW


class TestGenerateTimeSlots:
    def test_exact_fit(self):
        assert generate_time_slots(540, 600, 30) == [("09:00", "09:30"), ("09:30", "10:00")]

    def test_trailing_remainder_dropped(self):
        assert generate_time_slots(540, 615, 30) == [("09:00", "09:30"), ("09:30", "10:00")]

    def test_window_shorter_than_duration(self):
        assert generate_time_slots(540, 555, 30) == []

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValueError):
            generate_time_slots(540, 600, 0)


class TestCreateSchedule:
    def _schedule(self, client, headers, clinic_id, start, end, duration=30, per_slot=2):
        return client.post(
            "/doctors/dashboard/create-schedule",
            json={
                "clinicId": clinic_id,
                "date": TOMORROW.isoformat(),
                "startTime": start,
                "endTime": end,
                "slotDuration": duration,
                "patientPerSlot": per_slot,
            },
            headers=headers,
        )

    def test_one_hour_gives_two_slots(self, client, auth_headers, doctor, clinic):
        response = self._schedule(client, auth_headers(doctor.user), clinic.id, "09:00", "10:00")

        assert response.status_code == 201
        slots = response.json()
        assert [(s["startTime"], s["endTime"]) for s in slots] == [
            ("09:00", "09:30"),
            ("09:30", "10:00"),
        ]
        assert all(s["maxPatients"] == 2 and s["status"] == "Available" for s in slots)
        assert all(s["doctorId"] == doctor.id for s in slots)

    def test_partial_tail_dropped(self, client, auth_headers, doctor, clinic):
        response = self._schedule(client, auth_headers(doctor.user), clinic.id, "09:00", "10:15")
        assert len(response.json()) == 2

    def test_rerun_skips_existing_slots(self, client, db_session, auth_headers, doctor, clinic):
        headers = auth_headers(doctor.user)
        self._schedule(client, headers, clinic.id, "09:00", "10:00")

        response = self._schedule(client, headers, clinic.id, "09:00", "11:00")

        assert [s["startTime"] for s in response.json()] == ["10:00", "10:30"]
        assert db_session.query(Appointment).filter(Appointment.doctor_id == doctor.id).count() == 4

    def test_overlapping_existing_slot_skipped(self, client, auth_headers, doctor, clinic, make_slot):
        make_slot("09:15", "09:45")

        response = self._schedule(client, auth_headers(doctor.user), clinic.id, "09:00", "10:30")

        assert [s["startTime"] for s in response.json()] == ["10:00"]

    def test_minimum_duration(self, client, auth_headers, doctor, clinic):
        response = self._schedule(
            client, auth_headers(doctor.user), clinic.id, "09:00", "10:00", duration=10
        )
        assert response.status_code == 422

    def test_unknown_clinic(self, client, auth_headers, doctor, clinic):
        response = self._schedule(
            client, auth_headers(doctor.user), clinic.id + 50, "09:00", "10:00"
        )
        assert response.status_code == 404

    def test_doctor_row_locked_before_existing_slots_read(
        self, client, auth_headers, doctor, clinic, monkeypatch
    ):
        calls = []
        original_lock = BookingRepository.lock_doctor
        original_read = SlotRepository.get_slots_for_doctor_on_date

        def lock_doctor(db, doctor_id):
            calls.append("lock")
            return original_lock(db, doctor_id)

        def get_slots_for_doctor_on_date(*args, **kwargs):
            calls.append("read")
            return original_read(*args, **kwargs)

        monkeypatch.setattr(BookingRepository, "lock_doctor", staticmethod(lock_doctor))
        monkeypatch.setattr(
            SlotRepository,
            "get_slots_for_doctor_on_date",
            staticmethod(get_slots_for_doctor_on_date),
        )

        response = self._schedule(client, auth_headers(doctor.user), clinic.id, "09:00", "10:00")

        assert response.status_code == 201
        assert calls[:2] == ["lock", "read"]

    def test_assistant_cannot_create_schedule(self, client, auth_headers, assistant, clinic):
        response = self._schedule(client, auth_headers(assistant.user), clinic.id, "09:00", "10:00")
        assert response.status_code == 403


class TestDashboard:
    def _booking(self, db, doctor, slot, token, time, on_date, status="Confirmed"):
        db.add(
            TokenAppointment(
                patient_name=f"Patient {token}",
                patient_phone="+15550000000",
                patient_age=30,
                patient_gender="F",
                doctor_id=doctor.id,
                appointment_id=slot.id,
                date=on_date,
                time=time,
                token_number=token,
                status=status,
                doctor_fee=500.0,
            )
        )
        db.commit()

    def test_today_appointments_for_doctor_and_assistant(
        self, client, db_session, auth_headers, doctor, assistant, make_slot
    ):
        today = date.today()
        slot = make_slot(on_date=today, max_patients=5)
        self._booking(db_session, doctor, slot, "T-2", "09:30", today)
        self._booking(db_session, doctor, slot, "T-1", "09:00", today)
        self._booking(db_session, doctor, slot, "T-3", "09:00", TOMORROW)

        for user in (doctor.user, assistant.user):
            response = client.get(
                "/doctors/dashboard/today-appointments", headers=auth_headers(user)
            )
            assert response.status_code == 200
            assert [b["tokenNumber"] for b in response.json()] == ["T-1", "T-2"]

    def test_stats(self, client, db_session, auth_headers, doctor, assistant, make_slot):
        today = date.today()
        slot = make_slot(on_date=today, max_patients=5)
        self._booking(db_session, doctor, slot, "T-1", "09:00", today, status="Completed")
        self._booking(db_session, doctor, slot, "T-2", "09:10", today, status="Pending")

        stats = client.get("/doctors/dashboard/stats", headers=auth_headers(doctor.user)).json()

        assert stats["totalAppointments"] == 1
        assert stats["todayPatients"] == 2
        assert stats["pendingAppointments"] == 1
        assert stats["completedAppointments"] == 1
        assert stats["assistantsCount"] == 1

    def test_upcoming_covers_next_week_confirmed_only(
        self, client, db_session, auth_headers, doctor, assistant, make_slot
    ):
        today = date.today()
        slot = make_slot(on_date=today, max_patients=10)
        self._booking(db_session, doctor, slot, "T-1", "11:00", today)
        self._booking(db_session, doctor, slot, "T-2", "09:00", today + timedelta(days=3))
        self._booking(db_session, doctor, slot, "T-3", "09:00", today + timedelta(days=10))
        self._booking(db_session, doctor, slot, "T-4", "08:00", today, status="Pending")
        self._booking(db_session, doctor, slot, "T-5", "09:00", today - timedelta(days=1))

        for user in (doctor.user, assistant.user):
            response = client.get(
                "/doctors/dashboard/upcoming-appointments", headers=auth_headers(user)
            )
            assert response.status_code == 200
            assert [b["tokenNumber"] for b in response.json()] == ["T-1", "T-2"]

        limited = client.get(
            "/doctors/dashboard/upcoming-appointments?limit=1", headers=auth_headers(doctor.user)
        ).json()
        assert [b["date"] for b in limited] == [today.isoformat()]

    def test_monthly_appointments(self, client, db_session, auth_headers, doctor, make_slot):
        slot = make_slot(max_patients=10)
        self._booking(db_session, doctor, slot, "M-1", "09:00", date(2026, 3, 31))
        self._booking(db_session, doctor, slot, "M-2", "09:00", date(2026, 3, 1), status="Cancelled")
        self._booking(db_session, doctor, slot, "M-3", "09:00", date(2026, 4, 1))
        headers = auth_headers(doctor.user)

        march = client.get("/doctors/dashboard/monthly-appointments?month=3&year=2026", headers=headers)

        assert [b["tokenNumber"] for b in march.json()] == ["M-2", "M-1"]
        assert (
            client.get("/doctors/dashboard/monthly-appointments?month=13&year=2026", headers=headers)
            .status_code
            == 422
        )

    def test_monthly_appointments_doctor_only(self, client, auth_headers, assistant):
        response = client.get(
            "/doctors/dashboard/monthly-appointments?month=3&year=2026",
            headers=auth_headers(assistant.user),
        )
        assert response.status_code == 403
