"""Tests for slot conflict detection and slot creation"""

import pytest
from fastapi import HTTPException

from clinic_api.domain.bookings.repository import BookingRepository
from clinic_api.domain.slots import service as slot_service
from clinic_api.domain.slots.conflicts import (
    ensure_no_conflict,
    find_conflict,
    intervals_overlap,
    parse_window,
)
from clinic_api.models import RoleType
from tests.conftest import TOMORROW


class TestIntervalOverlap:
    def test_overlapping_windows(self):
        assert intervals_overlap(540, 600, 570, 630)
        assert intervals_overlap(570, 630, 540, 600)

    def test_contained_window_overlaps(self):
        assert intervals_overlap(540, 660, 570, 600)

    def test_touching_windows_do_not_overlap(self):
        assert not intervals_overlap(540, 600, 600, 660)
        assert not intervals_overlap(600, 660, 540, 600)

    def test_disjoint_windows(self):
        assert not intervals_overlap(540, 570, 600, 630)


class TestParseWindow:
    def test_valid_window(self):
        assert parse_window("09:00", "10:30") == (540, 630)

    def test_start_equal_to_end_rejected(self):
        with pytest.raises(HTTPException) as exc:
            parse_window("10:00", "10:00")
        assert exc.value.status_code == 400

    def test_start_after_end_rejected(self):
        with pytest.raises(HTTPException) as exc:
            parse_window("11:00", "10:00")
        assert exc.value.status_code == 400

    def test_malformed_time_rejected(self):
        with pytest.raises(HTTPException) as exc:
            parse_window("9am", "10:00")
        assert exc.value.status_code == 400


class TestEnsureNoConflict:
    def test_conflict_names_clashing_slot(self, db_session, doctor, make_slot):
        existing = make_slot("09:00", "10:00")

        with pytest.raises(HTTPException) as exc:
            ensure_no_conflict(db_session, doctor.id, TOMORROW, "09:30", "10:30")

        assert exc.value.status_code == 409
        assert f"slot {existing.id}" in exc.value.detail
        assert "09:00-10:00" in exc.value.detail

    def test_back_to_back_allowed(self, db_session, doctor, make_slot):
        make_slot("09:00", "10:00")
        assert ensure_no_conflict(db_session, doctor.id, TOMORROW, "10:00", "11:00") == (600, 660)

    def test_other_doctor_not_considered(self, db_session, other_doctor, make_slot):
        make_slot("09:00", "10:00")
        assert ensure_no_conflict(db_session, other_doctor.id, TOMORROW, "09:00", "10:00")

    def test_find_conflict_returns_none_for_empty_day(self):
        assert find_conflict([], 540, 600) is None


class TestSlotRoutes:
    def _create(self, client, headers, doctor, clinic, start, end, **extra):
        body = {
            "doctorId": doctor.id,
            "clinicId": clinic.id,
            "date": TOMORROW.isoformat(),
            "startTime": start,
            "endTime": end,
            **extra,
        }
        return client.post("/appointments", json=body, headers=headers)

    def test_overlapping_slot_rejected(self, client, auth_headers, doctor, clinic):
        headers = auth_headers(doctor.user)

        first = self._create(client, headers, doctor, clinic, "09:00", "10:00")
        assert first.status_code == 201
        assert first.json()["status"] == "Available"
        assert first.json()["duration"] == 60

        second = self._create(client, headers, doctor, clinic, "09:30", "10:30")
        assert second.status_code == 409

    def test_adjacent_slot_accepted(self, client, auth_headers, doctor, clinic):
        headers = auth_headers(doctor.user)
        assert self._create(client, headers, doctor, clinic, "09:00", "10:00").status_code == 201
        assert self._create(client, headers, doctor, clinic, "10:00", "11:00").status_code == 201

    def test_empty_window_rejected(self, client, auth_headers, doctor, clinic):
        response = self._create(client, auth_headers(doctor.user), doctor, clinic, "10:00", "09:00")
        assert response.status_code == 400

    def test_doctor_cannot_create_for_colleague(
        self, client, auth_headers, doctor, other_doctor, clinic
    ):
        response = self._create(
            client, auth_headers(doctor.user), other_doctor, clinic, "09:00", "10:00"
        )
        assert response.status_code == 403

    def test_admin_can_create_for_any_doctor(self, client, auth_headers, admin, doctor, clinic):
        response = self._create(
            client, auth_headers(admin), doctor, clinic, "9:00", "9:45", maxPatients=3
        )
        assert response.status_code == 201
        body = response.json()
        assert body["startTime"] == "09:00"
        assert body["maxPatients"] == 3
        assert body["availableSpots"] == 3

    def test_patient_cannot_create_slots(self, client, auth_headers, patient, doctor, clinic):
        response = self._create(client, auth_headers(patient), doctor, clinic, "09:00", "10:00")
        assert response.status_code == 403

    def test_doctor_row_locked_before_overlap_check(
        self, client, auth_headers, doctor, clinic, monkeypatch
    ):
        calls = []
        original_lock = BookingRepository.lock_doctor
        original_check = slot_service.ensure_no_conflict

        def lock_doctor(db, doctor_id):
            calls.append(("lock", doctor_id))
            return original_lock(db, doctor_id)

        def ensure_no_conflict(*args, **kwargs):
            calls.append(("check", args[1]))
            return original_check(*args, **kwargs)

        monkeypatch.setattr(BookingRepository, "lock_doctor", staticmethod(lock_doctor))
        monkeypatch.setattr(slot_service, "ensure_no_conflict", ensure_no_conflict)

        response = self._create(client, auth_headers(doctor.user), doctor, clinic, "09:00", "10:00")

        assert response.status_code == 201
        assert calls == [("lock", doctor.id), ("check", doctor.id)]

    def test_unknown_doctor(self, client, auth_headers, admin, doctor, clinic):
        body = {
            "doctorId": doctor.id + 100,
            "clinicId": clinic.id,
            "date": TOMORROW.isoformat(),
            "startTime": "09:00",
            "endTime": "10:00",
        }
        response = client.post("/appointments", json=body, headers=auth_headers(admin))
        assert response.status_code == 404

    def test_unknown_clinic(self, client, auth_headers, doctor, clinic):
        body = {
            "doctorId": doctor.id,
            "clinicId": clinic.id + 100,
            "date": TOMORROW.isoformat(),
            "startTime": "09:00",
            "endTime": "10:00",
        }
        response = client.post("/appointments", json=body, headers=auth_headers(doctor.user))
        assert response.status_code == 404

    def test_delete_slot_with_bookings_rejected(
        self, client, db_session, auth_headers, doctor, make_slot
    ):
        slot = make_slot()
        slot.current_bookings = 1
        db_session.commit()

        response = client.delete(f"/appointments/{slot.id}", headers=auth_headers(doctor.user))
        assert response.status_code == 409

    def test_delete_empty_slot(self, client, auth_headers, doctor, make_slot):
        slot = make_slot()
        headers = auth_headers(doctor.user)

        assert client.delete(f"/appointments/{slot.id}", headers=headers).status_code == 200
        assert client.get(f"/appointments/{slot.id}", headers=headers).status_code == 404

    def test_manual_status_kept_until_reopened(self, client, auth_headers, doctor, make_slot):
        slot = make_slot()
        headers = auth_headers(doctor.user)

        closed = client.patch(
            f"/appointments/{slot.id}/status", json={"status": "Completed"}, headers=headers
        )
        assert closed.json()["status"] == "Completed"

        reopened = client.patch(
            f"/appointments/{slot.id}/status", json={"status": "Booked"}, headers=headers
        )
        # Reopening follows the counter, not the requested value
        assert reopened.json()["status"] == "Available"

    def test_available_listing_hides_full_slots(
        self, client, db_session, auth_headers, patient, doctor, make_slot
    ):
        open_slot = make_slot("09:00", "10:00")
        full_slot = make_slot("10:00", "11:00")
        full_slot.current_bookings = 1
        full_slot.status = "Booked"
        db_session.commit()

        response = client.get(
            f"/appointments/available?doctorId={doctor.id}", headers=auth_headers(patient)
        )
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [open_slot.id]

    def test_listing_requires_role(self, client, auth_headers, patient, admin, make_slot):
        make_slot()
        assert client.get("/appointments", headers=auth_headers(patient)).status_code == 200
        assert (
            client.patch(
                "/appointments/1/status", json={"status": "Completed"}, headers=auth_headers(patient)
            ).status_code
            == 403
        )
