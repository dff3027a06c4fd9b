"""Schedule service - batch slot creation, the doctor dashboard and the clinic-wide dashboard"""

import calendar
import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import Principal
from ...models import Appointment, AppointmentStatus, RoleType, TokenAppointment
from ...shared.validators import parse_time_to_minutes
from ..bookings.repository import BookingRepository
from ..slots.conflicts import find_conflict, parse_window
from ..slots.repository import SlotRepository
from .generator import generate_time_slots
from .repository import DashboardRepository, GlobalDashboardRepository
from .schemas import ScheduleCreate

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 7
DEFAULT_UPCOMING_LIMIT = 10


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db
        self.slots = SlotRepository()
        self.dashboard = DashboardRepository()

    def create_schedule(self, data: ScheduleCreate, principal: Principal) -> list[Appointment]:
        """
        Create one slot per sub-interval of the window. Sub-intervals that
        already have a slot at the same clinic and start time, or that overlap
        another of the doctor's slots that day, are skipped.
        """
        doctor_id = principal.doctor_id
        if principal.role != RoleType.DOCTOR or doctor_id is None:
            raise HTTPException(status_code=403, detail="Doctor profile not found")
        if not self.slots.get_clinic(self.db, data.clinicId):
            raise HTTPException(status_code=404, detail="Clinic not found")

        start, end = parse_window(data.startTime, data.endTime)

        created: list[Appointment] = []
        skipped = 0
        try:
            if not BookingRepository.lock_doctor(self.db, doctor_id):
                raise HTTPException(status_code=404, detail="Doctor profile not found")
            existing = self.slots.get_slots_for_doctor_on_date(self.db, doctor_id, data.date)

            for start_time, end_time in generate_time_slots(start, end, data.slotDuration):
                if any(
                    s.clinic_id == data.clinicId and s.start_time == start_time for s in existing
                ) or find_conflict(
                    existing, parse_time_to_minutes(start_time), parse_time_to_minutes(end_time)
                ):
                    skipped += 1
                    continue

                slot = self.slots.add_slot(
                    self.db,
                    doctor_id=doctor_id,
                    clinic_id=data.clinicId,
                    date=data.date,
                    start_time=start_time,
                    end_time=end_time,
                    duration=data.slotDuration,
                    max_patients=data.patientPerSlot,
                    current_bookings=0,
                    status=AppointmentStatus.AVAILABLE.value,
                )
                created.append(slot)
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error creating schedule for doctor {doctor_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create schedule") from e

        logger.info(
            f"📅 Schedule for doctor {doctor_id} on {data.date} {data.startTime}-{data.endTime}: "
            f"{len(created)} slots created, {skipped} skipped"
        )
        return [self.slots.get_slot(self.db, slot.id) for slot in created]

    def today_appointments(self, principal: Principal) -> list[TokenAppointment]:
        return self.dashboard.get_todays_bookings(self.db, self._doctor_id(principal), date.today())

    def stats(self, principal: Principal) -> dict:
        return self.dashboard.get_stats(self.db, self._doctor_id(principal), date.today())

    def upcoming_appointments(
        self, principal: Principal, limit: int = DEFAULT_UPCOMING_LIMIT
    ) -> list[TokenAppointment]:
        """Confirmed bookings from today through the next UPCOMING_WINDOW_DAYS days"""
        today = date.today()
        return self.dashboard.get_confirmed_between(
            self.db,
            self._doctor_id(principal),
            today,
            today + timedelta(days=UPCOMING_WINDOW_DAYS),
            limit,
        )

    def monthly_appointments(
        self, principal: Principal, month: int, year: int
    ) -> list[TokenAppointment]:
        first = date(year, month, 1)
        last = first.replace(day=calendar.monthrange(year, month)[1])
        return self.dashboard.get_bookings_between(self.db, self._doctor_id(principal), first, last)

    @staticmethod
    def _doctor_id(principal: Principal) -> int:
        doctor_id = (
            principal.doctor_id
            if principal.role == RoleType.DOCTOR
            else principal.assistant_doctor_id
        )
        if doctor_id is None:
            raise HTTPException(status_code=403, detail="No doctor profile linked to this account")
        return doctor_id


class GlobalDashboardService:
    """Clinic-wide view for admins and doctors"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GlobalDashboardRepository()
        self.bookings = BookingRepository()

    def stats(self) -> dict:
        return self.repo.get_day_stats(self.db, date.today())

    def today_appointments(self) -> list[TokenAppointment]:
        today = date.today()
        return self.bookings.list_between(self.db, today, today)

    def appointments_between(self, start: date, end: date) -> list[TokenAppointment]:
        if end < start:
            raise HTTPException(status_code=400, detail="End date must not be before start date")
        return self.bookings.list_between(self.db, start, end)

    def doctor_stats(self, on_date: Optional[date] = None) -> list[dict]:
        return self.repo.get_doctor_day_stats(self.db, on_date or date.today())

    def search(
        self, principal: Principal, term: str, on_date: Optional[date] = None
    ) -> list[TokenAppointment]:
        """Assistants only search their own doctor's bookings"""
        doctor_id = None
        if principal.role == RoleType.ASSISTANT:
            doctor_id = principal.assistant_doctor_id
            if doctor_id is None:
                raise HTTPException(status_code=403, detail="No doctor profile linked to this account")
        results = self.bookings.search_bookings(self.db, term.strip(), doctor_id, on_date)
        logger.info(f"🔍 Appointment search by user {principal.user_id}: {len(results)} matches")
        return results
