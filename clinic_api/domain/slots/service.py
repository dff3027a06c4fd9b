"""Slot service - Business logic for appointment slots"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import Principal
from ...models import Appointment, AppointmentStatus, RoleType
from ..bookings.repository import BookingRepository
from .conflicts import ensure_no_conflict
from .repository import SlotRepository
from .schemas import SlotCreate

logger = logging.getLogger(__name__)


def status_for_count(slot: Appointment) -> AppointmentStatus:
    """Counter-driven status: Booked when full, Available otherwise"""
    if slot.current_bookings >= slot.max_patients:
        return AppointmentStatus.BOOKED
    return AppointmentStatus.AVAILABLE


class SlotService:
    """Service layer for slot business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()

    def get_slot(self, slot_id: int) -> Appointment:
        slot = self.repo.get_slot(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Appointment slot not found")
        return slot

    def list_slots(
        self,
        doctor_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Appointment]:
        return self.repo.list_slots(self.db, doctor_id, start_date, end_date)

    def list_available(
        self,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        clinic_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Bookable slots; without a date only today and later are listed"""
        from_date = None if on_date else date.today()
        return self.repo.list_available_slots(self.db, doctor_id, on_date, clinic_id, from_date)

    def create_slot(self, data: SlotCreate, principal: Principal) -> Appointment:
        """Create a slot after validating its window against the doctor's existing slots"""
        if principal.role == RoleType.DOCTOR and principal.doctor_id != data.doctorId:
            raise HTTPException(
                status_code=403, detail="Doctors can only create slots for their own schedule"
            )

        try:
            # Doctor row lock: overlap check and insert for this doctor run one at a time
            if not BookingRepository.lock_doctor(self.db, data.doctorId):
                raise HTTPException(status_code=404, detail="Doctor not found")
            if not self.repo.get_clinic(self.db, data.clinicId):
                raise HTTPException(status_code=404, detail="Clinic not found")

            start, end = ensure_no_conflict(
                self.db, data.doctorId, data.date, data.startTime, data.endTime
            )

            slot = self.repo.add_slot(
                self.db,
                doctor_id=data.doctorId,
                clinic_id=data.clinicId,
                date=data.date,
                start_time=data.startTime,
                end_time=data.endTime,
                duration=data.duration or (end - start),
                max_patients=data.maxPatients,
                current_bookings=0,
                status=AppointmentStatus.AVAILABLE.value,
            )
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        self.db.refresh(slot)

        logger.info(
            f"📅 Created slot {slot.id} for doctor {slot.doctor_id} on {slot.date} "
            f"{slot.start_time}-{slot.end_time} (capacity {slot.max_patients})"
        )
        return slot

    def update_status(
        self, slot_id: int, status: AppointmentStatus, principal: Principal
    ) -> Appointment:
        """
        Manual status edit. Completed and Cancelled are stored as given;
        Available or Booked reopen the slot and are recomputed from the counter.
        """
        slot = self.repo.get_slot_for_update(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Appointment slot not found")
        self._ensure_can_manage(slot, principal)

        if status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
            slot.status = status.value
        else:
            slot.status = status_for_count(slot).value

        self.db.commit()
        logger.info(f"📅 Slot {slot.id} status set to {slot.status}")
        return self.get_slot(slot_id)

    def delete_slot(self, slot_id: int, principal: Principal) -> dict:
        slot = self.repo.get_slot_for_update(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Appointment slot not found")
        self._ensure_can_manage(slot, principal)

        if slot.current_bookings > 0:
            self.db.rollback()
            raise HTTPException(
                status_code=409, detail="Cannot delete appointment with existing bookings"
            )

        self.repo.delete_slot(self.db, slot)
        logger.info(f"🗑️ Deleted slot {slot_id}")
        return {"message": "Appointment slot deleted successfully"}

    def _ensure_can_manage(self, slot: Appointment, principal: Principal) -> None:
        if principal.is_admin or principal.acts_for_doctor(slot.doctor_id):
            return
        self.db.rollback()
        raise HTTPException(status_code=403, detail="You can only manage your own slots")
