"""Slot repository - Database operations for appointment slots"""

from datetime import date
from typing import Optional

from sqlalchemy import case, update
from sqlalchemy.orm import Session, joinedload

from ...models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    TokenAppointment,
    TokenAppointmentStatus,
)


class SlotRepository:
    """Repository for slot database operations"""

    @staticmethod
    def get_slot(db: Session, slot_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.clinic))
            .filter(Appointment.id == slot_id)
            .first()
        )

    @staticmethod
    def get_slot_for_update(db: Session, slot_id: int) -> Optional[Appointment]:
        """Load a slot and hold a row lock on it until the transaction ends"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == slot_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def claim_place(db: Session, slot_id: int) -> bool:
        """
        Take one place in a slot with a single guarded UPDATE.

        Matches only while the slot is Available and below capacity, so two
        writers racing for the last place cannot both succeed whatever the
        backend does with row locks. Returns False when nothing matched.
        """
        taken = Appointment.current_bookings + 1
        result = db.execute(
            update(Appointment)
            .where(
                Appointment.id == slot_id,
                Appointment.status == AppointmentStatus.AVAILABLE.value,
                Appointment.current_bookings < Appointment.max_patients,
            )
            .values(
                current_bookings=taken,
                status=case(
                    (taken >= Appointment.max_patients, AppointmentStatus.BOOKED.value),
                    else_=AppointmentStatus.AVAILABLE.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release_place(db: Session, slot_id: int) -> None:
        """
        Give one place back, floored at 0.

        Available/Booked follow the counter; a slot set to Completed or
        Cancelled by hand keeps that status.
        """
        left = case(
            (Appointment.current_bookings > 0, Appointment.current_bookings - 1), else_=0
        )
        db.execute(
            update(Appointment)
            .where(Appointment.id == slot_id)
            .values(
                current_bookings=left,
                status=case(
                    (
                        Appointment.status.in_(
                            [AppointmentStatus.AVAILABLE.value, AppointmentStatus.BOOKED.value]
                        ),
                        case(
                            (left >= Appointment.max_patients, AppointmentStatus.BOOKED.value),
                            else_=AppointmentStatus.AVAILABLE.value,
                        ),
                    ),
                    else_=Appointment.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def list_slots(
        db: Session,
        doctor_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).options(
            joinedload(Appointment.doctor), joinedload(Appointment.clinic)
        )
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)
        return query.order_by(Appointment.date, Appointment.start_time).all()

    @staticmethod
    def list_available_slots(
        db: Session,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        clinic_id: Optional[int] = None,
        from_date: Optional[date] = None,
    ) -> list[Appointment]:
        """Slots that still accept bookings: Available and below capacity"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.clinic))
            .filter(
                Appointment.status == AppointmentStatus.AVAILABLE.value,
                Appointment.current_bookings < Appointment.max_patients,
            )
        )
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if on_date:
            query = query.filter(Appointment.date == on_date)
        elif from_date:
            query = query.filter(Appointment.date >= from_date)
        if clinic_id:
            query = query.filter(Appointment.clinic_id == clinic_id)
        return query.order_by(Appointment.date, Appointment.start_time).all()

    @staticmethod
    def get_slots_for_doctor_on_date(
        db: Session, doctor_id: int, on_date: date
    ) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id, Appointment.date == on_date)
            .order_by(Appointment.start_time)
            .all()
        )

    @staticmethod
    def get_booked_times(db: Session, slot_ids: list[int]) -> dict[int, list[str]]:
        """Confirmed booking times grouped by slot id"""
        if not slot_ids:
            return {}

        rows = (
            db.query(TokenAppointment.appointment_id, TokenAppointment.time)
            .filter(
                TokenAppointment.appointment_id.in_(slot_ids),
                TokenAppointment.status == TokenAppointmentStatus.CONFIRMED.value,
            )
            .order_by(TokenAppointment.time)
            .all()
        )

        booked: dict[int, list[str]] = {}
        for appointment_id, time in rows:
            booked.setdefault(appointment_id, []).append(time)
        return booked

    @staticmethod
    def add_slot(db: Session, **slot_data) -> Appointment:
        """Stage a new slot in the session; caller commits"""
        slot = Appointment(**slot_data)
        db.add(slot)
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: Appointment) -> None:
        """Delete a slot together with its cancelled bookings"""
        db.query(TokenAppointment).filter(
            TokenAppointment.appointment_id == slot.id,
            TokenAppointment.status == TokenAppointmentStatus.CANCELLED.value,
        ).delete(synchronize_session=False)
        db.delete(slot)
        db.commit()

    @staticmethod
    def get_clinic(db: Session, clinic_id: int) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.id == clinic_id).first()
