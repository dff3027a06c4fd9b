"""Booking repository - Database operations for token appointments"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import (
    ACTIVE_BOOKING_STATUSES,
    Appointment,
    Doctor,
    TokenAppointment,
    TokenAppointmentStatus,
)

_ACTIVE = [s.value for s in ACTIVE_BOOKING_STATUSES]


def _with_relations(query):
    return query.options(
        joinedload(TokenAppointment.doctor),
        joinedload(TokenAppointment.appointment).joinedload(Appointment.clinic),
    )


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def lock_doctor(db: Session, doctor_id: int) -> Optional[Doctor]:
        """Row lock on the doctor; serializes token numbering for that doctor"""
        return (
            db.query(Doctor)
            .filter(Doctor.id == doctor_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[TokenAppointment]:
        return _with_relations(db.query(TokenAppointment)).filter(
            TokenAppointment.id == booking_id
        ).first()

    @staticmethod
    def get_booking_for_update(db: Session, booking_id: int) -> Optional[TokenAppointment]:
        return (
            db.query(TokenAppointment)
            .filter(TokenAppointment.id == booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_by_token(db: Session, token_number: str) -> Optional[TokenAppointment]:
        return _with_relations(db.query(TokenAppointment)).filter(
            TokenAppointment.token_number == token_number
        ).first()

    @staticmethod
    def find_confirmed_booking(
        db: Session,
        doctor_id: int,
        patient_email: str,
        on_date: date,
        exclude_id: Optional[int] = None,
    ) -> Optional[TokenAppointment]:
        query = db.query(TokenAppointment).filter(
            TokenAppointment.doctor_id == doctor_id,
            TokenAppointment.patient_email == patient_email,
            TokenAppointment.date == on_date,
            TokenAppointment.status == TokenAppointmentStatus.CONFIRMED.value,
        )
        if exclude_id is not None:
            query = query.filter(TokenAppointment.id != exclude_id)
        return query.first()

    @staticmethod
    def list_for_patient(db: Session, patient_email: str) -> list[TokenAppointment]:
        return (
            _with_relations(db.query(TokenAppointment))
            .filter(TokenAppointment.patient_email == patient_email)
            .order_by(TokenAppointment.date.desc(), TokenAppointment.time.desc())
            .all()
        )

    @staticmethod
    def list_upcoming_for_patient(
        db: Session, patient_email: str, from_date: date
    ) -> list[TokenAppointment]:
        return (
            _with_relations(db.query(TokenAppointment))
            .filter(
                TokenAppointment.patient_email == patient_email,
                TokenAppointment.date >= from_date,
                TokenAppointment.status.in_(_ACTIVE),
            )
            .order_by(TokenAppointment.date, TokenAppointment.time)
            .all()
        )

    @staticmethod
    def list_history_for_patient(
        db: Session, patient_email: str, before_date: date, limit: int
    ) -> list[TokenAppointment]:
        """Past bookings plus any that are already closed"""
        return (
            _with_relations(db.query(TokenAppointment))
            .filter(
                TokenAppointment.patient_email == patient_email,
                or_(
                    TokenAppointment.date < before_date,
                    TokenAppointment.status.notin_(_ACTIVE),
                ),
            )
            .order_by(TokenAppointment.date.desc(), TokenAppointment.time.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_bookings(
        db: Session,
        doctor_id: Optional[int] = None,
        clinic_id: Optional[int] = None,
        on_date: Optional[date] = None,
    ) -> list[TokenAppointment]:
        query = _with_relations(db.query(TokenAppointment))
        if doctor_id:
            query = query.filter(TokenAppointment.doctor_id == doctor_id)
        if clinic_id:
            query = query.join(
                Appointment, TokenAppointment.appointment_id == Appointment.id
            ).filter(Appointment.clinic_id == clinic_id)
        if on_date:
            query = query.filter(TokenAppointment.date == on_date)
        return query.order_by(TokenAppointment.date, TokenAppointment.time).all()

    @staticmethod
    def search_bookings(
        db: Session,
        term: str,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        patient_fields_only: bool = False,
    ) -> list[TokenAppointment]:
        """
        Case-insensitive substring match on patient name, phone and email,
        and unless patient_fields_only also on token number and doctor name.
        """
        columns = [
            TokenAppointment.patient_name,
            TokenAppointment.patient_phone,
            TokenAppointment.patient_email,
        ]
        if not patient_fields_only:
            columns += [TokenAppointment.token_number, Doctor.name]

        query = (
            _with_relations(db.query(TokenAppointment))
            .join(Doctor, TokenAppointment.doctor_id == Doctor.id)
            .filter(or_(*(column.icontains(term, autoescape=True) for column in columns)))
        )
        if doctor_id:
            query = query.filter(TokenAppointment.doctor_id == doctor_id)
        if on_date:
            query = query.filter(TokenAppointment.date == on_date)
        return query.order_by(TokenAppointment.date.desc(), TokenAppointment.time).all()

    @staticmethod
    def list_between(db: Session, start: date, end: date) -> list[TokenAppointment]:
        return (
            _with_relations(db.query(TokenAppointment))
            .join(Doctor, TokenAppointment.doctor_id == Doctor.id)
            .filter(TokenAppointment.date.between(start, end))
            .order_by(TokenAppointment.date, TokenAppointment.time, Doctor.name)
            .all()
        )

    @staticmethod
    def add_booking(db: Session, **booking_data) -> TokenAppointment:
        """Stage a new booking in the session; caller commits"""
        booking = TokenAppointment(**booking_data)
        db.add(booking)
        return booking
