"""
Booking service - the booking orchestrator.

Every booking path (patient self-service, assistant, doctor) goes through
BookingService.book_slot with a BookingChannel describing the checks that
apply. Capacity is taken with a guarded UPDATE on the slot counter, which
only matches while a place is free; token numbering, the ledger write and
the counter update then commit together under the doctor and slot row locks.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import config
from ...auth import Principal
from ...models import (
    ACTIVE_BOOKING_STATUSES,
    Appointment,
    AppointmentStatus,
    RoleType,
    TokenAppointment,
    TokenAppointmentStatus,
)
from ...shared.validators import normalize_email, parse_time_to_minutes
from ..slots.repository import SlotRepository
from .channels import BookingChannel
from .repository import BookingRepository
from .schemas import PatientDetails
from .tokens import generate_token_number

logger = logging.getLogger(__name__)

_ACTIVE = {s.value for s in ACTIVE_BOOKING_STATUSES}

DEFAULT_HISTORY_LIMIT = 10


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.slots = SlotRepository()

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book_slot(
        self,
        slot_id: int,
        patient: PatientDetails,
        channel: BookingChannel,
        principal: Principal,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        time: Optional[str] = None,
        fee: Optional[float] = None,
    ) -> TokenAppointment:
        """
        Book one place in a slot.

        Raises:
            HTTPException 404 unknown slot, 403 ownership mismatch,
            400 bad date/time or missing email, 409 slot full/unavailable
            or duplicate confirmed booking
        """
        patient_email = self._check_caller(patient, channel, principal)

        slot = self.slots.get_slot(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Appointment slot not found")

        if channel.acts_for_doctor:
            if not principal.acts_for_doctor(slot.doctor_id) or (
                doctor_id is not None and not principal.acts_for_doctor(doctor_id)
            ):
                raise HTTPException(
                    status_code=403,
                    detail="You can only book appointments for your assigned doctor",
                )

        if on_date is not None and on_date != slot.date:
            raise HTTPException(
                status_code=400, detail="Booking date does not match the appointment slot date"
            )
        booking_time = self._resolve_time(slot, time if channel.allows_time_override else None)

        try:
            doctor = self.repo.lock_doctor(self.db, slot.doctor_id)
            slot = self.slots.get_slot_for_update(self.db, slot_id)
            if not doctor or not slot:
                raise HTTPException(status_code=404, detail="Appointment slot not found")

            if slot.status != AppointmentStatus.AVAILABLE.value:
                raise HTTPException(
                    status_code=409, detail=f"Appointment slot is not available ({slot.status})"
                )
            if slot.current_bookings >= slot.max_patients or not self.slots.claim_place(
                self.db, slot.id
            ):
                raise HTTPException(status_code=409, detail="Appointment slot is fully booked")

            if patient_email and self.repo.find_confirmed_booking(
                self.db, slot.doctor_id, patient_email, slot.date
            ):
                raise HTTPException(
                    status_code=409,
                    detail="Patient already has a confirmed appointment with this doctor on this date",
                )

            token_number = generate_token_number(self.db, slot.doctor_id, slot.date)
            doctor_fee = (
                fee if channel.allows_fee_override and fee is not None else doctor.consultation_fee
            )

            booking = self.repo.add_booking(
                self.db,
                patient_name=patient.patientName,
                patient_email=patient_email,
                patient_phone=patient.patientPhone,
                patient_age=patient.patientAge,
                patient_gender=patient.patientGender,
                patient_location=patient.patientLocation,
                patient_type="Old" if patient.isOldPatient else "New",
                is_old_patient=patient.isOldPatient,
                doctor_id=slot.doctor_id,
                appointment_id=slot.id,
                date=slot.date,
                time=booking_time,
                token_number=token_number,
                status=TokenAppointmentStatus.CONFIRMED.value,
                doctor_fee=doctor_fee,
                reason_for_visit=patient.reasonForVisit,
                notes=patient.notes,
            )
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Booking for slot {slot_id} hit a unique constraint: {e}")
            raise HTTPException(
                status_code=409, detail="Token number already issued, please retry"
            ) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error booking slot {slot_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to book appointment") from e

        logger.info(
            f"🎫 Booked {token_number} in slot {slot_id} via {channel.name} "
            f"({slot.current_bookings}/{slot.max_patients}, slot {slot.status})"
        )
        return self.get_booking(booking.id)

    def _check_caller(
        self, patient: PatientDetails, channel: BookingChannel, principal: Principal
    ) -> Optional[str]:
        """Role and email checks that need no database access; returns the patient email"""
        if principal.role not in channel.allowed_roles:
            raise HTTPException(
                status_code=403, detail=f"Role {principal.role.value} cannot book via {channel.name}"
            )

        patient_email = normalize_email(patient.patientEmail)
        if channel.requires_caller_email and patient_email != normalize_email(principal.email):
            raise HTTPException(
                status_code=403, detail="You can only book appointments for your own email"
            )
        if not patient_email and not (channel.allows_anonymous and config.ALLOW_ANONYMOUS_BOOKINGS):
            raise HTTPException(status_code=400, detail="Patient email is required")
        return patient_email

    @staticmethod
    def _resolve_time(slot: Appointment, time: Optional[str]) -> str:
        if not time:
            return slot.start_time

        minutes = parse_time_to_minutes(time)
        if not (
            parse_time_to_minutes(slot.start_time) <= minutes < parse_time_to_minutes(slot.end_time)
        ):
            raise HTTPException(
                status_code=400,
                detail=f"Booking time must be within the slot window {slot.start_time}-{slot.end_time}",
            )
        return time

    # ------------------------------------------------------------------
    # Cancellation and status changes
    # ------------------------------------------------------------------

    def cancel_booking(self, booking_id: int, principal: Principal) -> TokenAppointment:
        """Cancel a booking and release its place in the slot"""
        booking = self.repo.get_booking_for_update(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Appointment not found")

        if not (
            principal.is_admin
            or self._is_owner(booking, principal)
            or (principal.role == RoleType.DOCTOR and principal.doctor_id == booking.doctor_id)
        ):
            self.db.rollback()
            raise HTTPException(status_code=403, detail="You can only cancel your own appointments")

        if booking.status == TokenAppointmentStatus.CANCELLED.value:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Appointment is already cancelled")
        if booking.status not in _ACTIVE:
            self.db.rollback()
            raise HTTPException(
                status_code=409, detail=f"Cannot cancel an appointment that is {booking.status}"
            )

        self._cancel_locked(booking)
        logger.info(f"❌ Cancelled {booking.token_number} by user {principal.user_id}")
        return self.get_booking(booking_id)

    def set_booking_status(
        self, booking_id: int, status: TokenAppointmentStatus, principal: Principal
    ) -> TokenAppointment:
        """
        Staff status edit. Only Confirmed/Pending -> Cancelled releases a place;
        a Cancelled booking is final, and Completed/No Show cannot be cancelled.
        Returning to Confirmed is refused while the patient holds another
        Confirmed booking with the same doctor that day.
        """
        booking = self.repo.get_booking_for_update(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Appointment not found")
        self._ensure_staff_for(booking.doctor_id, principal)

        old_status = booking.status
        if old_status == status.value:
            self.db.rollback()
            return self.get_booking(booking_id)

        if old_status == TokenAppointmentStatus.CANCELLED.value:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Cancelled appointments cannot be reopened")

        if status == TokenAppointmentStatus.CANCELLED:
            if old_status not in _ACTIVE:
                self.db.rollback()
                raise HTTPException(
                    status_code=409, detail=f"Cannot cancel an appointment that is {old_status}"
                )
            self._cancel_locked(booking)
        else:
            if (
                status == TokenAppointmentStatus.CONFIRMED
                and booking.patient_email
                and self.repo.find_confirmed_booking(
                    self.db, booking.doctor_id, booking.patient_email, booking.date, booking.id
                )
            ):
                self.db.rollback()
                raise HTTPException(
                    status_code=409,
                    detail="Patient already has a confirmed appointment with this doctor on this date",
                )
            booking.status = status.value
            self.db.commit()

        logger.info(f"🔄 {booking.token_number} status {old_status} -> {status.value}")
        return self.get_booking(booking_id)

    def delete_booking(self, booking_id: int, principal: Principal) -> dict:
        """Remove a booking; a booking still holding a place releases it first"""
        booking = self.repo.get_booking_for_update(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if not (
            principal.is_admin
            or (principal.role == RoleType.DOCTOR and principal.doctor_id == booking.doctor_id)
        ):
            self.db.rollback()
            raise HTTPException(status_code=403, detail="You can only delete your own appointments")

        token_number = booking.token_number
        try:
            if booking.status != TokenAppointmentStatus.CANCELLED.value:
                self.slots.release_place(self.db, booking.appointment_id)
            self.db.delete(booking)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error deleting booking {booking_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete appointment") from e

        logger.info(f"🗑️ Deleted booking {token_number}")
        return {"message": "Appointment deleted successfully", "tokenNumber": token_number}

    def _cancel_locked(self, booking: TokenAppointment) -> None:
        """Booking row is locked by the caller; release its place and commit"""
        try:
            booking.status = TokenAppointmentStatus.CANCELLED.value
            self.slots.release_place(self.db, booking.appointment_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error cancelling booking {booking.id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to cancel appointment") from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int) -> TokenAppointment:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return booking

    def get_booking_for(self, booking_id: int, principal: Principal) -> TokenAppointment:
        """A booking visible to the caller: admins, the doctor's staff, or the patient"""
        booking = self.get_booking(booking_id)
        if (
            principal.is_admin
            or principal.acts_for_doctor(booking.doctor_id)
            or self._is_owner(booking, principal)
        ):
            return booking
        raise HTTPException(status_code=403, detail="You do not have access to this appointment")

    def get_patient_booking(self, booking_id: int, principal: Principal) -> TokenAppointment:
        booking = self.get_booking(booking_id)
        if not self._is_owner(booking, principal):
            raise HTTPException(status_code=403, detail="You can only view your own appointments")
        return booking

    def get_by_token(self, token_number: str) -> TokenAppointment:
        booking = self.repo.get_by_token(self.db, token_number.strip().upper())
        if not booking:
            raise HTTPException(status_code=404, detail="Token not found")
        return booking

    def my_bookings(self, principal: Principal) -> list[TokenAppointment]:
        return self.repo.list_for_patient(self.db, normalize_email(principal.email))

    def upcoming_bookings(self, principal: Principal) -> list[TokenAppointment]:
        return self.repo.list_upcoming_for_patient(
            self.db, normalize_email(principal.email), date.today()
        )

    def booking_history(
        self, principal: Principal, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[TokenAppointment]:
        return self.repo.list_history_for_patient(
            self.db, normalize_email(principal.email), date.today(), limit
        )

    def list_bookings(
        self,
        principal: Principal,
        doctor_id: Optional[int] = None,
        clinic_id: Optional[int] = None,
        on_date: Optional[date] = None,
    ) -> list[TokenAppointment]:
        """Booking listing for staff; doctors and assistants only see their doctor's bookings"""
        doctor_id = self._scope_doctor(doctor_id, principal)
        return self.repo.list_bookings(self.db, doctor_id, clinic_id, on_date)

    def todays_bookings(self, principal: Principal) -> list[TokenAppointment]:
        return self.list_bookings(principal, on_date=date.today())

    def search_patient_bookings(self, principal: Principal, term: str) -> list[TokenAppointment]:
        """Bookings of the caller's doctor matching a name, phone or email fragment"""
        doctor_id = self._scope_doctor(None, principal)
        return self.repo.search_bookings(
            self.db, term.strip(), doctor_id, patient_fields_only=True
        )

    def available_slots(
        self,
        principal: Principal,
        doctor_id: Optional[int] = None,
        on_date: Optional[date] = None,
        clinic_id: Optional[int] = None,
    ) -> tuple[list[Appointment], dict[int, list[str]]]:
        """Bookable slots for the caller's doctor plus the confirmed times already taken"""
        doctor_id = self._scope_doctor(doctor_id, principal)
        from_date = None if on_date else date.today()
        slots = self.slots.list_available_slots(self.db, doctor_id, on_date, clinic_id, from_date)
        booked_times = self.slots.get_booked_times(self.db, [slot.id for slot in slots])
        return slots, booked_times

    # ------------------------------------------------------------------
    # Access helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_owner(booking: TokenAppointment, principal: Principal) -> bool:
        return (
            principal.role == RoleType.USER
            and booking.patient_email is not None
            and booking.patient_email == normalize_email(principal.email)
        )

    def _ensure_staff_for(self, doctor_id: int, principal: Principal) -> None:
        if principal.is_admin or principal.acts_for_doctor(doctor_id):
            return
        self.db.rollback()
        raise HTTPException(
            status_code=403, detail="You can only manage appointments for your assigned doctor"
        )

    @staticmethod
    def _scope_doctor(doctor_id: Optional[int], principal: Principal) -> Optional[int]:
        if principal.is_admin:
            return doctor_id

        own_doctor_id = (
            principal.doctor_id if principal.role == RoleType.DOCTOR else principal.assistant_doctor_id
        )
        if own_doctor_id is None:
            raise HTTPException(status_code=403, detail="No doctor profile linked to this account")
        if doctor_id is not None and doctor_id != own_doctor_id:
            raise HTTPException(
                status_code=403, detail="You can only view appointments for your assigned doctor"
            )
        return own_doctor_id
