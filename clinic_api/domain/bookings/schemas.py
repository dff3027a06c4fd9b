"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import TokenAppointment, TokenAppointmentStatus
from ...shared.validators import normalize_time, validate_email, validate_phone
from ...utils.sanitization import sanitize_string


class PatientDetails(BaseModel):
    """Patient identity captured with every booking"""

    patientName: str = Field(..., min_length=1, max_length=255)
    patientEmail: Optional[str] = None
    patientPhone: str = Field(..., min_length=1, max_length=50)
    patientAge: int = Field(..., ge=0, le=150)
    patientGender: str = Field(..., min_length=1, max_length=20)
    patientLocation: Optional[str] = Field(None, max_length=255)
    isOldPatient: bool = False
    reasonForVisit: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("patientName", "patientGender", "patientLocation", "reasonForVisit", "notes")
    @classmethod
    def clean_text(cls, value: Optional[str]) -> Optional[str]:
        return sanitize_string(value)

    @field_validator("patientEmail")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        return validate_email(value)

    @field_validator("patientPhone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)


class PatientBookingRequest(PatientDetails):
    """Self-service booking by a patient"""

    appointmentId: int = Field(..., ge=1)
    patientEmail: str

    @field_validator("patientEmail")
    @classmethod
    def check_email(cls, value: str) -> str:
        email = validate_email(value)
        if not email:
            raise ValueError("Patient email is required")
        return email


class StaffBookingRequest(PatientDetails):
    """Booking made by an assistant or a doctor on a patient's behalf"""

    doctorId: int = Field(..., ge=1)
    appointmentId: int = Field(..., ge=1)
    date: Optional[dt.date] = None  # defaults to the slot date
    time: Optional[str] = None  # defaults to the slot start
    doctorFee: Optional[float] = Field(None, ge=0)

    @field_validator("time")
    @classmethod
    def check_time(cls, value: Optional[str]) -> Optional[str]:
        return normalize_time(value) if value else None


class BookingStatusUpdate(BaseModel):
    status: TokenAppointmentStatus


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    tokenNumber: str
    status: str
    patientName: str
    patientEmail: Optional[str] = None
    patientPhone: str
    patientAge: int
    patientGender: str
    patientLocation: Optional[str] = None
    patientType: str
    isOldPatient: bool
    doctorId: int
    doctorName: Optional[str] = None
    appointmentId: int
    clinicId: Optional[int] = None
    clinicName: Optional[str] = None
    date: dt.date
    time: str
    doctorFee: Optional[float] = None
    reasonForVisit: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[dt.datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_booking(cls, booking: TokenAppointment) -> "BookingResponse":
        slot = booking.appointment
        clinic = slot.clinic if slot else None
        return cls(
            id=booking.id,
            tokenNumber=booking.token_number,
            status=booking.status,
            patientName=booking.patient_name,
            patientEmail=booking.patient_email,
            patientPhone=booking.patient_phone,
            patientAge=booking.patient_age,
            patientGender=booking.patient_gender,
            patientLocation=booking.patient_location,
            patientType=booking.patient_type,
            isOldPatient=booking.is_old_patient,
            doctorId=booking.doctor_id,
            doctorName=booking.doctor.name if booking.doctor else None,
            appointmentId=booking.appointment_id,
            clinicId=clinic.id if clinic else None,
            clinicName=clinic.location_name if clinic else None,
            date=booking.date,
            time=booking.time,
            doctorFee=booking.doctor_fee,
            reasonForVisit=booking.reason_for_visit,
            notes=booking.notes,
            createdAt=booking.created_at,
        )


class PublicTokenResponse(BaseModel):
    """Token lookup for the public waiting-room display; no contact details"""

    tokenNumber: str
    status: str
    doctorName: Optional[str] = None
    clinicName: Optional[str] = None
    date: dt.date
    time: str

    @classmethod
    def from_booking(cls, booking: TokenAppointment) -> "PublicTokenResponse":
        slot = booking.appointment
        return cls(
            tokenNumber=booking.token_number,
            status=booking.status,
            doctorName=booking.doctor.name if booking.doctor else None,
            clinicName=slot.clinic.location_name if slot and slot.clinic else None,
            date=booking.date,
            time=booking.time,
        )
