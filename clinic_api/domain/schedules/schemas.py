"""Schedule domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import TokenAppointment
from ...shared.validators import normalize_time


class ScheduleCreate(BaseModel):
    """Batch slot creation for the signed-in doctor"""

    clinicId: int = Field(..., ge=1)
    date: date
    startTime: str
    endTime: str
    slotDuration: int = Field(..., ge=15)  # minutes
    patientPerSlot: int = Field(..., ge=1)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)


class TodayAppointmentInfo(BaseModel):
    id: int
    patientName: str
    patientPhone: str
    time: str
    status: str
    tokenNumber: str
    isOldPatient: bool
    doctorFee: Optional[float] = None

    @classmethod
    def from_booking(cls, booking: TokenAppointment) -> "TodayAppointmentInfo":
        return cls(
            id=booking.id,
            patientName=booking.patient_name,
            patientPhone=booking.patient_phone,
            time=booking.time,
            status=booking.status,
            tokenNumber=booking.token_number,
            isOldPatient=booking.is_old_patient,
            doctorFee=booking.doctor_fee,
        )


class DashboardStats(BaseModel):
    totalAppointments: int
    todayAppointments: int
    totalPatients: int
    todayPatients: int
    pendingAppointments: int
    completedAppointments: int
    assistantsCount: int


class DatedAppointmentInfo(TodayAppointmentInfo):
    date: date

    @classmethod
    def from_booking(cls, booking: TokenAppointment) -> "DatedAppointmentInfo":
        base = TodayAppointmentInfo.from_booking(booking).model_dump()
        return cls(**base, date=booking.date)


class GlobalStats(BaseModel):
    totalDoctors: int
    totalAppointmentsToday: int
    totalPatientsToday: int
    confirmedAppointments: int
    pendingAppointments: int
    completedAppointments: int
    cancelledAppointments: int
    totalRevenue: float


class DoctorDayStats(BaseModel):
    doctorId: int
    doctorName: str
    specialization: str
    totalAppointments: int
    confirmedAppointments: int
    completedAppointments: int
    cancelledAppointments: int
    totalRevenue: float


class GlobalAppointmentInfo(DatedAppointmentInfo):
    """A booking with its doctor and clinic, for clinic-wide listings"""

    patientAge: int
    patientGender: str
    patientLocation: str = ""
    doctorName: Optional[str] = None
    doctorSpecialization: Optional[str] = None
    clinicName: str = ""
    clinicAddress: str = ""
    reasonForVisit: str = ""
    notes: str = ""

    @classmethod
    def from_booking(cls, booking: TokenAppointment) -> "GlobalAppointmentInfo":
        base = DatedAppointmentInfo.from_booking(booking).model_dump()
        clinic = booking.appointment.clinic if booking.appointment else None
        return cls(
            **base,
            patientAge=booking.patient_age,
            patientGender=booking.patient_gender,
            patientLocation=booking.patient_location or "",
            doctorName=booking.doctor.name if booking.doctor else None,
            doctorSpecialization=booking.doctor.specialization if booking.doctor else None,
            clinicName=clinic.location_name if clinic else "",
            clinicAddress=clinic.address if clinic else "",
            reasonForVisit=booking.reason_for_visit or "",
            notes=booking.notes or "",
        )
