"""Slot domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Appointment, AppointmentStatus
from ...shared.validators import normalize_time


class SlotCreate(BaseModel):
    """Schema for creating a single appointment slot"""

    doctorId: int = Field(..., ge=1)
    clinicId: int = Field(..., ge=1)
    date: date
    startTime: str
    endTime: str
    duration: Optional[int] = Field(None, ge=1)  # minutes, defaults to the window length
    maxPatients: int = Field(1, ge=1)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)


class SlotStatusUpdate(BaseModel):
    status: AppointmentStatus


class SlotResponse(BaseModel):
    """Schema for slot response"""

    id: int
    doctorId: int
    doctorName: Optional[str] = None
    clinicId: int
    clinicName: Optional[str] = None
    date: date
    startTime: str
    endTime: str
    duration: int
    status: str
    maxPatients: int
    currentBookings: int
    availableSpots: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_slot(cls, slot: Appointment) -> "SlotResponse":
        return cls(
            id=slot.id,
            doctorId=slot.doctor_id,
            doctorName=slot.doctor.name if slot.doctor else None,
            clinicId=slot.clinic_id,
            clinicName=slot.clinic.location_name if slot.clinic else None,
            date=slot.date,
            startTime=slot.start_time,
            endTime=slot.end_time,
            duration=slot.duration,
            status=slot.status,
            maxPatients=slot.max_patients,
            currentBookings=slot.current_bookings,
            availableSpots=max(0, slot.max_patients - slot.current_bookings),
            createdAt=slot.created_at,
        )


class AvailableSlotResponse(SlotResponse):
    """Slot plus the times already taken by confirmed bookings"""

    bookedTimes: list[str] = []

    @classmethod
    def from_slot_with_times(
        cls, slot: Appointment, booked_times: dict[int, list[str]]
    ) -> "AvailableSlotResponse":
        base = SlotResponse.from_slot(slot).model_dump()
        return cls(**base, bookedTimes=booked_times.get(slot.id, []))
