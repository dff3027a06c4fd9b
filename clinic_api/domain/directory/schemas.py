"""Directory schemas - public clinic and doctor listings"""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from ...models import Appointment, Clinic, Doctor


class ClinicResponse(BaseModel):
    id: int
    locationName: str
    address: str
    city: str
    state: str
    postalCode: str
    phone: str
    email: Optional[str] = None

    @classmethod
    def from_clinic(cls, clinic: Clinic) -> "ClinicResponse":
        return cls(
            id=clinic.id,
            locationName=clinic.location_name,
            address=clinic.address,
            city=clinic.city,
            state=clinic.state,
            postalCode=clinic.postal_code,
            phone=clinic.phone,
            email=clinic.email,
        )


class DoctorResponse(BaseModel):
    id: int
    name: str
    specialization: str
    qualification: Optional[str] = None
    experience: Optional[int] = None
    bio: Optional[str] = None
    consultationFee: float

    @classmethod
    def from_doctor(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            name=doctor.name,
            specialization=doctor.specialization,
            qualification=doctor.qualification,
            experience=doctor.experience,
            bio=doctor.bio,
            consultationFee=doctor.consultation_fee,
        )


class OpenSlot(BaseModel):
    id: int
    date: date
    startTime: str
    endTime: str
    availableSpots: int
    clinicId: int
    clinicName: Optional[str] = None

    @classmethod
    def from_slot(cls, slot: Appointment) -> "OpenSlot":
        return cls(
            id=slot.id,
            date=slot.date,
            startTime=slot.start_time,
            endTime=slot.end_time,
            availableSpots=max(0, slot.max_patients - slot.current_bookings),
            clinicId=slot.clinic_id,
            clinicName=slot.clinic.location_name if slot.clinic else None,
        )


class DoctorWithSlotsResponse(DoctorResponse):
    """A doctor and their open slots, in slot order"""

    availableSlots: list[OpenSlot] = []
