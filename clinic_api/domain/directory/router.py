"""Public directory of clinics and doctors, plus open slot discovery"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Clinic, Doctor
from ..slots.router import get_slot_service
from ..slots.schemas import SlotResponse
from ..slots.service import SlotService
from .schemas import ClinicResponse, DoctorResponse, DoctorWithSlotsResponse, OpenSlot

clinics_router = APIRouter(prefix="/clinics", tags=["Clinics"])
doctors_router = APIRouter(prefix="/doctors", tags=["Doctors"])
public_router = APIRouter(prefix="/public", tags=["Public"])


@clinics_router.get("", response_model=list[ClinicResponse])
async def list_clinics(
    city: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(Clinic)
    if city:
        query = query.filter(Clinic.city.ilike(city))
    return [ClinicResponse.from_clinic(c) for c in query.order_by(Clinic.location_name).all()]


@clinics_router.get("/{clinic_id}", response_model=ClinicResponse)
async def get_clinic(clinic_id: int, db: Session = Depends(get_db)):
    clinic = db.query(Clinic).filter(Clinic.id == clinic_id).first()
    if not clinic:
        raise HTTPException(status_code=404, detail="Clinic not found")
    return ClinicResponse.from_clinic(clinic)


@doctors_router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    specialization: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(Doctor)
    if specialization:
        query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))
    return [DoctorResponse.from_doctor(d) for d in query.order_by(Doctor.name).all()]


@doctors_router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return DoctorResponse.from_doctor(doctor)


@public_router.get("/available-appointments", response_model=list[SlotResponse])
async def public_available_appointments(
    doctorId: Optional[int] = Query(None),
    date: Optional[date] = Query(None),
    clinicId: Optional[int] = Query(None),
    service: SlotService = Depends(get_slot_service),
):
    """Open slots without signing in; today and later unless a date is given"""
    slots = service.list_available(doctorId, date, clinicId)
    return [SlotResponse.from_slot(slot) for slot in slots]


@public_router.get("/doctors-with-slots", response_model=list[DoctorWithSlotsResponse])
async def doctors_with_slots(
    date: Optional[date] = Query(None),
    service: SlotService = Depends(get_slot_service),
):
    """Doctors that still have open slots, each with those slots"""
    grouped: dict[int, DoctorWithSlotsResponse] = {}
    for slot in service.list_available(on_date=date):
        if not slot.doctor:
            continue
        entry = grouped.get(slot.doctor_id)
        if entry is None:
            entry = DoctorWithSlotsResponse(**DoctorResponse.from_doctor(slot.doctor).model_dump())
            grouped[slot.doctor_id] = entry
        entry.availableSlots.append(OpenSlot.from_slot(slot))
    return list(grouped.values())
