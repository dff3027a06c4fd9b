"""Slot router - FastAPI endpoints for appointment slots"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal, require_roles
from ...database import get_db
from ...models import RoleType
from .schemas import SlotCreate, SlotResponse, SlotStatusUpdate
from .service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointment Slots"])


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db)


@router.post("", response_model=SlotResponse, status_code=201)
async def create_slot(
    data: SlotCreate,
    principal: Principal = Depends(require_roles(RoleType.ADMIN, RoleType.DOCTOR)),
    service: SlotService = Depends(get_slot_service),
):
    """Create an appointment slot; 409 when it overlaps the doctor's existing slots"""
    slot = service.create_slot(data, principal)
    return SlotResponse.from_slot(service.get_slot(slot.id))


@router.get("", response_model=list[SlotResponse])
async def list_slots(
    doctorId: Optional[int] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    _: Principal = Depends(get_current_principal),
    service: SlotService = Depends(get_slot_service),
):
    slots = service.list_slots(doctorId, startDate, endDate)
    return [SlotResponse.from_slot(slot) for slot in slots]


@router.get("/available", response_model=list[SlotResponse])
async def list_available_slots(
    doctorId: Optional[int] = Query(None),
    date: Optional[date] = Query(None),
    clinicId: Optional[int] = Query(None),
    _: Principal = Depends(get_current_principal),
    service: SlotService = Depends(get_slot_service),
):
    """Slots that still accept bookings"""
    slots = service.list_available(doctorId, date, clinicId)
    return [SlotResponse.from_slot(slot) for slot in slots]


@router.get("/{slot_id}", response_model=SlotResponse)
async def get_slot(
    slot_id: int,
    _: Principal = Depends(get_current_principal),
    service: SlotService = Depends(get_slot_service),
):
    return SlotResponse.from_slot(service.get_slot(slot_id))


@router.patch("/{slot_id}/status", response_model=SlotResponse)
async def update_slot_status(
    slot_id: int,
    data: SlotStatusUpdate,
    principal: Principal = Depends(require_roles(RoleType.ADMIN, RoleType.DOCTOR)),
    service: SlotService = Depends(get_slot_service),
):
    return SlotResponse.from_slot(service.update_status(slot_id, data.status, principal))


@router.delete("/{slot_id}")
async def delete_slot(
    slot_id: int,
    principal: Principal = Depends(require_roles(RoleType.ADMIN, RoleType.DOCTOR)),
    service: SlotService = Depends(get_slot_service),
):
    """Delete a slot; only allowed while it has no bookings"""
    return service.delete_slot(slot_id, principal)
