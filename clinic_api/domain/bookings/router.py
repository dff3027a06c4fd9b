"""Booking router - staff-facing endpoints for token appointments"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal, require_roles
from ...database import get_db
from ...models import RoleType, TokenAppointmentStatus
from .events import CANCELLED, DELETED, STATUS_CHANGED, queue_booking_events
from .schemas import BookingResponse, BookingStatusUpdate, PublicTokenResponse
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/token-appointments", tags=["Token Appointments"])

STAFF_ROLES = (RoleType.ADMIN, RoleType.DOCTOR, RoleType.ASSISTANT)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def apply_status_change(
    service: BookingService,
    background_tasks: BackgroundTasks,
    booking_id: int,
    status: TokenAppointmentStatus,
    principal: Principal,
) -> BookingResponse:
    """Shared by the staff status endpoints"""
    response = BookingResponse.from_booking(
        service.set_booking_status(booking_id, status, principal)
    )
    action = CANCELLED if status == TokenAppointmentStatus.CANCELLED else STATUS_CHANGED
    queue_booking_events(background_tasks, response, action)
    return response


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    doctorId: Optional[int] = Query(None),
    clinicId: Optional[int] = Query(None),
    date: Optional[date] = Query(None),
    principal: Principal = Depends(require_roles(*STAFF_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(principal, doctorId, clinicId, date)
    return [BookingResponse.from_booking(b) for b in bookings]


@router.get("/token/{token_number}", response_model=PublicTokenResponse)
async def get_by_token(
    token_number: str,
    service: BookingService = Depends(get_booking_service),
):
    """Public token lookup for waiting-room displays"""
    return PublicTokenResponse.from_booking(service.get_by_token(token_number))


@router.get("/doctor/{doctor_id}", response_model=list[BookingResponse])
async def list_doctor_bookings(
    doctor_id: int,
    principal: Principal = Depends(require_roles(*STAFF_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings of one doctor; doctors and assistants only reach their own"""
    return [BookingResponse.from_booking(b) for b in service.list_bookings(principal, doctor_id)]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_booking(service.get_booking_for(booking_id, principal))


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_roles(*STAFF_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    return apply_status_change(service, background_tasks, booking_id, data.status, principal)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_roles(RoleType.ADMIN, RoleType.DOCTOR)),
    service: BookingService = Depends(get_booking_service),
):
    snapshot = BookingResponse.from_booking(service.get_booking(booking_id))
    result = service.delete_booking(booking_id, principal)
    queue_booking_events(background_tasks, snapshot, DELETED)
    return result
