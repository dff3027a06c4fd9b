"""Patient router - self-service booking endpoints"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ...auth import Principal, require_roles
from ...models import RoleType
from ...rate_limiter import booking_rate_limit
from .channels import SELF_SERVICE
from .events import BOOKED, CANCELLED, queue_booking_events
from .router import get_booking_service
from .schemas import BookingResponse, PatientBookingRequest
from .service import DEFAULT_HISTORY_LIMIT, BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])

patient_only = require_roles(RoleType.USER)


@router.post("/book-appointment", response_model=BookingResponse, status_code=201)
async def book_appointment(
    data: PatientBookingRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Book a place in a slot for the signed-in patient"""
    booking = service.book_slot(data.appointmentId, data, SELF_SERVICE, principal)
    response = BookingResponse.from_booking(booking)
    queue_booking_events(background_tasks, response, BOOKED)
    return response


@router.get("/my-appointments", response_model=list[BookingResponse])
async def my_appointments(
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.my_bookings(principal)]


@router.get("/upcoming-appointments", response_model=list[BookingResponse])
async def upcoming_appointments(
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.upcoming_bookings(principal)]


@router.get("/appointment-history", response_model=list[BookingResponse])
async def appointment_history(
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=100),
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.booking_history(principal, limit)]


@router.get("/appointments/{booking_id}", response_model=BookingResponse)
async def get_appointment(
    booking_id: int,
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_booking(service.get_patient_booking(booking_id, principal))


@router.delete("/appointments/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_appointment(
    booking_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(patient_only),
    service: BookingService = Depends(get_booking_service),
):
    response = BookingResponse.from_booking(service.cancel_booking(booking_id, principal))
    queue_booking_events(background_tasks, response, CANCELLED)
    return response
