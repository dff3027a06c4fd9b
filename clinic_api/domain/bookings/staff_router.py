"""Assistant and doctor booking endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ...auth import Principal, require_roles
from ...models import RoleType
from ...rate_limiter import booking_rate_limit
from ..slots.schemas import AvailableSlotResponse
from .channels import ASSISTANT, DOCTOR, BookingChannel
from .events import BOOKED, queue_booking_events
from .router import apply_status_change, get_booking_service
from .schemas import BookingResponse, BookingStatusUpdate, StaffBookingRequest
from .service import BookingService

logger = logging.getLogger(__name__)

assistant_router = APIRouter(prefix="/assistant-booking", tags=["Assistant Booking"])
doctor_router = APIRouter(prefix="/doctor-booking", tags=["Doctor Booking"])

assistant_only = require_roles(RoleType.ASSISTANT)
doctor_only = require_roles(RoleType.DOCTOR)


def _book(
    data: StaffBookingRequest,
    channel: BookingChannel,
    principal: Principal,
    service: BookingService,
    background_tasks: BackgroundTasks,
) -> BookingResponse:
    booking = service.book_slot(
        data.appointmentId,
        data,
        channel,
        principal,
        doctor_id=data.doctorId,
        on_date=data.date,
        time=data.time,
        fee=data.doctorFee,
    )
    response = BookingResponse.from_booking(booking)
    queue_booking_events(background_tasks, response, BOOKED)
    return response


def _available(
    service: BookingService,
    principal: Principal,
    doctor_id: Optional[int],
    on_date: Optional[date],
    clinic_id: Optional[int],
) -> list[AvailableSlotResponse]:
    slots, booked_times = service.available_slots(principal, doctor_id, on_date, clinic_id)
    return [AvailableSlotResponse.from_slot_with_times(slot, booked_times) for slot in slots]


# ----------------------------------------------------------------------
# Assistant
# ----------------------------------------------------------------------


@assistant_router.post("/book-patient", response_model=BookingResponse, status_code=201)
async def assistant_book_patient(
    data: StaffBookingRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Book a patient into a slot of the assistant's doctor"""
    return _book(data, ASSISTANT, principal, service, background_tasks)


@assistant_router.get("/available-slots", response_model=list[AvailableSlotResponse])
async def assistant_available_slots(
    doctorId: Optional[int] = Query(None),
    date: Optional[date] = Query(None),
    clinicId: Optional[int] = Query(None),
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
):
    return _available(service, principal, doctorId, date, clinicId)


@assistant_router.get("/doctor-bookings", response_model=list[BookingResponse])
async def assistant_doctor_bookings(
    doctorId: Optional[int] = Query(None),
    date: Optional[date] = Query(None),
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(principal, doctor_id=doctorId, on_date=date)
    return [BookingResponse.from_booking(b) for b in bookings]


@assistant_router.get("/todays-bookings", response_model=list[BookingResponse])
async def assistant_todays_bookings(
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.todays_bookings(principal)]


@assistant_router.get("/search-patients", response_model=list[BookingResponse])
async def assistant_search_patients(
    search: str = Query(..., min_length=1, max_length=100),
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
):
    """Find the doctor's bookings by patient name, phone or email, newest first"""
    bookings = service.search_patient_bookings(principal, search)
    return [BookingResponse.from_booking(b) for b in bookings]


@assistant_router.patch("/booking/{booking_id}/status", response_model=BookingResponse)
async def assistant_update_status(
    booking_id: int,
    data: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(assistant_only),
    service: BookingService = Depends(get_booking_service),
):
    return apply_status_change(service, background_tasks, booking_id, data.status, principal)


# ----------------------------------------------------------------------
# Doctor
# ----------------------------------------------------------------------


@doctor_router.post("/book-patient", response_model=BookingResponse, status_code=201)
async def doctor_book_patient(
    data: StaffBookingRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(doctor_only),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    return _book(data, DOCTOR, principal, service, background_tasks)


@doctor_router.get("/available-slots", response_model=list[AvailableSlotResponse])
async def doctor_available_slots(
    date: Optional[date] = Query(None),
    clinicId: Optional[int] = Query(None),
    principal: Principal = Depends(doctor_only),
    service: BookingService = Depends(get_booking_service),
):
    return _available(service, principal, None, date, clinicId)
