"""Dashboard routers - doctor schedule and lists, plus the clinic-wide dashboard"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, require_roles
from ...database import get_db
from ...models import RoleType
from ..slots.schemas import SlotResponse
from .schemas import (
    DashboardStats,
    DatedAppointmentInfo,
    DoctorDayStats,
    GlobalAppointmentInfo,
    GlobalStats,
    ScheduleCreate,
    TodayAppointmentInfo,
)
from .service import DEFAULT_UPCOMING_LIMIT, GlobalDashboardService, ScheduleService

router = APIRouter(prefix="/doctors/dashboard", tags=["Doctor Dashboard"])
global_router = APIRouter(prefix="/global-dashboard", tags=["Global Dashboard"])

admin_or_doctor = require_roles(RoleType.ADMIN, RoleType.DOCTOR)


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_global_dashboard_service(db: Session = Depends(get_db)) -> GlobalDashboardService:
    return GlobalDashboardService(db)


@router.post("/create-schedule", response_model=list[SlotResponse], status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    principal: Principal = Depends(require_roles(RoleType.DOCTOR)),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Split a working window into slots; existing or overlapping times are skipped"""
    return [SlotResponse.from_slot(slot) for slot in service.create_schedule(data, principal)]


@router.get("/today-appointments", response_model=list[TodayAppointmentInfo])
async def today_appointments(
    principal: Principal = Depends(require_roles(RoleType.DOCTOR, RoleType.ASSISTANT)),
    service: ScheduleService = Depends(get_schedule_service),
):
    return [TodayAppointmentInfo.from_booking(b) for b in service.today_appointments(principal)]


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    principal: Principal = Depends(require_roles(RoleType.DOCTOR, RoleType.ASSISTANT)),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.stats(principal)


@router.get("/upcoming-appointments", response_model=list[DatedAppointmentInfo])
async def upcoming_appointments(
    limit: int = Query(DEFAULT_UPCOMING_LIMIT, ge=1, le=100),
    principal: Principal = Depends(require_roles(RoleType.DOCTOR, RoleType.ASSISTANT)),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Confirmed bookings over the coming week, soonest first"""
    bookings = service.upcoming_appointments(principal, limit)
    return [DatedAppointmentInfo.from_booking(b) for b in bookings]


@router.get("/monthly-appointments", response_model=list[DatedAppointmentInfo])
async def monthly_appointments(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    principal: Principal = Depends(require_roles(RoleType.DOCTOR)),
    service: ScheduleService = Depends(get_schedule_service),
):
    bookings = service.monthly_appointments(principal, month, year)
    return [DatedAppointmentInfo.from_booking(b) for b in bookings]


@global_router.get("/stats", response_model=GlobalStats)
async def global_stats(
    _: Principal = Depends(admin_or_doctor),
    service: GlobalDashboardService = Depends(get_global_dashboard_service),
):
    """Today's counts across every doctor; revenue counts Completed bookings only"""
    return service.stats()


@global_router.get("/today-appointments", response_model=list[GlobalAppointmentInfo])
async def global_today_appointments(
    _: Principal = Depends(admin_or_doctor),
    service: GlobalDashboardService = Depends(get_global_dashboard_service),
):
    return [GlobalAppointmentInfo.from_booking(b) for b in service.today_appointments()]


@global_router.get("/appointments-by-date-range", response_model=list[GlobalAppointmentInfo])
async def global_appointments_by_range(
    startDate: date = Query(...),
    endDate: date = Query(...),
    _: Principal = Depends(admin_or_doctor),
    service: GlobalDashboardService = Depends(get_global_dashboard_service),
):
    bookings = service.appointments_between(startDate, endDate)
    return [GlobalAppointmentInfo.from_booking(b) for b in bookings]


@global_router.get("/doctor-wise-stats", response_model=list[DoctorDayStats])
async def global_doctor_stats(
    date: Optional[date] = Query(None),
    _: Principal = Depends(admin_or_doctor),
    service: GlobalDashboardService = Depends(get_global_dashboard_service),
):
    return service.doctor_stats(date)


@global_router.get("/search-appointments", response_model=list[GlobalAppointmentInfo])
async def global_search_appointments(
    search: str = Query(..., min_length=1, max_length=100),
    date: Optional[date] = Query(None),
    principal: Principal = Depends(
        require_roles(RoleType.ADMIN, RoleType.DOCTOR, RoleType.ASSISTANT)
    ),
    service: GlobalDashboardService = Depends(get_global_dashboard_service),
):
    """Match patient name, phone, email, token number or doctor name"""
    bookings = service.search(principal, search, date)
    return [GlobalAppointmentInfo.from_booking(b) for b in bookings]
