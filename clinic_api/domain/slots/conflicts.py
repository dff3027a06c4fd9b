"""
Slot conflict checks.

Times are compared as integer minutes since midnight. Two windows [s1, e1)
and [s2, e2) overlap iff s1 < e2 and s2 < e1, so back-to-back slots
(10:00-11:00 after 09:00-10:00) do not clash.
"""

from datetime import date
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Appointment
from ...shared.validators import parse_time_to_minutes
from .repository import SlotRepository


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def parse_window(start_time: str, end_time: str) -> tuple[int, int]:
    """Parse a slot window, rejecting malformed times and start >= end with a 400"""
    try:
        start = parse_time_to_minutes(start_time)
        end = parse_time_to_minutes(end_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if start >= end:
        raise HTTPException(status_code=400, detail="Start time must be before end time")
    return start, end


def find_conflict(
    existing: Iterable[Appointment], start: int, end: int
) -> Optional[Appointment]:
    for slot in existing:
        if intervals_overlap(
            start, end, parse_time_to_minutes(slot.start_time), parse_time_to_minutes(slot.end_time)
        ):
            return slot
    return None


def ensure_no_conflict(
    db: Session, doctor_id: int, on_date: date, start_time: str, end_time: str
) -> tuple[int, int]:
    """
    Validate a new slot window for a doctor and date.

    Returns:
        (start, end) in minutes since midnight

    Raises:
        HTTPException 400 for a malformed or empty window, 409 naming the
        clashing slot when the window overlaps an existing one
    """
    start, end = parse_window(start_time, end_time)
    existing = SlotRepository.get_slots_for_doctor_on_date(db, doctor_id, on_date)
    clash = find_conflict(existing, start, end)
    if clash:
        raise HTTPException(
            status_code=409,
            detail=(
                f"Doctor has conflicting appointment at this time: slot {clash.id} "
                f"({clash.start_time}-{clash.end_time})"
            ),
        )
    return start, end
