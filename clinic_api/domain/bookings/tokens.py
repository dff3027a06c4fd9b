"""
Token numbers - human readable booking identifiers.

Format: TKN{doctorId}{YYYYMMDD}{seq:03d}, e.g. TKN720250314003 is the third
booking for doctor 7 on 2025-03-14.
"""

from datetime import date

from sqlalchemy.orm import Session

from ...models import TokenAppointment

TOKEN_PREFIX = "TKN"
SEQUENCE_WIDTH = 3


def token_prefix(doctor_id: int, on_date: date) -> str:
    return f"{TOKEN_PREFIX}{doctor_id}{on_date.strftime('%Y%m%d')}"


def format_token_number(doctor_id: int, on_date: date, sequence: int) -> str:
    return f"{token_prefix(doctor_id, on_date)}{sequence:0{SEQUENCE_WIDTH}d}"


def generate_token_number(db: Session, doctor_id: int, on_date: date) -> str:
    """
    Next token number for a doctor and date.

    Must be called inside the booking transaction after the doctor row is
    locked, so two bookings for the same doctor never read the same state.
    The sequence continues after the highest existing one, which equals
    count + 1 while no booking has been deleted for that day.
    """
    prefix = token_prefix(doctor_id, on_date)
    existing = (
        db.query(TokenAppointment.token_number)
        .filter(TokenAppointment.doctor_id == doctor_id, TokenAppointment.date == on_date)
        .all()
    )

    highest = 0
    for (token_number,) in existing:
        suffix = token_number[len(prefix):] if token_number.startswith(prefix) else ""
        if suffix.isdigit():
            highest = max(highest, int(suffix))

    return format_token_number(doctor_id, on_date, max(highest, len(existing)) + 1)
