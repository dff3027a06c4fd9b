"""Booking channels - who may book a slot and which checks apply"""

from dataclasses import dataclass

from ...models import RoleType


@dataclass(frozen=True)
class BookingChannel:
    name: str
    allowed_roles: frozenset
    requires_caller_email: bool = False  # patient email must be the caller's own
    acts_for_doctor: bool = False  # caller must be the slot's doctor or their assistant
    allows_anonymous: bool = False  # patient email may be omitted
    allows_fee_override: bool = False
    allows_time_override: bool = False  # booking time may differ from the slot start


SELF_SERVICE = BookingChannel(
    name="self-service",
    allowed_roles=frozenset({RoleType.USER}),
    requires_caller_email=True,
)

ASSISTANT = BookingChannel(
    name="assistant",
    allowed_roles=frozenset({RoleType.ASSISTANT}),
    acts_for_doctor=True,
    allows_anonymous=True,
    allows_fee_override=True,
    allows_time_override=True,
)

DOCTOR = BookingChannel(
    name="doctor",
    allowed_roles=frozenset({RoleType.DOCTOR}),
    acts_for_doctor=True,
    allows_anonymous=True,
    allows_fee_override=True,
    allows_time_override=True,
)
