"""Split a working window into back-to-back slots"""

from ...shared.validators import format_minutes


def generate_time_slots(start: int, end: int, duration: int) -> list[tuple[str, str]]:
    """
    Slots of `duration` minutes from start, left to right, inside [start, end).
    A trailing remainder shorter than `duration` is dropped.

    >>> generate_time_slots(540, 600, 30)
    [('09:00', '09:30'), ('09:30', '10:00')]
    """
    if duration <= 0:
        raise ValueError("Slot duration must be positive")

    slots = []
    current = start
    while current + duration <= end:
        slots.append((format_minutes(current), format_minutes(current + duration)))
        current += duration
    return slots
