"""After-commit booking side effects: patient notices and live board updates"""

from fastapi import BackgroundTasks

from ...services.live_board import live_board
from ...services.notification_service import (
    send_booking_cancellation_notification,
    send_booking_confirmation_notification,
)
from .schemas import BookingResponse

BOOKED = "booked"
CANCELLED = "cancelled"
STATUS_CHANGED = "status_changed"
DELETED = "deleted"


def queue_booking_events(
    background_tasks: BackgroundTasks, response: BookingResponse, action: str
) -> None:
    """Schedule notices and the board broadcast to run after the response is sent"""
    payload = response.model_dump(mode="json")

    if action == BOOKED:
        background_tasks.add_task(send_booking_confirmation_notification, payload)
    elif action == CANCELLED:
        background_tasks.add_task(send_booking_cancellation_notification, payload)

    background_tasks.add_task(live_board.broadcast_token_update, payload, action)
