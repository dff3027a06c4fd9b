"""
Live patient board - WebSocket fan-out of token updates.

Each process keeps its own registry of connected sockets and the rooms they
joined. Every socket starts in "public" and "live"; a client may also join
"clinic:{id}" and "doctor:{id}". Messages are JSON objects with an "event"
key: clients send "join" and "control", the server sends "joined",
"control", "token_updated" and "error".
"""

import logging
from typing import Any, Iterable, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = ("public", "live")


def clinic_room(clinic_id: Any) -> str:
    return f"clinic:{clinic_id}"


def doctor_room(doctor_id: Any) -> str:
    return f"doctor:{doctor_id}"


class LiveBoardManager:
    """Registry of connected live-board sockets and their rooms"""

    def __init__(self):
        self.connections: dict[WebSocket, set[str]] = {}

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections[websocket] = set(DEFAULT_ROOMS)
        logger.info(f"🔌 Live board client connected ({self.connection_count} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        if self.connections.pop(websocket, None) is not None:
            logger.info(f"🔌 Live board client disconnected ({self.connection_count} open)")

    def join(self, websocket: WebSocket, clinic_id=None, doctor_id=None) -> set[str]:
        rooms = self.connections.setdefault(websocket, set(DEFAULT_ROOMS))
        if clinic_id is not None:
            rooms.add(clinic_room(clinic_id))
        if doctor_id is not None:
            rooms.add(doctor_room(doctor_id))
        return rooms

    async def handle_message(self, websocket: WebSocket, message: Any) -> None:
        """Dispatch one client message"""
        if not isinstance(message, dict):
            await websocket.send_json({"event": "error", "message": "Expected a JSON object"})
            return

        event = message.get("event")
        data = message.get("data") or {}
        if not isinstance(data, dict):
            await websocket.send_json(
                {"event": "error", "message": "Expected data to be a JSON object"}
            )
            return

        if event == "join":
            rooms = self.join(websocket, data.get("clinicId"), data.get("doctorId"))
            await websocket.send_json({"event": "joined", "ok": True, "rooms": sorted(rooms)})
        elif event == "control":
            # Display controls (next token, pause, ...) relayed to the same boards
            await self.broadcast(
                "control", data, self._target_rooms(data.get("clinicId"), data.get("doctorId"))
            )
        else:
            await websocket.send_json({"event": "error", "message": f"Unknown event: {event}"})

    async def broadcast(self, event: str, data: Any, rooms: Iterable[str]) -> int:
        """Send once to every socket in any of the rooms; dead sockets are dropped"""
        targets = set(rooms)
        sent = 0
        dead: list[WebSocket] = []

        for websocket, joined in list(self.connections.items()):
            if not joined & targets:
                continue
            try:
                await websocket.send_json({"event": event, "data": data})
                sent += 1
            except Exception as e:
                logger.warning(f"⚠️ Dropping live board socket after send failure: {e}")
                dead.append(websocket)

        for websocket in dead:
            self.disconnect(websocket)
        return sent

    async def broadcast_token_update(self, booking: dict, action: str) -> int:
        """Push a booking change to its clinic and doctor boards and the live room"""
        try:
            payload = {**booking, "action": action}
            return await self.broadcast(
                "token_updated",
                payload,
                self._target_rooms(booking.get("clinicId"), booking.get("doctorId")),
            )
        except Exception as e:
            logger.error(f"❌ Live board broadcast failed for {booking.get('tokenNumber')}: {e}")
            return 0

    @staticmethod
    def _target_rooms(clinic_id: Optional[Any], doctor_id: Optional[Any]) -> list[str]:
        rooms = ["live"]
        if clinic_id is not None:
            rooms.append(clinic_room(clinic_id))
        if doctor_id is not None:
            rooms.append(doctor_room(doctor_id))
        return rooms


live_board = LiveBoardManager()
