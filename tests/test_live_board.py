"""Tests for the live patient board"""

import asyncio

from clinic_api.services.live_board import LiveBoardManager


class FakeSocket:
    def __init__(self, fail=False):
        self.accepted = False
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def _connected(manager, *sockets):
    for socket in sockets:
        asyncio.run(manager.connect(socket))


class TestLiveBoardManager:
    def test_connect_joins_default_rooms(self):
        manager = LiveBoardManager()
        socket = FakeSocket()

        _connected(manager, socket)

        assert socket.accepted
        assert manager.connections[socket] == {"public", "live"}
        assert manager.connection_count == 1

    def test_join_replies_with_rooms(self):
        manager = LiveBoardManager()
        socket = FakeSocket()
        _connected(manager, socket)

        asyncio.run(manager.handle_message(socket, {"event": "join", "data": {"clinicId": 3}}))

        assert socket.sent == [
            {"event": "joined", "ok": True, "rooms": ["clinic:3", "live", "public"]}
        ]

    def test_unknown_event_and_non_object(self):
        manager = LiveBoardManager()
        socket = FakeSocket()
        _connected(manager, socket)

        asyncio.run(manager.handle_message(socket, {"event": "dance"}))
        asyncio.run(manager.handle_message(socket, ["join"]))

        assert [m["event"] for m in socket.sent] == ["error", "error"]

    def test_token_update_reaches_matching_rooms_once(self):
        manager = LiveBoardManager()
        clinic_board, doctor_board, other_board = FakeSocket(), FakeSocket(), FakeSocket()
        _connected(manager, clinic_board, doctor_board, other_board)
        manager.join(clinic_board, clinic_id=1, doctor_id=2)
        manager.join(other_board, clinic_id=9)
        # Every socket is also in "live", so each gets exactly one copy
        sent = asyncio.run(
            manager.broadcast_token_update(
                {"tokenNumber": "TKN2", "clinicId": 1, "doctorId": 2}, "booked"
            )
        )

        assert sent == 3
        assert len(clinic_board.sent) == 1
        message = clinic_board.sent[0]
        assert message["event"] == "token_updated"
        assert message["data"]["action"] == "booked"

    def test_room_scoped_broadcast(self):
        manager = LiveBoardManager()
        clinic_board, other_board = FakeSocket(), FakeSocket()
        _connected(manager, clinic_board, other_board)
        manager.join(clinic_board, clinic_id=1)

        assert asyncio.run(manager.broadcast("control", {"next": 4}, ["clinic:1"])) == 1
        assert other_board.sent == []

    def test_dead_socket_pruned(self):
        manager = LiveBoardManager()
        healthy, dead = FakeSocket(), FakeSocket(fail=True)
        _connected(manager, healthy, dead)

        sent = asyncio.run(manager.broadcast("control", {}, ["live"]))

        assert sent == 1
        assert dead not in manager.connections
        assert manager.connection_count == 1


def test_websocket_join(client):
    with client.websocket_connect("/ws/live-patients") as websocket:
        websocket.send_json({"event": "join", "data": {"doctorId": 5}})
        reply = websocket.receive_json()

    assert reply["event"] == "joined"
    assert "doctor:5" in reply["rooms"]


def test_non_object_data_keeps_socket_open(client):
    with client.websocket_connect("/ws/live-patients") as websocket:
        websocket.send_json({"event": "join", "data": [1, 2]})
        error = websocket.receive_json()
        websocket.send_json({"event": "control", "data": "next"})
        control_error = websocket.receive_json()
        websocket.send_json({"event": "join", "data": {"clinicId": 4}})
        reply = websocket.receive_json()

    assert error == {"event": "error", "message": "Expected data to be a JSON object"}
    assert control_error["event"] == "error"
    assert reply["event"] == "joined"
    assert "clinic:4" in reply["rooms"]
