import asyncio
import time
import uuid

import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.cache import InMemoryCacheStore
from app.core.security import create_access_token
from app.services.conversation_service import build_conversation_id
from app.services.realtime_service import PRESENCE_KEY, RealtimeHub


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("conexión cerrada")
        self.sent.append(data)

    def types(self):
        return [m["type"] for m in self.sent]


@pytest.fixture
def hub():
    return RealtimeHub(cache=InMemoryCacheStore(), presence_ttl=60)


def test_connect_tracks_presence(hub):
    user_id = uuid.uuid4()
    socket = FakeSocket()

    async def scenario():
        await hub.connect(socket, user_id, "Ana Pérez")
        online = await hub.get_presence(user_id)
        await hub.disconnect(socket)
        offline = await hub.get_presence(user_id)
        return online, offline

    online, offline = asyncio.run(scenario())
    assert online.online is True
    assert offline.online is False
    assert offline.last_seen is not None
    assert hub.rooms == {}


def test_user_stays_online_while_another_connection_is_open(hub):
    user_id = uuid.uuid4()
    first, second = FakeSocket(), FakeSocket()

    async def scenario():
        await hub.connect(first, user_id)
        await hub.connect(second, user_id)
        await hub.disconnect(first)
        return await hub.is_user_online(user_id)

    assert asyncio.run(scenario()) is True


def test_failing_socket_is_dropped(hub):
    good, bad = FakeSocket(), FakeSocket(fail=True)
    user_a, user_b = uuid.uuid4(), uuid.uuid4()

    async def scenario():
        await hub.connect(good, user_a)
        await hub.connect(bad, user_b)
        hub.join(good, "conversation:x")
        hub.join(bad, "conversation:x")
        return await hub.emit("conversation:x", "new-message", {"id": 1})

    assert asyncio.run(scenario()) == 1
    assert good.types() == ["new-message"]
    assert bad not in hub.connections
    assert bad not in hub.rooms["conversation:x"]


def test_join_requires_participation(hub):
    member, outsider = uuid.uuid4(), uuid.uuid4()
    conversation_id = build_conversation_id(uuid.uuid4(), member, uuid.uuid4())
    member_socket, outsider_socket = FakeSocket(), FakeSocket()

    async def scenario():
        await hub.connect(member_socket, member)
        await hub.connect(outsider_socket, outsider)
        payload = {"type": "join-conversation", "data": {"conversation_id": conversation_id}}
        await hub.handle_inbound(member_socket, payload)
        await hub.handle_inbound(outsider_socket, payload)

    asyncio.run(scenario())
    room = hub.rooms[f"conversation:{conversation_id}"]
    assert member_socket in room
    assert outsider_socket not in room
    assert outsider_socket.types() == ["error"]


def test_typing_is_relayed_to_others_only(hub):
    a, b = uuid.uuid4(), uuid.uuid4()
    conversation_id = build_conversation_id(uuid.uuid4(), a, b)
    socket_a, socket_b = FakeSocket(), FakeSocket()

    async def scenario():
        await hub.connect(socket_a, a, "Ana Pérez")
        await hub.connect(socket_b, b, "Beto Ruiz")
        for socket in (socket_a, socket_b):
            await hub.handle_inbound(socket, {
                "type": "join-conversation", "data": {"conversation_id": conversation_id},
            })
        await hub.handle_inbound(socket_a, {
            "type": "typing-start", "data": {"conversation_id": conversation_id},
        })
        await hub.handle_inbound(socket_a, {
            "type": "typing-stop", "data": {"conversation_id": conversation_id},
        })
        await hub.handle_inbound(socket_b, {
            "type": "message-read",
            "data": {"conversation_id": conversation_id, "message_id": "m1"},
        })

    asyncio.run(scenario())
    assert socket_a.types() == ["message-read-receipt"]
    assert socket_b.types() == ["user-typing", "user-stopped-typing"]
    assert socket_b.sent[0]["data"]["user_name"] == "Ana Pérez"
    assert socket_a.sent[0]["data"]["read_by"] == str(b)


def test_ping_and_invalid_messages(hub):
    socket = FakeSocket()

    async def scenario():
        await hub.connect(socket, uuid.uuid4())
        await hub.handle_inbound(socket, {"type": "ping"})
        await hub.handle_inbound(socket, ["no", "es", "objeto"])

    asyncio.run(scenario())
    assert socket.types() == ["pong", "error"]


@pytest.fixture
def clock(monkeypatch):
    offset = {"seconds": 0}
    real_monotonic = time.monotonic
    monkeypatch.setattr(time, "monotonic", lambda: real_monotonic() + offset["seconds"])

    def advance(seconds):
        offset["seconds"] += seconds

    return advance


def test_inbound_traffic_renews_presence(hub, clock):
    user_id = uuid.uuid4()
    socket = FakeSocket()
    key = PRESENCE_KEY.format(user_id=user_id)

    async def scenario():
        await hub.connect(socket, user_id)
        clock(45)
        await hub.handle_inbound(socket, {"type": "ping"})
        clock(45)
        return await hub.cache.get(key)

    assert asyncio.run(scenario()) == "online"


def test_connected_user_stays_online_after_presence_ttl(hub, clock):
    user_id = uuid.uuid4()
    socket = FakeSocket()

    async def scenario():
        await hub.connect(socket, user_id)
        clock(61)
        return await hub.get_presence(user_id)

    presence = asyncio.run(scenario())
    assert presence.online is True


def test_presence_expires_for_users_of_other_workers(hub, clock):
    user_id = uuid.uuid4()

    async def scenario():
        await hub.touch(str(user_id))
        clock(61)
        return await hub.is_user_online(user_id)

    assert asyncio.run(scenario()) is False


def test_quote_status_update_reaches_conversation_and_counterparty(hub):
    buyer_socket, room_socket = FakeSocket(), FakeSocket()
    buyer_id = uuid.uuid4()
    hub.join(buyer_socket, f"user:{buyer_id}")
    hub.join(room_socket, "conversation:c1")

    asyncio.run(hub.notify_quote_status_update({
        "conversation_id": "c1",
        "message_id": "m1",
        "quote_status": "ACCEPTED",
        "quote_amount": "10000.00",
        "quote_terms": None,
        "updated_by": "seller",
        "updated_by_name": "Sergio Vendedor",
        "notify_user_id": str(buyer_id),
        "listing_title": "Excavadora",
    }))

    assert room_socket.types() == ["quote-status-update"]
    assert buyer_socket.types() == ["quote-notification"]
    assert buyer_socket.sent[0]["data"]["updated_by"] == "Sergio Vendedor"


def test_websocket_rejects_invalid_token(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/api/v1/ws?token=invalido") as ws:
            ws.receive_json()
    assert exc.value.code == 4401


def test_websocket_rejects_inactive_user(client, make_user):
    inactive = make_user(is_active=False)
    token = create_access_token(data={"sub": str(inactive.id)})

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
            ws.receive_json()
    assert exc.value.code == 4403


def test_websocket_ping_and_presence(client, buyer, seller, auth_headers):
    token = create_access_token(data={"sub": str(buyer.id)})

    with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        presence = client.get(
            f"/api/v1/realtime/presence/{buyer.id}", headers=auth_headers(seller)
        )
        assert presence.status_code == 200
        assert presence.json()["online"] is True

    after = client.get(f"/api/v1/realtime/presence/{buyer.id}", headers=auth_headers(seller))
    assert after.json()["online"] is False
