import asyncio
import json
import pytest

from app.repositories.memory import InMemoryMessageStore
from app.services.security import security_service
from app.websocket.heartbeat import HeartbeatMonitor
from app.websocket.registry import ConnectionRegistry
from app.websocket.manager import WebSocketManager
from app.websocket.routing import RouteOutcome


class DummyWs:
    def __init__(self, cookies=None):
        self.cookies = cookies or {}
        self.sent = []
        self.accepted = False
        self.closed = None
    async def accept(self):
        self.accepted = True
    async def send_text(self, text: str):
        if self.closed is not None:
            raise RuntimeError("socket closed")
        self.sent.append(text)
    async def close(self, code: int = 1000, reason: str = ""):
        self.closed = code

    def frames(self):
        return [json.loads(t) for t in self.sent]

    def rosters(self):
        return [f["online"] for f in self.frames() if "online" in f]

    def deliveries(self):
        return [f for f in self.frames() if "text" in f]


class PongingWs(DummyWs):
    """Client that acknowledges every probe as soon as it arrives."""
    def __init__(self, cookies=None):
        super().__init__(cookies)
        self.on_ping = None
    async def send_text(self, text: str):
        await super().send_text(text)
        if json.loads(text).get("type") == "ping" and self.on_ping:
            self.on_ping()


def _ws_for(user_id, username):
    return DummyWs(cookies={"token": security_service.create_session_token(user_id, username)})


async def _assert_roster_matches_registry(mgr, ws):
    expected = [
        {"userId": c.identity.user_id, "username": c.identity.username}
        for c in await mgr.registry.snapshot()
        if c.identity is not None
    ]
    assert ws.rosters()[-1] == expected


@pytest.mark.asyncio
async def test_injected_empty_collaborators_are_kept():
    registry = ConnectionRegistry()
    store = InMemoryMessageStore()
    mgr = WebSocketManager(store=store, registry=registry)

    assert mgr.registry is registry
    assert mgr.router.registry is registry
    assert mgr.router.store is store
    assert mgr.broadcaster.registry is registry
    assert mgr.monitor.registry is registry

    alice = await mgr.connect(_ws_for("1", "alice"))
    assert alice in registry


@pytest.mark.asyncio
async def test_alice_messages_bob():
    store = InMemoryMessageStore()
    mgr = WebSocketManager(store=store)

    alice_ws, bob_ws = _ws_for("1", "alice"), _ws_for("2", "bob")
    alice = await mgr.connect(alice_ws)
    bob = await mgr.connect(bob_ws)

    assert alice_ws.accepted and bob_ws.accepted
    assert alice.identity.username == "alice"
    assert bob_ws.rosters()[-1] == [
        {"userId": "1", "username": "alice"},
        {"userId": "2", "username": "bob"},
    ]

    result = await mgr.handle_frame(alice, json.dumps({"recipient": "2", "text": "hi"}))

    assert result.outcome is RouteOutcome.DELIVERED
    assert bob_ws.deliveries() == [{"text": "hi", "sender": "1", "recipient": "2", "id": result.message.id}]
    assert alice_ws.deliveries() == []

    history = await store.query("1", "2")
    assert len(history) == 1
    assert history[0].text == "hi"


@pytest.mark.asyncio
async def test_invalid_token_connects_anonymously_and_cannot_send():
    store = InMemoryMessageStore()
    mgr = WebSocketManager(store=store)

    bob_ws = _ws_for("2", "bob")
    await mgr.connect(bob_ws)
    anon_ws = DummyWs(cookies={"token": "forged"})
    anon = await mgr.connect(anon_ws)

    assert anon_ws.accepted
    assert anon.identity is None
    assert mgr.get_connections_count() == 2
    assert mgr.get_identified_count() == 1
    # anonymous connections receive the roster but are not listed
    assert anon_ws.rosters()[-1] == [{"userId": "2", "username": "bob"}]

    result = await mgr.handle_frame(anon, json.dumps({"recipient": "2", "text": "hi"}))

    assert result.outcome is RouteOutcome.DROPPED_ANONYMOUS
    assert len(store) == 0
    assert bob_ws.deliveries() == []


@pytest.mark.asyncio
async def test_roster_follows_connects_and_disconnects():
    mgr = WebSocketManager(store=InMemoryMessageStore())
    observer = DummyWs()
    await mgr.connect(observer)

    alice = await mgr.connect(_ws_for("1", "alice"))
    await _assert_roster_matches_registry(mgr, observer)
    bob = await mgr.connect(_ws_for("2", "bob"))
    await _assert_roster_matches_registry(mgr, observer)

    frames_before = len(observer.sent)
    assert await mgr.disconnect(alice) is True
    await _assert_roster_matches_registry(mgr, observer)
    assert observer.rosters()[-1] == [{"userId": "2", "username": "bob"}]
    assert len(observer.sent) == frames_before + 1

    # second teardown of the same connection is a no-op
    assert await mgr.disconnect(alice) is False
    assert len(observer.sent) == frames_before + 1

    await mgr.disconnect(bob)
    assert observer.rosters()[-1] == []


@pytest.mark.asyncio
async def test_malformed_frame_is_dropped_silently():
    mgr = WebSocketManager(store=InMemoryMessageStore())
    alice_ws = _ws_for("1", "alice")
    alice = await mgr.connect(alice_ws)
    frames_before = len(alice_ws.sent)

    result = await mgr.handle_frame(alice, "{not json")

    assert result.outcome is RouteOutcome.DROPPED_MALFORMED
    assert len(alice_ws.sent) == frames_before
    assert alice in mgr.registry


@pytest.mark.asyncio
async def test_store_failure_reported_to_sender_only():
    class FailingStore(InMemoryMessageStore):
        async def append(self, sender, recipient, text):
            raise ConnectionError("mongo unreachable")

    mgr = WebSocketManager(store=FailingStore())
    alice_ws, bob_ws = _ws_for("1", "alice"), _ws_for("2", "bob")
    alice = await mgr.connect(alice_ws)
    await mgr.connect(bob_ws)
    bob_frames = len(bob_ws.sent)

    result = await mgr.handle_frame(alice, json.dumps({"recipient": "2", "text": "hi"}))

    assert result.outcome is RouteOutcome.FAILED
    assert alice_ws.frames()[-1] == {"error": "Failed to send message"}
    assert len(bob_ws.sent) == bob_frames
    assert alice in mgr.registry


@pytest.mark.asyncio
async def test_client_ping_gets_pong_and_pong_is_consumed():
    mgr = WebSocketManager(store=InMemoryMessageStore())
    alice_ws = _ws_for("1", "alice")
    alice = await mgr.connect(alice_ws)

    assert await mgr.handle_frame(alice, json.dumps({"type": "ping"})) is None
    assert alice_ws.frames()[-1] == {"type": "pong"}

    frames_before = len(alice_ws.sent)
    assert await mgr.handle_frame(alice, json.dumps({"type": "pong"})) is None
    assert len(alice_ws.sent) == frames_before


@pytest.mark.asyncio
async def test_silent_connection_is_evicted_and_roster_rebroadcast():
    store = InMemoryMessageStore()
    mgr = WebSocketManager(store=store)
    mgr.monitor = HeartbeatMonitor(mgr.registry, mgr.broadcaster, interval=0.01, timeout=0.05)

    bob_ws = PongingWs(cookies={"token": security_service.create_session_token("2", "bob")})
    bob = await mgr.connect(bob_ws)
    bob_ws.on_ping = lambda: mgr.monitor.acknowledge(bob)
    ghost_ws = _ws_for("1", "alice")
    ghost = await mgr.connect(ghost_ws)

    async with mgr.watch(bob), mgr.watch(ghost):
        await asyncio.sleep(0.3)

    assert ghost_ws.closed == 4408
    assert ghost not in mgr.registry
    assert bob in mgr.registry
    assert bob_ws.rosters()[-1] == [{"userId": "2", "username": "bob"}]
    rosters_after_eviction = len(bob_ws.rosters())

    # the endpoint's own teardown for the evicted connection adds nothing
    assert await mgr.disconnect(ghost) is False
    assert len(bob_ws.rosters()) == rosters_after_eviction

    await mgr.shutdown()
    assert mgr.monitor.active_count() == 0
