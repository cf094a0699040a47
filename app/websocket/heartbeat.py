"""
Heartbeat liveness monitoring for WebSocket connections.

Each watched connection runs its own probe cycle::

    ALIVE --(every interval: send ping)--> PROBING
    PROBING --(pong before deadline)--> ALIVE
    PROBING --(deadline elapsed)--> DEAD

Entering DEAD closes the transport, removes the connection from the
registry and triggers a presence broadcast. DEAD is terminal.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from app.core.config import settings
from app.models.presence import LivenessState
from app.schemas.message import ControlFrame
from app.websocket.presence import PresenceBroadcaster
from app.websocket.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)

PROBE_FRAME = ControlFrame(type="ping").model_dump_json()


class HeartbeatMonitor:
    """Runs one probe task per connection and evicts unresponsive ones."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        broadcaster: PresenceBroadcaster,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        close_code: Optional[int] = None,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.interval = interval if interval is not None else settings.HEARTBEAT_INTERVAL_SECONDS
        self.timeout = timeout if timeout is not None else settings.HEARTBEAT_TIMEOUT_SECONDS
        self.close_code = close_code if close_code is not None else settings.HEARTBEAT_CLOSE_CODE

        # connection_id -> probe task / acknowledgement signal
        self._tasks: Dict[str, asyncio.Task] = {}
        self._acks: Dict[str, asyncio.Event] = {}

    def start(self, connection: Connection) -> asyncio.Task:
        """Begin the probe cycle for a connection."""
        cid = connection.connection_id
        if cid in self._tasks:
            return self._tasks[cid]
        self._acks[cid] = asyncio.Event()
        task = asyncio.create_task(self._run(connection), name=f"heartbeat:{cid}")
        self._tasks[cid] = task
        return task

    async def stop(self, connection: Connection) -> None:
        """Release the probe task for a connection.

        A connection already in DEAD is mid-eviction; its task is awaited
        rather than cancelled so removal and the broadcast still happen.
        """
        cid = connection.connection_id
        task = self._tasks.pop(cid, None)
        self._acks.pop(cid, None)
        if task is None:
            return
        if connection.liveness is not LivenessState.DEAD:
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Heartbeat task for {connection!r} failed: {e}")

    @asynccontextmanager
    async def watch(self, connection: Connection):
        """Scope the probe cycle to the lifetime of a connection handler."""
        self.start(connection)
        try:
            yield connection
        finally:
            await self.stop(connection)

    def acknowledge(self, connection: Connection) -> bool:
        """Record a pong. Ignored unless a probe is outstanding."""
        if connection.liveness is not LivenessState.PROBING:
            return False
        ack = self._acks.get(connection.connection_id)
        if ack is None:
            return False
        ack.set()
        return True

    async def shutdown(self) -> None:
        """Cancel every outstanding probe task."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        self._acks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} heartbeat tasks")

    def active_count(self) -> int:
        return len(self._tasks)

    async def _run(self, connection: Connection) -> None:
        ack = self._acks[connection.connection_id]
        loop = asyncio.get_running_loop()

        while True:
            await asyncio.sleep(self.interval)

            ack.clear()
            connection.liveness = LivenessState.PROBING
            connection.probe_deadline = loop.time() + self.timeout

            try:
                await asyncio.wait_for(self._probe(connection, ack), timeout=self.timeout)
            except asyncio.TimeoutError:
                await self._evict(connection)
                return

            connection.liveness = LivenessState.ALIVE
            connection.probe_deadline = None

    async def _probe(self, connection: Connection, ack: asyncio.Event) -> None:
        try:
            await connection.send_text(PROBE_FRAME)
        except Exception as e:
            # The deadline still decides the outcome
            logger.debug(f"Failed to send probe to {connection!r}: {e}")
        await ack.wait()

    async def _evict(self, connection: Connection) -> None:
        connection.liveness = LivenessState.DEAD
        connection.probe_deadline = None
        logger.info(f"Evicting {connection!r}: no heartbeat acknowledgement within {self.timeout}s")

        try:
            await connection.close(code=self.close_code, reason="Heartbeat timeout")
        except Exception as e:
            logger.debug(f"Error closing {connection!r}: {e}")

        if await self.registry.remove(connection):
            await self.broadcaster.notify()
