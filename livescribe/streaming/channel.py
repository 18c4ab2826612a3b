"""Socket.IO streaming channel with bounded reconnection."""

import asyncio
import contextlib
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from urllib.parse import urlencode

import socketio
from socketio import exceptions as sio_exceptions

from ..exceptions import TransportError

logger = logging.getLogger(__name__)


class StreamingChannel:
    """Persistent bidirectional event connection to the transcription backend.

    Pure transport: outbound sends are fire-and-forget and inbound events are
    handed to registered handlers in receipt order. After an unexpected
    disconnect the channel retries ``reconnection_attempts`` times; once those
    are exhausted it stays inert and notifies its lost handlers once.
    """

    def __init__(
        self,
        url: str,
        transports: Iterable[str] = ("websocket",),
        reconnection_attempts: int = 3,
        reconnection_delay: float = 1.0,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        """Initialize streaming channel.

        Args:
            url: Backend base URL
            transports: Engine.IO transports to allow
            reconnection_attempts: Retries after a failed connect or a dropped connection
            reconnection_delay: Base delay between attempts, grows linearly
            client_factory: Factory for the Socket.IO client (defaults to socketio.AsyncClient)
        """
        self.url = url.rstrip('/')
        self.transports = list(transports)
        self.reconnection_attempts = reconnection_attempts
        self.reconnection_delay = reconnection_delay

        factory = client_factory or socketio.AsyncClient
        # Reconnection is handled here so the attempt bound is explicit
        self.sio = factory(reconnection=False)
        self.sio.on('connect', self._on_connect)
        self.sio.on('disconnect', self._on_disconnect)

        self.room_id: Optional[str] = None
        self.handlers: Dict[str, List[Callable[[Any], None]]] = {}
        self.lost_handlers: List[Callable[[str], None]] = []
        self.failed = False
        self._closing = False
        self._reconnect_task: Optional[asyncio.Task] = None
        self._pending_sends: Set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    @property
    def connect_url(self) -> str:
        return f"{self.url}?{urlencode({'room': self.room_id})}"

    async def connect(self, room_id: str) -> None:
        """Connect for the given room, retrying a bounded number of times.

        Raises:
            TransportError: If no attempt succeeds
        """
        self.room_id = room_id
        self._closing = False
        self.failed = False

        if not await self._connect_with_retries(1 + self.reconnection_attempts, initial_delay=False):
            self.failed = True
            raise TransportError(
                f"Could not connect to {self.url} after {1 + self.reconnection_attempts} attempts"
            )

    async def _connect_with_retries(self, attempts: int, initial_delay: bool) -> bool:
        for attempt in range(1, attempts + 1):
            if initial_delay or attempt > 1:
                await asyncio.sleep(self.reconnection_delay * attempt)
            if self._closing:
                return False
            try:
                await self.sio.connect(self.connect_url, transports=self.transports)
                return True
            except sio_exceptions.ConnectionError as e:
                logger.warning(f"Connection attempt {attempt}/{attempts} to {self.url} failed: {e}")
        return False

    async def _on_connect(self) -> None:
        logger.info(f"Streaming channel connected to {self.url} (room={self.room_id})")

    async def _on_disconnect(self, *args: Any) -> None:
        if self._closing:
            logger.info("Streaming channel disconnected")
            return
        logger.warning(f"Streaming channel dropped: {args[0] if args else 'unknown reason'}")
        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        if await self._connect_with_retries(self.reconnection_attempts, initial_delay=True):
            logger.info("Streaming channel reconnected")
            return
        if self._closing:
            return

        self.failed = True
        reason = f"reconnection failed after {self.reconnection_attempts} attempts"
        logger.error(f"Streaming channel lost: {reason}")
        for handler in list(self.lost_handlers):
            handler(reason)

    def on(self, event_name: str, handler: Callable[[Any], None]) -> None:
        """Register a handler for an inbound event."""
        if event_name not in self.handlers:
            self.handlers[event_name] = []
            self.sio.on(event_name, self._make_dispatch(event_name))
        self.handlers[event_name].append(handler)

    def on_lost(self, handler: Callable[[str], None]) -> None:
        """Register a handler called once reconnection is exhausted."""
        self.lost_handlers.append(handler)

    def _make_dispatch(self, event_name: str) -> Callable[..., Any]:
        async def dispatch(data: Any = None) -> None:
            for handler in list(self.handlers[event_name]):
                handler(data)
        return dispatch

    def send(self, event_name: str, payload: Dict[str, Any]) -> None:
        """Emit an event without waiting for delivery."""
        if not self.connected:
            logger.warning(f"Dropping {event_name}: streaming channel not connected")
            return
        task = asyncio.ensure_future(self.sio.emit(event_name, payload))
        self._pending_sends.add(task)
        task.add_done_callback(self._on_send_done)

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._pending_sends.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error:
            logger.error(f"Failed to send on streaming channel: {error}")

    async def flush(self) -> None:
        """Wait for sends that are already scheduled."""
        if self._pending_sends:
            await asyncio.gather(*list(self._pending_sends), return_exceptions=True)

    async def disconnect(self) -> None:
        """Tear the connection down. Safe to call more than once."""
        self._closing = True
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
        self._reconnect_task = None
        await self.flush()
        if self.connected:
            await self.sio.disconnect()
