"""Client context wiring capture, transport, aggregation and control together."""

import logging
from typing import Any, Callable, Optional

from .audio.capture import AudioCapture
from .audio.encoder import WavChunkEncoder
from .config import LiveScribeConfig
from .exceptions import TransportError
from .models.events import InboundEvent
from .models.session import SessionContext
from .models.transcript import TranscriptSnapshot
from .services.control_client import ControlClient
from .services.session_controller import SessionController
from .streaming import topics
from .streaming.channel import StreamingChannel
from .streaming.dispatcher import EventDispatcher
from .transcription.aggregator import TranscriptAggregator

logger = logging.getLogger(__name__)


class LiveTranscriptionClient:
    """One transcription client: a room id, a connection and a session.

    Components not passed in are built from the configuration.
    """

    def __init__(
        self,
        config: Optional[LiveScribeConfig] = None,
        capture: Optional[AudioCapture] = None,
        channel: Optional[StreamingChannel] = None,
        control: Optional[ControlClient] = None,
    ):
        self.config = config or LiveScribeConfig()
        self.context = SessionContext()
        self.dispatcher = EventDispatcher(f"room_{self.context.room_id}")

        server_url = self.config.get_server_url()
        self.capture = capture or self._create_capture()
        self.channel = channel or StreamingChannel(
            server_url,
            transports=self.config.get('streaming.transports', ["websocket"]),
            reconnection_attempts=self.config.get('streaming.reconnection_attempts', 3),
            reconnection_delay=self.config.get('streaming.reconnection_delay_seconds', 1.0),
        )
        self.control = control or ControlClient(
            server_url,
            timeout=self.config.get('server.request_timeout_seconds', 10.0),
        )

        self.aggregator = TranscriptAggregator(self.dispatcher)
        self.controller = SessionController(
            context=self.context,
            capture=self.capture,
            channel=self.channel,
            control=self.control,
            aggregator=self.aggregator,
            dispatcher=self.dispatcher,
            include_sequence_numbers=self.config.get('streaming.include_sequence_numbers', False),
        )

        for name in topics.INBOUND_EVENTS:
            self.channel.on(name, self._make_forwarder(name))
        self.channel.on_lost(self._on_channel_lost)

        logger.info(f"LiveTranscriptionClient created for room {self.room_id}")

    def _create_capture(self) -> AudioCapture:
        input_rate = self.config.get('audio.input_sample_rate', 16000)
        input_channels = self.config.get('audio.input_channels', 1)
        encoder = WavChunkEncoder(
            input_sample_rate=input_rate,
            input_channels=input_channels,
            output_sample_rate=self.config.get('audio.sample_rate', 16000),
        )
        return AudioCapture(
            encoder=encoder,
            sample_rate=input_rate,
            channels=input_channels,
            frames_per_buffer=self.config.get('audio.frames_per_buffer', 1024),
            chunk_interval_ms=self.config.get('audio.chunk_interval_ms', 1000),
            input_device_index=self.config.get('audio.input_device_index'),
        )

    @property
    def room_id(self) -> str:
        return self.context.room_id

    @property
    def recording(self) -> bool:
        return self.controller.is_recording

    def _make_forwarder(self, name: str) -> Callable[[Any], None]:
        def forward(data: Any) -> None:
            if not isinstance(data, dict):
                logger.debug(f"Non-object payload for {name}: {data!r}")
                data = {}
            self.dispatcher.post(name, event=InboundEvent(name=name, payload=data))
        return forward

    def _on_channel_lost(self, reason: str) -> None:
        self.dispatcher.post(topics.CHANNEL_LOST, reason=reason)

    async def open(self) -> None:
        """Start event dispatch and connect the streaming channel.

        A connection failure is logged; the client stays usable and the
        channel inert.
        """
        await self.dispatcher.start()
        try:
            await self.channel.connect(self.room_id)
        except TransportError as e:
            logger.error(f"Streaming channel unavailable: {e}")
            self.context.channel_lost = True

    async def start(self) -> None:
        """Start a session once every event received so far is delivered."""
        await self.dispatcher.start()
        await self.dispatcher.join()
        await self.controller.start()

    async def stop(self) -> None:
        await self.controller.stop()

    def snapshot(self) -> TranscriptSnapshot:
        """Current read-only state for presentation."""
        return self.aggregator.snapshot(
            recording=self.recording,
            room_id=self.room_id,
            channel_lost=self.context.channel_lost,
        )

    def on_state_changed(self, listener: Callable[[], None]) -> None:
        """Call listener (no arguments) after every state change.

        Listeners are held by weak reference; keep your own reference.
        """
        self.dispatcher.subscribe(listener, topics.STATE_CHANGED)

    def on_notification(self, listener: Callable[[str], None]) -> None:
        """Call listener(title) for one-shot user notifications."""
        self.dispatcher.subscribe(listener, topics.NOTIFICATION)

    async def close(self) -> None:
        """Dispose of the client: stop the session and tear everything down."""
        await self.controller.close()
        await self.dispatcher.join()
        await self.channel.disconnect()
        await self.dispatcher.stop()
        await self.control.close()
        self.aggregator.shutdown()
        logger.info(f"LiveTranscriptionClient closed for room {self.room_id}")

    async def __aenter__(self) -> "LiveTranscriptionClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
