"""Session controller that owns the recording lifecycle of one client."""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Set

from ..audio.capture import AudioCapture
from ..exceptions import ControlRequestError
from ..models.events import AudioChunk
from ..models.session import SessionContext, SessionState
from ..streaming import topics
from ..streaming.channel import StreamingChannel
from ..streaming.dispatcher import EventDispatcher
from ..transcription.aggregator import TranscriptAggregator
from .control_client import ControlClient

logger = logging.getLogger(__name__)


class SessionController:
    """Moves a session between Idle and Active.

    Control requests and audio capture are independent: a failed or slow
    control request never blocks capture, and stopping never cancels a
    control request already in flight. The streaming channel is left open
    on stop so trailing results still arrive.
    """

    def __init__(
        self,
        context: SessionContext,
        capture: AudioCapture,
        channel: StreamingChannel,
        control: ControlClient,
        aggregator: TranscriptAggregator,
        dispatcher: EventDispatcher,
        include_sequence_numbers: bool = False,
    ):
        """Initialize session controller.

        Args:
            context: Session context of the owning client
            capture: Microphone capture
            channel: Streaming channel audio chunks are sent on
            control: Client for the start/stop control requests
            aggregator: Aggregator reset at every start
            dispatcher: Dispatcher delivering captured chunks and channel loss
            include_sequence_numbers: Add a "seq" field to every audio_data payload
        """
        self.context = context
        self.capture = capture
        self.channel = channel
        self.control = control
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.include_sequence_numbers = include_sequence_numbers

        self._pending_requests: Set[asyncio.Task] = set()

        dispatcher.subscribe(self._on_audio_chunk, topics.AUDIO_CHUNK)
        dispatcher.subscribe(self._on_channel_lost, topics.CHANNEL_LOST)

    @property
    def state(self) -> SessionState:
        return self.context.state

    @property
    def room_id(self) -> str:
        return self.context.room_id

    @property
    def is_recording(self) -> bool:
        return self.context.is_recording

    async def start(self) -> None:
        """Start a session: reset state, notify the backend and begin capture.

        Raises:
            MicrophonePermissionError: If the microphone cannot be acquired.
                On this or any other capture failure the session is back to
                Idle and no audio was sent.
        """
        if self.context.state is not SessionState.IDLE:
            logger.warning(f"start() ignored: session is {self.context.state.value}")
            return

        self.aggregator.reset()
        self._set_state(SessionState.STARTING)
        self.context.started_at = datetime.now()
        self.context.chunks_sent = 0

        self._fire_control_request(self.control.start_transcription, "start_transcription_ct")

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.capture.begin, self._on_captured_chunk)
        except BaseException as e:
            logger.error(f"Could not start capture for room {self.room_id}: {e!r}")
            self._set_state(SessionState.IDLE)
            raise

        self._set_state(SessionState.ACTIVE)
        logger.info(f"Session started for room {self.room_id}")

    async def stop(self) -> None:
        """Stop the session: notify the backend and stop capture."""
        if self.context.state is not SessionState.ACTIVE:
            logger.debug(f"stop() ignored: session is {self.context.state.value}")
            return

        self._set_state(SessionState.STOPPING)
        self._fire_control_request(self.control.stop_transcription, "stop_transcription")

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.capture.end, self._on_capture_complete)
        finally:
            self._set_state(SessionState.IDLE)
        logger.info(f"Session stopped for room {self.room_id} "
                    f"({self.context.chunks_sent} chunks sent)")

    async def wait_for_pending_requests(self) -> None:
        """Wait for control requests still in flight."""
        if self._pending_requests:
            await asyncio.gather(*list(self._pending_requests), return_exceptions=True)

    async def close(self) -> None:
        """Stop any active session and let in-flight control requests finish."""
        await self.stop()
        await self.wait_for_pending_requests()
        self.dispatcher.unsubscribe(self._on_audio_chunk, topics.AUDIO_CHUNK)
        self.dispatcher.unsubscribe(self._on_channel_lost, topics.CHANNEL_LOST)

    def _set_state(self, state: SessionState) -> None:
        self.context.state = state
        self.dispatcher.notify(topics.STATE_CHANGED)

    def _fire_control_request(self, request: Callable[[str], Awaitable], label: str) -> None:
        task = asyncio.create_task(self._run_control_request(request, label))
        self._pending_requests.add(task)
        task.add_done_callback(self._pending_requests.discard)

    async def _run_control_request(self, request: Callable[[str], Awaitable], label: str) -> None:
        try:
            await request(self.room_id)
        except ControlRequestError as e:
            logger.error(f"Error calling /{label}: {e}")

    def _on_captured_chunk(self, chunk: AudioChunk) -> None:
        # Runs on the capture thread
        self.dispatcher.post_threadsafe(topics.AUDIO_CHUNK, chunk=chunk)

    def _on_capture_complete(self) -> None:
        logger.debug("Audio capture teardown complete")

    def _on_audio_chunk(self, chunk: AudioChunk) -> None:
        payload = {"room": self.room_id, "audio": chunk.data}
        if self.include_sequence_numbers:
            payload["seq"] = chunk.sequence_number
        self.channel.send(topics.AUDIO_DATA, payload)
        self.context.chunks_sent += 1

    def _on_channel_lost(self, reason: str) -> None:
        logger.warning(f"Streaming channel lost for room {self.room_id}: {reason}")
        self.context.channel_lost = True
        self.dispatcher.notify(topics.STATE_CHANGED)
