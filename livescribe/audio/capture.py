"""Microphone capture producing fixed-interval encoded audio chunks."""

import time
import logging
import threading
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime

from ..exceptions import MicrophoneBusyError, MicrophonePermissionError
from ..models.audio import CaptureStats
from ..models.events import AudioChunk
from .encoder import WavChunkEncoder


logger = logging.getLogger(__name__)

# The input device is exclusively owned by one capture at a time.
# Released by begin() on failure, otherwise by the capture thread on exit.
_device_lock = threading.Lock()


class AudioCapture:
    """Time-sliced microphone capture that hands encoded chunks to a callback."""

    def __init__(
        self,
        encoder: Optional[WavChunkEncoder] = None,
        sample_rate: int = 16000,
        channels: int = 1,
        frames_per_buffer: int = 1024,
        chunk_interval_ms: int = 1000,
        input_device_index: Optional[int] = None,
        join_timeout: float = 2.0,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            encoder: Encoder turning raw frames into WAV chunks
            sample_rate: Device capture sample rate
            channels: Number of device channels
            frames_per_buffer: Frames read from the device per call
            chunk_interval_ms: Length of one emitted chunk in milliseconds
            input_device_index: PyAudio device index, None for the default input
            join_timeout: Seconds end() waits for the capture thread
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = frames_per_buffer
        self.chunk_interval_ms = chunk_interval_ms
        self.input_device_index = input_device_index
        self.join_timeout = join_timeout
        self.encoder = encoder or WavChunkEncoder(
            input_sample_rate=sample_rate,
            input_channels=channels,
        )

        self.bytes_per_chunk = int(sample_rate * chunk_interval_ms / 1000) * channels * 2

        # Recording thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_capturing = False
        self.on_chunk: Optional[Callable[[AudioChunk], None]] = None

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

    def begin(self, on_chunk: Callable[[AudioChunk], None]) -> None:
        """Acquire the microphone and start emitting chunks.

        Raises:
            MicrophonePermissionError: If the device cannot be opened
            MicrophoneBusyError: If another capture holds the device
        """
        if self.is_capturing:
            logger.warning("Capture already in progress, ignoring begin()")
            return

        if not _device_lock.acquire(blocking=False):
            raise MicrophoneBusyError("Microphone is already in use by another capture")

        try:
            pyaudio_instance, stream = self.__open_audio_stream()
        except Exception as e:
            _device_lock.release()
            logger.error(f"Could not open microphone: {e}")
            raise MicrophonePermissionError() from e

        logger.info("Starting audio capture")
        self.on_chunk = on_chunk
        self.stop_event = Event()
        self.start_time = datetime.now()
        self.total_chunks = 0

        self.capture_thread = Thread(
            target=self._capture_continuously,
            args=(pyaudio_instance, stream, self.stop_event),
            daemon=True,
        )
        self.capture_thread.name = "AudioCaptureThread"
        self.is_capturing = True
        self.capture_thread.start()

    def end(self, on_complete: Optional[Callable[[], None]] = None) -> None:
        """Stop capture, flush the tail chunk and release the device."""
        if not self.is_capturing:
            logger.debug("No capture in progress")
            return

        logger.info("Stopping audio capture")
        self.stop_event.set()

        if self.capture_thread and self.capture_thread.is_alive():
            self.capture_thread.join(timeout=self.join_timeout)
            if self.capture_thread.is_alive():
                logger.warning("Capture thread did not stop cleanly, "
                               "microphone stays busy until it exits")

        self.is_capturing = False
        logger.info(f"Capture stopped. Total chunks: {self.total_chunks}")

        if on_complete:
            on_complete()

    def __open_audio_stream(self):
        import pyaudio

        pyaudio_instance = pyaudio.PyAudio()
        try:
            stream = pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.input_device_index,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=None
            )
        except Exception:
            pyaudio_instance.terminate()
            raise
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, {self.channels} channel(s), "
                    f"{self.chunk_interval_ms}ms chunks")
        return pyaudio_instance, stream

    def __emit_chunk(self, frames: bytes, final: bool) -> None:
        self.total_chunks += 1
        chunk = AudioChunk(
            data=self.encoder.encode(frames),
            sequence_number=self.total_chunks,
            captured_at=time.time(),
            sample_rate=self.encoder.output_sample_rate,
            channels=self.encoder.output_channels,
            duration_ms=self.encoder.duration_ms(frames),
            final=final,
        )
        self.on_chunk(chunk)

    def _capture_continuously(self, pyaudio_instance, stream, stop_event: Event) -> None:
        """Internal method: read loop running in the capture thread.

        Owns the stream and the device lock until it returns.
        """
        pending = bytearray()
        try:
            while not stop_event.is_set():
                pending.extend(stream.read(
                    self.frames_per_buffer,
                    exception_on_overflow=False
                ))
                while len(pending) >= self.bytes_per_chunk:
                    frames = bytes(pending[:self.bytes_per_chunk])
                    del pending[:self.bytes_per_chunk]
                    self.__emit_chunk(frames, final=False)
            if pending:
                self.__emit_chunk(bytes(pending), final=True)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}", exc_info=True)
        finally:
            try:
                stream.stop_stream()
                stream.close()
                pyaudio_instance.terminate()
            finally:
                _device_lock.release()

    def get_capture_stats(self) -> CaptureStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return CaptureStats(
            is_capturing=self.is_capturing,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_interval_ms=self.chunk_interval_ms,
            total_chunks=self.total_chunks,
        )
