"""Pytest configuration and fixtures for livescribe tests."""

import time
import logging
from typing import Optional

import numpy as np
import pytest
from unittest.mock import Mock, patch

from fakes import FakeAudioCapture, FakeControlClient, FakeSocketIOClient
from livescribe.client import LiveTranscriptionClient
from livescribe.config import LiveScribeConfig
from livescribe.models.session import generate_room_id
from livescribe.streaming.channel import StreamingChannel
from livescribe.streaming.dispatcher import EventDispatcher


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


@pytest.fixture
def dispatcher():
    """Dispatcher with a unique topic root."""
    return EventDispatcher(f"room_{generate_room_id()}")


@pytest.fixture
def fake_capture():
    return FakeAudioCapture()


@pytest.fixture
def fake_control():
    return FakeControlClient()


@pytest.fixture
def channel():
    return StreamingChannel(
        "http://localhost:8000",
        reconnection_attempts=3,
        reconnection_delay=0,
        client_factory=FakeSocketIOClient,
    )


@pytest.fixture
def make_client(channel, fake_capture, fake_control):
    """Factory building a LiveTranscriptionClient on top of the fakes."""
    def _make(config: Optional[LiveScribeConfig] = None, capture=None, control=None):
        return LiveTranscriptionClient(
            config=config or LiveScribeConfig(),
            capture=capture or fake_capture,
            channel=channel,
            control=control or fake_control,
        )
    return _make


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    pytest.importorskip("pyaudio")

    def slow_read(*args, **kwargs):
        time.sleep(0.005)
        return sample_audio_chunk

    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.side_effect = slow_read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
