"""WAV chunk encoder: mono downmix, resampling and WAV framing."""

import io
import wave
import logging

import numpy as np

logger = logging.getLogger(__name__)


class WavChunkEncoder:
    """Encodes raw 16-bit PCM frames into self-contained WAV chunks."""

    def __init__(
        self,
        input_sample_rate: int = 16000,
        input_channels: int = 1,
        output_sample_rate: int = 16000,
    ):
        """Initialize encoder.

        Args:
            input_sample_rate: Sample rate the device captures at
            input_channels: Number of interleaved channels the device delivers
            output_sample_rate: Sample rate of the encoded chunks (16kHz for the backend)
        """
        self.input_sample_rate = input_sample_rate
        self.input_channels = input_channels
        self.output_sample_rate = output_sample_rate
        self.output_channels = 1
        self.sample_width = 2  # 16-bit audio

    def to_mono(self, samples: np.ndarray) -> np.ndarray:
        if self.input_channels == 1:
            return samples
        usable = len(samples) - len(samples) % self.input_channels
        frames = samples[:usable].reshape(-1, self.input_channels)
        return frames.mean(axis=1).astype(np.int16)

    def resample(self, samples: np.ndarray) -> np.ndarray:
        """Linear-interpolation resample to the output rate."""
        if self.input_sample_rate == self.output_sample_rate or len(samples) == 0:
            return samples
        duration = len(samples) / self.input_sample_rate
        target_length = max(1, int(round(duration * self.output_sample_rate)))
        source_positions = np.arange(len(samples))
        target_positions = np.linspace(0, len(samples) - 1, target_length)
        resampled = np.interp(target_positions, source_positions, samples.astype(np.float64))
        return np.clip(np.round(resampled), -32768, 32767).astype(np.int16)

    def encode(self, frames: bytes) -> bytes:
        """Encode raw PCM frames into a mono, resampled WAV blob."""
        samples = np.frombuffer(frames, dtype=np.int16)
        samples = self.resample(self.to_mono(samples))

        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.output_channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.output_sample_rate)
            wf.writeframes(samples.tobytes())
        return buffer.getvalue()

    def duration_ms(self, frames: bytes) -> int:
        """Duration of raw input frames in milliseconds."""
        bytes_per_second = self.input_sample_rate * self.input_channels * self.sample_width
        return int(len(frames) / bytes_per_second * 1000)
