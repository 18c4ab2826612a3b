"""Unit tests for WavChunkEncoder."""

import io
import wave

import numpy as np
import pytest

from livescribe.audio.encoder import WavChunkEncoder


def read_wav(data):
    with wave.open(io.BytesIO(data), 'rb') as wf:
        frames = np.frombuffer(wf.readframes(wf.getnframes()), dtype=np.int16)
        return wf.getnchannels(), wf.getframerate(), frames


@pytest.mark.unit
class TestWavChunkEncoder:

    def test_mono_16khz_passthrough(self, sample_audio_chunk):
        encoder = WavChunkEncoder()

        channels, rate, frames = read_wav(encoder.encode(sample_audio_chunk))

        assert (channels, rate) == (1, 16000)
        assert frames.tobytes() == sample_audio_chunk

    def test_stereo_is_downmixed(self):
        encoder = WavChunkEncoder(input_channels=2)
        interleaved = np.array([100, 300, -200, -400, 0, 10], dtype=np.int16)

        channels, _, frames = read_wav(encoder.encode(interleaved.tobytes()))

        assert channels == 1
        assert frames.tolist() == [200, -300, 5]

    def test_48khz_is_resampled_to_16khz(self):
        encoder = WavChunkEncoder(input_sample_rate=48000)
        one_second = np.zeros(48000, dtype=np.int16)

        _, rate, frames = read_wav(encoder.encode(one_second.tobytes()))

        assert rate == 16000
        assert len(frames) == 16000

    def test_duration_uses_input_format(self):
        encoder = WavChunkEncoder(input_sample_rate=48000, input_channels=2)

        assert encoder.duration_ms(b'\x00' * 48000 * 2 * 2) == 1000
        assert encoder.duration_ms(b'') == 0
