"""Downmix and resample captured audio to the transcription format."""

import math
import numpy as np

from hammertalk.config import TARGET_SAMPLE_RATE


def needs_resample(source_rate: int, target_rate: int) -> bool:
    """Return True unless ``source_rate`` equals ``target_rate`` exactly."""
    return source_rate != target_rate


def audio_duration(sample_count: int, sample_rate: int) -> float:
    """Get duration of a sample buffer in seconds."""
    return sample_count / sample_rate


def to_mono(frames: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved or (frames, channels) audio down to one channel."""
    samples = np.asarray(frames, dtype=np.float32)
    if channels <= 1:
        return samples.reshape(-1)
    return samples.reshape(-1, channels).mean(axis=1, dtype=np.float32)


def resampled_length(sample_count: int, source_rate: int, target_rate: int) -> int:
    """Output length ``round(N * R_out / R_in)``, halves rounded up."""
    return int(math.floor(sample_count * target_rate / source_rate + 0.5))


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample mono audio by linear interpolation.

    Output sample ``i`` is interpolated at input position
    ``i * source_rate / target_rate``; positions past the last input
    sample hold its value.
    """
    samples = np.asarray(samples, dtype=np.float32)
    if source_rate == target_rate or len(samples) == 0:
        return samples.copy()

    out_len = resampled_length(len(samples), source_rate, target_rate)
    positions = np.arange(out_len, dtype=np.float64) * (source_rate / target_rate)
    source_index = np.arange(len(samples), dtype=np.float64)
    return np.interp(positions, source_index, samples).astype(np.float32)


class AudioNormalizer:
    """Converts one session's capture to mono at the target rate.

    Created when the stream is opened; whether resampling is needed is
    decided once here from the negotiated device rate.
    """

    def __init__(self, source_rate: int, channels: int,
                 target_rate: int = TARGET_SAMPLE_RATE):
        self.source_rate = source_rate
        self.channels = channels
        self.target_rate = target_rate
        self.resampling = needs_resample(source_rate, target_rate)

    def normalize(self, frames: np.ndarray) -> np.ndarray:
        """Return float32 mono samples at ``target_rate``. Empty in, empty out."""
        mono = to_mono(frames, self.channels)
        if len(mono) == 0:
            return np.array([], dtype=np.float32)
        if not self.resampling:
            return mono
        return resample(mono, self.source_rate, self.target_rate)
