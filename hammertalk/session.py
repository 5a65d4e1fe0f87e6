"""Sample buffer for a single push-to-talk recording."""

import threading
import time
from dataclasses import dataclass, field

import numpy as np


@dataclass
class RecordingSession:
    """Frames captured between one start and one stop.

    The capture callback is the only writer and calls ``append`` while the
    session is open. ``close`` hands the frames to the controller; later
    appends are dropped.
    """

    source_sample_rate: int
    source_channel_count: int
    start_timestamp: float = field(default_factory=time.monotonic)
    _chunks: list = field(default_factory=list, repr=False)
    _closed: bool = field(default=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def append(self, indata: np.ndarray) -> None:
        """Called from the audio callback thread for each chunk."""
        with self._lock:
            if not self._closed:
                self._chunks.append(indata.copy())

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def frame_count(self) -> int:
        with self._lock:
            return sum(len(chunk) for chunk in self._chunks)

    def close(self) -> np.ndarray:
        """Stop accepting frames and return them as a (frames, channels) array."""
        with self._lock:
            self._closed = True
            chunks, self._chunks = self._chunks, []

        if not chunks:
            return np.zeros((0, self.source_channel_count), dtype=np.float32)
        audio = np.concatenate(chunks, axis=0)
        return audio.reshape(-1, self.source_channel_count)

    def elapsed(self) -> float:
        """Seconds since the session was opened."""
        return time.monotonic() - self.start_timestamp
