"""Shared test fixtures for hammertalk tests."""

import os
import sys
from unittest.mock import MagicMock

import numpy as np
import pytest

# Add project root to path so `hammertalk` is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Mock sounddevice (requires PortAudio system library). PortAudioError has
# to be a real exception class so `except sd.PortAudioError` works.
_sd = MagicMock()
_sd.PortAudioError = type("PortAudioError", (Exception,), {})
sys.modules.setdefault('sounddevice', _sd)

from hammertalk.errors import AudioDeviceError  # noqa: E402
from hammertalk.normalize import AudioNormalizer  # noqa: E402
from hammertalk.session import RecordingSession  # noqa: E402
from hammertalk.signals import SignalFlags  # noqa: E402


class FakeStream:
    """Stands in for AudioStream: hands out sessions at a fixed format."""

    def __init__(self, rate: int = 16000, channels: int = 1, target_rate: int = 16000):
        self.rate = rate
        self.channels = channels
        self.target_rate = target_rate
        self.fail_open = False
        self.open_count = 0
        self.close_count = 0
        self.session = None

    def open(self):
        if self.fail_open:
            raise AudioDeviceError("device busy")
        self.open_count += 1
        self.session = RecordingSession(self.rate, self.channels)
        return self.session, AudioNormalizer(self.rate, self.channels, self.target_rate)

    def feed(self, frames: np.ndarray) -> None:
        """Push frames as the capture callback would."""
        if self.session is not None:
            self.session.append(frames.reshape(-1, self.channels))

    def close(self) -> None:
        self.close_count += 1
        self.session = None


class StubTranscriber:
    """Returns a canned result and records what it was given."""

    def __init__(self, result: str = "hello world", error: Exception = None):
        self.result = result
        self.error = error
        self.calls = []

    def transcribe(self, samples: np.ndarray) -> str:
        self.calls.append(samples)
        if self.error is not None:
            raise self.error
        return self.result


class RecordingInjector:
    """Collects injected text instead of typing it."""

    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = []

    def inject(self, text: str) -> bool:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return True


@pytest.fixture
def flags():
    return SignalFlags()


@pytest.fixture
def fake_stream():
    return FakeStream()


@pytest.fixture
def stub_transcriber():
    return StubTranscriber()


@pytest.fixture
def injector():
    return RecordingInjector()


@pytest.fixture
def sample_config_dict():
    """Minimal valid config dict matching the config.yaml structure."""
    return {
        "audio": {"sample_rate": 16000, "poll_interval": 0.1},
        "transcription": {"model": "base.en", "language": "en"},
        "inject": {"backend": "ydotool"},
        "logging": {"level": "DEBUG"},
    }


@pytest.fixture
def tmp_config_file(tmp_path, sample_config_dict):
    """Write a temporary config YAML file and return its path."""
    import yaml
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump(sample_config_dict))
    return str(config_path)
