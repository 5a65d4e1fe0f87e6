"""Configuration loader for the hammertalk daemon."""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional

APP_NAME = "hammertalk"
TARGET_SAMPLE_RATE = 16000


def _xdg_dir(env_var: str, fallback: str) -> str:
    return os.environ.get(env_var) or os.path.expanduser(fallback)


def get_config_path() -> str:
    """Return the config file path, honoring $HAMMERTALK_CONFIG."""
    override = os.environ.get("HAMMERTALK_CONFIG")
    if override:
        return override
    return os.path.join(_xdg_dir("XDG_CONFIG_HOME", "~/.config"), APP_NAME, "config.yaml")


def get_pid_path() -> str:
    """Return the per-user PID file path ($XDG_RUNTIME_DIR, else /tmp)."""
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR") or "/tmp"
    return os.path.join(runtime_dir, f"{APP_NAME}.pid")


def get_models_dir() -> str:
    """Return the directory model files are stored under."""
    return os.path.join(_xdg_dir("XDG_DATA_HOME", "~/.local/share"), APP_NAME, "models")


@dataclass
class AudioConfig:
    sample_rate: int = TARGET_SAMPLE_RATE
    input_device: Optional[int] = None
    channels: Optional[int] = None  # None = device native, capped at 2
    blocksize: int = 1024
    poll_interval: float = 0.25
    settle_delay: float = 0.05


@dataclass
class TranscriptionConfig:
    model: str = "tiny.en"
    model_path: Optional[str] = None
    device: str = "cpu"
    compute_type: str = "int8"
    language: str = "en"

    def __post_init__(self):
        if not self.model_path:
            self.model_path = os.path.join(get_models_dir(), self.model)
        self.model_path = os.path.expanduser(self.model_path)


@dataclass
class InjectConfig:
    backend: str = "ydotool"  # "ydotool" or "pynput"
    command: str = "ydotool"
    typing_delay: float = 0.0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    audio: AudioConfig = field(default_factory=AudioConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    inject: InjectConfig = field(default_factory=InjectConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from YAML file, with defaults for missing values.

    Unknown keys raise TypeError from the section dataclass.
    """
    path = path or get_config_path()
    if os.path.exists(path):
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    return Config(
        audio=AudioConfig(**(data.get('audio') or {})),
        transcription=TranscriptionConfig(**(data.get('transcription') or {})),
        inject=InjectConfig(**(data.get('inject') or {})),
        logging=LoggingConfig(**(data.get('logging') or {})),
    )
