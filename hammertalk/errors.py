"""Exception types shared across the hammertalk daemon."""


class HammertalkError(Exception):
    """Base class for all daemon errors."""


class AlreadyRunning(HammertalkError):
    """Another live daemon instance holds the PID file."""

    def __init__(self, pid: int, path: str):
        super().__init__(f"hammertalk is already running (pid {pid}, {path})")
        self.pid = pid
        self.path = path


class AudioDeviceError(HammertalkError):
    """No usable input device, or the capture stream could not be opened."""


class ModelLoadError(HammertalkError):
    """The transcription model could not be found or initialized."""


class TranscriptionError(HammertalkError):
    """The transcription engine failed on a sample buffer."""


class InjectionError(HammertalkError):
    """The text injection tool failed."""
