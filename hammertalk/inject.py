"""Text injection into the focused application."""

import logging
import subprocess
import time

from hammertalk.errors import InjectionError

logger = logging.getLogger(__name__)


def is_injectable(text: str) -> bool:
    """Return False for empty or whitespace-only text."""
    return bool(text) and not text.isspace()


class TextInjector:
    """Base injector. Subclasses implement ``_emit``.

    ``inject`` returns True when text was sent and False when it was
    skipped as empty.
    """

    def inject(self, text: str) -> bool:
        if not is_injectable(text):
            logger.info("Empty transcription, skipping")
            return False
        logger.info("Typing: %s", text)
        self._emit(text)
        return True

    def _emit(self, text: str) -> None:
        raise NotImplementedError


class YdotoolInjector(TextInjector):
    """Types text through ``ydotool type``."""

    def __init__(self, command: str = "ydotool"):
        self.command = command

    def _emit(self, text: str) -> None:
        try:
            result = subprocess.run(
                [self.command, "type", "--", text],
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise InjectionError(f"Failed to run {self.command}: {e}") from e
        if result.returncode != 0:
            raise InjectionError(
                f"{self.command} exited with {result.returncode}: {result.stderr.strip()}"
            )
        logger.debug("%s succeeded", self.command)


class PynputInjector(TextInjector):
    """Types text by simulating keyboard input with pynput."""

    def __init__(self, typing_delay: float = 0.0):
        from pynput.keyboard import Controller
        self.typing_delay = typing_delay
        try:
            self._keyboard = Controller()
        except Exception as e:
            # e.g. Xlib.error.DisplayNameError when no display is reachable
            raise InjectionError(f"Keyboard controller unavailable: {e}") from e

    def _emit(self, text: str) -> None:
        try:
            if self.typing_delay <= 0:
                self._keyboard.type(text)
                return
            for char in text:
                self._keyboard.type(char)
                time.sleep(self.typing_delay)
        except Exception as e:
            raise InjectionError(f"Keyboard simulation failed: {e}") from e


def make_injector(backend: str, command: str = "ydotool",
                  typing_delay: float = 0.0) -> TextInjector:
    """Build the injector named by the ``inject.backend`` setting."""
    if backend == "ydotool":
        return YdotoolInjector(command=command)
    if backend == "pynput":
        return PynputInjector(typing_delay=typing_delay)
    raise ValueError(f"Unknown inject backend: {backend!r}")
