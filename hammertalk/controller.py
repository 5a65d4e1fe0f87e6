"""Recording lifecycle state machine for the hammertalk daemon.

The controller owns all session state. Signals only set flags in
SignalFlags; the loop here drains them and performs the transitions:

    Idle --start--> Recording --stop--> Transcribing --done--> Idle

Start while Recording and stop while Idle are ignored. Requests that
arrive while Transcribing are dropped, not queued.
"""

import enum
import logging
import time
from typing import Callable, Optional

import numpy as np

from hammertalk.errors import AudioDeviceError, HammertalkError
from hammertalk.inject import TextInjector, is_injectable
from hammertalk.normalize import AudioNormalizer, audio_duration
from hammertalk.session import RecordingSession
from hammertalk.signals import Drained, SignalFlags
from hammertalk.transcribe import TranscriptionClient

logger = logging.getLogger(__name__)


class DaemonState(enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class LifecycleController:
    """Drives one push-to-talk session at a time.

    ``stream`` must provide ``open() -> (RecordingSession, AudioNormalizer)``
    and ``close()``. ``transcriber`` and ``injector`` are the external
    collaborators; all three can be stubs in tests.
    """

    def __init__(self, flags: SignalFlags, stream, transcriber: TranscriptionClient,
                 injector: TextInjector, poll_interval: float = 0.25,
                 settle_delay: float = 0.0,
                 on_state_change: Optional[Callable[[DaemonState], None]] = None):
        self.flags = flags
        self.stream = stream
        self.transcriber = transcriber
        self.injector = injector
        self.poll_interval = poll_interval
        self.settle_delay = settle_delay
        self._on_state_change = on_state_change
        self._state = DaemonState.IDLE
        self._session: Optional[RecordingSession] = None
        self._normalizer: Optional[AudioNormalizer] = None

    @property
    def state(self) -> DaemonState:
        return self._state

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    def _set_state(self, state: DaemonState) -> None:
        if state is self._state:
            return
        logger.debug("State: %s -> %s", self._state.value, state.value)
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)

    def run(self) -> None:
        """Poll the flags until shutdown is requested."""
        logger.info("Ready. Waiting for signals (USR1=start, USR2=stop)")
        try:
            while True:
                self.flags.wait(self.poll_interval)
                drained = self.flags.drain()
                if drained.shutdown:
                    logger.info("Shutting down...")
                    break
                self.step(drained)
        finally:
            self.abort()

    def step(self, drained: Drained) -> None:
        """Apply one drain's worth of requests, start before stop."""
        if drained.start:
            self.handle_start()
        if drained.stop:
            self.handle_stop()

    def handle_start(self) -> None:
        if self._state is not DaemonState.IDLE:
            logger.debug("Start ignored while %s", self._state.value)
            return

        logger.info("Starting recording...")
        try:
            session, normalizer = self.stream.open()
        except AudioDeviceError as e:
            logger.error("Could not start recording: %s", e)
            self.stream.close()
            return
        self._session = session
        self._normalizer = normalizer
        self._set_state(DaemonState.RECORDING)

    def handle_stop(self) -> None:
        if self._state is not DaemonState.RECORDING:
            logger.debug("Stop ignored while %s", self._state.value)
            return

        logger.info("Stopping recording...")
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)
        self.stream.close()
        session, normalizer = self._session, self._normalizer
        self._session = self._normalizer = None
        try:
            samples = normalizer.normalize(session.close())
            if len(samples) == 0:
                logger.info("No audio recorded")
                return
            self._set_state(DaemonState.TRANSCRIBING)
            self._transcribe_and_inject(samples, normalizer.target_rate)
            # Anything latched while transcribing is stale
            self.flags.discard_requests()
        finally:
            self._set_state(DaemonState.IDLE)

    def _transcribe_and_inject(self, samples: np.ndarray, sample_rate: int) -> None:
        logger.info("Transcribing %d samples (%.2fs)...",
                    len(samples), audio_duration(len(samples), sample_rate))
        try:
            text = self.transcriber.transcribe(samples)
        except HammertalkError as e:
            logger.error("Transcription failed: %s", e)
            return
        except Exception:
            logger.exception("Transcription engine raised unexpectedly")
            return

        if not is_injectable(text):
            logger.info("Empty transcription result")
            return
        logger.info("Transcription: %s", text)

        try:
            self.injector.inject(text)
        except HammertalkError as e:
            logger.error("Text injection failed: %s", e)
        except Exception:
            logger.exception("Text injector raised unexpectedly")

    def abort(self) -> None:
        """Drop any open session and close the stream. Used on shutdown."""
        if self._session is not None:
            logger.info("Discarding in-progress recording")
            self._session.close()
        self.stream.close()
        self._session = self._normalizer = None
        self._set_state(DaemonState.IDLE)
