"""Audio capture for the hammertalk daemon."""

import logging
import time
from typing import Optional

import numpy as np
import sounddevice as sd

from hammertalk.config import TARGET_SAMPLE_RATE
from hammertalk.errors import AudioDeviceError
from hammertalk.normalize import AudioNormalizer
from hammertalk.session import RecordingSession

logger = logging.getLogger(__name__)


class AudioStream:
    """Captures audio from the input device into a RecordingSession.

    The stream is opened on ``open()`` and closed on ``close()`` so the
    device is only held while recording. Stream creation is retried once
    after a brief delay, which covers PortAudio failing on rapid
    stop/start cycles.
    """

    def __init__(self, target_rate: int = TARGET_SAMPLE_RATE,
                 device: Optional[int] = None, channels: Optional[int] = None,
                 blocksize: int = 1024):
        self.target_rate = target_rate
        self.device = device
        self.channels = channels
        self.blocksize = blocksize
        self._stream: Optional[sd.InputStream] = None
        self._session: Optional[RecordingSession] = None

    def _audio_callback(self, indata: np.ndarray, frames: int,
                        time_info, status) -> None:
        """Called by sounddevice for each audio chunk."""
        if status:
            logger.debug("Audio status: %s", status)
        session = self._session
        if session is not None:
            session.append(indata)

    def probe(self) -> tuple[int, int]:
        """Return the (sample_rate, channels) the input device will use.

        Prefers the target rate and falls back to the device's default
        rate when the device refuses it.
        """
        try:
            info = sd.query_devices(self.device, 'input')
        except (sd.PortAudioError, ValueError) as e:
            raise AudioDeviceError(f"No input device available: {e}") from e

        max_channels = int(info['max_input_channels'])
        if max_channels < 1:
            raise AudioDeviceError(f"Device {info['name']!r} has no input channels")
        channels = self.channels or min(max_channels, 2)

        try:
            sd.check_input_settings(device=self.device, channels=channels,
                                    dtype='float32', samplerate=self.target_rate)
            rate = self.target_rate
        except (sd.PortAudioError, ValueError):
            rate = int(info['default_samplerate'])

        logger.debug("Input device %r: %d Hz, %d channels", info['name'], rate, channels)
        return rate, channels

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self) -> tuple[RecordingSession, AudioNormalizer]:
        """Open the stream and start filling a new session.

        Returns the session together with the normalizer for its
        negotiated format.
        """
        rate, channels = self.probe()
        session = RecordingSession(source_sample_rate=rate, source_channel_count=channels)
        normalizer = AudioNormalizer(rate, channels, self.target_rate)

        for attempt in range(2):
            stream = None
            try:
                stream = sd.InputStream(
                    samplerate=rate,
                    channels=channels,
                    dtype=np.float32,
                    device=self.device,
                    callback=self._audio_callback,
                    blocksize=self.blocksize,
                )
                self._session = session
                stream.start()
                self._stream = stream
                break
            except sd.PortAudioError as e:
                self._session = None
                if stream is not None:
                    try:
                        stream.close()
                    except sd.PortAudioError:
                        pass  # Half-open stream already released
                if attempt == 0:
                    time.sleep(0.1)
                else:
                    raise AudioDeviceError(f"Failed to open audio stream: {e}") from e

        logger.info("Recording at %d Hz, %d channels%s", rate, channels,
                    " (resampling)" if normalizer.resampling else "")
        return session, normalizer

    def close(self) -> None:
        """Stop and close the stream. The session stops receiving frames."""
        self._session = None
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except sd.PortAudioError:
                pass  # Device already closed or unavailable
            self._stream = None
