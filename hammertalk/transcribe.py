"""Speech-to-text for the hammertalk daemon."""

import logging
import os
from typing import Optional, Protocol

import numpy as np

from hammertalk.errors import ModelLoadError, TranscriptionError

logger = logging.getLogger(__name__)


class TranscriptionClient(Protocol):
    """Anything that turns 16 kHz mono float32 samples into text."""

    def transcribe(self, samples: np.ndarray) -> str:
        ...


class WhisperTranscriber:
    """Transcribes audio with faster-whisper.

    ``model_path`` is used directly when it is an existing directory
    holding a converted model; otherwise ``model_name`` is loaded with the
    parent of ``model_path`` as download root.
    """

    def __init__(self, model_name: str = "tiny.en", model_path: Optional[str] = None,
                 device: str = "cpu", compute_type: str = "int8", language: str = "en"):
        self.model_name = model_name
        self.model_path = model_path
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self._model = None

    def load(self) -> None:
        """Load the model. Raises ModelLoadError on any failure."""
        if self._model is not None:
            return
        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise ModelLoadError(f"faster-whisper is not installed: {e}") from e

        if self.model_path and os.path.isdir(self.model_path):
            source, download_root = self.model_path, None
        else:
            source = self.model_name
            download_root = os.path.dirname(self.model_path) if self.model_path else None

        logger.info("Loading Whisper model %s", source)
        try:
            self._model = WhisperModel(
                source,
                device=self.device,
                compute_type=self.compute_type,
                download_root=download_root,
            )
        except Exception as e:
            raise ModelLoadError(f"Failed to load model {source}: {e}") from e
        logger.info("Model loaded successfully")

    def transcribe(self, samples: np.ndarray) -> str:
        """Transcribe mono float32 samples at 16 kHz and return the text."""
        if len(samples) == 0:
            return ""
        self.load()

        if samples.dtype != np.float32:
            samples = samples.astype(np.float32)

        try:
            segments, _info = self._model.transcribe(
                samples,
                language=self.language,
                vad_filter=True,
            )
            text_parts = [segment.text.strip() for segment in segments]
        except Exception as e:
            raise TranscriptionError(str(e)) from e
        return " ".join(text_parts).strip()
