"""Main daemon for hammertalk - ties all components together."""

import argparse
import logging
import os
import sys
from typing import Optional

import yaml

from hammertalk.audio import AudioStream
from hammertalk.config import Config, load_config
from hammertalk.controller import LifecycleController
from hammertalk.errors import (
    AlreadyRunning, AudioDeviceError, InjectionError, ModelLoadError,
)
from hammertalk.inject import make_injector
from hammertalk.instance import InstanceLock
from hammertalk.signals import SignalFlags
from hammertalk.transcribe import WhisperTranscriber

logger = logging.getLogger("hammertalk")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ALREADY_RUNNING = 2
EXIT_MODEL_ERROR = 3
EXIT_AUDIO_ERROR = 4

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging once. $HAMMERTALK_LOG overrides ``level``."""
    if verbose:
        level = "DEBUG"
    else:
        level = os.environ.get("HAMMERTALK_LOG", level)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


class HammertalkDaemon:
    """Owns the instance lock and the collaborators for one daemon run."""

    def __init__(self, config: Config, lock: Optional[InstanceLock] = None,
                 flags: Optional[SignalFlags] = None):
        self.config = config
        self.lock = lock or InstanceLock()
        self.flags = flags or SignalFlags()

        self.transcriber = WhisperTranscriber(
            model_name=config.transcription.model,
            model_path=config.transcription.model_path,
            device=config.transcription.device,
            compute_type=config.transcription.compute_type,
            language=config.transcription.language,
        )
        self.stream = AudioStream(
            target_rate=config.audio.sample_rate,
            device=config.audio.input_device,
            channels=config.audio.channels,
            blocksize=config.audio.blocksize,
        )
        self.injector = make_injector(
            config.inject.backend,
            command=config.inject.command,
            typing_delay=config.inject.typing_delay,
        )
        self.controller = LifecycleController(
            self.flags,
            self.stream,
            self.transcriber,
            self.injector,
            poll_interval=config.audio.poll_interval,
            settle_delay=config.audio.settle_delay,
        )

    def run(self) -> int:
        """Start up, serve signals until shutdown, and return an exit code."""
        logger.info("Hammertalk starting...")
        try:
            self.lock.acquire()
        except AlreadyRunning as e:
            logger.error("%s", e)
            return EXIT_ALREADY_RUNNING

        # Handlers go in before the slow model load so an early SIGUSR1
        # is latched instead of killing the process
        self.flags.install()
        try:
            try:
                self.transcriber.load()
            except ModelLoadError as e:
                logger.error("%s", e)
                return EXIT_MODEL_ERROR

            try:
                rate, channels = self.stream.probe()
            except AudioDeviceError as e:
                logger.error("Failed to set up audio: %s", e)
                return EXIT_AUDIO_ERROR
            logger.info("Input device ready (%d Hz, %d channels)", rate, channels)

            self.controller.run()
        finally:
            self.flags.uninstall()
            self.lock.release()

        logger.info("Goodbye!")
        return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hammertalk",
        description="Push-to-talk dictation daemon. SIGUSR1 starts recording, "
                    "SIGUSR2 stops and types the transcription.",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)
    try:
        config = load_config(args.config)
    except (TypeError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_ERROR
    setup_logging(config.logging.level, verbose=args.verbose)

    try:
        daemon = HammertalkDaemon(config)
    except (ValueError, ImportError, InjectionError) as e:
        logger.error("Cannot set up text injection: %s", e)
        return EXIT_ERROR
    return daemon.run()


if __name__ == "__main__":
    sys.exit(main())
