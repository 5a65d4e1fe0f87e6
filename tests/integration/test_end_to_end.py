"""End-to-end push-to-talk cycles through the controller with stub collaborators."""

import numpy as np

from hammertalk.controller import DaemonState, LifecycleController
from hammertalk.signals import Request


def _run_cycle(flags, controller, fake_stream, frames):
    """Deliver start, capture ``frames``, deliver stop, then shut down."""
    flags.raise_flag(Request.START)
    controller.step(flags.drain())
    fake_stream.feed(frames)
    flags.raise_flag(Request.STOP)
    controller.step(flags.drain())


def test_silence_with_empty_transcription_injects_nothing(
        flags, fake_stream, stub_transcriber, injector):
    stub_transcriber.result = ""
    controller = LifecycleController(flags, fake_stream, stub_transcriber, injector)

    _run_cycle(flags, controller, fake_stream, np.zeros(16000, dtype=np.float32))

    assert len(stub_transcriber.calls) == 1
    samples = stub_transcriber.calls[0]
    assert len(samples) == 16000
    assert samples.dtype == np.float32
    assert not samples.any()
    assert injector.calls == []
    assert controller.state is DaemonState.IDLE


def test_non_target_rate_is_resampled_and_injected(
        flags, fake_stream, stub_transcriber, injector):
    fake_stream.rate = 44100
    fake_stream.channels = 2
    stub_transcriber.result = "turn on the lights"
    controller = LifecycleController(flags, fake_stream, stub_transcriber, injector)

    t = np.arange(22050) / 44100
    tone = (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
    stereo = np.column_stack([tone, tone])
    _run_cycle(flags, controller, fake_stream, stereo)

    samples = stub_transcriber.calls[0]
    assert len(samples) == 8000  # round(22050 * 16000 / 44100)
    assert np.max(np.abs(samples)) <= 0.5 + 1e-6
    assert injector.calls == ["turn on the lights"]
    assert controller.state is DaemonState.IDLE


def test_start_then_immediate_stop_skips_engine(
        flags, fake_stream, stub_transcriber, injector):
    controller = LifecycleController(flags, fake_stream, stub_transcriber, injector)
    flags.raise_flag(Request.START)
    flags.raise_flag(Request.STOP)
    controller.step(flags.drain())

    assert fake_stream.open_count == 1
    assert stub_transcriber.calls == []
    assert injector.calls == []
    assert controller.state is DaemonState.IDLE


def test_consecutive_sessions_do_not_share_audio(
        flags, fake_stream, stub_transcriber, injector):
    controller = LifecycleController(flags, fake_stream, stub_transcriber, injector)
    _run_cycle(flags, controller, fake_stream, np.ones(400, dtype=np.float32))
    _run_cycle(flags, controller, fake_stream, np.ones(200, dtype=np.float32))

    assert [len(s) for s in stub_transcriber.calls] == [400, 200]
    assert injector.calls == ["hello world", "hello world"]
