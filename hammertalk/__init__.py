"""Hammertalk push-to-talk dictation daemon package."""

__version__ = "0.3.0"
