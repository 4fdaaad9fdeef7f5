"""
Error taxonomy for the category engine.

- DataUnavailable: the record source had nothing for a requested window.
  Expected and common, the HTTP layer reports it as "no data".
- WindowMismatch: incompatible windows were compared. Always rejected.
- NarrationUnavailable: the narrator failed or timed out. Recovered locally
  with templated text, never surfaced to callers of the analyzer.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for category engine errors."""


class DataUnavailable(AnalysisError):
    """No trend records exist for the requested window."""

    def __init__(self, message: str, window: Optional[object] = None, platform: Optional[str] = None):
        super().__init__(message)
        self.window = window
        self.platform = platform


class WindowMismatch(AnalysisError):
    """Two windows of different kind or length were compared."""


class NarrationUnavailable(AnalysisError):
    """The insight narrator could not produce text."""
