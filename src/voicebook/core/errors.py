"""Exception hierarchy for voicebook."""

from __future__ import annotations


class VoicebookError(Exception):
    """Base exception for voicebook operations."""


class ConfigurationError(VoicebookError):
    """Raised when settings are missing or invalid."""


class NotInitializedError(VoicebookError):
    """Raised when a browser operation runs before the session exists."""


class FormFillError(VoicebookError):
    """Raised when filling the appointment form hits an unexpected fault."""


class RecordingError(VoicebookError):
    """Raised when audio capture cannot start or produce a file."""


class SpeechError(VoicebookError):
    """Raised when text-to-speech playback fails."""


class LLMError(VoicebookError):
    """Raised when a speech or chat completion call fails."""
