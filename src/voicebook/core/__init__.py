"""Core models, settings and errors."""

from .errors import (
    ConfigurationError,
    FormFillError,
    LLMError,
    NotInitializedError,
    RecordingError,
    SpeechError,
    VoicebookError,
)
from .models import (
    DEMO_APPOINTMENT,
    AppointmentData,
    ControlKind,
    FormField,
    Intent,
    IntentResult,
    IntentStatus,
    SelectOption,
    validate_appointment_data,
)
from .settings import AppSettings, AudioSettings, BrowserSettings, OpenAISettings

__all__ = [
    "AppSettings",
    "AppointmentData",
    "AudioSettings",
    "BrowserSettings",
    "ConfigurationError",
    "ControlKind",
    "DEMO_APPOINTMENT",
    "FormField",
    "FormFillError",
    "Intent",
    "IntentResult",
    "IntentStatus",
    "LLMError",
    "NotInitializedError",
    "OpenAISettings",
    "RecordingError",
    "SelectOption",
    "SpeechError",
    "VoicebookError",
    "validate_appointment_data",
]
