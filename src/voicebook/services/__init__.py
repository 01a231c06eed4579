"""Collaborators around the form resolver: speech, audio, audit."""

from .audio import AudioPlayer, AudioRecorder
from .audit_logger import AuditLogger
from .intent import IntentClassifier, parse_intent_response
from .llm import LLMClient, OpenAIClient

__all__ = [
    "AudioPlayer",
    "AudioRecorder",
    "AuditLogger",
    "IntentClassifier",
    "LLMClient",
    "OpenAIClient",
    "parse_intent_response",
]
