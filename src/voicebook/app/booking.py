"""Voice booking pipeline: record, transcribe, classify, fill, answer."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from voicebook.browser.play import BrowserSession
from voicebook.core.errors import SpeechError
from voicebook.core.models import (
    DEMO_APPOINTMENT,
    AppointmentData,
    FormField,
    IntentResult,
    validate_appointment_data,
)
from voicebook.core.settings import AppSettings
from voicebook.forms.resolver import AdaptiveFormResolver
from voicebook.services.audio import AudioPlayer, AudioRecorder
from voicebook.services.audit_logger import AuditLogger
from voicebook.services.intent import IntentClassifier
from voicebook.services.llm import OpenAIClient
from voicebook.utils.logging import get_logger


logger = get_logger("BookingApp")


class AppointmentBookingApp:
    """Wires the collaborators together around one browser session."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        browser: Optional[BrowserSession] = None,
        resolver: Optional[AdaptiveFormResolver] = None,
        classifier: Optional[IntentClassifier] = None,
        recorder: Optional[AudioRecorder] = None,
        player: Optional[AudioPlayer] = None,
        audit_logger: Optional[AuditLogger] = None,
        appointment: AppointmentData = DEMO_APPOINTMENT,
    ) -> None:
        self.settings = settings
        self.browser = browser or BrowserSession(settings.browser)
        self.resolver = resolver or AdaptiveFormResolver(settings.browser)
        if classifier is None:
            llm = OpenAIClient(
                api_key=settings.openai.api_key,
                model=settings.openai.model,
                transcription_model=settings.openai.transcription_model,
            )
            classifier = IntentClassifier(
                llm,
                language=settings.openai.language,
                temperature=settings.openai.temperature,
                max_tokens=settings.openai.max_tokens,
            )
        self.classifier = classifier
        self.recorder = recorder or AudioRecorder(settings.audio)
        self.player = player or AudioPlayer(settings.audio)
        self.audit = audit_logger or AuditLogger(settings.audit_log_path)
        # Voice commands are not parsed for details yet; this record is submitted.
        self.appointment = appointment

    async def initialize(self) -> None:
        logger.info("Initializing Appointment Booking App...")
        await self.browser.start()
        logger.info("App initialized successfully")

    async def cleanup(self) -> None:
        logger.info("Cleaning up...")
        try:
            await self.browser.close()
        except Exception as exc:
            logger.error("Error during cleanup: %s", exc)

    async def __aenter__(self) -> "AppointmentBookingApp":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()

    async def process_voice_command(self) -> bool:
        audio_path: Optional[Path] = None
        try:
            await self.recorder.start()
            logger.info("Please speak your appointment request...")
            await self.wait_for_recording()
            audio_path = await self.recorder.stop()

            intent = await self.classifier.process_audio_command(audio_path)
            booked = await self.handle_intent(intent)
            try:
                await self.player.speak(intent.response)
            except SpeechError as exc:
                logger.warning("Could not speak the response: %s", exc)
            return booked
        except Exception as exc:
            logger.error("Error processing voice command: %s", exc)
            return False
        finally:
            if self.recorder.is_recording:
                try:
                    await self.recorder.stop()
                except Exception as exc:
                    logger.debug("Recorder stop after failure: %s", exc)
            if audio_path is not None and audio_path.exists():
                try:
                    audio_path.unlink()
                except OSError as exc:
                    logger.warning("Failed to clean up audio file: %s", exc)

    async def wait_for_recording(self) -> None:
        # Fixed window instead of voice-activity detection
        seconds = self.settings.audio.recording_seconds
        logger.info("Recording for %s seconds...", seconds)
        await asyncio.sleep(seconds)

    async def handle_intent(self, intent: IntentResult) -> bool:
        logger.info(
            "Intent: %s (response: %s) status: %s",
            intent.intent.value,
            intent.response,
            intent.status.value,
        )
        if not intent.wants_booking:
            logger.info("Intent is not a successful appointment booking request")
            return False

        logger.info("Filling appointment form...")
        booked = await self._book(self.appointment, source="voice")
        if booked:
            logger.info("Appointment booking completed successfully!")
        else:
            logger.warning("Failed to submit appointment form")
        return booked

    async def test_with_manual_data(self, data: AppointmentData) -> bool:
        problems = validate_appointment_data(data)
        if problems:
            for problem in problems:
                logger.warning("Validation error: %s", problem)
            return False
        return await self._book(data, source="manual")

    async def _book(self, data: AppointmentData, *, source: str) -> bool:
        error: Optional[str] = None
        try:
            booked = await self.resolver.fill_appointment_form(self.browser.page, data)
        except Exception as exc:
            logger.error("Error filling form: %s", exc)
            booked, error = False, str(exc)
        try:
            await self.audit.log(
                event="booking_attempt",
                payload={
                    "source": source,
                    "success": booked,
                    "error": error,
                    "appointment": data.model_dump(mode="json"),
                },
            )
        except Exception:
            logger.debug("Failed to persist audit log", exc_info=True)
        return booked

    async def get_form_fields(self) -> Dict[str, str]:
        return await self.resolver.get_form_fields(self.browser.page)

    async def inspect_fields(self) -> List[FormField]:
        return await self.resolver.inspect_fields(self.browser.page)

    async def take_screenshot(self) -> Path:
        return await self.resolver.take_screenshot(self.browser.page)
