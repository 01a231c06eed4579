from __future__ import annotations

import json
from pathlib import Path

import pytest

from voicebook.app.booking import AppointmentBookingApp
from voicebook.core.errors import FormFillError, RecordingError, SpeechError
from voicebook.core.models import DEMO_APPOINTMENT, AppointmentData, Intent, IntentResult
from voicebook.core.settings import AppSettings, AudioSettings, OpenAISettings
from voicebook.services.audit_logger import AuditLogger


class FakeBrowser:
    page = object()

    async def start(self):
        return self.page

    async def close(self) -> None:
        return None


class FakeResolver:
    def __init__(self, result=True) -> None:
        self.result = result
        self.filled: list[AppointmentData] = []

    async def fill_appointment_form(self, page, data):
        self.filled.append(data)
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class FakeRecorder:
    def __init__(self, tmp_path: Path, fail_start: bool = False) -> None:
        self.path = tmp_path / "recording.wav"
        self.fail_start = fail_start
        self.is_recording = False

    async def start(self) -> Path:
        if self.fail_start:
            raise RecordingError("sox missing")
        self.is_recording = True
        return self.path

    async def stop(self) -> Path:
        self.is_recording = False
        self.path.write_bytes(b"RIFF")
        return self.path


class FakeClassifier:
    def __init__(self, result: IntentResult) -> None:
        self.result = result
        self.paths: list[Path] = []

    async def process_audio_command(self, path: Path) -> IntentResult:
        self.paths.append(path)
        return self.result


class FakePlayer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.spoken: list[str] = []

    async def speak(self, text: str) -> None:
        if self.fail:
            raise SpeechError("Text-to-speech binary 'say' unavailable")
        self.spoken.append(text)


def _settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        openai=OpenAISettings(api_key="sk-test"),
        audio=AudioSettings(recording_seconds=0.01, temp_dir=tmp_path),
    )


def _app(tmp_path: Path, *, intent=None, resolver=None, recorder=None):
    player = FakePlayer()
    app = AppointmentBookingApp(
        _settings(tmp_path),
        browser=FakeBrowser(),
        resolver=resolver or FakeResolver(),
        classifier=FakeClassifier(intent or IntentResult(intent=Intent.BOOK_APPOINTMENT, response="Booking")),
        recorder=recorder or FakeRecorder(tmp_path),
        player=player,
        audit_logger=AuditLogger(tmp_path / "audit.log"),
    )
    return app, player


def _audit_records(tmp_path: Path) -> list[dict]:
    return [json.loads(line) for line in (tmp_path / "audit.log").read_text().splitlines()]


@pytest.mark.asyncio
async def test_voice_booking_fills_demo_record_and_cleans_up(tmp_path: Path):
    resolver = FakeResolver()
    recorder = FakeRecorder(tmp_path)
    app, player = _app(tmp_path, resolver=resolver, recorder=recorder)

    assert await app.process_voice_command() is True
    assert resolver.filled == [DEMO_APPOINTMENT]
    assert player.spoken == ["Booking"]
    assert not recorder.path.exists()

    (record,) = _audit_records(tmp_path)
    assert record["event"] == "booking_attempt"
    assert record["payload"]["source"] == "voice"
    assert record["payload"]["success"] is True


@pytest.mark.asyncio
async def test_other_intent_does_not_touch_the_form(tmp_path: Path):
    resolver = FakeResolver()
    intent = IntentResult(intent=Intent.OTHER, response="I can only book appointments.")
    app, player = _app(tmp_path, intent=intent, resolver=resolver)

    assert await app.process_voice_command() is False
    assert resolver.filled == []
    assert player.spoken == ["I can only book appointments."]


@pytest.mark.asyncio
async def test_failed_classification_is_not_booked(tmp_path: Path):
    resolver = FakeResolver()
    app, _ = _app(tmp_path, intent=IntentResult.failure("Could not parse AI response"), resolver=resolver)
    assert await app.process_voice_command() is False
    assert resolver.filled == []


@pytest.mark.asyncio
async def test_recording_failure_returns_false(tmp_path: Path):
    app, player = _app(tmp_path, recorder=FakeRecorder(tmp_path, fail_start=True))
    assert await app.process_voice_command() is False
    assert player.spoken == []


@pytest.mark.asyncio
async def test_form_fault_is_reported_as_failure(tmp_path: Path):
    resolver = FakeResolver(FormFillError("Failed to fill appointment form: boom"))
    app, _ = _app(tmp_path, resolver=resolver)

    assert await app.test_with_manual_data(DEMO_APPOINTMENT) is False
    (record,) = _audit_records(tmp_path)
    assert record["payload"]["source"] == "manual"
    assert "boom" in record["payload"]["error"]


@pytest.mark.asyncio
async def test_manual_data_is_validated_before_filling(tmp_path: Path):
    resolver = FakeResolver()
    app, _ = _app(tmp_path, resolver=resolver)
    invalid = AppointmentData(name="", email="nope")

    assert await app.test_with_manual_data(invalid) is False
    assert resolver.filled == []
    assert not (tmp_path / "audit.log").exists()


@pytest.mark.asyncio
async def test_app_context_manager_starts_and_closes(tmp_path: Path):
    app, _ = _app(tmp_path)
    async with app as running:
        assert running is app


@pytest.mark.asyncio
async def test_speech_failure_keeps_booking_result(tmp_path: Path):
    resolver = FakeResolver()
    app = AppointmentBookingApp(
        _settings(tmp_path),
        browser=FakeBrowser(),
        resolver=resolver,
        classifier=FakeClassifier(IntentResult(intent=Intent.BOOK_APPOINTMENT, response="Booking")),
        recorder=FakeRecorder(tmp_path),
        player=FakePlayer(fail=True),
        audit_logger=AuditLogger(tmp_path / "audit.log"),
    )

    assert await app.process_voice_command() is True
    assert resolver.filled == [DEMO_APPOINTMENT]
