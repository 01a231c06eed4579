"""Audio capture and spoken replies through OS binaries (sox, say)."""

from __future__ import annotations

import asyncio
import time
from asyncio.subprocess import DEVNULL, PIPE, Process
from pathlib import Path
from typing import Optional

from voicebook.core.errors import RecordingError, SpeechError
from voicebook.core.settings import AudioSettings
from voicebook.utils.logging import get_logger


logger = get_logger("Audio")


class AudioRecorder:
    """Records from the default input device into a WAV file using ``sox -d``."""

    def __init__(self, settings: AudioSettings, *, stop_grace: float = 0.5) -> None:
        self.settings = settings
        self.stop_grace = stop_grace
        self._process: Optional[Process] = None
        self._path: Optional[Path] = None
        self._started_at = 0.0

    @property
    def is_recording(self) -> bool:
        return self._process is not None

    def _command(self, path: Path) -> list[str]:
        s = self.settings
        return [
            s.recorder_binary,
            "-d",
            "-r", str(s.sample_rate),
            "-c", str(s.channels),
            "-b", str(s.bits_per_sample),
            str(path),
        ]

    async def start(self) -> Path:
        if self._process is not None:
            raise RecordingError("Recording is already in progress")

        temp_dir = self.settings.temp_dir
        temp_dir.mkdir(parents=True, exist_ok=True)
        path = temp_dir / f"recording_{int(time.time() * 1000)}.wav"
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command(path), stdout=DEVNULL, stderr=PIPE
            )
        except OSError as exc:
            logger.error(
                "Recording process error: %s (install sox: 'brew install sox' or 'apt-get install sox')",
                exc,
            )
            raise RecordingError(f"Failed to start recording: {exc}") from exc

        self._path = path
        self._started_at = time.monotonic()
        logger.info("Recording started. Audio will be saved to: %s", path)
        return path

    async def stop(self) -> Path:
        process, path = self._process, self._path
        if process is None or path is None:
            raise RecordingError("No recording in progress")
        self._process = None
        self._path = None

        logger.info("Recording duration: %ds", round(time.monotonic() - self._started_at))
        if process.returncode is None:
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self.stop_grace * 4)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
        # sox may still be flushing the header after exit
        await asyncio.sleep(self.stop_grace)

        if process.stderr is not None:
            message = (await process.stderr.read()).decode(errors="replace")
            if "WARN" in message or "ERROR" in message:
                logger.warning("Recording warning: %s", message.strip())

        if not path.exists():
            raise RecordingError("Recording file was not created")
        size = path.stat().st_size
        if size == 0:
            logger.warning("Recording file is empty")
        else:
            logger.info("Recording saved: %d KB", round(size / 1024))
        return path


class AudioPlayer:
    """Speaks text through ``settings.tts_binary`` (``say`` by default, macOS only).

    Point ``tts_binary`` at ``espeak`` or similar on Linux.
    """

    def __init__(self, settings: AudioSettings) -> None:
        self.binary = settings.tts_binary

    async def speak(self, text: str) -> None:
        if not text:
            return
        logger.info("Playing audio response...")
        try:
            process = await asyncio.create_subprocess_exec(self.binary, text)
        except OSError as exc:
            raise SpeechError(f"Text-to-speech binary '{self.binary}' unavailable: {exc}") from exc
        code = await process.wait()
        if code != 0:
            raise SpeechError(f"Text-to-speech process exited with code {code}")
        logger.info("Audio response completed")
