"""Thin OpenAI client for chat completions and audio transcription."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from openai import OpenAI

from voicebook.core.errors import LLMError
from voicebook.utils.logging import get_logger


logger = get_logger("OpenAI")


class LLMClient:
    async def generate(
        self,
        *,
        system: str,
        user: str,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:  # pragma: no cover
        raise NotImplementedError

    async def transcribe(self, audio_path: Path, *, language: str = "en") -> str:  # pragma: no cover
        raise NotImplementedError


@dataclass
class OpenAIClient(LLMClient):
    api_key: str
    model: str = "gpt-4"
    transcription_model: str = "whisper-1"
    _client: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._client = OpenAI(api_key=self.api_key)

    async def generate(
        self,
        *,
        system: str,
        user: str,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:
        try:
            resp = await self._to_thread(
                self._client.chat.completions.create,
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise LLMError(str(exc)) from exc
        content: Optional[str] = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise LLMError("No response from OpenAI")
        return content.strip()

    async def transcribe(self, audio_path: Path, *, language: str = "en") -> str:
        if not audio_path.exists():
            raise LLMError(f"Audio file not found: {audio_path}")
        logger.info("Transcribing audio...")

        def _call() -> str:
            with audio_path.open("rb") as fh:
                return self._client.audio.transcriptions.create(
                    file=fh,
                    model=self.transcription_model,
                    language=language,
                    response_format="text",
                )

        try:
            transcription = await self._to_thread(_call)
        except Exception as exc:
            raise LLMError(str(exc)) from exc
        text = str(transcription).strip()
        logger.info('Transcription: "%s"', text)
        return text

    # Sync SDK calls run in the default executor to keep the event loop free
    async def _to_thread(self, func, /, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))


__all__ = ["LLMClient", "OpenAIClient", "LLMError"]
