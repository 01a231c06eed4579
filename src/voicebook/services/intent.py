"""Voice command understanding: transcription plus intent classification."""

from __future__ import annotations

import json
import re
from pathlib import Path

from voicebook.core.models import Intent, IntentResult, IntentStatus
from voicebook.services.llm import LLMClient
from voicebook.utils.logging import get_logger


logger = get_logger("IntentClassifier")


SYSTEM_PROMPT = """You are a dentist appointment booking agent.
You analyze patient voice commands for dentist appointment booking.
You output patient intent and response to the patient in JSON format.
The intent can be "book_appointment", "other".
If the user is asking for something other than an appointment, you should return the intent "other" and politely decline to help.
Do not ask follow up questions.
Return your analysis as a JSON object with this structure:
{
"intent": "book_appointment" | "other",
"response": "string"
}
"""

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*")
_FENCE_END_RE = re.compile(r"```\s*$")


def parse_intent_response(content: str) -> IntentResult:
    """Turn the model's JSON answer into an :class:`IntentResult`."""
    text = content.strip()
    if text.startswith("```"):
        text = _FENCE_END_RE.sub("", _FENCE_START_RE.sub("", text))
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Failed to parse OpenAI response as JSON, using fallback")
        return IntentResult.failure("Could not parse AI response")
    if not isinstance(payload, dict):
        return IntentResult.failure("Could not parse AI response")

    try:
        intent = Intent(str(payload.get("intent", "")).strip())
    except ValueError:
        intent = Intent.UNCLEAR
    return IntentResult(
        intent=intent,
        response=str(payload.get("response") or ""),
        status=IntentStatus.SUCCESS,
    )


class IntentClassifier:
    """Transcribes recorded commands and classifies what the patient wants."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        language: str = "en",
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> None:
        self.llm = llm
        self.language = language
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def analyze_intent(self, transcription: str) -> IntentResult:
        logger.info("Analyzing intent...")
        content = await self.llm.generate(
            system=SYSTEM_PROMPT,
            user=f'Patient said: "{transcription}"',
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        result = parse_intent_response(content)
        logger.info("Intent: %s (response: %s)", result.intent.value, result.response)
        return result

    async def process_audio_command(self, audio_path: Path) -> IntentResult:
        """Transcribe then classify; failures come back as an ``unclear`` error result."""
        try:
            transcription = await self.llm.transcribe(audio_path, language=self.language)
            return await self.analyze_intent(transcription)
        except Exception as exc:
            logger.error("Error processing audio command: %s", exc)
            return IntentResult.failure(f"Failed to process audio command: {exc}")
