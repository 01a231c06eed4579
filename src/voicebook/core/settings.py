"""Runtime settings loader."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from voicebook.core.errors import ConfigurationError
from voicebook.utils.env import get_bool_env, get_env, get_int_env


DEFAULT_FORM_URL = "https://dr-rajivs-smile-space.lovable.app/"


class AudioSettings(BaseModel):
    sample_rate: int = Field(default=16000, gt=0)
    channels: int = Field(default=1, ge=1)
    bits_per_sample: int = Field(default=16, gt=0)
    recording_seconds: float = Field(default=5.0, gt=0)
    temp_dir: Path = Path("temp")
    recorder_binary: str = "sox"
    tts_binary: str = "say"


class OpenAISettings(BaseModel):
    api_key: str = Field(min_length=1)
    model: str = "gpt-4"
    transcription_model: str = "whisper-1"
    language: str = "en"
    temperature: float = 0.1
    max_tokens: int = 500


class BrowserSettings(BaseModel):
    """Playwright launch options and the bounded waits used by the form resolver.

    All durations are milliseconds.
    """

    headless: bool = False
    timeout_ms: int = 30000
    form_url: str = DEFAULT_FORM_URL
    viewport_width: int = 1280
    viewport_height: int = 720
    form_selector: str = "form"
    form_wait_ms: int = 10000
    scroll_settle_ms: int = 500
    click_settle_ms: int = 300
    click_timeout_ms: int = 5000
    post_submit_wait_ms: int = 2000
    screenshot_dir: Path = Path("screenshots")


class AppSettings(BaseModel):
    openai: OpenAISettings
    audio: AudioSettings = Field(default_factory=AudioSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    audit_log_path: Optional[Path] = None

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "AppSettings":
        """Build settings from environment variables (and a ``.env`` file if present)."""
        load_dotenv(env_file, override=False)
        api_key = get_env("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing required environment variable: OPENAI_API_KEY")

        try:
            return cls(
                openai=OpenAISettings(
                    api_key=api_key,
                    model=get_env("OPENAI_MODEL", "gpt-4"),
                ),
                audio=AudioSettings(
                    sample_rate=get_int_env("AUDIO_SAMPLE_RATE", default=16000),
                    channels=get_int_env("AUDIO_CHANNELS", default=1),
                    bits_per_sample=get_int_env("AUDIO_BITS_PER_SAMPLE", default=16),
                ),
                browser=BrowserSettings(
                    headless=get_bool_env("HEADLESS_BROWSER", default=False),
                    timeout_ms=get_int_env("BROWSER_TIMEOUT", default=30000),
                    form_url=get_env("DENTIST_URL", DEFAULT_FORM_URL),
                    screenshot_dir=Path(get_env("VOICEBOOK_SCREENSHOTS", "screenshots")),
                ),
            )
        except (ValidationError, ValueError) as exc:
            raise ConfigurationError(f"Invalid runtime settings: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> "AppSettings":
        """Load a YAML settings file; the API key may come from the environment."""
        load_dotenv(override=False)
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")

        openai_section = data.get("openai") or {}
        if not isinstance(openai_section, dict):
            raise ConfigurationError(f"Settings file {path}: 'openai' must be a mapping")
        data["openai"] = openai_section
        if not openai_section.get("api_key"):
            openai_section["api_key"] = get_env("OPENAI_API_KEY", "")
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid runtime settings: {exc}") from exc

        if not settings.browser.screenshot_dir.is_absolute():
            settings.browser.screenshot_dir = (path.parent / settings.browser.screenshot_dir).resolve()
        if settings.audit_log_path and not settings.audit_log_path.is_absolute():
            settings.audit_log_path = (path.parent / settings.audit_log_path).resolve()
        return settings
