"""Data models shared across voicebook."""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Intent(str, Enum):
    """What the patient asked for."""

    BOOK_APPOINTMENT = "book_appointment"
    OTHER = "other"
    UNCLEAR = "unclear"


class IntentStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class IntentResult(BaseModel):
    """Outcome of classifying a transcribed voice command."""

    intent: Intent
    response: str = ""
    status: IntentStatus = IntentStatus.SUCCESS

    @classmethod
    def failure(cls, message: str) -> "IntentResult":
        return cls(intent=Intent.UNCLEAR, response=message, status=IntentStatus.ERROR)

    @property
    def wants_booking(self) -> bool:
        return self.intent is Intent.BOOK_APPOINTMENT and self.status is IntentStatus.SUCCESS


class AppointmentData(BaseModel):
    """Values written into the appointment form.

    Frozen so a fill operation always sees the record it was given.
    Empty strings mean "not supplied"; the resolver applies its defaults.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    appointment_date: str = ""
    appointment_time: str = ""
    service_type: str = ""
    comments: Optional[str] = None


DEMO_APPOINTMENT = AppointmentData(
    name="Hitesh Jain",
    email="hitesh@gmail.com",
    phone="1234567890",
    appointment_date="2025-10-10",
    appointment_time="10:00 AM",
    service_type="Checkup",
    comments="I have a toothache",
)


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
_PHONE_NOISE_RE = re.compile(r"[\s\-().]")


def validate_appointment_data(data: AppointmentData) -> List[str]:
    """Return a list of human-readable problems (empty when valid)."""
    errors: List[str] = []
    if not data.name.strip():
        errors.append("Name is required")

    if not data.email.strip():
        errors.append("Email is required")
    elif not _EMAIL_RE.match(data.email):
        errors.append("Email format is invalid")

    if data.phone and not _PHONE_RE.match(_PHONE_NOISE_RE.sub("", data.phone)):
        errors.append("Phone number format is invalid")
    return errors


class ControlKind(str, Enum):
    """Kind of form control discovered on the page."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    DATE = "date"
    TIME = "time"
    SELECT = "select"
    TEXTAREA = "textarea"
    OTHER = "other"


class SelectOption(BaseModel):
    text: str = ""
    value: str = ""


class FormField(BaseModel):
    """A control discovered on the target form."""

    index: int
    name: str
    kind: ControlKind
    input_type: str
    label: str = ""
    placeholder: str = ""
    options: List[SelectOption] = Field(default_factory=list)
    visible: bool = True
