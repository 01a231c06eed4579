from __future__ import annotations

import datetime as dt
import re
from pathlib import Path

import pytest

from voicebook.core.models import DEMO_APPOINTMENT, AppointmentData
from voicebook.core.settings import BrowserSettings
from voicebook.forms.resolver import AdaptiveFormResolver
from voicebook.forms.submit import FormSubmitter


_SELECTOR_RE = re.compile(r'^(\w+)(?:\[([\w-]+)(\*?=)"([^"]*)"(\s+i)?\])?$')


class Control:
    def __init__(self, tag: str, *, options=(), visible: bool = True, **attrs: str) -> None:
        self.tag = tag
        self.attrs = attrs
        self.options = list(options)
        self.visible = visible
        self.value = ""
        self.selected = None

    def matches(self, selector: str) -> bool:
        match = _SELECTOR_RE.match(selector)
        assert match, f"selector not understood by the fake DOM: {selector}"
        tag, attr, op, wanted, insensitive = match.groups()
        if tag != self.tag:
            return False
        if attr is None:
            return True
        actual = self.attrs.get(attr)
        if actual is None:
            return False
        if insensitive:
            actual, wanted = actual.lower(), wanted.lower()
        return wanted in actual if op == "*=" else actual == wanted


class OptionQuery:
    def __init__(self, has_text) -> None:
        self.has_text = has_text


class Controls:
    """Minimal stand-in for a Playwright locator over a list of controls."""

    def __init__(self, page: "FormPage", controls) -> None:
        self.page = page
        self.controls = list(controls)

    def locator(self, selector: str) -> "Controls":
        return Controls(self.page, [c for c in self.controls if c.matches(selector)])

    def filter(self, *, has: OptionQuery) -> "Controls":
        kept = [c for c in self.controls if any(has.has_text.search(text) for text in c.options)]
        return Controls(self.page, kept)

    def nth(self, index: int) -> "Controls":
        return Controls(self.page, self.controls[index:index + 1])

    @property
    def first(self) -> "Controls":
        return self.nth(0)

    async def all(self):
        return [Controls(self.page, [c]) for c in self.controls]

    async def is_visible(self) -> bool:
        return bool(self.controls) and self.controls[0].visible

    async def fill(self, text: str, timeout=None) -> None:
        self.controls[0].value = text

    async def evaluate(self, script: str, arg=None, timeout=None):
        return [{"text": text, "value": text} for text in self.controls[0].options]

    async def select_option(self, *, index: int, timeout=None) -> None:
        self.controls[0].selected = index

    async def scroll_into_view_if_needed(self, timeout=None) -> None:
        return None


class Form(Controls):
    @property
    def first(self) -> "Form":
        return self


class FormPage:
    def __init__(self, controls) -> None:
        self.form = Form(self, controls)
        self.screenshots: list[str] = []

    def locator(self, selector: str, has_text=None):
        if selector == "option":
            return OptionQuery(has_text)
        return self.form

    def is_closed(self) -> bool:
        return False

    async def goto(self, url: str, **kwargs) -> None:
        return None

    async def wait_for_selector(self, selector: str, **kwargs) -> None:
        return None

    async def wait_for_timeout(self, ms: int) -> None:
        return None

    async def screenshot(self, *, path: str, full_page: bool = False) -> None:
        Path(path).write_bytes(b"png")
        self.screenshots.append(path)


def _controls():
    return {
        "name": Control("input", name="patient_name", placeholder="Full Name"),
        "email": Control("input", name="email", type="email"),
        "phone": Control("input", name="phone", type="tel"),
        "date": Control("input", name="date", type="date"),
        "time": Control("select", options=["Select time", "9:00 AM", "10:00 AM"]),
        "service": Control("select", options=["Select service", "Checkup", "Cleaning"]),
        "comments": Control("textarea", name="comments", placeholder="Comments"),
    }


@pytest.fixture()
def settings(tmp_path: Path) -> BrowserSettings:
    return BrowserSettings(screenshot_dir=tmp_path / "shots", scroll_settle_ms=0)


def _resolver(settings: BrowserSettings) -> AdaptiveFormResolver:
    # No submit strategies: every submission finds nothing to click
    return AdaptiveFormResolver(
        settings,
        submitter=FormSubmitter(settings, strategies=[]),
        clock=lambda: dt.date(2030, 1, 1),
    )


@pytest.mark.asyncio
async def test_fill_writes_every_field(settings):
    controls = _controls()
    page = FormPage(controls.values())

    written = await _resolver(settings).fill_fields(page, DEMO_APPOINTMENT)

    assert controls["name"].value == "Hitesh Jain"
    assert controls["phone"].value == "1234567890"
    assert controls["email"].value == "hitesh@gmail.com"
    assert controls["date"].value == "2025-10-10"
    assert controls["time"].selected == 2
    assert controls["service"].selected == 1
    assert controls["comments"].value == "I have a toothache"
    assert written["appointment_time"] == "10:00 AM"
    assert written["service_type"] == "Checkup"


@pytest.mark.asyncio
async def test_empty_values_use_defaults(settings):
    controls = _controls()
    page = FormPage(controls.values())
    data = AppointmentData(name="Ada Lovelace", email="ada@example.com")

    written = await _resolver(settings).fill_fields(page, data)

    assert controls["date"].value == "2030-01-08"
    assert controls["time"].selected == 1
    assert controls["service"].selected == 1
    assert controls["phone"].value == ""
    assert "phone" not in written
    assert "comments" not in written


@pytest.mark.asyncio
async def test_no_submit_control_returns_false_after_filling(settings):
    controls = _controls()
    page = FormPage(controls.values())

    assert await _resolver(settings).fill_appointment_form(page, DEMO_APPOINTMENT) is False
    assert controls["name"].value == "Hitesh Jain"
    assert controls["service"].selected == 1
    assert len(page.screenshots) == 1


@pytest.mark.asyncio
async def test_service_rule_targets_the_second_dropdown(settings):
    service = Control("select", options=["Service", "Checkup"])
    time = Control("select", options=["Time", "9:00 AM", "10:00 AM"])
    page = FormPage([Control("input", name="patient_name"), service, time])
    data = AppointmentData(name="A", email="a@b.co", appointment_time="10:00 AM", service_type="Checkup")

    await _resolver(settings).fill_fields(page, data)

    # "Checkup" is not among the time options, so index 1 overwrites the time pick
    assert time.selected == 1
    assert service.selected is None


@pytest.mark.asyncio
async def test_hidden_match_is_skipped_for_visible_one(settings):
    hidden = Control("input", name="guardian_name", visible=False)
    shown = Control("input", name="patient_name")
    page = FormPage([hidden, shown])

    written = await _resolver(settings).fill_fields(page, AppointmentData(name="Ada"))

    assert hidden.value == ""
    assert shown.value == "Ada"
    assert written == {"name": "Ada"}
