"""Adaptive resolver that lists, fills and submits an unknown appointment form."""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from voicebook.core.errors import FormFillError, NotInitializedError
from voicebook.core.models import AppointmentData, FormField
from voicebook.core.settings import BrowserSettings
from voicebook.forms.inference import (
    SNAPSHOT_SCRIPT,
    ControlSnapshot,
    build_field_map,
    snapshots_from_dom,
    to_form_field,
)
from voicebook.forms.locate import first_visible
from voicebook.forms.submit import FormSubmitter, SubmitOutcome
from voicebook.utils.artifacts import save_screenshot
from voicebook.utils.logging import get_logger


logger = get_logger("FormResolver")

_MERIDIEM_OPTION = re.compile(r"\b(AM|PM)\b")

OPTIONS_SCRIPT = "(select) => Array.from(select.options).map((o) => ({ text: o.text || '', value: o.value || '' }))"


class AssignKind(str, Enum):
    TEXT = "text"
    SELECT = "select"


class DefaultPolicy(str, Enum):
    """What to write when the caller left a field empty."""

    SKIP = "skip"
    ONE_WEEK_OUT = "one_week_out"
    FIRST_REAL_OPTION = "first_real_option"


@dataclass(frozen=True)
class FieldRule:
    """How one AppointmentData attribute finds and fills its control.

    ``selectors`` are tried in order and the first visible match wins.
    ``default_selectors`` replace them when no value was supplied. ``locate``
    overrides both for targets CSS cannot express.
    """

    key: str
    kind: AssignKind
    selectors: Tuple[str, ...] = ()
    default: DefaultPolicy = DefaultPolicy.SKIP
    default_selectors: Tuple[str, ...] = ()
    locate: Optional[Callable[[Locator], List[Locator]]] = None

    def candidates(self, form: Locator, *, has_value: bool) -> List[Locator]:
        if self.locate is not None:
            return self.locate(form)
        selectors = self.selectors
        if not has_value and self.default_selectors:
            selectors = self.default_selectors
        return [form.locator(selector) for selector in selectors]


def _time_dropdowns(form: Locator) -> List[Locator]:
    selects = form.locator("select")
    meridiem = selects.filter(has=form.page.locator("option", has_text=_MERIDIEM_OPTION))
    return [meridiem, selects.first]


def _service_dropdowns(form: Locator) -> List[Locator]:
    # Positional: the second dropdown is assumed to hold services.
    return [form.locator("select").nth(1)]


FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        "name",
        AssignKind.TEXT,
        ('input[name*="name"]', 'input[placeholder*="Name"]', 'input[placeholder*="First Last"]'),
    ),
    FieldRule(
        "phone",
        AssignKind.TEXT,
        ('input[name*="phone"]', 'input[type="tel"]', 'input[placeholder*="Phone"]'),
    ),
    FieldRule(
        "email",
        AssignKind.TEXT,
        ('input[name*="email"]', 'input[type="email"]', 'input[placeholder*="Email"]'),
    ),
    FieldRule(
        "appointment_date",
        AssignKind.TEXT,
        ('input[type="date"]', 'input[name*="date" i]', 'input[id*="date" i]'),
        default=DefaultPolicy.ONE_WEEK_OUT,
        default_selectors=('input[type="date"]',),
    ),
    FieldRule(
        "appointment_time",
        AssignKind.SELECT,
        default=DefaultPolicy.FIRST_REAL_OPTION,
        locate=_time_dropdowns,
    ),
    FieldRule(
        "service_type",
        AssignKind.SELECT,
        default=DefaultPolicy.FIRST_REAL_OPTION,
        locate=_service_dropdowns,
    ),
    FieldRule(
        "comments",
        AssignKind.TEXT,
        (
            'textarea[name*="comment"]',
            'textarea[name*="question"]',
            'textarea[placeholder*="Question"]',
            'textarea[placeholder*="Comments"]',
        ),
    ),
)


def pick_option_index(options: Sequence[Mapping[str, Any]], desired: str) -> Optional[int]:
    """Index of the option to select for ``desired``.

    Exact (case-insensitive) text wins over a substring match; with no match,
    or nothing desired, index 1 skips the usual placeholder at index 0.
    """
    wanted = (desired or "").strip().lower()
    if wanted:
        texts = [str(opt.get("text") or "").strip().lower() for opt in options]
        for index, text in enumerate(texts):
            if text == wanted:
                return index
        for index, text in enumerate(texts):
            if wanted in text:
                return index
    if len(options) > 1:
        return 1
    return None


class AdaptiveFormResolver:
    """Field discovery, value assignment and submission for one kind of form.

    The resolver holds settings only; the page is passed to every call so
    several resolvers can share or avoid sharing browsers freely.
    """

    def __init__(
        self,
        settings: BrowserSettings,
        *,
        submitter: Optional[FormSubmitter] = None,
        rules: Sequence[FieldRule] = FIELD_RULES,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.settings = settings
        self.submitter = submitter or FormSubmitter(settings)
        self.rules = tuple(rules)
        self._clock = clock

    @staticmethod
    def _ensure_page(page: Optional[Page]) -> Page:
        if page is None or page.is_closed():
            raise NotInitializedError("Browser not initialized. Call initialize() first.")
        return page

    def form(self, page: Page) -> Locator:
        return page.locator(self.settings.form_selector).first

    def default_appointment_date(self) -> str:
        return (self._clock() + dt.timedelta(days=7)).isoformat()

    async def open_form(self, page: Page, url: Optional[str] = None) -> Locator:
        """Navigate to the form page, wait for the form and scroll it into view."""
        target = url or self.settings.form_url
        logger.info("Navigating to appointment form %s", target)
        await page.goto(target, wait_until="networkidle", timeout=self.settings.timeout_ms)
        await page.wait_for_selector(self.settings.form_selector, timeout=self.settings.form_wait_ms)
        form = self.form(page)
        await form.scroll_into_view_if_needed(timeout=self.settings.form_wait_ms)
        await page.wait_for_timeout(self.settings.scroll_settle_ms)
        return form

    async def snapshot_controls(self, page: Page) -> List[ControlSnapshot]:
        raw = await self.form(page).evaluate(SNAPSHOT_SCRIPT, timeout=self.settings.form_wait_ms)
        return snapshots_from_dom(raw or [])

    async def get_form_fields(self, page: Optional[Page], url: Optional[str] = None) -> Dict[str, str]:
        """Open the form and map each control's inferred name to a descriptor."""
        page = self._ensure_page(page)
        try:
            await self.open_form(page, url)
            fields = build_field_map(await self.snapshot_controls(page))
        except PlaywrightError as exc:
            logger.error("Error getting form fields: %s", exc)
            raise FormFillError(f"Failed to get form fields: {exc}") from exc
        logger.info("Available form fields: %s", fields)
        return fields

    async def inspect_fields(self, page: Optional[Page], url: Optional[str] = None) -> List[FormField]:
        """Like :meth:`get_form_fields` but keeps every control and its display label."""
        page = self._ensure_page(page)
        try:
            await self.open_form(page, url)
            return [to_form_field(control) for control in await self.snapshot_controls(page)]
        except PlaywrightError as exc:
            raise FormFillError(f"Failed to inspect form fields: {exc}") from exc

    async def fill_fields(self, page: Page, data: AppointmentData) -> Dict[str, str]:
        """Write ``data`` into the already opened form; returns what was written."""
        form = self.form(page)
        written: Dict[str, str] = {}
        for rule in self.rules:
            value = getattr(data, rule.key, None) or ""
            if not value and rule.default is DefaultPolicy.SKIP:
                continue
            try:
                result = await self._apply(form, rule, value)
            except Exception as exc:
                logger.info("Could not fill %s: %s", rule.key, exc)
                continue
            if result is not None:
                written[rule.key] = result
        return written

    async def _apply(self, form: Locator, rule: FieldRule, value: str) -> Optional[str]:
        target = await first_visible(rule.candidates(form, has_value=bool(value)))
        if target is None:
            logger.debug("No visible control for %s", rule.key)
            return None

        if rule.kind is AssignKind.SELECT:
            chosen = await self._choose_option(target, value)
            if chosen is not None:
                suffix = "" if value else " (default)"
                logger.info("Selected %s%s: %s", rule.key, suffix, chosen)
            return chosen

        text = value
        if not text and rule.default is DefaultPolicy.ONE_WEEK_OUT:
            text = self.default_appointment_date()
        await target.fill(text, timeout=self.settings.click_timeout_ms)
        logger.info("Filled %s: %s", rule.key, text)
        return text

    async def _choose_option(self, select: Locator, desired: str) -> Optional[str]:
        options = await select.evaluate(OPTIONS_SCRIPT, timeout=self.settings.click_timeout_ms)
        index = pick_option_index(options, desired)
        if index is None:
            return None
        await select.select_option(index=index, timeout=self.settings.click_timeout_ms)
        option = options[index]
        return option.get("text") or option.get("value") or ""

    async def submit(self, page: Optional[Page]) -> SubmitOutcome:
        return await self.submitter.submit(self._ensure_page(page))

    async def fill_appointment_form(
        self,
        page: Optional[Page],
        data: AppointmentData,
        *,
        url: Optional[str] = None,
    ) -> bool:
        """Open, fill and submit the appointment form.

        Returns False when no submit control could be activated. Raises
        :class:`FormFillError` when the page itself misbehaves.
        """
        page = self._ensure_page(page)
        try:
            await self.open_form(page, url)
            logger.info("Filling appointment form...")
            written = await self.fill_fields(page, data)
            logger.info("Filled %d field(s): %s", len(written), ", ".join(written) or "none")
            await self.take_screenshot(page)
        except Exception as exc:
            logger.error("Error filling form: %s", exc)
            await self._capture_quietly(page)
            raise FormFillError(f"Failed to fill appointment form: {exc}") from exc

        outcome = await self.submit(page)
        return outcome.success

    async def take_screenshot(self, page: Optional[Page]) -> Path:
        page = self._ensure_page(page)
        path = await save_screenshot(page, self.settings.screenshot_dir)
        logger.info("Screenshot saved: %s", path)
        return path

    async def _capture_quietly(self, page: Page) -> None:
        try:
            await self.take_screenshot(page)
        except PlaywrightError as exc:
            logger.warning("Diagnostic screenshot failed: %s", exc)


__all__ = [
    "AdaptiveFormResolver",
    "AssignKind",
    "DefaultPolicy",
    "FIELD_RULES",
    "FieldRule",
    "first_visible",
    "pick_option_index",
]
