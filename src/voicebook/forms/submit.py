"""Submission cascade for forms whose submit control is not known up front.

Strategies, most specific first:

1. typed/common selectors inside the form
2. button text (Submit / Book / Send / Confirm) anywhere on the page
3. the last ``<button>`` of the form
4. an in-page script that calls the native ``click()``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from voicebook.core.settings import BrowserSettings
from voicebook.forms.cascade import FirstSuccessRunner, Strategy
from voicebook.forms.locate import first_visible
from voicebook.utils.artifacts import save_screenshot
from voicebook.utils.logging import get_logger


logger = get_logger("FormSubmitter")

SUBMIT_WORDS = ("Submit", "Book", "Send", "Confirm")

# Runs with the form selector as argument; returns True when something was clicked.
SCRIPT_CLICK = """
(formSelector) => {
  const form = document.querySelector(formSelector);
  if (!form) return false;
  const buttons = Array.from(form.querySelectorAll('button, input[type="submit"]'));
  const submitButton = buttons.find((btn) => {
    const text = (btn.textContent || btn.value || '').toLowerCase();
    const type = (btn.getAttribute('type') || '').toLowerCase();
    return type === 'submit' || text.includes('submit') || text.includes('book') || text.includes('send');
  }) || buttons[buttons.length - 1];
  if (!submitButton) return false;
  submitButton.click();
  return true;
}
"""


@dataclass
class SubmitContext:
    page: Page
    form: Locator
    settings: BrowserSettings


class SubmitFailure(str, Enum):
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class SubmitOutcome:
    """Result of a submission attempt.

    ``reason`` tells "no control found" apart from an unexpected fault.
    """

    strategy: Optional[str] = None
    reason: Optional[SubmitFailure] = None
    attempted: List[str] = field(default_factory=list)
    error: Optional[str] = None
    screenshot: Optional[Path] = None

    @property
    def success(self) -> bool:
        return self.strategy is not None

    def __bool__(self) -> bool:
        return self.success


async def activate(context: SubmitContext, target: Locator) -> None:
    """Scroll ``target`` into view, let the layout settle, then click with a bounded wait."""
    settings = context.settings
    await target.scroll_into_view_if_needed(timeout=settings.click_timeout_ms)
    await context.page.wait_for_timeout(settings.click_settle_ms)
    await target.click(timeout=settings.click_timeout_ms)


LocatorFactory = Callable[[SubmitContext], Locator]


class SelectorStrategy:
    """Clicks the first visible element among an ordered list of locators.

    Candidates are tried in priority order and every match of a candidate is
    scanned, so hidden duplicates earlier in the DOM are passed over.
    """

    def __init__(self, name: str, candidates: Sequence[Tuple[str, LocatorFactory]]) -> None:
        self.name = name
        self._candidates = list(candidates)

    async def attempt(self, context: SubmitContext) -> bool:
        for description, factory in self._candidates:
            target = await first_visible([factory(context)])
            if target is None:
                continue
            logger.info("Found button with selector: %s", description)
            try:
                await activate(context, target)
            except PlaywrightError as exc:
                logger.debug("Click on %s failed: %s", description, exc)
                continue
            return True
        return False


class LastButtonStrategy:
    """Clicks the last ``<button>`` of the form, visible or not."""

    name = "last-form-button"

    async def attempt(self, context: SubmitContext) -> bool:
        buttons = await context.form.locator("button").all()
        logger.info("Found %d buttons in form", len(buttons))
        if not buttons:
            return False
        last = buttons[-1]
        text = (await last.text_content() or "").strip()
        logger.info('Attempting to click button with text: "%s"', text)
        await activate(context, last)
        return True


class ScriptClickStrategy:
    """Last resort: click via the DOM, bypassing Playwright's actionability checks."""

    name = "script-click"

    async def attempt(self, context: SubmitContext) -> bool:
        clicked = await context.page.evaluate(SCRIPT_CLICK, context.settings.form_selector)
        return bool(clicked)


def common_selector_strategy() -> SelectorStrategy:
    return SelectorStrategy(
        "common-selectors",
        [
            ('button[type="submit"]', lambda c: c.form.locator('button[type="submit"]')),
            ('input[type="submit"]', lambda c: c.form.locator('input[type="submit"]')),
            ("form button (last)", lambda c: c.form.locator("button").last),
            ("form button", lambda c: c.form.locator("button")),
        ],
    )


def _text_candidate(selector: str) -> Tuple[str, LocatorFactory]:
    return selector, lambda c: c.page.locator(selector)


def text_match_strategy(words: Sequence[str] = SUBMIT_WORDS) -> SelectorStrategy:
    candidates = [_text_candidate(f'button:has-text("{word}")') for word in words]
    candidates += [_text_candidate(f'[role="button"]:has-text("{word}")') for word in words]
    return SelectorStrategy("button-text", candidates)


def default_submit_strategies() -> List[Strategy[SubmitContext]]:
    return [
        common_selector_strategy(),
        text_match_strategy(),
        LastButtonStrategy(),
        ScriptClickStrategy(),
    ]


class FormSubmitter:
    """Runs the submission cascade against the configured form."""

    def __init__(
        self,
        settings: BrowserSettings,
        *,
        strategies: Optional[Sequence[Strategy[SubmitContext]]] = None,
    ) -> None:
        self.settings = settings
        self._runner: FirstSuccessRunner[SubmitContext] = FirstSuccessRunner(
            strategies if strategies is not None else default_submit_strategies(),
            label="submit",
        )

    @property
    def strategies(self) -> List[Strategy[SubmitContext]]:
        return self._runner.strategies

    async def submit(self, page: Page) -> SubmitOutcome:
        context = SubmitContext(
            page=page,
            form=page.locator(self.settings.form_selector).first,
            settings=self.settings,
        )
        logger.info("Submitting form...")
        try:
            result = await self._runner.run(context)
        except Exception as exc:
            logger.error("Error clicking submit button: %s", exc)
            return SubmitOutcome(
                reason=SubmitFailure.ERROR,
                error=str(exc),
                screenshot=await self._capture(page),
            )

        if result.succeeded:
            # Give confirmations and redirects a moment before capturing them
            await page.wait_for_timeout(self.settings.post_submit_wait_ms)
            logger.info("Form submitted via %s", result.winner)
            return SubmitOutcome(
                strategy=result.winner,
                attempted=result.attempted,
                screenshot=await self._capture(page),
            )

        if result.errors:
            logger.error("Submit strategies failed unexpectedly: %s", "; ".join(result.errors))
            return SubmitOutcome(
                reason=SubmitFailure.ERROR,
                attempted=result.attempted,
                error="; ".join(result.errors),
                screenshot=await self._capture(page),
            )

        logger.error("Could not find or click submit button with any strategy")
        return SubmitOutcome(reason=SubmitFailure.NOT_FOUND, attempted=result.attempted)

    async def _capture(self, page: Page) -> Optional[Path]:
        try:
            path = await save_screenshot(page, self.settings.screenshot_dir)
        except PlaywrightError as exc:
            logger.warning("Failed to capture screenshot: %s", exc)
            return None
        logger.info("Screenshot saved: %s", path)
        return path
