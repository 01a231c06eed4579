"""Locator helpers shared by field assignment and submission."""

from __future__ import annotations

from typing import Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator


async def first_visible(candidates: Sequence[Locator]) -> Optional[Locator]:
    """First visible element across ``candidates``, in priority then document order.

    Every match of a candidate is checked, so a hidden duplicate earlier in
    the DOM does not mask a visible one after it.
    """
    for candidate in candidates:
        for handle in await candidate.all():
            try:
                if await handle.is_visible():
                    return handle
            except PlaywrightError:
                continue
    return None
