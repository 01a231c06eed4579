"""Helpers to persist screenshots for debugging."""

from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from typing import Optional


def screenshots_dir(root: Optional[Path] = None) -> Path:
    path = (root or Path(os.getenv("VOICEBOOK_SCREENSHOTS", "screenshots"))).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def screenshot_path(root: Optional[Path] = None, label: str = "appointment-form") -> Path:
    # ISO timestamp with ':' and '.' replaced so the name is portable
    ts = dt.datetime.now(dt.timezone.utc).isoformat().replace(":", "-").replace(".", "-")
    return screenshots_dir(root) / f"{label}-{ts}.png"


async def save_screenshot(page, root: Optional[Path] = None, label: str = "appointment-form") -> Path:
    path = screenshot_path(root, label)
    await page.screenshot(path=str(path), full_page=True)
    return path
