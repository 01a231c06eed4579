"""Browser session management."""

from .play import BrowserSession, open_page

__all__ = ["BrowserSession", "open_page"]
