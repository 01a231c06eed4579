"""Interactive CLI for the voice appointment booking demo."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from voicebook.app.booking import AppointmentBookingApp
from voicebook.core.errors import ConfigurationError, VoicebookError
from voicebook.core.models import DEMO_APPOINTMENT, FormField
from voicebook.core.settings import AppSettings
from voicebook.utils.logging import get_logger


logger = get_logger("VoicebookCLI")
console = Console()

MENU = """
[bold]AI-Powered Dentist Appointment Booking[/bold]
  v  Record voice command
  t  Test with manual data
  f  View form fields
  s  Take screenshot
  q  Exit
"""

CHOICES = {
    "v": "voice", "voice": "voice",
    "t": "test", "test": "test",
    "f": "fields", "fields": "fields",
    "s": "screenshot", "screenshot": "screenshot",
    "q": "quit", "quit": "quit", "exit": "quit",
}


def load_settings(args: argparse.Namespace) -> AppSettings:
    settings = AppSettings.from_file(args.config) if args.config else AppSettings.from_env()
    if args.headless:
        settings.browser.headless = True
    if args.url:
        settings.browser.form_url = args.url
    return settings


def fields_table(fields: List[FormField]) -> Table:
    table = Table(title="Available form fields")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Label")
    table.add_column("Placeholder")
    table.add_column("Options")
    for item in fields:
        options = ", ".join(opt.text or opt.value for opt in item.options if opt.text or opt.value)
        name = item.name if item.visible else f"{item.name} (hidden)"
        table.add_row(str(item.index), name, item.input_type, item.label, item.placeholder, options)
    return table


def _ask(prompt: str) -> str:
    # Blocking read; nothing else runs on the loop while the menu waits
    try:
        answer = console.input(prompt)
    except EOFError:
        return "q"
    return answer.strip().lower()


async def run_menu(app: AppointmentBookingApp) -> None:
    console.print(MENU)
    while True:
        choice = CHOICES.get(_ask("Enter your choice (v/t/f/s/q): "))
        if choice == "quit":
            console.print("Goodbye!")
            return
        if choice == "voice":
            ok = await app.process_voice_command()
            console.print("Voice command processed successfully!" if ok else "Voice command processing failed.")
        elif choice == "test":
            ok = await app.test_with_manual_data(DEMO_APPOINTMENT)
            console.print("Manual test completed successfully!" if ok else "Manual test failed.")
        elif choice == "fields":
            try:
                console.print(fields_table(await app.inspect_fields()))
            except VoicebookError as exc:
                logger.error("Error getting form fields: %s", exc)
        elif choice == "screenshot":
            try:
                console.print(f"Screenshot saved: {await app.take_screenshot()}")
            except Exception as exc:
                logger.error("Error taking screenshot: %s", exc)
        else:
            console.print("Invalid choice. Please enter v, t, f, s, or q.")
        console.rule()


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Book dentist appointments by voice.")
    parser.add_argument("--config", type=Path, default=None, help="Path to settings YAML")
    parser.add_argument("--headless", action="store_true", help="Run Chromium headless")
    parser.add_argument("--url", default=None, help="Override the appointment form URL")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1

    app = AppointmentBookingApp(settings)
    try:
        try:
            await app.initialize()
        except Exception as exc:
            logger.error("Failed to start the browser: %s", exc)
            return 1
        await run_menu(app)
    finally:
        await app.cleanup()
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\nReceived interrupt. Shutting down...")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
