"""
Command-line interface for logging meals and viewing history.

Usage:
    nutrisnap snap <image> [--yes]
    nutrisnap today
    nutrisnap week
    nutrisnap calendar [--month YYYY-MM]
    nutrisnap day <YYYY-MM-DD>
    nutrisnap theme [light|dark|toggle]
"""

import argparse
import asyncio
import logging
import mimetypes
from collections.abc import Callable, Sequence
from datetime import date
from pathlib import Path

from nutrisnap.app_logging import configure_logging
from nutrisnap.containers import AppContainer, build_container
from nutrisnap.domain.entries import FoodEntry
from nutrisnap.domain.errors import (
    ConcurrentAnalysisError,
    GatewayError,
    NutriSnapError,
)
from nutrisnap.domain.preferences import Theme
from nutrisnap.domain.stats import DayStats
from nutrisnap.services.analysis import detect_mime_type
from nutrisnap.services.stats import macro_split

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nutrisnap",
        description="Photograph meals and track their nutrients",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    snap_parser = subparsers.add_parser("snap", help="Analyze a meal photo")
    snap_parser.add_argument("image", help="Path to the photo")
    snap_parser.add_argument(
        "--yes", action="store_true", help="Save without asking for confirmation"
    )

    subparsers.add_parser("today", help="Show today's totals")
    subparsers.add_parser("week", help="Show the last seven days")

    calendar_parser = subparsers.add_parser("calendar", help="Show a month of history")
    calendar_parser.add_argument("--month", help="Month as YYYY-MM")

    day_parser = subparsers.add_parser("day", help="Show one day's meals")
    day_parser.add_argument("date", help="Date as YYYY-MM-DD")

    theme_parser = subparsers.add_parser("theme", help="Show or change the theme")
    theme_parser.add_argument(
        "value", nargs="?", choices=["light", "dark", "toggle"], default=None
    )
    return parser


async def cmd_snap(
    args: argparse.Namespace, container: AppContainer, prompt: Prompt
) -> int:
    """Analyze a photo, show the estimate and save it on confirmation."""
    path = Path(args.image)
    if not path.is_file():
        print(f"Error: Image not found: {path}")
        return 1
    image_bytes = path.read_bytes()
    guessed = mimetypes.guess_type(path.name)[0]
    if guessed and guessed.startswith("image/"):
        mime_type = guessed
    else:
        mime_type = detect_mime_type(image_bytes)

    controller = container.session_controller
    print("Analyzing...")
    try:
        entry = await controller.capture(image_bytes, mime_type)
    except ConcurrentAnalysisError:
        return 0
    except GatewayError as exc:
        print(f"Error: {exc}")
        return 1

    _print_entry_detail(entry)
    if not args.yes:
        answer = prompt("Save this meal? [y/N] ").strip().lower()
        if answer not in {"y", "yes"}:
            controller.cancel()
            print("Discarded.")
            return 0

    result = controller.confirm()
    if not result.persisted:
        print("Saved for this session, but writing history to disk failed.")
        return 1
    print("Saved.")
    return 0


def cmd_today(_args: argparse.Namespace, container: AppContainer) -> int:
    """Print today's summary and recent meals."""
    snapshot = container.entry_store.snapshot()
    stats = container.stats_service.stats_for_today(snapshot)
    print(f"Today ({stats.key})")
    _print_day_totals(stats)

    print()
    print("Recent meals")
    recent = container.entry_store.recent()
    if not recent:
        print("  No meals recorded yet.")
    for entry in recent:
        print(f"  {entry.name}: {entry.calories} kcal")
    return 0


def cmd_week(_args: argparse.Namespace, container: AppContainer) -> int:
    """Print the trailing week."""
    snapshot = container.entry_store.snapshot()
    for summary in container.stats_service.weekly_stats(snapshot):
        print(
            f"{summary.label:<4} {summary.day.isoformat()}  "
            f"{summary.total_calories:>5} kcal  "
            f"P {summary.protein}g  C {summary.carbs}g  F {summary.fats}g"
        )
    return 0


def cmd_calendar(args: argparse.Namespace, container: AppContainer) -> int:
    """Print a month of daily calorie totals."""
    year = month = None
    if args.month:
        try:
            year_text, month_text = args.month.split("-")
            year, month = int(year_text), int(month_text)
        except ValueError:
            print(f"Error: Invalid month: {args.month}")
            return 1
        if not 1 <= month <= 12:  # noqa: PLR2004
            print(f"Error: Invalid month: {args.month}")
            return 1

    snapshot = container.entry_store.snapshot()
    history = container.stats_service.month_calendar(snapshot, year=year, month=month)
    print(f"{history.year}-{history.month:02d}")
    for cell in history.days:
        if not cell.has_data and not cell.is_today:
            continue
        marker = "*" if cell.is_today else " "
        print(
            f"{marker}{cell.day_of_month:>2}  {cell.stats.total_calories:>5} kcal  "
            f"{len(cell.stats.entries)} meal(s)"
        )
    return 0


def cmd_day(args: argparse.Namespace, container: AppContainer) -> int:
    """Print one day's totals and meals."""
    try:
        day = date.fromisoformat(args.date)
    except ValueError:
        print(f"Error: Invalid date: {args.date}")
        return 1
    stats = container.stats_service.stats_for_date(
        day, container.entry_store.snapshot()
    )
    print(stats.key)
    _print_day_totals(stats)
    for entry in stats.entries:
        print(f"  {entry.name}: {entry.calories} kcal - {entry.analysis}")
    return 0


def cmd_theme(args: argparse.Namespace, container: AppContainer) -> int:
    """Show or change the display theme."""
    preferences = container.preference_service
    if args.value == "toggle":
        theme = preferences.toggle_theme()
    elif args.value is not None:
        theme = Theme(args.value)
        preferences.set_theme(theme)
    else:
        theme = preferences.theme()
    print(f"Theme: {theme.value}")
    return 0


def _print_day_totals(stats: DayStats) -> None:
    print(f"  {stats.total_calories} kcal")
    print(
        f"  Protein {stats.total_protein}g  "
        f"Carbs {stats.total_carbs}g  Fats {stats.total_fats}g"
    )
    split = macro_split(stats)
    if split is not None:
        print(
            f"  Split: protein {split.protein:.0%}  "
            f"carbs {split.carbs:.0%}  fats {split.fats:.0%}"
        )


def _print_entry_detail(entry: FoodEntry) -> None:
    print(f"{entry.name}: {entry.calories} kcal")
    print(f"  Protein {entry.protein}g  Carbs {entry.carbs}g  Fats {entry.fats}g")
    print(f"  {entry.analysis}")


def main(
    argv: Sequence[str] | None = None,
    container: AppContainer | None = None,
    prompt: Prompt = input,
) -> int:
    """Run the CLI and return its exit code."""
    configure_logging()
    args = build_parser().parse_args(argv)
    app = container or build_container()
    return asyncio.run(_run(args, app, prompt))


async def _run(args: argparse.Namespace, app: AppContainer, prompt: Prompt) -> int:
    try:
        app.entry_store.load()
        if args.command == "snap":
            return await cmd_snap(args, app, prompt)
        handlers = {
            "today": cmd_today,
            "week": cmd_week,
            "calendar": cmd_calendar,
            "day": cmd_day,
            "theme": cmd_theme,
        }
        return handlers[args.command](args, app)
    except NutriSnapError as exc:
        logger.error("Command %s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        return 1
    finally:
        await app.close_resources()


if __name__ == "__main__":
    raise SystemExit(main())
