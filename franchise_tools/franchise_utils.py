"""Helpers shared by the franchise command line tools."""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Iterable

from .errors import UnsupportedGameYearError
from .franchise import Franchise
from .lookups import LOOKUP_DIR

EXIT_OK = 0
EXIT_NOTHING_TO_DO = 1
EXIT_INVALID_INPUT = 2
EXIT_OUT_OF_SPACE = 3


def format_list_string(values: Iterable[object]) -> str:
    items = [str(value) for value in values]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


def get_random_number(rng: random.Random, minimum: int, maximum: int) -> int:
    """Random integer in ``[minimum, maximum]``, both ends included."""
    return rng.randint(minimum, maximum)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("franchise", help="Path to the franchise snapshot to update")
    parser.add_argument("--output", default=None, help="Write the result here instead of overwriting the input")
    parser.add_argument("--dry-run", action="store_true", help="Apply changes in memory only; do not save")
    parser.add_argument("--lookup-dir", default=str(LOOKUP_DIR), help="Directory holding the JSON lookup tables")
    parser.add_argument("--debug", action="store_true", help="Print per-record diagnostics")


def open_franchise(path: Path | str, valid_years: Iterable[int]) -> Franchise:
    years = tuple(valid_years)
    franchise = Franchise.load(path)
    if franchise.game_year not in years:
        raise UnsupportedGameYearError(
            f"Selected franchise file is NOT a Madden {format_list_string(years)} franchise file "
            f"(found Madden {franchise.game_year})."
        )
    return franchise


def save_franchise(franchise: Franchise, output: Path | str | None = None, dry_run: bool = False) -> Path | None:
    if dry_run:
        print("Dry run: franchise file was not saved.")
        return None
    target = franchise.save(output)
    print(f"Saved franchise file: {target}")
    return target


def debug(enabled: bool, message: str) -> None:
    if enabled:
        print(f"debug: {message}", file=sys.stderr)
