#!/usr/bin/env python3
"""Reshuffle the top worn by every head coach.

Tops come from the coach top lookup. Coaches listed in the override lookup
always get their override item; free agents get any top; coaches whose first
scheduled game is hot rarely get a polo, everyone else never does.

Examples:
  franchise-wardrobe saves/CAREER-M25.json
  franchise-wardrobe saves/CAREER-M25.json --seed 7 --dry-run --debug
"""

from __future__ import annotations

import argparse
import copy
import random
import sys
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from franchise_tools.character_visuals import find_loadout, find_loadout_element, loadout_elements
from franchise_tools.errors import FranchiseError
from franchise_tools.franchise import Franchise, Record, Table
from franchise_tools.franchise_utils import (
    EXIT_INVALID_INPUT,
    EXIT_NOTHING_TO_DO,
    EXIT_OK,
    add_common_arguments,
    debug,
    format_list_string,
    get_random_number,
    open_franchise,
    save_franchise,
)
from franchise_tools.lookups import POLO_KEY, WardrobeLookups, load_wardrobe_lookups
from franchise_tools.references import is_zero_reference, reference_row

VALID_YEARS = (25,)

APPAREL_LOADOUT = "CoachApparel"
TOP_SLOT_TYPE = "JerseyStyle"
HEAD_COACH_POSITION = "HeadCoach"
FREE_AGENT_STATUS = "FreeAgent"
PRO_ASSET_SUFFIX = "_C_PRO"

VALID_WEEK_TYPES = (
    "PreSeason",
    "RegularSeason",
    "WildcardPlayoff",
    "DivisionalPlayoff",
    "ConferencePlayoff",
    "SuperBowl",
)
WARM_TEMPERATURE = 80
INVALID_WEATHER = "Invalid_"


@dataclass
class WardrobeSummary:
    head_coaches: int = 0
    updated: int = 0
    skipped: int = 0
    reasons: Counter[str] = field(default_factory=Counter)


def enumerate_head_coaches(coach_table: Table) -> list[int]:
    rows: list[int] = []
    for record in coach_table.records:
        if record.is_empty:
            continue
        if is_zero_reference(record["CharacterVisuals"]):
            continue
        if record["Position"] != HEAD_COACH_POSITION:
            continue
        if is_zero_reference(record["OffensivePlaybook"]) and is_zero_reference(record["DefensivePlaybook"]):
            continue
        rows.append(record.index)
    return rows


def lookup_override(asset_name: str, overrides: dict[str, str]) -> str | None:
    for candidate in (asset_name, asset_name.replace(PRO_ASSET_SUFFIX, "", 1), asset_name + PRO_ASSET_SUFFIX):
        if candidate in overrides:
            return overrides[candidate]
    return None


def find_team_row(team_table: Table, team_index: int) -> int | None:
    for record in team_table.records:
        if not record.is_empty and record["TeamIndex"] == team_index:
            return record.index
    return None


def is_warm_weather_coach(franchise: Franchise, team_index: int) -> bool:
    """True when the team's first played game is hot with real weather."""
    season_info = franchise.get_table("SeasonInfo")
    if not season_info.records or season_info.records[0]["CurrentWeekType"] not in VALID_WEEK_TYPES:
        return False

    team_row = find_team_row(franchise.get_table("Team"), team_index)
    if team_row is None:
        return False

    for game in franchise.get_table("SeasonGame").records:
        if game.is_empty or is_zero_reference(game["AwayPlayerStatCache"]):
            continue
        home_row = None if is_zero_reference(game["HomeTeam"]) else reference_row(game["HomeTeam"])
        away_row = None if is_zero_reference(game["AwayTeam"]) else reference_row(game["AwayTeam"])
        if team_row not in (home_row, away_row):
            continue
        return game["Temperature"] > WARM_TEMPERATURE and game["Weather"] != INVALID_WEATHER

    return False


def choose_any_top(tops: dict[str, str], rng: random.Random) -> str:
    keys = list(tops)
    return tops[keys[get_random_number(rng, 0, len(keys) - 1)]]


def choose_warm_weather_top(tops: dict[str, str], rng: random.Random) -> str:
    keys = list(tops)
    while True:
        roll = get_random_number(rng, 0, 2)
        key = keys[get_random_number(rng, 0, len(keys) - 1)]
        # A polo draw only sticks on one roll in three.
        if key != POLO_KEY or roll == 2:
            return tops[key]


def choose_cold_weather_top(tops: dict[str, str], rng: random.Random) -> str:
    keys = [key for key in tops if key != POLO_KEY]
    return tops[keys[get_random_number(rng, 0, len(keys) - 1)]]


def choose_coach_top(
    record: Record,
    franchise: Franchise,
    lookups: WardrobeLookups,
    rng: random.Random,
) -> tuple[str, str]:
    """Return ``(item, reason)`` for one head coach."""
    override = lookup_override(record["AssetName"], lookups.overrides)
    if override is not None:
        return override, "override"

    if record["ContractStatus"] == FREE_AGENT_STATUS:
        return choose_any_top(lookups.tops, rng), "free_agent"

    if is_warm_weather_coach(franchise, record["TeamIndex"]):
        return choose_warm_weather_top(lookups.tops, rng), "warm_weather"

    return choose_cold_weather_top(lookups.tops, rng), "standard"


def assign_coach_gear(
    coach: Record,
    item: str,
    slot_type: str,
    visuals_table: Table,
    debug_enabled: bool = False,
) -> bool:
    visuals_record = visuals_table.franchise.resolve_reference(coach["CharacterVisuals"])
    if visuals_record is None or visuals_record.table is not visuals_table:
        debug(debug_enabled, f"Coach {coach.index} has no CharacterVisuals row. Skipping assignment.")
        return False
    visuals = copy.deepcopy(visuals_record["RawData"])

    loadout = find_loadout(visuals, APPAREL_LOADOUT)
    if loadout is None:
        debug(debug_enabled, f"Coach {coach.index} does not have equipment loadouts. Skipping assignment.")
        return False

    element = find_loadout_element(loadout, slot_type)
    if element is None:
        loadout_elements(loadout).append({"itemAssetName": item, "slotType": slot_type})
    else:
        element["itemAssetName"] = item

    visuals_record["RawData"] = visuals
    return True


def shuffle_coach_wardrobe(
    franchise: Franchise,
    lookups: WardrobeLookups,
    rng: random.Random,
    debug_enabled: bool = False,
) -> WardrobeSummary:
    coach_table = franchise.get_table("Coach")
    visuals_table = franchise.get_table("CharacterVisuals")
    summary = WardrobeSummary()

    for row in enumerate_head_coaches(coach_table):
        summary.head_coaches += 1
        record = coach_table.records[row]
        item, reason = choose_coach_top(record, franchise, lookups, rng)
        if assign_coach_gear(record, item, TOP_SLOT_TYPE, visuals_table, debug_enabled):
            summary.updated += 1
            summary.reasons[reason] += 1
            debug(debug_enabled, f"coach {row} ({record['AssetName']}) -> {item} [{reason}]")
        else:
            summary.skipped += 1

    return summary


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Update the wardrobe of all head coaches")
    add_common_arguments(parser)
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible item choices")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    print(
        "This program will update wardrobe for all head coaches. "
        f"Only Madden {format_list_string(VALID_YEARS)} franchise files are supported.\n"
    )

    try:
        lookups = load_wardrobe_lookups(Path(args.lookup_dir))
        franchise = open_franchise(args.franchise, VALID_YEARS)
        summary = shuffle_coach_wardrobe(franchise, lookups, random.Random(args.seed), debug_enabled=args.debug)
    except (OSError, FranchiseError) as exc:
        print(f"wardrobe-error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if summary.head_coaches == 0:
        print("There are no coaches in your franchise file.")
        return EXIT_NOTHING_TO_DO

    print("Coach wardrobe updated successfully.")
    print(f" - Head coaches: {summary.head_coaches}")
    print(f" - Updated: {summary.updated}")
    print(f" - Skipped (no apparel loadout): {summary.skipped}")
    for reason, count in sorted(summary.reasons.items()):
        print(f"   {reason}: {count}")

    try:
        save_franchise(franchise, args.output, args.dry_run)
    except OSError as exc:
        print(f"franchise-save-error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
