#!/usr/bin/env python3
"""Regenerate CharacterVisuals rows for every player and coach.

Examples:
  franchise-visuals saves/CAREER-M24.json
  franchise-visuals saves/CAREER-M24.json --output saves/CAREER-M24-visuals.json --debug
"""

from __future__ import annotations

import argparse
import copy
import sys
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

from franchise_tools.errors import FranchiseError, SchemaError, TableCapacityError
from franchise_tools.franchise import Franchise, Record, Table
from franchise_tools.franchise_utils import (
    EXIT_INVALID_INPUT,
    EXIT_OK,
    EXIT_OUT_OF_SPACE,
    add_common_arguments,
    debug,
    open_franchise,
    save_franchise,
)
from franchise_tools.lookups import VisualsLookups, load_visuals_lookups
from franchise_tools.references import encode_reference, is_zero_reference

VALID_YEARS = (24,)

CHARACTER_VISUALS_UNIQUE_ID = 1429178382
PLAYER_UNIQUE_ID = 1612938518
COACH_UNIQUE_ID = 1860529246

MORPH_LOADOUT = "Base"
GEAR_LOADOUT = "Gear"

# Gear slots in the order the player table stores them.
PLAYER_GEAR_FIELDS: dict[str, str] = {
    "LeftArm": "PLYR_LEFTARMSLEEVE",
    "RightArm": "PLYR_RIGHTARMSLEEVE",
    "LeftElbowGear": "PLYR_LEFTELBOWGEAR",
    "RightElbowGear": "PLYR_RIGHTELBOWGEAR",
    "LeftHandgear": "PLYR_LEFTHAND",
    "RightHandgear": "PLYR_RIGHTHAND",
    "HandWarmer": "PLYR_HANDWARMER",
    "Facemask": "PLYR_FACEMASK",
    "GearHelmet": "PLYR_HELMET",
    "FacePaint": "PLYR_FACE_PAINT",
    "Visor": "PLYR_VISOR",
    "JerseyStyle": "PLYR_JERSEYSTYLE",
    "Mouthpiece": "PLYR_MOUTHPIECE",
    "Neckpad": "PLYR_NECKPAD",
    "LeftShoe": "PLYR_LEFTSHOE",
    "RightShoe": "PLYR_RIGHTSHOE",
    "GearSocks": "PLYR_SOCK_HEIGHT",
    "LeftSpat": "PLYR_LEFTSPAT",
    "RightSpat": "PLYR_RIGHTSPAT",
    "Towel": "PLYR_TOWEL",
    "LeftWristGear": "PLYR_LEFTWRIST",
    "RightWristGear": "PLYR_RIGHTWRIST",
    "ThighGear": "PLYR_THIGHGEAR",
    "KneeItem": "PLYR_KNEE",
    "FlakJacket": "PLYR_FLAKJACKET",
    "Backplate": "PLYR_BACKPLATE",
    "Shoulderpads": "PLYR_SHOULDERPAD",
}
VISUAL_GEAR_KEYS: tuple[str, ...] = tuple(PLAYER_GEAR_FIELDS)

# Morph slot -> MetaMorph_<stem>Base / MetaMorph_<stem>Barycentric
PLAYER_MORPH_STEMS: dict[str, str] = {
    "ArmSize": "Arms",
    "CalfBlend": "Calfs",
    "Chest": "Chest",
    "Feet": "Feet",
    "Glute": "Glutes",
    "Gut": "Gut",
    "Thighs": "Thighs",
}
VISUAL_MORPH_KEYS: tuple[str, ...] = tuple(PLAYER_MORPH_STEMS)

GEAR_MORPH_AMOUNT_FIELDS: dict[str, str] = {
    "FlakJacket": "MetaMorph_FlakJacketAmount",
    "Backplate": "MetaMorph_BackPlateAmount",
}

PLAYER_CONTRACT_STATUS_IGNORE = ("None", "Deleted")
DEFAULT_BODY_TYPE = "Standard"


@dataclass
class CoachValues:
    generic_head_name: str
    skin_tone: int
    body_type: str


@dataclass
class VisualsSummary:
    coaches: int = 0
    players: int = 0
    new_rows: int = 0


def _dict_items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def find_loadout(visuals: dict[str, Any], category: str) -> dict[str, Any] | None:
    for loadout in _dict_items(visuals.get("loadouts")):
        if loadout.get("loadoutCategory") == category:
            return loadout
    return None


def find_loadout_element(loadout: dict[str, Any], slot_type: str) -> dict[str, Any] | None:
    for element in _dict_items(loadout.get("loadoutElements")):
        if element.get("slotType") == slot_type:
            return element
    return None


def loadout_elements(loadout: dict[str, Any]) -> list[Any]:
    """The loadout's element list, replaced with an empty one when malformed."""
    if not isinstance(loadout.get("loadoutElements"), list):
        loadout["loadoutElements"] = []
    return loadout["loadoutElements"]


def _ensure_loadout(visuals: dict[str, Any], category: str, loadout_type: str) -> dict[str, Any]:
    loadout = find_loadout(visuals, category)
    if loadout is None:
        loadout = {"loadoutType": loadout_type, "loadoutCategory": category, "loadoutElements": []}
        if not isinstance(visuals.get("loadouts"), list):
            visuals["loadouts"] = []
        visuals["loadouts"].append(loadout)
    loadout_elements(loadout)
    return loadout


def _loadout_type(visuals: dict[str, Any]) -> str:
    loadouts = _dict_items(visuals.get("loadouts")) or [{}]
    return str(loadouts[0].get("loadoutType") or "PlayerOnField")


def _round_morph(value: float) -> float:
    # Exact halves round up, not to even.
    return float(Decimal(float(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def get_player_gear_values(record: Record) -> list[str]:
    return [record[PLAYER_GEAR_FIELDS[key]] for key in VISUAL_GEAR_KEYS]


def get_player_head_values(record: Record, player_visuals: dict[str, Any]) -> tuple[str, int, int]:
    head_name = record["PLYR_GENERICHEAD"]
    generic_head = int(player_visuals["genericHeads"].get(head_name, 0))
    return head_name, generic_head, record["SkinTone"]


def get_player_morph_values(record: Record) -> list[float]:
    """Base and barycentric value for each morph key, back to back."""
    values: list[float] = []
    for key in VISUAL_MORPH_KEYS:
        stem = PLAYER_MORPH_STEMS[key]
        values.append(_round_morph(record[f"MetaMorph_{stem}Base"]))
        values.append(_round_morph(record[f"MetaMorph_{stem}Barycentric"]))
    return values


def get_coach_values(record: Record) -> CoachValues:
    return CoachValues(
        generic_head_name=record["GenericHeadAssetName"],
        skin_tone=record["SkinTone"],
        body_type=record["BodyType"],
    )


def update_gear_visuals(
    slot_type: str,
    gear_value: str,
    player_visuals: dict[str, Any],
    visuals: dict[str, Any],
    morph_amount: float | None = None,
) -> dict[str, Any]:
    loadout = _ensure_loadout(visuals, GEAR_LOADOUT, _loadout_type(visuals))
    element = find_loadout_element(loadout, slot_type)
    item = player_visuals["gear"].get(slot_type, {}).get(gear_value)

    if not item:
        # No gear in this slot.
        if element is not None:
            loadout["loadoutElements"].remove(element)
        return visuals

    if element is None:
        element = {"slotType": slot_type}
        loadout["loadoutElements"].append(element)
    element["itemAssetName"] = item
    if morph_amount is not None:
        element["blends"] = [{"baseBlend": morph_amount, "barycentricBlend": 0.0}]
    return visuals


def update_morph_values(slot_type: str, base_morph: float, barycentric_morph: float, visuals: dict[str, Any]) -> dict[str, Any]:
    loadout = _ensure_loadout(visuals, MORPH_LOADOUT, _loadout_type(visuals))
    element = find_loadout_element(loadout, slot_type)
    if element is None:
        element = {"slotType": slot_type}
        loadout["loadoutElements"].append(element)
    element["blends"] = [{"baseBlend": base_morph, "barycentricBlend": barycentric_morph}]
    return visuals


def update_coach_visuals(
    values: CoachValues,
    coach_visuals: dict[str, Any],
    visuals: dict[str, Any],
    morph_keys: tuple[str, ...] = VISUAL_MORPH_KEYS,
) -> dict[str, Any]:
    visuals["genericHeadName"] = values.generic_head_name
    visuals["genericHead"] = int(coach_visuals["genericHeads"].get(values.generic_head_name, 0))
    visuals["skinTone"] = values.skin_tone

    body_types = coach_visuals["bodyTypes"]
    preset = body_types.get(values.body_type) or body_types.get(DEFAULT_BODY_TYPE) or {}
    for key in morph_keys:
        pair = preset.get(key)
        if not pair:
            continue
        update_morph_values(key, _round_morph(pair[0]), _round_morph(pair[1]), visuals)
    return visuals


def _blends_are_empty(blends: Any) -> bool:
    if not blends:
        return True
    return all(
        not blend.get("baseBlend") and not blend.get("barycentricBlend")
        for blend in blends
        if isinstance(blend, dict)
    )


def remove_empty_blends(visuals: dict[str, Any]) -> dict[str, Any]:
    """Drop all-zero blends, then elements left with neither item nor blends."""
    for loadout in _dict_items(visuals.get("loadouts")):
        kept: list[dict[str, Any]] = []
        for element in _dict_items(loadout.get("loadoutElements")):
            if "blends" in element and _blends_are_empty(element["blends"]):
                del element["blends"]
            if element.get("itemAssetName") or element.get("blends"):
                kept.append(element)
        loadout["loadoutElements"] = kept
    return visuals


def build_player_visuals(record: Record, lookups: VisualsLookups) -> dict[str, Any]:
    player_visuals = lookups.player_visuals
    visuals = copy.deepcopy(lookups.base_player_visual)

    for key, gear_value in zip(VISUAL_GEAR_KEYS, get_player_gear_values(record)):
        amount_field = GEAR_MORPH_AMOUNT_FIELDS.get(key)
        morph_amount = _round_morph(record[amount_field]) if amount_field else None
        visuals = update_gear_visuals(key, gear_value, player_visuals, visuals, morph_amount)

    head_name, generic_head, skin_tone = get_player_head_values(record, player_visuals)
    visuals["genericHeadName"] = head_name
    visuals["genericHead"] = generic_head
    visuals["skinTone"] = skin_tone

    morph_values = get_player_morph_values(record)
    for index, key in enumerate(VISUAL_MORPH_KEYS):
        visuals = update_morph_values(key, morph_values[index * 2], morph_values[index * 2 + 1], visuals)

    return remove_empty_blends(visuals)


def build_coach_visuals(record: Record, lookups: VisualsLookups) -> dict[str, Any]:
    visuals = copy.deepcopy(lookups.base_coach_visual)
    visuals = update_coach_visuals(get_coach_values(record), lookups.coach_visuals, visuals)
    return remove_empty_blends(visuals)


def is_real_coach(record: Record) -> bool:
    if record.is_empty:
        return False
    return not (is_zero_reference(record["OffensivePlaybook"]) and is_zero_reference(record["DefensivePlaybook"]))


def is_active_player(record: Record) -> bool:
    return not record.is_empty and record["ContractStatus"] not in PLAYER_CONTRACT_STATUS_IGNORE


def assign_visuals_row(owner: Record, visuals_table: Table) -> tuple[int, bool]:
    """Return the CharacterVisuals row for ``owner`` and whether it is new.

    Owners without a reference get the table's next free row.
    """
    ref = owner["CharacterVisuals"]
    if not is_zero_reference(ref):
        target = visuals_table.franchise.resolve_reference(ref)
        if target is None or target.table is not visuals_table:
            raise SchemaError(f"{owner.table.name}[{owner.index}]: CharacterVisuals reference does not point into {visuals_table.name}")
        return target.index, False

    row = visuals_table.header.next_record_to_use
    if row >= visuals_table.header.record_capacity:
        raise TableCapacityError(visuals_table.name, visuals_table.header.record_capacity)
    owner["CharacterVisuals"] = encode_reference(visuals_table.header.table_id, row)
    return row, True


def _write_visuals(owner: Record, visuals_table: Table, visuals: dict[str, Any], summary: VisualsSummary) -> int:
    row, is_new = assign_visuals_row(owner, visuals_table)
    visuals_table.records[row]["RawData"] = visuals
    if is_new:
        summary.new_rows += 1
    return row


def regenerate_character_visuals(
    franchise: Franchise,
    lookups: VisualsLookups,
    debug_enabled: bool = False,
) -> VisualsSummary:
    visuals_table = franchise.get_table_by_unique_id(CHARACTER_VISUALS_UNIQUE_ID)
    player_table = franchise.get_table_by_unique_id(PLAYER_UNIQUE_ID)
    coach_table = franchise.get_table_by_unique_id(COACH_UNIQUE_ID)
    summary = VisualsSummary()

    for record in coach_table.records:
        if not is_real_coach(record):
            continue
        row = _write_visuals(record, visuals_table, build_coach_visuals(record, lookups), summary)
        summary.coaches += 1
        debug(debug_enabled, f"coach {record.index} -> CharacterVisuals[{row}]")

    for record in player_table.records:
        if not is_active_player(record):
            continue
        row = _write_visuals(record, visuals_table, build_player_visuals(record, lookups), summary)
        summary.players += 1
        debug(debug_enabled, f"player {record.index} ({record['Position']}) -> CharacterVisuals[{row}]")

    return summary


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Regenerate Character Visuals for all players and coaches")
    add_common_arguments(parser)
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    print(
        "This program will regenerate Character Visuals for ALL players and coaches. "
        "This is only applicable for Madden 24 franchise files."
    )

    try:
        lookups = load_visuals_lookups(Path(args.lookup_dir))
        franchise = open_franchise(args.franchise, VALID_YEARS)
    except (OSError, FranchiseError) as exc:
        print(f"franchise-load-error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        summary = regenerate_character_visuals(franchise, lookups, debug_enabled=args.debug)
    except TableCapacityError as exc:
        print(f"ERROR - {exc} Your changes have not been saved.", file=sys.stderr)
        print(
            f"This means that the amount of players + coaches in your franchise file exceeds {exc.capacity}.",
            file=sys.stderr,
        )
        return EXIT_OUT_OF_SPACE
    except FranchiseError as exc:
        print(f"visuals-error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    print("Successfully generated Character Visuals for all players/coaches.")
    print(f" - Coaches: {summary.coaches}")
    print(f" - Players: {summary.players}")
    print(f" - New CharacterVisuals rows: {summary.new_rows}")

    try:
        save_franchise(franchise, args.output, args.dry_run)
    except OSError as exc:
        print(f"franchise-save-error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
