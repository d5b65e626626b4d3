"""Static JSON lookup tables shipped with the tools."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import LookupDataError

LOOKUP_DIR = Path(__file__).resolve().parent / "lookup_tables"

PLAYER_VISUALS_FILE = "player_visuals.json"
BASE_PLAYER_VISUAL_FILE = "base_player_visual.json"
COACH_VISUALS_FILE = "coach_visuals.json"
BASE_COACH_VISUAL_FILE = "base_coach_visual.json"
COACH_TOPS_FILE = "coach_tops.json"
COACH_TOP_OVERRIDES_FILE = "coach_top_overrides.json"

POLO_KEY = "Polo"


@dataclass
class VisualsLookups:
    player_visuals: dict[str, Any]
    base_player_visual: dict[str, Any]
    coach_visuals: dict[str, Any]
    base_coach_visual: dict[str, Any]


@dataclass
class WardrobeLookups:
    tops: dict[str, str]
    overrides: dict[str, str]


def load_lookup(name: str, lookup_dir: Path = LOOKUP_DIR) -> dict[str, Any]:
    path = Path(lookup_dir) / name
    if not path.exists():
        raise LookupDataError(f"Missing lookup file: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except ValueError as exc:
            raise LookupDataError(f"{path}: invalid JSON ({exc})") from None
    if not isinstance(payload, dict):
        raise LookupDataError(f"{path}: expected a JSON object")
    return payload


def _require_mapping(payload: dict[str, Any], key: str, source: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise LookupDataError(f"{source}: '{key}' must be an object")
    return value


def _require_loadouts(payload: dict[str, Any], source: str) -> None:
    loadouts = payload.get("loadouts")
    if not isinstance(loadouts, list) or not all(isinstance(item, dict) for item in loadouts):
        raise LookupDataError(f"{source}: 'loadouts' must be a list of objects")


def _require_gear(gear: dict[str, Any], source: str) -> None:
    for slot, items in gear.items():
        if not isinstance(items, dict):
            raise LookupDataError(f"{source}: gear '{slot}' must be an object")
        for value, item in items.items():
            if not isinstance(item, str):
                raise LookupDataError(f"{source}: gear '{slot}.{value}' must be an item asset name")


def _require_head_ids(heads: dict[str, Any], source: str) -> None:
    for name, head_id in heads.items():
        if not isinstance(head_id, int) or isinstance(head_id, bool):
            raise LookupDataError(f"{source}: genericHeads '{name}' must be an integer")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_body_types(body_types: dict[str, Any], source: str) -> None:
    for body_type, preset in body_types.items():
        if not isinstance(preset, dict):
            raise LookupDataError(f"{source}: bodyTypes '{body_type}' must be an object")
        for key, pair in preset.items():
            if not isinstance(pair, list) or len(pair) != 2 or not all(_is_number(value) for value in pair):
                raise LookupDataError(f"{source}: bodyTypes '{body_type}.{key}' must be a [base, barycentric] pair")


def _require_string_map(payload: dict[str, Any], source: str) -> dict[str, str]:
    for key, value in payload.items():
        if not isinstance(value, str) or not value:
            raise LookupDataError(f"{source}: '{key}' must map to an item asset name")
    return payload


def load_visuals_lookups(lookup_dir: Path = LOOKUP_DIR) -> VisualsLookups:
    player_visuals = load_lookup(PLAYER_VISUALS_FILE, lookup_dir)
    _require_gear(_require_mapping(player_visuals, "gear", PLAYER_VISUALS_FILE), PLAYER_VISUALS_FILE)
    _require_head_ids(_require_mapping(player_visuals, "genericHeads", PLAYER_VISUALS_FILE), PLAYER_VISUALS_FILE)

    coach_visuals = load_lookup(COACH_VISUALS_FILE, lookup_dir)
    _require_head_ids(_require_mapping(coach_visuals, "genericHeads", COACH_VISUALS_FILE), COACH_VISUALS_FILE)
    _require_body_types(_require_mapping(coach_visuals, "bodyTypes", COACH_VISUALS_FILE), COACH_VISUALS_FILE)

    base_player_visual = load_lookup(BASE_PLAYER_VISUAL_FILE, lookup_dir)
    _require_loadouts(base_player_visual, BASE_PLAYER_VISUAL_FILE)
    base_coach_visual = load_lookup(BASE_COACH_VISUAL_FILE, lookup_dir)
    _require_loadouts(base_coach_visual, BASE_COACH_VISUAL_FILE)

    return VisualsLookups(
        player_visuals=player_visuals,
        base_player_visual=base_player_visual,
        coach_visuals=coach_visuals,
        base_coach_visual=base_coach_visual,
    )


def load_wardrobe_lookups(lookup_dir: Path = LOOKUP_DIR) -> WardrobeLookups:
    tops = _require_string_map(load_lookup(COACH_TOPS_FILE, lookup_dir), COACH_TOPS_FILE)
    if not any(key != POLO_KEY for key in tops):
        raise LookupDataError(f"{COACH_TOPS_FILE}: needs at least one top besides {POLO_KEY}")
    overrides = _require_string_map(load_lookup(COACH_TOP_OVERRIDES_FILE, lookup_dir), COACH_TOP_OVERRIDES_FILE)
    return WardrobeLookups(tops=tops, overrides=overrides)
