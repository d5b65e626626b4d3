#!/usr/bin/env python3
"""Generate synthetic franchise snapshots for tool tests.

This utility does not try to mimic a full franchise. It creates deterministic,
schema-valid tables with controlled rows so the visuals and wardrobe tools can
be exercised in CI and local tests.
"""

from __future__ import annotations

import argparse
import copy
import json
import random
from pathlib import Path
from typing import Any

from franchise_tools.lookups import BASE_COACH_VISUAL_FILE, BASE_PLAYER_VISUAL_FILE, load_lookup
from franchise_tools.references import ZERO_REF, encode_reference

TABLE_IDS: dict[str, int] = {
    "CharacterVisuals": 4220,
    "Player": 4230,
    "Coach": 4240,
    "Team": 4250,
    "SeasonGame": 4260,
    "SeasonInfo": 4270,
}
# Tables the tools never open; only references into them are needed.
PLAYBOOK_TABLE_ID = 4280
STAT_CACHE_TABLE_ID = 4290

TEAM_COUNT = 32
POSITIONS = ("QB", "HB", "WR", "TE", "LT", "C", "DT", "MLB", "CB", "SS", "K")
HEADS = ("gen_afro_01", "gen_buzz_01", "gen_dreads_01", "gen_shaved_01", "gen_short_01")
COACH_HEADS = ("coachhead_bald_01", "coachhead_gray_01", "coachhead_short_01", "coachhead_beard_01")
BODY_TYPES = ("Standard", "Thin", "Muscular", "Heavy")


def new_snapshot(game_year: int, capacities: dict[str, int] | None = None) -> dict[str, Any]:
    sizes = capacities or {}
    return {
        "format": "franchise-snapshot",
        "meta": {"gameYear": game_year},
        "tables": {
            name: {"tableId": table_id, "recordCapacity": sizes.get(name, 0), "records": []}
            for name, table_id in TABLE_IDS.items()
        },
    }


def add_record(snapshot: dict[str, Any], table: str, record: dict[str, Any] | None) -> int:
    entry = snapshot["tables"][table]
    if len(entry["records"]) >= entry["recordCapacity"]:
        raise ValueError(f"{table} is full ({entry['recordCapacity']} rows)")
    entry["records"].append(record)
    return len(entry["records"]) - 1


def reference_to(snapshot: dict[str, Any], table: str, row: int) -> str:
    return encode_reference(snapshot["tables"][table]["tableId"], row)


def playbook_reference(row: int) -> str:
    return encode_reference(PLAYBOOK_TABLE_ID, row)


def stat_cache_reference(row: int) -> str:
    return encode_reference(STAT_CACHE_TABLE_ID, row)


def player_record(**fields: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "FirstName": "Synthetic",
        "LastName": "Player",
        "Position": "WR",
        "ContractStatus": "Signed",
        "TeamIndex": 0,
        "CharacterVisuals": ZERO_REF,
        "PLYR_GENERICHEAD": "gen_buzz_01",
        "SkinTone": 3,
        "PLYR_HELMET": "Helmet_SpeedFlex",
        "PLYR_FACEMASK": "FaceMask_3BarRB",
        "PLYR_LEFTSHOE": "Cleats_NikeVapor",
        "PLYR_RIGHTSHOE": "Cleats_NikeVapor",
        "PLYR_SOCK_HEIGHT": "Socks_Medium",
        "PLYR_SHOULDERPAD": "ShoulderPad_Skill",
        "MetaMorph_ArmsBase": 0.5,
        "MetaMorph_ArmsBarycentric": 0.25,
        "MetaMorph_ChestBase": 0.4,
        "MetaMorph_ChestBarycentric": 0.3,
        "MetaMorph_GutBase": 0.1,
        "MetaMorph_ThighsBase": 0.6,
        "MetaMorph_ThighsBarycentric": 0.2,
    }
    record.update(fields)
    return record


def coach_record(**fields: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "FirstName": "Synthetic",
        "LastName": "Coach",
        "AssetName": "SyntheticCoach",
        "Position": "HeadCoach",
        "ContractStatus": "Signed",
        "TeamIndex": 0,
        "OffensivePlaybook": playbook_reference(0),
        "DefensivePlaybook": playbook_reference(1),
        "CharacterVisuals": ZERO_REF,
        "GenericHeadAssetName": "coachhead_gray_01",
        "SkinTone": 2,
        "BodyType": "Standard",
    }
    record.update(fields)
    return record


def team_record(team_index: int, display_name: str | None = None) -> dict[str, Any]:
    return {"TeamIndex": team_index, "DisplayName": display_name or f"Team {team_index}"}


def season_game_record(
    home_ref: str,
    away_ref: str,
    temperature: int,
    weather: str = "Clear",
    stat_cache: str | None = None,
) -> dict[str, Any]:
    return {
        "HomeTeam": home_ref,
        "AwayTeam": away_ref,
        "Temperature": temperature,
        "Weather": weather,
        "AwayPlayerStatCache": stat_cache if stat_cache is not None else ZERO_REF,
    }


def build_synthetic_franchise(
    game_year: int,
    players: int,
    coaches: int,
    visuals_capacity: int | None = None,
    link_visuals: bool = False,
    temperature: int = 72,
    week_type: str = "RegularSeason",
    seed: int = 0,
) -> dict[str, Any]:
    rng = random.Random(seed)
    games = TEAM_COUNT // 2
    linked = players + coaches if link_visuals else 0
    snapshot = new_snapshot(
        game_year,
        {
            "CharacterVisuals": visuals_capacity if visuals_capacity is not None else players + coaches + 8,
            "Player": players,
            "Coach": coaches,
            "Team": TEAM_COUNT,
            "SeasonGame": games,
            "SeasonInfo": 1,
        },
    )
    if linked > snapshot["tables"]["CharacterVisuals"]["recordCapacity"]:
        raise ValueError("visuals capacity is too small to link every player and coach")

    base_player = load_lookup(BASE_PLAYER_VISUAL_FILE)
    base_coach = load_lookup(BASE_COACH_VISUAL_FILE)

    for team_index in range(TEAM_COUNT):
        add_record(snapshot, "Team", team_record(team_index))
    for game in range(games):
        add_record(
            snapshot,
            "SeasonGame",
            season_game_record(
                reference_to(snapshot, "Team", game * 2),
                reference_to(snapshot, "Team", game * 2 + 1),
                temperature=temperature,
                stat_cache=stat_cache_reference(game),
            ),
        )
    add_record(snapshot, "SeasonInfo", {"CurrentWeekType": week_type})

    for index in range(coaches):
        visuals_ref = ZERO_REF
        if link_visuals:
            visuals_ref = reference_to(snapshot, "CharacterVisuals", add_record(snapshot, "CharacterVisuals", {"RawData": copy.deepcopy(base_coach)}))
        add_record(
            snapshot,
            "Coach",
            coach_record(
                AssetName=f"SyntheticCoach{index:02d}_C_PRO",
                TeamIndex=index % TEAM_COUNT,
                GenericHeadAssetName=rng.choice(COACH_HEADS),
                BodyType=rng.choice(BODY_TYPES),
                CharacterVisuals=visuals_ref,
            ),
        )

    for index in range(players):
        visuals_ref = ZERO_REF
        if link_visuals:
            visuals_ref = reference_to(snapshot, "CharacterVisuals", add_record(snapshot, "CharacterVisuals", {"RawData": copy.deepcopy(base_player)}))
        add_record(
            snapshot,
            "Player",
            player_record(
                LastName=f"Player{index:03d}",
                Position=rng.choice(POSITIONS),
                TeamIndex=index % TEAM_COUNT,
                PLYR_GENERICHEAD=rng.choice(HEADS),
                SkinTone=rng.randint(1, 7),
                CharacterVisuals=visuals_ref,
            ),
        )

    return snapshot


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a synthetic franchise snapshot")
    parser.add_argument("--out", required=True, help="output snapshot path")
    parser.add_argument("--game-year", type=int, default=24)
    parser.add_argument("--players", type=int, default=53)
    parser.add_argument("--coaches", type=int, default=4)
    parser.add_argument("--visuals-capacity", type=int, default=None)
    parser.add_argument("--link-visuals", action="store_true", help="give every player and coach a CharacterVisuals row")
    parser.add_argument("--temperature", type=int, default=72, help="temperature of every scheduled game")
    parser.add_argument("--week-type", default="RegularSeason")
    parser.add_argument("--seed", type=int, default=0)
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    snapshot = build_synthetic_franchise(
        game_year=args.game_year,
        players=args.players,
        coaches=args.coaches,
        visuals_capacity=args.visuals_capacity,
        link_visuals=args.link_visuals,
        temperature=args.temperature,
        week_type=args.week_type,
        seed=args.seed,
    )

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(snapshot, indent=2) + "\n", encoding="utf-8")
    print(f"Wrote synthetic franchise: {out} ({args.players} players, {args.coaches} coaches)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
