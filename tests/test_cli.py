import json
import sys
from pathlib import Path

import pytest

from franchise_tools import character_visuals, coach_wardrobe, synthetic_franchise
from franchise_tools.franchise import Franchise
from franchise_tools.franchise_utils import EXIT_INVALID_INPUT, EXIT_NOTHING_TO_DO, EXIT_OK, EXIT_OUT_OF_SPACE
from franchise_tools.references import ZERO_REF


def _run(monkeypatch, module, *argv):
    monkeypatch.setattr(sys, "argv", [module.__name__, *map(str, argv)])
    return module.main()


def test_visuals_cli_writes_output(monkeypatch, capsys, tmp_path, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(24, players=10, coaches=2))
    original = source.read_text(encoding="utf-8")
    output = tmp_path / "updated.json"

    assert _run(monkeypatch, character_visuals, source, "--output", output) == EXIT_OK

    out = capsys.readouterr().out
    assert "Successfully generated Character Visuals for all players/coaches." in out
    assert " - New CharacterVisuals rows: 12" in out
    assert source.read_text(encoding="utf-8") == original

    updated = Franchise.load(output)
    assert all(record["CharacterVisuals"] != ZERO_REF for record in updated.get_table("Player").records)
    assert updated.get_table("CharacterVisuals").header.next_record_to_use == 12


def test_visuals_cli_out_of_space_saves_nothing(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(24, players=10, coaches=2, visuals_capacity=5))
    original = source.read_text(encoding="utf-8")

    assert _run(monkeypatch, character_visuals, source) == EXIT_OUT_OF_SPACE

    err = capsys.readouterr().err
    assert "The CharacterVisuals table has run out of space" in err
    assert "Your changes have not been saved." in err
    assert source.read_text(encoding="utf-8") == original


def test_visuals_cli_rejects_madden_25(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(25, players=1, coaches=1))
    assert _run(monkeypatch, character_visuals, source) == EXIT_INVALID_INPUT
    assert "NOT a Madden 24 franchise file" in capsys.readouterr().err


def test_visuals_cli_missing_file(monkeypatch, capsys, tmp_path):
    assert _run(monkeypatch, character_visuals, tmp_path / "missing.json") == EXIT_INVALID_INPUT
    assert "franchise-load-error" in capsys.readouterr().err


def test_visuals_cli_dry_run(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(24, players=3, coaches=1))
    original = source.read_text(encoding="utf-8")
    assert _run(monkeypatch, character_visuals, source, "--dry-run", "--debug") == EXIT_OK
    captured = capsys.readouterr()
    assert "Dry run" in captured.out
    assert "debug: coach 0 -> CharacterVisuals[0]" in captured.err
    assert source.read_text(encoding="utf-8") == original


def test_wardrobe_cli_updates_in_place(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(
        synthetic_franchise.build_synthetic_franchise(25, players=0, coaches=3, link_visuals=True, temperature=60)
    )

    assert _run(monkeypatch, coach_wardrobe, source, "--seed", 5) == EXIT_OK

    out = capsys.readouterr().out
    assert "Only Madden 25 franchise files are supported." in out
    assert "Coach wardrobe updated successfully." in out
    assert " - Updated: 3" in out

    updated = Franchise.load(source)
    tops = [
        record["RawData"]["loadouts"][1]["loadoutElements"][0]["itemAssetName"]
        for record in updated.get_table("CharacterVisuals").records
        if not record.is_empty
    ]
    assert len(tops) == 3
    assert "coachapparel_polo_teamcolor" not in tops


def test_wardrobe_cli_without_coaches(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(25, players=2, coaches=2))
    assert _run(monkeypatch, coach_wardrobe, source) == EXIT_NOTHING_TO_DO
    assert "There are no coaches in your franchise file." in capsys.readouterr().out


def test_wardrobe_cli_rejects_madden_24(monkeypatch, capsys, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(24, players=0, coaches=1, link_visuals=True))
    assert _run(monkeypatch, coach_wardrobe, source) == EXIT_INVALID_INPUT
    assert "wardrobe-error" in capsys.readouterr().err


def test_wardrobe_cli_bad_lookup_dir(monkeypatch, capsys, tmp_path, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(25, players=0, coaches=1, link_visuals=True))
    assert _run(monkeypatch, coach_wardrobe, source, "--lookup-dir", tmp_path / "nowhere") == EXIT_INVALID_INPUT
    assert "Missing lookup file" in capsys.readouterr().err


def test_synthetic_cli(monkeypatch, capsys, tmp_path):
    out = tmp_path / "nested" / "m25.json"
    assert _run(monkeypatch, synthetic_franchise, "--out", out, "--game-year", 25, "--players", 4, "--coaches", 2, "--link-visuals") == 0
    assert "Wrote synthetic franchise" in capsys.readouterr().out

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["meta"]["gameYear"] == 25
    franchise = Franchise.load(out)
    assert franchise.get_table("CharacterVisuals").header.next_record_to_use == 6


BINARY_SAVE = b"FBCHUNKS\xff\xfe\x80\x81 binary save"


def test_visuals_cli_rejects_binary_save(monkeypatch, capsys, tmp_path):
    source = tmp_path / "CAREER-M24"
    source.write_bytes(BINARY_SAVE)

    assert _run(monkeypatch, character_visuals, source) == EXIT_INVALID_INPUT
    assert "not a franchise snapshot" in capsys.readouterr().err
    assert source.read_bytes() == BINARY_SAVE


def test_wardrobe_cli_rejects_binary_save(monkeypatch, capsys, tmp_path):
    source = tmp_path / "CAREER-M25"
    source.write_bytes(BINARY_SAVE)

    assert _run(monkeypatch, coach_wardrobe, source) == EXIT_INVALID_INPUT
    assert "wardrobe-error" in capsys.readouterr().err
    assert source.read_bytes() == BINARY_SAVE


def test_visuals_cli_rejects_binary_lookup(monkeypatch, capsys, tmp_path, write_snapshot):
    source = write_snapshot(synthetic_franchise.build_synthetic_franchise(24, players=1, coaches=1))
    lookup_dir = tmp_path / "lookups"
    lookup_dir.mkdir()
    (lookup_dir / "player_visuals.json").write_bytes(BINARY_SAVE)

    assert _run(monkeypatch, character_visuals, source, "--lookup-dir", lookup_dir) == EXIT_INVALID_INPUT
    assert "invalid JSON" in capsys.readouterr().err


def test_wardrobe_cli_skips_coach_with_malformed_visuals(monkeypatch, capsys, write_snapshot):
    snapshot = synthetic_franchise.build_synthetic_franchise(25, players=0, coaches=2, link_visuals=True, temperature=60)
    snapshot["tables"]["CharacterVisuals"]["records"][0] = {"RawData": {"loadouts": None}}
    source = write_snapshot(snapshot)

    assert _run(monkeypatch, coach_wardrobe, source, "--seed", 3) == EXIT_OK

    out = capsys.readouterr().out
    assert " - Updated: 1" in out
    assert " - Skipped (no apparel loadout): 1" in out
    assert Franchise.load(source).get_table("CharacterVisuals").records[0]["RawData"] == {"loadouts": None}


@pytest.mark.parametrize("module", [character_visuals, coach_wardrobe, synthetic_franchise])
def test_cli_modules_are_executable_scripts(module):
    assert Path(module.__file__).read_text(encoding="utf-8").startswith("#!/usr/bin/env python3\n")
    assert callable(module._parse_args)
    assert not hasattr(module, "parse_args")
