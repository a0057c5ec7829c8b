from __future__ import annotations

from pathlib import Path

from bassball.contracts import MatchTactics, Side, TacticalSliders, TacticsUpdate, TeamTactics
from bassball.match import validate_input
from bassball.simulation import ReplayArchive, ReplayHarness
from tests.helpers import SHORT_CONFIG, move, run_match, shoot, sprint


def test_archived_result_loads_back_equal(tmp_path: Path):
    result = run_match(home=[move(0, 50, 30), shoot(20, 90, 0), sprint(70)], away=[sprint(3)])
    assert result.rejected
    path = ReplayArchive.save(result, tmp_path / "nested" / "match.json")
    assert ReplayArchive.load(path) == result
    archived = ReplayArchive.load_match(path)
    assert archived.config is None
    assert archived.tactics is None


def test_archive_keeps_the_config_and_tactics_it_was_played_with(tmp_path: Path):
    tactics = MatchTactics(home=TeamTactics(formation="4-3-3"))
    result = run_match(home=[sprint(3)], tactics=tactics)
    path = ReplayArchive.save(result, tmp_path / "match.json", config=SHORT_CONFIG, tactics=tactics)
    archived = ReplayArchive.load_match(path)
    assert archived.result == result
    assert archived.config == SHORT_CONFIG
    assert archived.tactics == tactics


def test_replay_harness_determinism(tmp_path: Path):
    tactics = MatchTactics(
        away=TeamTactics(formation="5-3-2"),
        updates=(TacticsUpdate(side=Side.HOME, updated_at=15, tactics=TeamTactics(sliders=TacticalSliders(pressing=90))),),
    )
    harness = ReplayHarness(config=SHORT_CONFIG, seed="replay-seed", tactics=tactics)
    harness.record(Side.HOME, move(0, 50, 30))
    harness.record(Side.HOME, validate_input(shoot(25, 70, -10)))
    harness.record(Side.AWAY, sprint(4))

    a, b = harness.replay()
    assert a == b
    assert a["ticks"] == 50

    path = tmp_path / "harness.json"
    harness.save(path)
    loaded = ReplayHarness.load(path)
    assert loaded.tactics == tactics
    assert loaded.inputs_for(Side.HOME) == harness.inputs_for(Side.HOME)
    assert loaded.replay()[0] == a
