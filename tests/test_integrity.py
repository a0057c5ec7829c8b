from __future__ import annotations

import json
from pathlib import Path

from bassball.cli import main
from bassball.core import determinism_violation, persist_forensic_artifact
from bassball.match import PhysicsEngine


def test_forensic_artifact_is_persisted_as_json(tmp_path: Path):
    violation = determinism_violation(
        "STATE_INVARIANT_BROKEN",
        "ball out of bounds",
        match_id="m1",
        tick=12,
        state_snapshot={"ball": [1, 2]},
    )
    path = persist_forensic_artifact(violation.artifact, tmp_path / "forensics")
    assert path.name.startswith("forensic_m1_t12_")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["error_code"] == "STATE_INVARIANT_BROKEN"
    assert payload["identifiers"] == {"match_id": "m1", "tick": "12"}
    assert payload["causal_fragment"] == ["tick 12: ball out of bounds"]
    assert str(violation) == "ball out of bounds"


def test_integrity_hard_stop_produces_forensic_artifact(tmp_path: Path, monkeypatch, capsys):
    original = PhysicsEngine.step

    def scoring_backwards(self, *args):
        result = original(self, *args)
        result.next_state.home.score -= 1
        return result

    monkeypatch.setattr(PhysicsEngine, "step", scoring_backwards)
    forensics = tmp_path / "forensics"
    assert main(["run", "--seed", "abc123", "--forensics-dir", str(forensics)]) == 3
    artifacts = list(forensics.glob("forensic_*.json"))
    assert len(artifacts) == 1
    assert json.loads(artifacts[0].read_text(encoding="utf-8"))["error_code"] == "STATE_INVARIANT_BROKEN"
    assert "engine integrity failure" in capsys.readouterr().err
