from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, UTC
from pathlib import Path
from uuid import uuid4

from bassball.contracts import ForensicArtifact


class EngineIntegrityError(RuntimeError):
    def __init__(self, artifact: ForensicArtifact) -> None:
        super().__init__(artifact.message)
        self.artifact = artifact


class DeterminismViolation(EngineIntegrityError):
    """The run broke an invariant that every replay relies on; no result may be emitted."""


def build_forensic_artifact(
    error_code: str,
    message: str,
    *,
    match_id: str,
    tick: int,
    state_snapshot: dict[str, object] | None = None,
    context: dict[str, object] | None = None,
    engine_scope: str = "match",
) -> ForensicArtifact:
    return ForensicArtifact(
        artifact_id=str(uuid4()),
        timestamp=datetime.now(UTC),
        engine_scope=engine_scope,
        error_code=error_code,
        message=message,
        state_snapshot=state_snapshot or {},
        context=context or {},
        identifiers={"match_id": match_id, "tick": str(tick)},
        causal_fragment=[f"tick {tick}: {message}"],
    )


def determinism_violation(
    error_code: str,
    message: str,
    *,
    match_id: str,
    tick: int,
    state_snapshot: dict[str, object] | None = None,
    context: dict[str, object] | None = None,
) -> DeterminismViolation:
    artifact = build_forensic_artifact(
        error_code,
        message,
        match_id=match_id,
        tick=tick,
        state_snapshot=state_snapshot,
        context=context,
    )
    return DeterminismViolation(artifact)


def persist_forensic_artifact(artifact: ForensicArtifact, output_dir: Path) -> Path:
    """Write the artifact as JSON, named after the match and tick it stopped at."""
    output_dir.mkdir(parents=True, exist_ok=True)
    match_id = artifact.identifiers.get("match_id", "unknown")
    tick = artifact.identifiers.get("tick", "na")
    path = output_dir / f"forensic_{match_id}_t{tick}_{artifact.artifact_id[:8]}.json"
    path.write_text(json.dumps(asdict(artifact), default=str, indent=2, sort_keys=True), encoding="utf-8")
    return path
