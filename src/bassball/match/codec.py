from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Mapping

from bassball.contracts import (
    ConsumedInputs,
    EndReason,
    InputRejection,
    MatchEvent,
    MatchResult,
    MatchStats,
    MatchTactics,
    Side,
    TacticalSliders,
    TacticsUpdate,
    TeamStats,
    TeamTactics,
    ValidationIssue,
    VerificationResult,
)
from bassball.match.inputs import InputValidator, input_to_dict


def result_to_dict(result: MatchResult) -> dict[str, Any]:
    return {
        "matchId": result.match_id,
        "homeScore": result.home_score,
        "awayScore": result.away_score,
        "duration": result.duration,
        "durationMs": result.duration_ms,
        "durationTicks": result.duration_ticks,
        "seed": result.seed,
        "engineVersion": result.engine_version,
        "inputs": {
            "home": [input_to_dict(i) for i in result.inputs.home],
            "away": [input_to_dict(i) for i in result.inputs.away],
        },
        "replayHash": result.replay_hash,
        "resultHash": result.result_hash,
        "timestamp": result.timestamp.isoformat(),
        "endReason": result.end_reason.value,
        "stats": {"home": asdict(result.stats.home), "away": asdict(result.stats.away)},
        "events": [_event_to_dict(e) for e in result.events],
        "rejected": [_rejection_to_dict(r) for r in result.rejected],
    }


def result_from_dict(payload: Mapping[str, Any]) -> MatchResult:
    validator = InputValidator()
    inputs = payload.get("inputs", {})
    stats = payload.get("stats", {})
    return MatchResult(
        match_id=str(payload["matchId"]),
        home_score=int(payload["homeScore"]),
        away_score=int(payload["awayScore"]),
        duration_ms=int(payload["durationMs"]),
        duration_ticks=int(payload["durationTicks"]),
        seed=str(payload["seed"]),
        engine_version=str(payload["engineVersion"]),
        inputs=ConsumedInputs(
            home=tuple(validator.validate(raw, "home") for raw in inputs.get("home", [])),
            away=tuple(validator.validate(raw, "away") for raw in inputs.get("away", [])),
        ),
        replay_hash=str(payload["replayHash"]),
        result_hash=str(payload["resultHash"]),
        timestamp=datetime.fromisoformat(str(payload["timestamp"])),
        end_reason=EndReason(payload.get("endReason", EndReason.FULL_TIME.value)),
        stats=MatchStats(
            home=TeamStats(**stats.get("home", {})),
            away=TeamStats(**stats.get("away", {})),
        ),
        events=tuple(_event_from_dict(e) for e in payload.get("events", [])),
        rejected=tuple(_rejection_from_dict(r) for r in payload.get("rejected", [])),
    )


def verification_to_dict(result: VerificationResult) -> dict[str, Any]:
    details = result.details
    return {
        "valid": result.valid,
        "computedHash": result.computed_hash,
        "onChainHash": result.on_chain_hash,
        "mismatchType": result.mismatch_type.value if result.mismatch_type else None,
        "details": {
            "seed": details.seed,
            "engineVersion": details.engine_version,
            "finalScore": {"home": details.home_score, "away": details.away_score},
            "inputsProcessed": details.inputs_processed,
            "duration": details.duration_ms / 1000,
        },
    }


def _event_to_dict(event: MatchEvent) -> dict[str, Any]:
    return {
        "tick": event.tick,
        "type": event.event_type,
        "side": event.side.value if event.side else None,
        "playerId": event.player_id,
        "detail": event.detail,
    }


def _event_from_dict(payload: Mapping[str, Any]) -> MatchEvent:
    side = payload.get("side")
    return MatchEvent(
        tick=int(payload["tick"]),
        event_type=str(payload["type"]),
        side=Side(side) if side else None,
        player_id=payload.get("playerId"),
        detail=str(payload.get("detail", "")),
    )


def _rejection_to_dict(rejection: InputRejection) -> dict[str, Any]:
    return {
        "side": rejection.side.value,
        "submissionIndex": rejection.submission_index,
        "tick": rejection.tick,
        "issues": [asdict(i) for i in rejection.issues],
    }


def _rejection_from_dict(payload: Mapping[str, Any]) -> InputRejection:
    return InputRejection(
        side=Side(payload["side"]),
        submission_index=int(payload["submissionIndex"]),
        tick=payload.get("tick"),
        issues=tuple(ValidationIssue(**i) for i in payload.get("issues", [])),
    )


def tactics_to_dict(tactics: MatchTactics) -> dict[str, Any]:
    return {
        "home": _team_tactics_to_dict(tactics.home),
        "away": _team_tactics_to_dict(tactics.away),
        "updates": [
            {"side": u.side.value, "updatedAt": u.updated_at, "tactics": _team_tactics_to_dict(u.tactics)}
            for u in tactics.updates
        ],
    }


def tactics_from_dict(payload: Mapping[str, Any]) -> MatchTactics:
    return MatchTactics(
        home=_team_tactics_from_dict(payload.get("home", {})),
        away=_team_tactics_from_dict(payload.get("away", {})),
        updates=tuple(
            TacticsUpdate(
                side=Side(u["side"]),
                updated_at=u["updatedAt"],
                tactics=_team_tactics_from_dict(u.get("tactics", {})),
            )
            for u in payload.get("updates", [])
        ),
    )


def _team_tactics_to_dict(tactics: TeamTactics) -> dict[str, Any]:
    return {"formation": tactics.formation, "sliders": asdict(tactics.sliders)}


def _team_tactics_from_dict(payload: Mapping[str, Any]) -> TeamTactics:
    defaults = TeamTactics()
    return TeamTactics(
        formation=str(payload.get("formation", defaults.formation)),
        sliders=TacticalSliders(**payload.get("sliders", {})),
    )
