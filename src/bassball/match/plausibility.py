from __future__ import annotations

from collections import Counter

from bassball.contracts import MatchResult, Side, ValidationIssue, ValidationResult

MAX_GOALS_PER_SIDE = 20


def assess_plausibility(result: MatchResult) -> ValidationResult:
    """Advisory checks on a stored result; every finding is a warning, never blocking."""
    issues: list[ValidationIssue] = []
    for side, goals in ((Side.HOME, result.home_score), (Side.AWAY, result.away_score)):
        if goals < 0 or goals > MAX_GOALS_PER_SIDE:
            issues.append(
                ValidationIssue(
                    code="IMPLAUSIBLE_GOAL_COUNT",
                    severity="warning",
                    field_path=f"result.{side.value}_score",
                    entity_id=result.match_id,
                    message=f"{side.value} scored {goals} goals (limit {MAX_GOALS_PER_SIDE})",
                )
            )

    for side in (Side.HOME, Side.AWAY):
        stream = result.inputs.for_side(side)
        pairs = Counter((i.tick, i.timestamp) for i in stream)
        duplicates = sorted(pair for pair, count in pairs.items() if count > 1)
        if duplicates:
            issues.append(
                ValidationIssue(
                    code="DUPLICATE_INPUT_TIMESTAMP",
                    severity="warning",
                    field_path=f"inputs.{side.value}",
                    entity_id=result.match_id,
                    message=f"{len(duplicates)} (tick, timestamp) pairs repeat, first at {duplicates[0]}",
                )
            )
        for previous, current in zip(stream, stream[1:]):
            if current.tick == previous.tick and current.timestamp < previous.timestamp:
                issues.append(
                    ValidationIssue(
                        code="UNORDERED_INPUT_STREAM",
                        severity="warning",
                        field_path=f"inputs.{side.value}",
                        entity_id=result.match_id,
                        message=f"tick {current.tick} inputs are not in timestamp order",
                    )
                )
                break
        late = [i.tick for i in stream if i.tick >= result.duration_ticks]
        if late:
            issues.append(
                ValidationIssue(
                    code="INPUT_BEYOND_DURATION",
                    severity="warning",
                    field_path=f"inputs.{side.value}",
                    entity_id=result.match_id,
                    message=f"{len(late)} inputs target ticks past the recorded {result.duration_ticks}",
                )
            )

    issues.sort(key=lambda x: (x.code, x.field_path))
    return ValidationResult(ok=not issues, issues=issues)
