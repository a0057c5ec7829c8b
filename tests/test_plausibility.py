from __future__ import annotations

from dataclasses import replace

from bassball.contracts import ConsumedInputs
from bassball.match import assess_plausibility, validate_input
from tests.helpers import move, run_match, sprint


def test_simulated_result_is_plausible():
    check = assess_plausibility(run_match(home=[move(0, 50, 30)], away=[sprint(1)]))
    assert check.ok
    assert check.issues == []


def test_suspicious_record_raises_warnings_only():
    result = run_match()
    forged = replace(
        result,
        home_score=21,
        inputs=ConsumedInputs(
            home=(
                validate_input(sprint(3, timestamp=7)),
                validate_input(move(3, 1, 1, timestamp=7)),
                validate_input(sprint(3, timestamp=2)),
            ),
            away=(validate_input(sprint(60)),),
        ),
    )
    check = assess_plausibility(forged)
    assert not check.ok
    assert [(i.code, i.field_path) for i in check.issues] == [
        ("DUPLICATE_INPUT_TIMESTAMP", "inputs.home"),
        ("IMPLAUSIBLE_GOAL_COUNT", "result.home_score"),
        ("INPUT_BEYOND_DURATION", "inputs.away"),
        ("UNORDERED_INPUT_STREAM", "inputs.home"),
    ]
    assert {i.severity for i in check.issues} == {"warning"}
