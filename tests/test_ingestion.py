from __future__ import annotations

import logging

import pytest

from bassball.contracts import MoveParams, Side
from bassball.match import InputQueue
from tests.helpers import move, shoot, sprint


def test_batch_orders_by_timestamp_then_submission_index():
    queue = InputQueue(total_ticks=100)
    queue.submit(Side.HOME, move(4, 10, 10, timestamp=30))
    queue.submit(Side.HOME, move(4, 20, 20, timestamp=10))
    queue.submit(Side.HOME, move(4, 30, 30, timestamp=30))
    queue.submit(Side.HOME, move(4, 40, 40, timestamp=10))

    batch = queue.batch_for(Side.HOME, 4)
    assert [p.params for p in batch] == [
        MoveParams(20_000, 20_000),
        MoveParams(40_000, 40_000),
        MoveParams(10_000, 10_000),
        MoveParams(30_000, 30_000),
    ]
    assert queue.batch_for(Side.HOME, 4) == ()


def test_sides_are_kept_apart():
    queue = InputQueue(total_ticks=10)
    queue.submit(Side.HOME, sprint(2))
    queue.submit(Side.AWAY, shoot(2))
    assert len(queue.batch_for(Side.HOME, 2)) == 1
    assert len(queue.batch_for(Side.AWAY, 2)) == 1
    assert queue.pending_count() == 0


def test_malformed_input_is_rejected_alone(caplog):
    queue = InputQueue(total_ticks=10)
    with caplog.at_level(logging.WARNING, logger="bassball.match.ingestion"):
        accepted = queue.submit_all(
            Side.AWAY,
            [sprint(1), {"tick": 1, "action": "SHOOT", "params": {"power": 500, "angle": 0}, "timestamp": 5}, sprint(2)],
        )
    assert accepted == 2
    assert len(queue.rejections) == 1
    rejection = queue.rejections[0]
    assert rejection.side is Side.AWAY
    assert rejection.submission_index == 1
    assert rejection.tick == 1
    assert rejection.issues[0].code == "POWER_OUT_OF_RANGE"
    assert "POWER_OUT_OF_RANGE" in caplog.text


def test_ticks_beyond_the_match_are_rejected():
    queue = InputQueue(total_ticks=600)
    assert queue.submit(Side.HOME, sprint(599)) is not None
    assert queue.submit(Side.HOME, sprint(600)) is None
    assert queue.rejections[0].issues[0].code == "TICK_BEYOND_MATCH"


def test_late_inputs_are_dropped():
    queue = InputQueue(total_ticks=50)
    queue.advance(10)
    assert queue.submit(Side.HOME, sprint(9)) is None
    assert queue.rejections[0].issues[0].code == "LATE_INPUT"
    assert queue.submit(Side.HOME, sprint(10)) is not None
    with pytest.raises(ValueError):
        queue.advance(5)


def test_rejections_still_consume_a_submission_index():
    queue = InputQueue(total_ticks=10)
    queue.submit(Side.HOME, {"tick": 3, "action": "NOPE", "timestamp": 0})
    queue.submit(Side.HOME, sprint(3, timestamp=7))
    queue.submit(Side.HOME, move(3, 1, 1, timestamp=7))
    assert queue.rejections[0].submission_index == 0
    batch = queue.batch_for(Side.HOME, 3)
    assert [p.action.value for p in batch] == ["SPRINT", "MOVE"]
