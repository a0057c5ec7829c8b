from __future__ import annotations

import pytest

from bassball.contracts import BehaviorMultipliers, MatchStatus, Side, TouchRef, Vec
from bassball.core import DeterminismViolation, SeededRandomSource
from bassball.match import validate_input
from tests.helpers import HOME_STRIKER, give_ball, kickoff_state, move, pass_to, place, shoot, sprint, tackle

NEUTRAL = BehaviorMultipliers(1000, 1000, 1000, 1000, 1000, 1000, 1000)


def _step(driver, state, home=(), away=(), prng_state=None):
    prng_state = prng_state if prng_state is not None else SeededRandomSource(state.seed).getstate()
    home_batch = tuple(validate_input(raw) for raw in home)
    away_batch = tuple(validate_input(raw) for raw in away)
    return driver.physics.step(state, home_batch, away_batch, prng_state, NEUTRAL, NEUTRAL)


def _player(state, player_id):
    return next(p for p in state.all_players() if p.player_id == player_id)


def test_loose_ball_decays_by_fixed_friction():
    driver, state = kickoff_state()
    state.ball.velocity = Vec(1000, 0)
    first = _step(driver, state)
    assert first.next_state.tick == 1
    assert first.next_state.ball.position == Vec(51_000, 30_000)
    assert first.next_state.ball.velocity == Vec(980, 0)
    second = _step(driver, first.next_state, prng_state=first.prng_state)
    assert second.next_state.ball.position == Vec(51_980, 30_000)
    assert second.next_state.ball.velocity == Vec(960, 0)
    assert state.ball.position == Vec(50_000, 30_000)


def test_step_without_draws_leaves_prng_untouched():
    driver, state = kickoff_state()
    initial = SeededRandomSource(state.seed).getstate()
    result = _step(driver, state, home=[shoot(0)], prng_state=initial)
    assert result.events == ()
    assert result.prng_state == initial


def test_ball_crossing_goal_mouth_scores_and_resets():
    driver, state = kickoff_state()
    state.ball.position = Vec(99_000, 30_000)
    state.ball.velocity = Vec(3_000, 0)
    result = _step(driver, state)
    nxt = result.next_state
    assert (nxt.home.score, nxt.away.score) == (1, 0)
    assert [e.event_type for e in result.events] == ["goal"]
    assert result.events[0].side is Side.HOME
    assert nxt.ball.position == Vec(50_000, 30_000)
    assert nxt.ball.velocity == Vec(0, 0)
    assert nxt.ball.possession is None
    assert nxt.possession is Side.AWAY


def test_away_goal_gives_home_the_kickoff():
    driver, state = kickoff_state()
    state.ball.position = Vec(1_000, 30_000)
    state.ball.velocity = Vec(-3_000, 0)
    nxt = _step(driver, state).next_state
    assert (nxt.home.score, nxt.away.score) == (0, 1)
    assert nxt.possession is Side.HOME


def test_ball_wide_of_the_goal_bounces_back():
    driver, state = kickoff_state()
    state.ball.position = Vec(99_000, 10_000)
    state.ball.velocity = Vec(3_000, 0)
    nxt = _step(driver, state).next_state
    assert (nxt.home.score, nxt.away.score) == (0, 0)
    assert nxt.ball.position == Vec(98_000, 10_000)
    assert nxt.ball.velocity == Vec(-2_499, 0)


def test_ball_bounces_off_the_touchline():
    driver, state = kickoff_state()
    state.ball.position = Vec(50_000, 1_000)
    state.ball.velocity = Vec(0, -3_000)
    nxt = _step(driver, state).next_state
    assert nxt.ball.position == Vec(50_000, 2_000)
    assert nxt.ball.velocity == Vec(0, 2_499)


def test_capture_ties_break_by_side_then_player_id():
    driver, state = kickoff_state()
    state.ball.position = Vec(50_000, 10_000)
    place(state, "H05", Vec(49_000, 10_000))
    place(state, "A05", Vec(51_000, 10_000))
    result = _step(driver, state)
    assert result.next_state.ball.holder_id == "H05"
    assert result.next_state.possession is Side.HOME
    assert [(e.event_type, e.player_id) for e in result.events] == [("possession_change", "H05")]

    driver, state = kickoff_state()
    state.ball.position = Vec(50_000, 10_000)
    place(state, "H07", Vec(49_000, 10_000))
    place(state, "H03", Vec(51_000, 10_000))
    assert _step(driver, state).next_state.ball.holder_id == "H03"


def test_last_toucher_sits_out_the_recapture_cooldown():
    driver, state = kickoff_state()
    state.ball.position = Vec(50_000, 10_000)
    state.ball.last_touch = TouchRef(player_id="H05", tick=0)
    place(state, "H05", Vec(50_000, 10_000))
    place(state, "A05", Vec(51_000, 10_000))
    assert _step(driver, state).next_state.ball.holder_id == "A05"


def test_move_heads_the_controlled_player_toward_the_target():
    driver, state = kickoff_state()
    nxt = _step(driver, state, home=[move(0, 50, 30)]).next_state
    striker = _player(nxt, HOME_STRIKER)
    assert striker.position == Vec(41_565, 24_377)
    assert striker.target == Vec(50_000, 30_000)
    assert _player(nxt, "H11").position == Vec(41_000, 36_000)


def test_sprint_costs_extra_stamina():
    driver, state = kickoff_state()
    nxt = _step(driver, state, home=[sprint(0)]).next_state
    striker = _player(nxt, HOME_STRIKER)
    assert striker.sprint_ticks == 19
    assert striker.stamina_milli == 99_940
    assert _player(nxt, "H11").stamina_milli == 99_980
    assert _player(nxt, "A10").stamina_milli == 99_980


def test_stamina_floors_at_zero():
    driver, state = kickoff_state()
    for player in state.all_players():
        player.stamina_milli = 10
    nxt = _step(driver, state).next_state
    assert all(p.stamina_milli == 0 for p in nxt.all_players())
    assert all(p.stamina == 0 for p in nxt.all_players())


def test_close_range_shot_finds_the_net():
    driver, state = kickoff_state()
    give_ball(state, HOME_STRIKER, at=Vec(95_000, 30_000))
    place(state, "A01", Vec(98_000, 5_000))
    first = _step(driver, state, home=[shoot(0, power=100, angle=0)])
    assert [(e.event_type, e.player_id) for e in first.events] == [("shot", HOME_STRIKER)]
    assert first.next_state.ball.holder_id is None
    assert first.next_state.ball.last_touch == TouchRef(HOME_STRIKER, 0)

    second = _step(driver, first.next_state, prng_state=first.prng_state)
    assert second.next_state.home.score == 1
    assert [e.event_type for e in second.events] == ["goal"]
    assert second.events[0].player_id == HOME_STRIKER


def test_pass_goes_only_to_teammates():
    driver, state = kickoff_state()
    give_ball(state, HOME_STRIKER)
    initial = SeededRandomSource(state.seed).getstate()

    ignored = _step(driver, state, home=[pass_to(0, "A10")], prng_state=initial)
    assert ignored.events == ()
    assert ignored.prng_state == initial
    assert ignored.next_state.ball.holder_id == HOME_STRIKER

    passed = _step(driver, state, home=[pass_to(0, "H11")], prng_state=initial)
    assert [e.event_type for e in passed.events] == ["pass"]
    assert passed.events[0].detail.endswith(":H11")
    assert passed.next_state.ball.holder_id is None
    assert passed.next_state.ball.velocity != Vec(0, 0)
    assert passed.prng_state != initial


def test_tackle_on_the_opposing_holder():
    driver, state = kickoff_state()
    give_ball(state, "A10", at=Vec(50_000, 30_000))
    place(state, HOME_STRIKER, Vec(51_000, 30_000))
    result = _step(driver, state, home=[tackle(0, "A10")])
    tackles = [e for e in result.events if e.event_type == "tackle"]
    assert len(tackles) == 1
    assert tackles[0].player_id == HOME_STRIKER
    assert tackles[0].detail.endswith(":A10")
    if tackles[0].detail.startswith("won"):
        assert result.next_state.ball.holder_id == HOME_STRIKER
        assert result.next_state.possession is Side.HOME
    else:
        assert result.next_state.ball.holder_id == "A10"


def test_tackle_out_of_reach_is_ignored():
    driver, state = kickoff_state()
    give_ball(state, "A10", at=Vec(50_000, 30_000))
    place(state, HOME_STRIKER, Vec(55_000, 30_000))
    initial = SeededRandomSource(state.seed).getstate()
    result = _step(driver, state, home=[tackle(0, "A10")], prng_state=initial)
    assert result.events == ()
    assert result.prng_state == initial


def test_same_inputs_same_prng_state_same_outcome():
    driver, state = kickoff_state()
    give_ball(state, HOME_STRIKER)
    a = _step(driver, state, home=[shoot(0, power=60, angle=10)])
    b = _step(driver, state, home=[shoot(0, power=60, angle=10)])
    assert a.next_state == b.next_state
    assert a.prng_state == b.prng_state
    assert a.events == b.events


def test_corrupted_prng_state_is_a_determinism_violation():
    driver, state = kickoff_state()
    with pytest.raises(DeterminismViolation) as exc:
        _step(driver, state, prng_state=(3, (1, 2, 3), None))
    assert exc.value.artifact.error_code == "PRNG_STATE_CORRUPT"
    assert exc.value.artifact.identifiers["tick"] == "0"


def test_physics_does_not_touch_status():
    driver, state = kickoff_state()
    assert _step(driver, state).next_state.status is MatchStatus.WAITING
