from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from bassball.contracts import MatchConfig, MatchResult, MatchState, MatchTactics, Side, Vec
from bassball.core import ENGINE_VERSION
from bassball.match import TickDriver, run

FIXED_TIMESTAMP = datetime(2026, 1, 1, tzinfo=UTC)

SCENARIO_CONFIG = MatchConfig(field_width=100, field_height=60, tick_rate=10, match_duration=60)
SHORT_CONFIG = MatchConfig(field_width=100, field_height=60, tick_rate=10, match_duration=5)

# Home striker nearest the centre spot under the default 4-4-2 kickoff shape.
HOME_STRIKER = "H10"


def fixed_clock() -> datetime:
    return FIXED_TIMESTAMP


def move(tick: int, x: float, y: float, timestamp: int | None = None) -> dict[str, Any]:
    return {"tick": tick, "action": "MOVE", "params": {"x": x, "y": y}, "timestamp": tick * 100 if timestamp is None else timestamp}


def shoot(tick: int, power: float = 80, angle: float = 45, timestamp: int | None = None) -> dict[str, Any]:
    return {
        "tick": tick,
        "action": "SHOOT",
        "params": {"power": power, "angle": angle},
        "timestamp": tick * 100 if timestamp is None else timestamp,
    }


def pass_to(tick: int, target_id: str, timestamp: int | None = None) -> dict[str, Any]:
    return {"tick": tick, "action": "PASS", "params": {"targetId": target_id}, "timestamp": tick * 100 if timestamp is None else timestamp}


def tackle(tick: int, target_id: str, timestamp: int | None = None) -> dict[str, Any]:
    return {"tick": tick, "action": "TACKLE", "params": {"targetId": target_id}, "timestamp": tick * 100 if timestamp is None else timestamp}


def sprint(tick: int, timestamp: int | None = None) -> dict[str, Any]:
    return {"tick": tick, "action": "SPRINT", "params": {}, "timestamp": tick * 100 if timestamp is None else timestamp}


def run_match(
    config: MatchConfig = SHORT_CONFIG,
    seed: str = "abc123",
    home: list[dict[str, Any]] | None = None,
    away: list[dict[str, Any]] | None = None,
    tactics: MatchTactics | None = None,
    **kwargs: Any,
) -> MatchResult:
    kwargs.setdefault("clock", fixed_clock)
    return run(config, seed, ENGINE_VERSION, tactics, home or [], away or [], **kwargs)


def kickoff_state(config: MatchConfig = SCENARIO_CONFIG, seed: str = "abc123") -> tuple[TickDriver, MatchState]:
    driver = TickDriver(config)
    state = driver.initial_state("match_test", seed, MatchTactics())
    return driver, state


def give_ball(state: MatchState, player_id: str, at: Vec | None = None) -> None:
    player = next(p for p in state.all_players() if p.player_id == player_id)
    if at is not None:
        player.position = at
    state.ball.position = player.position
    state.ball.velocity = Vec(0, 0)
    state.ball.holder_id = player.player_id
    state.ball.possession = player.side
    state.possession = player.side


def place(state: MatchState, player_id: str, at: Vec) -> None:
    next(p for p in state.all_players() if p.player_id == player_id).position = at


def side_of(player_id: str) -> Side:
    return Side.HOME if player_id.startswith("H") else Side.AWAY
