from __future__ import annotations

from dataclasses import dataclass

from bassball.contracts import BehaviorMultipliers, MatchEvent, MatchState, PlayerInput, PrngState


@dataclass(slots=True)
class StepResult:
    next_state: MatchState
    prng_state: PrngState
    events: tuple[MatchEvent, ...] = ()


@dataclass(frozen=True, slots=True)
class TickRecord:
    """What the driver fed into one physics step, handed to observers after the step."""

    tick: int
    home_batch: tuple[PlayerInput, ...]
    away_batch: tuple[PlayerInput, ...]
    home_multipliers: BehaviorMultipliers
    away_multipliers: BehaviorMultipliers
    state: MatchState
    events: tuple[MatchEvent, ...]
