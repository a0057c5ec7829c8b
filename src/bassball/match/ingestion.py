from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from bassball.contracts import (
    InputRejection,
    MatchConfig,
    PlayerInput,
    Side,
    ValidationError,
    ValidationIssue,
)
from bassball.match.inputs import InputValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QueuedInput:
    side: Side
    submission_index: int
    player_input: PlayerInput

    @property
    def order_key(self) -> tuple[int, int]:
        return self.player_input.timestamp, self.submission_index


class InputQueue:
    """Per-side input buffer that hands out each tick's batch in a stable total order."""

    def __init__(self, total_ticks: int, config: MatchConfig | None = None) -> None:
        if total_ticks <= 0:
            raise ValueError("total_ticks must be positive")
        self._total_ticks = total_ticks
        self._validator = InputValidator(config)
        self._pending: dict[Side, defaultdict[int, list[QueuedInput]]] = {
            Side.HOME: defaultdict(list),
            Side.AWAY: defaultdict(list),
        }
        self._next_index = {Side.HOME: 0, Side.AWAY: 0}
        self._current_tick = 0
        self._rejections: list[InputRejection] = []

    @property
    def current_tick(self) -> int:
        return self._current_tick

    @property
    def rejections(self) -> tuple[InputRejection, ...]:
        return tuple(self._rejections)

    def pending_count(self, side: Side | None = None) -> int:
        sides = [side] if side is not None else [Side.HOME, Side.AWAY]
        return sum(len(batch) for s in sides for batch in self._pending[s].values())

    def submit(self, side: Side, raw: PlayerInput | Mapping[str, Any]) -> PlayerInput | None:
        index = self._next_index[side]
        self._next_index[side] = index + 1
        entity_id = f"{side.value}[{index}]"

        try:
            player_input = self._validator.validate(raw, entity_id)
        except ValidationError as exc:
            raw_tick = raw.get("tick") if isinstance(raw, Mapping) else None
            tick = raw_tick if isinstance(raw_tick, int) and not isinstance(raw_tick, bool) else None
            self._reject(side, index, tick, exc.issues)
            return None

        if player_input.tick >= self._total_ticks:
            issue = ValidationIssue(
                code="TICK_BEYOND_MATCH",
                severity="blocking",
                field_path="input.tick",
                entity_id=entity_id,
                message=f"tick {player_input.tick} is past the last tick {self._total_ticks - 1}",
            )
            self._reject(side, index, player_input.tick, [issue])
            return None
        if player_input.tick < self._current_tick:
            issue = ValidationIssue(
                code="LATE_INPUT",
                severity="blocking",
                field_path="input.tick",
                entity_id=entity_id,
                message=f"tick {player_input.tick} already simulated (current {self._current_tick})",
            )
            self._reject(side, index, player_input.tick, [issue])
            return None

        self._pending[side][player_input.tick].append(QueuedInput(side, index, player_input))
        return player_input

    def submit_all(self, side: Side, raws: Iterable[PlayerInput | Mapping[str, Any]]) -> int:
        accepted = 0
        for raw in raws:
            if self.submit(side, raw) is not None:
                accepted += 1
        return accepted

    def batch_for(self, side: Side, tick: int) -> tuple[PlayerInput, ...]:
        queued = self._pending[side].pop(tick, [])
        return tuple(q.player_input for q in sorted(queued, key=lambda q: q.order_key))

    def advance(self, tick: int) -> None:
        if tick < self._current_tick:
            raise ValueError(f"ingestion horizon cannot move backwards ({self._current_tick} -> {tick})")
        self._current_tick = tick

    def _reject(self, side: Side, index: int, tick: int | None, issues: list[ValidationIssue]) -> None:
        rejection = InputRejection(side=side, submission_index=index, tick=tick, issues=tuple(issues))
        self._rejections.append(rejection)
        logger.warning(
            "rejected %s input #%d (tick=%s): %s",
            side.value,
            index,
            tick,
            ", ".join(i.code for i in issues),
        )
