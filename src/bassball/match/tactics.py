from __future__ import annotations

from bisect import bisect_left

from bassball.contracts import (
    BehaviorMultipliers,
    ConfigError,
    Formation,
    MatchTactics,
    Side,
    TacticalSliders,
    TeamTactics,
    ValidationError,
    ValidationIssue,
)
from bassball.core.fixed import clamp
from bassball.match.formations import FormationCatalog

NEUTRAL = 1000
MULTIPLIER_FLOOR = 200
MULTIPLIER_CEILING = 2000


def _centered(value: int) -> int:
    return value - 50


def behavior_multipliers(tactics: TeamTactics, formation: Formation) -> BehaviorMultipliers:
    s: TacticalSliders = tactics.sliders
    raw = {
        "stamina_decay": NEUTRAL + _centered(s.pressing) * 8,
        "pass_accuracy": NEUTRAL + _centered(s.build_up_play) * 4 - _centered(s.creativity) * 2,
        "shot_accuracy": NEUTRAL + _centered(s.creativity) * 3 + _centered(s.offensive_aggression),
        "pressing_radius": NEUTRAL + _centered(s.width) * 3 + _centered(s.defensive_line_height) * 3,
        "tackle_weight": NEUTRAL + _centered(s.pressing) * 3 + _centered(s.offensive_aggression) * 2,
        "shot_power": NEUTRAL + _centered(s.offensive_aggression) * 2,
        "move_speed": NEUTRAL + _centered(s.tempo) * 2 + _centered(s.transition_speed) * 2,
    }
    values = {
        name: clamp(value + formation.bias.get(name, 0), MULTIPLIER_FLOOR, MULTIPLIER_CEILING)
        for name, value in raw.items()
    }
    return BehaviorMultipliers(**values)


class TacticsTimeline:
    """Multipliers in force per side and tick; an update stamped T governs T+1 onward."""

    def __init__(self, tactics: MatchTactics, catalog: FormationCatalog) -> None:
        self._catalog = catalog
        issues = self._validate(tactics)
        if issues:
            raise ConfigError(issues)

        self._timeline: dict[Side, tuple[list[int], list[BehaviorMultipliers]]] = {}
        for side in (Side.HOME, Side.AWAY):
            ordered = sorted(
                (u for u in tactics.updates if u.side is side),
                key=lambda u: u.updated_at,
            )
            # Effective from updated_at + 1; a later update at the same tick wins.
            starts = [0]
            values = [self._multipliers(tactics.initial(side))]
            for update in ordered:
                start = update.updated_at + 1
                if starts[-1] == start:
                    values[-1] = self._multipliers(update.tactics)
                else:
                    starts.append(start)
                    values.append(self._multipliers(update.tactics))
            self._timeline[side] = (starts, values)

    def for_tick(self, side: Side, tick: int) -> BehaviorMultipliers:
        starts, values = self._timeline[side]
        index = bisect_left(starts, tick + 1) - 1
        return values[index]

    def _multipliers(self, tactics: TeamTactics) -> BehaviorMultipliers:
        return behavior_multipliers(tactics, self._catalog.resolve(tactics.formation))

    def _validate(self, tactics: MatchTactics) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        entries: list[tuple[str, TeamTactics]] = [("home", tactics.home), ("away", tactics.away)]
        for index, update in enumerate(tactics.updates):
            entity_id = f"update[{index}]"
            if isinstance(update.updated_at, bool) or not isinstance(update.updated_at, int) or update.updated_at < 0:
                issues.append(
                    ValidationIssue(
                        code="INVALID_TACTICS_UPDATE",
                        severity="blocking",
                        field_path=f"tactics.updates[{index}].updated_at",
                        entity_id=entity_id,
                        message="updated_at must be a non-negative tick",
                    )
                )
                continue
            entries.append((entity_id, update.tactics))
        for entity_id, team_tactics in entries:
            try:
                team_tactics.sliders.validate(entity_id)
                self._catalog.resolve(team_tactics.formation)
            except ValidationError as exc:
                issues.extend(exc.issues)
        return issues
