from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

from bassball.contracts import (
    BallState,
    ConfigError,
    ConsumedInputs,
    EndReason,
    MatchConfig,
    MatchEvent,
    MatchResult,
    MatchState,
    MatchStats,
    MatchStatus,
    MatchTactics,
    PlayerInput,
    PlayerProfile,
    PlayerState,
    Side,
    TeamState,
    ValidationIssue,
    Vec,
)
from bassball.core.config import ENGINE_VERSION, EngineProfile
from bassball.core.errors import determinism_violation
from bassball.core.events import EventBus
from bassball.core.fixed import fdiv
from bassball.core.ids import derive_match_id, now_utc
from bassball.core.randomness import SeededRandomSource
from bassball.match.formations import FORMATION_SIZE, FormationCatalog
from bassball.match.hasher import replay_hash, result_hash
from bassball.match.ingestion import InputQueue
from bassball.match.models import StepResult, TickRecord
from bassball.match.physics import PhysicsEngine
from bassball.match.tactics import TacticsTimeline

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
TickObserver = Callable[[TickRecord], None]
RawInput = PlayerInput | Mapping[str, Any]

_STATUS_RANK = {MatchStatus.WAITING: 0, MatchStatus.STARTED: 1, MatchStatus.ENDED: 2}


class StopSignal:
    """Thread-safe early-termination flag polled by the driver between ticks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = EndReason.FORFEIT

    def trigger(self, reason: EndReason = EndReason.FORFEIT) -> None:
        if reason is EndReason.FULL_TIME:
            raise ValueError("full time is not a stop reason")
        self._reason = reason
        self._event.set()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> EndReason:
        return self._reason


def default_roster(side: Side) -> list[PlayerProfile]:
    prefix = "H" if side is Side.HOME else "A"
    return [PlayerProfile(player_id=f"{prefix}{n:02d}") for n in range(1, FORMATION_SIZE + 1)]


class TickDriver:
    def __init__(
        self,
        config: MatchConfig,
        *,
        engine_version: str = ENGINE_VERSION,
        profile: EngineProfile | None = None,
        catalog: FormationCatalog | None = None,
    ) -> None:
        config.validate()
        if engine_version != ENGINE_VERSION:
            issue = ValidationIssue(
                code="ENGINE_VERSION_UNSUPPORTED",
                severity="blocking",
                field_path="engine_version",
                entity_id=str(engine_version),
                message=f"this build runs engine {ENGINE_VERSION}, not {engine_version!r}",
            )
            raise ConfigError([issue])
        self._config = config
        self._engine_version = engine_version
        self._physics = PhysicsEngine(config, profile)
        self._catalog = catalog if catalog is not None else FormationCatalog()

    @property
    def physics(self) -> PhysicsEngine:
        return self._physics

    def initial_state(
        self,
        match_id: str,
        seed: str,
        tactics: MatchTactics,
        rosters: Mapping[Side, Sequence[PlayerProfile]] | None = None,
    ) -> MatchState:
        rosters = rosters or {}
        profiles = {side: list(rosters.get(side) or default_roster(side)) for side in (Side.HOME, Side.AWAY)}
        self._validate_rosters(profiles)
        width, height = self._physics.field
        teams: dict[Side, TeamState] = {}
        for side in (Side.HOME, Side.AWAY):
            formation = self._catalog.resolve(tactics.initial(side).formation)
            players: list[PlayerState] = []
            for slot, profile in zip(formation.slots, profiles[side]):
                x = fdiv(width * slot.depth, 2000)
                y = fdiv(height * slot.lane, 1000)
                if side is Side.AWAY:
                    x, y = width - x, height - y
                players.append(
                    PlayerState(
                        player_id=profile.player_id,
                        side=side,
                        slot=slot.slot,
                        position=Vec(x, y),
                        stamina_milli=self._physics.profile.stamina_max,
                        stats=profile.stats,
                    )
                )
            teams[side] = TeamState(name=side.value, score=0, players=players)
        return MatchState(
            match_id=match_id,
            status=MatchStatus.WAITING,
            tick=0,
            home=teams[Side.HOME],
            away=teams[Side.AWAY],
            ball=BallState(position=self._physics.centre, velocity=Vec(0, 0)),
            possession=Side.HOME,
            duration_ms=0,
            seed=seed,
        )

    def run(
        self,
        seed: str,
        tactics: MatchTactics | None,
        home_inputs: Iterable[RawInput],
        away_inputs: Iterable[RawInput],
        *,
        match_id: str | None = None,
        rosters: Mapping[Side, Sequence[PlayerProfile]] | None = None,
        stop_signal: StopSignal | None = None,
        stop_at: int | None = None,
        stop_reason: EndReason = EndReason.FORFEIT,
        clock: Clock | None = None,
        event_bus: EventBus | None = None,
        observer: TickObserver | None = None,
    ) -> MatchResult:
        """Play the match tick by tick and hash what was consumed.

        ``stop_at`` ends the match before that tick with ``stop_reason``, the way a
        triggered ``stop_signal`` would; the verifier uses it to replay a match that
        was cut short. ``clock`` only stamps ``MatchResult.timestamp``, which is
        neither hashed nor compared.
        """
        if not isinstance(seed, str) or not seed:
            issue = ValidationIssue(
                code="INVALID_SEED",
                severity="blocking",
                field_path="seed",
                entity_id="match",
                message="seed must be a non-empty string",
            )
            raise ConfigError([issue])
        self._validate_stop(stop_at, stop_reason)
        tactics = tactics or MatchTactics()
        timeline = TacticsTimeline(tactics, self._catalog)
        match_id = match_id or derive_match_id(seed)
        state = self.initial_state(match_id, seed, tactics, rosters)

        total_ticks = self._config.total_ticks
        queue = InputQueue(total_ticks, self._config)
        queue.submit_all(Side.HOME, home_inputs)
        queue.submit_all(Side.AWAY, away_inputs)

        prng_state = SeededRandomSource(seed).getstate()
        consumed: dict[Side, list[PlayerInput]] = {Side.HOME: [], Side.AWAY: []}
        stats = MatchStats()
        events: list[MatchEvent] = []
        end_reason = EndReason.FULL_TIME
        logger.info(
            "match %s started: seed=%s engine=%s ticks=%d rejected=%d",
            match_id,
            seed,
            self._engine_version,
            total_ticks,
            len(queue.rejections),
        )

        for tick in range(total_ticks):
            if stop_signal is not None and stop_signal.is_set:
                end_reason = stop_signal.reason
            elif stop_at is not None and tick >= stop_at:
                end_reason = stop_reason
            if end_reason is not EndReason.FULL_TIME:
                stoppage = MatchEvent(tick=tick, event_type="stoppage", side=None, player_id=None, detail=end_reason.value)
                events.append(stoppage)
                if event_bus is not None:
                    event_bus.publish(stoppage)
                logger.info("match %s stopped at tick %d (%s)", match_id, tick, end_reason.value)
                break
            if state.status is MatchStatus.WAITING:
                state.status = MatchStatus.STARTED

            queue.advance(tick)
            home_batch = queue.batch_for(Side.HOME, tick)
            away_batch = queue.batch_for(Side.AWAY, tick)
            home_mult = timeline.for_tick(Side.HOME, tick)
            away_mult = timeline.for_tick(Side.AWAY, tick)

            step = self._physics.step(state, home_batch, away_batch, prng_state, home_mult, away_mult)
            step.next_state.duration_ms = self._config.duration_ms_for(step.next_state.tick)
            self._check_invariants(state, step)

            consumed[Side.HOME].extend(home_batch)
            consumed[Side.AWAY].extend(away_batch)
            state = step.next_state
            prng_state = step.prng_state
            self._accumulate(stats, state, step.events)
            events.extend(step.events)
            if event_bus is not None:
                for event in step.events:
                    event_bus.publish(event)
            if observer is not None:
                observer(
                    TickRecord(
                        tick=tick,
                        home_batch=home_batch,
                        away_batch=away_batch,
                        home_multipliers=home_mult,
                        away_multipliers=away_mult,
                        state=state,
                        events=step.events,
                    )
                )
            logger.debug(
                "tick %d: home=%d away=%d inputs, ball=(%d,%d) score %d-%d",
                tick,
                len(home_batch),
                len(away_batch),
                state.ball.position.x,
                state.ball.position.y,
                state.home.score,
                state.away.score,
            )

        state.status = MatchStatus.ENDED
        duration_ms = self._config.duration_ms_for(state.tick)
        state.duration_ms = duration_ms
        inputs = ConsumedInputs(home=tuple(consumed[Side.HOME]), away=tuple(consumed[Side.AWAY]))
        replay_digest = replay_hash(seed, self._engine_version, inputs.home, inputs.away)
        result_digest = result_hash(
            seed, self._engine_version, state.home.score, state.away.score, duration_ms, replay_digest
        )
        result = MatchResult(
            match_id=match_id,
            home_score=state.home.score,
            away_score=state.away.score,
            duration_ms=duration_ms,
            duration_ticks=state.tick,
            seed=seed,
            engine_version=self._engine_version,
            inputs=inputs,
            replay_hash=replay_digest,
            result_hash=result_digest,
            timestamp=(clock or now_utc)(),
            end_reason=end_reason,
            stats=stats,
            events=tuple(events),
            rejected=queue.rejections,
        )
        logger.info(
            "match %s ended (%s) %d-%d after %d ticks, result %s",
            match_id,
            end_reason.value,
            result.home_score,
            result.away_score,
            result.duration_ticks,
            result.result_hash,
        )
        return result

    def _validate_stop(self, stop_at: int | None, stop_reason: EndReason) -> None:
        issues: list[ValidationIssue] = []
        if stop_at is not None and (isinstance(stop_at, bool) or not isinstance(stop_at, int) or stop_at < 0):
            issues.append(
                ValidationIssue(
                    code="INVALID_STOP_TICK",
                    severity="blocking",
                    field_path="stop_at",
                    entity_id="match",
                    message=f"stop tick must be a non-negative integer, got {stop_at!r}",
                )
            )
        if stop_reason is EndReason.FULL_TIME:
            issues.append(
                ValidationIssue(
                    code="INVALID_STOP_REASON",
                    severity="blocking",
                    field_path="stop_reason",
                    entity_id="match",
                    message="full_time is reached by playing every tick, not by stopping",
                )
            )
        if issues:
            raise ConfigError(issues)

    def _validate_rosters(self, profiles: Mapping[Side, list[PlayerProfile]]) -> None:
        issues: list[ValidationIssue] = []
        seen: set[str] = set()
        for side, roster in profiles.items():
            if len(roster) != FORMATION_SIZE:
                issues.append(
                    ValidationIssue(
                        code="INVALID_ROSTER",
                        severity="blocking",
                        field_path=f"rosters.{side.value}",
                        entity_id=side.value,
                        message=f"roster must have {FORMATION_SIZE} players, got {len(roster)}",
                    )
                )
            for profile in roster:
                if not profile.player_id or profile.player_id in seen:
                    issues.append(
                        ValidationIssue(
                            code="DUPLICATE_PLAYER_ID",
                            severity="blocking",
                            field_path=f"rosters.{side.value}",
                            entity_id=profile.player_id,
                            message="player ids must be non-empty and unique across both teams",
                        )
                    )
                seen.add(profile.player_id)
                for stat_name in ("pace", "shooting", "passing", "defense", "dribbling"):
                    value = getattr(profile.stats, stat_name)
                    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                        issues.append(
                            ValidationIssue(
                                code="STAT_OUT_OF_RANGE",
                                severity="blocking",
                                field_path=f"rosters.{side.value}.{profile.player_id}.{stat_name}",
                                entity_id=profile.player_id,
                                message=f"{stat_name} must be an integer in [0, 100], got {value!r}",
                            )
                        )
        if issues:
            raise ConfigError(issues)

    def _check_invariants(self, prev: MatchState, step: StepResult) -> None:
        nxt = step.next_state
        width, height = self._physics.field
        stamina_max = self._physics.profile.stamina_max
        problems: list[str] = []
        if nxt.tick != prev.tick + 1:
            problems.append(f"tick advanced {prev.tick} -> {nxt.tick}")
        if _STATUS_RANK[nxt.status] < _STATUS_RANK[prev.status]:
            problems.append(f"status regressed {prev.status.value} -> {nxt.status.value}")
        if nxt.home.score < prev.home.score or nxt.away.score < prev.away.score:
            problems.append("score decreased")
        positions = [(p.player_id, p.position) for p in nxt.all_players()] + [("ball", nxt.ball.position)]
        for entity, pos in positions:
            if not (0 <= pos.x <= width and 0 <= pos.y <= height):
                problems.append(f"{entity} out of bounds at ({pos.x},{pos.y})")
        for player in nxt.all_players():
            if not 0 <= player.stamina_milli <= stamina_max:
                problems.append(f"{player.player_id} stamina {player.stamina_milli} out of range")
        if problems:
            raise determinism_violation(
                "STATE_INVARIANT_BROKEN",
                "; ".join(problems),
                match_id=prev.match_id,
                tick=prev.tick,
                state_snapshot={
                    "tick": nxt.tick,
                    "score": [nxt.home.score, nxt.away.score],
                    "ball": [nxt.ball.position.x, nxt.ball.position.y],
                },
                context={"problems": problems},
            )

    def _accumulate(self, stats: MatchStats, state: MatchState, events: tuple[MatchEvent, ...]) -> None:
        if state.ball.possession is not None:
            stats.for_side(state.ball.possession).possession_ticks += 1
        for event in events:
            if event.side is None:
                continue
            team = stats.for_side(event.side)
            if event.event_type == "shot":
                team.shots += 1
                if event.detail == "on_target":
                    team.shots_on_target += 1
            elif event.event_type == "goal":
                team.goals += 1
            elif event.event_type == "pass":
                team.passes += 1
                if event.detail.startswith("completed"):
                    team.passes_completed += 1
            elif event.event_type == "tackle":
                team.tackles += 1
                if event.detail.startswith("won"):
                    team.tackles_won += 1
            elif event.event_type == "skill":
                team.skills += 1


def run(
    config: MatchConfig,
    seed: str,
    engine_version: str,
    tactics: MatchTactics | None,
    home_inputs: Iterable[RawInput],
    away_inputs: Iterable[RawInput],
    *,
    match_id: str | None = None,
    rosters: Mapping[Side, Sequence[PlayerProfile]] | None = None,
    stop_signal: StopSignal | None = None,
    stop_at: int | None = None,
    stop_reason: EndReason = EndReason.FORFEIT,
    clock: Clock | None = None,
    event_bus: EventBus | None = None,
    observer: TickObserver | None = None,
    profile: EngineProfile | None = None,
) -> MatchResult:
    driver = TickDriver(config, engine_version=engine_version, profile=profile)
    return driver.run(
        seed,
        tactics,
        home_inputs,
        away_inputs,
        match_id=match_id,
        rosters=rosters,
        stop_signal=stop_signal,
        stop_at=stop_at,
        stop_reason=stop_reason,
        clock=clock,
        event_bus=event_bus,
        observer=observer,
    )
