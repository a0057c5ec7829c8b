from __future__ import annotations

import logging
from copy import deepcopy

from bassball.contracts import (
    BehaviorMultipliers,
    ConfigError,
    MatchConfig,
    MatchEvent,
    MatchState,
    MoveParams,
    PassParams,
    PlayerInput,
    PlayerState,
    PrngState,
    ShootParams,
    Side,
    SkillParams,
    SprintParams,
    TackleParams,
    TouchRef,
    ValidationIssue,
    Vec,
)
from bassball.core.config import EngineProfile, default_engine_profile
from bassball.core.errors import determinism_violation
from bassball.core.fixed import (
    FIXED_ONE,
    clamp,
    distance,
    distance_sq,
    fdiv,
    heading,
    polar,
    scale,
    step_toward,
    to_fixed,
)
from bassball.core.randomness import SeededRandomSource
from bassball.match.models import StepResult

logger = logging.getLogger(__name__)

SHOT_TIGHT_SPREAD_DEG = 3
SHOT_WIDE_SPREAD_DEG = 25
PASS_MISS_OFFSET = 5 * FIXED_ONE


class PhysicsEngine:
    """One deterministic tick of rules and motion over integer field coordinates."""

    def __init__(self, config: MatchConfig, profile: EngineProfile | None = None) -> None:
        config.validate()
        self._profile = profile or default_engine_profile()
        self._profile.validate()
        try:
            self._width = _fixed_dimension(config.field_width)
            self._height = _fixed_dimension(config.field_height)
            self._tick_milli = _fixed_dimension(config.tick_rate)
        except ValueError as exc:
            issue = ValidationIssue(
                code="UNREPRESENTABLE_CONFIG",
                severity="blocking",
                field_path="config",
                entity_id="match_config",
                message=str(exc),
            )
            raise ConfigError([issue]) from exc
        half_mouth = fdiv(scale(self._height, self._profile.goal_mouth_permille), 2)
        self._goal_low = fdiv(self._height, 2) - half_mouth
        self._goal_high = fdiv(self._height, 2) + half_mouth
        self._sprint_ticks = max(1, fdiv(self._profile.sprint_duration_ms * self._tick_milli, 1_000_000))

    @property
    def profile(self) -> EngineProfile:
        return self._profile

    @property
    def field(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def goal_mouth(self) -> tuple[int, int]:
        return self._goal_low, self._goal_high

    @property
    def centre(self) -> Vec:
        return Vec(fdiv(self._width, 2), fdiv(self._height, 2))

    def per_tick(self, per_second: int) -> int:
        return fdiv(per_second * FIXED_ONE, self._tick_milli)

    def step(
        self,
        prev_state: MatchState,
        home_batch: tuple[PlayerInput, ...],
        away_batch: tuple[PlayerInput, ...],
        prng_state: PrngState,
        home_multipliers: BehaviorMultipliers,
        away_multipliers: BehaviorMultipliers,
    ) -> StepResult:
        try:
            rng = SeededRandomSource.from_state(prev_state.seed, prng_state)
        except (TypeError, ValueError) as exc:
            raise determinism_violation(
                "PRNG_STATE_CORRUPT",
                f"cannot restore PRNG state: {exc}",
                match_id=prev_state.match_id,
                tick=prev_state.tick,
                context={"seed": prev_state.seed},
            ) from exc

        state = deepcopy(prev_state)
        multipliers = {Side.HOME: home_multipliers, Side.AWAY: away_multipliers}
        events: list[MatchEvent] = []

        for side, batch in ((Side.HOME, home_batch), (Side.AWAY, away_batch)):
            for player_input in batch:
                self._apply_input(state, side, player_input, rng, multipliers[side], events)

        self._move_players(state, multipliers)
        self._move_ball(state, events)
        self._resolve_capture(state, events)
        self._decay_stamina(state, multipliers)

        state.tick = prev_state.tick + 1
        return StepResult(next_state=state, prng_state=rng.getstate(), events=tuple(events))

    def controlled_player(self, state: MatchState, side: Side) -> PlayerState:
        holder = self._holder(state)
        if holder is not None and holder.side is side:
            return holder
        ball = state.ball.position
        return min(state.team(side).players, key=lambda p: (distance_sq(p.position, ball), p.player_id))

    def _apply_input(
        self,
        state: MatchState,
        side: Side,
        player_input: PlayerInput,
        rng: SeededRandomSource,
        mult: BehaviorMultipliers,
        events: list[MatchEvent],
    ) -> None:
        params = player_input.params
        player = self.controlled_player(state, side)
        holder = self._holder(state)
        has_ball = holder is not None and holder.player_id == player.player_id

        if isinstance(params, MoveParams):
            player.target = Vec(clamp(params.x, 0, self._width), clamp(params.y, 0, self._height))
        elif isinstance(params, SprintParams):
            player.sprint_ticks = self._sprint_ticks
        elif isinstance(params, ShootParams):
            if has_ball:
                self._shoot(state, player, params, rng, mult, events)
            else:
                logger.debug("tick %d: %s SHOOT ignored, side not in possession", state.tick, side.value)
        elif isinstance(params, PassParams):
            if has_ball:
                self._pass(state, player, params, rng, mult, events)
            else:
                logger.debug("tick %d: %s PASS ignored, side not in possession", state.tick, side.value)
        elif isinstance(params, SkillParams):
            if has_ball:
                self._skill(state, player, params, rng, events)
            else:
                logger.debug("tick %d: %s SKILL ignored, side not in possession", state.tick, side.value)
        elif isinstance(params, TackleParams):
            self._tackle(state, player, params, rng, mult, events)

    def _shoot(
        self,
        state: MatchState,
        shooter: PlayerState,
        params: ShootParams,
        rng: SeededRandomSource,
        mult: BehaviorMultipliers,
        events: list[MatchEvent],
    ) -> None:
        accuracy = clamp(scale(400 + shooter.stats.shooting * 5, mult.shot_accuracy), 50, 950)
        on_target = rng.roll() < accuracy
        spread = SHOT_TIGHT_SPREAD_DEG if on_target else SHOT_WIDE_SPREAD_DEG
        deviation = rng.randint(-spread, spread)

        base_direction = 0 if shooter.side is Side.HOME else 180
        direction = base_direction + fdiv(params.angle, FIXED_ONE) + deviation
        speed = scale(fdiv(self._profile.max_shot_speed * params.power, 100 * FIXED_ONE), mult.shot_power)
        self._release(state, shooter, polar(self.per_tick(speed), direction))
        events.append(
            MatchEvent(
                tick=state.tick,
                event_type="shot",
                side=shooter.side,
                player_id=shooter.player_id,
                detail="on_target" if on_target else "off_target",
            )
        )

    def _pass(
        self,
        state: MatchState,
        passer: PlayerState,
        params: PassParams,
        rng: SeededRandomSource,
        mult: BehaviorMultipliers,
        events: list[MatchEvent],
    ) -> None:
        receiver = self._player(state, params.target_id)
        if receiver is None or receiver.side is not passer.side or receiver.player_id == passer.player_id:
            logger.debug("tick %d: PASS to '%s' ignored, not a teammate", state.tick, params.target_id)
            return
        accuracy = clamp(scale(450 + passer.stats.passing * 5, mult.pass_accuracy), 50, 980)
        completed = rng.roll() < accuracy
        aim = receiver.position
        if not completed:
            aim = Vec(
                clamp(aim.x + rng.randint(-PASS_MISS_OFFSET, PASS_MISS_OFFSET), 0, self._width),
                clamp(aim.y + rng.randint(-PASS_MISS_OFFSET, PASS_MISS_OFFSET), 0, self._height),
            )
        self._release(state, passer, heading(passer.position, aim, self.per_tick(self._profile.pass_speed)))
        events.append(
            MatchEvent(
                tick=state.tick,
                event_type="pass",
                side=passer.side,
                player_id=passer.player_id,
                detail=f"{'completed' if completed else 'misplaced'}:{receiver.player_id}",
            )
        )

    def _skill(
        self,
        state: MatchState,
        holder: PlayerState,
        params: SkillParams,
        rng: SeededRandomSource,
        events: list[MatchEvent],
    ) -> None:
        success = rng.roll() < clamp(300 + holder.stats.dribbling * 6, 50, 950)
        if success:
            forward = self._profile.skill_burst if holder.side is Side.HOME else -self._profile.skill_burst
            holder.position = Vec(clamp(holder.position.x + forward, 0, self._width), holder.position.y)
            state.ball.position = holder.position
        else:
            direction = rng.randint(0, 359)
            self._release(state, holder, polar(self.per_tick(self._profile.skill_burst), direction))
        events.append(
            MatchEvent(
                tick=state.tick,
                event_type="skill",
                side=holder.side,
                player_id=holder.player_id,
                detail=f"{params.skill_id}:{'success' if success else 'lost'}",
            )
        )

    def _tackle(
        self,
        state: MatchState,
        tackler: PlayerState,
        params: TackleParams,
        rng: SeededRandomSource,
        mult: BehaviorMultipliers,
        events: list[MatchEvent],
    ) -> None:
        holder = self._holder(state)
        if holder is None or holder.player_id != params.target_id or holder.side is tackler.side:
            logger.debug("tick %d: TACKLE on '%s' ignored, not the opposing holder", state.tick, params.target_id)
            return
        reach = scale(self._profile.tackle_radius, mult.pressing_radius)
        if distance_sq(tackler.position, holder.position) > reach * reach:
            logger.debug("tick %d: TACKLE by %s out of reach", state.tick, tackler.player_id)
            return
        chance = clamp(scale(350 + (tackler.stats.defense - holder.stats.dribbling) * 5, mult.tackle_weight), 50, 950)
        won = rng.roll() < chance
        if won:
            # Ball is poked to the tackler; capture resolution hands over possession.
            state.ball.holder_id = None
            state.ball.position = tackler.position
            state.ball.velocity = Vec(0, 0)
            state.ball.last_touch = TouchRef(player_id=holder.player_id, tick=state.tick)
        events.append(
            MatchEvent(
                tick=state.tick,
                event_type="tackle",
                side=tackler.side,
                player_id=tackler.player_id,
                detail=f"{'won' if won else 'lost'}:{holder.player_id}",
            )
        )

    def _release(self, state: MatchState, player: PlayerState, velocity: Vec) -> None:
        state.ball.holder_id = None
        state.ball.position = player.position
        state.ball.velocity = velocity
        state.ball.last_touch = TouchRef(player_id=player.player_id, tick=state.tick)

    def _move_players(self, state: MatchState, multipliers: dict[Side, BehaviorMultipliers]) -> None:
        for player in state.all_players():
            if player.target is not None:
                speed = self._profile.base_run_speed + fdiv(self._profile.pace_run_speed * player.stats.pace, 100)
                speed = scale(speed, multipliers[player.side].move_speed)
                if player.sprint_ticks > 0:
                    speed = scale(speed, self._profile.sprint_permille)
                if player.stamina_milli < self._profile.low_stamina_threshold:
                    speed = scale(speed, self._profile.low_stamina_speed_permille)
                moved = step_toward(player.position, player.target, self.per_tick(speed))
                player.position = Vec(clamp(moved.x, 0, self._width), clamp(moved.y, 0, self._height))
                if player.position == player.target:
                    player.target = None

    def _move_ball(self, state: MatchState, events: list[MatchEvent]) -> None:
        ball = state.ball
        holder = self._holder(state)
        if holder is not None:
            ball.position = holder.position
            ball.velocity = Vec(0, 0)
            return
        if ball.velocity == Vec(0, 0):
            return

        start = ball.position
        x = start.x + ball.velocity.x
        y = start.y + ball.velocity.y
        vx, vy = ball.velocity.x, ball.velocity.y

        if x < 0 or x > self._width:
            line = 0 if x < 0 else self._width
            crossing_y = start.y + fdiv(vy * (line - start.x), vx)
            if self._goal_low <= crossing_y <= self._goal_high:
                self._score(state, Side.AWAY if line == 0 else Side.HOME, events)
                return
            x = -x if x < 0 else 2 * self._width - x
            vx = -scale(vx, self._profile.bounce_permille)
        if y < 0 or y > self._height:
            y = -y if y < 0 else 2 * self._height - y
            vy = -scale(vy, self._profile.bounce_permille)

        ball.position = Vec(clamp(x, 0, self._width), clamp(y, 0, self._height))
        ball.velocity = Vec(scale(vx, self._profile.friction_permille), scale(vy, self._profile.friction_permille))

    def _score(self, state: MatchState, scorer: Side, events: list[MatchEvent]) -> None:
        state.team(scorer).score += 1
        touch = state.ball.last_touch
        events.append(
            MatchEvent(
                tick=state.tick,
                event_type="goal",
                side=scorer,
                player_id=touch.player_id if touch else None,
                detail=f"{state.home.score}-{state.away.score}",
            )
        )
        state.ball.position = self.centre
        state.ball.velocity = Vec(0, 0)
        state.ball.holder_id = None
        state.ball.possession = None
        state.ball.last_touch = None
        state.possession = scorer.opponent
        logger.debug("tick %d: goal for %s (%d-%d)", state.tick, scorer.value, state.home.score, state.away.score)

    def _resolve_capture(self, state: MatchState, events: list[MatchEvent]) -> None:
        ball = state.ball
        if ball.holder_id is not None:
            return
        touch = ball.last_touch
        excluded = None
        if touch is not None and state.tick - touch.tick < self._profile.recapture_cooldown_ticks:
            excluded = touch.player_id
        radius_sq = self._profile.capture_radius * self._profile.capture_radius
        side_rank = {Side.HOME: 0, Side.AWAY: 1}
        candidates = [
            (distance_sq(p.position, ball.position), side_rank[p.side], p.player_id, p)
            for p in state.all_players()
            if p.player_id != excluded and distance_sq(p.position, ball.position) <= radius_sq
        ]
        if not candidates:
            return
        _, _, _, winner = min(candidates, key=lambda c: c[:3])
        previous = ball.possession
        reach = distance(winner.position, ball.position)
        ball.holder_id = winner.player_id
        ball.possession = winner.side
        ball.position = winner.position
        ball.velocity = Vec(0, 0)
        ball.last_touch = TouchRef(player_id=winner.player_id, tick=state.tick)
        state.possession = winner.side
        if previous is not winner.side:
            events.append(
                MatchEvent(
                    tick=state.tick,
                    event_type="possession_change",
                    side=winner.side,
                    player_id=winner.player_id,
                    detail=f"distance={reach}",
                )
            )

    def _decay_stamina(self, state: MatchState, multipliers: dict[Side, BehaviorMultipliers]) -> None:
        for player in state.all_players():
            rate = scale(self._profile.stamina_decay_per_second, multipliers[player.side].stamina_decay)
            if player.sprint_ticks > 0:
                rate = scale(rate, self._profile.sprint_stamina_permille)
            decay = self.per_tick(rate)
            player.stamina_milli = clamp(player.stamina_milli - decay, 0, self._profile.stamina_max)
            if player.sprint_ticks > 0:
                player.sprint_ticks -= 1

    def _holder(self, state: MatchState) -> PlayerState | None:
        if state.ball.holder_id is None:
            return None
        return self._player(state, state.ball.holder_id)

    def _player(self, state: MatchState, player_id: str) -> PlayerState | None:
        for player in state.all_players():
            if player.player_id == player_id:
                return player
        return None


def _fixed_dimension(value: float) -> int:
    fixed = to_fixed(value)
    if fixed <= 0:
        raise ValueError(f"{value!r} is too small to represent")
    return fixed
