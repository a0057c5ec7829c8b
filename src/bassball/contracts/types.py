from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from fractions import Fraction
from math import ceil, isfinite
from typing import Any, ClassVar, Mapping, Protocol, Sequence, Union


class ActionType(str, Enum):
    MOVE = "MOVE"
    PASS = "PASS"
    SHOOT = "SHOOT"
    TACKLE = "TACKLE"
    SPRINT = "SPRINT"
    SKILL = "SKILL"


class Side(str, Enum):
    HOME = "home"
    AWAY = "away"

    @property
    def opponent(self) -> Side:
        return Side.AWAY if self is Side.HOME else Side.HOME


class MatchStatus(str, Enum):
    WAITING = "waiting"
    STARTED = "started"
    ENDED = "ended"


class EndReason(str, Enum):
    FULL_TIME = "full_time"
    FORFEIT = "forfeit"
    TIMEOUT = "timeout"


class MismatchType(str, Enum):
    ENGINE_VERSION_MISMATCH = "ENGINE_VERSION_MISMATCH"
    HASH_MISMATCH = "HASH_MISMATCH"
    INCOMPLETE_INPUTS = "INCOMPLETE_INPUTS"


PrngState = tuple[Any, ...]


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...

    def roll(self) -> int: ...

    def getstate(self) -> PrngState: ...


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: str
    field_path: str
    entity_id: str
    message: str


@dataclass(slots=True)
class ValidationResult:
    ok: bool
    issues: list[ValidationIssue]


class ValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        message = "; ".join(f"{i.code}:{i.entity_id}:{i.message}" for i in issues)
        super().__init__(message)
        self.issues = issues


class ConfigError(ValidationError):
    """Match setup that must not be simulated at all."""


@dataclass(frozen=True, slots=True)
class MatchConfig:
    field_width: float
    field_height: float
    tick_rate: float
    match_duration: float

    def validate(self) -> None:
        issues: list[ValidationIssue] = []
        for name in ("field_width", "field_height", "tick_rate", "match_duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not isfinite(value) or value <= 0:
                issues.append(
                    ValidationIssue(
                        code="NON_POSITIVE_CONFIG",
                        severity="blocking",
                        field_path=f"config.{name}",
                        entity_id="match_config",
                        message=f"{name} must be a positive number, got {value!r}",
                    )
                )
        if issues:
            raise ConfigError(issues)

    @property
    def total_ticks(self) -> int:
        return ceil(Fraction(str(self.match_duration)) * Fraction(str(self.tick_rate)))

    def duration_ms_for(self, ticks: int) -> int:
        elapsed = Fraction(ticks * 1000) / Fraction(str(self.tick_rate))
        cap = Fraction(str(self.match_duration)) * 1000
        return int(min(elapsed, cap))


@dataclass(frozen=True, slots=True)
class Vec:
    """Point or velocity in fixed-point field units (thousandths)."""

    x: int
    y: int


@dataclass(frozen=True, slots=True)
class MoveParams:
    x: int
    y: int
    action: ClassVar[ActionType] = ActionType.MOVE


@dataclass(frozen=True, slots=True)
class ShootParams:
    power: int
    angle: int
    action: ClassVar[ActionType] = ActionType.SHOOT


@dataclass(frozen=True, slots=True)
class PassParams:
    target_id: str
    action: ClassVar[ActionType] = ActionType.PASS


@dataclass(frozen=True, slots=True)
class TackleParams:
    target_id: str
    action: ClassVar[ActionType] = ActionType.TACKLE


@dataclass(frozen=True, slots=True)
class SprintParams:
    action: ClassVar[ActionType] = ActionType.SPRINT


@dataclass(frozen=True, slots=True)
class SkillParams:
    skill_id: str
    action: ClassVar[ActionType] = ActionType.SKILL


ActionParams = Union[MoveParams, ShootParams, PassParams, TackleParams, SprintParams, SkillParams]


@dataclass(frozen=True, slots=True)
class PlayerInput:
    tick: int
    params: ActionParams
    timestamp: int

    @property
    def action(self) -> ActionType:
        return self.params.action


@dataclass(frozen=True, slots=True)
class InputRejection:
    side: Side
    submission_index: int
    tick: int | None
    issues: tuple[ValidationIssue, ...]


@dataclass(frozen=True, slots=True)
class ConsumedInputs:
    home: tuple[PlayerInput, ...] = ()
    away: tuple[PlayerInput, ...] = ()

    def for_side(self, side: Side) -> tuple[PlayerInput, ...]:
        return self.home if side is Side.HOME else self.away

    @property
    def total(self) -> int:
        return len(self.home) + len(self.away)


@dataclass(frozen=True, slots=True)
class PlayerStats:
    pace: int = 70
    shooting: int = 70
    passing: int = 70
    defense: int = 70
    dribbling: int = 70


@dataclass(frozen=True, slots=True)
class PlayerProfile:
    player_id: str
    stats: PlayerStats = field(default_factory=PlayerStats)


@dataclass(frozen=True, slots=True)
class TouchRef:
    player_id: str
    tick: int


@dataclass(slots=True)
class PlayerState:
    player_id: str
    side: Side
    slot: str
    position: Vec
    stamina_milli: int
    stats: PlayerStats
    target: Vec | None = None
    sprint_ticks: int = 0

    @property
    def stamina(self) -> float:
        return self.stamina_milli / 1000


@dataclass(slots=True)
class BallState:
    position: Vec
    velocity: Vec
    possession: Side | None = None
    holder_id: str | None = None
    last_touch: TouchRef | None = None


@dataclass(slots=True)
class TeamState:
    name: str
    score: int
    players: list[PlayerState]


@dataclass(slots=True)
class MatchState:
    match_id: str
    status: MatchStatus
    tick: int
    home: TeamState
    away: TeamState
    ball: BallState
    possession: Side
    duration_ms: int
    seed: str

    def team(self, side: Side) -> TeamState:
        return self.home if side is Side.HOME else self.away

    def all_players(self) -> list[PlayerState]:
        return self.home.players + self.away.players


@dataclass(frozen=True, slots=True)
class TacticalSliders:
    pressing: int = 50
    tempo: int = 50
    width: int = 50
    defensive_line_height: int = 50
    offensive_aggression: int = 50
    build_up_play: int = 50
    transition_speed: int = 50
    creativity: int = 50

    SLIDER_NAMES: ClassVar[tuple[str, ...]] = (
        "pressing",
        "tempo",
        "width",
        "defensive_line_height",
        "offensive_aggression",
        "build_up_play",
        "transition_speed",
        "creativity",
    )

    def validate(self, entity_id: str = "tactics") -> None:
        issues: list[ValidationIssue] = []
        for name in self.SLIDER_NAMES:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                issues.append(
                    ValidationIssue(
                        code="SLIDER_OUT_OF_RANGE",
                        severity="blocking",
                        field_path=f"sliders.{name}",
                        entity_id=entity_id,
                        message=f"{name} must be an integer in [0, 100], got {value!r}",
                    )
                )
        if issues:
            raise ValidationError(issues)


@dataclass(frozen=True, slots=True)
class TeamTactics:
    formation: str = "4-4-2"
    sliders: TacticalSliders = field(default_factory=TacticalSliders)


@dataclass(frozen=True, slots=True)
class TacticsUpdate:
    side: Side
    updated_at: int
    tactics: TeamTactics


@dataclass(frozen=True, slots=True)
class MatchTactics:
    home: TeamTactics = field(default_factory=TeamTactics)
    away: TeamTactics = field(default_factory=TeamTactics)
    updates: tuple[TacticsUpdate, ...] = ()

    def initial(self, side: Side) -> TeamTactics:
        return self.home if side is Side.HOME else self.away


@dataclass(frozen=True, slots=True)
class BehaviorMultipliers:
    """Per-tick behaviour scaling in permille (1000 = neutral)."""

    stamina_decay: int
    pass_accuracy: int
    shot_accuracy: int
    pressing_radius: int
    tackle_weight: int
    shot_power: int
    move_speed: int


@dataclass(frozen=True, slots=True)
class FormationSlot:
    slot: str
    depth: int
    lane: int


@dataclass(frozen=True, slots=True)
class Formation:
    formation_id: str
    description: str
    slots: tuple[FormationSlot, ...]
    bias: Mapping[str, int]


@dataclass(slots=True)
class ResourceManifest:
    resource_type: str
    schema_version: str
    resource_version: str
    generated_at: str
    checksum: str


@dataclass(frozen=True, slots=True)
class MatchEvent:
    tick: int
    event_type: str
    side: Side | None
    player_id: str | None
    detail: str = ""


@dataclass(slots=True)
class TeamStats:
    shots: int = 0
    shots_on_target: int = 0
    goals: int = 0
    passes: int = 0
    passes_completed: int = 0
    tackles: int = 0
    tackles_won: int = 0
    skills: int = 0
    possession_ticks: int = 0


@dataclass(slots=True)
class MatchStats:
    home: TeamStats = field(default_factory=TeamStats)
    away: TeamStats = field(default_factory=TeamStats)

    def for_side(self, side: Side) -> TeamStats:
        return self.home if side is Side.HOME else self.away


@dataclass(frozen=True, slots=True)
class MatchResult:
    match_id: str
    home_score: int
    away_score: int
    duration_ms: int
    duration_ticks: int
    seed: str
    engine_version: str
    inputs: ConsumedInputs
    replay_hash: str
    result_hash: str
    # Excluded from equality; replays of one match compare equal.
    # Wall-clock stamp of when the result was produced; two replays of one match compare equal.
    timestamp: datetime = field(compare=False)
    end_reason: EndReason = EndReason.FULL_TIME
    stats: MatchStats = field(default_factory=MatchStats)
    events: tuple[MatchEvent, ...] = ()
    rejected: tuple[InputRejection, ...] = ()

    @property
    def duration(self) -> float:
        return self.duration_ms / 1000


@dataclass(frozen=True, slots=True)
class VerificationDetails:
    seed: str
    engine_version: str
    home_score: int
    away_score: int
    inputs_processed: int
    duration_ms: int

    @property
    def final_score(self) -> tuple[int, int]:
        return self.home_score, self.away_score


@dataclass(frozen=True, slots=True)
class VerificationResult:
    valid: bool
    computed_hash: str
    on_chain_hash: str
    details: VerificationDetails
    mismatch_type: MismatchType | None = None


@dataclass(slots=True)
class ForensicArtifact:
    artifact_id: str
    timestamp: datetime
    engine_scope: str
    error_code: str
    message: str
    state_snapshot: Mapping[str, Any]
    context: Mapping[str, Any]
    identifiers: Mapping[str, str]
    causal_fragment: Sequence[str]


@dataclass(slots=True)
class StrictAuditFinding:
    finding_id: str
    scope: str
    severity: str
    summary: str
    location: str


@dataclass(slots=True)
class StrictAuditSection:
    section: str
    passed: bool
    findings: list[StrictAuditFinding]


@dataclass(slots=True)
class StrictAuditReport:
    report_id: str
    generated_at: datetime
    passed: bool
    sections: list[StrictAuditSection]
