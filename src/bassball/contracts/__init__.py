from .types import (
    ActionParams,
    ActionType,
    BallState,
    BehaviorMultipliers,
    ConfigError,
    ConsumedInputs,
    EndReason,
    ForensicArtifact,
    Formation,
    FormationSlot,
    InputRejection,
    MatchConfig,
    MatchEvent,
    MatchResult,
    MatchState,
    MatchStats,
    MatchStatus,
    MatchTactics,
    MismatchType,
    MoveParams,
    PassParams,
    PlayerInput,
    PlayerProfile,
    PlayerState,
    PlayerStats,
    PrngState,
    RandomSource,
    ResourceManifest,
    ShootParams,
    Side,
    SkillParams,
    SprintParams,
    StrictAuditFinding,
    StrictAuditReport,
    StrictAuditSection,
    TackleParams,
    TacticalSliders,
    TacticsUpdate,
    TeamState,
    TeamStats,
    TeamTactics,
    TouchRef,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    Vec,
    VerificationDetails,
    VerificationResult,
)

__all__ = [
    "ActionParams",
    "ActionType",
    "BallState",
    "BehaviorMultipliers",
    "ConfigError",
    "ConsumedInputs",
    "EndReason",
    "ForensicArtifact",
    "Formation",
    "FormationSlot",
    "InputRejection",
    "MatchConfig",
    "MatchEvent",
    "MatchResult",
    "MatchState",
    "MatchStats",
    "MatchStatus",
    "MatchTactics",
    "MismatchType",
    "MoveParams",
    "PassParams",
    "PlayerInput",
    "PlayerProfile",
    "PlayerState",
    "PlayerStats",
    "PrngState",
    "RandomSource",
    "ResourceManifest",
    "ShootParams",
    "Side",
    "SkillParams",
    "SprintParams",
    "StrictAuditFinding",
    "StrictAuditReport",
    "StrictAuditSection",
    "TackleParams",
    "TacticalSliders",
    "TacticsUpdate",
    "TeamState",
    "TeamStats",
    "TeamTactics",
    "TouchRef",
    "ValidationError",
    "ValidationIssue",
    "ValidationResult",
    "Vec",
    "VerificationDetails",
    "VerificationResult",
]
