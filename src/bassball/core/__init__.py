from .config import (
    ENGINE_VERSION,
    EngineProfile,
    default_engine_profile,
    default_match_config,
    load_match_config,
    match_config_from_dict,
)
from .errors import (
    DeterminismViolation,
    EngineIntegrityError,
    build_forensic_artifact,
    determinism_violation,
    persist_forensic_artifact,
)
from .events import EventBus
from .ids import derive_match_id, make_id, now_utc
from .randomness import SeededRandomSource

__all__ = [
    "DeterminismViolation",
    "ENGINE_VERSION",
    "EngineIntegrityError",
    "EngineProfile",
    "EventBus",
    "SeededRandomSource",
    "build_forensic_artifact",
    "default_engine_profile",
    "default_match_config",
    "derive_match_id",
    "determinism_violation",
    "load_match_config",
    "make_id",
    "match_config_from_dict",
    "now_utc",
    "persist_forensic_artifact",
]
