from .codec import result_from_dict, result_to_dict, tactics_from_dict, tactics_to_dict, verification_to_dict
from .driver import StopSignal, TickDriver, default_roster, run
from .formations import FormationCatalog
from .hasher import CanonicalWriter, replay_hash, result_hash
from .ingestion import InputQueue
from .inputs import InputValidator, input_to_dict, validate_input
from .models import StepResult, TickRecord
from .physics import PhysicsEngine
from .plausibility import assess_plausibility
from .tactics import TacticsTimeline, behavior_multipliers
from .verifier import (
    MatchVerifier,
    render_batch_verification_report,
    render_verification_report,
    verify,
    verify_result,
)

__all__ = [
    "CanonicalWriter",
    "FormationCatalog",
    "InputQueue",
    "InputValidator",
    "MatchVerifier",
    "PhysicsEngine",
    "StepResult",
    "StopSignal",
    "TacticsTimeline",
    "TickDriver",
    "TickRecord",
    "assess_plausibility",
    "behavior_multipliers",
    "default_roster",
    "input_to_dict",
    "render_batch_verification_report",
    "render_verification_report",
    "replay_hash",
    "result_from_dict",
    "result_hash",
    "result_to_dict",
    "run",
    "tactics_from_dict",
    "tactics_to_dict",
    "validate_input",
    "verification_to_dict",
    "verify",
    "verify_result",
]
