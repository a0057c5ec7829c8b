from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from bassball.contracts import ConfigError, MatchConfig, ValidationIssue

ENGINE_VERSION = "1.0.0"


@dataclass(frozen=True, slots=True)
class EngineProfile:
    """Physics and rule constants. Distances are thousandths of a field unit,
    speeds are per second, ratios are permille."""

    friction_permille: int
    bounce_permille: int
    capture_radius: int
    tackle_radius: int
    goal_mouth_permille: int
    recapture_cooldown_ticks: int
    base_run_speed: int
    pace_run_speed: int
    sprint_permille: int
    sprint_duration_ms: int
    max_shot_speed: int
    pass_speed: int
    skill_burst: int
    stamina_max: int
    stamina_decay_per_second: int
    sprint_stamina_permille: int
    low_stamina_threshold: int
    low_stamina_speed_permille: int

    def validate(self) -> None:
        issues: list[ValidationIssue] = []
        for name in self.__slots__:
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                issues.append(
                    ValidationIssue(
                        code="INVALID_ENGINE_PROFILE",
                        severity="blocking",
                        field_path=f"engine_profile.{name}",
                        entity_id="engine_profile",
                        message=f"{name} must be a non-negative integer, got {value!r}",
                    )
                )
        if not 0 < self.friction_permille < 1000:
            issues.append(
                ValidationIssue(
                    code="INVALID_ENGINE_PROFILE",
                    severity="blocking",
                    field_path="engine_profile.friction_permille",
                    entity_id="engine_profile",
                    message="friction must decay the ball strictly between 0 and 1000 permille",
                )
            )
        if issues:
            raise ConfigError(issues)


def default_engine_profile() -> EngineProfile:
    return EngineProfile(
        friction_permille=980,
        bounce_permille=850,
        capture_radius=1_500,
        tackle_radius=3_000,
        goal_mouth_permille=200,
        recapture_cooldown_ticks=3,
        base_run_speed=4_000,
        pace_run_speed=4_000,
        sprint_permille=1_500,
        sprint_duration_ms=2_000,
        max_shot_speed=30_000,
        pass_speed=15_000,
        skill_burst=2_000,
        stamina_max=100_000,
        stamina_decay_per_second=200,
        sprint_stamina_permille=3_000,
        low_stamina_threshold=30_000,
        low_stamina_speed_permille=850,
    )


def default_match_config() -> MatchConfig:
    return MatchConfig(field_width=100, field_height=60, tick_rate=10, match_duration=90)


def match_config_from_dict(payload: dict[str, object]) -> MatchConfig:
    required = ("field_width", "field_height", "tick_rate", "match_duration")
    missing = [key for key in required if key not in payload]
    if missing:
        issues = [
            ValidationIssue(
                code="MISSING_CONFIG_FIELD",
                severity="blocking",
                field_path=f"config.{key}",
                entity_id="match_config",
                message=f"required field '{key}' is missing",
            )
            for key in missing
        ]
        raise ConfigError(issues)
    config = MatchConfig(**{key: payload[key] for key in required})  # type: ignore[arg-type]
    config.validate()
    return config


def load_match_config(path: Path) -> MatchConfig:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        issue = ValidationIssue(
            code="INVALID_CONFIG_FILE",
            severity="blocking",
            field_path=str(path),
            entity_id="match_config",
            message="config file must contain a JSON object",
        )
        raise ConfigError([issue])
    return match_config_from_dict(payload)
