from __future__ import annotations

from typing import Any, Mapping

from bassball.contracts import (
    ActionParams,
    ActionType,
    MatchConfig,
    MoveParams,
    PassParams,
    PlayerInput,
    ShootParams,
    SkillParams,
    SprintParams,
    TackleParams,
    ValidationError,
    ValidationIssue,
)
from bassball.core.fixed import from_fixed, to_fixed

POWER_RANGE = (0, 100_000)
ANGLE_RANGE = (-180_000, 180_000)

_PARAM_ALIASES = {"targetId": "target_id", "skillId": "skill_id"}


class InputValidator:
    """Turns raw input payloads into typed ``PlayerInput`` values or raises ``ValidationError``."""

    def __init__(self, config: MatchConfig | None = None) -> None:
        self._config = config

    def validate(self, raw: PlayerInput | Mapping[str, Any], entity_id: str = "input") -> PlayerInput:
        if isinstance(raw, PlayerInput):
            issues = self._validate_typed(raw, entity_id)
            self._finalize(issues)
            return raw
        if not isinstance(raw, Mapping):
            self._finalize([self._issue("INPUT_NOT_OBJECT", "input", entity_id, "input must be an object")])

        issues: list[ValidationIssue] = []
        tick = raw.get("tick")
        timestamp = raw.get("timestamp")
        if not _is_int(tick) or tick < 0:
            issues.append(self._issue("INVALID_TICK", "input.tick", entity_id, f"tick must be a non-negative integer, got {tick!r}"))
        if not _is_int(timestamp) or timestamp < 0:
            issues.append(
                self._issue("INVALID_TIMESTAMP", "input.timestamp", entity_id, f"timestamp must be a non-negative integer, got {timestamp!r}")
            )

        action_raw = raw.get("action")
        try:
            action = ActionType(action_raw)
        except ValueError:
            issues.append(self._issue("UNKNOWN_ACTION", "input.action", entity_id, f"unknown action {action_raw!r}"))
            self._finalize(issues)

        params_raw = raw.get("params", {})
        if not isinstance(params_raw, Mapping):
            issues.append(self._issue("INVALID_PARAMS", "input.params", entity_id, "params must be an object"))
            self._finalize(issues)
        params_norm = {_PARAM_ALIASES.get(str(k), str(k)): v for k, v in params_raw.items()}

        params, param_issues = self._parse_params(action, params_norm, entity_id)
        issues.extend(param_issues)
        self._finalize(issues)
        player_input = PlayerInput(tick=tick, params=params, timestamp=timestamp)  # type: ignore[arg-type]
        self._finalize(self._validate_typed(player_input, entity_id))
        return player_input

    def _parse_params(
        self, action: ActionType, params: dict[str, Any], entity_id: str
    ) -> tuple[ActionParams, list[ValidationIssue]]:
        issues: list[ValidationIssue] = []
        if action is ActionType.MOVE:
            x = self._fixed(params, "x", entity_id, issues)
            y = self._fixed(params, "y", entity_id, issues)
            return MoveParams(x=x, y=y), issues
        if action is ActionType.SHOOT:
            power = self._fixed(params, "power", entity_id, issues)
            angle = self._fixed(params, "angle", entity_id, issues)
            return ShootParams(power=power, angle=angle), issues
        if action is ActionType.PASS:
            return PassParams(target_id=self._text(params, "target_id", entity_id, issues)), issues
        if action is ActionType.TACKLE:
            return TackleParams(target_id=self._text(params, "target_id", entity_id, issues)), issues
        if action is ActionType.SKILL:
            return SkillParams(skill_id=self._text(params, "skill_id", entity_id, issues)), issues
        return SprintParams(), issues

    def _validate_typed(self, player_input: PlayerInput, entity_id: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if not _is_int(player_input.tick) or player_input.tick < 0:
            issues.append(self._issue("INVALID_TICK", "input.tick", entity_id, "tick must be a non-negative integer"))
        if not _is_int(player_input.timestamp) or player_input.timestamp < 0:
            issues.append(self._issue("INVALID_TIMESTAMP", "input.timestamp", entity_id, "timestamp must be a non-negative integer"))

        params = player_input.params
        if isinstance(params, MoveParams):
            if self._config is not None:
                width = to_fixed(self._config.field_width)
                height = to_fixed(self._config.field_height)
                if not 0 <= params.x <= width or not 0 <= params.y <= height:
                    issues.append(
                        self._issue(
                            "MOVE_OUTSIDE_FIELD",
                            "input.params",
                            entity_id,
                            f"move target ({from_fixed(params.x)}, {from_fixed(params.y)}) is outside the field",
                        )
                    )
        elif isinstance(params, ShootParams):
            if not POWER_RANGE[0] <= params.power <= POWER_RANGE[1]:
                issues.append(self._issue("POWER_OUT_OF_RANGE", "input.params.power", entity_id, "power must be in [0, 100]"))
            if not ANGLE_RANGE[0] <= params.angle <= ANGLE_RANGE[1]:
                issues.append(self._issue("ANGLE_OUT_OF_RANGE", "input.params.angle", entity_id, "angle must be in [-180, 180]"))
        elif isinstance(params, (PassParams, TackleParams)):
            if not isinstance(params.target_id, str) or not params.target_id:
                issues.append(self._issue("MISSING_TARGET", "input.params.target_id", entity_id, "target_id is required"))
        elif isinstance(params, SkillParams):
            if not isinstance(params.skill_id, str) or not params.skill_id:
                issues.append(self._issue("MISSING_SKILL", "input.params.skill_id", entity_id, "skill_id is required"))
        elif not isinstance(params, SprintParams):
            issues.append(self._issue("UNKNOWN_ACTION", "input.params", entity_id, f"unsupported params {type(params).__name__}"))
        return issues

    def _fixed(self, params: dict[str, Any], key: str, entity_id: str, issues: list[ValidationIssue]) -> int:
        value = params.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            issues.append(self._issue("MISSING_PARAM", f"input.params.{key}", entity_id, f"'{key}' must be a number"))
            return 0
        try:
            return to_fixed(value)
        except ValueError as exc:
            issues.append(self._issue("INVALID_PARAM", f"input.params.{key}", entity_id, str(exc)))
            return 0

    def _text(self, params: dict[str, Any], key: str, entity_id: str, issues: list[ValidationIssue]) -> str:
        value = params.get(key)
        if not isinstance(value, str) or not value:
            issues.append(self._issue("MISSING_PARAM", f"input.params.{key}", entity_id, f"'{key}' must be a non-empty string"))
            return ""
        return value

    def _issue(self, code: str, field_path: str, entity_id: str, message: str) -> ValidationIssue:
        return ValidationIssue(code=code, severity="blocking", field_path=field_path, entity_id=entity_id, message=message)

    def _finalize(self, issues: list[ValidationIssue]) -> None:
        if issues:
            raise ValidationError(sorted(issues, key=lambda x: (x.code, x.field_path)))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_input(raw: PlayerInput | Mapping[str, Any], config: MatchConfig | None = None) -> PlayerInput:
    return InputValidator(config).validate(raw)


def params_to_dict(params: ActionParams) -> dict[str, Any]:
    if isinstance(params, MoveParams):
        return {"x": from_fixed(params.x), "y": from_fixed(params.y)}
    if isinstance(params, ShootParams):
        return {"power": from_fixed(params.power), "angle": from_fixed(params.angle)}
    if isinstance(params, (PassParams, TackleParams)):
        return {"targetId": params.target_id}
    if isinstance(params, SkillParams):
        return {"skillId": params.skill_id}
    return {}


def input_to_dict(player_input: PlayerInput) -> dict[str, Any]:
    return {
        "tick": player_input.tick,
        "action": player_input.action.value,
        "params": params_to_dict(player_input.params),
        "timestamp": player_input.timestamp,
    }
