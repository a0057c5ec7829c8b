from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from importlib import resources
from typing import Any

from bassball.contracts import (
    BehaviorMultipliers,
    Formation,
    FormationSlot,
    ResourceManifest,
    ValidationError,
    ValidationIssue,
)

EXPECTED_SCHEMA_VERSION = "1.0"
FORMATION_SIZE = 11
BIAS_KEYS = frozenset(BehaviorMultipliers.__slots__)


@dataclass(slots=True)
class ResourceBundle:
    manifest: ResourceManifest
    resources_by_id: dict[str, dict[str, Any]]


class FormationCatalog:
    """Data-pack backed registry of formation templates and their behaviour biases."""

    def __init__(self, bundle_override: dict[str, Any] | None = None) -> None:
        self._bundle = self._load_bundle("formations.json", "formation", bundle_override)
        self._formations = {rid: self._parse(rid, raw) for rid, raw in self._bundle.resources_by_id.items()}

    @property
    def manifest(self) -> ResourceManifest:
        return self._bundle.manifest

    def formation_ids(self) -> list[str]:
        return sorted(self._formations)

    def resolve(self, formation_id: str) -> Formation:
        formation = self._formations.get(formation_id)
        if formation is None:
            issue = ValidationIssue(
                code="UNKNOWN_FORMATION",
                severity="blocking",
                field_path="tactics.formation",
                entity_id=formation_id,
                message=f"formation '{formation_id}' is not in the catalog",
            )
            raise ValidationError([issue])
        return formation

    def _load_bundle(self, filename: str, expected_type: str, override: dict[str, Any] | None) -> ResourceBundle:
        if override is not None:
            payload = override
        else:
            package = resources.files("bassball.resources")
            payload = json.loads((package / filename).read_text(encoding="utf-8"))
        manifest_data = payload.get("manifest")
        resources_list = payload.get("resources")
        if not isinstance(manifest_data, dict) or not isinstance(resources_list, list):
            issue = ValidationIssue(
                code="INVALID_RESOURCE_BUNDLE",
                severity="blocking",
                field_path=filename,
                entity_id=expected_type,
                message="resource bundle must provide manifest and resources list",
            )
            raise ValidationError([issue])

        required_manifest_fields = {"resource_type", "schema_version", "resource_version", "generated_at", "checksum"}
        missing_manifest = sorted(required_manifest_fields - set(manifest_data.keys()))
        if missing_manifest:
            issue = ValidationIssue(
                code="MISSING_REQUIRED_RUNTIME_CONFIG",
                severity="blocking",
                field_path=f"{filename}.manifest",
                entity_id=expected_type,
                message=f"manifest missing required fields {missing_manifest}",
            )
            raise ValidationError([issue])

        manifest = ResourceManifest(
            resource_type=str(manifest_data["resource_type"]),
            schema_version=str(manifest_data["schema_version"]),
            resource_version=str(manifest_data["resource_version"]),
            generated_at=str(manifest_data["generated_at"]),
            checksum=str(manifest_data["checksum"]),
        )
        issues = self._validate_manifest(manifest, expected_type, resources_list)
        if issues:
            raise ValidationError(issues)

        by_id: dict[str, dict[str, Any]] = {}
        for entry in resources_list:
            if not isinstance(entry, dict):
                continue
            rid = str(entry.get("id", ""))
            if rid:
                by_id[rid] = dict(entry)
        if not by_id:
            issue = ValidationIssue(
                code="EMPTY_RESOURCE_SET",
                severity="blocking",
                field_path=filename,
                entity_id=expected_type,
                message="resource bundle contains no usable resource ids",
            )
            raise ValidationError([issue])
        return ResourceBundle(manifest=manifest, resources_by_id=by_id)

    def _validate_manifest(
        self,
        manifest: ResourceManifest,
        expected_type: str,
        resources_list: list[dict[str, Any]],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if manifest.resource_type != expected_type:
            issues.append(
                ValidationIssue(
                    code="RESOURCE_TYPE_MISMATCH",
                    severity="blocking",
                    field_path="manifest.resource_type",
                    entity_id=expected_type,
                    message=f"expected '{expected_type}', got '{manifest.resource_type}'",
                )
            )
        if manifest.schema_version != EXPECTED_SCHEMA_VERSION:
            issues.append(
                ValidationIssue(
                    code="RESOURCE_SCHEMA_MISMATCH",
                    severity="blocking",
                    field_path="manifest.schema_version",
                    entity_id=expected_type,
                    message=f"expected schema {EXPECTED_SCHEMA_VERSION}, got {manifest.schema_version}",
                )
            )
        canonical = json.dumps(resources_list, sort_keys=True, separators=(",", ":")).encode("utf-8")
        checksum = hashlib.sha256(canonical).hexdigest()
        if manifest.checksum != checksum:
            issues.append(
                ValidationIssue(
                    code="RESOURCE_CHECKSUM_MISMATCH",
                    severity="blocking",
                    field_path="manifest.checksum",
                    entity_id=expected_type,
                    message=f"expected {checksum}, got {manifest.checksum}",
                )
            )
        return issues

    def _parse(self, formation_id: str, raw: dict[str, Any]) -> Formation:
        issues: list[ValidationIssue] = []
        slots_raw = raw.get("slots")
        bias_raw = raw.get("bias")
        if not isinstance(slots_raw, list) or len(slots_raw) != FORMATION_SIZE:
            issues.append(
                ValidationIssue(
                    code="INVALID_FORMATION_SLOTS",
                    severity="blocking",
                    field_path=f"formation.{formation_id}.slots",
                    entity_id=formation_id,
                    message=f"formation must define exactly {FORMATION_SIZE} slots",
                )
            )
            slots_raw = []
        if not isinstance(bias_raw, dict) or set(bias_raw) != BIAS_KEYS:
            issues.append(
                ValidationIssue(
                    code="INVALID_FORMATION_BIAS",
                    severity="blocking",
                    field_path=f"formation.{formation_id}.bias",
                    entity_id=formation_id,
                    message=f"bias must define exactly {sorted(BIAS_KEYS)}",
                )
            )
            bias_raw = {}

        slots: list[FormationSlot] = []
        seen: set[str] = set()
        for index, entry in enumerate(slots_raw):
            depth = entry.get("depth") if isinstance(entry, dict) else None
            lane = entry.get("lane") if isinstance(entry, dict) else None
            name = str(entry.get("slot", "")) if isinstance(entry, dict) else ""
            if not name or name in seen or not isinstance(depth, int) or not isinstance(lane, int) or not (
                0 <= depth <= 1000 and 0 <= lane <= 1000
            ):
                issues.append(
                    ValidationIssue(
                        code="INVALID_FORMATION_SLOT",
                        severity="blocking",
                        field_path=f"formation.{formation_id}.slots[{index}]",
                        entity_id=formation_id,
                        message="slot needs a unique name and depth/lane permille in [0, 1000]",
                    )
                )
                continue
            seen.add(name)
            slots.append(FormationSlot(slot=name, depth=depth, lane=lane))

        if issues:
            raise ValidationError(issues)
        return Formation(
            formation_id=formation_id,
            description=str(raw.get("description", "")),
            slots=tuple(slots),
            bias={key: int(value) for key, value in bias_raw.items()},
        )
