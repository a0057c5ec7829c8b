from __future__ import annotations

import hashlib
import json
import re
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path

from bassball.contracts import StrictAuditFinding, StrictAuditReport, StrictAuditSection
from bassball.core import make_id

ENGINE_DIRS = ("match", "core")
RANDOM_ALLOWED = {"core/randomness.py"}
CLOCK_ALLOWED = {"core/ids.py", "core/errors.py"}


class StrictAuditService:
    """Static scan for nondeterminism sources on the simulation path."""

    RANDOM_IMPORT_PATTERN = re.compile(r"^\s*(?:import random\b|from random import)", re.MULTILINE)
    WALL_CLOCK_PATTERN = re.compile(r"\btime\.(?:time|monotonic|perf_counter)\(|\bdatetime\.(?:now|utcnow)\(")
    FLOAT_MATH_PATTERN = re.compile(
        r"\bmath\.(?:sin|cos|tan|atan2?|sqrt|hypot|exp|pow|log)\b"
        r"|^\s*from math import [^\n]*\b(?:sin|cos|tan|atan2?|sqrt|hypot|exp|pow|log)\b",
        re.MULTILINE,
    )
    UUID_PATTERN = re.compile(r"\buuid\d?\b")
    BUILTIN_HASH_PATTERN = re.compile(r"(?<![\w.])hash\(")
    DEVTOOLS_IMPORT_PATTERN = re.compile(r"^\s*(?:from|import) bassball\.(?:devtools|cli)\b", re.MULTILINE)

    def run(self, *, repo_root: Path) -> StrictAuditReport:
        src_root = _package_root(repo_root)
        findings_static: list[StrictAuditFinding] = []
        findings_resource: list[StrictAuditFinding] = []
        findings_import: list[StrictAuditFinding] = []

        for py in sorted(src_root.rglob("*.py")):
            rel = py.relative_to(src_root).as_posix()
            location = py.relative_to(repo_root).as_posix() if py.is_relative_to(repo_root) else rel
            text = py.read_text(encoding="utf-8")
            on_engine_path = rel.split("/", 1)[0] in ENGINE_DIRS

            if rel not in RANDOM_ALLOWED and self.RANDOM_IMPORT_PATTERN.search(text):
                findings_static.append(self._finding("static", "stdlib random imported outside the seeded source", location))
            if not on_engine_path:
                continue
            if self.DEVTOOLS_IMPORT_PATTERN.search(text):
                findings_import.append(self._finding("import_boundary", "engine module imports devtools or cli", location))
            if rel not in CLOCK_ALLOWED and self.WALL_CLOCK_PATTERN.search(text):
                findings_static.append(self._finding("static", "wall-clock read on the simulation path", location))
            if self.FLOAT_MATH_PATTERN.search(text):
                findings_static.append(self._finding("static", "platform float math on the simulation path", location))
            if rel not in CLOCK_ALLOWED and self.UUID_PATTERN.search(text):
                findings_static.append(self._finding("static", "uuid used on the simulation path", location))
            if self.BUILTIN_HASH_PATTERN.search(text):
                findings_static.append(self._finding("static", "process-salted builtin hash() on the simulation path", location))

        for resource in sorted((src_root / "resources").glob("*.json")):
            location = resource.relative_to(repo_root).as_posix() if resource.is_relative_to(repo_root) else resource.name
            payload = json.loads(resource.read_text(encoding="utf-8"))
            resources = payload.get("resources", [])
            manifest = payload.get("manifest", {})
            if not isinstance(resources, list) or not isinstance(manifest, dict):
                findings_resource.append(self._finding("resource", "resource bundle payload is invalid", location))
                continue
            canonical = json.dumps(resources, sort_keys=True, separators=(",", ":")).encode("utf-8")
            if manifest.get("checksum") != hashlib.sha256(canonical).hexdigest():
                findings_resource.append(self._finding("resource", "manifest checksum does not match resources", location))
            for entry in resources:
                if not isinstance(entry, dict):
                    continue
                rid = str(entry.get("id", ""))
                metadata = entry.get("metadata")
                if "_default" in rid or (isinstance(metadata, dict) and metadata.get("placeholder") is True):
                    findings_resource.append(
                        self._finding("resource", "placeholder resource shipped in active bundle", f"{location}:{rid}")
                    )

        sections = [
            StrictAuditSection(section="static", passed=not findings_static, findings=findings_static),
            StrictAuditSection(section="resource", passed=not findings_resource, findings=findings_resource),
            StrictAuditSection(section="import_boundary", passed=not findings_import, findings=findings_import),
        ]
        passed = all(section.passed for section in sections)
        return StrictAuditReport(
            report_id=make_id("strict"),
            generated_at=datetime.now(UTC),
            passed=passed,
            sections=sections,
        )

    def to_dict(self, report: StrictAuditReport) -> dict[str, object]:
        return asdict(report)

    def _finding(self, scope: str, summary: str, location: str) -> StrictAuditFinding:
        return StrictAuditFinding(
            finding_id=make_id("saf"),
            scope=scope,
            severity="blocking",
            summary=summary,
            location=location,
        )


def _package_root(repo_root: Path) -> Path:
    candidate = repo_root / "src" / "bassball"
    if candidate.is_dir():
        return candidate
    return repo_root


def installed_package_root() -> Path:
    return Path(__file__).resolve().parents[1]
