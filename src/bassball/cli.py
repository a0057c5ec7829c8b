from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from bassball.contracts import MatchResult, MatchTactics, ValidationError, VerificationResult
from bassball.core import ENGINE_VERSION, EngineIntegrityError, default_match_config, load_match_config, persist_forensic_artifact
from bassball.devtools import StrictAuditService, installed_package_root
from bassball.match import (
    MatchVerifier,
    assess_plausibility,
    render_batch_verification_report,
    render_verification_report,
    run,
    tactics_from_dict,
    verification_to_dict,
)
from bassball.simulation import ReplayArchive

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> dict[str, Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return payload


def _tactics(payload: dict[str, Any] | None) -> MatchTactics:
    return tactics_from_dict(payload) if payload else MatchTactics()


def _cmd_run(args: argparse.Namespace) -> int:
    config = load_match_config(args.config) if args.config else default_match_config()
    streams = _read_json(args.inputs) if args.inputs else {}
    tactics = _tactics(streams.get("tactics"))
    try:
        result = run(
            config,
            args.seed,
            args.engine_version,
            tactics,
            streams.get("home", []),
            streams.get("away", []),
            match_id=args.match_id,
        )
    except EngineIntegrityError as exc:
        if args.forensics_dir:
            path = persist_forensic_artifact(exc.artifact, args.forensics_dir)
            print(f"forensic artifact written to {path}", file=sys.stderr)
        print(f"engine integrity failure: {exc}", file=sys.stderr)
        return 3

    print(f"{result.match_id}: {result.home_score}-{result.away_score} after {result.duration:g}s ({result.end_reason.value})")
    print(f"replay hash: {result.replay_hash}")
    print(f"result hash: {result.result_hash}")
    if result.rejected:
        print(f"rejected inputs: {len(result.rejected)}")
    for issue in assess_plausibility(result).issues:
        print(f"warning: {issue.code}: {issue.message}")
    if args.out:
        ReplayArchive.save(result, args.out, config=config, tactics=tactics)
        print(f"result written to {args.out}")
    return 0


def _verify_archived(path: Path, args: argparse.Namespace) -> tuple[MatchResult, VerificationResult]:
    archived = ReplayArchive.load_match(path)
    if args.config:
        config = load_match_config(args.config)
    else:
        config = archived.config or default_match_config()
    if args.tactics:
        tactics = _tactics(_read_json(args.tactics))
    else:
        tactics = archived.tactics or MatchTactics()
    verifier = MatchVerifier(config=config, tactics=tactics)
    outcome = verifier.verify_result(archived.result, args.hash or None, expected_min_inputs=args.min_inputs)
    return archived.result, outcome


def _cmd_verify(args: argparse.Namespace) -> int:
    if args.hash and len(args.result) > 1:
        raise ValueError("--hash can only be checked against a single --result")
    checked = [_verify_archived(path, args) for path in args.result]
    if args.json:
        payload = [verification_to_dict(outcome) for _, outcome in checked]
        print(json.dumps(payload[0] if len(payload) == 1 else payload, indent=2))
    elif len(checked) == 1:
        print(render_verification_report(checked[0][1]))
    else:
        print(render_batch_verification_report(checked))
    return 0 if all(outcome.valid for _, outcome in checked) else 1


def _cmd_audit(args: argparse.Namespace) -> int:
    report = StrictAuditService().run(repo_root=args.root or installed_package_root())
    for section in report.sections:
        print(f"[{'PASS' if section.passed else 'FAIL'}] {section.section}")
        for finding in section.findings:
            print(f"  - {finding.summary} ({finding.location})")
    return 0 if report.passed else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bassball", description="Deterministic match engine and verifier")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="simulate a match and print its hashes")
    run_p.add_argument("--seed", required=True, help="match seed")
    run_p.add_argument("--inputs", type=Path, default=None, help="JSON file with home/away input streams and optional tactics")
    run_p.add_argument("--config", type=Path, default=None, help="JSON match config")
    run_p.add_argument("--engine-version", default=ENGINE_VERSION, help="engine version to run under")
    run_p.add_argument("--match-id", default=None, help="match id (derived from the seed by default)")
    run_p.add_argument("--out", type=Path, default=None, help="write the match result JSON here")
    run_p.add_argument("--forensics-dir", type=Path, default=None, help="directory for forensic artifacts on integrity failure")
    run_p.set_defaults(handler=_cmd_run)

    verify_p = sub.add_parser("verify", help="re-run a stored match and compare hashes")
    verify_p.add_argument("--result", type=Path, nargs="+", required=True, help="stored match result JSON (several for a batch report)")
    verify_p.add_argument("--hash", default=None, help="anchored result hash (defaults to the stored one)")
    verify_p.add_argument("--config", type=Path, default=None, help="JSON match config (defaults to the one archived with the result)")
    verify_p.add_argument("--tactics", type=Path, default=None, help="JSON tactics (defaults to the ones archived with the result)")
    verify_p.add_argument("--min-inputs", type=int, default=None, help="minimum number of inputs expected")
    verify_p.add_argument("--json", action="store_true", help="print the verification result as JSON")
    verify_p.set_defaults(handler=_cmd_verify)

    audit_p = sub.add_parser("audit", help="scan the engine for nondeterminism sources")
    audit_p.add_argument("--root", type=Path, default=None, help="repository root (defaults to the installed package)")
    audit_p.set_defaults(handler=_cmd_audit)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        return args.handler(args)
    except ValidationError as exc:
        for issue in exc.issues:
            print(f"error: {issue.code} {issue.field_path}: {issue.message}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
