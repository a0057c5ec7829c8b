from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from bassball.contracts import (
    ConsumedInputs,
    EndReason,
    MatchConfig,
    MatchResult,
    MatchTactics,
    MismatchType,
    PlayerInput,
    VerificationDetails,
    VerificationResult,
)
from bassball.core.config import ENGINE_VERSION, EngineProfile, default_match_config
from bassball.match.driver import TickDriver
from bassball.match.hasher import normalize_hash

logger = logging.getLogger(__name__)

StoredInputs = ConsumedInputs | Mapping[str, Iterable[PlayerInput | Mapping[str, Any]]]


class MatchVerifier:
    """Recomputes a match from its stored inputs and checks the anchored result hash."""

    def __init__(
        self,
        engine_version: str = ENGINE_VERSION,
        config: MatchConfig | None = None,
        tactics: MatchTactics | None = None,
        profile: EngineProfile | None = None,
    ) -> None:
        self._engine_version = engine_version
        self._config = config or default_match_config()
        self._tactics = tactics
        self._driver = TickDriver(self._config, engine_version=engine_version, profile=profile)

    @property
    def engine_version(self) -> str:
        return self._engine_version

    def verify(
        self,
        match_id: str,
        seed: str,
        engine_version: str,
        stored_inputs: StoredInputs,
        on_chain_hash: str,
        *,
        expected_min_inputs: int | None = None,
        duration_ticks: int | None = None,
        end_reason: EndReason | None = None,
    ) -> VerificationResult:
        """Re-run the match and classify any disagreement with ``on_chain_hash``.

        A match that ended before full time is replayed only up to ``duration_ticks``,
        closing with ``end_reason`` (forfeit when unknown).
        """
        home, away = _split_inputs(stored_inputs)
        submitted = len(home) + len(away)
        stop_at: int | None = None
        stop_reason = EndReason.FORFEIT
        if duration_ticks is not None and duration_ticks < self._config.total_ticks:
            stop_at = duration_ticks
            if end_reason is not None and end_reason is not EndReason.FULL_TIME:
                stop_reason = end_reason
        rerun = self._driver.run(
            seed,
            self._tactics,
            home,
            away,
            match_id=match_id,
            stop_at=stop_at,
            stop_reason=stop_reason,
        )
        computed = rerun.result_hash
        anchored = normalize_hash(on_chain_hash)

        mismatch: MismatchType | None = None
        if engine_version != self._engine_version:
            mismatch = MismatchType.ENGINE_VERSION_MISMATCH
        elif rerun.rejected or (expected_min_inputs is not None and submitted < expected_min_inputs):
            mismatch = MismatchType.INCOMPLETE_INPUTS
        elif computed != anchored:
            mismatch = MismatchType.HASH_MISMATCH

        result = VerificationResult(
            valid=mismatch is None,
            computed_hash=computed,
            on_chain_hash=anchored,
            details=VerificationDetails(
                seed=seed,
                engine_version=self._engine_version,
                home_score=rerun.home_score,
                away_score=rerun.away_score,
                inputs_processed=rerun.inputs.total,
                duration_ms=rerun.duration_ms,
            ),
            mismatch_type=mismatch,
        )
        if result.valid:
            logger.info("match %s verified: %s", match_id, computed)
        else:
            logger.info(
                "match %s failed verification (%s): computed %s, anchored %s",
                match_id,
                mismatch.value if mismatch else "",
                computed,
                anchored,
            )
        return result

    def verify_result(
        self,
        result: MatchResult,
        on_chain_hash: str | None = None,
        *,
        expected_min_inputs: int | None = None,
    ) -> VerificationResult:
        return self.verify(
            result.match_id,
            result.seed,
            result.engine_version,
            result.inputs,
            on_chain_hash if on_chain_hash is not None else result.result_hash,
            expected_min_inputs=expected_min_inputs,
            duration_ticks=None if result.end_reason is EndReason.FULL_TIME else result.duration_ticks,
            end_reason=result.end_reason,
        )


def _split_inputs(stored: StoredInputs) -> tuple[list[Any], list[Any]]:
    if isinstance(stored, ConsumedInputs):
        return list(stored.home), list(stored.away)
    return list(stored.get("home", ())), list(stored.get("away", ()))


def verify(
    match_id: str,
    seed: str,
    engine_version: str,
    stored_inputs: StoredInputs,
    on_chain_hash: str,
    *,
    config: MatchConfig | None = None,
    tactics: MatchTactics | None = None,
    expected_min_inputs: int | None = None,
    duration_ticks: int | None = None,
    end_reason: EndReason | None = None,
) -> VerificationResult:
    verifier = MatchVerifier(config=config, tactics=tactics)
    return verifier.verify(
        match_id,
        seed,
        engine_version,
        stored_inputs,
        on_chain_hash,
        expected_min_inputs=expected_min_inputs,
        duration_ticks=duration_ticks,
        end_reason=end_reason,
    )


def verify_result(
    result: MatchResult,
    on_chain_hash: str | None = None,
    *,
    config: MatchConfig | None = None,
    tactics: MatchTactics | None = None,
) -> VerificationResult:
    return MatchVerifier(config=config, tactics=tactics).verify_result(result, on_chain_hash)


MISMATCH_DESCRIPTIONS = {
    MismatchType.ENGINE_VERSION_MISMATCH: "The match was recorded under a different engine version and cannot be reproduced bit-for-bit.",
    MismatchType.INCOMPLETE_INPUTS: "The stored input streams are incomplete or contain inputs the engine refuses.",
    MismatchType.HASH_MISMATCH: "The recomputed result hash differs from the anchored record. The match may have been modified.",
}


def render_verification_report(result: VerificationResult) -> str:
    details = result.details
    status = "VALID" if result.valid else f"INVALID ({result.mismatch_type.value if result.mismatch_type else 'unknown'})"
    lines = [
        f"Verification: {status}",
        f"  seed:             {details.seed}",
        f"  engine version:   {details.engine_version}",
        f"  final score:      {details.home_score} - {details.away_score}",
        f"  inputs processed: {details.inputs_processed}",
        f"  duration:         {details.duration_ms / 1000:g}s",
        f"  computed hash:    {result.computed_hash}",
        f"  on-chain hash:    {result.on_chain_hash}",
    ]
    if result.mismatch_type is not None:
        lines.append("")
        lines.append(MISMATCH_DESCRIPTIONS[result.mismatch_type])
    return "\n".join(lines)


def render_batch_verification_report(results: Sequence[tuple[MatchResult, VerificationResult]]) -> str:
    verified = sum(1 for _, check in results if check.valid)
    lines = [
        "Batch verification",
        f"  total matches:    {len(results)}",
        f"  verified:         {verified}",
        f"  flagged:          {len(results) - verified}",
        "",
    ]
    for match, check in results:
        mark = "ok" if check.valid else f"FLAGGED ({check.mismatch_type.value if check.mismatch_type else 'unknown'})"
        lines.append(f"{match.match_id}  {match.home_score} - {match.away_score}  {mark}")
        lines.append(f"  result hash:      {match.result_hash[:16]}...")
    return "\n".join(lines)
