from __future__ import annotations

import logging
from dataclasses import replace

from bassball.contracts import EndReason, MismatchType
from bassball.core import ENGINE_VERSION
from bassball.match import (
    MatchVerifier,
    StopSignal,
    input_to_dict,
    render_batch_verification_report,
    render_verification_report,
    verify,
    verify_result,
)
from bassball.match.verifier import MISMATCH_DESCRIPTIONS
from tests.helpers import SHORT_CONFIG, move, run_match, shoot, sprint

HOME = [move(0, 50, 30), shoot(20, 90, 0), sprint(21)]
AWAY = [move(2, 40, 30)]


def _recorded():
    return run_match(SHORT_CONFIG, seed="verify-me", home=HOME, away=AWAY)


def _cut_short(reason: EndReason = EndReason.FORFEIT):
    signal = StopSignal()

    def stop_after_thirty(record):
        if record.tick == 29:
            signal.trigger(reason)

    return run_match(
        SHORT_CONFIG, seed="verify-me", home=HOME + [sprint(40)], away=AWAY, stop_signal=signal, observer=stop_after_thirty
    )


def test_untouched_record_verifies():
    result = _recorded()
    check = verify_result(result, config=SHORT_CONFIG)
    assert check.valid
    assert check.mismatch_type is None
    assert check.computed_hash == result.result_hash
    assert check.details.final_score == (result.home_score, result.away_score)
    assert check.details.inputs_processed == 4
    assert check.details.duration_ms == 5_000


def test_verification_accepts_wire_inputs_and_mixed_case_hash():
    result = _recorded()
    stored = {
        "home": [input_to_dict(i) for i in result.inputs.home],
        "away": [input_to_dict(i) for i in result.inputs.away],
    }
    check = verify(
        result.match_id, result.seed, ENGINE_VERSION, stored, result.result_hash.upper().replace("0X", "0x"), config=SHORT_CONFIG
    )
    assert check.valid


def test_tampered_hash_is_a_hash_mismatch():
    result = _recorded()
    tampered = result.result_hash[:-1] + ("0" if result.result_hash[-1] != "0" else "1")
    check = verify_result(result, tampered, config=SHORT_CONFIG)
    assert not check.valid
    assert check.mismatch_type is MismatchType.HASH_MISMATCH
    assert check.on_chain_hash == tampered


def test_edited_inputs_are_a_hash_mismatch():
    result = _recorded()
    stored = {"home": list(result.inputs.home[:1]) + [shoot(20, 85, 0)] + list(result.inputs.home[2:]), "away": list(result.inputs.away)}
    check = verify(result.match_id, result.seed, ENGINE_VERSION, stored, result.result_hash, config=SHORT_CONFIG)
    assert check.mismatch_type is MismatchType.HASH_MISMATCH


def test_engine_version_mismatch_wins_over_hash_mismatch():
    result = _recorded()
    check = verify(result.match_id, result.seed, "0.9.0", result.inputs, "0x" + "0" * 64, config=SHORT_CONFIG)
    assert check.mismatch_type is MismatchType.ENGINE_VERSION_MISMATCH
    assert check.details.engine_version == ENGINE_VERSION


def test_missing_or_refused_inputs_are_incomplete():
    result = _recorded()
    verifier = MatchVerifier(config=SHORT_CONFIG)
    short = verifier.verify(
        result.match_id, result.seed, ENGINE_VERSION, result.inputs, result.result_hash, expected_min_inputs=5
    )
    assert short.mismatch_type is MismatchType.INCOMPLETE_INPUTS

    stored = {"home": [input_to_dict(i) for i in result.inputs.home] + [sprint(500)], "away": []}
    refused = verifier.verify(result.match_id, result.seed, ENGINE_VERSION, stored, result.result_hash)
    assert refused.mismatch_type is MismatchType.INCOMPLETE_INPUTS


def test_report_names_the_outcome(caplog):
    result = _recorded()
    with caplog.at_level(logging.INFO, logger="bassball.match.verifier"):
        good = verify_result(result, config=SHORT_CONFIG)
    assert "verified" in caplog.text
    report = render_verification_report(good)
    assert report.startswith("Verification: VALID")
    assert result.result_hash in report
    assert "duration:         5s" in report

    bad = verify_result(result, "0x" + "f" * 64, config=SHORT_CONFIG)
    report = render_verification_report(bad)
    assert report.startswith("Verification: INVALID (HASH_MISMATCH)")
    assert report.endswith(MISMATCH_DESCRIPTIONS[MismatchType.HASH_MISMATCH])


def test_forfeited_match_verifies_against_its_own_length():
    result = _cut_short()
    assert result.end_reason is EndReason.FORFEIT
    assert result.duration_ticks == 30
    assert len(result.inputs.home) == 3
    check = verify_result(result, config=SHORT_CONFIG)
    assert check.valid
    assert check.computed_hash == result.result_hash
    assert check.details.duration_ms == 3_000


def test_timed_out_match_verifies_from_stored_inputs():
    result = _cut_short(EndReason.TIMEOUT)
    check = verify(
        result.match_id,
        result.seed,
        ENGINE_VERSION,
        result.inputs,
        result.result_hash,
        config=SHORT_CONFIG,
        duration_ticks=result.duration_ticks,
        end_reason=result.end_reason,
    )
    assert check.valid


def test_short_record_claiming_full_time_is_a_hash_mismatch():
    result = _cut_short()
    check = verify_result(replace(result, end_reason=EndReason.FULL_TIME), config=SHORT_CONFIG)
    assert check.mismatch_type is MismatchType.HASH_MISMATCH
    assert check.details.duration_ms == 5_000


def test_batch_report_counts_verified_and_flagged_matches():
    good = _recorded()
    other = run_match(SHORT_CONFIG, seed="second-leg", home=HOME)
    checked = [
        (good, verify_result(good, config=SHORT_CONFIG)),
        (other, verify_result(other, "0x" + "f" * 64, config=SHORT_CONFIG)),
    ]
    report = render_batch_verification_report(checked)
    lines = report.splitlines()
    assert lines[0] == "Batch verification"
    assert "  total matches:    2" in lines
    assert "  verified:         1" in lines
    assert "  flagged:          1" in lines
    assert f"{good.match_id}  {good.home_score} - {good.away_score}  ok" in lines
    assert f"{other.match_id}  {other.home_score} - {other.away_score}  FLAGGED (HASH_MISMATCH)" in lines
    assert f"  result hash:      {good.result_hash[:16]}..." in lines


def test_empty_batch_report():
    assert "  total matches:    0" in render_batch_verification_report([]).splitlines()
