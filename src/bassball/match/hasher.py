from __future__ import annotations

import hashlib
import re
from typing import Sequence

from bassball.contracts import (
    MoveParams,
    PassParams,
    PlayerInput,
    ShootParams,
    SkillParams,
    SprintParams,
    TackleParams,
)

REPLAY_DOMAIN = "bassball/replay/v1"
RESULT_DOMAIN = "bassball/result/v1"

_HASH_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


class CanonicalWriter:
    """Byte-exact encoder: big-endian fixed-width ints, u32-length-prefixed UTF-8, u32 list counts."""

    def __init__(self, domain: str) -> None:
        self._buffer = bytearray()
        self.text(domain)

    def u8(self, value: int) -> CanonicalWriter:
        return self._int(value, 1, signed=False)

    def u32(self, value: int) -> CanonicalWriter:
        return self._int(value, 4, signed=False)

    def u64(self, value: int) -> CanonicalWriter:
        return self._int(value, 8, signed=False)

    def i64(self, value: int) -> CanonicalWriter:
        return self._int(value, 8, signed=True)

    def text(self, value: str) -> CanonicalWriter:
        encoded = value.encode("utf-8")
        self.u32(len(encoded))
        self._buffer.extend(encoded)
        return self

    def count(self, value: int) -> CanonicalWriter:
        return self.u32(value)

    def raw(self, value: bytes) -> CanonicalWriter:
        self._buffer.extend(value)
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def digest(self) -> str:
        return "0x" + hashlib.sha256(self._buffer).hexdigest()

    def _int(self, value: int, width: int, *, signed: bool) -> CanonicalWriter:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"canonical integers must be int, got {type(value).__name__}")
        try:
            self._buffer.extend(value.to_bytes(width, "big", signed=signed))
        except OverflowError as exc:
            raise ValueError(f"{value} does not fit in {width * 8} bits") from exc
        return self


def write_input(writer: CanonicalWriter, player_input: PlayerInput) -> None:
    params = player_input.params
    writer.u64(player_input.tick).text(player_input.action.value).u64(player_input.timestamp)
    if isinstance(params, MoveParams):
        writer.i64(params.x).i64(params.y)
    elif isinstance(params, ShootParams):
        writer.i64(params.power).i64(params.angle)
    elif isinstance(params, (PassParams, TackleParams)):
        writer.text(params.target_id)
    elif isinstance(params, SkillParams):
        writer.text(params.skill_id)
    elif not isinstance(params, SprintParams):
        raise TypeError(f"cannot encode params {type(params).__name__}")


def canonical_inputs(
    seed: str,
    engine_version: str,
    home_inputs: Sequence[PlayerInput],
    away_inputs: Sequence[PlayerInput],
) -> bytes:
    writer = CanonicalWriter(REPLAY_DOMAIN).text(seed).text(engine_version)
    for stream in (home_inputs, away_inputs):
        writer.count(len(stream))
        for player_input in stream:
            write_input(writer, player_input)
    return writer.to_bytes()


def replay_hash(
    seed: str,
    engine_version: str,
    home_inputs: Sequence[PlayerInput],
    away_inputs: Sequence[PlayerInput],
) -> str:
    return "0x" + hashlib.sha256(canonical_inputs(seed, engine_version, home_inputs, away_inputs)).hexdigest()


def result_hash(
    seed: str,
    engine_version: str,
    home_score: int,
    away_score: int,
    duration_ms: int,
    replay_digest: str,
) -> str:
    writer = (
        CanonicalWriter(RESULT_DOMAIN)
        .text(seed)
        .text(engine_version)
        .u32(home_score)
        .u32(away_score)
        .u64(duration_ms)
        .raw(hash_bytes(replay_digest))
    )
    return writer.digest()


def is_hash(value: object) -> bool:
    return isinstance(value, str) and _HASH_PATTERN.match(value) is not None


def normalize_hash(value: str) -> str:
    text = value.strip().lower()
    if not text.startswith("0x"):
        text = "0x" + text
    return text


def hash_bytes(value: str) -> bytes:
    if not is_hash(value):
        raise ValueError(f"not a 0x-prefixed SHA-256 hex digest: {value!r}")
    return bytes.fromhex(value[2:])
