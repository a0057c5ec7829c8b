from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from uuid import uuid4


def now_utc() -> datetime:
    return datetime.now(UTC)


def make_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def derive_match_id(seed: str) -> str:
    return f"match_{hashlib.sha256(seed.encode('utf-8')).hexdigest()[:12]}"
