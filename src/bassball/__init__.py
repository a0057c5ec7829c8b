from bassball.core.config import ENGINE_VERSION
from bassball.match.driver import run
from bassball.match.verifier import verify

__all__ = ["ENGINE_VERSION", "run", "verify"]
