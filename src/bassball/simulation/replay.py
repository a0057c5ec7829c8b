from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from bassball.contracts import MatchConfig, MatchResult, MatchTactics, PlayerInput, Side
from bassball.core.config import ENGINE_VERSION, match_config_from_dict
from bassball.match.codec import result_from_dict, result_to_dict, tactics_from_dict, tactics_to_dict
from bassball.match.driver import TickDriver
from bassball.match.inputs import input_to_dict

# Fixed timestamp so two replays of the same match serialize identically.
REPLAY_EPOCH = datetime.fromisoformat("2000-01-01T00:00:00+00:00")


@dataclass(frozen=True, slots=True)
class ArchivedMatch:
    result: MatchResult
    config: MatchConfig | None = None
    tactics: MatchTactics | None = None


class ReplayArchive:
    """A match result on disk, with the config and tactics needed to replay it."""

    @staticmethod
    def save(
        result: MatchResult,
        path: Path,
        *,
        config: MatchConfig | None = None,
        tactics: MatchTactics | None = None,
    ) -> Path:
        data = result_to_dict(result)
        if config is not None:
            data["config"] = asdict(config)
        if tactics is not None:
            data["tactics"] = tactics_to_dict(tactics)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    @staticmethod
    def load(path: Path) -> MatchResult:
        return ReplayArchive.load_match(path).result

    @staticmethod
    def load_match(path: Path) -> ArchivedMatch:
        data = json.loads(path.read_text(encoding="utf-8"))
        config = data.get("config")
        tactics = data.get("tactics")
        return ArchivedMatch(
            result=result_from_dict(data),
            config=match_config_from_dict(config) if config is not None else None,
            tactics=tactics_from_dict(tactics) if tactics is not None else None,
        )


@dataclass(slots=True)
class ReplayAction:
    side: Side
    payload: dict[str, Any]


@dataclass(slots=True)
class ReplayHarness:
    config: MatchConfig
    seed: str
    tactics: MatchTactics = field(default_factory=MatchTactics)
    engine_version: str = ENGINE_VERSION
    actions: list[ReplayAction] = field(default_factory=list)

    def record(self, side: Side, player_input: PlayerInput | Mapping[str, Any]) -> None:
        payload = input_to_dict(player_input) if isinstance(player_input, PlayerInput) else dict(player_input)
        self.actions.append(ReplayAction(side=side, payload=payload))

    def inputs_for(self, side: Side) -> list[dict[str, Any]]:
        return [a.payload for a in self.actions if a.side is side]

    def save(self, path: Path) -> None:
        data = {
            "config": asdict(self.config),
            "seed": self.seed,
            "engineVersion": self.engine_version,
            "tactics": tactics_to_dict(self.tactics),
            "actions": [{"side": a.side.value, "payload": a.payload} for a in self.actions],
        }
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    @staticmethod
    def load(path: Path) -> ReplayHarness:
        data = json.loads(path.read_text(encoding="utf-8"))
        harness = ReplayHarness(
            config=match_config_from_dict(data["config"]),
            seed=str(data["seed"]),
            tactics=tactics_from_dict(data.get("tactics", {})),
            engine_version=str(data.get("engineVersion", ENGINE_VERSION)),
        )
        for raw in data["actions"]:
            harness.actions.append(ReplayAction(side=Side(raw["side"]), payload=dict(raw["payload"])))
        return harness

    def run_once(self) -> MatchResult:
        driver = TickDriver(self.config, engine_version=self.engine_version)
        return driver.run(
            self.seed,
            self.tactics,
            self.inputs_for(Side.HOME),
            self.inputs_for(Side.AWAY),
            clock=lambda: REPLAY_EPOCH,
        )

    def replay(self) -> tuple[dict[str, Any], dict[str, Any]]:
        return self._fingerprint(self.run_once()), self._fingerprint(self.run_once())

    def _fingerprint(self, result: MatchResult) -> dict[str, Any]:
        return {
            "score": [result.home_score, result.away_score],
            "ticks": result.duration_ticks,
            "replay_hash": result.replay_hash,
            "result_hash": result.result_hash,
            "events": [(e.tick, e.event_type, e.player_id, e.detail) for e in result.events],
            "stats": {"home": asdict(result.stats.home), "away": asdict(result.stats.away)},
        }
