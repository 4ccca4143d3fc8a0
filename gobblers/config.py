"""
Runtime configuration.

Settings are read from ``GOBBLERS_*`` environment variables. Evaluation
weights default to the values below and can be overridden with a JSON file
named by ``GOBBLERS_WEIGHTS_FILE`` whose keys match the field names of
:class:`EvaluationWeights`.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from gobblers.types import Player

logger = logging.getLogger(__name__)

WEIGHTS_FILE_ENV = "GOBBLERS_WEIGHTS_FILE"


@dataclass(frozen=True)
class EvaluationWeights:
    """Scalar weights used by the position evaluator."""

    win: int = 1000
    center_control: int = 15
    center_size_small: int = 2
    center_size_medium: int = 5
    center_size_large: int = 8
    own_threat: int = 25
    opponent_threat: int = 30  # Blocking is more urgent than attacking
    corner_small: int = 4
    corner_medium: int = 6
    corner_large: int = 8
    controlled_position: int = 4
    reserve_potential: int = 3
    gobbling_potential: int = 5
    size_advantage: int = 4


def load_weights(path: str | Path | None = None) -> EvaluationWeights:
    """
    Load evaluation weights, applying a JSON override file when present.

    Unknown keys are ignored with a warning so old files keep working.
    """
    if path is None:
        path = os.getenv(WEIGHTS_FILE_ENV)
    weights = EvaluationWeights()
    if not path or not os.path.exists(path):
        return weights

    with open(path, encoding="utf-8") as f:
        payload = json.load(f)

    known = {f.name for f in fields(EvaluationWeights)}
    overrides = {}
    for key, value in payload.items():
        if key in known:
            overrides[key] = int(value)
        else:
            logger.warning("Ignoring unknown evaluation weight %r in %s", key, path)
    return replace(weights, **overrides)


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    ai_player: Player = Player.BLUE
    thinking_delay_ms: int = 800
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            ai_player=Player(os.getenv("GOBBLERS_AI_PLAYER", Player.BLUE.value)),
            thinking_delay_ms=int(os.getenv("GOBBLERS_THINKING_DELAY_MS", "800")),
            cors_origins=_env_list("GOBBLERS_CORS_ORIGINS", ["http://localhost:5173"]),
            log_level=os.getenv("GOBBLERS_LOG_LEVEL", "INFO").upper(),
        )
