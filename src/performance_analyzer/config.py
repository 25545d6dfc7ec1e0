from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Mapping, Tuple

from .models import DIFFICULTY_TIERS, HIGH, LOW, MID

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = {HIGH: 1.2, MID: 1.0, LOW: 0.8}
DEFAULT_RATIO = {HIGH: 1.0, MID: 1.0, LOW: 1.0}

# English aliases accepted in saved settings.
_TIER_ALIASES = {"high": HIGH, "mid": MID, "low": LOW}


def _tier_map(raw: Mapping[str, object], defaults: Mapping[str, float], label: str) -> Dict[str, float]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"'{label}' must be an object keyed by difficulty tier")
    merged = dict(defaults)
    for key, value in raw.items():
        tier = _TIER_ALIASES.get(str(key).strip().lower(), str(key).strip())
        if tier not in DIFFICULTY_TIERS:
            raise ValueError(f"Unknown difficulty tier '{key}' in '{label}'")
        try:
            merged[tier] = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Non-numeric value for '{label}.{key}': {value!r}") from exc
    return merged


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunables passed by value into every pipeline call."""

    min_test_count: int = 1
    recent_count: int = 5
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    difficulty_ratio: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RATIO))
    selected_sub_units: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.min_test_count < 0:
            raise ValueError("min_test_count must be non-negative")
        if self.recent_count < 1:
            raise ValueError("recent_count must be at least 1")
        for tier in DIFFICULTY_TIERS:
            if self.weights.get(tier, 0) <= 0:
                raise ValueError(f"weight for '{tier}' must be positive")
            if tier not in self.difficulty_ratio:
                raise ValueError(f"difficulty ratio for '{tier}' is missing")
            if self.difficulty_ratio[tier] < 0:
                raise ValueError(f"difficulty ratio for '{tier}' must be non-negative")

    def weight_for(self, difficulty: str) -> float:
        # Unrecognized tiers score like the middle tier.
        return self.weights.get(difficulty, self.weights[MID])

    def with_scope(self, sub_units: Iterable[str]) -> "AnalysisConfig":
        return replace(self, selected_sub_units=tuple(sub_units))

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "AnalysisConfig":
        """Overlay saved settings on the defaults.

        Accepts both snake_case keys and the camelCase keys of exported
        browser settings (``minTestCount``, ``selectedSubUnits``...).
        """
        if not isinstance(raw, Mapping):
            raise ValueError("Analysis settings must be a JSON object")

        def pick(*names):
            for name in names:
                if name in raw:
                    return raw[name]
            return None

        defaults = cls()
        min_test = pick("min_test_count", "minTestCount")
        recent = pick("recent_count", "recentCount")
        weights = pick("weights")
        ratio = pick("difficulty_ratio", "difficultyRatio")
        scope = pick("selected_sub_units", "selectedSubUnits")

        if scope is not None and not isinstance(scope, (list, tuple)):
            raise ValueError("'selected_sub_units' must be a list of path prefixes")

        return cls(
            min_test_count=int(min_test) if min_test is not None else defaults.min_test_count,
            recent_count=int(recent) if recent is not None else defaults.recent_count,
            weights=_tier_map(weights, DEFAULT_WEIGHTS, "weights") if weights is not None else dict(DEFAULT_WEIGHTS),
            difficulty_ratio=_tier_map(ratio, DEFAULT_RATIO, "difficulty_ratio") if ratio is not None else dict(DEFAULT_RATIO),
            selected_sub_units=tuple(str(p).strip() for p in scope if str(p).strip()) if scope else (),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "min_test_count": self.min_test_count,
            "recent_count": self.recent_count,
            "weights": dict(self.weights),
            "difficulty_ratio": dict(self.difficulty_ratio),
            "selected_sub_units": list(self.selected_sub_units),
        }


def load_config(path: Path) -> AnalysisConfig:
    if not path.exists():
        logger.info("No settings file at %s; using defaults", path)
        return AnalysisConfig()

    raw = json.loads(path.read_text(encoding="utf-8"))
    return AnalysisConfig.from_dict(raw)


def save_config(config: AnalysisConfig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path
