"""
Engine configuration.
Defaults describe the stock ending policy; a story may override them in the
``engine:`` block of its ``story.yaml``.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _default_milestones() -> dict[str, float]:
    return {"cp1": 0.25, "cp2": 0.5, "cp3": 0.75, "cp4": 1.0}


@dataclass
class EngineConfig:
    """Tunable constants of the narrative engine."""
    ending_prefix: str = "end_"
    good_ending: str = "end_good"
    neutral_ending: str = "end_neutral"
    bad_ending: str = "end_bad"
    death_ending: str = "end_death"
    good_threshold: float = 7
    neutral_threshold: float = 4
    risk_threshold: float = 4
    death_chance_per_risk: float = 0.05
    death_chance_cap: float = 0.3
    progress_milestones: dict[str, float] = field(default_factory=_default_milestones)
    seed: Optional[int] = None

    def is_ending_scene(self, scene_id: str) -> bool:
        return bool(scene_id) and scene_id.startswith(self.ending_prefix)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EngineConfig":
        """Build a config from loose mapping data, falling back per key."""
        if not isinstance(data, dict):
            return cls()

        defaults = cls()

        def _as_str(key: str) -> str:
            value = data.get(key, getattr(defaults, key))
            if not isinstance(value, str) or not value:
                logger.warning("Ignoring invalid %s=%r in engine config", key, value)
                return getattr(defaults, key)
            return value

        def _as_float(key: str) -> float:
            value = data.get(key, getattr(defaults, key))
            try:
                return float(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid %s=%r in engine config", key, value)
                return getattr(defaults, key)

        milestones = defaults.progress_milestones
        raw_milestones = data.get("progress_milestones")
        if isinstance(raw_milestones, dict):
            try:
                milestones = {str(k): float(v) for k, v in raw_milestones.items()}
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid progress_milestones in engine config")

        seed = data.get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            logger.warning("Ignoring non-integer seed=%r in engine config", seed)
            seed = None

        return cls(
            ending_prefix=_as_str("ending_prefix"),
            good_ending=_as_str("good_ending"),
            neutral_ending=_as_str("neutral_ending"),
            bad_ending=_as_str("bad_ending"),
            death_ending=_as_str("death_ending"),
            good_threshold=_as_float("good_threshold"),
            neutral_threshold=_as_float("neutral_threshold"),
            risk_threshold=_as_float("risk_threshold"),
            death_chance_per_risk=_as_float("death_chance_per_risk"),
            death_chance_cap=_as_float("death_chance_cap"),
            progress_milestones=milestones,
            seed=seed,
        )
