"""
Ending resolution.
"""

import logging
import random

from .config import EngineConfig
from .variables import VariableStore, to_number

logger = logging.getLogger(__name__)


class EndingResolver:
    """Picks an ending scene from the accumulated ``risk`` and ``emotion``."""

    def __init__(self, config: EngineConfig, rng: random.Random | None = None):
        self.config = config
        self.rng = rng or random.Random(config.seed)

    def death_chance(self, risk: float) -> float:
        """Probability of the death ending for a given risk, 0 below the threshold."""
        if risk < self.config.risk_threshold:
            return 0.0
        return min(self.config.death_chance_cap, risk * self.config.death_chance_per_risk)

    def resolve(self, variables: VariableStore) -> str:
        """Return the ending scene id for the current variables."""
        risk = to_number(variables.get("risk"))
        emotion = to_number(variables.get("emotion"))

        chance = self.death_chance(risk)
        if chance > 0 and self.rng.random() < chance:
            logger.info("Death ending triggered (risk=%s, chance=%.2f)", risk, chance)
            return self.config.death_ending

        if emotion >= self.config.good_threshold:
            ending = self.config.good_ending
        elif emotion >= self.config.neutral_threshold:
            ending = self.config.neutral_ending
        else:
            ending = self.config.bad_ending

        logger.info("Resolved ending %s (emotion=%s, risk=%s)", ending, emotion, risk)
        return ending
