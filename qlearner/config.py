import os
from dataclasses import dataclass
from enum import Enum

VERSION = "v20240129"

# ---- Q-learning constants ----
GAMMA = 0.99            # discount on the bootstrapped future value
ALPHA = 2.0             # cap on 1/learning_rate
MIN_REWARD = -32767.0   # sentinel value of uncovered state-action pairs
EXPONENT_CAP = 1000.0   # upper bound on the sharpening exponent

RENDER_MODE_ENV = "QLEARNER_RENDER_MODE"


class RenderMode(Enum):
    """Which flagged actions survive a partial render."""
    SELECTED = "selected"     # compact strategy: actions marked during evaluation
    UNCOVERED = "uncovered"   # classifier: pairs registered with add_uncovered
    FLAGGED = "flagged"       # either flag


@dataclass
class LearnerConfig:
    gamma: float = GAMMA
    alpha: float = ALPHA
    min_reward: float = MIN_REWARD
    exponent_cap: float = EXPONENT_CAP
    render_mode: RenderMode = RenderMode.UNCOVERED

    @classmethod
    def from_env(cls) -> "LearnerConfig":
        raw = os.environ.get(RENDER_MODE_ENV)
        if not raw:
            return cls()
        try:
            mode = RenderMode(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown {RENDER_MODE_ENV}: {raw}") from None
        return cls(render_mode=mode)
