from .agent_qlearn import QLearner, QValue, SearchStatistics
from .config import LearnerConfig, RenderMode
from .errors import LifecycleError, QLearnerError, SnapshotError
from .host import Handle, LearnerRegistry
from .scoring import predict
from .state import StateKey, make_state

__all__ = [
    "QLearner", "QValue", "SearchStatistics",
    "LearnerConfig", "RenderMode",
    "LifecycleError", "QLearnerError", "SnapshotError",
    "Handle", "LearnerRegistry",
    "predict", "StateKey", "make_state",
]
