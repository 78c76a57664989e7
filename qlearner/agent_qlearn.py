import copy
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence

from .config import LearnerConfig
from .state import StateKey, make_state

logger = logging.getLogger(__name__)


@dataclass
class QValue:
    value: float = 0.0
    count: int = 0
    select: bool = False    # judged optimal by mark() during evaluation
    uncover: bool = False   # registered as not covered by the learned policy


class SearchStatistics(NamedTuple):
    lower: float
    upper: float
    sum_count: int
    n_actions: int


class QLearner:
    """
    Tabular Q-learner over discretized (discrete, continuous) states.
    Table: state key -> action id -> QValue, created lazily by samples.

    Concrete continuous values are truncated (see state.make_state) to keep
    the table from exploding.
    """

    def __init__(self, is_minimization: bool, d_size: int, c_size: int,
                 n_actions: int = 0, config: Optional[LearnerConfig] = None):
        self.is_minimization = is_minimization
        self.d_size = d_size
        self.c_size = c_size
        self.n_actions = n_actions  # as declared by the host; the table never reads it
        self.config = config or LearnerConfig()
        self.learning = True
        self.uncovered_states: set[StateKey] = set()

        self.Q: dict[StateKey, dict[int, QValue]] = {}

    def make_state(self, d_vars: Optional[Sequence[float]],
                   c_vars: Optional[Sequence[float]]) -> StateKey:
        return make_state(d_vars, c_vars, self.d_size, self.c_size)

    def clone(self) -> "QLearner":
        """Independent deep copy; the two learners share nothing afterwards."""
        return copy.deepcopy(self)

    # ---- lookups ----

    def best_value(self, state: Optional[StateKey]) -> QValue:
        """
        Best observed record for the state (lowest value when minimizing).
        Unsampled entries are ignored; ties keep the lowest action id.
        Returns QValue() with count 0 when nothing was observed.
        """
        best = QValue()
        actions = self.Q.get(state) if state is not None else None
        if not actions:
            return best
        for action in sorted(actions):
            other = actions[action]
            if other.count == 0:
                continue
            if best.count == 0:
                best = other
            elif self.is_minimization and other.value < best.value:
                best = other
            elif not self.is_minimization and other.value > best.value:
                best = other
        return best

    def value(self, state: StateKey, action: int) -> QValue:
        actions = self.Q.get(state)
        if actions is not None and action in actions:
            return actions[action]
        return QValue()

    def search_statistics(self, state: StateKey) -> SearchStatistics:
        """Range of sampled values, total samples and number of sampled actions."""
        lower = float("inf")
        upper = -float("inf")
        sum_count = 0
        n_actions = 0
        for q in self.Q.get(state, {}).values():
            if q.count == 0:
                continue
            sum_count += q.count
            lower = min(lower, q.value)
            upper = max(upper, q.value)
            n_actions += 1
        return SearchStatistics(lower, upper, sum_count, n_actions)

    def length(self) -> int:
        return len(self.Q)

    def clear_strategy(self):
        self.Q.clear()

    # ---- updates ----

    def add_sample(self, from_state: StateKey, action: int,
                   to_state: Optional[StateKey], reward: float):
        """
        Fold one observed transition into Q(from_state, action).
        to_state is None for the terminal sink, whose value is fixed at zero.
        """
        gamma = self.config.gamma
        alpha = self.config.alpha
        future = self.best_value(to_state)
        q = self.Q.setdefault(from_state, {}).setdefault(action, QValue())

        learning_rate = 1.0 / min(alpha, q.count + 1)
        assert learning_rate <= 1.0
        assert future.value == 0 or future.count != 0

        if q.count == 0:
            # no old value to blend with
            q.value = reward + gamma * future.value
        else:
            q.value = q.value + learning_rate * (reward + gamma * future.value - q.value)
        q.count += 1

    def add_uncovered(self, state: StateKey, action: int):
        q = self.Q.setdefault(state, {}).setdefault(action, QValue())
        q.count = 1
        q.select = False
        q.value = self.config.min_reward
        q.uncover = True

    # ---- classification ----

    def is_allowed(self, state: StateKey, action: int) -> tuple[bool, bool]:
        """
        Returns (allowed, found). An action is allowed when it is sampled and
        ties with the best value of its state. found is False only when
        nothing at all was observed for the state.
        """
        current = self.value(state, action)
        best = self.best_value(state)
        assert current.count == 0 or best.count != 0

        if current.uncover:
            return False, True
        if current.count > 0 and current.value == best.value:
            return True, True
        if best.count == 0:
            return False, False
        return False, True

    def mark(self, state: StateKey, action: int):
        """Flag the pair as selected if it is currently allowed."""
        allowed, _ = self.is_allowed(state, action)
        if not allowed:
            return
        q = self.Q.get(state, {}).get(action)
        if q is not None:
            q.select = True
