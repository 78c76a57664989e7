"""
Boundary used by the strategy-search host.

Learners are owned by a registry and handed out as opaque integer handles.
Handles are never reused, so releasing an unknown or already released handle
is detected and raised as LifecycleError instead of being ignored.
"""
import logging
from typing import NewType, Optional, Sequence

from .agent_qlearn import QLearner
from .config import VERSION, LearnerConfig
from .errors import LifecycleError
from .scoring import predict
from . import snapshot

logger = logging.getLogger(__name__)

Handle = NewType("Handle", int)

Vector = Optional[Sequence[float]]


class LearnerRegistry:
    def __init__(self, config: Optional[LearnerConfig] = None):
        self.config = config
        self._live: dict[Handle, QLearner] = {}
        self._last = 0  # last issued token; tokens are never reused
        self._destroyed = 0

    def __len__(self):
        return len(self._live)

    def _config(self) -> LearnerConfig:
        return self.config or LearnerConfig.from_env()

    def _register(self, learner: QLearner) -> Handle:
        self._last += 1
        handle = Handle(self._last)
        self._live[handle] = learner
        return handle

    def learner(self, handle: Optional[Handle]) -> QLearner:
        if handle is None:
            raise LifecycleError("Null learner handle")
        if isinstance(handle, bool) or not isinstance(handle, int):
            raise LifecycleError(f"Not a learner handle: {handle!r}")
        try:
            return self._live[handle]
        except KeyError:
            if 0 < handle <= self._last:
                raise LifecycleError(f"Learner handle {handle} was already destroyed") from None
            raise LifecycleError(f"Unknown learner handle {handle}") from None

    # ---- lifecycle ----

    def create(self, minimize: bool, discrete_size: int, continuous_size: int,
               action_count: int) -> Handle:
        config = self._config()
        learner = QLearner(minimize, discrete_size, continuous_size, action_count, config)
        logger.info("External Q learning - %s: %s render, sizes (%d, %d), %s",
                    VERSION, config.render_mode.value, discrete_size, continuous_size,
                    "minimization" if minimize else "maximization")
        return self._register(learner)

    def destroy(self, handle: Optional[Handle]):
        learner = self.learner(handle)
        logger.info("%s - %d:: Q-table's length: %d",
                    "min" if learner.is_minimization else "max",
                    self._destroyed, learner.length())
        del self._live[handle]
        self._destroyed += 1

    def clone(self, handle: Optional[Handle]) -> Handle:
        return self._register(self.learner(handle).clone())

    def parse(self, data: Optional[str], minimize: bool, discrete_size: int,
              continuous_size: int, action_count: int) -> Handle:
        learner = snapshot.parse(data, minimize, discrete_size, continuous_size,
                                 action_count, self._config())
        return self._register(learner)

    def serialize(self, handle: Optional[Handle]) -> str:
        return snapshot.render(self.learner(handle))

    # ---- samples and queries ----

    def record_transition(self, handle: Optional[Handle], action: int,
                          from_d: Vector, from_c: Vector,
                          to_d: Vector, to_c: Vector, reward: float):
        """
        One sample s -a-> s'. The host replays a trace backwards, so s'
        has usually been updated already. Both to_d and to_c are None when s'
        is the terminal sink.
        """
        if handle is None:
            return
        q = self.learner(handle)
        from_state = q.make_state(from_d, from_c)
        to_state = None
        if to_d is not None or to_c is not None:
            to_state = q.make_state(to_d, to_c)
        q.add_sample(from_state, action, to_state, reward)

    def record_online_transition(self, handle: Optional[Handle], action: int,
                                 from_d: Vector, from_c: Vector,
                                 to_d: Vector, to_c: Vector, reward: float):
        # this learner trains offline only
        return

    def query(self, handle: Optional[Handle], is_eval: bool, action: int,
              d_vars: Vector, c_vars: Vector) -> float:
        return predict(self.learner(handle), is_eval, action, d_vars, c_vars)

    def on_batch_complete(self, handle: Optional[Handle]):
        # not used by q-learning
        return


_registry = LearnerRegistry()

create = _registry.create
destroy = _registry.destroy
clone = _registry.clone
parse = _registry.parse
serialize = _registry.serialize
record_transition = _registry.record_transition
record_online_transition = _registry.record_online_transition
query = _registry.query
on_batch_complete = _registry.on_batch_complete
learner = _registry.learner
