"""
Action weights handed to the strategy search.

Evaluation queries get a binary signal (1.0 for an optimal action, 0.0
otherwise). Training queries get an exploration-shaped weight: the
normalized Q-value sharpened by how often the action was sampled, plus a
UCB-style bonus for under-sampled actions.

Note: predict() is not a pure read. Once the learner is frozen, evaluation
queries mark the queried action as selected (see QLearner.mark), which is
what the compact render later writes out.
"""
import logging
import math
from typing import Optional, Sequence

from .agent_qlearn import QLearner
from .state import StateKey, format_state

logger = logging.getLogger(__name__)


def evaluation_score(q: QLearner, state: StateKey, action: int) -> float:
    allowed, found = q.is_allowed(state, action)
    if allowed and found:
        return 1.0
    if found:
        return 0.0

    # the strategy has no answer here; the caller treats it like a deadlock
    if state not in q.uncovered_states:
        q.uncovered_states.add(state)
        logger.warning("State <%s> is not found in the strategy", format_state(state))
    return 0.0


def training_score(q: QLearner, state: StateKey, action: int) -> float:
    lower, upper, sum_count, n_actions = q.search_statistics(state)
    value = q.value(state, action)

    if sum_count == 0:
        assert value.count == 0
        return 0.0

    difference = upper - lower
    if difference == 0:
        return 1.0

    pr_action = sum_count / n_actions

    # an unsampled action is assumed to be as good as the best one seen
    if value.count != 0:
        relative = value.value
    else:
        relative = lower if q.is_minimization else upper

    # normalize into [0, 1], 1 being the best observed value
    if q.is_minimization:
        relative = (upper - relative) / difference
    else:
        relative = (relative - lower) / difference

    # the more an action was sampled the further a mediocre value sinks
    exponent = min(q.config.exponent_cap, math.sqrt(max(value.count, pr_action)))
    lifted = math.pow(relative, exponent)

    # share of the state's samples this action got
    r = 1.0
    if value.count > 0:
        r = math.sqrt(math.log(sum_count) / value.count)

    C = 1.0 / n_actions
    return lifted + (r * C) / (1.0 + C)


def predict(q: QLearner, is_eval: bool, action: int,
            d_vars: Optional[Sequence[float]],
            c_vars: Optional[Sequence[float]]) -> float:
    """
    Weight of taking action from the observed state. Always finite and
    non-negative; anything else is logged and replaced by 0.0.
    """
    state = q.make_state(d_vars, c_vars)

    if is_eval:
        if not q.learning:
            q.mark(state, action)
        reward = evaluation_score(q, state, action)
    else:
        reward = training_score(q, state, action)

    if not math.isfinite(reward) or reward < 0.0:
        logger.warning("Discarding weight %r for action %d at <%s>",
                       reward, action, format_state(state))
        return 0.0
    return reward
