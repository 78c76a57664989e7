"""
Textual form of a learned table.

The output is a JSON object:
    {
    "(d0,d1),[c0]":{
        "action":value, ...},
    ...
    }
Only values are written, never counts or flags.

Non-finite values are written as Infinity, -Infinity and NaN, the way
Python's json module does. Strict JSON parsers reject those tokens; they
only appear when a sample carried a non-finite reward.
"""
import json
import logging
from typing import Optional

from .agent_qlearn import QLearner, QValue
from .config import LearnerConfig, RenderMode
from .errors import SnapshotError
from .state import format_number, format_state, parse_state

logger = logging.getLogger(__name__)


def _qualifies(q: QValue, mode: Optional[RenderMode]) -> bool:
    if mode is None:
        return True
    if mode is RenderMode.SELECTED:
        return q.select
    if mode is RenderMode.UNCOVERED:
        return q.uncover
    return q.select or q.uncover


def _render_table(learner: QLearner, mode: Optional[RenderMode]) -> str:
    entries = []
    for state in sorted(learner.Q):
        action_map = learner.Q[state]
        actions = [a for a in sorted(action_map) if _qualifies(action_map[a], mode)]
        if not actions:
            continue
        body = ",".join(f'\n\t"{a}":{format_number(action_map[a].value)}' for a in actions)
        entries.append(f'"{format_state(state)}":{{{body}}}')
    return "{\n" + ",\n".join(entries) + "\n}"


def render_complete(learner: QLearner) -> str:
    return _render_table(learner, None)


def render_partial(learner: QLearner, mode: RenderMode) -> str:
    return _render_table(learner, mode)


def render(learner: QLearner) -> str:
    """
    The first render of a learning table writes everything and freezes it;
    later renders only write the actions flagged per the configured mode.
    """
    if learner.learning:
        learner.learning = False
        return render_complete(learner)
    return render_partial(learner, learner.config.render_mode)


def parse(data: Optional[str], is_minimization: bool, d_size: int, c_size: int,
          n_actions: int = 0, config: Optional[LearnerConfig] = None) -> QLearner:
    """
    Rebuild a learner from render() output. Counts are not serialized, so
    every restored pair gets count 1; pairs holding the min_reward sentinel
    come back as uncovered.
    """
    learner = QLearner(is_minimization, d_size, c_size, n_actions, config)
    if data is None or not data.strip():
        return learner

    try:
        table = json.loads(data)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(table, dict):
        raise SnapshotError("Snapshot must be an object of states")

    for state_text, actions in table.items():
        try:
            state = parse_state(state_text)
        except ValueError as e:
            raise SnapshotError(str(e)) from e
        if len(state.discrete) != d_size or len(state.continuous) != c_size:
            raise SnapshotError(
                f"State {state_text!r} does not match sizes ({d_size}, {c_size})")
        if not isinstance(actions, dict):
            raise SnapshotError(f"State {state_text!r} must map actions to values")

        for action_text, value in actions.items():
            try:
                action = int(action_text)
                value = float(value)
            except (TypeError, ValueError) as e:
                raise SnapshotError(f"Bad entry {action_text!r} in {state_text!r}") from e
            if value == learner.config.min_reward:
                learner.add_uncovered(state, action)
            else:
                learner.Q.setdefault(state, {})[action] = QValue(value=value, count=1)

    logger.debug("Parsed snapshot with %d states", learner.length())
    return learner
