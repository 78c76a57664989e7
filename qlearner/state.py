"""
State discretization for the Q-table.

A raw observation is a pair of numeric vectors (discrete, continuous). The
discrete half is copied as-is; the continuous half is truncated toward zero
so that every observation inside the same unit cell lands on one table row.
"""
import json
import math
import re
from typing import NamedTuple, Optional, Sequence

import numpy as np

_STATE_RE = re.compile(r"^\((?P<d>[^()]*)\),\[(?P<c>[^\[\]]*)\]$")


class StateKey(NamedTuple):
    discrete: tuple
    continuous: tuple


def make_state(discrete_values: Optional[Sequence[float]],
               continuous_values: Optional[Sequence[float]],
               d_size: int, c_size: int) -> StateKey:
    """
    Converts a raw observation into a table key.
    A missing half (None) becomes an empty vector; present halves are read
    up to the declared size.
    """
    d_vector = ()
    c_vector = ()
    if discrete_values is not None:
        d = np.asarray(discrete_values, dtype=float)[:d_size]
        d_vector = tuple(float(x) for x in d)
    if continuous_values is not None:
        c = np.trunc(np.asarray(continuous_values, dtype=float)[:c_size])
        c_vector = tuple(float(x) for x in c)
    return StateKey(d_vector, c_vector)


def format_number(x: float) -> str:
    x = float(x) + 0.0  # folds -0.0 into 0.0
    if not math.isfinite(x):
        return json.dumps(x)
    if x.is_integer() and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def format_state(key: StateKey) -> str:
    d = ",".join(format_number(x) for x in key.discrete)
    c = ",".join(format_number(x) for x in key.continuous)
    return f"({d}),[{c}]"


def _split_vector(body: str) -> tuple:
    # older writers leave a trailing comma after every element
    return tuple(float(x) for x in body.split(",") if x.strip())


def parse_state(text: str) -> StateKey:
    """Inverse of format_state."""
    m = _STATE_RE.match(text.strip())
    if m is None:
        raise ValueError(f"Malformed state key: {text!r}")
    return StateKey(_split_vector(m.group("d")), _split_vector(m.group("c")))
