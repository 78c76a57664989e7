"""
Offline training from a CSV of sampled transitions.

Columns: action, reward, from_d0.., from_c0.., to_d0.., to_c0..
A row whose to_* cells are all empty ends in the terminal sink.

    python -m qlearner.train_rl samples.csv --out strategy.json --history history.csv
"""
import argparse
import logging
import os
import re
import sys
import time

import numpy as np
import pandas as pd

from .agent_qlearn import QLearner
from .config import LearnerConfig
from .snapshot import render
from .state import format_state


def vector_columns(df: pd.DataFrame, prefix: str) -> list[str]:
    """Columns named <prefix><index>, ordered by index."""
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    cols = [c for c in df.columns if pattern.match(str(c))]
    return sorted(cols, key=lambda c: int(pattern.match(str(c)).group(1)))


def load_transitions(path: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    for col in ("action", "reward"):
        if col not in df.columns:
            raise ValueError(f"{path}: missing column '{col}'")
    return df


def _matrix(df: pd.DataFrame, cols: list[str]):
    if not cols:
        return None
    return df[cols].to_numpy(dtype=float)


def train_from_frame(learner: QLearner, df: pd.DataFrame, keep_history: bool = False):
    """
    Feeds every row of df into learner.add_sample, in file order.
    Returns the per-sample history as a DataFrame (empty unless keep_history).
    """
    from_d = _matrix(df, vector_columns(df, "from_d"))
    from_c = _matrix(df, vector_columns(df, "from_c"))
    to_d_cols = vector_columns(df, "to_d")
    to_c_cols = vector_columns(df, "to_c")
    to_d = _matrix(df, to_d_cols)
    to_c = _matrix(df, to_c_cols)

    if to_d_cols or to_c_cols:
        terminal = df[to_d_cols + to_c_cols].isna().all(axis=1).to_numpy()
    else:
        terminal = np.ones(len(df), dtype=bool)

    actions = df["action"].to_numpy(dtype=int)
    rewards = df["reward"].to_numpy(dtype=float)

    rows = []
    for i in range(len(df)):
        s = learner.make_state(None if from_d is None else from_d[i],
                               None if from_c is None else from_c[i])
        s2 = None
        if not terminal[i]:
            s2 = learner.make_state(None if to_d is None else to_d[i],
                                    None if to_c is None else to_c[i])
        a = int(actions[i])
        r = float(rewards[i])
        learner.add_sample(s, a, s2, r)

        if keep_history:
            q = learner.value(s, a)
            rows.append({
                "sample": i,
                "state": format_state(s),
                "action": a,
                "reward": r,
                "value": q.value,
                "count": q.count,
                "states": learner.length(),
            })

    return pd.DataFrame(rows)


def register_uncovered(learner: QLearner, df: pd.DataFrame) -> int:
    """Rows of d*, c*, action registered with add_uncovered."""
    d = _matrix(df, vector_columns(df, "d"))
    c = _matrix(df, vector_columns(df, "c"))
    actions = df["action"].to_numpy(dtype=int)
    for i in range(len(df)):
        s = learner.make_state(None if d is None else d[i], None if c is None else c[i])
        learner.add_uncovered(s, int(actions[i]))
    return len(df)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Train a tabular Q-learner from sampled transitions.")
    p.add_argument("samples", help="CSV of transitions")
    p.add_argument("--maximize", action="store_true",
                   help="higher values are better (default: minimize cost)")
    p.add_argument("--out", default="strategy.json", help="where to write the learned table")
    p.add_argument("--history", help="optional per-sample history CSV")
    p.add_argument("--uncovered", help="optional CSV of d*, c*, action pairs to mark uncovered")
    p.add_argument("--verbose", action="store_true")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        df = load_transitions(args.samples)
    except (OSError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    d_size = len(vector_columns(df, "from_d"))
    c_size = len(vector_columns(df, "from_c"))
    learner = QLearner(is_minimization=not args.maximize, d_size=d_size, c_size=c_size,
                       config=LearnerConfig.from_env())

    t0 = time.time()
    history = train_from_frame(learner, df, keep_history=bool(args.history))
    elapsed = time.time() - t0

    if args.uncovered:
        n = register_uncovered(learner, pd.read_csv(args.uncovered))
        print(f"  Registered {n} uncovered pairs")

    with open(args.out, "w") as f:
        f.write(render(learner))

    if args.history:
        history.to_csv(args.history, index=False)
        print(f"✓ History saved -> {os.path.abspath(args.history)}")

    print(f"✓ Trained on {len(df)} samples | states={learner.length()} | "
          f"{'max' if args.maximize else 'min'} | {elapsed:.2f}s")
    print(f"✓ Strategy saved -> {os.path.abspath(args.out)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
