import os
import sys

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd


def plot_history(hist_path: str) -> list[str]:
    """Plots a train_rl --history CSV; returns the written image paths."""
    out_dir = os.path.dirname(os.path.abspath(hist_path))
    df = pd.read_csv(hist_path).sort_values("sample")
    saved = []

    # Q-value after each update
    plt.figure()
    plt.plot(df["sample"], df["value"], ".", markersize=2)
    plt.xlabel("Sample")
    plt.ylabel("Q-value after update")
    plt.title("Q-value updates")
    plt.grid(True)
    path = os.path.join(out_dir, "q_values.png")
    plt.savefig(path, dpi=160)
    plt.close()
    saved.append(path)

    # Number of states in the table
    plt.figure()
    plt.plot(df["sample"], df["states"])
    plt.xlabel("Sample")
    plt.ylabel("States in table")
    plt.title("Q-table growth")
    plt.grid(True)
    path = os.path.join(out_dir, "table_size.png")
    plt.savefig(path, dpi=160)
    plt.close()
    saved.append(path)

    return saved


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: python -m qlearner.plot_rl history.csv", file=sys.stderr)
        return 2
    saved = plot_history(argv[0])
    print("Saved plots in:", os.path.dirname(saved[0]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
