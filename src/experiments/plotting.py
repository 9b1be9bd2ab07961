"""Plotting helpers for simulation diagnostics."""

from __future__ import annotations

from pathlib import Path

import numpy as np

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from core.types import History  # noqa: E402

__all__ = ["plot_history"]


def plot_history(
    history: History,
    out_path: Path,
    *,
    title: str | None = None,
    log_std: bool = True,
) -> None:
    """Plot per-cycle consensus spread and misclassified counts.

    The top panel shows the max per-dimension standard deviation, the bottom
    panel the misclassified count summed over nodes. Cycles where the observer
    signalled convergence are marked with vertical lines.

    Args:
        history: Per-cycle diagnostics of a run.
        out_path: Output PNG path.
        title: Optional figure title.
        log_std: Use a log scale for the std panel.
    """
    if len(history) == 0:
        return

    out_path.parent.mkdir(parents=True, exist_ok=True)

    cycles = np.array([r.cycle for r in history.records])
    max_std = np.asarray(history.max_std_series(), dtype=np.float64)
    misclassified = np.asarray(history.misclassified_series(), dtype=np.float64)

    fig, (ax_std, ax_err) = plt.subplots(2, 1, figsize=(8, 6), sharex=True)

    if log_std:
        mask = np.isfinite(max_std) & (max_std > 0)
        if np.any(mask):
            ax_std.plot(cycles[mask], np.clip(max_std[mask], 1e-12, None))
            ax_std.set_yscale("log")
    else:
        ax_std.plot(cycles, max_std)
    ax_std.set_ylabel("max std")

    ax_err.plot(cycles, misclassified, color="tab:red")
    ax_err.set_ylabel("misclassified")
    ax_err.set_xlabel("cycle")

    for cycle in history.convergence_cycles():
        ax_std.axvline(cycle, linestyle="--", alpha=0.3, color="gray")

    if title:
        fig.suptitle(title)
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
