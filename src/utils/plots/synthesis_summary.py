from __future__ import annotations

from pathlib import Path

import numpy as np


def plot_synthesis_xy(
    out_path: Path,
    base: np.ndarray,
    style: np.ndarray,
    title: str = "synthesis",
) -> None:
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8.5, 5.0), dpi=120)
    if base.shape[0] > 0:
        ax.plot(base[:, 0], base[:, 1], "--", color="#777777", label="base")
    if style.shape[0] > 0:
        ax.plot(style[:, 0], style[:, 1], color="tab:blue", label="style")
        ax.plot(
            [base[:, 0], style[:, 0]],
            [base[:, 1], style[:, 1]],
            color="tab:blue",
            alpha=0.15,
            linewidth=0.5,
        )
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(out_path, dpi=160)
    plt.close(fig)


def plot_run_summary(out_path: Path, title: str, lines: list[str]) -> None:
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8.5, 11.0), dpi=120)
    ax.axis("off")
    fig.suptitle(title, fontsize=12, y=0.98)
    ax.text(
        0.01,
        0.98,
        "\n".join(lines),
        va="top",
        ha="left",
        family="monospace",
        fontsize=8,
    )
    fig.tight_layout()
    fig.savefig(out_path, dpi=160)
    plt.close(fig)
