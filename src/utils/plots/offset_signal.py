from __future__ import annotations

from pathlib import Path

import numpy as np


def plot_offset_signal(
    out_path: Path,
    arc_length: np.ndarray,
    offset: np.ndarray,
    delta: np.ndarray,
) -> None:
    import matplotlib.pyplot as plt

    fig, (ax_offset, ax_delta) = plt.subplots(
        2, 1, figsize=(8.5, 6.0), dpi=120, sharex=True
    )
    ax_offset.plot(arc_length, offset, linewidth=1.5)
    ax_offset.axhline(0.0, color="#777777", linewidth=0.8)
    ax_offset.set_ylabel("offset")
    ax_offset.grid(True, alpha=0.3)

    ax_delta.plot(arc_length, delta, linewidth=1.0, color="tab:orange")
    ax_delta.set_xlabel("arc length on base")
    ax_delta.set_ylabel("advance")
    ax_delta.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(out_path, dpi=160)
    plt.close(fig)
