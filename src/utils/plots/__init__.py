from .offset_signal import plot_offset_signal
from .synthesis_summary import plot_run_summary, plot_synthesis_xy

__all__ = [
    "plot_offset_signal",
    "plot_run_summary",
    "plot_synthesis_xy",
]
