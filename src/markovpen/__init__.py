from . import (
    base_curve,
    curve,
    errors,
    export_svg,
    hermite,
    mapping,
    pen,
    run_checkpoint,
    stroke_io,
    synthesizer,
)
from .base_curve import BaseCurve
from .curve import Curve
from .mapping import Mapping, MappingEntry
from .pen import MarkovPen, SketchSession
from .synthesizer import Synthesizer

__all__ = [
    "base_curve",
    "curve",
    "errors",
    "export_svg",
    "hermite",
    "mapping",
    "pen",
    "run_checkpoint",
    "stroke_io",
    "synthesizer",
    "BaseCurve",
    "Curve",
    "Mapping",
    "MappingEntry",
    "MarkovPen",
    "SketchSession",
    "Synthesizer",
]
