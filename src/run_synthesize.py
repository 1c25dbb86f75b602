from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Protocol, TypedDict, cast

import numpy as np

from . import PROJECT_ROOT
from .markovpen.export_svg import export_synthesis_svg, pairs_to_polylines
from .markovpen.mapping import SAMPLING_INTERVAL
from .markovpen.pen import SketchSession
from .markovpen.base_curve import BASE_RESPONSIVENESS, PROJECTION_TOLERANCE
from .markovpen.run_checkpoint import (
    init_run,
    read_mapping_csv,
    save_run_npz,
    write_mapping_csv,
    write_pairs_csv,
)
from .markovpen.stroke_io import Stroke, load_strokes
from .markovpen.types import PointPair
from .utils import debug, debug_helpers


class CliArgs(Protocol):
    input: str
    output: str
    output_json: str | None
    example_mapping: str | None
    flat_tol: float
    sampling_interval: float
    projection_tol: float
    responsiveness: float
    base_responsiveness: float
    no_repeat: bool
    no_run_dir: bool
    no_normalize: bool
    plots: bool
    verbose: bool


class CliArgsDict(TypedDict):
    input: str
    output: str
    output_json: str | None
    example_mapping: str | None
    flat_tol: float
    sampling_interval: float
    projection_tol: float
    responsiveness: float
    base_responsiveness: float
    no_repeat: bool
    no_run_dir: bool
    no_normalize: bool
    plots: bool
    verbose: bool


class RunResult(TypedDict):
    entries: int
    max_offset: float
    synthesized: int
    scale: float


def feed_stroke(session: SketchSession, stroke: Stroke) -> list[PointPair]:
    """Replay one recorded stroke sample by sample, as the host would."""

    session.begin_stroke()
    pairs: list[PointPair] = []
    for point, up in zip(stroke.points, stroke.ups):
        pairs.extend(session.add_sample(point, up))
    pairs.extend(session.end_stroke())
    return pairs


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument(
        "--input",
        required=True,
        help="Stroke file: JSON with example_base/example_style/target_base, "
        "or SVG whose first three paths are those strokes",
    )
    ap.add_argument("--output", required=True, help="Output SVG of the synthesis")
    ap.add_argument(
        "--output_json",
        default=None,
        help="Optional JSON file receiving the synthesized point pairs",
    )
    ap.add_argument(
        "--example_mapping",
        default=None,
        help="mapping.csv from an earlier run; skips the example strokes",
    )
    ap.add_argument(
        "--flat_tol", type=float, default=1.0, help="SVG flatten tolerance (units)"
    )
    ap.add_argument(
        "--sampling_interval",
        type=float,
        default=SAMPLING_INTERVAL,
        help="Arc-length spacing of style curve samples",
    )
    ap.add_argument(
        "--projection_tol",
        type=float,
        default=PROJECTION_TOLERANCE,
        help="Distance below which a projection bracket is accepted",
    )
    ap.add_argument(
        "--responsiveness",
        type=float,
        default=1.0,
        help="Smoothing of style strokes in (0, 1]; 1 keeps raw samples",
    )
    ap.add_argument(
        "--base_responsiveness",
        type=float,
        default=BASE_RESPONSIVENESS,
        help="Smoothing of base strokes in (0, 1]",
    )
    ap.add_argument(
        "--no_repeat",
        action="store_true",
        help="Play the example signal once instead of looping it",
    )
    ap.add_argument(
        "--no_run_dir",
        action="store_true",
        help="Do not write a run directory under data/runs",
    )
    ap.add_argument(
        "--no_normalize",
        action="store_true",
        help="Keep SVG strokes in user units instead of rescaling them to unit size",
    )
    ap.add_argument(
        "--plots", action="store_true", help="Render PNG plots into the run directory"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logs")

    args = cast(CliArgs, ap.parse_args())
    debug.set_verbose(args.verbose)

    if args.flat_tol <= 0:
        raise ValueError("flat_tol must be positive")
    if args.sampling_interval <= 0:
        raise ValueError("sampling_interval must be positive")
    if args.projection_tol <= 0:
        raise ValueError("projection_tol must be positive")

    strokes = load_strokes(
        args.input, flat_tol=args.flat_tol, normalize=not args.no_normalize
    )
    scale = strokes.scale
    debug_helpers.log_points("example_base", strokes.example_base.points)
    debug_helpers.log_points("example_style", strokes.example_style.points)
    debug_helpers.log_points("target_base", strokes.target_base.points)

    session = SketchSession(
        style_responsiveness=args.responsiveness,
        sampling_interval=args.sampling_interval,
        repetitive=not args.no_repeat,
        base_curve_kwargs={
            "responsiveness": args.base_responsiveness,
            "projection_tolerance": args.projection_tol,
        },
    )

    if args.example_mapping is not None:
        example = read_mapping_csv(
            Path(args.example_mapping), repetitive=not args.no_repeat
        )
        session.use_example(example)
    else:
        feed_stroke(session, strokes.example_base)
        feed_stroke(session, strokes.example_style)
        trained = session.pen.example_mapping
        if trained is None:
            raise ValueError("example style stroke is too short to build a mapping")
        example = trained
    pairs = feed_stroke(session, strokes.target_base)
    debug.log(f"synthesized pairs={len(pairs)}")

    synth_base, synth_style = pairs_to_polylines(pairs)
    # Drawings go back to input units; run-dir dumps stay in curve units.
    synth_base, synth_style = synth_base * scale, synth_style * scale
    style_curves = [synth_style]
    base_curves = [strokes.target_base.points * scale]
    if args.example_mapping is None:
        style_curves.append(strokes.example_style.points * scale)
        base_curves.append(strokes.example_base.points * scale)
    export_synthesis_svg(args.output, style_curves, base_curves)

    if args.output_json is not None:
        Path(args.output_json).write_text(
            json.dumps(
                {
                    "base": synth_base.tolist(),
                    "style": synth_style.tolist(),
                },
                indent=2,
            ),
            encoding="utf-8",
        )

    result: RunResult = {
        "entries": len(example),
        "max_offset": float(example.max_offset),
        "synthesized": len(pairs),
        "scale": scale,
    }

    if not args.no_run_dir:
        cli_args = cast(CliArgsDict, vars(args))
        run = init_run(
            PROJECT_ROOT / "data" / "runs",
            {"cli_args": dict(cli_args), "result": dict(result)},
        )
        write_mapping_csv(run.mapping_csv_path, example)
        write_pairs_csv(run.pairs_csv_path, pairs)
        save_run_npz(
            run.run_dir,
            np.asarray(session.example_base_curve.control_points).reshape(-1, 3),
            np.asarray(session.example_style_curve.control_points).reshape(-1, 3),
            np.asarray(session.target_base_curve.control_points).reshape(-1, 3),
            pairs,
        )
        if args.plots:
            from .utils.plot_run import plot_run

            plot_run(run.run_dir, run.run_dir / "plots", show=False)

    print(
        f"Saved: {args.output}  entries={result['entries']} "
        f"max_offset={result['max_offset']:.6g} synthesized={result['synthesized']}"
    )


if __name__ == "__main__":
    main()
