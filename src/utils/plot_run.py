from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path

import matplotlib
import numpy as np

from .plots import plot_offset_signal, plot_run_summary, plot_synthesis_xy

MAPPING_FIELDS = ["index", "arc_length", "offset", "delta"]
PAIRS_FIELDS = ["base_x", "base_y", "base_z", "offset_x", "offset_y", "offset_z"]


def _read_rows(csv_path: Path, required: list[str]) -> list[dict[str, str]]:
    with csv_path.open(newline="") as csv_file:
        reader = csv.DictReader(csv_file)
        if reader.fieldnames is None:
            raise ValueError(f"{csv_path.name} is missing a header row")
        missing = [field for field in required if field not in reader.fieldnames]
        if missing:
            raise ValueError(f"{csv_path.name} missing columns: {', '.join(missing)}")
        return list(reader)


def read_mapping(csv_path: Path) -> dict[str, np.ndarray]:
    rows = _read_rows(csv_path, MAPPING_FIELDS)
    if not rows:
        raise ValueError("mapping.csv has no data rows")
    index = np.array([int(row["index"]) for row in rows], dtype=np.int32)
    order = np.argsort(index)

    def col_float(name: str) -> np.ndarray:
        return np.array([float(row[name]) for row in rows], dtype=np.float64)[order]

    return {
        "index": index[order],
        "arc_length": col_float("arc_length"),
        "offset": col_float("offset"),
        "delta": col_float("delta"),
    }


def read_pairs(csv_path: Path) -> tuple[np.ndarray, np.ndarray]:
    rows = _read_rows(csv_path, PAIRS_FIELDS)
    P = np.array(
        [[float(row[name]) for name in PAIRS_FIELDS] for row in rows],
        dtype=np.float64,
    ).reshape(-1, 6)
    return P[:, :3], P[:, 3:]


def plot_run(run_dir: Path, out_dir: Path, show: bool) -> None:
    if not show:
        matplotlib.use("Agg")
    out_dir.mkdir(parents=True, exist_ok=True)

    mapping = read_mapping(run_dir / "mapping.csv")
    plot_offset_signal(
        out_dir / "offset_signal.png",
        mapping["arc_length"],
        mapping["offset"],
        mapping["delta"],
    )

    pairs_path = run_dir / "pairs.csv"
    if pairs_path.exists():
        base, style = read_pairs(pairs_path)
        plot_synthesis_xy(out_dir / "synthesis_xy.png", base, style)

    metadata_path = run_dir / "metadata.json"
    if metadata_path.exists():
        metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
        metadata_text = json.dumps(metadata, indent=2, sort_keys=True)
        plot_run_summary(
            out_dir / "run_summary.png",
            "Run Summary",
            [
                f"run_dir: {run_dir}",
                f"entries: {len(mapping['index'])}",
                f"max |offset|: {float(np.max(np.abs(mapping['offset']))):.6g}",
                "",
                "metadata.json:",
                *metadata_text.splitlines(),
            ],
        )

    if show:
        import matplotlib.pyplot as plt

        plt.show()


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", required=True, help="Run directory with mapping.csv")
    ap.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for plots (defaults to <run>/plots)",
    )
    ap.add_argument("--show", action="store_true", help="Show plots interactively")
    args = ap.parse_args()

    run_dir = Path(args.input)
    out_dir = Path(args.out_dir) if args.out_dir else run_dir / "plots"
    plot_run(run_dir, out_dir, show=args.show)


if __name__ == "__main__":
    main()
