from __future__ import annotations

import csv
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from .mapping import Mapping
from .types import PointPair

MAPPING_CSV_FIELDS = ["index", "arc_length", "offset", "delta"]
PAIRS_CSV_FIELDS = [
    "index",
    "base_x",
    "base_y",
    "base_z",
    "offset_x",
    "offset_y",
    "offset_z",
]


@dataclass(frozen=True)
class SynthesisRun:
    run_dir: Path
    mapping_csv_path: Path
    pairs_csv_path: Path


def init_run(base_dir: Path, metadata: dict[str, Any]) -> SynthesisRun:
    base_dir.mkdir(parents=True, exist_ok=True)
    now = time.localtime()
    timestamp = time.strftime("%Y%m%d_%H%M%S", now)
    nonce = time.time_ns() % 1_000_000_000
    run_id = f"run_{timestamp}_{nonce:09d}"
    run_dir = base_dir / run_id
    while run_dir.exists():
        nonce = (nonce + 1) % 1_000_000_000
        run_id = f"run_{timestamp}_{nonce:09d}"
        run_dir = base_dir / run_id
    run_dir.mkdir(parents=True, exist_ok=False)

    metadata_out = dict(metadata)
    metadata_out["run_id"] = run_id
    metadata_out["created_at"] = time.strftime("%Y-%m-%dT%H:%M:%S", now)
    metadata_path = run_dir / "metadata.json"
    metadata_path.write_text(
        json.dumps(metadata_out, indent=2, sort_keys=True), encoding="utf-8"
    )
    print(f"synthesis run dir={run_dir}")

    return SynthesisRun(
        run_dir=run_dir,
        mapping_csv_path=run_dir / "mapping.csv",
        pairs_csv_path=run_dir / "pairs.csv",
    )


def write_mapping_csv(csv_path: Path, mapping: Mapping) -> None:
    with csv_path.open("w", newline="") as csv_file:
        writer = csv.DictWriter(csv_file, fieldnames=MAPPING_CSV_FIELDS)
        writer.writeheader()
        for i, entry in enumerate(mapping.entries):
            writer.writerow(
                {
                    "index": i,
                    "arc_length": entry.arc_length,
                    "offset": entry.offset,
                    "delta": mapping.delta_offsets[i],
                }
            )


def read_mapping_csv(csv_path: Path, repetitive: bool = True) -> Mapping:
    """Rebuild an example mapping from `write_mapping_csv` output."""

    entries: list[tuple[float, float]] = []
    deltas: list[float] = []
    with csv_path.open(newline="") as csv_file:
        reader = csv.DictReader(csv_file)
        missing = set(MAPPING_CSV_FIELDS) - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"mapping csv is missing columns: {sorted(missing)}")
        for row in reader:
            entries.append((float(row["arc_length"]), float(row["offset"])))
            deltas.append(float(row["delta"]))
    return Mapping.from_entries(entries, deltas, repetitive=repetitive)


def write_pairs_csv(csv_path: Path, pairs: list[PointPair]) -> None:
    with csv_path.open("w", newline="") as csv_file:
        writer = csv.DictWriter(csv_file, fieldnames=PAIRS_CSV_FIELDS)
        writer.writeheader()
        for i, (base, offset) in enumerate(pairs):
            writer.writerow(
                {
                    "index": i,
                    "base_x": float(base[0]),
                    "base_y": float(base[1]),
                    "base_z": float(base[2]),
                    "offset_x": float(offset[0]),
                    "offset_y": float(offset[1]),
                    "offset_z": float(offset[2]),
                }
            )


def save_run_npz(
    run_dir: Path,
    example_base: np.ndarray,
    example_style: np.ndarray,
    target_base: np.ndarray,
    pairs: list[PointPair],
) -> Path:
    npz_path = run_dir / "curves.npz"
    if pairs:
        synth_base = np.stack([np.asarray(b) for b, _ in pairs])
        synth_style = np.stack([np.asarray(o) for _, o in pairs])
    else:
        synth_base = np.zeros((0, 3))
        synth_style = np.zeros((0, 3))
    np.savez_compressed(
        npz_path,
        example_base=example_base,
        example_style=example_style,
        target_base=target_base,
        synth_base=synth_base,
        synth_style=synth_style,
    )
    return npz_path
