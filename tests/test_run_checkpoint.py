import json
from pathlib import Path

import numpy as np
import pytest

from src.markovpen.mapping import Mapping
from src.markovpen.run_checkpoint import (
    init_run,
    read_mapping_csv,
    save_run_npz,
    write_mapping_csv,
    write_pairs_csv,
)
from src.utils.plot_run import read_mapping, read_pairs


def test_init_run_creates_unique_dirs(tmp_path: Path) -> None:
    first = init_run(tmp_path, {"note": "a"})
    second = init_run(tmp_path, {"note": "b"})
    assert first.run_dir != second.run_dir
    metadata = json.loads((first.run_dir / "metadata.json").read_text("utf-8"))
    assert metadata["note"] == "a"
    assert metadata["run_id"] == first.run_dir.name
    assert first.mapping_csv_path.parent == first.run_dir


def test_mapping_csv_restores_example(tmp_path: Path) -> None:
    example = Mapping.from_entries(
        [(0.0, 0.1), (0.5, -0.2), (1.0, 0.3)], [0.5, 0.5, 0.5]
    )
    path = tmp_path / "mapping.csv"
    write_mapping_csv(path, example)

    restored = read_mapping_csv(path, repetitive=False)
    assert restored.entries == example.entries
    assert restored.delta_offsets == example.delta_offsets
    assert restored.max_offset == pytest.approx(0.3)
    assert not restored.is_repetitive()

    columns = read_mapping(path)
    np.testing.assert_allclose(columns["offset"], [0.1, -0.2, 0.3])
    np.testing.assert_array_equal(columns["index"], [0, 1, 2])


def test_read_mapping_csv_requires_columns(tmp_path: Path) -> None:
    path = tmp_path / "mapping.csv"
    path.write_text("index,arc_length\n0,0.0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_mapping_csv(path)


def test_pairs_csv_and_npz(tmp_path: Path) -> None:
    pairs = [
        (np.array([0.0, 0.0, 0.0]), np.array([0.0, 0.5, 0.0])),
        (np.array([1.0, 0.0, 0.0]), np.array([1.0, -0.5, 0.0])),
    ]
    csv_path = tmp_path / "pairs.csv"
    write_pairs_csv(csv_path, pairs)
    base, style = read_pairs(csv_path)
    np.testing.assert_allclose(base, [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    np.testing.assert_allclose(style[:, 1], [0.5, -0.5])

    curve = np.zeros((2, 3))
    npz_path = save_run_npz(tmp_path, curve, curve, curve, pairs)
    with np.load(npz_path) as data:
        assert data["synth_style"].shape == (2, 3)
        assert data["example_base"].shape == (2, 3)

    empty = save_run_npz(tmp_path, curve, curve, curve, [])
    with np.load(empty) as data:
        assert data["synth_base"].shape == (0, 3)
