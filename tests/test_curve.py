import numpy as np
import pytest

from src.markovpen.curve import (
    Appended,
    Buffered,
    Curve,
    Empty,
    OneSample,
    Streaming,
)


def _line_samples(n: int, spacing: float = 1.0) -> list[np.ndarray]:
    return [np.array([i * spacing, 0.0, 0.0]) for i in range(n)]


def _arc_samples(n: int, radius: float = 5.0, step: float = 0.2) -> list[np.ndarray]:
    return [
        np.array([radius * np.cos(i * step), radius * np.sin(i * step), 0.1 * i])
        for i in range(n)
    ]


def _build(samples: list[np.ndarray], responsiveness: float = 1.0) -> Curve:
    curve = Curve(responsiveness)
    for p in samples:
        curve.add_control_point(p)
    curve.finish()
    return curve


def test_input_state_machine_and_one_sample_lag() -> None:
    curve = Curve()
    samples = _line_samples(5)
    assert isinstance(curve.state, Empty)

    curve.add_control_point(samples[0])
    assert isinstance(curve.state, OneSample)
    assert len(curve.control_points) == 1

    curve.add_control_point(samples[1])
    assert isinstance(curve.state, Buffered)
    assert len(curve.control_points) == 1

    curve.add_control_point(samples[2])
    assert isinstance(curve.state, Streaming)
    assert len(curve.control_points) == 2
    assert np.allclose(curve.state.pending, samples[2])

    curve.add_control_point(samples[3])
    curve.add_control_point(samples[4])
    # With responsiveness 1 the emitted points are the raw samples, one behind.
    np.testing.assert_allclose(np.array(curve.control_points), np.array(samples[:4]))


def test_arc_length_table_trails_until_finish() -> None:
    curve = Curve()
    for i, p in enumerate(_line_samples(6)):
        curve.add_control_point(p)
        n = len(curve.control_points)
        if i >= 1:
            assert len(curve.arc_length_positions) == n - 1 or n == 1
    assert not curve.is_finished()
    curve.finish()
    assert curve.is_finished()
    assert len(curve.arc_length_positions) == len(curve.control_points)
    np.testing.assert_allclose(curve.arc_length_positions, [0.0, 1.0, 2.0, 3.0, 4.0])

    curve.finish()
    assert len(curve.arc_length_positions) == len(curve.control_points)


def test_finish_with_one_point_is_noop() -> None:
    curve = Curve()
    curve.add_control_point([1.0, 2.0, 3.0])
    curve.finish()
    assert not curve.is_finished()
    assert curve.arc_length_positions == [0.0]


def test_add_after_finish_raises() -> None:
    curve = _build(_line_samples(4))
    with pytest.raises(ValueError):
        curve.add_control_point([9.0, 0.0, 0.0])


def test_responsiveness_smooths_toward_buffered_sample() -> None:
    curve = Curve(0.25)
    for p in _line_samples(3):
        curve.add_control_point(p)
    # Hermite point at t=0.25 between the anchor and the buffered sample.
    assert np.allclose(curve.control_points[1], [0.1796875, 0.0, 0.0])


@pytest.mark.parametrize("responsiveness", [0.0, -0.5, 1.5])
def test_invalid_responsiveness_raises(responsiveness: float) -> None:
    with pytest.raises(ValueError):
        Curve(responsiveness)


def test_invalid_points_raise() -> None:
    curve = Curve()
    with pytest.raises(ValueError):
        curve.add_control_point([1.0, 2.0, 3.0, 4.0])
    with pytest.raises(ValueError):
        curve.add_control_point([np.nan, 0.0, 0.0])


def test_two_dimensional_points_are_lifted() -> None:
    curve = Curve()
    curve.add_control_point([1.0, 2.0])
    assert np.allclose(curve.control_points[0], [1.0, 2.0, 0.0])


@pytest.mark.parametrize("responsiveness", [1.0, 0.5])
def test_finished_curve_invariants(responsiveness: float) -> None:
    curve = _build(_arc_samples(20), responsiveness)
    arc = np.array(curve.arc_length_positions)
    assert len(arc) == len(curve.control_points)
    assert arc[0] == 0.0
    assert np.all(np.diff(arc) >= 0.0)
    assert np.allclose(curve.position_at(0.0), curve.control_points[0])
    assert np.allclose(curve.position_at(curve.arc_length()), curve.control_points[-1])


def test_position_at_table_entries_returns_control_points() -> None:
    curve = _build(_arc_samples(15))
    for i, l in enumerate(curve.arc_length_positions):
        assert np.allclose(curve.position_at(l), curve.control_points[i], atol=1e-9)


def test_position_at_tracks_arc_length_locally() -> None:
    curve = _build(_arc_samples(15))
    arc = curve.arc_length_positions
    for i in range(1, len(arc) - 1):
        l = 0.5 * (arc[i] + arc[i + 1])
        p = curve.position_at(l)
        # Half way along the segment in arc length stays near the chord middle.
        mid = 0.5 * (curve.control_points[i] + curve.control_points[i + 1])
        assert np.linalg.norm(p - mid) < 0.1


def test_time_at_is_linear_inside_segments() -> None:
    curve = _build(_line_samples(6))
    assert np.isclose(curve.time_at(0.0), 0.0)
    assert np.isclose(curve.time_at(2.5), 2.5)
    assert np.isclose(curve.time_at(3.99), 3.99)
    assert curve.segment_index(curve.time_at(2.5)) == 2
    assert np.isclose(curve.segment_t(curve.time_at(2.5)), 0.5)
    assert np.allclose(curve.position_at(2.5), [2.5, 0.0, 0.0])


def test_position_at_extrapolates_outside_range() -> None:
    curve = _build(_line_samples(6))
    assert np.allclose(curve.position_at(-1.5), [-1.5, 0.0, 0.0])
    assert np.allclose(curve.position_at(5.5), [5.5, 0.0, 0.0])


def test_position_at_on_empty_curve_raises() -> None:
    with pytest.raises(ValueError):
        Curve().position_at(0.0)


def test_get_segment_positions_clamps_at_ends() -> None:
    curve = _build(_line_samples(5))
    first = curve.get_segment_positions(0)
    last = curve.get_segment_positions(len(curve.control_points) - 2)
    assert np.allclose(first[0], first[1])
    assert np.allclose(last[2], last[3])


def test_append_skips_delay_and_tracks_arc_length() -> None:
    curve = Curve()
    for p in _line_samples(4, spacing=0.5):
        curve.append(p)
    assert len(curve.control_points) == 4
    assert len(curve.arc_length_positions) == 3
    curve.finish()
    np.testing.assert_allclose(curve.arc_length_positions, [0.0, 0.5, 1.0, 1.5])


def test_append_after_buffered_input_raises() -> None:
    curve = Curve()
    curve.add_control_point([0.0, 0.0, 0.0])
    curve.add_control_point([1.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        curve.append([2.0, 0.0, 0.0])


def test_raw_input_after_append_raises() -> None:
    curve = Curve()
    for x in range(4):
        curve.append([float(x), 0.0, 0.0])
    assert isinstance(curve.state, Appended)
    with pytest.raises(ValueError):
        curve.add_control_point([4.0, 0.0, 0.0])
    assert len(curve.control_points) == 4
    curve.finish()
    assert curve.is_finished()
    assert len(curve.arc_length_positions) == len(curve.control_points)
