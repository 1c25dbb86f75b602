import numpy as np
import pytest

from src.markovpen.base_curve import BaseCurve
from src.markovpen.errors import MarkovPenError, SmoothNormalRangeError

UP_Z = np.array([0.0, 0.0, 1.0])


def _straight_base(
    length: float,
    spacing: float = 0.5,
    tap: float = 0.0,
    up: np.ndarray = UP_Z,
    finish: bool = True,
    **kwargs: float,
) -> BaseCurve:
    """Base curve along +x whose control points run from 0 to `length`."""

    curve = BaseCurve(1.0, tap=tap, **kwargs)
    n = int(round(length / spacing)) + 2
    for i in range(n):
        curve.add_control_point([i * spacing, 0.0, 0.0], up)
    if finish:
        curve.finish()
    return curve


def test_up_vector_required() -> None:
    curve = BaseCurve()
    with pytest.raises(ValueError):
        curve.add_control_point([0.0, 0.0, 0.0])


def test_negative_tap_rejected() -> None:
    with pytest.raises(ValueError):
        BaseCurve().set_tap(-1.0)


def test_default_responsiveness_keeps_straight_input_on_line() -> None:
    curve = BaseCurve()
    for i in range(10):
        curve.add_control_point([float(i), 0.0, 0.0], UP_Z)
    curve.finish()
    P = np.array(curve.control_points)
    assert np.allclose(P[:, 1:], 0.0)
    assert np.all(np.diff(P[:, 0]) > 0.0)


def test_up_vectors_blend_and_normalize() -> None:
    curve = BaseCurve(1.0)
    curve.add_control_point([0.0, 0.0, 0.0], [0.0, 0.0, 2.0])
    curve.add_control_point([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
    curve.add_control_point([2.0, 0.0, 0.0], [0.0, 1.0, 0.0])
    assert len(curve.up_vectors) == len(curve.control_points) == 2
    assert np.allclose(curve.up_vectors[0], [0.0, 0.0, 1.0])
    expected = np.array([0.0, 0.25, 0.75]) / np.linalg.norm([0.0, 0.25, 0.75])
    assert np.allclose(curve.up_vectors[1], expected)


def test_zero_tap_uses_static_chord_normal() -> None:
    curve = _straight_base(5.0)
    assert curve.smooth_normals == []
    for l in (-1.0, 0.0, 1.3, 2.5, 5.0, 7.0):
        assert np.allclose(curve.smooth_normal_at(l), [0.0, 1.0, 0.0])
    assert np.isclose(curve.arc_length(), 5.0)


def test_static_normal_is_unit_for_tilted_chord() -> None:
    curve = BaseCurve(1.0)
    for i in range(5):
        curve.add_control_point([float(i), float(i), 2.0 * i], UP_Z)
    curve.finish()
    normal = curve.static_normal()
    assert np.isclose(np.linalg.norm(normal), 1.0)
    assert np.isclose(normal[2], 0.0)


def test_smooth_normals_follow_up_vector() -> None:
    curve = _straight_base(5.0, tap=0.5)
    assert len(curve.smooth_normals) == len(curve.control_points)
    for normal in curve.smooth_normals:
        assert np.allclose(normal, [0.0, 0.0, 1.0])
    for l in np.linspace(0.0, 5.0, 11):
        assert np.allclose(curve.smooth_normal_at(float(l)), [0.0, 0.0, 1.0])
    assert np.isclose(curve.arc_length(), 5.0)


def test_smooth_normal_is_orthogonal_to_tangent() -> None:
    curve = _straight_base(5.0, tap=0.5, up=np.array([0.0, 1.0, 1.0]))
    for normal in curve.smooth_normals:
        assert np.isclose(np.linalg.norm(normal), 1.0)
        assert abs(float(np.dot(normal, [1.0, 0.0, 0.0]))) < 1e-9


def test_arc_length_is_capped_while_growing() -> None:
    curve = _straight_base(5.0, tap=1.0, finish=False)
    arc = curve.arc_length_positions
    assert 0 < len(curve.smooth_normals) < len(arc)
    assert np.isclose(curve.arc_length(), arc[len(curve.smooth_normals) - 1])
    assert curve.arc_length() < arc[-1]
    # Every query below the capped length interpolates recorded frames.
    for l in np.linspace(0.0, curve.arc_length(), 9, endpoint=False):
        assert np.allclose(curve.smooth_normal_at(float(l)), [0.0, 0.0, 1.0])
    curve.finish()
    assert len(curve.smooth_normals) == len(curve.control_points)
    assert np.isclose(curve.arc_length(), curve.arc_length_positions[-1])


def test_short_curve_has_no_frame_length() -> None:
    curve = _straight_base(0.5, spacing=0.25, tap=0.5, finish=False)
    assert len(curve.control_points) == 3
    assert curve.arc_length() == 0.0


def test_set_tap_on_finished_curve_computes_normals() -> None:
    curve = _straight_base(3.0)
    curve.set_tap(0.5)
    assert len(curve.smooth_normals) == len(curve.control_points)
    assert np.isclose(curve.arc_length(), 3.0)


def test_consecutive_normals_never_flip() -> None:
    curve = BaseCurve(1.0, tap=0.5)
    for i in range(40):
        a = 0.3 * i
        p = [np.cos(a) * 4.0, np.sin(a) * 4.0, 0.2 * i]
        # Up hint alternates sides of the curve.
        up = [0.0, 0.0, 1.0 if i % 2 == 0 else -1.0]
        curve.add_control_point(p, up)
    curve.finish()
    normals = curve.smooth_normals
    assert len(normals) == len(curve.control_points)
    for a, b in zip(normals[:-1], normals[1:]):
        assert float(np.dot(a, b)) >= 0.0


def test_first_derivative_outside_range_uses_end_tangents() -> None:
    curve = _straight_base(4.0)
    assert np.allclose(curve.first_derivative_at(-1.0), [0.25, 0.0, 0.0])
    assert np.allclose(curve.first_derivative_at(10.0), [0.25, 0.0, 0.0])
    assert np.allclose(curve.first_derivative_at(2.25), [0.5, 0.0, 0.0])


def test_project_point_beside_curve() -> None:
    curve = _straight_base(10.0)
    projections = curve.project([3.0, 1.0, 0.0])
    assert projections
    assert projections == sorted(projections)
    for l in projections:
        assert abs(l - 3.0) < 0.25


def test_project_tolerance_controls_precision() -> None:
    curve = _straight_base(10.0, projection_tolerance=0.01)
    projections = curve.project([4.2, -2.0, 0.0])
    assert abs(projections[0] - 4.2) < 0.01


def test_project_out_of_plane_point_terminates() -> None:
    curve = _straight_base(10.0)
    projections = curve.project([6.1, 0.5, 3.0])
    assert abs(projections[0] - 6.1) < 0.01


@pytest.mark.parametrize(
    ("point", "expected"),
    [
        ([-2.0, 0.5, 0.0], -2.0),
        ([12.0, -1.0, 0.0], 12.0),
    ],
)
def test_project_falls_back_to_extrapolation(point: list[float], expected: float) -> None:
    curve = _straight_base(10.0)
    projections = curve.project(point)
    assert len(projections) == 1
    assert np.isclose(projections[0], expected)


def test_shoot_is_signed_along_curve() -> None:
    curve = _straight_base(10.0)
    normal = curve.static_normal()
    point = np.array([3.0, 1.0, 0.0])
    assert curve.shoot(point, normal, 1.0) > 0.0
    assert curve.shoot(point, normal, 5.0) < 0.0
    assert np.isclose(curve.shoot(point, normal, 3.0), 0.0)


def test_range_error_classification() -> None:
    err = SmoothNormalRangeError("index_too_large", 7, 4)
    assert isinstance(err, IndexError)
    assert isinstance(err, MarkovPenError)
    assert err.kind == "index_too_large"
    assert err.index == 7
    assert "too large" in str(err)
