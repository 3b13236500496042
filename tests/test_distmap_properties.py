import numpy as np
import pytest

from label_distmap import ChamferWeights, transform
from label_distmap.distmap import (
    as_label_grid,
    backward_pass,
    forward_pass,
    initialize_distance_map,
)


def _rectangles_grid() -> np.ndarray:
    grid = np.zeros((14, 18), dtype=np.int32)
    grid[1:6, 1:9] = 1
    grid[1:6, 9:13] = 2
    grid[7:13, 2:7] = 3
    grid[8:14, 10:18] = 4
    grid[10:12, 12:15] = 5
    return grid


def _two_passes(labels: np.ndarray, weights: ChamferWeights) -> np.ndarray:
    dist = initialize_distance_map(labels)
    forward_pass(dist, labels, weights)
    backward_pass(dist, labels, weights)
    return dist


@pytest.mark.parametrize("preset", ["chessboard", "quasi_euclidean", "borgefors", "weights_57", "weights_23"])
def test_extra_pass_changes_nothing(preset):
    labels = as_label_grid(_rectangles_grid())
    weights = ChamferWeights.from_preset(preset)
    dist = _two_passes(labels, weights)
    settled = dist.copy()

    forward_pass(dist, labels, weights)
    backward_pass(dist, labels, weights)

    np.testing.assert_array_equal(dist, settled)


@pytest.mark.parametrize("normalize", [False, True])
def test_repeated_runs_are_bit_identical(normalize):
    grid = _rectangles_grid()
    first = transform(grid, "quasi_euclidean", normalize=normalize)
    second = transform(grid, "quasi_euclidean", normalize=normalize)
    assert first.distance_map.tobytes() == second.distance_map.tobytes()
    assert first.max_value == second.max_value


@pytest.mark.parametrize("preset", ["chessboard", "city_block", "quasi_euclidean", "borgefors"])
def test_values_are_non_negative_and_finite_when_a_boundary_exists(preset):
    grid = _rectangles_grid()
    dist = transform(grid, preset).distance_map
    assert np.all(dist >= 0.0)
    assert np.all(np.isfinite(dist))
    assert np.all(dist[grid != 0] > 0.0)


def test_isolated_region_without_boundary_keeps_sentinel():
    grid = np.full((6, 6), 9, dtype=np.int32)
    result = transform(grid, "borgefors")
    assert np.all(np.isposinf(result.distance_map))

    split = np.ones((6, 6), dtype=np.int32)
    split[:, 3:] = 2
    dist = transform(split, "borgefors").distance_map
    assert np.all(np.isfinite(dist))


def test_chessboard_matches_brute_force_chebyshev_distance():
    grid = _rectangles_grid()
    dist = transform(grid, "chessboard", normalize=False).distance_map

    ys, xs = np.indices(grid.shape)
    expected = np.zeros(grid.shape, dtype=np.float64)
    for y, x in zip(*np.nonzero(grid)):
        other = grid != grid[y, x]
        cheb = np.maximum(np.abs(ys[other] - y), np.abs(xs[other] - x))
        expected[y, x] = cheb.min()

    np.testing.assert_array_equal(dist, expected.astype(np.float32))


def test_normalized_max_value_matches_map():
    grid = _rectangles_grid()
    result = transform(grid, "borgefors", normalize=True)
    assert result.max_value == pytest.approx(float(result.distance_map[grid != 0].max()))
