import math

import numpy as np
import pytest

from label_distmap import ChamferLabelTransform, ChamferWeights, transform
from label_distmap.distmap import (
    as_label_grid,
    backward_pass,
    forward_pass,
    initialize_distance_map,
    max_foreground_distance,
)

SQRT2 = 1.41421356


def _block_grid() -> np.ndarray:
    grid = np.zeros((5, 5), dtype=np.int32)
    grid[1:4, 1:4] = 1
    return grid


def test_block_in_background_quasi_euclidean():
    result = transform(_block_grid(), [1.0, SQRT2], normalize=False)
    dist = result.distance_map

    for y, x in [(1, 1), (1, 3), (3, 1), (3, 3), (2, 1), (2, 3)]:
        assert dist[y, x] == pytest.approx(1.0)
    # a later diagonal boundary neighbor (NE in the forward scan, SW in the
    # backward scan) replaces the orthogonal one for these two pixels
    assert dist[1, 2] == pytest.approx(SQRT2, rel=1e-6)
    assert dist[3, 2] == pytest.approx(SQRT2, rel=1e-6)
    assert dist[2, 2] == pytest.approx(2.0)
    assert result.max_value == pytest.approx(2.0)


def test_block_in_background_chessboard():
    dist = transform(_block_grid(), [1.0, 1.0], normalize=False).distance_map
    assert dist[1, 1] == pytest.approx(1.0)
    assert dist[3, 3] == pytest.approx(1.0)
    assert dist[2, 2] == pytest.approx(2.0)


def test_diagonal_only_contact_uses_diagonal_weight():
    grid = np.ones((5, 5), dtype=np.int32)
    grid[0, 0] = 0

    dist = transform(grid, [1.0, SQRT2], normalize=False).distance_map

    assert dist[0, 1] == pytest.approx(1.0)
    assert dist[1, 0] == pytest.approx(1.0)
    assert dist[1, 1] == pytest.approx(SQRT2, rel=1e-6)
    assert dist[2, 2] == pytest.approx(2 * SQRT2, rel=1e-6)


def test_background_is_exactly_zero():
    grid = _block_grid()
    for normalize in (False, True):
        dist = transform(grid, "borgefors", normalize=normalize).distance_map
        assert np.all(dist[grid == 0] == 0.0)


def test_single_label_everywhere_stays_unset():
    grid = np.full((4, 6), 7, dtype=np.uint16)
    result = transform(grid, "chessboard", normalize=True)
    assert np.all(np.isposinf(result.distance_map))
    assert result.max_value == 0.0


def test_single_pixel_grid_stays_unset():
    result = transform(np.array([[3]]), "quasi_euclidean", normalize=False)
    assert result.distance_map.shape == (1, 1)
    assert math.isinf(result.distance_map[0, 0])
    assert result.max_value == 0.0


def test_background_only_grid():
    result = transform(np.zeros((3, 4), dtype=np.uint8), "borgefors")
    assert np.all(result.distance_map == 0.0)
    assert result.max_value == 0.0


@pytest.mark.parametrize("shape", [(0, 0), (0, 5), (4, 0)])
def test_degenerate_grids_give_empty_result(shape):
    result = transform(np.zeros(shape, dtype=np.int32), "chessboard")
    assert result.distance_map.shape == shape
    assert result.distance_map.dtype == np.float32
    assert result.max_value == 0.0


def test_empty_nested_list_is_an_empty_grid():
    result = transform([], "chessboard")
    assert result.distance_map.shape == (0, 0)
    assert result.distance_map.dtype == np.float32
    assert result.max_value == 0.0
    assert as_label_grid([]).shape == (0, 0)


def test_adjacent_labels_see_each_other_as_boundary():
    grid = np.array([[1, 1, 1, 2, 2, 2]], dtype=np.int32)
    dist = transform(grid, [1.0, 1.5], normalize=False).distance_map
    np.testing.assert_allclose(dist[0], [3.0, 2.0, 1.0, 1.0, 2.0, 3.0])


def test_image_border_is_not_a_boundary():
    grid = np.array([[1, 1, 1, 0]], dtype=np.int32)
    dist = transform(grid, [1.0, 1.0], normalize=False).distance_map
    np.testing.assert_allclose(dist[0], [3.0, 2.0, 1.0, 0.0])


def test_normalization_divides_by_orthogonal_weight():
    grid = np.zeros((7, 9), dtype=np.int32)
    grid[1:6, 1:8] = 2
    grid[3, 4] = 5
    raw = transform(grid, "borgefors", normalize=False)
    norm = transform(grid, "borgefors", normalize=True)

    fg = grid != 0
    np.testing.assert_allclose(norm.distance_map[fg], raw.distance_map[fg] / 3.0, rtol=1e-6)
    assert np.all(norm.distance_map[~fg] == 0.0)
    assert norm.max_value == pytest.approx(raw.max_value / 3.0)


def test_result_is_float32_and_input_untouched():
    grid = _block_grid()
    before = grid.copy()
    result = transform(grid, "quasi_euclidean")
    assert result.distance_map.dtype == np.float32
    np.testing.assert_array_equal(grid, before)


def test_boundary_neighbor_overwrites_running_candidate():
    # NE neighbor differs, so the candidate from N (0.5 + 1) is replaced by 3
    labels = np.array([[1, 1, 2], [1, 1, 1]], dtype=np.int64)
    dist = initialize_distance_map(labels)
    dist[0, 1] = 0.5

    forward_pass(dist, labels, ChamferWeights((1.0, 3.0)))

    assert dist[1, 1] == pytest.approx(3.0)
    assert dist[0, 2] == pytest.approx(1.0)


def test_values_only_decrease_during_a_pass():
    labels = np.array([[0, 1, 1], [1, 1, 1]], dtype=np.int64)
    dist = initialize_distance_map(labels)
    dist[1, 2] = 0.25

    backward_pass(dist, labels, ChamferWeights((1.0, 1.0)))

    assert dist[1, 2] == pytest.approx(0.25)
    assert dist[1, 1] == pytest.approx(1.25)


def test_initialize_distance_map():
    labels = np.array([[0, 4], [2, 0]])
    dist = initialize_distance_map(labels)
    assert dist.dtype == np.float32
    assert dist[0, 0] == 0.0 and dist[1, 1] == 0.0
    assert np.isposinf(dist[0, 1]) and np.isposinf(dist[1, 0])


def test_max_foreground_distance_ignores_unset_and_background():
    labels = np.array([[0, 1, 2]])
    dist = np.array([[9.0, np.inf, 2.5]], dtype=np.float32)
    assert max_foreground_distance(dist, labels) == pytest.approx(2.5)


def test_label_grid_validation():
    with pytest.raises(ValueError, match="2-D"):
        as_label_grid(np.zeros(5))
    with pytest.raises(ValueError, match="negative"):
        as_label_grid(np.array([[0, -1]]))
    with pytest.raises(ValueError, match="integer values"):
        as_label_grid(np.array([[0.5, 1.0]]))
    np.testing.assert_array_equal(as_label_grid([[True, False]]), [[1, 0]])
    np.testing.assert_array_equal(as_label_grid(np.array([[2.0, 0.0]])), [[2, 0]])


def test_transform_class_rejects_weights_missing_for_mask():
    with pytest.raises(ValueError):
        ChamferLabelTransform([1.0])


def test_progress_is_reported_per_row_and_does_not_change_result():
    grid = _block_grid()
    calls = []

    def progress(step, current, total):
        calls.append((step, current, total))

    with_progress = ChamferLabelTransform("quasi_euclidean", progress=progress).distance_map(grid)
    without = ChamferLabelTransform("quasi_euclidean").distance_map(grid)

    np.testing.assert_array_equal(with_progress.distance_map, without.distance_map)
    forward = [c for c in calls if c[0] == "forward"]
    backward = [c for c in calls if c[0] == "backward"]
    assert [c[1] for c in forward] == [0, 1, 2, 3, 4, 5]
    assert [c[1] for c in backward] == [0, 1, 2, 3, 4, 5]
    assert all(c[2] == 5 for c in calls)
