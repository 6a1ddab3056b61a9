"""
Tests for the flood fill and its contour shading.
"""

import numpy as np
import pytest

from py_fieldmap.core.flood_fill import ContourNode, FloodNode
from py_fieldmap.core.scalar_field import ScalarField
from py_fieldmap.utils.pool import NodePool

HOLLOW_SQUARE = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 1, 1, 1, 1, 0, 0],
    [0, 1, 0, 0, 0, 0, 1, 0],
    [0, 1, 0, 0, 0, 0, 1, 0],
    [0, 1, 0, 0, 0, 0, 1, 0],
    [0, 1, 0, 0, 0, 0, 1, 0],
    [0, 0, 1, 1, 1, 1, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0],
]


def expected_hollow_square(filled_value):
    a = filled_value
    return [
        [0, 0, 0, 0, 0, 0, 0, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 1, a, a, a, a, 1, 0],
        [0, 1, a, a, a, a, 1, 0],
        [0, 1, a, a, a, a, 1, 0],
        [0, 1, a, a, a, a, 1, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 0, 0, 0, 0, 0, 0, 0],
    ]


class TestFillFrom:
    """Test filling areas below a maximum value."""

    def test_can_fill_a_square(self):
        """Only the inside of the square border is filled."""
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(4, 4, 1, 0, 1)

        np.testing.assert_array_equal(field.values, expected_hollow_square(1))

    def test_filled_value_exceeds_contour_values(self):
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(4, 4, 1, 0.5, 1)

        # max(value_max, thickness² * 2^20)
        sentinel = 0.25 * 1024 * 1024
        np.testing.assert_array_equal(field.values, expected_hollow_square(sentinel))

    def test_origin_is_rounded(self):
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(3.6, 4.4, 1, 0, 1)

        np.testing.assert_array_equal(field.values, expected_hollow_square(1))

    def test_origin_outside_of_the_grid(self):
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(-3, 4, 1, 1, 2)
        field.fill_from(4, 20, 1, 1, 2)

        np.testing.assert_array_equal(field.values, HOLLOW_SQUARE)

    def test_origin_above_the_maximum(self):
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(2, 1, 1, 1, 2)

        np.testing.assert_array_equal(field.values, HOLLOW_SQUARE)

    def test_contour_shading_along_a_row(self):
        field = ScalarField.from_array([[-1, -1, -1, 0, 0, 0, 0, 0, 0, 0]])

        field.fill_from(0, 0, 0, 3, 1.5)

        sentinel = 9 * 1024 * 1024
        np.testing.assert_allclose(
            field.values,
            [[sentinel, sentinel, sentinel, 9, 2.25, 1, 0.5625, 0, 0, 0]],
        )

    def test_shading_around_a_single_cell_matches_a_disk(self):
        """Every shaded cell is measured from the only filled cell."""
        field = ScalarField(9, 9)
        field.clear(0.05)
        field.set(4, 4, -1)

        field.fill_from(4, 4, 0.01, 1, 3)

        for y in range(9):
            for x in range(9):
                distance_sq = (x - 4) ** 2 + (y - 4) ** 2
                if distance_sq == 0:
                    assert field.get(x, y) == 1024 * 1024
                elif distance_sq < 9:
                    assert field.get(x, y) == pytest.approx(1 / distance_sq)
                else:
                    assert field.get(x, y) == 0.05

    def test_shading_keeps_bigger_values(self):
        field = ScalarField(9, 9)
        field.clear(0.5)
        field.set(4, 4, -1)

        field.fill_from(4, 4, 0.25, 1, 3)

        # 1 / distance² is only bigger than 0.5 for the 4 direct neighbors
        expected = np.full((9, 9), 0.5)
        expected[4, 4] = 1024 * 1024
        expected[3, 4] = expected[5, 4] = expected[4, 3] = expected[4, 5] = 1
        np.testing.assert_allclose(field.values, expected)

    def test_capping_radius_containment(self):
        """Nothing changes farther than the capping radius from the area."""
        rng = np.random.default_rng(7)
        values = rng.uniform(0.2, 0.4, size=(20, 20))
        values[8:12, 8:12] = -1
        field = ScalarField.from_array(values)

        field.fill_from(10, 10, 0, 1, 2.5)

        filled = np.argwhere(values < 0)
        changed = np.argwhere(field.values != values)
        assert len(changed) > len(filled)
        for y, x in changed:
            nearest_sq = np.min((filled[:, 0] - y) ** 2 + (filled[:, 1] - x) ** 2)
            assert nearest_sq < 2.5 ** 2

    def test_unreachable_cells_are_untouched(self):
        field = ScalarField.from_array(
            [
                [0, 0, 5, 0, 0],
                [0, 0, 5, 0, 0],
                [0, 0, 5, 0, 0],
            ]
        )

        field.fill_from(0, 0, 1, 0, 1)

        np.testing.assert_array_equal(
            field.values,
            [
                [1, 1, 5, 0, 0],
                [1, 1, 5, 0, 0],
                [1, 1, 5, 0, 0],
            ],
        )


class TestUnfillFrom:
    """Test emptying areas above a minimum value."""

    def test_unfill_a_square(self):
        field = ScalarField.from_array(
            [
                [0, 0, 0, 0, 0],
                [0, 3, 3, 3, 0],
                [0, 3, 3, 3, 0],
                [0, 3, 3, 3, 0],
                [0, 0, 0, 0, 0],
            ]
        )

        field.unfill_from(2, 2, 1, 1, 2)

        assert np.all(field.values == 0)

    def test_contour_shading_along_a_row(self):
        field = ScalarField.from_array([[5, 5, 5, 3, 3, 3, 3, 3, 3, 3]])

        field.unfill_from(0, 0, 3, 2, 2)

        np.testing.assert_allclose(
            field.values, [[0, 0, 0, 0.25, 1, 2.25, 3, 3, 3, 3]]
        )

    def test_short_capping_radius(self):
        field = ScalarField.from_array([[5, 5, 5, 3, 3, 3, 3, 3, 3, 3]])

        field.unfill_from(0, 0, 3, 1, 2)

        np.testing.assert_allclose(field.values, [[0, 0, 0, 1, 3, 3, 3, 3, 3, 3]])

    def test_negative_minimum_terminates(self):
        field = ScalarField(4, 4)
        field.clear(1)

        field.unfill_from(1, 1, -1, 1, 2)

        assert np.all(field.values == 0)

    def test_fill_then_unfill(self):
        field = ScalarField.from_array(HOLLOW_SQUARE)

        field.fill_from(4, 4, 1, 0.5, 1)
        field.unfill_from(4, 4, 1, 1, 1)

        np.testing.assert_array_equal(field.values, expected_hollow_square(0))


class TestNodeReuse:
    def test_nodes_are_returned_to_the_pools(self):
        field = ScalarField(9, 9)
        field.clear(0.05)
        field.set(4, 4, -1)

        field.fill_from(4, 4, 0.01, 1, 3)

        flood_fill = field._flood_fill
        assert len(flood_fill._node_pool) >= 1
        assert len(flood_fill._contour_node_pool) >= 1
        assert not flood_fill._flood_stack
        assert not flood_fill._contour_stack
        assert not flood_fill._next_contour_stack

    def test_repeated_fills_give_the_same_result(self):
        first = ScalarField.from_array(HOLLOW_SQUARE)
        first.fill_from(4, 4, 1, 0.5, 3)

        second = ScalarField.from_array(HOLLOW_SQUARE)
        second.fill_from(4, 4, 1, 0.5, 3)
        second.values[:, :] = HOLLOW_SQUARE
        second.fill_from(4, 4, 1, 0.5, 3)

        np.testing.assert_array_equal(first.values, second.values)


class TestNodePool:
    def test_acquire_creates_nodes(self):
        pool = NodePool(FloodNode)

        node = pool.acquire()

        assert isinstance(node, FloodNode)
        assert len(pool) == 0

    def test_released_nodes_are_reused(self):
        pool = NodePool(ContourNode)
        node = pool.acquire()
        node.value = 4.0

        pool.release(node)

        assert len(pool) == 1
        assert pool.acquire() is node
        assert len(pool) == 0

    def test_flush(self):
        pool = NodePool(FloodNode)
        pool.release(FloodNode())
        pool.release(FloodNode())

        pool.flush()

        assert len(pool) == 0
        assert pool.acquire() is not None
