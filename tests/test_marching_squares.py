"""
Tests for the marching squares contour extraction.
"""

import pytest

from py_fieldmap.core.marching_squares import (
    FILL_VERTICES,
    OUTLINE_VERTICES,
    MarchingSquares,
    NORTH_EAST_MASK,
    NORTH_WEST_MASK,
    SOUTH_EAST_MASK,
    SOUTH_WEST_MASK,
    Side,
)
from py_fieldmap.core.scalar_field import ScalarField
from py_fieldmap.core.shape_painter import GeometryRecorder

EDGES = {Side.SOUTH, Side.EAST, Side.NORTH, Side.WEST}


def single_cell_field(square_index):
    """Build a 2x2 field whose only cell has the given case."""
    field = ScalarField(2, 2)
    field.set(0, 1, 1 if square_index & SOUTH_WEST_MASK else 0)
    field.set(1, 1, 1 if square_index & SOUTH_EAST_MASK else 0)
    field.set(1, 0, 1 if square_index & NORTH_EAST_MASK else 0)
    field.set(0, 0, 1 if square_index & NORTH_WEST_MASK else 0)
    return field


def fill(field, threshold=0.5, draw_under=False):
    recorder = GeometryRecorder()
    MarchingSquares(field).fill_contour(
        0, 0, field.dim_x, field.dim_y, threshold, draw_under, recorder
    )
    return recorder


def outline(field, threshold=0.5, draw_under=False):
    recorder = GeometryRecorder()
    MarchingSquares(field).outline_contour(
        0, 0, field.dim_x, field.dim_y, threshold, draw_under, recorder
    )
    return recorder


class ScriptedMarchingSquares(MarchingSquares):
    """Classifies cells from a script instead of the field values."""

    def __init__(self, scalar_field, cases):
        super().__init__(scalar_field)
        self.cases = cases

    def get_square_index(self, x, y, threshold):
        return self.cases[y][x]


class TestCaseCoverage:
    """Test every corner combination on a single cell."""

    @pytest.mark.parametrize("square_index", range(16))
    def test_classification(self, square_index):
        field = single_cell_field(square_index)

        assert MarchingSquares(field).get_square_index(0, 0, 0.5) == square_index

    @pytest.mark.parametrize("square_index", range(16))
    def test_fill_geometry(self, square_index):
        recorder = fill(single_cell_field(square_index))

        if square_index == 0:
            assert recorder.paths == []
            assert recorder.rectangles == []
        elif square_index == 15:
            assert recorder.paths == []
            assert recorder.rectangles == [(0, 0, 1, 1)]
        else:
            assert recorder.rectangles == []
            assert len(recorder.paths) == 1
            path = recorder.paths[0]
            assert path.closed
            assert path.cell == (0, 0)
            assert len(path.points) == len(FILL_VERTICES[square_index])

    @pytest.mark.parametrize("square_index", range(16))
    def test_outline_geometry(self, square_index):
        recorder = outline(single_cell_field(square_index))

        assert recorder.rectangles == []
        assert len(recorder.paths) == len(OUTLINE_VERTICES[square_index])
        for path in recorder.paths:
            assert not path.closed
            assert path.cell == (0, 0)
            assert len(path.points) == 2

    @pytest.mark.parametrize("square_index", range(1, 15))
    def test_fill_and_outline_tables_cross_the_same_edges(self, square_index):
        fill_edges = {side for side in FILL_VERTICES[square_index] if side in EDGES}
        outline_edges = {
            side for line in OUTLINE_VERTICES[square_index] for side in line
        }

        assert fill_edges == outline_edges

    @pytest.mark.parametrize("square_index", [5, 10])
    def test_saddles(self, square_index):
        """Saddles are filled as one polygon and outlined as two lines."""
        field = single_cell_field(square_index)

        assert len(fill(field).paths) == 1
        assert len(fill(field).paths[0].points) == 6
        assert len(outline(field).paths) == 2

    def test_no_geometry_is_emitted_for_empty_or_full_cases(self):
        for square_index in (0, 15):
            assert outline(single_cell_field(square_index)).paths == []


class TestInterpolation:
    def test_edge_points_are_linearly_interpolated(self):
        field = ScalarField.from_array([[0, 0], [1, 0]])

        recorder = fill(field, threshold=0.25)

        path = recorder.paths[0]
        assert path.points[0] == pytest.approx((0.75, 1.0))
        assert path.points[1] == pytest.approx((0.0, 0.25))
        assert path.points[2] == pytest.approx((0.0, 1.0))

    def test_corner_on_threshold(self):
        field = ScalarField.from_array([[0.5, 0], [1, 0]])

        recorder = outline(field, threshold=0.5)

        # Case 1, the west crossing sits on the corner equal to the threshold
        start, end = recorder.paths[0].points
        assert start == pytest.approx((0.5, 1.0))
        assert end == pytest.approx((0.0, 0.0))


class TestFillContour:
    """Test filling and the run-length merge of full cells."""

    @pytest.fixture
    def half_field(self):
        return ScalarField.from_array(
            [
                [1, 1, 1, 0, 0, 0],
                [1, 1, 1, 0, 0, 0],
            ]
        )

    def test_full_row_is_one_rectangle(self):
        field = ScalarField(5, 2)
        field.clear(1)

        recorder = fill(field)

        assert recorder.rectangles == [(0, 0, 4, 1)]
        assert recorder.paths == []

    def test_run_ending_on_a_partial_cell(self, half_field):
        recorder = fill(half_field)

        assert recorder.rectangles == [(0, 0, 2, 1)]
        assert len(recorder.paths) == 1
        path = recorder.paths[0]
        assert path.cell == (2, 0)
        assert path.points == [(2.5, 0), (2.5, 1), (2, 1), (2, 0)]

    def test_draw_under(self, half_field):
        recorder = fill(half_field, draw_under=True)

        assert recorder.rectangles == [(3, 0, 5, 1)]
        assert len(recorder.paths) == 1
        path = recorder.paths[0]
        assert path.cell == (2, 0)
        assert path.points == [(2.5, 1), (2.5, 0), (3, 0), (3, 1)]

    def test_scripted_run_length(self):
        """Rows [15, 15, 15, 3, 15, 15] give 2 rectangles and 1 polygon."""
        field = ScalarField(7, 2)
        field.clear(1)
        marching_squares = ScriptedMarchingSquares(field, [[15, 15, 15, 3, 15, 15]])
        calls = []

        class OrderRecorder(GeometryRecorder):
            def draw_rectangle(self, left, top, right, bottom):
                calls.append("rectangle")
                super().draw_rectangle(left, top, right, bottom)

            def end_path(self, square_x, square_y):
                calls.append("path")
                super().end_path(square_x, square_y)

        recorder = OrderRecorder()
        marching_squares.fill_contour(0, 0, 7, 2, 0.5, False, recorder)

        assert recorder.rectangles == [(0, 0, 3, 1), (4, 0, 6, 1)]
        assert len(recorder.paths) == 1
        assert recorder.paths[0].cell == (3, 0)
        assert calls == ["rectangle", "path", "rectangle"]

    def test_rows_are_merged_separately(self):
        field = ScalarField(4, 3)
        field.clear(1)

        recorder = fill(field)

        assert recorder.rectangles == [(0, 0, 3, 1), (0, 1, 3, 2)]

    def test_every_cell_is_notified(self, half_field):
        recorder = fill(half_field)

        assert recorder.filled_squares == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]

    def test_bounds_are_clamped(self, half_field):
        recorder = GeometryRecorder()

        MarchingSquares(half_field).fill_contour(-5, -5, 100, 100, 0.5, False, recorder)

        expected = fill(half_field)
        assert recorder.rectangles == expected.rectangles
        assert recorder.paths == expected.paths

    def test_sub_region(self):
        field = ScalarField(6, 4)
        field.clear(1)

        recorder = GeometryRecorder()
        MarchingSquares(field).fill_contour(1, 1, 3, 2, 0.5, False, recorder)

        assert recorder.rectangles == [(1, 1, 3, 2)]
        assert recorder.filled_squares == [(1, 1), (2, 1)]

    def test_extraction_is_idempotent(self):
        field = ScalarField(12, 12)
        field.merge_disk(5.5, 6.2, 3, 2, "maximum")
        field.merge_segment(1, 1, 10, 3, 1, 2, "maximum")

        first = fill(field, threshold=1)
        second = fill(field, threshold=1)

        assert first.rectangles == second.rectangles
        assert first.paths == second.paths
        assert outline(field, threshold=1).paths == outline(field, threshold=1).paths

    def test_field_is_not_modified(self):
        field = ScalarField(12, 12)
        field.merge_disk(5.5, 6.2, 3, 2, "maximum")
        before = field.values.copy()

        fill(field, threshold=1)
        outline(field, threshold=1)

        assert (field.values == before).all()


class TestOutlineContour:
    def test_full_field_has_no_outline(self):
        field = ScalarField(5, 5)
        field.clear(1)

        recorder = outline(field)

        assert recorder.paths == []
        assert recorder.rectangles == []

    def test_half_field_outline(self):
        field = ScalarField.from_array([[1, 1, 0], [1, 1, 0], [1, 1, 0]])

        recorder = outline(field)

        assert [path.cell for path in recorder.paths] == [(1, 0), (1, 1)]
        assert recorder.paths[0].points == [(1.5, 0), (1.5, 1)]
        assert recorder.paths[1].points == [(1.5, 1), (1.5, 2)]

    def test_draw_under_keeps_the_same_lines(self):
        field = ScalarField.from_array([[1, 1, 0], [1, 1, 0], [1, 1, 0]])

        over = outline(field)
        under = outline(field, draw_under=True)

        assert [p.cell for p in over.paths] == [p.cell for p in under.paths]
