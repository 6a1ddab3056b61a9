"""
Marching squares contour extraction.

Every grid cell is classified by comparing its 4 corners with a threshold.
The resulting case (0 to 15) selects a list of edge and corner markers from
a lookup table, and the markers are turned into points, linearly
interpolated along the edges crossed by the contour.

The 2 saddle cases (5 and 10) are filled with a single polygon joining both
inside corners. There is no center sample to choose between the 2 possible
topologies, so contours can merge where they would be separated otherwise.
"""

from enum import IntEnum
from typing import Tuple

import structlog

from .scalar_field import ScalarField
from .shape_painter import ShapePainter

logger = structlog.get_logger()


class Side(IntEnum):
    """Point location inside a cell."""

    # Edge middles, interpolated
    SOUTH = 0
    EAST = 1
    NORTH = 2
    WEST = 3
    # Corners
    SOUTH_WEST = 4
    SOUTH_EAST = 5
    NORTH_EAST = 6
    NORTH_WEST = 7


SOUTH_WEST_MASK = 1
SOUTH_EAST_MASK = 2
NORTH_EAST_MASK = 4
NORTH_WEST_MASK = 8

EMPTY_CASE = 0
FULL_CASE = 15

S, E, N, W = Side.SOUTH, Side.EAST, Side.NORTH, Side.WEST
SW, SE, NE, NW = Side.SOUTH_WEST, Side.SOUTH_EAST, Side.NORTH_EAST, Side.NORTH_WEST

# One polygon per case covering the part of the cell above the threshold
FILL_VERTICES: Tuple[Tuple[Side, ...], ...] = (
    (),
    (S, W, SW),
    (E, S, SE),
    (E, W, SW, SE),
    (N, E, NE),
    (S, SW, W, N, NE, E),
    (S, N, NE, SE),
    (W, N, NE, SE, SW),
    (W, N, NW),
    (N, S, SW, NW),
    (S, W, NW, N, E, SE),
    (N, E, SE, SW, NW),
    (E, W, NW, NE),
    (E, S, SW, NW, NE),
    (S, W, NW, NE, SE),
    (),
)

# One or two open lines per case following the contour only
OUTLINE_VERTICES: Tuple[Tuple[Tuple[Side, ...], ...], ...] = (
    (),
    ((S, W),),
    ((E, S),),
    ((E, W),),
    ((N, E),),
    ((E, S), (W, N)),
    ((S, N),),
    ((W, N),),
    ((W, N),),
    ((N, S),),
    ((S, W), (N, E)),
    ((N, E),),
    ((E, W),),
    ((E, S),),
    ((S, W),),
    (),
)


class MarchingSquares:
    """
    Draws the contour of a scalar field with a shape painter.

    The field is only read, it can be drawn several times without change.
    """

    def __init__(self, scalar_field: ScalarField):
        self.scalar_field = scalar_field

    def get_square_index(self, x: int, y: int, threshold: float) -> int:
        """
        Classify a cell.

        Args:
            x: Cell left in the grid
            y: Cell top in the grid
            threshold: Corners strictly above it are inside

        Returns:
            One of the 16 marching squares cases
        """
        values = self.scalar_field.values
        square_index = 0
        if values[y + 1, x] > threshold:
            square_index |= SOUTH_WEST_MASK
        if values[y + 1, x + 1] > threshold:
            square_index |= SOUTH_EAST_MASK
        if values[y, x + 1] > threshold:
            square_index |= NORTH_EAST_MASK
        if values[y, x] > threshold:
            square_index |= NORTH_WEST_MASK
        return square_index

    def _between(
        self,
        index_x1: int,
        index_y1: int,
        index_x2: int,
        index_y2: int,
        threshold: float,
    ) -> Tuple[float, float]:
        """Return the mean of 2 corners weighted by their field value."""
        values = self.scalar_field.values
        weight1 = abs(float(values[index_y1, index_x1]) - threshold)
        weight2 = abs(float(values[index_y2, index_x2]) - threshold)
        weight_sum = weight1 + weight2
        return (
            (weight2 * index_x1 + weight1 * index_x2) / weight_sum,
            (weight2 * index_y1 + weight1 * index_y2) / weight_sum,
        )

    def calc_point(
        self, side: Side, index_x: int, index_y: int, threshold: float
    ) -> Tuple[float, float]:
        """
        Locate a marker of a cell in grid basis.

        Args:
            side: Marker to locate
            index_x: Cell left in the grid
            index_y: Cell top in the grid
            threshold: Contour value

        Returns:
            (x, y) in grid basis
        """
        if side == Side.SOUTH:
            return self._between(
                index_x, index_y + 1, index_x + 1, index_y + 1, threshold
            )
        if side == Side.EAST:
            return self._between(
                index_x + 1, index_y, index_x + 1, index_y + 1, threshold
            )
        if side == Side.NORTH:
            return self._between(index_x, index_y, index_x + 1, index_y, threshold)
        if side == Side.WEST:
            return self._between(index_x, index_y, index_x, index_y + 1, threshold)
        if side == Side.SOUTH_WEST:
            return float(index_x), float(index_y + 1)
        if side == Side.SOUTH_EAST:
            return float(index_x + 1), float(index_y + 1)
        if side == Side.NORTH_EAST:
            return float(index_x + 1), float(index_y)
        return float(index_x), float(index_y)

    def _clamp_bounds(
        self, min_x: int, min_y: int, max_x: int, max_y: int
    ) -> Tuple[int, int, int, int]:
        """Restrict cell bounds to cells whose 4 corners are in the grid."""
        return (
            max(0, min_x),
            max(0, min_y),
            min(max_x, self.scalar_field.dim_x - 1),
            min(max_y, self.scalar_field.dim_y - 1),
        )

    def fill_contour(
        self,
        min_x: int,
        min_y: int,
        max_x: int,
        max_y: int,
        threshold: float,
        draw_under: bool,
        shape_painter: ShapePainter,
    ) -> None:
        """
        Draw the area above the threshold.

        Partially covered cells are drawn as polygons. Consecutive fully
        covered cells of a row are merged into one rectangle.

        Args:
            min_x: Left cell, included
            min_y: Top cell, included
            max_x: Right cell, excluded
            max_y: Bottom cell, excluded
            threshold: Contour value
            draw_under: Draw the area under the threshold instead
            shape_painter: Receives the shapes in grid basis
        """
        min_x, min_y, max_x, max_y = self._clamp_bounds(min_x, min_y, max_x, max_y)
        rectangles = 0
        polygons = 0

        for square_y in range(min_y, max_y):
            # Run-length encoding of full cells
            first_full_square_x = -1

            for square_x in range(min_x, max_x):
                shape_painter.on_filled_square_change(square_x, square_y)
                square_index = self.get_square_index(square_x, square_y, threshold)
                if draw_under:
                    square_index = FULL_CASE - square_index

                if first_full_square_x == -1 and square_index == FULL_CASE:
                    first_full_square_x = square_x
                if first_full_square_x != -1:
                    if square_index != FULL_CASE:
                        shape_painter.draw_rectangle(
                            first_full_square_x, square_y, square_x, square_y + 1
                        )
                        rectangles += 1
                        first_full_square_x = -1
                    elif square_x == max_x - 1:
                        shape_painter.draw_rectangle(
                            first_full_square_x, square_y, square_x + 1, square_y + 1
                        )
                        rectangles += 1
                        first_full_square_x = -1

                if square_index != EMPTY_CASE and square_index != FULL_CASE:
                    fill_vertices = FILL_VERTICES[square_index]
                    x, y = self.calc_point(
                        fill_vertices[0], square_x, square_y, threshold
                    )
                    shape_painter.begin_path(x, y)
                    for side in fill_vertices[1:]:
                        x, y = self.calc_point(side, square_x, square_y, threshold)
                        shape_painter.line_to(x, y)
                    shape_painter.close_path()
                    shape_painter.end_path(square_x, square_y)
                    polygons += 1

        logger.debug(
            "Filled contour",
            threshold=threshold,
            draw_under=draw_under,
            rectangles=rectangles,
            polygons=polygons,
        )

    def outline_contour(
        self,
        min_x: int,
        min_y: int,
        max_x: int,
        max_y: int,
        threshold: float,
        draw_under: bool,
        shape_painter: ShapePainter,
    ) -> None:
        """
        Draw the contour lines without filling.

        Args:
            min_x: Left cell, included
            min_y: Top cell, included
            max_x: Right cell, excluded
            max_y: Bottom cell, excluded
            threshold: Contour value
            draw_under: Classify cells as if the area under the threshold
                was drawn
            shape_painter: Receives the lines in grid basis
        """
        min_x, min_y, max_x, max_y = self._clamp_bounds(min_x, min_y, max_x, max_y)
        lines = 0

        for square_y in range(min_y, max_y):
            for square_x in range(min_x, max_x):
                square_index = self.get_square_index(square_x, square_y, threshold)
                if draw_under:
                    square_index = FULL_CASE - square_index

                for outline_vertices in OUTLINE_VERTICES[square_index]:
                    x, y = self.calc_point(
                        outline_vertices[0], square_x, square_y, threshold
                    )
                    shape_painter.begin_path(x, y)
                    for side in outline_vertices[1:]:
                        x, y = self.calc_point(side, square_x, square_y, threshold)
                        shape_painter.line_to(x, y)
                    shape_painter.end_path(square_x, square_y)
                    lines += 1

        logger.debug(
            "Outlined contour", threshold=threshold, draw_under=draw_under, lines=lines
        )
