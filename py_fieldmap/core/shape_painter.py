"""
Shape painters receive the contour geometry found by the marching squares.

A painter can be backed by any vector drawing API. `ScaledShapePainter`
moves the geometry from grid basis to surface basis and `GeometryRecorder`
keeps it in memory.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from .coord_converter import CoordConverter

Point = Tuple[float, float]


@runtime_checkable
class ShapePainter(Protocol):
    """The marching squares use this interface to describe the contour."""

    def draw_rectangle(
        self, left: float, top: float, right: float, bottom: float
    ) -> None:
        """A rectangle can be several cells wide."""
        ...

    def begin_path(self, x: float, y: float) -> None:
        ...

    def line_to(self, x: float, y: float) -> None:
        ...

    def close_path(self) -> None:
        ...

    def end_path(self, square_x: int, square_y: int) -> None:
        """
        Args:
            square_x: The cell index where the path was drawn
            square_y: The cell index where the path was drawn
        """
        ...

    def on_filled_square_change(self, square_x: int, square_y: int) -> None:
        """
        Notify that a cell is being drawn, its rectangle might be given later
        if consecutive cells are filled.
        """
        ...


class ScaledShapePainter:
    """Forwards the geometry to another painter in surface basis."""

    def __init__(self, shape_painter: ShapePainter, coord_converter: CoordConverter):
        self.shape_painter = shape_painter
        self.coord_converter = coord_converter

    def draw_rectangle(
        self, left: float, top: float, right: float, bottom: float
    ) -> None:
        converter = self.coord_converter
        self.shape_painter.draw_rectangle(
            converter.from_grid_x(left),
            converter.from_grid_y(top),
            converter.from_grid_x(right),
            converter.from_grid_y(bottom),
        )

    def begin_path(self, x: float, y: float) -> None:
        self.shape_painter.begin_path(
            self.coord_converter.from_grid_x(x), self.coord_converter.from_grid_y(y)
        )

    def line_to(self, x: float, y: float) -> None:
        self.shape_painter.line_to(
            self.coord_converter.from_grid_x(x), self.coord_converter.from_grid_y(y)
        )

    def close_path(self) -> None:
        self.shape_painter.close_path()

    def end_path(self, square_x: int, square_y: int) -> None:
        # Cell indexes stay in grid basis
        self.shape_painter.end_path(square_x, square_y)

    def on_filled_square_change(self, square_x: int, square_y: int) -> None:
        self.shape_painter.on_filled_square_change(square_x, square_y)


@dataclass
class RecordedPath:
    """A polygon or a line drawn inside one cell."""

    points: List[Point]
    closed: bool = False
    cell: Optional[Tuple[int, int]] = None


@dataclass
class GeometryRecorder:
    """A painter keeping every shape it receives."""

    rectangles: List[Tuple[float, float, float, float]] = field(default_factory=list)
    paths: List[RecordedPath] = field(default_factory=list)
    filled_squares: List[Tuple[int, int]] = field(default_factory=list)
    _current: Optional[RecordedPath] = field(default=None, repr=False)

    def draw_rectangle(
        self, left: float, top: float, right: float, bottom: float
    ) -> None:
        self.rectangles.append((left, top, right, bottom))

    def begin_path(self, x: float, y: float) -> None:
        self._current = RecordedPath(points=[(x, y)])

    def line_to(self, x: float, y: float) -> None:
        if self._current is None:
            raise ValueError("line_to called before begin_path")
        self._current.points.append((x, y))

    def close_path(self) -> None:
        if self._current is None:
            raise ValueError("close_path called before begin_path")
        self._current.closed = True

    def end_path(self, square_x: int, square_y: int) -> None:
        if self._current is None:
            raise ValueError("end_path called before begin_path")
        self._current.cell = (square_x, square_y)
        self.paths.append(self._current)
        self._current = None

    def on_filled_square_change(self, square_x: int, square_y: int) -> None:
        self.filled_squares.append((square_x, square_y))

    def clear(self) -> None:
        self.rectangles.clear()
        self.paths.clear()
        self.filled_squares.clear()
        self._current = None
