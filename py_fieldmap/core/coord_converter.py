"""Conversion between a surface basis and the scalar field grid basis."""

from dataclasses import dataclass


@dataclass
class CoordConverter:
    """
    A coordinate converter between a surface and a grid.

    Grid vertex (0, 0) sits at (left, top) on the surface and consecutive
    vertices are one cell size apart.
    """

    cell_width: float
    cell_height: float
    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    @classmethod
    def for_grid(
        cls,
        dim_x: int,
        dim_y: int,
        left: float,
        top: float,
        right: float,
        bottom: float,
    ) -> "CoordConverter":
        """
        Build a converter mapping the grid vertices onto surface bounds.

        Args:
            dim_x: Number of grid vertices on x
            dim_y: Number of grid vertices on y
            left: Surface x of the first vertex column
            top: Surface y of the first vertex row
            right: Surface x of the last vertex column
            bottom: Surface y of the last vertex row
        """
        cell_width = (right - left) / max(1, dim_x - 1)
        cell_height = (bottom - top) / max(1, dim_y - 1)
        return cls(cell_width, cell_height, left, top, right, bottom)

    def to_grid_x(self, x: float) -> float:
        return (x - self.left) / self.cell_width

    def to_grid_y(self, y: float) -> float:
        return (y - self.top) / self.cell_height

    def from_grid_x(self, x: float) -> float:
        return x * self.cell_width + self.left

    def from_grid_y(self, y: float) -> float:
        return y * self.cell_height + self.top

    def to_grid_distance(self, distance: float) -> float:
        """Convert a radius or a thickness, cells are assumed to be square."""
        return distance / self.cell_width
