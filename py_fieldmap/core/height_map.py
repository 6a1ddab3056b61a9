"""
Height map built on top of a scalar field.

The height map works in surface basis and converts every coordinate to the
grid basis of its field. It also evaluates heights and normals between grid
vertices for rendering.
"""

import math
from typing import Optional

import numpy as np

from .coord_converter import CoordConverter
from .merge_operations import OperationLike
from .scalar_field import ScalarField


def _add_normal(u: np.ndarray, v: np.ndarray, normal: np.ndarray) -> None:
    normal += np.cross(u, v)


class HeightMap:
    """A height map in surface basis."""

    def __init__(self, scalar_field: ScalarField, coord_converter: CoordConverter):
        """
        Args:
            scalar_field: Field holding the height values
            coord_converter: Converter between the surface and the field grid
        """
        self.scalar_field = scalar_field
        self.coord_converter = coord_converter

    def get_height(self, point_x: float, point_y: float) -> float:
        """Get the height at a surface location, 0 outside of the field."""
        return self.scalar_field.extrapolate(
            self.coord_converter.to_grid_x(point_x),
            self.coord_converter.to_grid_y(point_y),
        )

    def get_field_normal(self, point_x: float, point_y: float) -> Optional[np.ndarray]:
        """
        Get the surface normal at a surface location.

        The normals of the 4 grid vertices around the location are averaged
        with weights inversely proportional to their distance.

        Args:
            point_x: x in surface basis
            point_y: y in surface basis

        Returns:
            A unit vector (x, y, z), or None outside of the field
        """
        field = self.scalar_field
        x = self.coord_converter.to_grid_x(point_x)
        y = self.coord_converter.to_grid_y(point_y)

        square_x = math.floor(x)
        square_y = math.floor(y)
        if (
            square_x < 0
            or square_y < 0
            or square_x >= field.dim_x
            or square_y >= field.dim_y
        ):
            return None
        if field.dim_x < 4 or field.dim_y < 4:
            return None

        # This gives approximate values on borders:
        # - 1 margin for the vertex normals on both sides
        # - 1 extra because the blending reads the next vertex
        if square_x < 1:
            square_x = 1
            x = float(square_x)
        if square_x > field.dim_x - 3:
            square_x = field.dim_x - 3
            x = float(square_x)
        if square_y < 1:
            square_y = 1
            y = float(square_y)
        if square_y > field.dim_y - 3:
            square_y = field.dim_y - 3
            y = float(square_y)

        weighed_normal_sum = np.zeros(3)
        for vertex_x in (square_x, square_x + 1):
            for vertex_y in (square_y, square_y + 1):
                vertex_normal = self._get_grid_point_normal(vertex_x, vertex_y)
                dx = vertex_x - x
                dy = vertex_y - y
                if dx == 0 and dy == 0:
                    # No blending needed
                    weighed_normal_sum = vertex_normal
                    break
                weighed_normal_sum += vertex_normal / math.hypot(dx, dy)
            else:
                continue
            break

        return weighed_normal_sum / np.linalg.norm(weighed_normal_sum)

    def _get_grid_point_normal(self, x: int, y: int) -> np.ndarray:
        """
        Evaluate the normal at a grid vertex, not normalized.

        It's the sum of the normals of the 4 triangles around the vertex.
        """
        values = self.scalar_field.values
        z = values[y, x]

        right = np.array([1.0, 0.0, values[y, x + 1] - z])
        left = np.array([-1.0, 0.0, values[y, x - 1] - z])
        bottom = np.array([0.0, 1.0, values[y + 1, x] - z])
        top = np.array([0.0, -1.0, values[y - 1, x] - z])
        right /= np.linalg.norm(right)
        left /= np.linalg.norm(left)
        bottom /= np.linalg.norm(bottom)
        top /= np.linalg.norm(top)

        normal = np.zeros(3)
        _add_normal(top, right, normal)
        _add_normal(right, bottom, normal)
        _add_normal(bottom, left, normal)
        _add_normal(left, top, normal)
        return normal

    def clear(self, value: float = 0.0) -> None:
        self.scalar_field.clear(value)

    def clamp(self, min_value: float, max_value: float) -> None:
        self.scalar_field.clamp(min_value, max_value)

    def transform(self, a: float, b: float) -> None:
        self.scalar_field.transform(a, b)

    def merge_disk(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        capping_radius_ratio: float,
        operation: OperationLike,
    ) -> None:
        """Merge a disk given in surface basis."""
        converter = self.coord_converter
        self.scalar_field.merge_disk(
            converter.to_grid_x(center_x),
            converter.to_grid_y(center_y),
            converter.to_grid_distance(radius),
            capping_radius_ratio,
            operation,
        )

    def merge_segment(
        self,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        thickness: float,
        capping_radius_ratio: float,
        operation: OperationLike,
    ) -> None:
        """Merge a segment given in surface basis."""
        converter = self.coord_converter
        self.scalar_field.merge_segment(
            converter.to_grid_x(start_x),
            converter.to_grid_y(start_y),
            converter.to_grid_x(end_x),
            converter.to_grid_y(end_y),
            converter.to_grid_distance(thickness),
            capping_radius_ratio,
            operation,
        )

    def merge_hill(
        self,
        center_x: float,
        center_y: float,
        height: float,
        radius: float,
        opacity: float,
        capping_radius_ratio: float,
        operation: OperationLike,
    ) -> None:
        """Merge a hill given in surface basis, the height is not scaled."""
        converter = self.coord_converter
        self.scalar_field.merge_hill(
            converter.to_grid_x(center_x),
            converter.to_grid_y(center_y),
            height,
            converter.to_grid_distance(radius),
            opacity,
            capping_radius_ratio,
            operation,
        )

    def fill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_max: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        converter = self.coord_converter
        self.scalar_field.fill_from(
            converter.to_grid_x(origin_x),
            converter.to_grid_y(origin_y),
            value_max,
            converter.to_grid_distance(thickness),
            capping_radius_ratio,
        )

    def unfill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_min: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        converter = self.coord_converter
        self.scalar_field.unfill_from(
            converter.to_grid_x(origin_x),
            converter.to_grid_y(origin_y),
            value_min,
            converter.to_grid_distance(thickness),
            capping_radius_ratio,
        )
