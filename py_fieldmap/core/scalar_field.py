"""
Scalar field module.

A scalar field is a dense grid of real values representing a continuous
quantity (density, height, potential) over a rectangular domain. Primitives
(disks, segments, hills) are drawn into it with a smooth falloff and merged
with the existing values through a merge operation.

Coordinates are in grid basis: integer coordinates address grid vertices,
real coordinates address points between them.
"""

import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .flood_fill import FloodFill
from .merge_operations import OperationLike, resolve_operation

# Avoid too big values near the primitive geometry
MIN_DISTANCE_SQ = 1.0 / 1024 / 1024

Coordinate = Union[float, np.ndarray]


def get_distance_sq(
    x1: Coordinate, y1: Coordinate, x2: Coordinate, y2: Coordinate
) -> Coordinate:
    """Return the square distance between 2 points, elementwise for arrays."""
    delta_x = x2 - x1
    delta_y = y2 - y1
    return delta_x * delta_x + delta_y * delta_y


def get_distance_sq_to_segment(
    x: Coordinate, y: Coordinate, x1: float, y1: float, x2: float, y2: float
) -> Coordinate:
    """Return the square distance between points and a segment."""
    length_sq = get_distance_sq(x1, y1, x2, y2)
    if length_sq == 0:
        return get_distance_sq(x, y, x1, y1)
    t = ((x - x1) * (x2 - x1) + (y - y1) * (y2 - y1)) / length_sq
    t = np.clip(t, 0.0, 1.0)
    return get_distance_sq(x, y, x1 + t * (x2 - x1), y1 + t * (y2 - y1))


class ScalarField:
    """
    A 2D scalar field stored as a row-major NumPy array.

    The array has shape (dim_y, dim_x) and is indexed values[y, x].
    """

    def __init__(self, dim_x: int, dim_y: int):
        """
        Create a scalar field filled with 0.

        Args:
            dim_x: Number of grid vertices on x
            dim_y: Number of grid vertices on y
        """
        if dim_x <= 0 or dim_y <= 0:
            raise ValueError(f"Invalid field dimensions: {dim_x}x{dim_y}")

        self._values = np.zeros((dim_y, dim_x), dtype=np.float64)
        self._flood_fill = FloodFill(self)

    @classmethod
    def from_array(
        cls, values: Union[Sequence[Sequence[float]], np.ndarray]
    ) -> "ScalarField":
        """
        Build a field from rows of values.

        Args:
            values: Nested rows, values[y][x]

        Returns:
            A new field holding a copy of the values
        """
        array = np.asarray(values, dtype=np.float64)
        if array.ndim != 2:
            raise ValueError(f"Expected a 2D array, got {array.ndim} dimensions")

        field = cls(array.shape[1], array.shape[0])
        field._values[:, :] = array
        return field

    @property
    def values(self) -> np.ndarray:
        """The underlying (dim_y, dim_x) array."""
        return self._values

    @property
    def dim_x(self) -> int:
        return self._values.shape[1]

    @property
    def dim_y(self) -> int:
        return self._values.shape[0]

    # Aliases matching the usual grid vocabulary
    width = dim_x
    height = dim_y

    def is_inside(self, x: float, y: float) -> bool:
        """Check a point against the inclusive bounds [0, dim - 1]."""
        return 0 <= x <= self.dim_x - 1 and 0 <= y <= self.dim_y - 1

    def get(self, x: int, y: int) -> float:
        return float(self._values[y, x])

    def set(self, x: int, y: int, value: float) -> None:
        self._values[y, x] = value

    def extrapolate(self, x: float, y: float) -> float:
        """
        Estimate the field value at a real location.

        The 4 vertices around the point are averaged with weights inversely
        proportional to their distance to the point.

        Args:
            x: x in grid basis
            y: y in grid basis

        Returns:
            The estimated value, or 0 outside of the grid
        """
        square_x = math.floor(x)
        square_y = math.floor(y)

        # - 1 because the extrapolation uses the next value
        if (
            square_x < 0
            or square_y < 0
            or square_x >= self.dim_x - 1
            or square_y >= self.dim_y - 1
        ):
            return 0.0

        weighed_value_sum = 0.0
        weight_sum = 0.0
        for vertex_x in (square_x, square_x + 1):
            for vertex_y in (square_y, square_y + 1):
                value = float(self._values[vertex_y, vertex_x])
                dx = vertex_x - x
                dy = vertex_y - y
                if dx == 0 and dy == 0:
                    return value
                distance = math.hypot(dx, dy)
                weighed_value_sum += value / distance
                weight_sum += 1 / distance
        return weighed_value_sum / weight_sum

    def clear(self, value: float = 0.0) -> None:
        """Fill the whole field with a value."""
        self._values.fill(value)

    def clamp(self, min_value: float, max_value: float) -> None:
        """Cap the field between 2 values."""
        np.clip(self._values, min_value, max_value, out=self._values)

    def transform(self, a: float, b: float) -> None:
        """Apply the affine transformation a * v + b on each value."""
        self._values *= a
        self._values += b

    def merge_field(self, other: "ScalarField", operation: OperationLike) -> None:
        """
        Merge the values of another field over the overlapping region.

        Args:
            other: Field to read from
            operation: How to combine (this value, other value)
        """
        merge = resolve_operation(operation)
        dim_x = min(self.dim_x, other.dim_x)
        dim_y = min(self.dim_y, other.dim_y)
        region = self._values[:dim_y, :dim_x]
        region[:, :] = merge(region, other.values[:dim_y, :dim_x])

    def _footprint(
        self,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        capping_radius: float,
    ) -> Optional[Tuple[slice, slice, np.ndarray, np.ndarray]]:
        """
        Get the grid rectangle covered by a primitive bounding box.

        Returns:
            (row slice, column slice, xs, ys) or None when the rectangle
            misses the grid
        """
        start_x = max(0, math.floor(min_x - capping_radius))
        start_y = max(0, math.floor(min_y - capping_radius))
        end_x = min(self.dim_x - 1, math.ceil(max_x + capping_radius))
        end_y = min(self.dim_y - 1, math.ceil(max_y + capping_radius))
        if start_x > end_x or start_y > end_y:
            return None

        ys, xs = np.mgrid[start_y : end_y + 1, start_x : end_x + 1]
        return (
            slice(start_y, end_y + 1),
            slice(start_x, end_x + 1),
            xs.astype(np.float64),
            ys.astype(np.float64),
        )

    def _merge_contribution(
        self,
        rows: slice,
        columns: slice,
        contribution: np.ndarray,
        inside: np.ndarray,
        operation: OperationLike,
    ) -> None:
        merge = resolve_operation(operation)
        block = self._values[rows, columns]
        merged = merge(block, contribution)
        block[inside] = merged[inside]

    def merge_disk(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        capping_radius_ratio: float,
        operation: OperationLike,
    ) -> None:
        """
        Merge a disk in the field.

        The contribution is radius² / distance², it equals 1 at the radius.

        Args:
            center_x: x in grid basis
            center_y: y in grid basis
            radius: Radius in grid basis
            capping_radius_ratio: Ratio of the radius beyond which the disk
                has no effect
            operation: How to combine (field value, contribution)
        """
        capping_radius = capping_radius_ratio * radius
        footprint = self._footprint(
            center_x, center_y, center_x, center_y, capping_radius
        )
        if footprint is None:
            return
        rows, columns, xs, ys = footprint

        distance_sq = get_distance_sq(xs, ys, center_x, center_y)
        inside = distance_sq <= capping_radius * capping_radius
        contribution = (radius * radius) / np.maximum(MIN_DISTANCE_SQ, distance_sq)
        self._merge_contribution(rows, columns, contribution, inside, operation)

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
        """
        Merge a segment in the field.

        Same falloff as a disk, measured from the nearest point of the
        segment. A degenerate segment draws exactly like a disk.

        Args:
            start_x: First extremity x in grid basis
            start_y: First extremity y in grid basis
            end_x: Second extremity x in grid basis
            end_y: Second extremity y in grid basis
            thickness: Thickness in grid basis, the field is 1 at this distance
            capping_radius_ratio: Ratio of the thickness beyond which the
                segment has no effect
            operation: How to combine (field value, contribution)
        """
        capping_radius = capping_radius_ratio * thickness
        footprint = self._footprint(
            min(start_x, end_x),
            min(start_y, end_y),
            max(start_x, end_x),
            max(start_y, end_y),
            capping_radius,
        )
        if footprint is None:
            return
        rows, columns, xs, ys = footprint

        distance_sq = get_distance_sq_to_segment(
            xs, ys, start_x, start_y, end_x, end_y
        )
        inside = distance_sq <= capping_radius * capping_radius
        contribution = (thickness * thickness) / np.maximum(
            MIN_DISTANCE_SQ, distance_sq
        )
        self._merge_contribution(rows, columns, contribution, inside, operation)

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
        """
        Merge a hill in the field.

        This is like a gaussian, but parametrized so that the curve equals
        height at the center and 1 at the radius, before the opacity scaling.

        Args:
            center_x: x in grid basis
            center_y: y in grid basis
            height: Hill value at the center
            radius: Radius in grid basis
            opacity: Factor applied to the whole hill
            capping_radius_ratio: Ratio of the radius beyond which the hill
                has no effect
            operation: How to combine (field value, contribution)
        """
        capping_radius = capping_radius_ratio * radius
        footprint = self._footprint(
            center_x, center_y, center_x, center_y, capping_radius
        )
        if footprint is None:
            return
        rows, columns, xs, ys = footprint

        log_height_divided_by_radius_sq = math.log(height) / (radius * radius)
        distance_sq = np.maximum(
            MIN_DISTANCE_SQ, get_distance_sq(xs, ys, center_x, center_y)
        )
        inside = distance_sq <= capping_radius * capping_radius
        contribution = (opacity * height) * np.exp(
            -distance_sq * log_height_divided_by_radius_sq
        )
        self._merge_contribution(rows, columns, contribution, inside, operation)

    def fill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_max: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        """Flood an area from a location until a maximum value is reached."""
        self._flood_fill.fill_from(
            origin_x, origin_y, value_max, thickness, capping_radius_ratio
        )

    def unfill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_min: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        """Unflood an area from a location until a minimum value is reached."""
        self._flood_fill.unfill_from(
            origin_x, origin_y, value_min, thickness, capping_radius_ratio
        )

    def __repr__(self) -> str:
        return f"ScalarField(dim_x={self.dim_x}, dim_y={self.dim_y})"
