"""
Flood fill with contour shading.

Filling sets a connected area of the field to a constant value. The cells
around the area are then shaded with a falloff so the field stays somewhat
continuous, as if a disk had been drawn at every boundary cell of the area.

The shading spreads layer by layer from the flood boundary. Every shaded
cell remembers the boundary cell that reached it first and its distance is
measured from that cell rather than from the true nearest boundary cell.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

import structlog

from ..utils.pool import NodePool

if TYPE_CHECKING:
    from .scalar_field import ScalarField

logger = structlog.get_logger()

# Avoid too big values
MIN_DISTANCE_SQ = 1.0 / 1024 / 1024

# Left, right, up, down
DELTAS = ((-1, 0), (1, 0), (0, -1), (0, 1))

# (field value, square distance) -> new value, or None to leave the cell
GetContourValue = Callable[[float, float], Optional[float]]


@dataclass
class FloodNode:
    """A cell waiting to be flooded."""

    x: int = 0
    y: int = 0


@dataclass
class ContourNode:
    """A shaded cell and the boundary cell its distance is measured from."""

    x: int = 0
    y: int = 0
    origin_x: float = 0.0
    origin_y: float = 0.0
    value: float = 0.0


class FloodFill:
    """
    Fills or unfills connected areas of a scalar field.

    Stacks and node pools are reused from one call to the next, an instance
    must only be used by one caller at a time.
    """

    def __init__(self, scalar_field: "ScalarField"):
        self.scalar_field = scalar_field

        self._flood_stack: List[FloodNode] = []
        self._node_pool: NodePool[FloodNode] = NodePool(FloodNode)

        self._contour_stack: List[ContourNode] = []
        self._next_contour_stack: List[ContourNode] = []
        self._contour_node_pool: NodePool[ContourNode] = NodePool(ContourNode)

    def fill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_max: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        """
        Fill an area from a location until a maximum field value is reached.

        The result is the same as drawing disks at every cell of the area,
        so the area is filled with a value a lot bigger than 1.

        Args:
            origin_x: x in grid basis
            origin_y: y in grid basis
            value_max: The value where to stop the flooding
            thickness: Thickness of the contour shading, the field has the
                value 1 at this distance from the area
            capping_radius_ratio: Ratio of the thickness where to stop the
                contour shading
        """
        thickness_sq = thickness * thickness
        filling_value = max(value_max, thickness_sq * 1024 * 1024)
        capping_radius = capping_radius_ratio * thickness
        capping_radius_sq = capping_radius * capping_radius

        def get_contour_value(field_value: float, distance_sq: float) -> Optional[float]:
            value = thickness_sq / distance_sq
            if field_value < value and distance_sq < capping_radius_sq:
                return value
            return None

        filled = self._flood_from(
            origin_x,
            origin_y,
            lambda field_value: field_value < value_max,
            filling_value,
            get_contour_value,
        )
        shaded = self._shade_contour(get_contour_value)
        logger.debug(
            "Filled area",
            origin=(origin_x, origin_y),
            value_max=value_max,
            filled_cells=filled,
            shaded_cells=shaded,
        )

    def unfill_from(
        self,
        origin_x: float,
        origin_y: float,
        value_min: float,
        thickness: float,
        capping_radius_ratio: float,
    ) -> None:
        """
        Unfill an area from a location until a minimum field value is reached.

        The area is set to 0 and the shading grows with the distance.

        Args:
            origin_x: x in grid basis
            origin_y: y in grid basis
            value_min: The value where to stop the flooding
            thickness: Thickness of the contour shading, the field has the
                value 1 at this distance from the area
            capping_radius_ratio: Ratio of the thickness where to stop the
                contour shading
        """
        thickness_sq = thickness * thickness
        capping_radius = capping_radius_ratio * thickness
        capping_radius_sq = capping_radius * capping_radius

        def get_contour_value(field_value: float, distance_sq: float) -> Optional[float]:
            if thickness_sq == 0:
                return None
            value = distance_sq / thickness_sq
            if field_value > value and distance_sq < capping_radius_sq:
                return value
            return None

        filled = self._flood_from(
            origin_x,
            origin_y,
            lambda field_value: field_value > value_min,
            0.0,
            get_contour_value,
        )
        shaded = self._shade_contour(get_contour_value)
        logger.debug(
            "Unfilled area",
            origin=(origin_x, origin_y),
            value_min=value_min,
            filled_cells=filled,
            shaded_cells=shaded,
        )

    def _flood_from(
        self,
        origin_x: float,
        origin_y: float,
        can_flood: Callable[[float], bool],
        filling_value: float,
        get_contour_value: GetContourValue,
    ) -> int:
        """
        Flood an area from a location while a condition holds.

        Cells next to the area that can't be flooded become the first layer
        of the contour shading.

        Returns:
            Number of flooded cells
        """
        scalar_field = self.scalar_field

        # They should already be empty at this point
        self._flood_stack.clear()
        self._contour_stack.clear()
        self._next_contour_stack.clear()

        x = math.floor(origin_x + 0.5)
        y = math.floor(origin_y + 0.5)
        if not scalar_field.is_inside(x, y):
            return 0
        if not can_flood(scalar_field.get(x, y)):
            return 0

        # Cells are marked when stacked so none is stacked twice
        visited = {(x, y)}
        node = self._node_pool.acquire()
        node.x = x
        node.y = y
        self._flood_stack.append(node)

        while self._flood_stack:
            node = self._flood_stack.pop()
            x = node.x
            y = node.y
            self._node_pool.release(node)
            scalar_field.set(x, y, filling_value)

            for delta_x, delta_y in DELTAS:
                neighbor_x = x + delta_x
                neighbor_y = y + delta_y
                if (neighbor_x, neighbor_y) in visited:
                    continue
                if not scalar_field.is_inside(neighbor_x, neighbor_y):
                    continue
                if can_flood(scalar_field.get(neighbor_x, neighbor_y)):
                    visited.add((neighbor_x, neighbor_y))
                    neighbor = self._node_pool.acquire()
                    neighbor.x = neighbor_x
                    neighbor.y = neighbor_y
                    self._flood_stack.append(neighbor)
                else:
                    self._check_and_add_contour_node(
                        neighbor_x, neighbor_y, x, y, get_contour_value
                    )
        return len(visited)

    def _shade_contour(self, get_contour_value: GetContourValue) -> int:
        """
        Shade around the flooded area to keep the field somewhat continuous.

        Returns:
            Number of cells that were given a contour value
        """
        scalar_field = self.scalar_field
        shaded = 0

        self._contour_stack, self._next_contour_stack = (
            self._next_contour_stack,
            self._contour_stack,
        )
        while self._contour_stack:
            shaded += len(self._contour_stack)
            while self._contour_stack:
                node = self._contour_stack.pop()

                if scalar_field.get(node.x, node.y) != node.value:
                    # This node wasn't the nearest one
                    self._contour_node_pool.release(node)
                    continue

                for delta_x, delta_y in DELTAS:
                    self._check_and_add_contour_node(
                        node.x + delta_x,
                        node.y + delta_y,
                        node.origin_x,
                        node.origin_y,
                        get_contour_value,
                    )
                self._contour_node_pool.release(node)

            self._contour_stack, self._next_contour_stack = (
                self._next_contour_stack,
                self._contour_stack,
            )
        return shaded

    def _check_and_add_contour_node(
        self,
        node_x: int,
        node_y: int,
        origin_x: float,
        origin_y: float,
        get_contour_value: GetContourValue,
    ) -> None:
        scalar_field = self.scalar_field
        if not scalar_field.is_inside(node_x, node_y):
            return

        delta_x = node_x - origin_x
        delta_y = node_y - origin_y
        distance_sq = max(MIN_DISTANCE_SQ, delta_x * delta_x + delta_y * delta_y)
        value = get_contour_value(scalar_field.get(node_x, node_y), distance_sq)
        if value is None:
            return

        scalar_field.set(node_x, node_y, value)
        node = self._contour_node_pool.acquire()
        node.x = node_x
        node.y = node_y
        node.origin_x = origin_x
        node.origin_y = origin_y
        node.value = value
        self._next_contour_stack.append(node)
