"""
Core scalar field functionality.
"""

from .scalar_field import ScalarField
from .merge_operations import MergeOperation, resolve_operation
from .flood_fill import FloodFill
from .marching_squares import MarchingSquares
from .shape_painter import ShapePainter, ScaledShapePainter, GeometryRecorder, RecordedPath
from .coord_converter import CoordConverter
from .height_map import HeightMap

__all__ = ['ScalarField', 'MergeOperation', 'resolve_operation', 'FloodFill',
           'MarchingSquares', 'ShapePainter', 'ScaledShapePainter', 'GeometryRecorder',
           'RecordedPath', 'CoordConverter', 'HeightMap']
