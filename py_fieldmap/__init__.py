"""
Scalar fields for procedural terrain and influence maps.

Draw disks, segments and hills into a grid, flood areas, then extract the
contour of the field with marching squares.
"""

__version__ = "0.1.0"
