#!/usr/bin/env python3
"""
Simple demo script showing scalar field drawing and contour extraction.
"""

import numpy as np
from py_fieldmap.core import (
    CoordConverter,
    GeometryRecorder,
    HeightMap,
    MarchingSquares,
    MergeOperation,
    ScalarField,
)


def render_ascii(field, threshold):
    """Print the field vertices above the threshold."""
    for row in field.values:
        print("  " + "".join("#" if value > threshold else "." for value in row))


def main():
    """Demonstrate field drawing and contour extraction."""
    print("Py-FieldMap Contour Demo")
    print("=" * 40)

    width, height = 40, 20
    threshold = 1.0

    field = ScalarField(width, height)
    height_map = HeightMap(field, CoordConverter.for_grid(width, height, 0, 0, 390, 190))

    print("\nDrawing primitives...")
    height_map.merge_disk(80, 90, 40, 2.0, MergeOperation.MAXIMUM)
    height_map.merge_disk(120, 60, 25, 2.0, MergeOperation.MAXIMUM)
    height_map.merge_segment(150, 140, 330, 40, 12, 2.0, MergeOperation.MAXIMUM)
    height_map.merge_hill(300, 140, 4, 30, 1.0, 3.0, MergeOperation.ADD)

    print("\nFilling a hole in the first disk...")
    height_map.unfill_from(80, 90, 4, 10, 2.0)

    print(f"\nField above {threshold}:")
    render_ascii(field, threshold)

    # Calculate statistics
    above = np.sum(field.values > threshold)
    print(f"\n  Vertices above threshold: {above} ({above / field.values.size * 100:.1f}%)")
    print(f"  Value range: {field.values.min():.3f}-{field.values.max():.1f}")

    marching_squares = MarchingSquares(field)

    recorder = GeometryRecorder()
    marching_squares.fill_contour(0, 0, width, height, threshold, False, recorder)
    print("\nFilled contour:")
    print(f"  Rectangles: {len(recorder.rectangles)}")
    print(f"  Polygons: {len(recorder.paths)}")

    recorder.clear()
    marching_squares.outline_contour(0, 0, width, height, threshold, False, recorder)
    print("\nOutline:")
    print(f"  Lines: {len(recorder.paths)}")

    print("\nSample normals:")
    for x, y in [(80, 90), (120, 60), (300, 140)]:
        normal = height_map.get_field_normal(x, y)
        print(f"  ({x}, {y}) height={height_map.get_height(x, y):.2f} normal={np.round(normal, 3)}")


if __name__ == "__main__":
    main()
