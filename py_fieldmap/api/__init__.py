"""
HTTP API for building fields and extracting their contour.
"""
