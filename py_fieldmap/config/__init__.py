"""
Configuration for the field services.
"""

from .config import Settings, settings

__all__ = ["Settings", "settings"]
