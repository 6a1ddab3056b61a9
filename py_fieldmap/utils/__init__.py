"""
Shared utilities.
"""

from .logging import configure_logging
from .pool import NodePool

__all__ = ["configure_logging", "NodePool"]
