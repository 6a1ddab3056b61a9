"""
Object pooling for transient traversal nodes.

The flood fill allocates a node for every cell it visits. Reusing released
nodes keeps repeated fills on the same field from churning the allocator.
"""

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class NodePool(Generic[T]):
    """
    A stock of reusable objects.

    Nodes handed out by `acquire` belong to the caller until they are given
    back with `release`. The pool never resets node attributes, callers
    overwrite every field they read.
    """

    def __init__(self, factory: Callable[[], T]):
        """
        Args:
            factory: Builds a new node when the stock is empty
        """
        self._factory = factory
        self._elements: List[T] = []

    def acquire(self) -> T:
        """Get a stocked node or create a new one if the stock is empty."""
        if self._elements:
            return self._elements.pop()
        return self._factory()

    def release(self, element: T) -> None:
        """Stock a node to use it later."""
        self._elements.append(element)

    def flush(self) -> None:
        """Free all the stocked nodes."""
        self._elements.clear()

    def __len__(self) -> int:
        return len(self._elements)
