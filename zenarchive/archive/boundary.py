"""Stack of currently open object boundary markers."""

from typing import List, Optional

from zenarchive.archive.types import ArchiveObject
from zenarchive.exceptions import ObjectDepthExceededError, UnbalancedObjectError


class ObjectBoundaryStack:
    """Tracks nesting of object begin/end markers.

    The innermost open object is on top. The depth never drops below zero:
    popping an empty stack is an :class:`UnbalancedObjectError`.
    """

    def __init__(self, max_depth: int = 100000):
        self._max_depth = max_depth
        self._objects: List[ArchiveObject] = []

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def depth(self) -> int:
        return len(self._objects)

    def check_room(self) -> None:
        """Raise if one more object would exceed the maximum depth."""
        if len(self._objects) >= self._max_depth:
            raise ObjectDepthExceededError(self._max_depth)

    def push(self, obj: ArchiveObject) -> None:
        self.check_room()
        self._objects.append(obj)

    def pop(self) -> ArchiveObject:
        if not self._objects:
            raise UnbalancedObjectError("object end without a matching begin", 0)
        return self._objects.pop()

    def peek(self) -> Optional[ArchiveObject]:
        return self._objects[-1] if self._objects else None

    def __len__(self) -> int:
        return len(self._objects)

    def __bool__(self) -> bool:
        return bool(self._objects)
