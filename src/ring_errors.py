"""
Errors raised by the consistent hash ring.

Every error leaves the ring usable; add and delete never leave a
half-applied change behind.
"""

from typing import Optional


class RingError(Exception):
    """Base class for all hash ring errors."""


class AlreadyExists(RingError):
    """Raised when adding a node that is already on the ring."""

    def __init__(self, node: str):
        super().__init__(f"{node} already exists")
        self.node = node


class NotFound(RingError):
    """Raised when deleting a node that is not on the ring."""

    def __init__(self, node: str):
        super().__init__(f"{node} not found")
        self.node = node


class EmptyRing(RingError):
    """Raised when looking up a key before any node was added."""

    def __init__(self, key: Optional[str] = None):
        super().__init__("hash ring is empty")
        self.key = key


class StrategyFailure(RingError):
    """
    Raised when a hash or naming strategy fails.

    The strategy's own exception, if any, is available as __cause__.
    """

    def __init__(self, message: str, node: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.node = node
        self.key = key
