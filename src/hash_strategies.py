"""
Hash and replica-naming strategies for the consistent hash ring.

A hash strategy maps a string onto the 32-bit ring; a naming strategy
derives the synthetic key each virtual replica of a node is hashed from.
Both must be pure and deterministic, otherwise the same key can land on
different nodes between calls.
"""

import hashlib
import zlib
from typing import Callable, Protocol

RING_BITS = 32
RING_SIZE = 2 ** RING_BITS

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193


class HashStrategy(Protocol):
    def hash(self, key: str) -> int:
        """Return the ring position of key, in [0, 2**32)."""
        ...


class NamingStrategy(Protocol):
    def name(self, node: str, index: int) -> str:
        """Return the synthetic key for replica `index` of `node`."""
        ...


class CRC32Hash:
    """CRC-32 (IEEE polynomial). The default hash strategy."""

    def hash(self, key: str) -> int:
        return zlib.crc32(key.encode('utf-8')) & 0xFFFFFFFF

    def __repr__(self) -> str:
        return "CRC32Hash()"


class FNV1aHash:
    """32-bit FNV-1a."""

    def hash(self, key: str) -> int:
        h = FNV32_OFFSET_BASIS
        for byte in key.encode('utf-8'):
            h ^= byte
            h = (h * FNV32_PRIME) & 0xFFFFFFFF
        return h

    def __repr__(self) -> str:
        return "FNV1aHash()"


class MD5Hash:
    """
    First four bytes of the MD5 digest, read big-endian.

    Slower than CRC-32 but spreads similar names (node1#0, node1#1, ...)
    more evenly around the ring.
    """

    def hash(self, key: str) -> int:
        digest = hashlib.md5(key.encode('utf-8')).digest()
        return int.from_bytes(digest[:4], byteorder='big')

    def __repr__(self) -> str:
        return "MD5Hash()"


class SeparatorNaming:
    """Names replicas as node + separator + index, "node1#0" by default."""

    def __init__(self, separator: str = "#"):
        self.separator = separator

    def name(self, node: str, index: int) -> str:
        return f"{node}{self.separator}{index}"

    def __repr__(self) -> str:
        return f"SeparatorNaming({self.separator!r})"


class FunctionHash:
    """Adapts a plain `func(key) -> int` callable to a HashStrategy."""

    def __init__(self, func: Callable[[str], int]):
        self.func = func

    def hash(self, key: str) -> int:
        return self.func(key)

    def __repr__(self) -> str:
        return f"FunctionHash({getattr(self.func, '__name__', self.func)!r})"


class FunctionNaming:
    """Adapts a plain `func(node, index) -> str` callable to a NamingStrategy."""

    def __init__(self, func: Callable[[str, int], str]):
        self.func = func

    def name(self, node: str, index: int) -> str:
        return self.func(node, index)

    def __repr__(self) -> str:
        return f"FunctionNaming({getattr(self.func, '__name__', self.func)!r})"


HASH_STRATEGIES = {
    "crc32": CRC32Hash,
    "fnv1a": FNV1aHash,
    "md5": MD5Hash,
}


def as_hash_strategy(obj) -> HashStrategy:
    """Return obj as a HashStrategy, wrapping plain callables."""
    if callable(getattr(obj, "hash", None)):
        return obj
    if callable(obj):
        return FunctionHash(obj)
    raise TypeError(f"expected a hash strategy or callable, got {type(obj).__name__}")


def as_naming_strategy(obj) -> NamingStrategy:
    """Return obj as a NamingStrategy, wrapping plain callables."""
    if callable(getattr(obj, "name", None)):
        return obj
    if callable(obj):
        return FunctionNaming(obj)
    raise TypeError(f"expected a naming strategy or callable, got {type(obj).__name__}")
