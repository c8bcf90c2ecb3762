"""
Configuration for the consistent hash ring.

A RingConfig holds the replica count and the two strategies. Options are
small callables applied to a config in order, so later options win:

    ring = new_with_options(virtual_replicas(50), hash_func(FNV1aHash()))
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from hash_strategies import (
    CRC32Hash,
    HASH_STRATEGIES,
    HashStrategy,
    NamingStrategy,
    SeparatorNaming,
    as_hash_strategy,
    as_naming_strategy,
)

log = logging.getLogger(__name__)

DEFAULT_VIRTUAL_REPLICAS = 100


@dataclass
class RingConfig:
    replicas: int = DEFAULT_VIRTUAL_REPLICAS
    hash_strategy: HashStrategy = field(default_factory=CRC32Hash)
    naming_strategy: NamingStrategy = field(default_factory=SeparatorNaming)


Option = Callable[[RingConfig], None]


def virtual_replicas(n: int) -> Option:
    """
    Set the number of virtual replicas per node (default 100).

    Zero keeps the default; negative counts are rejected.
    """
    if n < 0:
        raise ValueError(f"virtual replicas must not be negative, got {n}")

    def apply(config: RingConfig) -> None:
        if n == 0:
            log.debug("Default virtual replicas: %d", DEFAULT_VIRTUAL_REPLICAS)
            config.replicas = DEFAULT_VIRTUAL_REPLICAS
        else:
            log.debug("Set virtual replicas: %d", n)
            config.replicas = n

    return apply


def hash_func(strategy) -> Option:
    """Set the hash strategy. Accepts a HashStrategy or a `func(key) -> int`."""
    strategy = as_hash_strategy(strategy)

    def apply(config: RingConfig) -> None:
        log.debug("Set hash strategy: %r", strategy)
        config.hash_strategy = strategy

    return apply


def key_rule(strategy) -> Option:
    """Set the replica naming strategy. Accepts a NamingStrategy or a `func(node, index) -> str`."""
    strategy = as_naming_strategy(strategy)

    def apply(config: RingConfig) -> None:
        log.debug("Set key rule: %r", strategy)
        config.naming_strategy = strategy

    return apply


def build_config(*options: Option) -> RingConfig:
    config = RingConfig()
    for option in options:
        option(config)
    return config


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> RingConfig:
    """
    Build a RingConfig from environment variables.

    RING_VIRTUAL_REPLICAS  replicas per node (default 100)
    RING_HASH              crc32, fnv1a or md5 (default crc32)
    RING_KEY_SEPARATOR     separator between node name and replica index (default "#")
    """
    if environ is None:
        environ = os.environ

    options = []
    if "RING_VIRTUAL_REPLICAS" in environ:
        options.append(virtual_replicas(int(environ["RING_VIRTUAL_REPLICAS"])))

    hash_name = environ.get("RING_HASH", "crc32").strip().lower()
    if hash_name not in HASH_STRATEGIES:
        raise ValueError(
            f"unknown RING_HASH {hash_name!r}, expected one of {sorted(HASH_STRATEGIES)}"
        )
    options.append(hash_func(HASH_STRATEGIES[hash_name]()))

    if "RING_KEY_SEPARATOR" in environ:
        options.append(key_rule(SeparatorNaming(environ["RING_KEY_SEPARATOR"])))

    return build_config(*options)
