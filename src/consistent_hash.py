"""
Consistent Hashing Ring Implementation

Maps keys onto a changing set of named nodes (cache shards, backend
servers). When a node is added or removed, only the keys that fall on
that node's arcs of the ring move; every other key keeps its owner.

    ring = new()
    ring.add("cacheA")
    ring.add("cacheB")
    ring.get("user:42")   # -> "cacheA" or "cacheB", stable across calls
"""

import bisect
import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from hash_strategies import RING_SIZE
from ring_errors import AlreadyExists, EmptyRing, NotFound, StrategyFailure
from ring_options import Option, RingConfig, build_config

log = logging.getLogger(__name__)


class _RingState(NamedTuple):
    """An immutable view of the ring. Writers replace it, never modify it."""
    sorted_keys: Tuple[int, ...]   # sorted hash values for binary search
    ring: Mapping[int, str]        # hash_value -> node
    nodes: frozenset               # fully added nodes


_EMPTY_STATE = _RingState((), MappingProxyType({}), frozenset())


class ConsistentHashRing:
    """
    Consistent hashing ring with virtual replicas.

    Every node is placed on the ring `replicas` times, once per synthetic
    replica key produced by the naming strategy, so a single unlucky hash
    value cannot leave a node with a tiny or huge share of the keys.

    Lookups are lock-free: add() and delete() build a new state under the
    write lock and publish it with a single assignment, so get() always
    sees either the old ring or the new one.

    If two replicas hash to the same value the later one takes the
    position over. This is logged as a warning, not treated as an error.
    """

    def __init__(self, nodes: Optional[Iterable[str]] = None, config: Optional[RingConfig] = None):
        """
        Initialize the hash ring.

        Args:
            nodes: Initial node names, added in order
            config: Replica count and strategies, defaults to RingConfig()
        """
        config = config or RingConfig()
        if config.replicas < 1:
            raise ValueError(f"virtual replicas must be >= 1, got {config.replicas}")

        self._replicas = config.replicas
        self._hash_strategy = config.hash_strategy
        self._naming_strategy = config.naming_strategy
        self._lock = threading.Lock()
        self._state = _EMPTY_STATE

        if nodes:
            for node in nodes:
                self.add(node)

    @property
    def replicas(self) -> int:
        return self._replicas

    @property
    def nodes(self) -> List[str]:
        return sorted(self._state.nodes)

    def __len__(self) -> int:
        return len(self._state.nodes)

    def __contains__(self, node: str) -> bool:
        return node in self._state.nodes

    def _hash(self, key: str, node: Optional[str] = None) -> int:
        """Hash key onto the ring, turning any strategy misbehaviour into StrategyFailure."""
        try:
            hash_value = self._hash_strategy.hash(key)
        except Exception as e:
            raise StrategyFailure(f"hash strategy failed for {key!r}: {e}", node=node, key=key) from e

        if isinstance(hash_value, bool) or not isinstance(hash_value, int) \
                or not 0 <= hash_value < RING_SIZE:
            raise StrategyFailure(
                f"hash strategy returned {hash_value!r} for {key!r}, "
                f"expected an int in [0, {RING_SIZE})",
                node=node, key=key,
            )
        return hash_value

    def _replica_key(self, node: str, index: int) -> str:
        try:
            virtual_key = self._naming_strategy.name(node, index)
        except Exception as e:
            raise StrategyFailure(
                f"naming strategy failed for {node!r} replica {index}: {e}", node=node
            ) from e

        if not isinstance(virtual_key, str):
            raise StrategyFailure(
                f"naming strategy returned {virtual_key!r} for {node!r} replica {index}, "
                f"expected a str",
                node=node,
            )
        return virtual_key

    def add(self, node: str) -> None:
        """
        Add a new node to the ring.

        All replicas are hashed into a scratch copy of the ring first; the
        node only becomes visible once every replica has been placed.

        Raises:
            AlreadyExists: the node is already on the ring
            StrategyFailure: naming or hashing a replica failed; the ring is unchanged
        """
        with self._lock:
            state = self._state
            if node in state.nodes:
                raise AlreadyExists(node)

            ring = dict(state.ring)
            for i in range(self._replicas):
                hash_value = self._hash(self._replica_key(node, i), node=node)
                previous = ring.get(hash_value)
                if previous is not None and previous != node:
                    log.warning(
                        "Replica %d of %s collides with %s at %d, %s takes the position",
                        i, node, previous, hash_value, node,
                    )
                ring[hash_value] = node

            # Sort once for all replicas instead of inserting one by one
            self._state = _RingState(
                tuple(sorted(ring)), MappingProxyType(ring), state.nodes | {node}
            )

        log.info("Added node %s with %d virtual replicas", node, self._replicas)

    def delete(self, node: str) -> None:
        """
        Remove a node and all of its virtual replicas from the ring.

        Keys it owned move to the next node clockwise.

        Raises:
            NotFound: the node is not on the ring
        """
        with self._lock:
            state = self._state
            if node not in state.nodes:
                raise NotFound(node)

            ring = {h: owner for h, owner in state.ring.items() if owner != node}
            self._state = _RingState(
                tuple(sorted(ring)), MappingProxyType(ring), state.nodes - {node}
            )

        log.info("Removed node %s", node)

    def get(self, key: str) -> str:
        """
        Find which node owns the given key.

        1. Hash the key to get a position on the ring
        2. Find the first replica at or clockwise from that position
        3. Return the node that replica belongs to

        Raises:
            EmptyRing: no node has been added
            StrategyFailure: the hash strategy failed for key
        """
        state = self._state
        if not state.sorted_keys:
            raise EmptyRing(key)

        hash_value = self._hash(key)
        idx = bisect.bisect_left(state.sorted_keys, hash_value)

        if idx == len(state.sorted_keys):
            # Wrap around to the beginning of the ring
            idx = 0

        return state.ring[state.sorted_keys[idx]]

    def get_nodes(self, key: str, count: int = 3) -> List[str]:
        """
        Get multiple nodes for replication.

        Returns the next `count` distinct nodes clockwise from the key's
        position, starting with the owner returned by get().
        """
        state = self._state
        if not state.sorted_keys or count <= 0:
            return []

        hash_value = self._hash(key)
        idx = bisect.bisect_left(state.sorted_keys, hash_value)

        nodes = []
        seen = set()
        total = len(state.sorted_keys)

        for i in range(total):
            node = state.ring[state.sorted_keys[(idx + i) % total]]
            if node not in seen:
                nodes.append(node)
                seen.add(node)
                if len(nodes) == count:
                    break

        return nodes

    def load_distribution(self) -> Dict[str, float]:
        """
        Percentage of the hash space each node is responsible for.

        A replica owns the arc from the previous replica (exclusive) up to
        itself (inclusive); the first replica's arc wraps past the top of
        the ring. Useful for checking how even the placement is.
        """
        state = self._state
        if not state.sorted_keys:
            return {}

        node_ranges: Dict[str, int] = {}
        keys = state.sorted_keys

        for i, key in enumerate(keys):
            if i == 0:
                range_size = key + RING_SIZE - keys[-1]
            else:
                range_size = key - keys[i - 1]

            node = state.ring[key]
            node_ranges[node] = node_ranges.get(node, 0) + range_size

        return {node: (size / RING_SIZE) * 100 for node, size in node_ranges.items()}

    def __str__(self) -> str:
        """String representation showing ring status."""
        nodes = self.nodes
        if not nodes:
            return "Empty hash ring"

        distribution = self.load_distribution()
        lines = [f"Hash ring with {len(nodes)} nodes ({self._replicas} replicas each):"]
        for node in nodes:
            lines.append(f"  {node}: {distribution.get(node, 0):.2f}% of hash space")

        return "\n".join(lines)


def new() -> ConsistentHashRing:
    """Ring with 100 replicas per node, CRC-32 hashing and "node#index" replica names."""
    return ConsistentHashRing()


def new_with_options(*options: Option) -> ConsistentHashRing:
    """
    Ring configured by options, applied in order:

        new_with_options(virtual_replicas(50), hash_func(FNV1aHash()), key_rule(SeparatorNaming("")))
    """
    return ConsistentHashRing(config=build_config(*options))
