"""
PyTest configuration and shared fixtures for the hash ring tests.

This file provides common test utilities and fixtures that can be used
across all test modules.
"""

import pytest
import sys
import os
from typing import Dict, List

# Add src directory to Python path for all tests
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Import after path setup
from consistent_hash import ConsistentHashRing
from hash_strategies import MD5Hash
from ring_options import RingConfig


class ScriptedHash:
    """Hash strategy with hand-picked positions, for exact lookup tests."""

    def __init__(self, positions: Dict[str, int]):
        self.positions = positions

    def hash(self, key: str) -> int:
        return self.positions[key]


@pytest.fixture
def hash_ring() -> ConsistentHashRing:
    """Create a hash ring with test nodes."""
    return ConsistentHashRing(["node1", "node2", "node3"])


@pytest.fixture
def md5_config() -> RingConfig:
    """Config with a well-spread hash, for statistical tests."""
    return RingConfig(hash_strategy=MD5Hash())


@pytest.fixture
def sample_keys() -> List[str]:
    """Generate keys for distribution and remapping checks."""
    return [f"sample_key_{i:06d}" for i in range(10000)]


# Pytest markers for organizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow running tests"
    )


class TestUtils:
    """Utility functions for tests."""

    @staticmethod
    def assignments(ring, keys):
        """Snapshot the owner of every key."""
        return {key: ring.get(key) for key in keys}

    @staticmethod
    def moved(before, after):
        """Keys whose owner differs between two snapshots."""
        return [key for key in before if before[key] != after[key]]


@pytest.fixture
def test_utils() -> TestUtils:
    """Provide test utilities."""
    return TestUtils()
