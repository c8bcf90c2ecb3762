"""
Tests for ring configuration and options.
"""

import logging

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from hash_strategies import CRC32Hash, FNV1aHash, MD5Hash, SeparatorNaming
from ring_options import (
    DEFAULT_VIRTUAL_REPLICAS,
    RingConfig,
    build_config,
    config_from_env,
    hash_func,
    key_rule,
    virtual_replicas,
)


class TestOptions:

    def test_defaults(self):
        config = build_config()
        assert config.replicas == DEFAULT_VIRTUAL_REPLICAS == 100
        assert isinstance(config.hash_strategy, CRC32Hash)
        assert isinstance(config.naming_strategy, SeparatorNaming)
        assert config.naming_strategy.separator == "#"

    def test_options_apply_in_order(self):
        config = build_config(virtual_replicas(10), virtual_replicas(20))
        assert config.replicas == 20

    def test_zero_replicas_keeps_default(self):
        assert build_config(virtual_replicas(0)).replicas == 100

    def test_negative_replicas(self):
        with pytest.raises(ValueError):
            virtual_replicas(-1)

    def test_strategy_options(self):
        fnv = FNV1aHash()
        naming = SeparatorNaming("")
        config = build_config(hash_func(fnv), key_rule(naming))
        assert config.hash_strategy is fnv
        assert config.naming_strategy is naming

    def test_each_config_gets_its_own_strategies(self):
        assert RingConfig().hash_strategy is not RingConfig().hash_strategy

    def test_applied_options_are_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="ring_options"):
            build_config(virtual_replicas(50), hash_func(FNV1aHash()))

        messages = [record.getMessage() for record in caplog.records]
        assert "Set virtual replicas: 50" in messages
        assert "Set hash strategy: FNV1aHash()" in messages


class TestConfigFromEnv:

    def test_empty_environment(self):
        config = config_from_env({})
        assert config.replicas == 100
        assert isinstance(config.hash_strategy, CRC32Hash)

    def test_all_variables(self):
        config = config_from_env({
            "RING_VIRTUAL_REPLICAS": "50",
            "RING_HASH": "FNV1a",
            "RING_KEY_SEPARATOR": "",
        })
        assert config.replicas == 50
        assert isinstance(config.hash_strategy, FNV1aHash)
        assert config.naming_strategy.name("node1", 2) == "node12"

    def test_md5(self):
        assert isinstance(config_from_env({"RING_HASH": "md5"}).hash_strategy, MD5Hash)

    def test_unknown_hash(self):
        with pytest.raises(ValueError, match="unknown RING_HASH"):
            config_from_env({"RING_HASH": "sha1"})

    def test_bad_replica_count(self):
        with pytest.raises(ValueError):
            config_from_env({"RING_VIRTUAL_REPLICAS": "many"})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("RING_VIRTUAL_REPLICAS", "7")
        monkeypatch.delenv("RING_HASH", raising=False)
        assert config_from_env().replicas == 7
