"""Tests for declared fields: sub-stores, producers and scalar attributes."""

from __future__ import annotations

import itertools
import logging

import pytest

from permstore import AccessDeniedError, Permission, Store, restrict

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class Database(Store):
    """Sub-store with one write-only key."""

    permissions = {"password": Permission.WRITE}

    def __init__(self) -> None:
        super().__init__()
        self.host = "localhost"
        self.port = 5432


@restrict("secret")
class AppConfig(Store):
    """Store with declared sub-stores, producers and a read-only scalar."""

    permissions = {"version": Permission.READ}

    def __init__(self) -> None:
        super().__init__()
        self._cache = Store()
        self._ticks = itertools.count()
        self.db = Database()
        self.version = "1.0.0"
        self.cache = lambda: self._cache
        self.uptime = lambda: 42
        self.tick = lambda: next(self._ticks)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


class TestDeclaredSubStores:
    def test_read_through_sub_store(self, config: AppConfig):
        assert config.read("db:host") == "localhost"
        assert config.read("db:port") == 5432

    def test_read_sub_store_itself(self, config: AppConfig):
        assert config.read("db") is config.db

    def test_sub_store_permissions_are_consulted(self, config: AppConfig):
        assert config.permission("db:password") is Permission.WRITE
        with pytest.raises(AccessDeniedError):
            config.read("db:password")

    def test_write_delegates_to_sub_store(self, config: AppConfig):
        config.write("db:password", "hunter2")
        assert config.db._data["password"] == "hunter2"
        assert "db" not in config._data

    def test_write_shadows_declared_scalar(self, config: AppConfig):
        config.db.write("host", "db.internal")
        assert config.read("db:host") == "db.internal"
        assert config.db.host == "localhost"

    def test_sub_store_default_policy_answers_for_bare_key(self):
        parent = Store()
        parent.locked = Store(default_policy="none")
        parent.set_permission("locked", Permission.READ_WRITE)
        with pytest.raises(AccessDeniedError):
            parent.read("locked")

    def test_type_level_permissions_of_sub_store(self):
        db = Database()
        assert db.permission("password") is Permission.WRITE
        assert db.entries() == {"host": "localhost", "port": 5432}


class TestDeclaredScalars:
    def test_read_only_declared_scalar(self, config: AppConfig):
        assert config.read("version") == "1.0.0"
        with pytest.raises(AccessDeniedError):
            config.write("version", "2.0.0")

    def test_restricted_key(self, config: AppConfig):
        with pytest.raises(AccessDeniedError):
            config.read("secret")
        with pytest.raises(AccessDeniedError):
            config.write("secret", "x")

    def test_snapshot(self, config: AppConfig):
        assert config.entries() == {"version": "1.0.0"}

    def test_private_attributes_hidden(self, config: AppConfig):
        assert "_cache" not in config
        assert config.read("_cache") is config


class TestProducers:
    def test_scalar_result_passes_through(self, config: AppConfig):
        assert config.read("uptime") == 42

    def test_invoked_on_every_access(self, config: AppConfig):
        first = config.read("tick")
        second = config.read("tick")
        assert second > first

    def test_store_result_is_navigated(self, config: AppConfig):
        config.write("cache:ttl", 30)
        assert config._cache.read("ttl") == 30
        assert config.read("cache:ttl") == 30

    def test_store_result_permissions_are_consulted(self, config: AppConfig):
        config._cache.set_permission("ttl", Permission.READ)
        assert config.permission("cache:ttl") is Permission.READ
        with pytest.raises(AccessDeniedError):
            config.write("cache:ttl", 1)

    def test_scalar_result_falls_back_to_local_override(self, config: AppConfig):
        config.set_permission("uptime", Permission.NONE)
        with pytest.raises(AccessDeniedError):
            config.read("uptime")

    def test_producer_returning_none(self):
        s = Store()
        s.maybe = lambda: None
        assert s.read("maybe") is None

    def test_producer_invocation_logged(
        self, config: AppConfig, caplog: pytest.LogCaptureFixture
    ):
        with caplog.at_level(logging.DEBUG, logger="permstore.store"):
            config.read("uptime")
        assert "Invoking producer" in caplog.text

    def test_producers_excluded_from_snapshot(self, config: AppConfig):
        assert "uptime" not in config.entries()
        assert "cache" not in config.entries()
