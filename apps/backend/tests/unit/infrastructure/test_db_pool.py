"""
Name: Database Pool Tests

Responsibilities:
  - Test pool lifecycle (init, get, close)
  - Test statement_timeout configuration hook
  - Offline unit tests (no real DB)

Notes:
  - Uses mocking for ConnectionPool
  - Tests pool singleton behavior
"""

from unittest.mock import MagicMock, patch

import pytest
from kiki.infrastructure.db import pool as pool_module
from kiki.infrastructure.db.errors import (
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_pool():
    pool_module.close_pool()
    yield
    pool_module.close_pool()


@pytest.fixture
def mock_pool_cls():
    with patch("kiki.infrastructure.db.pool.ConnectionPool") as mock_cls:
        mock_cls.return_value = MagicMock()
        yield mock_cls


class TestPoolLifecycle:
    def test_init_pool_creates_pool(self, mock_pool_cls):
        result = pool_module.init_pool("postgresql://test", min_size=2, max_size=10)

        mock_pool_cls.assert_called_once()
        kwargs = mock_pool_cls.call_args.kwargs
        assert kwargs["conninfo"] == "postgresql://test"
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 10
        assert kwargs["kwargs"] == {"application_name": "kiki-backend"}
        assert result is mock_pool_cls.return_value
        assert pool_module.is_pool_initialized() is True

    def test_init_pool_twice_raises_error(self, mock_pool_cls):
        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)

        with pytest.raises(PoolAlreadyInitializedError):
            pool_module.init_pool("postgresql://test", min_size=1, max_size=2)

    def test_get_pool_without_init_raises_error(self):
        with pytest.raises(PoolNotInitializedError, match="init_pool"):
            pool_module.get_pool()

    def test_close_pool_clears_singleton(self, mock_pool_cls):
        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)

        pool_module.close_pool()

        mock_pool_cls.return_value.close.assert_called_once()
        assert pool_module.is_pool_initialized() is False
        with pytest.raises(PoolNotInitializedError):
            pool_module.get_pool()

    def test_close_pool_is_idempotent(self):
        pool_module.close_pool()
        pool_module.close_pool()

        assert pool_module.is_pool_initialized() is False

    def test_close_allows_reinit(self, mock_pool_cls):
        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)
        pool_module.close_pool()

        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)

        assert mock_pool_cls.call_count == 2


class TestConfigureConnection:
    def test_sets_statement_timeout(self):
        conn = MagicMock()

        pool_module._configure_connection(conn)

        conn.execute.assert_called_once_with("SET statement_timeout = 30000")
        conn.commit.assert_called_once()

    def test_zero_timeout_skips_statement(self, monkeypatch):
        monkeypatch.setenv("DB_STATEMENT_TIMEOUT_MS", "0")
        conn = MagicMock()

        pool_module._configure_connection(conn)

        conn.execute.assert_not_called()


class TestPingPool:
    def test_false_without_pool(self):
        assert pool_module.ping_pool() is False

    def test_true_when_select_answers(self, mock_pool_cls):
        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)
        conn = mock_pool_cls.return_value.connection.return_value.__enter__.return_value

        assert pool_module.ping_pool() is True
        conn.execute.assert_called_once_with("SELECT 1")

    def test_false_when_connection_fails(self, mock_pool_cls):
        pool_module.init_pool("postgresql://test", min_size=1, max_size=2)
        mock_pool_cls.return_value.connection.side_effect = OSError("refused")

        assert pool_module.ping_pool() is False
