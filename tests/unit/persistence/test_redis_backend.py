"""Unit tests for RedisCacheBackend using fakeredis."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import fakeredis
import pytest
import redis

from staffledger.core.exceptions import CacheError
from staffledger.currency.rates import CACHE_KEY
from staffledger.models.invoice import CurrencyRateData
from staffledger.persistence.redis_backend import RedisCacheBackend


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def backend(fake_server):
    with patch("redis.Redis", return_value=fakeredis.FakeRedis(server=fake_server, decode_responses=True)):
        return RedisCacheBackend(host="localhost", port=6379, db=0)


@pytest.fixture
def broken():
    client = MagicMock()
    for name in ("get", "setex", "delete", "ping"):
        getattr(client, name).side_effect = redis.ConnectionError("Connection refused")
    with patch("redis.Redis", return_value=client):
        return RedisCacheBackend()


class TestGet:
    def test_returns_none_on_miss(self, backend):
        assert backend.get("nonexistent") is None

    def test_returns_rate_payload(self, backend):
        rates = CurrencyRateData(current_rate=Decimal("85.1200"), six_month_average=Decimal("84.3000"))
        backend.setex(CACHE_KEY, 3600, rates.model_dump_json())
        restored = CurrencyRateData.model_validate_json(backend.get(CACHE_KEY))
        assert restored.current_rate == Decimal("85.12")
        assert restored.six_month_average == Decimal("84.3")


class TestSetex:
    def test_sets_ttl(self, backend, fake_server):
        backend.setex("mykey", 60, "value")
        client = fakeredis.FakeRedis(server=fake_server)
        assert 0 < client.ttl("mykey") <= 60

    def test_overwrites_existing_value(self, backend):
        backend.setex("k", 60, "old")
        backend.setex("k", 60, "new")
        assert backend.get("k") == "new"


class TestDelete:
    def test_removes_existing_key(self, backend):
        backend.setex("del_me", 60, "val")
        backend.delete("del_me")
        assert backend.get("del_me") is None

    def test_noop_on_missing_key(self, backend):
        backend.delete("never_existed")


def test_ping(backend):
    assert backend.ping() is True


class TestErrorWrapping:
    @pytest.mark.parametrize("call", [
        lambda b: b.get("k"),
        lambda b: b.setex("k", 60, "v"),
        lambda b: b.delete("k"),
        lambda b: b.ping(),
    ])
    def test_redis_errors_become_cache_errors(self, broken, call):
        with pytest.raises(CacheError) as exc_info:
            call(broken)
        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)
