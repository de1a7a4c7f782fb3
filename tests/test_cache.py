from unittest.mock import MagicMock, patch

import redis

from yoga_service.infrastructure.cache import cached, get_cache, invalidate_catalog, set_cache


@patch('yoga_service.infrastructure.cache.get_redis')
def test_get_cache_hit(mock_redis):
    """Тест получения значения из кэша (hit)"""
    mock_client = MagicMock()
    mock_client.get.return_value = '{"key": "value"}'
    mock_redis.return_value = mock_client

    assert get_cache("test_key") == {"key": "value"}
    mock_client.get.assert_called_once_with("test_key")


@patch('yoga_service.infrastructure.cache.get_redis')
def test_get_cache_redis_down(mock_redis):
    """Недоступный Redis — это промах, а не ошибка запроса"""
    mock_redis.return_value.get.side_effect = redis.ConnectionError("down")
    assert get_cache("test_key") is None


@patch('yoga_service.infrastructure.cache.get_redis')
def test_set_cache_redis_down(mock_redis):
    mock_redis.return_value.setex.side_effect = redis.ConnectionError("down")
    assert set_cache("test_key", {"key": "value"}) is False


def test_set_cache_with_ttl(fake_redis):
    assert set_cache("catalog:x", [1, 2], ttl=60) is True
    assert 0 < fake_redis.ttl("catalog:x") <= 60


def test_cached_loads_once(fake_redis):
    loader = MagicMock(return_value=[{"name": "Flow"}])
    assert cached("catalog:k", loader) == [{"name": "Flow"}]
    assert cached("catalog:k", loader) == [{"name": "Flow"}]
    loader.assert_called_once()


def test_invalidate_catalog_only_touches_catalog_keys(fake_redis):
    fake_redis.set("catalog:a", "1")
    fake_redis.set("catalog:b", "2")
    fake_redis.set("session:x", "3")
    assert invalidate_catalog() == 2
    assert fake_redis.keys("*") == ["session:x"]


@patch('yoga_service.infrastructure.cache.get_redis')
def test_invalidate_catalog_redis_down(mock_redis):
    mock_redis.return_value.scan_iter.side_effect = redis.ConnectionError("down")
    assert invalidate_catalog() == 0


def test_listing_works_without_redis(client, make_class, monkeypatch):
    def down():
        raise redis.ConnectionError("down")
    monkeypatch.setattr("yoga_service.infrastructure.cache.get_redis", down)
    make_class(name="A")
    assert [c["name"] for c in client.get("/approved-classes").json()] == ["A"]
