"""失效执行测试"""

import pytest

from ycache.invalidation import InvalidationExecutor, target_pattern
from ycache.store import MemoryStore, RedisStore

from tests.helpers import FakeRedis


def _fill(store, keys):
    for key in keys:
        store.set(key, "{}")


KEYS = [
    "p:u:shop:orders:GET:1:-:-",
    "p:u:shop:orders:GET:2:-:-",
    "p:u:shop:customers:GET:1:-:-",
    "p:u:shop:orders_archive:GET:1:-:-",
    "orders:GET:1",
]


class TestTargetPattern:
    """测试 target_pattern"""

    def test_colon_wrapped(self):
        assert target_pattern("orders") == "*:orders:*"

    def test_glob_chars_escaped(self):
        assert target_pattern("a*b?[c]") == "*:a[*]b[?][[]c]:*"


@pytest.fixture(params=["redis", "memory"])
def store(request):
    if request.param == "redis":
        return RedisStore(FakeRedis())
    return MemoryStore()


class TestInvalidationExecutor:
    """测试 InvalidationExecutor"""

    def test_purge_matches_colon_wrapped_anywhere(self, store):
        _fill(store, KEYS)

        result = InvalidationExecutor(store, scan_count=2).purge({"orders"})

        assert result.ok
        assert result.value == 2
        assert store.exists("p:u:shop:customers:GET:1:-:-").value is True
        assert store.exists("p:u:shop:orders_archive:GET:1:-:-").value is True
        # 没有被冒号包围
        assert store.exists("orders:GET:1").value is True

    def test_purge_multiple_targets(self, store):
        _fill(store, KEYS)

        result = InvalidationExecutor(store, scan_count=1).purge({"orders", "customers"})

        assert result.value == 3

    def test_column_target(self, store):
        store.set("p:products.id:x", "{}")
        assert InvalidationExecutor(store).purge({"products.id"}).value == 1

    def test_glob_metacharacters_are_literal(self, store):
        _fill(store, ["p:a*:x", "p:ab:x"])
        assert InvalidationExecutor(store).purge({"a*"}).value == 1
        assert store.exists("p:ab:x").value is True

    def test_idempotent_on_empty_keyspace(self, store):
        executor = InvalidationExecutor(store)
        first = executor.purge({"orders"})
        second = executor.purge({"orders"})

        assert first.ok and first.value == 0
        assert second.ok and second.value == 0

    def test_empty_targets(self, store):
        _fill(store, KEYS)
        assert InvalidationExecutor(store).purge(set()).value == 0
        assert InvalidationExecutor(store).purge({""}).value == 0

    def test_bounded_batches(self):
        client = FakeRedis()
        store = RedisStore(client)
        _fill(store, [f"p:orders:{i}" for i in range(10)])

        InvalidationExecutor(store, scan_count=3).purge({"orders"})

        # 10 个键、每批 3 个 -> 4 次 SCAN
        assert client.calls.count("scan") == 4
        assert client.store == {}


class TestInvalidationExecutorFailure:
    """存储错误时立即放弃"""

    def test_scan_error_stops(self):
        client = FakeRedis(fail_on={"scan"})
        result = InvalidationExecutor(RedisStore(client)).purge({"orders", "customers"})

        assert result.ok is False
        assert client.calls.count("scan") == 1

    def test_delete_error_stops(self):
        client = FakeRedis()
        store = RedisStore(client)
        _fill(store, KEYS)
        client.fail_on.add("delete")

        result = InvalidationExecutor(store, scan_count=1).purge({"orders"})

        assert result.ok is False
        assert client.calls.count("delete") == 1
