"""内存存储测试"""

import time

from ycache.store import CacheStore, MemoryStore


class TestMemoryStore:
    """测试 MemoryStore"""

    def test_is_cache_store(self, memory_store):
        assert isinstance(memory_store, CacheStore)

    def test_set_get_exists(self, memory_store):
        assert memory_store.set("k1", "v1").ok
        assert memory_store.get("k1").value == "v1"
        assert memory_store.exists("k1").value is True
        assert memory_store.exists("k2").value is False
        assert memory_store.get("k2").value is None

    def test_per_key_ttl(self):
        store = MemoryStore(ttl=600)
        store.set("short", "v", ttl=1)
        store.set("long", "v")

        assert store.get("short").value == "v"
        time.sleep(1.1)
        assert store.get("short").value is None
        assert store.get("long").value == "v"

    def test_scan_glob_match(self, memory_store):
        memory_store.set("p:orders:GET:1", "x")
        memory_store.set("p:customers:GET:1", "x")
        memory_store.set("p:orders_archive:GET:1", "x")

        cursor, keys = memory_store.scan(0, "*:orders:*", 100).value
        assert cursor == 0
        assert keys == ["p:orders:GET:1"]

    def test_scan_paging(self, memory_store):
        for i in range(7):
            memory_store.set(f"k{i}", "x")

        cursor, seen, pages = 0, [], 0
        while True:
            cursor, keys = memory_store.scan(cursor, "*", 3).value
            seen.extend(keys)
            pages += 1
            if cursor == 0:
                break
        assert pages == 3
        assert sorted(seen) == sorted(f"k{i}" for i in range(7))

    def test_scan_survives_deletes_between_pages(self, memory_store):
        """遍历期间删除已返回的键，不会跳过剩余的键"""
        for i in range(6):
            memory_store.set(f":t:{i}", "x")

        cursor, seen = 0, []
        while True:
            cursor, keys = memory_store.scan(cursor, "*:t:*", 2).value
            seen.extend(keys)
            memory_store.delete(*keys)
            if cursor == 0:
                break
        assert len(seen) == 6
        assert memory_store.keys() == []

    def test_delete_and_stats(self, memory_store):
        memory_store.set("a", "1")
        memory_store.get("a")
        memory_store.get("b")

        assert memory_store.delete("a", "b").value == 1

        stats = memory_store.get_stats()
        assert stats["backend"] == "memory"
        assert stats["size"] == 0
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["purged_keys"] == 1

    def test_ping_and_clear(self, memory_store):
        memory_store.set("a", "1")
        assert memory_store.ping().value is True
        memory_store.clear()
        assert memory_store.keys() == []
