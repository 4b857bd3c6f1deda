"""最小 Redis 桩

只实现缓存组件用到的命令，SCAN 的 MATCH 语义与 Redis 一致（glob）。
"""

import fnmatch
import itertools


class FakeRedis:
    """最小 Redis 桩

    Args:
        fail_on: 调用这些命令时抛出 ConnectionError，用于模拟 Redis 故障
    """

    def __init__(self, fail_on=()):
        self.store = {}
        self.ttls = {}
        self.fail_on = set(fail_on)
        self.calls = []
        self._cursors = {}
        self._cursor_ids = itertools.count(1)

    def _check(self, command):
        self.calls.append(command)
        if command in self.fail_on:
            raise ConnectionError(f"redis {command} error")

    def ping(self):
        self._check("ping")
        return True

    def get(self, key):
        self._check("get")
        return self.store.get(key)

    def setex(self, key, ttl, data):
        self._check("setex")
        self.store[key] = data
        self.ttls[key] = ttl

    def exists(self, key):
        self._check("exists")
        return 1 if key in self.store else 0

    def delete(self, *keys):
        self._check("delete")
        count = 0
        for k in keys:
            if k in self.store:
                del self.store[k]
                self.ttls.pop(k, None)
                count += 1
        return count

    def scan(self, cursor=0, match=None, count=10):
        self._check("scan")
        if cursor == 0:
            pending = sorted(self.store.keys())
        else:
            pending = self._cursors.pop(cursor, [])

        page, rest = pending[:count], pending[count:]
        next_cursor = 0
        if rest:
            next_cursor = next(self._cursor_ids)
            self._cursors[next_cursor] = rest

        keys = [
            k for k in page
            if k in self.store and (match is None or fnmatch.fnmatchcase(k, match))
        ]
        return next_cursor, keys


class FakeBytesRedis(FakeRedis):
    """未开启 decode_responses 的客户端，返回 bytes"""

    def get(self, key):
        value = super().get(key)
        return value.encode() if isinstance(value, str) else value

    def scan(self, cursor=0, match=None, count=10):
        next_cursor, keys = super().scan(cursor, match, count)
        return str(next_cursor).encode(), [k.encode() for k in keys]
