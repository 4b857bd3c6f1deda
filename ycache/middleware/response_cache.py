"""响应缓存中间件

纯 ASGI 实现，缓存可缓存请求的 200 JSON 响应。

请求体 / 查询参数中的缓存控制参数（不参与缓存键）:
    - cache.noCache / noCache: 本次不读缓存（响应仍会写入缓存）
    - cache.updateCache / updateCache: 处理请求前先失效这些目标

使用示例:
    from fastapi import FastAPI
    from ycache import ResponseCacheService, CacheSettings
    from ycache.middleware import ResponseCacheMiddleware

    app = FastAPI()
    service = ResponseCacheService.from_settings(CacheSettings())

    app.add_middleware(
        ResponseCacheMiddleware,
        service=service,
        user_id_getter=get_user_id,   # 可选，接收 scope，支持同步或异步函数
    )
"""

import asyncio
import hashlib
import json
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import QueryParams
from starlette.routing import Match

from ..keys import RequestContext, generate_key, normalize_path, resolve_template
from ..log import get_logger
from ..policy import CachePolicy, RequestInfo
from ..resolvers import ChainResourceResolver, MappingResourceResolver, ResourceTableResolver

logger = get_logger()

CACHE_HEADER = b"x-cache"

_CONTROL_FIELD = "cache"
_NO_CACHE = "noCache"
_UPDATE_CACHE = "updateCache"
_TRUTHY = {"1", "true", "yes", "on"}

_USER_TOKEN_RE = re.compile(r":?\$USER_ID", re.IGNORECASE)


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _as_targets(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, (list, tuple)):
        return [str(t) for t in value if t]
    return []


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def _query_fields(query_string: bytes) -> Dict[str, Any]:
    """查询参数 -> 字典，重复参数合并为列表"""
    params = QueryParams(query_string.decode("latin-1"))
    fields: Dict[str, Any] = {}
    for key in params.keys():
        values = params.getlist(key)
        fields[key] = values if len(values) > 1 else values[0]
    return fields


def _body_fields(body: bytes, content_type: str) -> Dict[str, Any]:
    if not body:
        return {}
    if "application/json" in content_type.lower():
        try:
            parsed = json.loads(body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        if parsed is not None:
            return {"_json": parsed}
    return {"_raw": _md5(body.decode("utf-8", errors="replace"))}


def _replace_headers(headers: List[Tuple[bytes, bytes]], body: bytes, hit: bool) -> List[Tuple[bytes, bytes]]:
    result = [
        (name, value) for name, value in headers
        if name.lower() not in (b"content-length", CACHE_HEADER)
    ]
    result.append((b"content-length", str(len(body)).encode()))
    result.append((CACHE_HEADER, b"HIT" if hit else b"MISS"))
    return result


class ResponseCacheMiddleware:
    """纯 ASGI 响应缓存中间件

    错误隔离保证：
    - 存储不可用时所有请求直接放行
    - 缓存读写、失效中的任何异常都只记录调试日志，不影响请求

    Args:
        app: ASGI 应用
        service: ResponseCacheService
        resolver: 路由名 -> 表名解析器，默认使用配置中的 controller_model_mapping
        user_id_getter: 可选的用户 ID 获取函数，接收 scope，支持同步或异步函数；
                        不提供时从 scope["user"] 读取
        user_info_timeout: 用户 ID 获取超时时间（秒）
    """

    def __init__(
        self,
        app,
        service,
        resolver: Optional[ResourceTableResolver] = None,
        user_id_getter: Optional[Callable] = None,
        user_info_timeout: float = 0.5,
    ):
        self.app = app
        self.service = service
        self.settings = service.settings
        self.policy = CachePolicy(self.settings)
        if resolver is None:
            resolver = MappingResourceResolver(self.settings.controller_model_mapping)
        self.resolver = resolver
        self.user_id_getter = user_id_getter
        self.user_info_timeout = user_info_timeout
        self.identity = self.settings.to_key_identity()

    # ---------- 请求信息 ----------

    @staticmethod
    def _route_names(scope) -> List[str]:
        """匹配到的路由名，以及端点的限定名（类视图时形如 OrderController.index）"""
        app = scope.get("app")
        router = getattr(app, "router", None)
        for route in getattr(router, "routes", []):
            match, _ = route.matches(scope)
            if match != Match.FULL:
                continue
            names = []
            name = getattr(route, "name", None)
            if name:
                names.append(name)
            qualname = getattr(getattr(route, "endpoint", None), "__qualname__", None)
            if qualname and qualname not in names:
                names.append(qualname)
            return names
        return []

    async def _get_user_id(self, scope) -> Optional[Any]:
        if self.user_id_getter is None:
            user = scope.get("user")
            if user is None or not getattr(user, "is_authenticated", False):
                return None
            return getattr(user, "id", None) or getattr(user, "display_name", None)

        try:
            if asyncio.iscoroutinefunction(self.user_id_getter):
                return await asyncio.wait_for(
                    self.user_id_getter(scope),
                    timeout=self.user_info_timeout,
                )
            return await asyncio.wait_for(
                run_in_threadpool(self.user_id_getter, scope),
                timeout=self.user_info_timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("Get user id timeout")
            return None
        except Exception as e:
            logger.debug(f"Failed to get user id: {type(e).__name__}: {e}")
            return None

    def _resolve_resource(self, names: List[str], path: str) -> Optional[str]:
        candidates = names + [normalize_path(path)]
        if isinstance(self.resolver, ChainResourceResolver):
            return self.resolver.resolve_any(candidates)
        for name in candidates:
            table = self.resolver.resolve(name)
            if table:
                return table
        return None

    @staticmethod
    async def _read_body(receive) -> bytes:
        chunks = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    # ---------- 缓存键 ----------

    def _metadata(self, key: str, context: RequestContext) -> Dict[str, Any]:
        shared_template = _USER_TOKEN_RE.sub("", resolve_template(self.settings.pattern))
        shared_key = generate_key(shared_template, context, self.identity)
        return {
            "cached": False,
            "dateStored": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "pattern": self.settings.pattern,
            "key": {
                "cache": key,
                "ls": _md5(key),
                "ws": _md5(shared_key),
            },
        }

    # ---------- ASGI ----------

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not self.service.is_available:
            await self.app(scope, receive, send)
            return

        state: Dict[str, Any] = {}
        try:
            prepared = await self._prepare(scope, receive, state)
        except Exception as e:
            logger.debug(f"Response cache skipped: {type(e).__name__}: {e}")
            prepared = None

        # 请求体已被读取时需要重放给下游
        if "body" in state:
            receive = self._replay(state["body"], receive)

        if prepared is None:
            await self.app(scope, receive, send)
            return

        key, context, no_cache = prepared

        cached = None
        if not no_cache:
            try:
                cached = await self._lookup(key)
            except Exception as e:
                logger.debug(f"Cache lookup failed: {type(e).__name__}: {e}")

        if cached is not None:
            await self._send_cached(send, cached)
            return

        await self._call_and_store(scope, receive, send, key, context)

    async def _prepare(self, scope, receive, state: Dict[str, Any]):
        """返回 (缓存键, 键上下文, 是否跳过读取)；不需要缓存时返回 None

        读取到的请求体放在 state["body"] 中。
        """
        path = scope.get("path", "")
        method = scope.get("method", "GET")
        names = self._route_names(scope)
        user_id = await self._get_user_id(scope)

        request = RequestInfo(
            path=path,
            method=method,
            route_name=names[0] if names else None,
            user_id=user_id,
        )
        if not self.policy.is_cacheable(request):
            # 路由名可能取自类视图的限定名，如 OrderController.search
            if len(names) < 2 or not self.policy.is_cacheable(
                RequestInfo(path, method, names[1], user_id)
            ):
                return None

        resource = self._resolve_resource(names, path)
        if not resource:
            logger.debug(f"No resource resolved for {method} {path}, routes={names}")
            return None

        headers = dict(scope.get("headers", []))
        content_type = headers.get(b"content-type", b"").decode("latin-1")
        body = await self._read_body(receive)
        state["body"] = body

        body_fields = _body_fields(body, content_type)
        query_fields = _query_fields(scope.get("query_string", b""))

        # 控制参数不参与缓存键，请求体中的优先
        control = body_fields.pop(_CONTROL_FIELD, None)
        control = control if isinstance(control, dict) else {}
        query_no_cache = query_fields.pop(_NO_CACHE, None)
        query_update = query_fields.pop(_UPDATE_CACHE, None)
        no_cache = _truthy(_first(control.get(_NO_CACHE), query_no_cache))
        update_targets = _as_targets(_first(control.get(_UPDATE_CACHE), query_update))

        if update_targets:
            purged = await run_in_threadpool(self.service.flush, update_targets)
            logger.debug(f"updateCache purged {purged} keys for {update_targets}")

        context = RequestContext(
            resource_path=resource,
            method=method,
            user_id=user_id,
            body_fields=body_fields,
            query_fields=query_fields,
        )
        key = generate_key(self.settings.pattern, context, self.identity)
        return key, context, no_cache

    async def _lookup(self, key: str) -> Optional[Any]:
        raw = await run_in_threadpool(self.service.fetch, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug(f"Cached payload is not JSON, ignored: {key}")
            return None

    @staticmethod
    def _replay(body: bytes, receive):
        sent = False

        async def replay_receive():
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay_receive

    async def _send_cached(self, send, payload: Any):
        if isinstance(payload, dict) and isinstance(payload.get("cache"), dict):
            payload["cache"]["cached"] = True
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": 200,
            "headers": _replace_headers(
                [(b"content-type", b"application/json")], body, hit=True
            ),
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })

    async def _call_and_store(self, scope, receive, send, key: str, context: RequestContext):
        start_message: Optional[Dict[str, Any]] = None
        chunks: List[bytes] = []
        passthrough = False

        async def send_wrapper(message):
            nonlocal start_message, passthrough
            if passthrough:
                await send(message)
                return

            if message["type"] == "http.response.start":
                headers = dict(message.get("headers", []))
                content_type = headers.get(b"content-type", b"").decode("latin-1")
                if message.get("status") != 200 or "application/json" not in content_type:
                    passthrough = True
                    await send(message)
                    return
                start_message = message
                return

            if message["type"] == "http.response.body":
                chunks.append(message.get("body", b""))
                if message.get("more_body", False):
                    return
                await self._finish(send, start_message, b"".join(chunks), key, context)
                return

            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _finish(self, send, start_message, body: bytes, key: str, context: RequestContext):
        headers = list(start_message.get("headers", []))
        try:
            content = json.loads(body.decode("utf-8"))
            if isinstance(content, dict) and self.settings.options.expose_metadata:
                content[_CONTROL_FIELD] = self._metadata(key, context)
                body = json.dumps(content, ensure_ascii=False).encode("utf-8")
            if content:
                stored = await run_in_threadpool(
                    self.service.store, key, body.decode("utf-8")
                )
                logger.debug(f"Response cached={stored}: {key}")
        except Exception as e:
            logger.debug(f"Cache store skipped: {type(e).__name__}: {e}")

        await send({
            **start_message,
            "headers": _replace_headers(headers, body, hit=False),
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })


__all__ = [
    "ResponseCacheMiddleware",
    "CACHE_HEADER",
]
