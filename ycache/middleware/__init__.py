"""中间件模块

- ResponseCacheMiddleware: 响应缓存（纯 ASGI）
"""

from .response_cache import CACHE_HEADER, ResponseCacheMiddleware

__all__ = [
    "ResponseCacheMiddleware",
    "CACHE_HEADER",
]
