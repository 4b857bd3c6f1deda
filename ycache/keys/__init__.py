"""缓存键与路由规则

- generate_key: 按模板生成缓存键
- match_pattern / is_whitelisted / is_blacklisted / route_decision: 路由黑白名单
"""

from .template import (
    DEFAULT_KEY_TEMPLATE,
    DEFAULT_TEMPLATE_SENTINEL,
    GUEST_USER,
    EMPTY_INPUT,
    KeyIdentity,
    RequestContext,
    digest_fields,
    resolve_template,
    generate_key,
)
from .patterns import (
    RoutePolicy,
    normalize_path,
    match_pattern,
    is_whitelisted,
    is_blacklisted,
    route_decision,
)

__all__ = [
    "DEFAULT_KEY_TEMPLATE",
    "DEFAULT_TEMPLATE_SENTINEL",
    "GUEST_USER",
    "EMPTY_INPUT",
    "KeyIdentity",
    "RequestContext",
    "digest_fields",
    "resolve_template",
    "generate_key",
    "RoutePolicy",
    "normalize_path",
    "match_pattern",
    "is_whitelisted",
    "is_blacklisted",
    "route_decision",
]
