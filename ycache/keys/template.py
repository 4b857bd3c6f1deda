"""缓存键模板

模板由静态标识占位符和请求占位符组成:
    - @PREFIX, @UUID, @NAME: 静态标识，区分不同应用 / 部署 / 环境
    - $PATH, $METHOD, $USER_ID: 资源名、HTTP 方法、当前用户 ID
    - $BODY_INPUT, $QUERY_INPUT: 请求体 / 查询参数的摘要

默认模板:
    @PREFIX:@UUID:@NAME:$PATH:$METHOD:$USER_ID:$BODY_INPUT:$QUERY_INPUT

使用示例:
    from ycache.keys import generate_key, KeyIdentity, RequestContext

    key = generate_key(
        "default",
        RequestContext(resource_path="orders", method="get", user_id=7),
        KeyIdentity(prefix="shop_", uuid="a1", name="shop"),
    )
    # "shop_:a1:shop:orders:GET:7:-:-"
"""

import hashlib
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union


DEFAULT_KEY_TEMPLATE = "@PREFIX:@UUID:@NAME:$PATH:$METHOD:$USER_ID:$BODY_INPUT:$QUERY_INPUT"
DEFAULT_TEMPLATE_SENTINEL = "default"

GUEST_USER = "guest"
EMPTY_INPUT = "-"


@dataclass(frozen=True)
class KeyIdentity:
    """静态标识"""
    prefix: str = "app_local_"
    uuid: str = "-"
    name: str = "-"


@dataclass(frozen=True)
class RequestContext:
    """参与生成缓存键的请求信息"""
    resource_path: str
    method: str = "GET"
    user_id: Optional[Union[int, str]] = None
    body_fields: Optional[Mapping[str, Any]] = field(default=None, hash=False)
    query_fields: Optional[Mapping[str, Any]] = field(default=None, hash=False)


def digest_fields(fields: Optional[Mapping[str, Any]]) -> str:
    """对字段做规范化序列化后取 md5

    序列化时按 key 排序，参数顺序不影响结果；空字段返回 "-"。
    """
    if not fields:
        return EMPTY_INPUT
    canonical = json.dumps(
        fields,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


_IDENTITY_TOKENS: Dict[str, Callable[[KeyIdentity], str]] = {
    "@PREFIX": lambda identity: identity.prefix,
    "@UUID": lambda identity: identity.uuid,
    "@NAME": lambda identity: identity.name,
}

_REQUEST_TOKENS: Dict[str, Callable[[RequestContext], str]] = {
    "$PATH": lambda ctx: ctx.resource_path,
    "$METHOD": lambda ctx: ctx.method.upper(),
    "$USER_ID": lambda ctx: GUEST_USER if ctx.user_id is None or ctx.user_id == "" else str(ctx.user_id),
    "$BODY_INPUT": lambda ctx: digest_fields(ctx.body_fields),
    "$QUERY_INPUT": lambda ctx: digest_fields(ctx.query_fields),
}

# 只匹配已知占位符，长的优先；占位符后紧跟的 "_" 或字母不属于占位符
_TOKEN_RE = re.compile(
    "|".join(
        re.escape(token)
        for token in sorted({**_IDENTITY_TOKENS, **_REQUEST_TOKENS}, key=len, reverse=True)
    ),
    re.IGNORECASE,
)


def resolve_template(template: Optional[str]) -> str:
    """未配置或配置为 "default" 时返回内置模板"""
    if not template or template == DEFAULT_TEMPLATE_SENTINEL:
        return DEFAULT_KEY_TEMPLATE
    return template


def generate_key(
    template: Optional[str],
    context: RequestContext,
    identity: KeyIdentity,
) -> str:
    """按模板生成缓存键

    从左到右替换已知的 @ / $ 占位符，大小写不敏感，
    占位符可以与其他字符直接相连（如 @PREFIX_$PATH）；
    无法识别的占位符按原样保留。相同输入总是得到相同的键。

    Args:
        template: 键模板，"default" 或空使用 DEFAULT_KEY_TEMPLATE
        context: 请求信息
        identity: 静态标识

    Returns:
        缓存键
    """
    def _substitute(match: "re.Match") -> str:
        token = match.group(0)
        lookup = token.upper()
        if lookup in _IDENTITY_TOKENS:
            return _IDENTITY_TOKENS[lookup](identity)
        if lookup in _REQUEST_TOKENS:
            return _REQUEST_TOKENS[lookup](context)
        return token

    return _TOKEN_RE.sub(_substitute, resolve_template(template))


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
]
