"""日志模块

使用示例:
    from ycache.log import get_logger, setup_cache_logger

    logger = get_logger()
    setup_cache_logger(settings)   # settings.debug=True 时输出缓存调试日志
"""

from .logger import (
    setup_logger,
    setup_cache_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    ROOT_LOGGER_NAME,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_cache_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "ROOT_LOGGER_NAME",
    "logger",
    "get_logger",
]
