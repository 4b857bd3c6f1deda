"""
日志工具模块
提供简化的日志配置功能

缓存组件的失败只通过日志观察（debug 模式下输出 DEBUG 级别的详细信息），
不会以异常形式传递给请求处理流程。
"""

import inspect
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Any


# 组件根日志器名称
ROOT_LOGGER_NAME = "ycache"


class MicrosecondFormatter(logging.Formatter):
    """支持微秒精度的日志格式化器"""

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        if datefmt:
            s = time.strftime(datefmt, ct)
        else:
            s = time.strftime("%Y-%m-%d %H:%M:%S", ct)
        # 添加微秒部分（6位数）
        return "%s.%06d" % (s, (record.created - int(record.created)) * 1000000)


# 默认日志格式
DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"


def create_formatter(
    log_format: str = None,
    datefmt: str = "%Y-%m-%d %H:%M:%S",
    use_microseconds: bool = True
) -> logging.Formatter:
    """创建日志格式化器

    Args:
        log_format: 日志格式字符串
        datefmt: 时间格式
        use_microseconds: 是否使用微秒精度

    Returns:
        日志格式化器
    """
    fmt = log_format or DEFAULT_LOG_FORMAT
    if use_microseconds:
        return MicrosecondFormatter(fmt=fmt, datefmt=datefmt)
    return logging.Formatter(fmt, datefmt=datefmt)


def setup_logger(
    name: str = None,
    level: str = "INFO",
    log_file: str = None,
    log_format: str = None,
    console: bool = True,
    use_microseconds: bool = True,
    propagate: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """设置并返回配置好的日志记录器

    Args:
        name: 日志记录器名称，默认为root logger
        level: 日志级别，可选：DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_file: 日志文件路径，如果不指定则不写入文件
        log_format: 日志格式，如果不指定则使用默认格式
        console: 是否输出到控制台
        use_microseconds: 是否使用微秒精度时间戳
        propagate: 是否传播到父日志器
        max_bytes: 单个日志文件最大字节数
        backup_count: 备份文件数量

    Returns:
        配置好的日志记录器

    使用示例:
        from ycache.log import setup_logger

        logger = setup_logger("ycache", level="DEBUG", log_file="logs/cache.log")
    """
    _logger = logging.getLogger(name) if name else logging.getLogger()
    _logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    _logger.propagate = propagate

    # 清除现有的处理器
    _logger.handlers.clear()

    formatter = create_formatter(log_format, use_microseconds=use_microseconds)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        _logger.addHandler(console_handler)

    if log_file:
        # 确保日志目录存在
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        _logger.addHandler(file_handler)

    return _logger


def setup_cache_logger(config: Any = None, debug: bool = None, **kwargs) -> logging.Logger:
    """根据缓存配置设置 ycache 日志器

    debug 打开时输出 DEBUG 级别（所有被吞掉的缓存失败都会在这里出现），
    否则只输出 WARNING 及以上。

    Args:
        config: 缓存配置对象（CacheSettings），提供后从中读取 debug
        debug: 显式指定 debug，优先于 config
        **kwargs: 透传给 setup_logger 的其他参数

    Returns:
        ycache 日志记录器
    """
    if debug is None:
        debug = bool(getattr(config, "debug", False))

    return setup_logger(
        name=ROOT_LOGGER_NAME,
        level="DEBUG" if debug else "WARNING",
        **kwargs
    )


def get_logger(name: str = None) -> logging.Logger:
    """获取日志记录器，支持自动推断模块名

    无参数调用时，自动从调用栈获取模块的 __name__ 作为日志器名称。
    有参数调用时，若为不含点号的简写，自动添加 'ycache.' 前缀。

    使用示例:
        logger = get_logger()              # 在 ycache/service.py 中 -> "ycache.service"
        logger = get_logger("store")       # -> "ycache.store"
        logger = get_logger("redis.conn")  # -> "redis.conn"（含点号不加前缀）
    """
    if name is None:
        frame = inspect.currentframe()
        if frame is not None and frame.f_back is not None:
            name = frame.f_back.f_globals.get('__name__', ROOT_LOGGER_NAME)
        else:
            name = ROOT_LOGGER_NAME
    elif name != ROOT_LOGGER_NAME and '.' not in name:
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


# 通用日志记录器
logger = logging.getLogger(ROOT_LOGGER_NAME)
