"""日志工具测试"""

import logging

from ycache.config import CacheSettings
from ycache.log import (
    MicrosecondFormatter,
    ROOT_LOGGER_NAME,
    create_formatter,
    get_logger,
    setup_cache_logger,
    setup_logger,
)


class TestGetLogger:
    """测试 get_logger 名称推断"""

    def test_infer_module_name(self):
        assert get_logger().name == __name__

    def test_short_name_prefixed(self):
        assert get_logger("store").name == "ycache.store"

    def test_dotted_name_kept(self):
        assert get_logger("redis.conn").name == "redis.conn"

    def test_root_name(self):
        assert get_logger(ROOT_LOGGER_NAME).name == "ycache"

    def test_library_module_logger(self):
        from ycache import service

        assert service.logger.name == "ycache.service"


class TestSetupCacheLogger:
    """测试 setup_cache_logger"""

    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER_NAME).handlers.clear()

    def test_debug_from_settings(self):
        logger = setup_cache_logger(CacheSettings(debug=True), console=False)

        assert logger.name == "ycache"
        assert logger.level == logging.DEBUG

    def test_warning_by_default(self):
        logger = setup_cache_logger(CacheSettings(), console=False)
        assert logger.level == logging.WARNING

    def test_explicit_debug_wins(self):
        logger = setup_cache_logger(CacheSettings(debug=False), debug=True, console=False)
        assert logger.level == logging.DEBUG

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "cache.log"
        logger = setup_cache_logger(debug=True, console=False, log_file=str(log_file))

        get_logger("store").debug("scan failed")
        for handler in logger.handlers:
            handler.flush()

        assert "scan failed" in log_file.read_text(encoding="utf-8")


class TestFormatter:
    def test_microseconds(self):
        record = logging.LogRecord("ycache", logging.INFO, __file__, 1, "msg", None, None)
        record.created = 1700000000.123456

        text = MicrosecondFormatter(fmt="%(asctime)s").format(record)

        assert text.endswith(".123456")

    def test_plain_formatter(self):
        assert not isinstance(create_formatter(use_microseconds=False), MicrosecondFormatter)

    def test_setup_logger_replaces_handlers(self):
        name = "ycache.test_handlers"
        setup_logger(name, console=True)
        logger = setup_logger(name, console=True)
        assert len(logger.handlers) == 1
        logger.handlers.clear()
