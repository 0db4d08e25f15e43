import json
import logging
import logging.handlers

from assistant_backend.app import create_app
from assistant_backend.core.rate_limit import RateLimiter
from assistant_backend.utils.logger import (
    ConsoleFormatter,
    clear_request_id,
    get_logger,
    init_logging,
    set_request_id,
)


def _root_handlers():
    return logging.getLogger().handlers


def test_create_app_configures_root_logging(settings, notifier):
    logging.getLogger().handlers.clear()

    create_app(settings, notifier=notifier, rate_limiter=RateLimiter(None))

    root = logging.getLogger()
    assert root.level == logging.INFO
    assert any(isinstance(h.formatter, ConsoleFormatter) for h in _root_handlers())
    assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in _root_handlers())


def test_init_logging_is_idempotent():
    init_logging(file_logging=False)
    init_logging(level="debug", file_logging=False)

    assert len(_root_handlers()) == 1
    assert logging.getLogger().level == logging.DEBUG
    init_logging(file_logging=False)


def test_file_log_is_json_with_request_id_and_extras(tmp_path):
    init_logging(log_dir=tmp_path, filename="test.log")
    set_request_id("abc123")
    try:
        get_logger("assistant_backend.test").info("Chat turn saved", extra={"session_id": "s1", "obj": object()})
    finally:
        clear_request_id()
        for handler in list(_root_handlers()):
            handler.close()
        init_logging(file_logging=False)

    entry = json.loads((tmp_path / "test.log").read_text(encoding="utf-8").splitlines()[-1])
    assert entry["msg"] == "Chat turn saved"
    assert entry["level"] == "INFO"
    assert entry["request_id"] == "abc123"
    assert entry["session_id"] == "s1"
    assert isinstance(entry["obj"], str)
