import sys

import pytest
from loguru import logger

from uisuites.framework.log_config import init_logger, reset_logger


@pytest.fixture(autouse=True)
def _restore_logger():
    reset_logger()
    yield
    reset_logger()
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_records_thread_name(make_config, tmp_path):
    log_file = tmp_path / "logs" / "harness.log"
    config = make_config({"logging": {"level": "debug", "file": str(log_file)}})

    init_logger(config)
    logger.info("session ready")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "session ready" in content
    assert "MainThread" in content
    assert "<green>" not in content


def test_second_init_is_ignored(make_config, tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"

    init_logger(make_config({"logging.file": str(first)}))
    init_logger(make_config({"logging.file": str(second)}))
    logger.warning("only once")
    logger.remove()

    assert "only once" in first.read_text(encoding="utf-8")
    assert not second.exists()
