"""
Tests for application setup.
"""
import logging

import pytest

from main import configure_logging, create_app


@pytest.fixture
def bare_root_logger(monkeypatch):
    """Give the test a root logger with no handlers and restore it afterwards."""
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    level = root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.setLevel(level)


def test_create_app_configures_logging(test_settings, bare_root_logger, tmp_path):
    log_file = tmp_path / "auth.log"
    settings = test_settings.model_copy(update={"LOG_FILE": str(log_file), "LOG_LEVEL": "DEBUG"})

    create_app(settings)

    assert bare_root_logger.level == logging.DEBUG
    file_handlers = [h for h in bare_root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(log_file)


def test_configure_logging_keeps_existing_handlers(test_settings, monkeypatch):
    root = logging.getLogger()
    before = [logging.NullHandler()]
    monkeypatch.setattr(root, "handlers", list(before))

    configure_logging(test_settings.model_copy(update={"LOG_FILE": "unused.log"}))

    assert root.handlers == before
