import logging
from logging.handlers import TimedRotatingFileHandler

from bunder_bot.logging_config import configure_logging


def test_configure_logging_writes_daily_file(tmp_path, monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    configure_logging(str(tmp_path), "debug")
    try:
        assert root.level == logging.DEBUG
        files = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(files) == 1
        assert files[0].baseFilename == str(tmp_path / "bunder_bot.log")
        assert files[0].backupCount == 14

        configure_logging(str(tmp_path))
        assert len(root.handlers) == 2
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for h in root.handlers:
            h.close()


def test_empty_log_dir_means_console_only(tmp_path, monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    configure_logging("", logging.WARNING)
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], TimedRotatingFileHandler)
