"""
logging_config.py

Console plus daily-rotating file logging for the bot process.
"""
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# loggers that would otherwise print request URLs containing the bot token
_NOISY = ("httpx", "httpcore", "urllib3")


def configure_logging(log_dir: Optional[str] = None, level: Union[int, str] = logging.INFO):
    root = logging.getLogger()
    if root.handlers:
        return  # already configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    fmt = logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s')

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_dir != "":
        log_path = Path(log_dir or Path.cwd() / 'logs')
        log_path.mkdir(parents=True, exist_ok=True)
        # Rotating log file per day, keep 14 days
        fh = TimedRotatingFileHandler(
            str(log_path / 'bunder_bot.log'), when='midnight', interval=1, backupCount=14, utc=True
        )
        fh.setFormatter(fmt)
        root.addHandler(fh)

    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ['configure_logging']
