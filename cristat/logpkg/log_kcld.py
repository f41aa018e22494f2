"""
Process-wide logger for cristat.

Modules create ``logger = LogKCld()`` at import time and wrap functions with
``@log_to_file(logger)`` to get entry/exit/exception traces at DEBUG level.
Handlers and level come from the ``logging`` section of config.json; with no
``log_file`` configured records only go to whatever handlers the host
application installs.
"""
import functools
import logging
from typing import Optional

from cristat.utils.ReadConfig import ReadConfig
from cristat.utils.singleton import Singleton

LOGGER_NAME = "cristat"


class LogKCld(metaclass=Singleton):

    def __init__(self, name: str = LOGGER_NAME, config: Optional[dict] = None) -> None:
        if config is None:
            config = ReadConfig().logging_config
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO))
        self._logger.addHandler(logging.NullHandler())

        if log_file := config.get("log_file"):
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter(config.get("format")))
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._logger.exception(msg, *args, **kwargs)


def log_to_file(logger: LogKCld):
    """Trace calls of the wrapped function; exceptions are logged then re-raised."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.debug(f"-> {func.__qualname__}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.debug(f"<- {func.__qualname__} raised {type(e).__name__}: {e}")
                raise
            logger.debug(f"<- {func.__qualname__}")
            return result
        return wrapper
    return decorator
