import logging
import sys
from pathlib import Path
from typing import Iterable, Optional
from config.settings import settings

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SecretMaskingFilter(logging.Filter):
    """
    Replaces configured secrets in rendered log messages with "***".

    Playwright launch errors echo the proxy options back, so the proxy
    password can show up in messages we never formatted ourselves.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, "***")
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(Path(path), encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    if hasattr(handler.stream, 'reconfigure'):
        handler.stream.reconfigure(encoding='utf-8')
    return handler


def setup_logger(name: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach the file and console handlers to a module logger once.

    The file handler is skipped when LOG_FILE is empty. Records pass
    through SecretMaskingFilter before any handler sees them.
    """
    logger = logging.getLogger(name or __name__)

    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.addFilter(SecretMaskingFilter([settings.PROXY_PASSWORD]))

    log_file = settings.LOG_FILE if log_file is None else log_file
    if log_file:
        logger.addHandler(_file_handler(log_file))
    logger.addHandler(_console_handler())

    return logger


def get_logger(name: str = None) -> logging.Logger:
    return setup_logger(name)
