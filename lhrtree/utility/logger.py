import logging
import sys

from colorama import Fore
from tqdm.auto import tqdm

LEVEL_COLORS = {
    logging.DEBUG: Fore.YELLOW,
    logging.WARNING: Fore.RED,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED,
}


class TqdmLoggingHandler(logging.Handler):
    """Write records through ``tqdm.write`` so running progress bars are not broken."""

    def __init__(self, level=logging.INFO):
        super().__init__(level)

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stdout)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


class ColorFormatter(logging.Formatter):
    def format(self, record):
        color = LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # swap the configured format for the duration of this record
        format_orig = self._style._fmt
        self._style._fmt = color + format_orig + Fore.RESET
        try:
            return super().format(record)
        finally:
            self._style._fmt = format_orig


def setup_logger(level=logging.INFO, name='lhrtree'):
    """Route the package loggers through tqdm so that progress bars stay readable."""
    log = logging.getLogger(name)
    log.setLevel(level)
    if not any(isinstance(h, TqdmLoggingHandler) for h in log.handlers):
        handler = TqdmLoggingHandler(level)
        handler.setFormatter(ColorFormatter('[%(asctime)s][%(name)s][%(levelname)s] - %(message)s'))
        log.addHandler(handler)
    log.propagate = False
    return log


def get_logger_func(name):
    log = logging.getLogger(f'lhrtree.{name}' if name != 'lhrtree' else name)

    def _warn(*args, stacklevel: int = 2, **kwargs):
        kwargs["stacklevel"] = stacklevel
        log.warning(*args, **kwargs)

    def _info(*args, stacklevel: int = 2, **kwargs):
        kwargs["stacklevel"] = stacklevel
        log.info(*args, **kwargs)

    def _debug(*args, stacklevel: int = 2, **kwargs):
        kwargs["stacklevel"] = stacklevel
        log.debug(*args, **kwargs)

    return _warn, _info, _debug
