"""Log output for the stalewatch package, driven by LoggingConfig.

What each level shows:
- WARNING: estimator failures that fell back to the default estimate
  (stalewatch.estimator.client, one line per issue with the reason)
- INFO: each successful estimate (probability, days, risk)
- DEBUG: cache hits and joined in-flight estimates, skipped ineligible
  issues, estimator API error bodies, issue page fetches, metric summaries

Configure via config.yaml (logging.level, logging.format) or env (LOGGING_LEVEL, LOGGING_FORMAT).
Only the "stalewatch" logger tree is touched; the host application's root
logger is left alone.
"""

import logging

from stalewatch.config import LoggingConfig

LOGGER_NAME = "stalewatch"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; INFO if unknown."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class _StalewatchHandler(logging.StreamHandler):
    """Marker type so setup() can find and replace its own handler."""


class StalewatchLogging:
    """Attaches a stream handler to the stalewatch logger.

    setup() is idempotent: calling it again replaces the handler it added
    before instead of stacking another one. Records do not propagate to
    the root logger while the handler is installed, so lines are not
    printed twice by an application that also configures root.
    """

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(LOGGER_NAME)

    def setup(self) -> logging.Logger:
        logger = self.logger
        for handler in [h for h in logger.handlers if isinstance(h, _StalewatchHandler)]:
            logger.removeHandler(handler)
        handler = _StalewatchHandler()
        handler.setFormatter(logging.Formatter(self._format))
        logger.addHandler(handler)
        logger.setLevel(self._level)
        logger.propagate = False
        return logger

    def teardown(self) -> None:
        """Remove the handler and hand records back to the root logger."""
        logger = self.logger
        for handler in [h for h in logger.handlers if isinstance(h, _StalewatchHandler)]:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
