"""
Logger wrapper that carries merge context.
"""

import logging


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger(__name__, table_a="customers_2023")
        logger.info("Loaded rows", rows=1200)
        # Output includes both table_a and rows
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(level, msg, *args, extra={**self.context, **kwargs})

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)
