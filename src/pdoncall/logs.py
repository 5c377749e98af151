"""Logging setup driven by the CLI verbosity flags."""

from __future__ import annotations

import logging

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler


class LogConfig(BaseModel):
    verbose: int = 0
    warn: bool = False
    quiet: bool = False

    @property
    def level(self) -> int:
        if self.quiet:
            return logging.ERROR
        if self.warn:
            return logging.WARNING
        if self.verbose == 0:
            return logging.INFO
        return logging.DEBUG

    @property
    def trace_http(self) -> bool:
        """``-vv`` and up also shows the HTTP client's own request logs."""
        return not (self.quiet or self.warn) and self.verbose >= 2


def setup_logging(config: LogConfig, console: Console | None = None) -> None:
    """Configure the root logger with a single Rich handler on stderr.

    Args:
        config: Verbosity selection from the command line.
        console: Console to log to. Defaults to a stderr console.
    """
    if console is None:
        console = Console(stderr=True)

    logger = logging.getLogger()
    logger.setLevel(config.level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=config.verbose > 0)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)

    http_level = logging.DEBUG if config.trace_http else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)
