from __future__ import annotations

import logging
import os
import sys

import structlog

from .config import ENV_DEBUG


def configure_logging(debug: bool = False) -> None:
	"""Console logging to stderr; ``LARADOC_DEBUG`` turns on debug events."""
	debug = debug or os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes")
	level = logging.DEBUG if debug else logging.INFO
	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="%H:%M:%S"),
			structlog.dev.ConsoleRenderer(),
		],
		wrapper_class=structlog.make_filtering_bound_logger(level),
		logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
		cache_logger_on_first_use=False,
	)
