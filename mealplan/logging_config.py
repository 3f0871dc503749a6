"""
Centralised logging configuration.

Call `configure_logging()` once at app startup. Each module should then use:

    import logging
    logger = logging.getLogger(__name__)

and pass context with ``extra={...}``. The formatter appends those fields to
the message as ``key=value`` pairs, e.g.

    2025-01-06T09:00:00 [WARNING] mealplan.planner: No eligible recipe ... date=2025-01-08 meal_type=dinner
"""

import logging
import sys

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

NOISY_LOGGERS = ("werkzeug", "flask_limiter", "limits")


class ContextFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{line} {pairs}"


def configure_logging(level: str = "INFO") -> None:
    """Route all logging to stdout at *level* with context-aware formatting."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    ))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Replace rather than stack handlers when called again
    root.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
