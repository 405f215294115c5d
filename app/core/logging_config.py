"""
Process logging setup.

Stdlib logging with one stream handler on the root logger. Every record gets a
correlation_id attribute (the request's X-Correlation-ID, or "-") so webhook
background processing can be traced per request.
"""

import logging

from app.middleware.correlation_id import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; safe to call again (e.g. on reload)."""
    root = logging.getLogger()
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    if not any(getattr(h, "_wa_lead_bot", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter())
        handler._wa_lead_bot = True
        root.addHandler(handler)

    root.setLevel(log_level)
