"""Logging setup for the API process and the standalone reaper."""

from __future__ import annotations

import logging
import sys

from asgi_correlation_id import CorrelationIdFilter

from reservation_engine.core.config import get_settings

_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Attach a single stdout handler carrying the request correlation id."""
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel(level or settings.log_level)

    if any(getattr(handler, "_reservation_engine", False) for handler in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(CorrelationIdFilter(uuid_length=12, default_value="-"))
    handler._reservation_engine = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
