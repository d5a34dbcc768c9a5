from __future__ import annotations

import logging

from copilot_notify.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings) -> None:
    """Install the root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    if getattr(configure_logging, "_done", False):
        return
    handler: logging.Handler
    if settings.log_file:
        handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    # httpx logs every request line at INFO, including the URL
    logging.getLogger("httpx").setLevel(logging.WARNING)
    configure_logging._done = True  # type: ignore[attr-defined]
