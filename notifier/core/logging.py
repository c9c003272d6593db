from __future__ import annotations

import logging

from notifier.core.config import settings


_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    resolved = (level or settings.log_level or "INFO").upper()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(resolved)
