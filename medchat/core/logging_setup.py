from __future__ import annotations

import logging
from threading import Lock

from medchat.core.config import get_settings

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configure_lock = Lock()
_is_configured = False


def configure_logging() -> None:
    global _is_configured
    if _is_configured:
        return

    with _configure_lock:
        if _is_configured:
            return
        settings = get_settings()
        level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        logging.basicConfig(level=level, format=_LOG_FORMAT)
        # pypdf reports recoverable structure problems at WARNING for every page.
        logging.getLogger("pypdf").setLevel(max(level, logging.ERROR))
        _is_configured = True
