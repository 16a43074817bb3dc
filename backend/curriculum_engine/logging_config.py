import logging
from logging.config import dictConfig
from typing import Optional

from .config import Settings, get_settings

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Loggers that narrate individual DFS steps and chain walks.
TRAVERSAL_LOGGERS = (
    "curriculum_engine.path_planner",
    "curriculum_engine.navigator",
)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the engine's log format and levels from ``Settings``."""
    settings = settings or get_settings()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": settings.log_level.upper(),
            },
        }
    )

    traversal_level = logging.DEBUG if settings.debug_traversal else logging.NOTSET
    for name in TRAVERSAL_LOGGERS:
        logging.getLogger(name).setLevel(traversal_level)
    if settings.debug_traversal:
        logging.getLogger(__name__).info("Traversal debug logging enabled for %s", ", ".join(TRAVERSAL_LOGGERS))


__all__ = ["DEFAULT_LOG_FORMAT", "TRAVERSAL_LOGGERS", "configure_logging"]
