import logging
import os
import sys

ENV_LEVEL = "VIEW_ACTIONS_LOG_LEVEL"
ENV_CATEGORIES = "VIEW_ACTIONS_LOG_CATS"

_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
_DATEFMT = "%H:%M:%S"


class CategoryFilter(logging.Filter):
    """Pass records whose last logger-name part is one of `categories`.

    view_actions logs under `view_actions.<category>` (engine, command, event,
    faults, target, extension, settings).
    """

    def __init__(self, categories: set[str]) -> None:
        super().__init__()
        self.categories = frozenset(categories)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.rpartition(".")[2] in self.categories


def _level_from_env(default: int) -> int:
    name = (os.getenv(ENV_LEVEL) or "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    # getLevelName() answers "Level X" for names it does not know.
    return level if isinstance(level, int) else default


def _categories_from_env() -> set[str]:
    raw = os.getenv(ENV_CATEGORIES) or ""
    return {part.strip() for part in raw.split(",") if part.strip()}


def _stderr_handler(logger: logging.Logger) -> logging.StreamHandler:
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            return handler
    handler = logging.StreamHandler(stream=sys.stderr)
    logger.addHandler(handler)
    return handler


def setup_logger(level: int = logging.INFO, name: str = "view_actions") -> logging.Logger:
    """Create or refresh the package logger.

    Environment overrides are read on every call, so a host that sets them
    after import still gets them. Repeated calls reuse the one stderr handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level_from_env(level))

    handler = _stderr_handler(logger)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    handler.filters.clear()
    categories = _categories_from_env()
    if categories:
        handler.addFilter(CategoryFilter(categories))

    # Hosts own the root logger.
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
