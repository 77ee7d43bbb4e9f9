"""
Logger - Shared logger accessor for geosim modules

Every component gets its logger through get_logger(__name__) so that all
output hangs off the single "geosim" root logger.
"""

import logging
from typing import Optional, Union

ROOT_LOGGER_NAME = "geosim"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(level: Union[int, str] = logging.INFO,
                      fmt: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the geosim root logger and set its level"""

    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root.setLevel(level)

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _configured = True

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the geosim namespace"""

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
