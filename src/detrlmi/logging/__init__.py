from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from detrlmi.config.models import FileLoggingSettings, LoggingSettings

PACKAGE_LOGGER = "detrlmi"

_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers added by the last init_logging call; only these are replaced on re-init.
_installed: list[logging.Handler] = []


def _resolve_level(name: str, *, field: str) -> int:
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ValueError(f"Invalid logging level for {field}: {name}")
    return level


def _file_handler(settings: FileLoggingSettings, formatter: logging.Formatter) -> Optional[logging.Handler]:
    file_path = settings.path.strip()
    if not file_path:
        return None
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=settings.rotation.backup_count,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setFormatter(formatter)
    return handler


def init_logging(settings: LoggingSettings) -> None:
    """
    Route log records to the console and, optionally, a daily rotating file.

    `settings.level` applies to the `detrlmi` loggers; `settings.library_level` applies
    to every other logger through the root, which keeps aiohttp and matplotlib quiet
    while the downloader logs at INFO or DEBUG. Calling this again replaces the handlers
    from the previous call and leaves handlers installed by anyone else alone.
    """
    package_level = _resolve_level(settings.level, field="logging.level")
    library_level = _resolve_level(settings.library_level, field="logging.library_level")

    root_logger = logging.getLogger()
    for handler in _installed:
        root_logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    root_logger.setLevel(library_level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)
    _installed.append(stream_handler)

    try:
        file_handler = _file_handler(settings.file, formatter)
    except OSError:
        logging.getLogger(__name__).error(
            "File logging handler failed to initialize. path=%s", settings.file.path, exc_info=True
        )
        return
    if file_handler is not None:
        root_logger.addHandler(file_handler)
        _installed.append(file_handler)


__all__ = ["PACKAGE_LOGGER", "init_logging"]
