"""Root logger setup for ``occultengine`` command line runs.

Failures across the package are logged with ``extra={"err_code": ...}``;
the handler installed here prints that code next to the logger name so
CLI output can be grepped for a specific failure.
"""

from __future__ import annotations

import logging
import os
from typing import IO, Any

__all__ = ["LEVEL_ENV_VARS", "configure_logging"]

LEVEL_ENV_VARS = ("OCCULTENGINE_LOG_LEVEL", "LOG_LEVEL")

_FORMAT = "%(asctime)s %(levelname)s [%(name)s]%(err_tag)s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Ephemeris libraries that chatter at INFO while loading kernels.
_QUIET_LOGGERS = ("skyfield", "jplephem")


class _ErrorCodeFilter(logging.Filter):
    """Expose ``err_code`` as a ``[CODE]`` tag, empty when absent."""

    def filter(self, record: logging.LogRecord) -> bool:
        code = getattr(record, "err_code", None)
        record.err_tag = f" [{code}]" if code else ""
        return True


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        level = next((os.environ[name] for name in LEVEL_ENV_VARS if os.environ.get(name)), None)
    if isinstance(level, int):
        return level
    text = (level or "").strip()
    if text.isdigit():
        return int(text)
    resolved = logging.getLevelName(text.upper()) if text else None
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(
    *,
    level: str | int | None = None,
    stream: IO[str] | None = None,
    **kwargs: Any,
) -> int:
    """Install a single tagged stream handler on the root logger.

    ``level`` accepts a level name or number; when omitted the first set
    variable of :data:`LEVEL_ENV_VARS` is used, and anything unparseable
    falls back to ``WARNING``.  Remaining ``kwargs`` go to
    :func:`logging.basicConfig`.  Returns the effective level.
    """

    effective = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.addFilter(_ErrorCodeFilter())
    handler.setFormatter(logging.Formatter(kwargs.pop("format", _FORMAT), kwargs.pop("datefmt", _DATEFMT)))
    logging.basicConfig(level=effective, handlers=[handler], force=kwargs.pop("force", True), **kwargs)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(effective, logging.WARNING))
    return effective
