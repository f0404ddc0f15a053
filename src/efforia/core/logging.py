"""Log sanitizing for an editor-embedded process.

efforia never handles document text itself, but the editor process it runs
in may log around it.  :class:`SanitizingFilter` rewrites any
``<content key>=value`` pair in a record's message, and blanks record
attributes passed via ``extra=`` under a content key, so that nothing named
in :data:`~efforia.core.defaults.CONTENT_KEYS` reaches a handler.
"""

from __future__ import annotations

import logging
import re
from typing import Final

from efforia.core.defaults import CONTENT_KEYS, DEFAULT_LOG_LEVEL

REDACTED: Final[str] = "[REDACTED]"

# Longest names first so ``raw_keystrokes`` is never cut to ``raw_keys``.
_CONTENT_PAIR: Final[re.Pattern[str]] = re.compile(
    r"\b(?P<key>"
    + "|".join(re.escape(k) for k in sorted(CONTENT_KEYS, key=len, reverse=True))
    + r")\s*[=:]\s*(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)


def redact_message(message: str) -> str:
    """Replace every ``key=value`` / ``key: value`` with a content key by ``key=[REDACTED]``.

    Quoted values are redacted whole; unquoted values up to the next
    whitespace.
    """
    return _CONTENT_PAIR.sub(lambda m: f"{m.group('key')}={REDACTED}", message)


class SanitizingFilter(logging.Filter):
    """Redacts content from log records in place; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Format first so content in %-args is caught as well.
        record.msg = redact_message(record.getMessage())
        record.args = None
        for key in CONTENT_KEYS.intersection(vars(record)):
            setattr(record, key, REDACTED)
        return True


def install_sanitizing_filter(
    logger: logging.Logger | None = None,
    *,
    handler_level: bool = False,
) -> SanitizingFilter:
    """Attach a :class:`SanitizingFilter` to *logger* (root by default).

    Args:
        logger: Target logger.
        handler_level: Install on each of the logger's handlers instead,
            which also covers records propagated from child loggers.

    Owners that already carry a sanitizing filter are skipped, so calling
    this repeatedly is safe.

    Returns:
        The filter instance, for later removal.
    """
    filt = SanitizingFilter()
    target = logger or logging.getLogger()
    owners = target.handlers if handler_level else [target]
    for owner in owners:
        if not any(isinstance(f, SanitizingFilter) for f in owner.filters):
            owner.addFilter(filt)
    return filt


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Root logging setup for the CLI: stderr handler, sanitized."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    install_sanitizing_filter(handler_level=True)
