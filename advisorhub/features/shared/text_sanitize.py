from __future__ import annotations

import logging
import re
from dataclasses import dataclass

_NUL_RE = re.compile("\x00")
_SURROGATE_RE = re.compile("[\ud800-\udfff]")


@dataclass
class SanitizationStats:
    nul_removed: int = 0
    surrogates_replaced: int = 0

    @property
    def changed(self) -> bool:
        return self.nul_removed > 0 or self.surrogates_replaced > 0


def sanitize_text(value: str, *, strip: bool = False) -> tuple[str, SanitizationStats]:
    """Make text safe for a Postgres TEXT column.

    NUL bytes are dropped and lone surrogates (left behind by lenient decoders)
    are replaced with U+FFFD.
    """
    stats = SanitizationStats()
    sanitized, stats.nul_removed = _NUL_RE.subn("", value)
    sanitized, stats.surrogates_replaced = _SURROGATE_RE.subn("\ufffd", sanitized)
    if strip:
        sanitized = sanitized.strip()
    return sanitized, stats


def sanitize_optional_text(
    value: str | None,
    *,
    strip: bool = False,
) -> tuple[str | None, SanitizationStats]:
    if value is None:
        return None, SanitizationStats()
    return sanitize_text(value, strip=strip)


def log_sanitization_stats(
    logger: logging.Logger,
    *,
    location: str,
    stats: SanitizationStats,
) -> None:
    if not stats.changed:
        return
    logger.debug(
        "Sanitized text write for %s (nul_removed=%d, surrogates_replaced=%d).",
        location,
        stats.nul_removed,
        stats.surrogates_replaced,
    )


__all__ = [
    "SanitizationStats",
    "log_sanitization_stats",
    "sanitize_optional_text",
    "sanitize_text",
]
