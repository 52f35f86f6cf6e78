"""Pure text, time and URL normalization helpers.

Nothing in here touches the browser. The resolver, the pipeline and the
deduplication gate all lean on these functions, so they must never raise on
odd input: unparseable values come back as ``None`` (or unchanged, for URLs).
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit, urlunsplit

# Interaction-button labels and other chrome that shows up inside post markup.
# Matched case-insensitively, either exactly or as a prefix.
UI_TEXT_PATTERNS: tuple[str, ...] = (
    # English
    "Like", "Comment", "Share", "See More", "See Less", "Write a comment",
    "View more comments", "View previous comments", "Reply", "React",
    # French
    "J'aime", "Commenter", "Partager", "En voir plus", "En voir moins",
    "Écrivez un commentaire", "Répondre", "Réagir",
    # Portuguese
    "Curtir", "Comentar", "Compartilhar", "Ver mais", "Responder",
)

_UI_TEXT_LOWER = tuple(p.lower() for p in UI_TEXT_PATTERNS)

_NOW_TOKENS = ("just now", "right now", "agora", "à l'instant")

_COUNT_RE = re.compile(r"\d[\d,]*")

# Checked in this order; the first unit that matches wins.
_MAGNITUDE = r"(\d+)\s*"
_UNIT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("minutes", re.compile(_MAGNITUDE + r"(?:minutes?|mins?|m)(?![a-z])")),
    ("hours", re.compile(_MAGNITUDE + r"(?:hours?|hrs?|h)(?![a-z])")),
    ("days", re.compile(_MAGNITUDE + r"(?:days?|d)(?![a-z])")),
    ("weeks", re.compile(_MAGNITUDE + r"(?:weeks?|wks?|w)(?![a-z])")),
    ("months", re.compile(_MAGNITUDE + r"(?:months?|mos?)(?![a-z])")),
    ("years", re.compile(_MAGNITUDE + r"(?:years?|yrs?|y)(?![a-z])")),
)

# Mobile host prefixes rewritten to the desktop host.
_MOBILE_HOST_PREFIXES = ("m.", "mobile.", "touch.")


def is_ui_text(text: str | None) -> bool:
    """Return True when ``text`` is interface chrome rather than user content."""
    if not text:
        return False
    lowered = text.strip().lower()
    if not lowered:
        return False
    return any(lowered == p or lowered.startswith(p) for p in _UI_TEXT_LOWER)


def clean_text(text: str | None) -> str:
    """Collapse rendered text into one line, dropping blank and UI-noise lines."""
    if not text:
        return ""
    lines = (line.strip() for line in text.splitlines())
    return " ".join(line for line in lines if line and not is_ui_text(line)).strip()


def parse_count(text: str | None) -> int | None:
    """Extract the first digit run from ``text`` ("1,234 likes" -> 1234)."""
    if not text:
        return None
    match = _COUNT_RE.search(text)
    if not match:
        return None
    return int(match.group(0).replace(",", ""))


def parse_relative_time(text: str | None, now: datetime | None = None) -> datetime | None:
    """Turn "2h", "3 days ago", "just now" into an absolute UTC timestamp.

    Returns None for anything it does not recognize.
    """
    if not text:
        return None
    if now is None:
        now = datetime.now(timezone.utc)

    lowered = text.strip().lower()
    if not lowered:
        return None
    if lowered == "now" or any(token in lowered for token in _NOW_TOKENS):
        return now
    if "yesterday" in lowered or "ontem" in lowered or "hier" in lowered:
        return now - timedelta(days=1)

    for unit, pattern in _UNIT_PATTERNS:
        match = pattern.search(lowered)
        if not match:
            continue
        amount = int(match.group(1))
        if unit == "months":
            return _shift_months(now, -amount)
        if unit == "years":
            return _shift_months(now, -12 * amount)
        return now - timedelta(**{unit: amount})
    return None


def _shift_months(value: datetime, months: int) -> datetime:
    """Move ``value`` by whole calendar months, clamping the day of month."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def canonical_timestamp(value: datetime | None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2024-01-01T10:00:00.000Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def canonicalize_url(url: str | None) -> str | None:
    """Reduce a link to scheme + desktop host + path.

    Query string and fragment are dropped. Input that does not parse as an
    absolute URL is returned unchanged.
    """
    if not url:
        return url
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return url
    if not parts.scheme or not hostname:
        return url

    netloc = hostname
    for prefix in _MOBILE_HOST_PREFIXES:
        if hostname.startswith(prefix):
            netloc = "www." + hostname[len(prefix):]
            break
    try:
        port = parts.port
    except ValueError:
        return url
    if port:
        netloc = f"{netloc}:{port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))
