"""PDF and XMP date string parsing.

PDF date strings follow the form ``D:YYYYMMDDHHmmSSOHH'mm'`` where every
component after the year is optional and ``O`` is ``+``, ``-`` or ``Z``.
XMP dates are ISO 8601. Both are converted to timezone-aware datetimes;
strings without an offset are treated as UTC.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

PDF_DATE_PATTERN = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:([Zz+\-])(?:(\d{2})'?(?:(\d{2})'?)?)?)?"
)

# fromisoformat before Python 3.11 only takes 3 or 6 fraction digits
FRACTIONAL_SECONDS = re.compile(r"(T\d{2}:\d{2}:\d{2})\.\d+")


def parse_pdf_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a PDF date string.

    Args:
        value: Raw date string, e.g. ``D:20240115103000+01'00'``

    Returns:
        Timezone-aware datetime, or None when the string is empty or invalid
    """
    if not value:
        return None

    match = PDF_DATE_PATTERN.match(value.strip())
    if not match:
        return None

    year, month, day, hour, minute, second, sign, tz_hour, tz_minute = match.groups()

    try:
        tz = timezone.utc
        if sign in ("+", "-") and tz_hour:
            offset = timedelta(hours=int(tz_hour), minutes=int(tz_minute or 0))
            tz = timezone(offset if sign == "+" else -offset)
        return datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tz,
        )
    except ValueError:
        return None


def parse_xmp_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 date as found in XMP packets."""
    if not value:
        return None

    text = FRACTIONAL_SECONDS.sub(r"\1", value.strip())
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return parse_pdf_date(value)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_interval(seconds: float) -> str:
    """Render a time span the way examiners read it (e.g. "2 days, 3 hours")."""
    seconds = abs(int(seconds))
    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes and not days:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if not parts:
        parts.append(f"{secs} second{'s' if secs != 1 else ''}")
    return ", ".join(parts)
