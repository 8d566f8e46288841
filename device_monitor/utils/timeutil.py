from datetime import datetime, timezone
from zoneinfo import ZoneInfo

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_zone(name):
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def format_timestamp(epoch, tz):
    """Render epoch seconds as the canonical server-local ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(epoch, tz).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value, tz):
    """
    Convert a stored ``lastUpdate`` back to epoch seconds.

    Accepts the canonical format, ISO 8601 (``Z`` suffix means UTC, naive
    values belong to ``tz``) and numeric epoch seconds. Returns ``None`` when
    the value cannot be understood.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        dt = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.timestamp()
