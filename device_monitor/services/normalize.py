"""Report normalization.

Devices in the field run different app versions, so every field of a
status report is defaulted, coerced and bounded on its own. A missing or
odd-looking field never rejects the report.
"""

import re
import sys

FALSE_STRINGS = {"", "0", "false", "no", "off"}

# field: (kind, default, limit). For text the limit is a max length,
# for int it is the inclusive clamp range.
FIELD_RULES = {
    "deviceId": ("text", "unknown", 50),
    "deviceName": ("text", "Android Device", 50),
    "batteryLevel": ("int", 0, (0, 100)),
    "isCharging": ("bool", False, None),
    "wifiConnected": ("bool", False, None),
    "cellularConnected": ("bool", False, None),
    "networkType": ("text", "Unknown", 20),
    "location": ("text", "Unknown location", 50),
    "currentApp": ("text", "Unknown app", 50),
}

_LEADING_NUMBER = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")


def to_text(value, max_length):
    return str(value).strip()[:max_length]


def to_int(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value:
            return 0
        # Out-of-range magnitudes still clamp to the right end of the range
        if value in (float("inf"), float("-inf")):
            return sys.maxsize if value > 0 else -sys.maxsize
        return int(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match:
            return to_int(float(match.group(1)))
    return 0


def to_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def clamp(value, low, high):
    return max(low, min(high, value))


def normalize_report(data):
    """Return a clean DeviceRecord dict (without server-stamped fields)."""
    cleaned = {}

    for field, (kind, default, limit) in FIELD_RULES.items():
        value = data.get(field)
        if value is None:
            cleaned[field] = default
            continue

        if kind == "text":
            cleaned[field] = to_text(value, limit)
        elif kind == "int":
            cleaned[field] = clamp(to_int(value), *limit)
        else:
            cleaned[field] = to_bool(value)

    if not cleaned["deviceId"]:
        cleaned["deviceId"] = FIELD_RULES["deviceId"][1]

    return cleaned
