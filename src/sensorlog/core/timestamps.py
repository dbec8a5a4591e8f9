"""
Canonical timestamp handling.

Every stored timestamp uses the fixed-width form ``YYYY-MM-DDTHH:MM:SS.mmmZ``
(UTC, millisecond precision). Historical search compares timestamps as plain
strings, which is only chronologically correct when all of them share this
exact form, so inbound values are normalized here before they reach the store.
"""

from datetime import UTC, datetime

_SECONDS_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_timestamp(moment: datetime) -> str:
    """Render a datetime in the canonical UTC millisecond form"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return f"{moment.strftime(_SECONDS_FORMAT)}.{moment.microsecond // 1000:03d}Z"


def now_timestamp() -> str:
    """Current time in the canonical form"""
    return format_timestamp(datetime.now(UTC))


def normalize_timestamp(value: str) -> str:
    """Parse an ISO-8601 string and return it in the canonical form.

    Naive values are taken as UTC; offsets are converted to UTC.

    Raises:
        ValueError: If the value is not a parseable ISO-8601 timestamp or
            falls outside the representable UTC range
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    try:
        return format_timestamp(parsed)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e


def sanitize_for_filename(timestamp: str) -> str:
    """Replace characters that are unsafe in file names"""
    return timestamp.replace(":", "-").replace(".", "_")


def strip_milliseconds(timestamp: str) -> str:
    """Drop the fractional part for display, e.g. in anomaly descriptions"""
    dot = timestamp.rfind(".")
    return timestamp[:dot] if dot != -1 else timestamp
