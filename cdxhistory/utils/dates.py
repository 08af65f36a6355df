"""14-digit (``YYYYMMDDhhmmss``) archive timestamp helpers."""

from datetime import UTC, datetime

from cdxhistory.utils.errors import DateParseError

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def parse_14_digit_date(value: str) -> int:
    """Parse a 14-digit archive timestamp into epoch milliseconds.

    Timestamps are interpreted as UTC, as CDX servers write them.

    Args:
        value: Timestamp string such as ``"20230105000000"``.

    Returns:
        Milliseconds since the Unix epoch.

    Raises:
        DateParseError: If the value is not exactly 14 digits or is not a
            valid calendar date/time.
    """
    if len(value) != 14 or not value.isascii() or not value.isdigit():
        raise DateParseError(value, reason="expected 14 digits")

    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError as e:
        raise DateParseError(value, reason=str(e)) from e

    return int(parsed.timestamp()) * 1000


def format_epoch_millis(millis: int) -> str:
    """Render epoch milliseconds as an ISO 8601 UTC string."""
    return datetime.fromtimestamp(millis / 1000, tz=UTC).isoformat().replace("+00:00", "Z")
