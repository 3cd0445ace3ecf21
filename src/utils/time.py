from datetime import datetime, timezone


def unix_timestamp_to_iso(timestamp_seconds: float) -> str:
    """Convert Unix seconds to an ISO 8601 UTC string with millisecond precision.

    >>> unix_timestamp_to_iso(1700000000)
    '2023-11-14T22:13:20.000Z'
    """
    moment = datetime.fromtimestamp(timestamp_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
