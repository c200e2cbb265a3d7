from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, matching how DateTime columns are stored
    return datetime.now(timezone.utc).replace(tzinfo=None)
