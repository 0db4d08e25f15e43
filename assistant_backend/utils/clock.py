from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now; every stored timestamp uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
