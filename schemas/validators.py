from datetime import datetime
from typing import Optional


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Las fechas se guardan sin zona horaria, en hora local del restaurante."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
