from datetime import datetime, timezone
from typing import List, Optional


def split_csv(value: Optional[str]) -> List[str]:
    """Comma-separated query value -> list of trimmed, non-empty parts."""
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def naive_utc(value: datetime) -> datetime:
    """Dates are stored as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def date_range(column, after=None, before=None, inclusive: bool = False) -> list:
    """
    SQLAlchemy conditions bounding column by the optional dates.
    createdAfter/createdBefore style bounds are exclusive; from/to pass inclusive=True.
    """
    conditions = []
    if after is not None:
        after = naive_utc(after)
        conditions.append(column >= after if inclusive else column > after)
    if before is not None:
        before = naive_utc(before)
        conditions.append(column <= before if inclusive else column < before)
    return conditions
