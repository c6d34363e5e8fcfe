from datetime import datetime, timedelta
from typing import List, Optional, Tuple

RECURRENCE_INTERVAL_DAYS = {
    "weekly": 7,
    "biweekly": 14,
    "monthly": 30,
}
# Number of occurrences written after the initial one; the series is not extended later.
RECURRING_OCCURRENCES = 8

def interval_days(pattern: Optional[str]) -> int:
    """Day spacing for a recurrence pattern (weekly when unknown)."""
    return RECURRENCE_INTERVAL_DAYS.get(pattern or "", 7)

def expand_occurrences(
    start: datetime,
    end: Optional[datetime],
    is_recurring: bool,
    pattern: Optional[str],
) -> List[Tuple[datetime, Optional[datetime]]]:
    """Return (start, end) pairs: the initial session plus any recurring copies."""
    occurrences = [(start, end)]
    if not is_recurring or not pattern:
        return occurrences
    step = interval_days(pattern)
    for index in range(1, RECURRING_OCCURRENCES + 1):
        offset = timedelta(days=step * index)
        occurrences.append((start + offset, end + offset if end else None))
    return occurrences
