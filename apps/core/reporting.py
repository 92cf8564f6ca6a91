"""Calendar helpers for monthly reports."""
from datetime import date


def month_starts(months: int, today: date) -> list:
    """First day of each of the last ``months`` months, oldest first, ending with today's month."""
    year, month = today.year, today.month
    starts = []
    for _ in range(months):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    starts.reverse()
    return starts


def month_label(start: date) -> str:
    return start.strftime('%Y-%m')


def in_period(queryset, field: str, date_from=None, date_to=None):
    """Restrict ``queryset`` to rows whose ``field`` falls in the inclusive range."""
    if date_from:
        queryset = queryset.filter(**{f'{field}__gte': date_from})
    if date_to:
        queryset = queryset.filter(**{f'{field}__lte': date_to})
    return queryset
