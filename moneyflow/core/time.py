"""Period handling utilities.

Budget periods are calendar months keyed as ``YYYY-MM`` strings. The key
format sorts lexicographically in chronological order, so period strings
can be compared directly.
"""
from datetime import datetime, date
from typing import NamedTuple, Iterator, Union


class YearMonth(NamedTuple):
    """Immutable year-month pair for budget periods."""
    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def to_string(self) -> str:
        """Convert to period key."""
        return str(self)

    @classmethod
    def current(cls) -> 'YearMonth':
        """Get current year-month."""
        now = datetime.utcnow()
        return cls(now.year, now.month)

    @classmethod
    def from_date(cls, d: date) -> 'YearMonth':
        """Create from date object."""
        return cls(d.year, d.month)

    @classmethod
    def from_string(cls, s: str) -> 'YearMonth':
        """Parse from string like '2025-01' or '2025-1'."""
        parts = s.split('-')
        if len(parts) != 2:
            raise ValueError(f"Invalid year-month format: {s}")

        try:
            year = int(parts[0])
            month = int(parts[1])
        except ValueError as e:
            raise ValueError(f"Invalid year-month format: {s}") from e
        if not (1 <= month <= 12):
            raise ValueError(f"Month must be 1-12, got {month}")
        return cls(year, month)

    def next_month(self) -> 'YearMonth':
        """Get next month."""
        if self.month == 12:
            return YearMonth(self.year + 1, 1)
        return YearMonth(self.year, self.month + 1)

    def prev_month(self) -> 'YearMonth':
        """Get previous month."""
        if self.month == 1:
            return YearMonth(self.year - 1, 12)
        return YearMonth(self.year, self.month - 1)

    def range_to(self, end: 'YearMonth') -> Iterator['YearMonth']:
        """Generate range of months from self to end (inclusive)."""
        current = self
        while current <= end:
            yield current
            current = current.next_month()


def parse_year_month(value: str) -> YearMonth:
    """Parse year-month from 'YYYY-MM' or 'YYYY-MM-DD'."""
    if not value:
        return YearMonth.current()

    try:
        return YearMonth.from_string(value)
    except ValueError:
        pass

    try:
        parsed_date = datetime.strptime(value, '%Y-%m-%d').date()
        return YearMonth.from_date(parsed_date)
    except ValueError:
        pass

    raise ValueError(f"Cannot parse year-month: {value}")


def format_date(value: Union[str, date]) -> str:
    """Normalize a date value to an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    # Validate the string instead of trusting it
    return datetime.strptime(value, '%Y-%m-%d').date().isoformat()


def period_from_date(value: Union[str, date]) -> str:
    """Derive the period key from an ISO date (its first 7 characters)."""
    return format_date(value)[:7]


def next_period(period: str) -> str:
    """Period key of the calendar month after ``period``."""
    return YearMonth.from_string(period).next_month().to_string()


def prev_period(period: str) -> str:
    """Period key of the calendar month before ``period``."""
    return YearMonth.from_string(period).prev_month().to_string()


def current_period() -> str:
    """Period key of the current UTC month."""
    return YearMonth.current().to_string()


def utc_timestamp() -> str:
    """ISO-8601 timestamp used for createdAt/updatedAt fields."""
    return datetime.utcnow().isoformat()
