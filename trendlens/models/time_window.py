"""
Time window descriptors.

Records are bucketed by explicit week/month windows supplied by the caller;
nothing in the analysis core reads the wall clock. Weeks are ISO weeks
(Monday to Sunday).
"""

from datetime import date, timedelta
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

WindowKind = Literal["week", "month"]

# Years callers may ask for; keeps previous-window and span arithmetic inside date's range
MIN_YEAR = 1900
MAX_YEAR = 9998


def iso_weeks_in_year(year: int) -> int:
    """Number of ISO weeks in a year (52 or 53)."""
    return date(year, 12, 28).isocalendar()[1]


class TimeWindow(BaseModel):
    """A single week or month bucket, tagged with its year."""

    model_config = ConfigDict(frozen=True)

    kind: WindowKind = Field(description="Window granularity")
    number: int = Field(ge=1, le=53, description="ISO week number or month number")
    year: int = Field(ge=1, le=9999, description="Year the window belongs to")

    @model_validator(mode="after")
    def _check_number(self) -> "TimeWindow":
        if self.kind == "month" and self.number > 12:
            raise ValueError(f"month number out of range: {self.number}")
        if self.kind == "week" and self.number > iso_weeks_in_year(self.year):
            raise ValueError(f"week {self.number} does not exist in {self.year}")
        return self

    @classmethod
    def containing(cls, day: date, kind: WindowKind) -> "TimeWindow":
        """Window of the given kind that contains `day`."""
        if kind == "week":
            iso_year, iso_week, _ = day.isocalendar()
            return cls(kind="week", number=iso_week, year=iso_year)
        return cls(kind="month", number=day.month, year=day.year)

    @property
    def label(self) -> str:
        if self.kind == "week":
            return f"{self.year}-W{self.number:02d}"
        return f"{self.year}-{self.number:02d}"

    @property
    def start_date(self) -> date:
        if self.kind == "week":
            return date.fromisocalendar(self.year, self.number, 1)
        return date(self.year, self.number, 1)

    @property
    def end_date(self) -> date:
        if self.kind == "week":
            return date.fromisocalendar(self.year, self.number, 7)
        next_month = (date(self.year, self.number, 28) + timedelta(days=4)).replace(day=1)
        return next_month - timedelta(days=1)

    def shift(self, n: int) -> "TimeWindow":
        """Window `n` periods later (negative for earlier)."""
        if self.kind == "week":
            return TimeWindow.containing(self.start_date + timedelta(weeks=n), "week")
        index = self.year * 12 + (self.number - 1) + n
        return TimeWindow(kind="month", number=index % 12 + 1, year=index // 12)

    def previous(self) -> "TimeWindow":
        return self.shift(-1)

    def span(self, count: int) -> "WindowSpan":
        """The `count` consecutive windows ending with this one."""
        if count < 1:
            raise ValueError("span length must be at least 1")
        windows = [self.shift(-(count - 1 - i)) for i in range(count)]
        return WindowSpan(kind=self.kind, windows=windows)

    def month_of_week(self) -> "TimeWindow":
        """Month window that holds this week's Thursday (a month window maps to itself)."""
        if self.kind == "month":
            return self
        return TimeWindow.containing(self.start_date + timedelta(days=3), "month")

    def matches(self, record) -> bool:
        """
        Whether a record falls inside this window.

        The bucketing keys narrow the candidates; the timestamp decides. Late
        December days carry week 1 with the calendar year, so the week key
        alone would place them in January of the same year.
        """
        if self.kind == "week":
            if record.week_number != self.number:
                return False
        elif record.year != self.year or record.month_number != self.number:
            return False
        return self.start_date <= record.timestamp.date() <= self.end_date


class WindowSpan(BaseModel):
    """A contiguous run of windows of the same kind."""

    model_config = ConfigDict(frozen=True)

    kind: WindowKind
    windows: List[TimeWindow] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_contiguous(self) -> "WindowSpan":
        for window in self.windows:
            if window.kind != self.kind:
                raise ValueError(f"span of kind {self.kind} holds a {window.kind} window")
        for earlier, later in zip(self.windows, self.windows[1:]):
            if earlier.shift(1) != later:
                raise ValueError(f"windows {earlier.label} and {later.label} are not contiguous")
        return self

    def __len__(self) -> int:
        return len(self.windows)

    @property
    def start_date(self) -> date:
        return self.windows[0].start_date

    @property
    def end_date(self) -> date:
        return self.windows[-1].end_date

    def overlaps(self, other: "WindowSpan") -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    def previous(self) -> "WindowSpan":
        """The span of equal length that ends right before this one."""
        return self.windows[0].previous().span(len(self.windows))
