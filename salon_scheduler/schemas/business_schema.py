"""Business opening hours, breaks and closed dates."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from salon_scheduler.config import settings


class BreakRange(BaseModel):
    """A break inside a working day. No service segment may overlap it."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class DayHours(BaseModel):
    """Opening hours for one weekday."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    start: str = Field(default_factory=lambda: settings.hours.business_open)
    end: str = Field(default_factory=lambda: settings.hours.business_close)
    breaks: list[BreakRange] = Field(default_factory=list)


# Weekday (0=Sunday .. 6=Saturday) -> hours. A missing weekday is closed.
WeeklyHours = dict[int, DayHours]


class ClosedDate(BaseModel):
    """A full-day closure (holiday) in the business's local calendar."""

    model_config = ConfigDict(frozen=True)

    date: str
    label: Optional[str] = None


def default_weekly_hours() -> WeeklyHours:
    return {
        0: DayHours(enabled=False),
        1: DayHours(enabled=True),
        2: DayHours(enabled=True),
        3: DayHours(enabled=True),
        4: DayHours(enabled=True),
        5: DayHours(enabled=True, end="13:00"),
        6: DayHours(enabled=False),
    }


class BookingSettings(BaseModel):
    """Per-business booking configuration supplied by the persistence layer."""

    model_config = ConfigDict(frozen=True)

    slot_minutes: Optional[int] = Field(default=None, gt=0)
    days: WeeklyHours = Field(default_factory=default_weekly_hours)
    closed_dates: list[ClosedDate] = Field(default_factory=list)
