"""Worker schedules and weekly availability."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from salon_scheduler.schemas.business_schema import BreakRange

WEEKDAY_KEYS: tuple[str, ...] = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


class DayAvailability(BaseModel):
    """
    A worker's hours for one weekday.

    An entry whose ``open`` or ``close`` is missing marks the worker as off
    that day, even when the business is open.
    """

    model_config = ConfigDict(frozen=True)

    weekday: int = Field(ge=0, le=6, validation_alias=AliasChoices("weekday", "day"))
    open: Optional[str] = None
    close: Optional[str] = None
    breaks: list[BreakRange] = Field(default_factory=list)

    @field_validator("weekday", mode="before")
    @classmethod
    def _weekday_from_key(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in WEEKDAY_KEYS:
            return WEEKDAY_KEYS.index(value.strip().lower())
        return value

    @property
    def is_closed(self) -> bool:
        return not self.open or not self.close


class WorkerSchedule(BaseModel):
    """
    A worker as seen by the scheduling engine.

    ``services`` missing or empty means the worker can perform every
    service. Legacy records without the field and records with a
    deliberately emptied list are treated the same way.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    active: bool = True
    services: Optional[list[str]] = None
    availability: list[DayAvailability] = Field(default_factory=list)

    @property
    def has_availability_config(self) -> bool:
        return len(self.availability) > 0

    def day_entry(self, weekday: int) -> Optional[DayAvailability]:
        """Return the availability entry for a weekday (0=Sunday), if any."""
        for entry in self.availability:
            if entry.weekday == weekday:
                return entry
        return None
