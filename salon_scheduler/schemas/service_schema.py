"""Service catalog models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FollowUp(BaseModel):
    """Second phase of a service, e.g. a rinse after colour has set."""

    model_config = ConfigDict(frozen=True)

    name: str
    service_id: Optional[str] = None
    duration_minutes: int = 0
    wait_minutes: Optional[int] = 0

    @property
    def is_bookable(self) -> bool:
        """A follow-up only produces a phase when it is named and at least a minute long."""
        return bool(self.name.strip()) and self.duration_minutes >= 1

    @property
    def identifier(self) -> str:
        """Service id used for worker compatibility, falling back to the name."""
        return (self.service_id or "").strip() or self.name.strip()


class ServiceDefinition(BaseModel):
    """A bookable service."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    follow_up: Optional[FollowUp] = None

    @property
    def active_follow_up(self) -> Optional[FollowUp]:
        if self.follow_up is not None and self.follow_up.is_bookable:
            return self.follow_up
        return None
