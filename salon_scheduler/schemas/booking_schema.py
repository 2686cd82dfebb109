"""Booking records and multi-service visit chains."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from salon_scheduler.schemas.service_schema import FollowUp


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    """
    One persisted booking document.

    A two-phase service is stored as two bookings; phase 2 points back at
    phase 1 through ``parent_booking_id``. The link is a lookup, not
    ownership: either phase may be cancelled on its own.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    worker_id: Optional[str] = None
    date_key: str
    start_at: datetime
    end_at: datetime
    status: BookingStatus = BookingStatus.CONFIRMED
    phase: Literal[1, 2] = 1
    parent_booking_id: Optional[str] = None
    service_id: Optional[str] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED


class ChainServiceRequest(BaseModel):
    """One service of a multi-service visit, with the caller's worker choice."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    service_name: str = ""
    duration_minutes: int = Field(ge=0)
    worker_id: Optional[str] = None
    follow_up: Optional[FollowUp] = None
    follow_up_worker_id: Optional[str] = None


class ChainFollowUp(BaseModel):
    """Follow-up phase nested under a chain slot."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    service_name: str
    duration_minutes: int
    wait_minutes: int
    start_at: datetime
    end_at: datetime
    worker_id: Optional[str] = None


class ChainSlot(BaseModel):
    """One service block of a visit chain."""

    model_config = ConfigDict(frozen=True)

    service_order: int
    service_id: str
    service_name: str = ""
    duration_minutes: int
    worker_id: Optional[str] = None
    start_at: datetime
    end_at: datetime
    follow_up: Optional[ChainFollowUp] = None


class ChainSegment(BaseModel):
    """A worked interval of a chain: a main service or a follow-up. Wait gaps are not segments."""

    model_config = ConfigDict(frozen=True)

    service_order: int
    service_id: str
    worker_id: Optional[str] = None
    start_at: datetime
    end_at: datetime
    is_follow_up: bool = False


class VisitChain(BaseModel):
    """An ordered, non-overlapping layout of one multi-service visit."""

    model_config = ConfigDict(frozen=True)

    slots: list[ChainSlot] = Field(default_factory=list)

    @property
    def start_at(self) -> Optional[datetime]:
        return self.slots[0].start_at if self.slots else None

    @property
    def end_at(self) -> Optional[datetime]:
        if not self.slots:
            return None
        last = self.slots[-1]
        return last.follow_up.end_at if last.follow_up else last.end_at

    @property
    def total_minutes(self) -> int:
        if not self.slots:
            return 0
        return int((self.end_at - self.start_at).total_seconds() // 60)

    def segments(self) -> list[ChainSegment]:
        """Flatten the chain into worked segments, in chain order."""
        result: list[ChainSegment] = []
        for slot in self.slots:
            result.append(ChainSegment(
                service_order=slot.service_order,
                service_id=slot.service_id,
                worker_id=slot.worker_id,
                start_at=slot.start_at,
                end_at=slot.end_at,
            ))
            if slot.follow_up is not None:
                result.append(ChainSegment(
                    service_order=slot.service_order,
                    service_id=slot.follow_up.service_id,
                    worker_id=slot.follow_up.worker_id,
                    start_at=slot.follow_up.start_at,
                    end_at=slot.follow_up.end_at,
                    is_follow_up=True,
                ))
        return result
