from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Shift(Enum):
    PENDING = "pending"
    MORNING = "Morning"
    EVENING = "Evening"
    NIGHT = "Night"

    @property
    def is_working(self) -> bool:
        return self is not Shift.PENDING

    @classmethod
    def working(cls):
        return (cls.MORNING, cls.EVENING, cls.NIGHT)


class DayOffStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Статусы, которые занимают личную квоту
ACTIVE_STATUSES = (DayOffStatus.PENDING.value, DayOffStatus.APPROVED.value)


class RequestAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass
class User:
    id: int
    first_name: Optional[str]
    last_name: Optional[str]
    username: Optional[str]
    shift: str
    is_admin: bool
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.shift == Shift.PENDING.value


@dataclass
class DayOffRequest:
    id: int
    user_id: int
    date: date
    status: str
    created_at: Optional[datetime] = None
