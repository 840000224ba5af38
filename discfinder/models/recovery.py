"""Finder reports: found -> meetup_proposed -> meetup_confirmed -> recovered | abandoned."""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class RecoveryStatus(str, Enum):
    FOUND = "found"
    MEETUP_PROPOSED = "meetup_proposed"
    MEETUP_CONFIRMED = "meetup_confirmed"
    ABANDONED = "abandoned"
    RECOVERED = "recovered"


ACTIVE_RECOVERY_STATUSES = (
    RecoveryStatus.FOUND.value,
    RecoveryStatus.MEETUP_PROPOSED.value,
    RecoveryStatus.MEETUP_CONFIRMED.value,
)


class RecoveryEvent(SQLModel, table=True):
    __tablename__ = "recovery_events"
    id: int | None = Field(default=None, primary_key=True)
    disc_id: int = Field(foreign_key="discs.id", index=True)
    finder_id: str | None = Field(default=None, index=True)
    status: str = Field(default=RecoveryStatus.FOUND.value, index=True)
    found_at: datetime = Field(default_factory=datetime.utcnow)
    recovered_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
