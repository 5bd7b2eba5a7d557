"""Habit, check-in and streak freeze models"""
from datetime import date as dt_date
from enum import Enum
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field, model_validator


class CheckInStatus(str, Enum):
    """Status of a single day's log entry"""
    COMPLETED = "completed"
    FROZEN = "frozen"


class ProofKind(str, Enum):
    """How a check-in was evidenced"""
    SCREENSHOT = "screenshot"
    LINK = "link"
    UNVERIFIED = "unverified"
    FROZEN = "frozen"


# Proof kinds that must carry a payload
PAYLOAD_REQUIRED = {ProofKind.SCREENSHOT, ProofKind.LINK}


class Proof(BaseModel):
    """Evidence attached to a check-in"""
    kind: ProofKind
    value: Optional[str] = None  # data URL for screenshots, URL for links
    comment: Optional[str] = None

    @property
    def has_payload(self) -> bool:
        return bool(self.value and self.value.strip())


class CheckIn(BaseModel):
    """One log entry; the date is the natural key within a habit"""
    date: dt_date
    status: CheckInStatus
    proof: Proof


class StreakFreezes(BaseModel):
    """Freeze token balance"""
    remaining: int = Field(default=1, ge=0)
    total: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def remaining_within_total(self) -> "StreakFreezes":
        if self.remaining > self.total:
            raise ValueError("remaining freezes cannot exceed total")
        return self


class Habit(BaseModel):
    """Daily habit tracker"""
    id: str = Field(default_factory=lambda: f"h_{uuid4().hex[:12]}")
    name: str
    emoji: str = "💡"
    description: Optional[str] = None
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    streak_freezes: StreakFreezes = Field(default_factory=StreakFreezes)
    logs: list[CheckIn] = Field(default_factory=list)  # chronological

    @model_validator(mode="after")
    def longest_covers_current(self) -> "Habit":
        if self.longest_streak < self.current_streak:
            self.longest_streak = self.current_streak
        return self

    def log_for(self, day: dt_date) -> Optional[CheckIn]:
        for entry in self.logs:
            if entry.date == day:
                return entry
        return None

    @property
    def last_log_date(self) -> Optional[dt_date]:
        if not self.logs:
            return None
        return max(entry.date for entry in self.logs)
