"""Chart-only activity log entries (not authoritative state)"""
from datetime import date as dt_date
from pydantic import BaseModel, Field


class XpLogEntry(BaseModel):
    """Cumulative XP at the end of a calendar day"""
    date: dt_date
    cumulative_xp: int = Field(ge=0)


class CheckInCountEntry(BaseModel):
    """Number of check-ins on a calendar day"""
    date: dt_date
    count: int = Field(ge=0)


class HeatmapDay(BaseModel):
    """One cell of the activity heatmap"""
    date: dt_date
    count: int
    level: int
