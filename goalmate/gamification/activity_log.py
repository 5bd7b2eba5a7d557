"""
Activity log for derived charts

Two append-or-merge-by-date series:
- cumulative XP per day (XP growth chart)
- check-in count per day (activity heatmap)

Neither series is authoritative state; they only feed the views.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
import logging

from goalmate.config import XP_LOG_MAX_ENTRIES
from goalmate.models.activity import XpLogEntry, CheckInCountEntry, HeatmapDay
from goalmate.utils.datetime_helpers import last_n_days

logger = logging.getLogger(__name__)


def heatmap_level(count: int) -> int:
    """Colour bucket for a day's check-in count"""
    if count > 3:
        return 4
    if count > 1:
        return 3
    if count > 0:
        return 2
    return 1


@dataclass
class ActivityLog:
    """Date-keyed XP and check-in series"""

    xp_log: List[XpLogEntry] = field(default_factory=list)
    checkin_log: List[CheckInCountEntry] = field(default_factory=list)
    max_xp_entries: int = XP_LOG_MAX_ENTRIES

    def record_xp(self, day: date, cumulative_xp: int) -> None:
        """Overwrite today's cumulative XP, or append a new day"""
        entry = self._find(self.xp_log, day)
        if entry is not None:
            entry.cumulative_xp = cumulative_xp
        else:
            self.xp_log.append(XpLogEntry(date=day, cumulative_xp=cumulative_xp))
            self.xp_log.sort(key=lambda e: e.date)

        while len(self.xp_log) > self.max_xp_entries:
            dropped = self.xp_log.pop(0)
            logger.debug(f"XP log full, dropped entry for {dropped.date}")

    def record_checkin(self, day: date) -> int:
        """Increment the check-in count for `day`; returns the new count"""
        entry = self._find(self.checkin_log, day)
        if entry is not None:
            entry.count += 1
        else:
            entry = CheckInCountEntry(date=day, count=1)
            self.checkin_log.append(entry)
            self.checkin_log.sort(key=lambda e: e.date)
        return entry.count

    def checkins_on(self, day: date) -> int:
        entry = self._find(self.checkin_log, day)
        return entry.count if entry else 0

    def heatmap(self, today: date, days: int = 30) -> List[HeatmapDay]:
        """Last `days` days of check-in counts, oldest first, zero-filled"""
        counts = {entry.date: entry.count for entry in self.checkin_log}
        return [
            HeatmapDay(date=day, count=counts.get(day, 0), level=heatmap_level(counts.get(day, 0)))
            for day in last_n_days(today, days)
        ]

    @staticmethod
    def _find(entries: list, day: date) -> Optional[object]:
        for entry in entries:
            if entry.date == day:
                return entry
        return None
