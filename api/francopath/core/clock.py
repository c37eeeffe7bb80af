"""
Reference clock used for due-date and day-boundary decisions.

Timestamps are stored as naive UTC datetimes. Calendar days (the deck plan
cache key) are computed in a fixed reference timezone.
"""
from datetime import datetime, timezone, date
from typing import Optional
from zoneinfo import ZoneInfo

from francopath.core.config import settings
from francopath.utils.time_utils import utc_now


class Clock:
    """System clock bound to a reference timezone."""

    def __init__(self, tz_name: str = settings.plan_timezone):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        """Current time as a naive UTC datetime."""
        return utc_now()

    def local_date(self, moment: Optional[datetime] = None) -> date:
        """Calendar date of `moment` (naive UTC) in the reference timezone."""
        if moment is None:
            moment = self.now()
        return moment.replace(tzinfo=timezone.utc).astimezone(self.tz).date()

    def today_key(self) -> str:
        """YYYY-MM-DD key for today in the reference timezone."""
        return self.local_date().isoformat()


def get_clock() -> Clock:
    """Dependency for getting the reference clock."""
    return Clock()
