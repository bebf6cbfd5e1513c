from pydantic import BaseModel
from typing import List
import datetime


class DailyActivity(BaseModel):
    date: datetime.date
    jobs_created: int = 0
    files_uploaded: int = 0
    comments_posted: int = 0
    versions_created: int = 0

    @property
    def total(self) -> int:
        return self.jobs_created + self.files_uploaded + self.comments_posted + self.versions_created


class ActivityTotals(BaseModel):
    jobs_created: int = 0
    files_uploaded: int = 0
    comments_posted: int = 0
    versions_created: int = 0


class ActivityResponse(BaseModel):
    user_id: str
    window_days: int
    start_date: datetime.date
    end_date: datetime.date
    days: List[DailyActivity]
    totals: ActivityTotals
    active_days: int
    current_streak: int
