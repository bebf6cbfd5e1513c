"""
Per-day activity of one user, counted from the rows they own.

Each counter maps to a resource table and the column that records who created
the row; only rows the caller is allowed to see are counted.
"""

from supabase import Client
from app.core.errors import ValidationFailedError
from app.core.policy import Caller, PolicyEngine, get_policy_engine
from app.database.resource_store import ResourceStore
from app.modules.activity.schemas import ActivityResponse, ActivityTotals, DailyActivity
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

MAX_WINDOW_DAYS = 365

# counter -> (table, creator column)
ACTIVITY_SOURCES = {
    "jobs_created": ("jobs", "created_by"),
    "files_uploaded": ("job_files", "uploaded_by"),
    "comments_posted": ("file_comments", "user_id"),
    "versions_created": ("file_versions", "created_by"),
}


def created_on(value: str) -> date:
    """UTC calendar day of a PostgREST timestamp"""
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


class ActivityService:
    def __init__(self, supabase: Client, default_window_days: int = 30,
                 policy: Optional[PolicyEngine] = None):
        self.policy = policy or get_policy_engine()
        self.default_window_days = default_window_days
        self.profiles = ResourceStore(supabase, "profiles", self.policy)
        self.stores = {
            counter: ResourceStore(supabase, table, self.policy)
            for counter, (table, _) in ACTIVITY_SOURCES.items()
        }

    def get_activity(
        self,
        caller: Caller,
        user_id: str,
        days: Optional[int] = None,
        today: Optional[date] = None
    ) -> ActivityResponse:
        window = days or self.default_window_days
        if window < 1 or window > MAX_WINDOW_DAYS:
            raise ValidationFailedError(f"days must be between 1 and {MAX_WINDOW_DAYS}")
        self.profiles.get(caller, user_id)

        end = today or datetime.now(timezone.utc).date()
        start = end - timedelta(days=window - 1)
        since = datetime.combine(start, time.min, tzinfo=timezone.utc).isoformat()

        buckets: Dict[date, DailyActivity] = {
            start + timedelta(days=i): DailyActivity(date=start + timedelta(days=i))
            for i in range(window)
        }
        for counter, (_, creator_column) in ACTIVITY_SOURCES.items():
            rows = self.stores[counter].select(
                caller, eq={creator_column: user_id}, gte={"created_at": since}, order_by=None
            )
            for row in rows:
                if not row.get("created_at"):
                    continue
                bucket = buckets.get(created_on(row["created_at"]))
                if bucket is not None:
                    setattr(bucket, counter, getattr(bucket, counter) + 1)

        daily = [buckets[day] for day in sorted(buckets)]
        totals = ActivityTotals(**{
            counter: sum(getattr(d, counter) for d in daily) for counter in ACTIVITY_SOURCES
        })

        streak = 0
        for entry in reversed(daily):
            if entry.total == 0:
                break
            streak += 1

        return ActivityResponse(
            user_id=user_id,
            window_days=window,
            start_date=start,
            end_date=end,
            days=daily,
            totals=totals,
            active_days=sum(1 for d in daily if d.total > 0),
            current_streak=streak,
        )
