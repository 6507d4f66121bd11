"""Activity records used as progress inputs.

Provides:
- Read-only activity queries (prayer days, approved volunteer hours,
  reading-plan days)
- A recorder for populating those collections
"""

from .models import PrayerEntry, ReadingPlanDay, VolunteerApplication
from .recorder import ActivityRecorder
from .source import ActivitySource

__all__ = [
    "ActivityRecorder",
    "ActivitySource",
    "PrayerEntry",
    "ReadingPlanDay",
    "VolunteerApplication",
]
