"""
Strava sync services.

Provides:
- StravaSyncService: Sync engine (incremental sync, single activity ingest)
- ActivityFetcher: Bounded activity listing
- RawActivity: Parsed, unclassified Strava activity
"""

from .service import StravaSyncService, SyncResult, SyncStatus
from .activities import ActivityFetcher, RawActivity, parse_raw_activity
from .config import SyncConfig

__all__ = [
    # Services
    "StravaSyncService",
    "SyncResult",
    "SyncStatus",
    # Fetching
    "ActivityFetcher",
    "RawActivity",
    "parse_raw_activity",
    # Config
    "SyncConfig",
]
