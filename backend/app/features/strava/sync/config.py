"""
Strava sync configuration constants.

Tunables that operators change per deployment (lookback, page bounds) live
in Settings; these are fixed properties of the sync algorithm.
"""


class SyncConfig:
    """Configuration for sync behavior."""

    # Strava accepts at most 200 activities per list page
    MAX_PER_PAGE = 200

    # Incremental syncs look back this far before last_sync_at, so activities
    # uploaded late (recorded offline) are still picked up. Duplicates are
    # filtered by strava_id.
    SYNC_OVERLAP_HOURS = 72
