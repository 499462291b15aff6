"""
Tests for StravaClient, activity parsing and ActivityFetcher.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.features.strava.client import (
    StravaAuthError,
    StravaClient,
    StravaMalformedResponseError,
    StravaNotFoundError,
    StravaRateLimitError,
    StravaTransientError,
    summarize_athlete_stats,
)
from app.features.strava.sync.activities import ActivityFetcher, parse_raw_activity
from app.shared.constants import ActivityCategory
from app.features.fitness.classifier import classify


def client_answering(status: int, **kwargs) -> StravaClient:
    return StravaClient(transport=httpx.MockTransport(lambda request: httpx.Response(status, **kwargs)))


# =============================================================================
# Client error mapping
# =============================================================================

class TestClientErrors:
    """Tests for HTTP status -> error taxonomy."""

    @pytest.mark.parametrize("status,error", [
        (401, StravaAuthError),
        (404, StravaNotFoundError),
        (429, StravaRateLimitError),
        (500, StravaTransientError),
        (503, StravaTransientError),
    ])
    def test_status_mapping(self, status, error):
        client = client_answering(status, json={"message": "nope"})
        with pytest.raises(error):
            asyncio.run(client.get_athlete("token"))

    def test_rate_limit_is_transient(self):
        assert issubclass(StravaRateLimitError, StravaTransientError)

    def test_network_failure_is_transient(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = StravaClient(transport=httpx.MockTransport(fail))
        with pytest.raises(StravaTransientError):
            asyncio.run(client.get_athlete("token"))

    def test_non_json_body_is_malformed(self):
        client = client_answering(200, content=b"<html>maintenance</html>")
        with pytest.raises(StravaMalformedResponseError):
            asyncio.run(client.get_athlete("token"))

    def test_activity_list_must_be_array(self):
        client = client_answering(200, json={"activities": []})
        with pytest.raises(StravaMalformedResponseError):
            asyncio.run(client.list_activities("token"))

    def test_list_activities_sends_after_as_epoch(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        client = StravaClient(transport=httpx.MockTransport(handler))
        asyncio.run(client.list_activities("tok", after=datetime(2026, 1, 1), page=2, per_page=50))

        params = seen[0].url.params
        assert params["after"] == str(int(datetime(2026, 1, 1, tzinfo=timezone.utc).timestamp()))
        assert params["page"] == "2"
        assert params["per_page"] == "50"
        assert seen[0].headers["Authorization"] == "Bearer tok"


# =============================================================================
# Parsing
# =============================================================================

class TestParseRawActivity:
    """Tests for parse_raw_activity."""

    def test_summary_fields(self, make_activity):
        raw = parse_raw_activity(make_activity(
            42, "Run", moving_time=1820, distance=5230.0, average_heartrate=151.2,
            name="Tempo", description="with strides",
        ))
        assert raw.id == 42
        assert raw.raw_type == "Run"
        assert raw.duration_min == 30
        assert raw.distance_km == pytest.approx(5.23)
        assert raw.average_heartrate == 151.2
        assert raw.notes == "Tempo\nwith strides"

    @pytest.mark.parametrize("moving_time,minutes", [(150, 3), (630, 11), (629, 10), (89, 1)])
    def test_duration_halves_round_up(self, make_activity, moving_time, minutes):
        assert parse_raw_activity(make_activity(5, moving_time=moving_time)).duration_min == minutes

    def test_ten_and_a_half_minutes_of_high_heart_rate_is_hiit(self, make_activity):
        """630 s counts as 11 minutes, past the 10 minute HIIT threshold."""
        raw = parse_raw_activity(make_activity(
            6, "Workout", moving_time=630, distance=0, average_heartrate=150, name="Evening Session",
        ))
        assert classify(raw.to_features()) == ActivityCategory.HIIT

    def test_local_date_comes_from_local_start(self, make_activity):
        raw = parse_raw_activity(make_activity(
            1, start_date="2026-03-17T22:30:00Z", start_date_local="2026-03-18T04:30:00Z",
        ))
        assert raw.local_date.isoformat() == "2026-03-18"

    def test_falls_back_to_sport_type(self, make_activity):
        data = make_activity(7, "Workout")
        del data["type"]
        assert parse_raw_activity(data).raw_type == "Workout"

    @pytest.mark.parametrize("broken", [
        {"id": None},
        {"start_date": "yesterday"},
        {"moving_time": "thirty"},
        {"distance": True},
    ])
    def test_malformed(self, make_activity, broken):
        data = make_activity(9)
        data.update(broken)
        with pytest.raises(StravaMalformedResponseError):
            parse_raw_activity(data)

    def test_missing_start_date(self, make_activity):
        data = make_activity(9)
        del data["start_date"]
        with pytest.raises(StravaMalformedResponseError):
            parse_raw_activity(data)

    def test_classification_of_parsed_activity(self, make_activity):
        """Unknown type, 25 min, zero distance, no HR -> gym."""
        raw = parse_raw_activity(make_activity(3, "other", moving_time=1500, distance=0, name="Session"))
        assert classify(raw.to_features()) == ActivityCategory.GYM


# =============================================================================
# Fetcher
# =============================================================================

class TestActivityFetcher:
    """Tests for ActivityFetcher.list_recent_activities."""

    def test_stops_on_short_page(self, strava, make_activity):
        strava.activities = [make_activity(i, days_ago=10 - i) for i in range(3)]
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport), max_pages=5, per_page=2)

        activities = asyncio.run(fetcher.list_recent_activities("access-1"))

        assert [a.id for a in activities] == [0, 1, 2]
        assert len(strava.calls_to("/api/v3/athlete/activities")) == 2

    def test_page_count_is_bounded(self, strava, make_activity):
        strava.activities = [make_activity(i, days_ago=20 - i) for i in range(10)]
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport), max_pages=2, per_page=3)

        activities = asyncio.run(fetcher.list_recent_activities("access-1"))

        assert len(activities) == 6
        assert len(strava.calls_to("/api/v3/athlete/activities")) == 2

    def test_since_filters_older_activities(self, strava, make_activity):
        strava.activities = [make_activity(1, days_ago=5), make_activity(2, days_ago=1)]
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport))

        activities = asyncio.run(fetcher.list_recent_activities(
            "access-1", since=datetime.utcnow() - timedelta(days=2)
        ))

        assert [a.id for a in activities] == [2]

    def test_restartable(self, strava, make_activity):
        """Same question twice, same answer."""
        strava.activities = [make_activity(i, days_ago=3 - i) for i in range(3)]
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport), per_page=2)
        since = datetime.utcnow() - timedelta(days=7)

        first = asyncio.run(fetcher.list_recent_activities("access-1", since))
        second = asyncio.run(fetcher.list_recent_activities("access-1", since))

        assert [a.id for a in first] == [a.id for a in second] == [0, 1, 2]

    def test_malformed_item_aborts_listing(self, strava, make_activity):
        broken = make_activity(2)
        del broken["start_date"]
        strava.activities = [make_activity(1), broken]
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport))

        with pytest.raises(StravaMalformedResponseError):
            asyncio.run(fetcher.list_recent_activities("access-1"))

    def test_unauthorized(self, strava):
        fetcher = ActivityFetcher(StravaClient(transport=strava.transport))
        with pytest.raises(StravaAuthError):
            asyncio.run(fetcher.list_recent_activities("revoked"))


# =============================================================================
# Stats
# =============================================================================

class TestSummarizeAthleteStats:
    """Tests for summarize_athlete_stats."""

    def test_converts_units(self):
        stats = {
            "all_run_totals": {"count": 10, "distance": 52000.0, "moving_time": 18000, "elevation_gain": 300.0},
        }
        summary = summarize_athlete_stats(stats)
        runs = summary["all_time"]["runs"]
        assert runs["count"] == 10
        assert runs["distance_km"] == pytest.approx(52.0)
        assert summary["ytd"]["rides"]["count"] == 0
        assert "elevation_gain_m" not in summary["recent"]["swims"]
