"""Tests for call/user enrichment used by the calls and users endpoints."""

from datetime import datetime, timezone

import pytest
from analysis.directory import (
    call_stats,
    call_type,
    duration_trends,
    enhance_call,
    enhance_user,
    filter_calls_by_duration,
    filter_users,
    format_minutes,
    group_calls_by_period,
    parse_started,
    participant_trends,
    party_name,
    period_key,
    summarize_calls,
    summarize_users,
    time_distribution,
    title_sentiment,
    title_tags,
    top_participants,
)


def _make_call(title="Product demo", duration=1800, media="https://media", parties=None) -> dict:
    if parties is None:
        parties = [
            {"id": "p1", "name": "Ana Rep", "emailAddress": "ana@vendor.com", "role": "rep"},
            {"id": "p2", "emailAddress": "bo@customer.com"},
        ]
    return {"id": "c1", "title": title, "duration": duration, "media": media, "parties": parties}


# ── Title Heuristics ──

class TestTitleHeuristics:
    def test_sentiment_positive_wins(self):
        assert title_sentiment("Great call despite an issue") == "positive"

    def test_sentiment_negative(self):
        assert title_sentiment("Pricing objection") == "negative"

    def test_sentiment_neutral(self):
        assert title_sentiment("Weekly sync") == "neutral"
        assert title_sentiment(None) == "neutral"

    def test_tags(self):
        assert title_tags("Demo and pricing follow-up") == ["demo", "follow-up", "pricing"]
        assert title_tags("") == []

    @pytest.mark.parametrize("title,expected", [
        ("Product Demo", "demo"),
        ("Discovery call", "discovery"),
        ("Follow up", "follow-up"),
        ("Onboarding kickoff", "onboarding"),
        ("Quarterly check-in", "check-in"),
        ("Contract review", "closing"),
        ("Intro", "general"),
    ])
    def test_call_type(self, title, expected):
        assert call_type({"title": title}) == expected

    def test_call_type_without_title(self):
        assert call_type({}) == "general"


# ── Display Helpers ──

class TestDisplayHelpers:
    def test_party_name_fallbacks(self):
        assert party_name({"name": "Ana"}) == "Ana"
        assert party_name({"firstName": "Bo", "lastName": "Lee"}) == "Bo Lee"
        assert party_name({"emailAddress": "x@y.com"}) == "x@y.com"
        assert party_name({}) == "Unknown"

    def test_format_minutes(self):
        assert format_minutes(1800) == "30 minutes"
        assert format_minutes(None) == "Unknown"
        assert format_minutes(0) == "Unknown"


# ── Calls ──

class TestCalls:
    def test_enhance_call(self):
        call = enhance_call(_make_call())
        assert call["id"] == "c1"
        assert call["durationFormatted"] == "30 minutes"
        assert call["hasRecording"] is True
        assert call["participantNames"] == "Ana Rep, bo@customer.com"
        assert call["participantsCount"] == 2
        assert call["participants"][0] == {
            "id": "p1", "name": "Ana Rep", "email": "ana@vendor.com", "role": "rep",
        }
        assert call["isDemo"] is True
        assert call["isDiscovery"] is False
        assert call["callType"] == "demo"
        assert call["tags"] == ["demo"]

    def test_enhance_call_without_parties(self):
        call = enhance_call(_make_call(parties=[], media=None))
        assert call["participantNames"] == "Unknown"
        assert call["hasRecording"] is False

    def test_filter_by_duration(self):
        calls = [_make_call(duration=60), _make_call(duration=600), _make_call(duration=None)]
        assert len(filter_calls_by_duration(calls, min_duration=100)) == 1
        assert len(filter_calls_by_duration(calls, max_duration=100)) == 2
        assert filter_calls_by_duration(calls) == calls

    def test_summarize_calls(self):
        calls = [
            enhance_call(_make_call(duration=600)),
            enhance_call(_make_call(title="Discovery", duration=1200, media=None)),
        ]
        stats = summarize_calls(calls)
        assert stats["totalCalls"] == 2
        assert stats["totalDuration"] == 1800
        assert stats["averageDuration"] == 900
        assert stats["hasRecordings"] == 1
        assert stats["callTypes"] == {"demo": 1, "discovery": 1}
        assert stats["participantsStats"]["totalUnique"] == 2
        assert stats["participantsStats"]["averagePerCall"] == 2
        assert stats["participantsStats"]["distribution"] == {"2": 2}

    def test_summarize_no_calls(self):
        stats = summarize_calls([])
        assert stats["averageDuration"] == 0
        assert stats["participantsStats"]["averagePerCall"] == 0


# ── Users ──

class TestUsers:
    def test_enhance_user(self):
        user = enhance_user({
            "id": "u1",
            "firstName": "Ana",
            "lastName": "Rep",
            "emailAddress": "ana@vendor.com",
            "managerIds": ["m1"],
            "settings": {"timezone": "Europe/Paris"},
        })
        assert user["fullName"] == "Ana Rep"
        assert user["displayName"] == "Ana Rep"
        assert user["active"] is True
        assert user["isManager"] is True
        assert user["timezone"] == "Europe/Paris"
        assert user["role"] == "user"
        assert user["department"] == "Unknown"

    def test_enhance_user_without_names(self):
        user = enhance_user({"emailAddress": "x@y.com", "active": False})
        assert user["fullName"] == "x@y.com"
        assert user["displayName"] == "x@y.com"
        assert user["active"] is False
        assert user["isManager"] is False

    def test_filter_users(self):
        users = [
            {"emailAddress": "A@x.com", "active": True},
            {"emailAddress": "b@x.com", "active": False},
            {"emailAddress": "c@x.com"},
        ]
        assert len(filter_users(users, active=True)) == 2
        assert len(filter_users(users, active=False)) == 1
        assert filter_users(users, email="a@X.com") == [users[0]]
        assert filter_users(users) == users

    def test_summarize_users(self):
        users = [
            enhance_user({"firstName": "A", "lastName": "B", "managerIds": ["m"]}),
            enhance_user({"active": False, "settings": {"department": "Sales"}}),
        ]
        stats = summarize_users(users)
        assert stats["totalUsers"] == 2
        assert stats["activeUsers"] == 1
        assert stats["withManagers"] == 1
        assert stats["departments"] == {"Unknown": 1, "Sales": 1}
        assert stats["timezones"] == {"UTC": 2}


# ── Call Stats ──

def _make_dated_calls() -> list[dict]:
    ana = {"firstName": "Ana", "lastName": "Rep", "emailAddress": "ana@vendor.com"}
    return [
        {"id": "1", "title": "Great demo", "duration": 600, "started": "2024-03-06T14:30:00Z",
         "parties": [ana, {"emailAddress": "bo@customer.com"}]},
        {"id": "2", "title": "Pricing issue", "duration": 1200, "started": "2024-03-06T16:00:00+02:00",
         "parties": [ana]},
        {"id": "3", "title": "Discovery", "duration": 300, "started": "2024-03-11T09:05:00Z",
         "parties": [{"firstName": "Cy", "lastName": "Lee"}]},
        {"id": "4", "title": "Undated", "duration": 100},
    ]


class TestCallStats:
    def test_parse_started(self):
        assert parse_started({"started": "2024-03-06T16:00:00+02:00"}) == datetime(2024, 3, 6, 14, tzinfo=timezone.utc)
        assert parse_started({"started": "2024-03-06T14:30:00"}).tzinfo == timezone.utc
        assert parse_started({"started": "last tuesday"}) is None
        assert parse_started({}) is None

    @pytest.mark.parametrize("group_by,expected", [
        ("hour", "2024-03-06T14:00"),
        ("day", "2024-03-06"),
        ("week", "2024-03-03"),
        ("month", "2024-03"),
        ("fortnight", "2024-03-06"),
    ])
    def test_period_key(self, group_by, expected):
        assert period_key(datetime(2024, 3, 6, 14, 30, tzinfo=timezone.utc), group_by) == expected

    def test_week_starting_sunday_keeps_its_date(self):
        assert period_key(datetime(2024, 3, 10, tzinfo=timezone.utc), "week") == "2024-03-10"

    def test_group_by_period_skips_undated(self):
        calls = _make_dated_calls()
        assert group_calls_by_period(calls, "day") == {"2024-03-06": 2, "2024-03-11": 1}
        assert group_calls_by_period(calls, "week") == {"2024-03-03": 2, "2024-03-10": 1}
        assert group_calls_by_period(calls, "month") == {"2024-03": 3}

    def test_duration_trends(self):
        trends = duration_trends(_make_dated_calls(), "day")
        assert trends["2024-03-06"] == {"totalDuration": 1800, "callCount": 2, "averageDuration": 900}
        assert trends["2024-03-11"]["averageDuration"] == 300

    def test_participant_trends_by_day(self):
        trends = participant_trends(_make_dated_calls())
        assert trends["2024-03-06"] == {"totalParticipants": 3, "callCount": 2, "averageParticipants": 1.5}

    def test_top_participants(self):
        top = top_participants(_make_dated_calls())
        assert top[0] == {"name": "Ana Rep", "email": "ana@vendor.com", "callCount": 2, "totalDuration": 1800}
        assert [p["email"] for p in top[1:]] == ["bo@customer.com", None]
        assert top[2]["name"] == "Cy Lee"

    def test_top_participants_limit(self):
        calls = [{"parties": [{"emailAddress": f"p{i}@x.com"}]} for i in range(12)]
        assert len(top_participants(calls)) == 10

    def test_time_distribution(self):
        hours = time_distribution(_make_dated_calls())
        assert len(hours) == 24
        assert hours[14] == {"hour": 14, "count": 2}
        assert hours[9]["count"] == 1
        assert sum(h["count"] for h in hours) == 3

    def test_call_stats(self):
        stats = call_stats(_make_dated_calls(), "day")
        assert stats["overview"] == {
            "totalCalls": 4,
            "totalDuration": 2200,
            "averageDuration": 550,
            "uniqueParticipants": 2,
        }
        assert stats["trends"]["callsByPeriod"] == {"2024-03-06": 2, "2024-03-11": 1}
        assert stats["insights"]["sentimentDistribution"] == {"positive": 1, "neutral": 2, "negative": 1}
        assert stats["insights"]["callTypeDistribution"] == {"demo": 1, "general": 2, "discovery": 1}

    def test_call_stats_empty(self):
        stats = call_stats([])
        assert stats["overview"]["averageDuration"] == 0
        assert stats["trends"]["callsByPeriod"] == {}
        assert stats["insights"]["topParticipants"] == []
