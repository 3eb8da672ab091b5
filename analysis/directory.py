"""Call and user record enrichment for the calls/users proxy endpoints.

Title-based heuristics only: call type, tags and title sentiment are plain
substring checks against the lowercase call title.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone


TITLE_POSITIVE_WORDS = ("great", "excellent", "good", "positive", "successful", "interested")
TITLE_NEGATIVE_WORDS = ("concern", "issue", "problem", "objection", "decline", "cancel")

TITLE_TAGS = [
    ("demo", "demo"),
    ("discovery", "discovery"),
    ("follow", "follow-up"),
    ("pricing", "pricing"),
    ("onboard", "onboarding"),
    ("check", "check-in"),
]


def title_sentiment(title: str | None) -> str:
    """Positive words win over negative ones; no match is neutral."""
    if not title:
        return "neutral"
    lower = title.lower()
    if any(word in lower for word in TITLE_POSITIVE_WORDS):
        return "positive"
    if any(word in lower for word in TITLE_NEGATIVE_WORDS):
        return "negative"
    return "neutral"


def title_tags(title: str | None) -> list[str]:
    if not title:
        return []
    lower = title.lower()
    return [tag for marker, tag in TITLE_TAGS if marker in lower]


def call_type(call: dict) -> str:
    title = (call.get("title") or "").lower()
    if "demo" in title:
        return "demo"
    if "discovery" in title:
        return "discovery"
    if "follow" in title:
        return "follow-up"
    if "onboard" in title:
        return "onboarding"
    if "check" in title:
        return "check-in"
    if "close" in title or "contract" in title:
        return "closing"
    return "general"


def party_name(party: dict) -> str:
    full = f"{party.get('firstName') or ''} {party.get('lastName') or ''}".strip()
    return party.get("name") or full or party.get("emailAddress") or "Unknown"


def format_minutes(duration) -> str:
    if not duration:
        return "Unknown"
    return f"{round(duration / 60)} minutes"


def enhance_call(call: dict) -> dict:
    """Vendor call record plus display and classification fields."""
    parties = call.get("parties") or []
    title = call.get("title") or ""
    lower_title = title.lower()
    names = [party_name(p) for p in parties]
    return {
        **call,
        "durationFormatted": format_minutes(call.get("duration")),
        "hasRecording": bool(call.get("media")),
        "participantNames": ", ".join(n for n in names if n != "Unknown") or "Unknown",
        "participants": [
            {
                "id": p.get("id"),
                "name": party_name(p),
                "email": p.get("emailAddress"),
                "role": p.get("role"),
            }
            for p in parties
        ],
        "participantsCount": len(parties),
        "sentiment": title_sentiment(title),
        "tags": title_tags(title),
        "isDemo": "demo" in lower_title,
        "isDiscovery": "discovery" in lower_title,
        "isFollowUp": "follow" in lower_title,
        "callType": call_type(call),
    }


def filter_calls_by_duration(calls: list[dict], min_duration: int | None = None, max_duration: int | None = None) -> list[dict]:
    if min_duration is not None:
        calls = [c for c in calls if (c.get("duration") or 0) >= min_duration]
    if max_duration is not None:
        calls = [c for c in calls if (c.get("duration") or 0) <= max_duration]
    return calls


def summarize_calls(calls: list[dict]) -> dict:
    """Totals over enhanced call records (see ``enhance_call``)."""
    total_duration = sum(c.get("duration") or 0 for c in calls)
    unique_emails = {
        p["email"] for c in calls for p in c.get("participants", []) if p.get("email")
    }
    total_participants = sum(c.get("participantsCount", 0) for c in calls)
    distribution = Counter(str(c.get("participantsCount", 0)) for c in calls)
    return {
        "totalCalls": len(calls),
        "totalDuration": total_duration,
        "averageDuration": total_duration / len(calls) if calls else 0,
        "hasRecordings": sum(1 for c in calls if c.get("hasRecording")),
        "callTypes": dict(Counter(call_type(c) for c in calls)),
        "participantsStats": {
            "totalUnique": len(unique_emails),
            "averagePerCall": total_participants / len(calls) if calls else 0,
            "distribution": dict(distribution),
        },
    }


def enhance_user(user: dict) -> dict:
    first = user.get("firstName")
    last = user.get("lastName")
    settings = user.get("settings") or {}
    full_name = f"{first or ''} {last or ''}".strip()
    return {
        **user,
        "fullName": full_name or user.get("emailAddress") or "Unknown",
        "active": user.get("active") is not False,
        "isManager": bool(user.get("managerIds")),
        "timezone": settings.get("timezone", "UTC"),
        "role": settings.get("role", "user"),
        "department": settings.get("department", "Unknown"),
        "displayName": f"{first} {last}" if first and last else user.get("emailAddress") or "Unknown User",
    }


def filter_users(users: list[dict], active: bool | None = None, email: str | None = None) -> list[dict]:
    if active is not None:
        users = [u for u in users if (u.get("active") is not False) == active]
    if email:
        users = [u for u in users if (u.get("emailAddress") or "").lower() == email.lower()]
    return users


def summarize_users(users: list[dict]) -> dict:
    """Totals over enhanced user records (see ``enhance_user``)."""
    return {
        "totalUsers": len(users),
        "activeUsers": sum(1 for u in users if u.get("active")),
        "withManagers": sum(1 for u in users if u.get("isManager")),
        "departments": dict(Counter(u.get("department", "Unknown") for u in users)),
        "timezones": dict(Counter(u.get("timezone", "UTC") for u in users)),
    }


# ── Call Stats ──

def parse_started(call: dict) -> datetime | None:
    """Call start as an aware UTC datetime; None when missing or unparseable."""
    started = call.get("started")
    if not isinstance(started, str) or not started:
        return None
    try:
        moment = datetime.fromisoformat(started.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def period_key(moment: datetime, group_by: str) -> str:
    """Zero-padded UTC bucket key; weeks start on Sunday, unknown groupings fall back to day."""
    if group_by == "hour":
        return moment.strftime("%Y-%m-%dT%H:00")
    if group_by == "week":
        week_start = moment - timedelta(days=(moment.weekday() + 1) % 7)
        return week_start.strftime("%Y-%m-%d")
    if group_by == "month":
        return moment.strftime("%Y-%m")
    return moment.strftime("%Y-%m-%d")


def _dated(calls: list[dict]):
    for call in calls:
        moment = parse_started(call)
        if moment is not None:
            yield call, moment


def group_calls_by_period(calls: list[dict], group_by: str = "day") -> dict[str, int]:
    return dict(Counter(period_key(moment, group_by) for _, moment in _dated(calls)))


def duration_trends(calls: list[dict], group_by: str = "day") -> dict[str, dict]:
    groups: dict[str, dict] = {}
    for call, moment in _dated(calls):
        group = groups.setdefault(period_key(moment, group_by), {"totalDuration": 0, "callCount": 0})
        group["totalDuration"] += call.get("duration") or 0
        group["callCount"] += 1
    for group in groups.values():
        group["averageDuration"] = group["totalDuration"] / group["callCount"]
    return groups


def participant_trends(calls: list[dict]) -> dict[str, dict]:
    """Participants per call, always bucketed by day."""
    groups: dict[str, dict] = {}
    for call, moment in _dated(calls):
        group = groups.setdefault(period_key(moment, "day"), {"totalParticipants": 0, "callCount": 0})
        group["totalParticipants"] += len(call.get("parties") or [])
        group["callCount"] += 1
    for group in groups.values():
        group["averageParticipants"] = group["totalParticipants"] / group["callCount"]
    return groups


def top_participants(calls: list[dict], limit: int = 10) -> list[dict]:
    """Most frequent parties keyed by email (else full name), by call count descending."""
    participants: dict[str, dict] = {}
    for call in calls:
        for party in call.get("parties") or []:
            name = f"{party.get('firstName') or ''} {party.get('lastName') or ''}".strip() or party.get("name") or ""
            key = party.get("emailAddress") or name
            if not key:
                continue
            entry = participants.setdefault(key, {
                "name": name,
                "email": party.get("emailAddress"),
                "callCount": 0,
                "totalDuration": 0,
            })
            entry["callCount"] += 1
            entry["totalDuration"] += call.get("duration") or 0
    ranked = sorted(participants.values(), key=lambda p: p["callCount"], reverse=True)
    return ranked[:limit]


def time_distribution(calls: list[dict]) -> list[dict]:
    hours = [0] * 24
    for _, moment in _dated(calls):
        hours[moment.hour] += 1
    return [{"hour": hour, "count": count} for hour, count in enumerate(hours)]


def title_sentiment_distribution(calls: list[dict]) -> dict[str, int]:
    distribution = {"positive": 0, "neutral": 0, "negative": 0}
    for call in calls:
        distribution[title_sentiment(call.get("title"))] += 1
    return distribution


def call_stats(calls: list[dict], group_by: str = "day") -> dict:
    """Overview, period trends and distributions over raw vendor call records."""
    total_duration = sum(c.get("duration") or 0 for c in calls)
    unique_emails = {
        p["emailAddress"] for c in calls for p in c.get("parties") or [] if p.get("emailAddress")
    }
    return {
        "overview": {
            "totalCalls": len(calls),
            "totalDuration": total_duration,
            "averageDuration": total_duration / len(calls) if calls else 0,
            "uniqueParticipants": len(unique_emails),
        },
        "trends": {
            "callsByPeriod": group_calls_by_period(calls, group_by),
            "durationTrends": duration_trends(calls, group_by),
            "participantTrends": participant_trends(calls),
        },
        "insights": {
            "topParticipants": top_participants(calls),
            "callTypeDistribution": dict(Counter(call_type(c) for c in calls)),
            "timeDistribution": time_distribution(calls),
            "sentimentDistribution": title_sentiment_distribution(calls),
        },
    }
