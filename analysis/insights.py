"""Heuristic call insights: qualification, next steps, concerns, scores.

Pure functions over a processed transcript (key moments, topics, action items,
speaker stats) plus the vendor call record. No LLM; every score is a fixed
point scheme capped at 100. A call without a transcript still gets an overview,
title-derived topics and call-type bonuses.
"""

from typing import Optional

from analysis.directory import call_type, title_sentiment, title_tags
from config.schemas import (
    CallBusinessInsights,
    CallInsights,
    CallOverview,
    CallScores,
    ContentAnalysis,
    MomentType,
    ParticipantAnalysis,
    ProcessedTranscript,
)


QUALIFYING_PHRASES = ("budget", "timeline", "decision maker", "authority")
SPECIFIC_ACTIONS = ("demo", "proposal", "contract", "meeting")

CALL_TYPE_QUALIFICATION_BONUS = {"discovery": 20, "demo": 15}
DISCOVERY_NEXT_STEP = "Schedule product demo"


def qualification_score(processed: Optional[ProcessedTranscript], kind: Optional[str]) -> int:
    """25 per qualifying phrase heard in the call, plus a call-type bonus."""
    score = 0
    if processed is not None:
        full_text = " ".join(u.sentence for u in processed.transcript).lower()
        score += sum(25 for phrase in QUALIFYING_PHRASES if phrase in full_text)
    score += CALL_TYPE_QUALIFICATION_BONUS.get(kind, 0)
    return min(score, 100)


def extract_next_steps(processed: Optional[ProcessedTranscript], kind: Optional[str]) -> list[str]:
    steps = [item.text for item in processed.action_items] if processed is not None else []
    if kind == "discovery":
        steps.append(DISCOVERY_NEXT_STEP)
    return steps


def extract_concerns(processed: Optional[ProcessedTranscript]) -> list[str]:
    if processed is None:
        return []
    return [m.content for m in processed.key_moments if m.type == MomentType.OBJECTION]


def extract_opportunities(processed: Optional[ProcessedTranscript]) -> list[str]:
    if processed is None:
        return []
    opportunities = []
    for topic in processed.topics:
        if topic.topic == "features" and topic.mentions > 2:
            opportunities.append("High interest in product features")
        if topic.topic == "pricing" and topic.mentions > 1:
            opportunities.append("Pricing discussion initiated")
    return opportunities


def engagement_score(processed: Optional[ProcessedTranscript]) -> float:
    """Base 50, up to +30 for balanced talk time between the first two speakers,
    up to +20 for questions (5 each).
    """
    score = 50.0
    if processed is None:
        return score

    percentages = [s.talk_time_percentage for s in processed.analytics.speaker_stats.values()]
    if percentages:
        first, second = (percentages + [0.0])[:2]
        balance = 1 - abs(first - second) / 100
        score += min(max(balance, 0.0), 1.0) * 30

    questions = sum(1 for m in processed.key_moments if m.type == MomentType.QUESTION)
    score += min(questions * 5, 20)
    return min(max(score, 0.0), 100.0)


def next_step_score(next_steps: list[str]) -> int:
    score = 0
    if next_steps:
        score += 50
    if len(next_steps) > 2:
        score += 30
    if any(action in step.lower() for step in next_steps for action in SPECIFIC_ACTIONS):
        score += 20
    return min(score, 100)


def _count_affiliation(parties: list[dict], affiliation: str) -> int:
    return sum(1 for p in parties if (p.get("affiliation") or "").lower() == affiliation)


def build_call_insights(call: dict, processed: Optional[ProcessedTranscript] = None) -> CallInsights:
    """Assemble overview, content, business insights and scores for one call.

    Args:
        call: Vendor call record (``id``, ``title``, ``duration``, ``parties``).
        processed: The call's processed transcript, or None when unavailable.
    """
    title = call.get("title")
    parties = call.get("parties") or []
    kind = call_type(call)
    next_steps = extract_next_steps(processed, kind)
    qualification = qualification_score(processed, kind)

    if processed is not None:
        content = ContentAnalysis(
            topics=[t.topic for t in processed.topics],
            key_moments=processed.key_moments,
            action_items=processed.action_items,
            sentiment=processed.sentiment.overall.value,
        )
        speaking_time = {
            speaker: stats.talk_time_percentage
            for speaker, stats in processed.analytics.speaker_stats.items()
        }
    else:
        content = ContentAnalysis(topics=title_tags(title), sentiment=title_sentiment(title))
        speaking_time = None

    return CallInsights(
        call_overview=CallOverview(
            id=str(call.get("id") or ""),
            title=title,
            duration=call.get("duration"),
            participants=len(parties),
            call_type=kind,
            sentiment=title_sentiment(title),
        ),
        participant_analysis=ParticipantAnalysis(
            internal=_count_affiliation(parties, "internal"),
            external=_count_affiliation(parties, "external"),
            speaking_time=speaking_time,
        ),
        content_analysis=content,
        business_insights=CallBusinessInsights(
            is_qualified=qualification,
            next_steps=next_steps,
            concerns=extract_concerns(processed),
            opportunities=extract_opportunities(processed),
        ),
        scores=CallScores(
            engagement=engagement_score(processed),
            qualification=qualification,
            next_step_clarity=next_step_score(next_steps),
        ),
        has_transcript=processed is not None,
    )
