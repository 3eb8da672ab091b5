"""Key moments, keyword topics and action items over normalized utterances."""

import re

from config.schemas import ActionItem, KeyMoment, MomentType, TopicMention, Utterance


MAX_KEY_MOMENTS = 10
MAX_ACTION_ITEMS = 5

OBJECTION_MARKERS = ("concern", "worry", "but")
ACTION_MARKERS = ("will send", "will follow", "next step")

TOPIC_KEYWORDS = {
    "pricing": ["price", "cost", "budget", "expensive", "cheap"],
    "features": ["feature", "functionality", "capability", "tool"],
    "integration": ["integrate", "api", "connect", "sync"],
    "timeline": ["when", "timeline", "deadline", "launch"],
    "competition": ["competitor", "alternative", "compare", "versus"],
}

ACTION_ITEM_PATTERNS = [
    re.compile(r"will send", re.IGNORECASE),
    re.compile(r"will follow up", re.IGNORECASE),
    re.compile(r"will get back", re.IGNORECASE),
    re.compile(r"next step", re.IGNORECASE),
    re.compile(r"action item", re.IGNORECASE),
    re.compile(r"to do", re.IGNORECASE),
]


def _moment(utterance: Utterance, moment_type: MomentType) -> KeyMoment:
    return KeyMoment(
        timestamp=utterance.timestamp,
        type=moment_type,
        speaker=utterance.speaker_name,
        content=utterance.sentence[:100] + "...",
    )


def extract_key_moments(utterances: list[Utterance], limit: int = MAX_KEY_MOMENTS) -> list[KeyMoment]:
    """Flag questions, objections and commitments, in transcript order.

    One utterance can produce up to three moments (question, then objection,
    then action item). Only the first ``limit`` moments are kept.
    """
    moments = []
    for utterance in utterances:
        text = utterance.sentence.lower()
        if "?" in text:
            moments.append(_moment(utterance, MomentType.QUESTION))
        if any(marker in text for marker in OBJECTION_MARKERS):
            moments.append(_moment(utterance, MomentType.OBJECTION))
        if any(marker in text for marker in ACTION_MARKERS):
            moments.append(_moment(utterance, MomentType.ACTION_ITEM))
    return moments[:limit]


def extract_topic_mentions(utterances: list[Utterance]) -> list[TopicMention]:
    """Keyword topic families present in the call, most-mentioned first."""
    full_text = " ".join(u.sentence for u in utterances).lower()

    topics = []
    for topic, keywords in TOPIC_KEYWORDS.items():
        mentions = sum(1 for keyword in keywords if keyword in full_text)
        if mentions > 0:
            topics.append(TopicMention(topic=topic, mentions=mentions))

    return sorted(topics, key=lambda t: t.mentions, reverse=True)


def extract_action_items(utterances: list[Utterance], limit: int = MAX_ACTION_ITEMS) -> list[ActionItem]:
    """Commitment phrases, one item per matching pattern, first ``limit`` kept."""
    items = []
    for utterance in utterances:
        for pattern in ACTION_ITEM_PATTERNS:
            if pattern.search(utterance.sentence):
                items.append(ActionItem(
                    text=utterance.sentence[:150] + "...",
                    speaker=utterance.speaker_name,
                    timestamp=utterance.timestamp,
                ))
    return items[:limit]
