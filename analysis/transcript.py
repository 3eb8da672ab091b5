"""Transcript normalization — vendor entries to flat, speaker-attributed utterances.

A vendor transcript is a list of entries, each attributed to one speaker and
holding a ``sentences`` list with millisecond ``start``/``end`` offsets. Older
payloads carry a single ``sentence``/``text`` per entry instead; those become one
fallback utterance each.

Every helper here is total: missing fields, non-numeric times and non-string
text degrade to zero/empty values instead of raising.
"""

import math

from analysis.sentiment import classify_sentence
from analysis.speakers import SpeakerResolver, speaker_key
from config.schemas import SentimentLabel, Utterance


NO_TEXT = "No text available"
NO_CONTENT = "No content available"


def _is_number(value) -> bool:
    """Finite int/float; ints too large for a float count as non-numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _as_text(value) -> str:
    """Text field as a string; anything that is not a string reads as empty."""
    return value if isinstance(value, str) else ""


def sentence_list(entry) -> list | None:
    """The entry's ``sentences`` list, or None when it has none."""
    if not isinstance(entry, dict):
        return None
    sentences = entry.get("sentences")
    return sentences if isinstance(sentences, list) else None


def entry_topic(entry: dict) -> str | None:
    topic = entry.get("topic")
    if not topic:
        return None
    return topic if isinstance(topic, str) else str(topic)


def ms_to_seconds(value) -> float:
    """Millisecond offset to seconds; absent, zero or non-numeric gives 0."""
    if not _is_number(value) or not value:
        return 0
    return value / 1000


def sentence_duration(sentence: dict) -> float:
    """(end - start) in seconds when both offsets are present and non-zero.

    A sentence whose end precedes its start keeps the negative result.
    """
    start = sentence.get("start")
    end = sentence.get("end")
    if _is_number(start) and _is_number(end) and start and end:
        return (end - start) / 1000
    return 0


def count_words(text) -> int:
    """Tokens from splitting on a literal single space (empty tokens included)."""
    text = _as_text(text)
    if not text:
        return 0
    return len(text.split(" "))


def format_timestamp(seconds) -> str:
    """Seconds to MM:SS, flooring both parts ("00:00" for zero or unset)."""
    if not _is_number(seconds) or not seconds:
        return "00:00"
    mins = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    return f"{mins:02d}:{secs:02d}"


def _sentence_utterance(entry: dict, sentence, speaker_id: str, speaker_name: str) -> Utterance:
    if not isinstance(sentence, dict):
        sentence = {}
    text = _as_text(sentence.get("text"))
    start_time = ms_to_seconds(sentence.get("start"))
    return Utterance(
        speaker_id=speaker_id,
        speaker_name=speaker_name,
        sentence=text or NO_TEXT,
        start_time=start_time,
        end_time=ms_to_seconds(sentence.get("end")),
        timestamp=format_timestamp(start_time),
        topic=entry_topic(entry),
        duration=sentence_duration(sentence),
        word_count=count_words(text),
        sentiment=classify_sentence(text),
    )


def _fallback_utterance(entry: dict, speaker_id: str, speaker_name: str) -> Utterance:
    content = entry.get("sentence")
    if content is None:
        content = entry.get("text")
    if content is None:
        content = NO_CONTENT
    start_time = entry.get("startTime")
    end_time = entry.get("endTime")
    start_time = start_time if _is_number(start_time) else 0
    return Utterance(
        speaker_id=speaker_id,
        speaker_name=speaker_name,
        sentence=content if isinstance(content, str) else str(content),
        start_time=start_time,
        end_time=end_time if _is_number(end_time) else 0,
        timestamp=format_timestamp(start_time),
        topic=entry_topic(entry),
        duration=0,
        word_count=0,
        sentiment=SentimentLabel.NEUTRAL,
    )


def normalize_entries(entries) -> list[Utterance]:
    """Flatten vendor transcript entries into one utterance per sentence.

    Entries with a ``sentences`` list yield one utterance per sentence (times
    converted from ms to seconds, sentiment classified); an empty list yields
    nothing. Entries without one yield a single fallback utterance that is
    never sentiment-analyzed.

    Args:
        entries: The vendor ``transcript`` array for one call.

    Returns:
        Utterances in input order; [] when ``entries`` is not a list.
    """
    if not isinstance(entries, list):
        return []

    resolver = SpeakerResolver()
    utterances: list[Utterance] = []

    for entry in entries:
        if not isinstance(entry, dict):
            entry = {}
        speaker_id = speaker_key(entry)
        sentences = sentence_list(entry)

        if sentences is None:
            utterances.append(_fallback_utterance(entry, speaker_id, resolver.resolve(speaker_id)))
            continue
        # An empty list emits nothing and does not claim a label
        for sentence in sentences:
            utterances.append(_sentence_utterance(entry, sentence, speaker_id, resolver.resolve(speaker_id)))

    return utterances


def extract_conversation_text(entries) -> str:
    """Render a transcript as "Speaker N: text" lines for LLM prompts.

    Only sentence-bearing entries and non-blank sentences are included. Uses its
    own resolver, so names match ``normalize_entries`` only through the shared
    first-seen ordering rule.
    """
    if not isinstance(entries, list):
        return ""

    resolver = SpeakerResolver()
    lines = []

    for entry in entries:
        sentences = sentence_list(entry)
        if not sentences:
            continue
        speaker_name = resolver.resolve(speaker_key(entry))
        for sentence in sentences:
            text = _as_text(sentence.get("text")).strip() if isinstance(sentence, dict) else ""
            if text:
                lines.append(f"{speaker_name}: {text}")

    return "\n".join(lines)
