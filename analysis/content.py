"""Call-level analytics over a raw vendor transcript.

Reads the raw entries directly (not the normalized utterances) and reuses the
normalizer's duration, word-count and sentiment helpers, so per-sentence numbers
agree with ``normalize_entries``. Entries without a ``sentences`` list are
ignored here; unlike the normalizer there is no fallback path.
"""

from analysis.sentiment import classify_sentence
from analysis.speakers import speaker_key
from analysis.transcript import (
    count_words,
    entry_topic,
    ms_to_seconds,
    sentence_duration,
    sentence_list,
)
from config.schemas import CallAnalytics, SpeakerStat, TopicFlowEntry


def analyze_transcript_content(entries) -> CallAnalytics:
    """Aggregate speaker stats, sentiment, interaction metrics and topic flow.

    Args:
        entries: The vendor ``transcript`` array for one call.

    Returns:
        CallAnalytics; all counters zero/empty when ``entries`` is not a list.
    """
    analytics = CallAnalytics()
    if not isinstance(entries, list):
        return analytics

    metrics = analytics.interaction_metrics
    distribution = analytics.sentiment_distribution
    topics: dict[str, TopicFlowEntry] = {}
    last_speaker = None

    for entry in entries:
        sentences = sentence_list(entry)
        if sentences is None:
            continue

        speaker_id = speaker_key(entry)
        if last_speaker is not None and last_speaker != speaker_id:
            metrics.speaker_switches += 1
        last_speaker = speaker_id

        stats = analytics.speaker_stats.setdefault(speaker_id, SpeakerStat())
        topic = entry_topic(entry)

        for sentence in sentences:
            if not isinstance(sentence, dict):
                sentence = {}
            text = sentence.get("text")
            text = text if isinstance(text, str) else ""
            duration = sentence_duration(sentence)
            words = count_words(text)

            analytics.total_duration += duration
            analytics.total_words += words

            stats.total_time += duration
            stats.word_count += words
            stats.sentence_count += 1

            sentiment = classify_sentence(text)
            setattr(distribution, sentiment, getattr(distribution, sentiment) + 1)

            if "?" in text:
                metrics.question_count += 1
            if "!" in text:
                metrics.exclamation_count += 1

            if topic:
                flow = topics.get(topic)
                if flow is None:
                    flow = TopicFlowEntry(
                        topic=topic,
                        start_time=ms_to_seconds(sentence.get("start")),
                        duration=duration,
                        mentions=1,
                    )
                    topics[topic] = flow
                    analytics.topic_flow.append(flow)
                else:
                    flow.duration += duration
                    flow.mentions += 1

    for stats in analytics.speaker_stats.values():
        stats.avg_words_per_sentence = (
            stats.word_count / stats.sentence_count if stats.sentence_count > 0 else 0
        )
        stats.talk_time_percentage = (
            stats.total_time / analytics.total_duration * 100 if analytics.total_duration > 0 else 0
        )

    return analytics
