"""Keyword sentiment — per-sentence labels and a whole-transcript score.

Both classifiers use fixed word lists and plain lowercase substring containment
(no word boundaries, so "goodbye" contains "good"). Dashboards and the daily
aggregation compare against these exact labels; keep the lists as they are.
"""

from config.schemas import SentimentLabel, TranscriptSentiment, Utterance


POSITIVE_WORDS = ("great", "excellent", "good", "love", "perfect", "amazing", "fantastic", "wonderful")
NEGATIVE_WORDS = ("bad", "terrible", "awful", "hate", "worst", "horrible", "concern", "problem", "issue")

# Transcript-level lists differ from the per-sentence ones
TRANSCRIPT_POSITIVE_WORDS = ("great", "excellent", "perfect", "love", "amazing", "fantastic")
TRANSCRIPT_NEGATIVE_WORDS = ("concern", "worry", "problem", "issue", "difficult", "expensive")


def _count_matches(lower_text: str, words: tuple[str, ...]) -> int:
    """Number of distinct words contained in the text (each word counts once)."""
    return sum(1 for word in words if word in lower_text)


def classify_sentence(text) -> str:
    """Classify one sentence as positive/negative/neutral by keyword majority.

    Args:
        text: Sentence text. Missing or non-string values are treated as empty.

    Returns:
        "positive" | "negative" | "neutral" (ties and no matches are neutral)
    """
    if not isinstance(text, str) or not text:
        return SentimentLabel.NEUTRAL.value

    lower = text.lower()
    positive = _count_matches(lower, POSITIVE_WORDS)
    negative = _count_matches(lower, NEGATIVE_WORDS)

    if positive > negative:
        return SentimentLabel.POSITIVE.value
    if negative > positive:
        return SentimentLabel.NEGATIVE.value
    return SentimentLabel.NEUTRAL.value


def score_transcript_sentiment(utterances: list[Utterance]) -> TranscriptSentiment:
    """Aggregate keyword hits over every utterance into a signed score.

    score = (positive - negative) / (positive + negative), in [-1, 1].
    """
    positive = 0
    negative = 0
    for utterance in utterances:
        lower = utterance.sentence.lower()
        positive += _count_matches(lower, TRANSCRIPT_POSITIVE_WORDS)
        negative += _count_matches(lower, TRANSCRIPT_NEGATIVE_WORDS)

    total = positive + negative
    if total == 0:
        return TranscriptSentiment()

    if positive > negative:
        overall = SentimentLabel.POSITIVE
    elif negative > positive:
        overall = SentimentLabel.NEGATIVE
    else:
        overall = SentimentLabel.NEUTRAL

    return TranscriptSentiment(
        overall=overall,
        score=(positive - negative) / total,
        positive_count=positive,
        negative_count=negative,
    )
