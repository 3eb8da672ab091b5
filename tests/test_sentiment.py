"""Tests for keyword sentiment (per-sentence classifier + transcript score)."""

import pytest
from analysis.sentiment import classify_sentence, score_transcript_sentiment
from config.schemas import SentimentLabel, Utterance


def _make_utterance(sentence: str) -> Utterance:
    return Utterance(
        speaker_id="A",
        speaker_name="Speaker 1",
        sentence=sentence,
        start_time=0,
        end_time=0,
        timestamp="00:00",
    )


# ── Sentence Classifier ──

class TestClassifySentence:
    def test_positive(self):
        assert classify_sentence("This is great and wonderful") == "positive"

    def test_negative(self):
        assert classify_sentence("This is a terrible problem") == "negative"

    def test_empty_is_neutral(self):
        assert classify_sentence("") == "neutral"

    def test_tie_is_neutral(self):
        assert classify_sentence("great problem") == "neutral"

    def test_no_keywords_is_neutral(self):
        assert classify_sentence("The meeting is at 3pm") == "neutral"

    def test_case_insensitive(self):
        assert classify_sentence("EXCELLENT work") == "positive"

    def test_substring_match_not_word_boundary(self):
        """"goodbye" contains "good"."""
        assert classify_sentence("goodbye then") == "positive"

    def test_repeated_word_counts_once(self):
        # 1 distinct positive (great) vs 2 distinct negatives
        assert classify_sentence("great great great, bad issue") == "negative"

    def test_none_is_neutral(self):
        assert classify_sentence(None) == "neutral"

    def test_non_string_is_neutral(self):
        assert classify_sentence(42) == "neutral"
        assert classify_sentence(["great"]) == "neutral"


# ── Transcript Score ──

class TestTranscriptSentiment:
    def test_no_matches(self):
        result = score_transcript_sentiment([_make_utterance("hello there")])
        assert result.overall == SentimentLabel.NEUTRAL
        assert result.score == 0
        assert result.positive_count == 0

    def test_empty_list(self):
        assert score_transcript_sentiment([]).score == 0

    def test_positive_score(self):
        utterances = [
            _make_utterance("This looks amazing"),
            _make_utterance("I love it, but it is expensive"),
        ]
        result = score_transcript_sentiment(utterances)
        assert result.positive_count == 2
        assert result.negative_count == 1
        assert result.overall == SentimentLabel.POSITIVE
        assert result.score == pytest.approx(1 / 3)

    def test_negative_score(self):
        result = score_transcript_sentiment([_make_utterance("A difficult problem, I worry")])
        assert result.overall == SentimentLabel.NEGATIVE
        assert result.score == -1

    def test_uses_transcript_word_lists(self):
        """"good" is not on the transcript-level list; "worry" is."""
        result = score_transcript_sentiment([_make_utterance("good, but I worry")])
        assert result.positive_count == 0
        assert result.negative_count == 1

    def test_balanced_is_neutral_with_zero_score(self):
        result = score_transcript_sentiment([_make_utterance("perfect, one concern")])
        assert result.overall == SentimentLabel.NEUTRAL
        assert result.score == 0
        assert result.positive_count == 1
        assert result.negative_count == 1
