"""CallPulse Pydantic schemas — structured output definitions for every pipeline stage.

Python attributes are snake_case; the JSON form (``model_dump(by_alias=True)``)
uses the camelCase names the vendor and the assistant front-end expect.
"""

from typing import Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, constructible with either naming."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── SENTIMENT ──

class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class SentimentDistribution(CamelModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class TranscriptSentiment(CamelModel):
    """Whole-transcript keyword sentiment with a signed score in [-1, 1]."""
    overall: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = 0.0
    positive_count: int = 0
    negative_count: int = 0


# ── NORMALIZED TRANSCRIPT ──

class Utterance(CamelModel):
    """One speaker-attributed, timestamped unit of text (a sentence or a fallback entry)."""
    speaker_id: str
    speaker_name: str
    sentence: str
    start_time: float = Field(description="Seconds from call start")
    end_time: float = Field(description="Seconds from call start")
    timestamp: str = Field(description="MM:SS of start_time")
    topic: Optional[str] = None
    duration: float = 0.0
    word_count: int = 0
    sentiment: SentimentLabel = SentimentLabel.NEUTRAL


# ── CALL ANALYTICS ──

class SpeakerStat(CamelModel):
    total_time: float = 0.0
    word_count: int = 0
    sentence_count: int = 0
    avg_words_per_sentence: float = 0.0
    talk_time_percentage: float = Field(0.0, description="0-100 share of total_duration")


class TopicFlowEntry(CamelModel):
    topic: str
    start_time: float = Field(description="Start of the first sentence tagged with this topic")
    duration: float = 0.0
    mentions: int = 1


class InteractionMetrics(CamelModel):
    question_count: int = 0
    exclamation_count: int = 0
    speaker_switches: int = 0


class CallAnalytics(CamelModel):
    """Call-level aggregates derived from one raw transcript."""
    speaker_stats: dict[str, SpeakerStat] = Field(default_factory=dict)
    total_duration: float = 0.0
    total_words: int = 0
    sentiment_distribution: SentimentDistribution = Field(default_factory=SentimentDistribution)
    topic_flow: list[TopicFlowEntry] = Field(default_factory=list)
    interaction_metrics: InteractionMetrics = Field(default_factory=InteractionMetrics)


# ── KEY MOMENTS ──

class MomentType(str, Enum):
    QUESTION = "question"
    OBJECTION = "objection"
    ACTION_ITEM = "action_item"


class KeyMoment(CamelModel):
    timestamp: str
    type: MomentType
    speaker: str
    content: str = Field(description="First 100 characters of the utterance, ellipsized")


class TopicMention(CamelModel):
    topic: str
    mentions: int


class ActionItem(CamelModel):
    text: str
    speaker: str
    timestamp: str


# ── TRANSCRIPT RESPONSE ──

class ProcessedTranscript(CamelModel):
    call_id: Optional[str] = None
    transcript: list[Utterance] = Field(default_factory=list)
    analytics: CallAnalytics = Field(default_factory=CallAnalytics)
    conversation_text: str = ""
    key_moments: list[KeyMoment] = Field(default_factory=list)
    topics: list[TopicMention] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    sentiment: TranscriptSentiment = Field(default_factory=TranscriptSentiment)


class TranscriptSummary(CamelModel):
    total_transcripts: int
    requested_call_ids: list[str]
    processed_at: str
    enhanced_features: dict[str, bool] = Field(default_factory=lambda: {
        "speakerAnalysis": True,
        "timelineMapping": True,
        "topicExtraction": True,
        "conversationFlow": True,
    })


class TranscriptResponse(CamelModel):
    call_transcripts: list[ProcessedTranscript] = Field(default_factory=list)
    transcript_summary: TranscriptSummary


# ── HEURISTIC CALL INSIGHTS ──

class CallOverview(CamelModel):
    id: str
    title: Optional[str] = None
    duration: Optional[float] = None
    participants: int = 0
    call_type: str = "general"
    sentiment: str = Field("neutral", description="Title-keyword sentiment")


class ParticipantAnalysis(CamelModel):
    internal: int = 0
    external: int = 0
    speaking_time: Optional[dict[str, float]] = Field(
        None, description="Talk-time percentage per speaker id; None without a transcript"
    )


class ContentAnalysis(CamelModel):
    topics: list[str] = Field(default_factory=list)
    key_moments: list[KeyMoment] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    sentiment: str = "neutral"


class CallBusinessInsights(CamelModel):
    is_qualified: int = Field(0, ge=0, le=100, description="Qualification score; same value as scores.qualification")
    next_steps: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)


class CallScores(CamelModel):
    engagement: float = Field(50, ge=0, le=100)
    qualification: int = Field(0, ge=0, le=100)
    next_step_clarity: int = Field(0, ge=0, le=100)


class CallInsights(CamelModel):
    """Keyword/heuristic call analysis (no LLM) for one call."""
    call_overview: CallOverview
    participant_analysis: ParticipantAnalysis = Field(default_factory=ParticipantAnalysis)
    content_analysis: ContentAnalysis = Field(default_factory=ContentAnalysis)
    business_insights: CallBusinessInsights = Field(default_factory=CallBusinessInsights)
    scores: CallScores = Field(default_factory=CallScores)
    has_transcript: bool = False


# ── LLM STRUCTURED OUTPUT ──

class AnalysisType(str, Enum):
    FULL = "full"
    SUMMARY = "summary"
    SENTIMENT = "sentiment"
    BATCH_SUMMARY = "batch_summary"


class LandingPoint(CamelModel):
    current_stage: str = Field(description="Discovery|Demo|Proposal|Negotiation|Closing")
    next_steps: str = Field(description="Specific actions mentioned or agreed upon in the conversation")
    hurdles: str = Field(description="Actual obstacles discussed in the conversation")
    timeline: str = Field(description="Timeline mentioned in the conversation or realistic assessment")


class CallActionItem(CamelModel):
    task: str
    owner: str = Field(description="Person who actually committed to this in the call")
    urgency: str = Field(description="High|Medium|Low")
    context: str = ""


class BusinessInsights(CamelModel):
    qualification_level: str = Field(description="High|Medium|Low")
    buying_signals: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    competitor_mentions: list[str] = Field(default_factory=list)
    decision_makers: list[str] = Field(default_factory=list)


class FullCallAnalysis(CamelModel):
    """Full sales-call analysis returned by the LLM."""
    sentiment: str = Field(description="Positive|Negative|Neutral")
    confidence: float = Field(ge=0, le=1)
    reasoning: str
    landing_point: LandingPoint
    action_items: list[CallActionItem] = Field(default_factory=list)
    key_quote: str = ""
    business_insights: BusinessInsights


class CallSummary(CamelModel):
    title: str
    duration: str = "Unknown"
    participants: str = "Unknown"
    key_points: list[str] = Field(default_factory=list, description="3 most important discussion points")
    sentiment: str = Field(description="Positive|Negative|Neutral")
    next_steps: str = ""
    urgent_actions: int = 0
    business_value: str = ""


class SentimentAnalysis(CamelModel):
    overall_sentiment: str = Field(description="Positive|Negative|Neutral")
    confidence: float = Field(ge=0, le=1)
    customer_sentiment: str = "Neutral"
    salesperson_sentiment: str = "Neutral"
    key_emotional_moments: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    enthusiasm: list[str] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    """Per-call outcome of an AI analysis run; either ``analysis`` or ``error`` is set."""
    call_id: str
    analysis: Optional[dict] = None
    analysis_type: Optional[AnalysisType] = None
    processed_at: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
