"""Pipeline Orchestrator — transcripts → analytics → optional LLM analysis → storage.

Entrypoints backing the HTTP handlers:
  build_transcript_response: normalize + analyze every fetched transcript (no LLM)
  get_call_insights:         heuristic qualification and scores for one call (no LLM)
  get_call_stats:            period trends and distributions over listed calls
  run_ai_analysis:           one LLM analysis per call, paced by CALL_DELAY_SECONDS
  run_batch_analysis:        LLM summaries in batches, calls inside a batch run
                             concurrently, batches separated by BATCH_DELAY_SECONDS

The analytics core (analysis/*) is pure; everything here that touches the
vendor, the LLM or the store is async or pushed to a worker thread.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from analysis.content import analyze_transcript_content
from analysis.directory import call_stats
from analysis.insights import build_call_insights
from analysis.moments import extract_action_items, extract_key_moments, extract_topic_mentions
from analysis.sentiment import score_transcript_sentiment
from analysis.transcript import extract_conversation_text, normalize_entries
from config.schemas import (
    AnalysisResult,
    AnalysisType,
    CallInsights,
    ProcessedTranscript,
    TranscriptResponse,
    TranscriptSummary,
)
from config.settings import (
    BATCH_DELAY_SECONDS,
    CALL_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    MIN_CONVERSATION_CHARS,
    TRANSCRIPT_FROM_DATETIME,
    TRANSCRIPT_TO_DATETIME,
)
from services.gong.client import GongAPIError, GongClient
from services.llm.client import analyze_call, analyze_sentiment, summarize_call
from services.store import AnalysisStore


class NoTranscriptsError(LookupError):
    """The vendor returned no transcripts for any requested call."""


class CallNotFoundError(LookupError):
    """The vendor has no call record for the requested id."""


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


async def _pause(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)


# ── Request normalization ──

def normalize_call_ids(call_ids=None, call_id=None) -> list[str]:
    """Accept ``callIds`` as a list or a single string, or a lone ``callId``."""
    if isinstance(call_ids, list):
        return [str(c) for c in call_ids if c not in (None, "")]
    if call_ids and isinstance(call_ids, (str, int)):
        return [str(call_ids)]
    if call_id not in (None, ""):
        return [str(call_id)]
    return []


def get_date_range(
    period: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """Resolve a reporting window to (fromDateTime, toDateTime) ISO strings.

    Explicit dates win. Periods: today, yesterday, week (since Sunday), month;
    anything else is the last 30 days.

    Raises:
        ValueError: if an explicit date is not ISO-8601
    """
    if from_date and to_date:
        start = datetime.fromisoformat(from_date.replace("Z", "+00:00"))
        end = datetime.fromisoformat(to_date.replace("Z", "+00:00"))
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return utc_now_iso(start), utc_now_iso(end)

    now = now or datetime.now(timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    period = (period or "").lower()

    if period == "today":
        return utc_now_iso(today), utc_now_iso(today + timedelta(days=1))
    if period == "yesterday":
        return utc_now_iso(today - timedelta(days=1)), utc_now_iso(today)
    if period == "week":
        days_since_sunday = (today.weekday() + 1) % 7
        return utc_now_iso(today - timedelta(days=days_since_sunday)), utc_now_iso(now)
    if period == "month":
        return utc_now_iso(today.replace(day=1)), utc_now_iso(now)
    return utc_now_iso(now - timedelta(days=30)), utc_now_iso(now)


# ── Transcript processing (no LLM) ──

def process_transcript(call_transcript: dict) -> ProcessedTranscript:
    """Run the analytics core over one vendor ``{callId, transcript}`` record."""
    entries = call_transcript.get("transcript")
    utterances = normalize_entries(entries)
    call_id = call_transcript.get("callId")

    return ProcessedTranscript(
        call_id=str(call_id) if call_id is not None else None,
        transcript=utterances,
        analytics=analyze_transcript_content(entries),
        conversation_text=extract_conversation_text(entries),
        key_moments=extract_key_moments(utterances),
        topics=extract_topic_mentions(utterances),
        action_items=extract_action_items(utterances),
        sentiment=score_transcript_sentiment(utterances),
    )


def build_transcript_response(call_transcripts: list[dict], requested_call_ids: list[str]) -> TranscriptResponse:
    processed = [process_transcript(t) for t in call_transcripts]
    return TranscriptResponse(
        call_transcripts=processed,
        transcript_summary=TranscriptSummary(
            total_transcripts=len(processed),
            requested_call_ids=requested_call_ids,
            processed_at=utc_now_iso(),
        ),
    )


async def fetch_transcripts(
    client: GongClient,
    call_ids: list[str],
    from_datetime: str = TRANSCRIPT_FROM_DATETIME,
    to_datetime: str = TRANSCRIPT_TO_DATETIME,
) -> list[dict]:
    return await client.get_transcripts(call_ids, from_datetime, to_datetime)


# ── Heuristic insights & stats (no LLM) ──

async def get_call_insights(client: GongClient, call_id: str) -> CallInsights:
    """Call record plus its processed transcript, scored without the LLM.

    A transcript the vendor refuses or lacks leaves the insights title-based.

    Raises:
        CallNotFoundError: if the vendor returned no call record
    """
    call = await client.get_call(call_id)
    if not call:
        raise CallNotFoundError(f"Call {call_id} not found")

    processed = None
    try:
        transcripts = await fetch_transcripts(client, [call_id])
    except GongAPIError as e:
        logger.warning(f"Transcript unavailable for {call_id}: {e}")
        transcripts = []
    if transcripts:
        processed = process_transcript(transcripts[0])

    return build_call_insights(call, processed)


async def get_call_stats(
    client: GongClient,
    from_datetime: str,
    to_datetime: str,
    group_by: str = "day",
    user_id: str | None = None,
    max_records: int = 1000,
) -> dict:
    calls = await client.list_calls(from_datetime, to_datetime, user_id=user_id, max_records=max_records)
    logger.info(f"Computing call stats over {len(calls)} calls grouped by {group_by}")
    return call_stats(calls, group_by)


# ── LLM analysis ──

async def _call_metadata(client: GongClient, call_id: str) -> dict | None:
    try:
        return await client.get_call(call_id)
    except GongAPIError as e:
        logger.warning(f"Call details unavailable for {call_id}: {e}")
        return None


async def _run_llm(
    analysis_type: AnalysisType,
    conversation_text: str,
    call_id: str,
    client: GongClient,
    api_key: str,
) -> dict:
    if analysis_type in (AnalysisType.SUMMARY, AnalysisType.BATCH_SUMMARY):
        call = await _call_metadata(client, call_id)
        result = await asyncio.to_thread(summarize_call, conversation_text, api_key, call)
    elif analysis_type == AnalysisType.SENTIMENT:
        result = await asyncio.to_thread(analyze_sentiment, conversation_text, api_key)
    else:
        result = await asyncio.to_thread(analyze_call, conversation_text, api_key)
    return result.model_dump(by_alias=True, mode="json")


async def analyze_transcript(
    call_transcript: dict,
    analysis_type: AnalysisType,
    client: GongClient,
    api_key: str,
    store: AnalysisStore,
) -> AnalysisResult:
    """LLM-analyze one transcript and persist it; failures become error results."""
    call_id = str(call_transcript.get("callId"))
    conversation_text = extract_conversation_text(call_transcript.get("transcript"))

    if len(conversation_text) < MIN_CONVERSATION_CHARS:
        return AnalysisResult(call_id=call_id, error="Insufficient transcript content")

    try:
        analysis = await _run_llm(analysis_type, conversation_text, call_id, client, api_key)
    except Exception as e:
        logger.error(f"AI analysis failed for call {call_id}: {e}")
        return AnalysisResult(call_id=call_id, error="AI analysis failed", details=str(e))

    await asyncio.to_thread(store.store_analysis, call_id, analysis, analysis_type.value)
    return AnalysisResult(
        call_id=call_id,
        analysis=analysis,
        analysis_type=analysis_type,
        processed_at=utc_now_iso(),
    )


def _dump_results(results: list[AnalysisResult]) -> list[dict]:
    return [r.model_dump(by_alias=True, mode="json", exclude_none=True) for r in results]


async def run_ai_analysis(
    call_ids: list[str],
    analysis_type: AnalysisType,
    client: GongClient,
    api_key: str,
    store: AnalysisStore,
    delay: float = CALL_DELAY_SECONDS,
) -> dict:
    """Analyze each call's transcript in turn.

    Raises:
        NoTranscriptsError: if the vendor returned no transcripts at all
    """
    logger.info(f"AI analysis for calls: {call_ids} Type: {analysis_type.value}")
    transcripts = await fetch_transcripts(client, call_ids)
    if not transcripts:
        raise NoTranscriptsError("No transcripts found")

    results = []
    for transcript in transcripts:
        result = await analyze_transcript(transcript, analysis_type, client, api_key, store)
        results.append(result)
        if result.error is None:
            await _pause(delay)

    return {
        "results": _dump_results(results),
        "summary": {
            "totalRequested": len(call_ids),
            "successful": sum(1 for r in results if r.error is None),
            "failed": sum(1 for r in results if r.error is not None),
            "analysisType": analysis_type.value,
        },
    }


async def _process_batch(batch: list[str], client: GongClient, api_key: str, store: AnalysisStore) -> list[AnalysisResult]:
    transcripts = await fetch_transcripts(client, batch)
    return list(await asyncio.gather(*(
        analyze_transcript(t, AnalysisType.BATCH_SUMMARY, client, api_key, store)
        for t in transcripts
    )))


async def run_batch_analysis(
    call_ids: list[str],
    client: GongClient,
    api_key: str,
    store: AnalysisStore,
    batch_size: int = DEFAULT_BATCH_SIZE,
    delay: float = BATCH_DELAY_SECONDS,
) -> dict:
    """Summarize calls in batches of ``batch_size``; a failed batch fails all its calls."""
    batch_size = max(1, int(batch_size))
    batches = [call_ids[i:i + batch_size] for i in range(0, len(call_ids), batch_size)]
    logger.info(f"Starting batch analysis for {len(call_ids)} calls in {len(batches)} batches")

    all_results: list[AnalysisResult] = []
    for i, batch in enumerate(batches):
        logger.info(f"Processing batch {i + 1}/{len(batches)} ({len(batch)} calls)")
        try:
            all_results.extend(await _process_batch(batch, client, api_key, store))
        except Exception as e:
            logger.error(f"Batch {i + 1} failed: {e}")
            all_results.extend(
                AnalysisResult(call_id=call_id, error="Batch processing failed", details=str(e))
                for call_id in batch
            )

        if i < len(batches) - 1:
            await _pause(delay)

    return {
        "results": _dump_results(all_results),
        "summary": {
            "totalCalls": len(call_ids),
            "totalBatches": len(batches),
            "successful": sum(1 for r in all_results if r.error is None),
            "failed": sum(1 for r in all_results if r.error is not None),
        },
    }
