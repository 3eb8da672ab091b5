"""LLM Client — Instructor + OpenAI chat completions for call analysis."""

from typing import Optional

import instructor
from openai import OpenAI
from pydantic import BaseModel
from loguru import logger

from config.schemas import CallSummary, FullCallAnalysis, SentimentAnalysis
from config.settings import OPENAI_BASE_URL, OPENAI_MODEL


FULL_ANALYSIS_CHARS = 4000
SUMMARY_CHARS = 1500
SENTIMENT_CHARS = 2000


class LLMNotConfiguredError(RuntimeError):
    """Raised when an analysis is requested without an OpenAI API key."""


def get_instructor_client(
    api_key: str,
    base_url: str | None = None,
    timeout: float = 30,
    mode: instructor.Mode = instructor.Mode.JSON,
) -> instructor.Instructor:
    """Create an Instructor client around the OpenAI SDK.

    Args:
        api_key: OpenAI API key
        base_url: API URL (defaults to OPENAI_BASE_URL env var)
        timeout: Request timeout in seconds
        mode: Instructor output mode (JSON maps to response_format=json_object)

    Returns:
        Instructor-wrapped OpenAI client
    """
    if not api_key:
        raise LLMNotConfiguredError("OpenAI API key not configured")
    return instructor.from_openai(
        OpenAI(base_url=base_url or OPENAI_BASE_URL, api_key=api_key, timeout=timeout),
        mode=mode,
    )


def extract_structured(
    prompt: str,
    response_model: type[BaseModel],
    api_key: str,
    model: str = OPENAI_MODEL,
    system_prompt: str | None = None,
    max_tokens: int = 1200,
    temperature: float = 0.3,
    max_retries: int = 2,
) -> BaseModel:
    """Run one chat completion and validate the reply into ``response_model``.

    Instructor re-asks up to ``max_retries`` times on schema validation failure.
    """
    client = get_instructor_client(api_key)

    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})

    return client.chat.completions.create(
        model=model,
        response_model=response_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        max_retries=max_retries,
    )


def analyze_call(conversation_text: str, api_key: str) -> FullCallAnalysis:
    """Full sales analysis: sentiment, landing point, action items, insights."""
    prompt = (
        "Analyze this COMPLETE sales call transcript and provide accurate insights "
        "based on the entire conversation. Base every field on what was actually said: "
        "the deal stage and next steps, obstacles, action items with their owners, the "
        "quote that best represents the customer's position, buying signals, concerns, "
        "competitor mentions and decision makers.\n\n"
        f"{conversation_text[:FULL_ANALYSIS_CHARS]}"
    )
    result = extract_structured(
        prompt,
        FullCallAnalysis,
        api_key=api_key,
        system_prompt="You are a sales analyst. Return only valid JSON.",
        max_tokens=1200,
    )
    logger.info(f"Full analysis complete: sentiment={result.sentiment}")
    return result


def _call_duration(call: dict | None) -> str:
    duration = (call or {}).get("duration")
    if not duration:
        return "Unknown"
    return f"{round(duration / 60)} minutes"


def _call_participants(call: dict | None) -> str:
    parties = (call or {}).get("parties") or []
    names = [p.get("name") or p.get("emailAddress") for p in parties]
    names = [n for n in names if n]
    return ", ".join(names) or "Unknown"


def summarize_call(conversation_text: str, api_key: str, call: Optional[dict] = None) -> CallSummary:
    """Concise business summary; duration and participants come from call metadata."""
    duration = _call_duration(call)
    participants = _call_participants(call)
    prompt = (
        "Generate a concise business summary for this sales call. Give a brief "
        "descriptive title, the 3 most important discussion points, the overall "
        "sentiment, the primary next action, the number of urgent actions and the "
        "potential business value discussed.\n"
        f'Use duration "{duration}" and participants "{participants}".\n\n'
        f"{conversation_text[:SUMMARY_CHARS]}"
    )
    result = extract_structured(
        prompt,
        CallSummary,
        api_key=api_key,
        system_prompt="You are a sales call summarizer. Return only valid JSON.",
        max_tokens=600,
    )
    return result.model_copy(update={"duration": duration, "participants": participants})


def analyze_sentiment(conversation_text: str, api_key: str) -> SentimentAnalysis:
    """Customer vs. salesperson sentiment with emotional turning points."""
    prompt = (
        "Analyze the sentiment of this sales conversation. Report the overall, customer "
        "and salesperson sentiment, moments where sentiment changed, customer concerns "
        "and signs of customer interest.\n\n"
        f"{conversation_text[:SENTIMENT_CHARS]}"
    )
    return extract_structured(
        prompt,
        SentimentAnalysis,
        api_key=api_key,
        system_prompt="You are a sentiment analysis expert. Return only valid JSON.",
        max_tokens=500,
    )
