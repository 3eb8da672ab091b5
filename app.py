"""CallPulse — Gong call intelligence API for the sales assistant."""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from analysis.directory import (
    enhance_call,
    enhance_user,
    filter_calls_by_duration,
    filter_users,
    summarize_calls,
    summarize_users,
)
from config.schemas import AnalysisType
from config.settings import DATA_DIR, DEFAULT_BATCH_SIZE
from pipeline.orchestrator import (
    CallNotFoundError,
    NoTranscriptsError,
    build_transcript_response,
    fetch_transcripts,
    get_call_insights,
    get_call_stats,
    get_date_range,
    normalize_call_ids,
    run_ai_analysis,
    run_batch_analysis,
    utc_now_iso,
)
from services.gong.client import GongAPIError, GongClient
from services.secrets import MissingCredentialsError, get_credentials
from services.store import AnalysisStore

app = FastAPI(
    title="CallPulse",
    description="Gong calls, users and transcripts reshaped for a conversational assistant, with heuristic analytics and LLM analysis",
    version="0.3.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

CALL_IDS_EXAMPLE = {"callIds": ["8319037588481130420"], "callId": "8319037588481130420"}


# ── Dependencies ──

def get_gong_client() -> GongClient:
    return GongClient.from_credentials(get_credentials())


def get_openai_key() -> str | None:
    return get_credentials().openai_key


def get_store() -> AnalysisStore:
    return AnalysisStore(DATA_DIR)


# ── Error translation ──

@app.exception_handler(GongAPIError)
async def gong_error_handler(request: Request, exc: GongAPIError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": str(exc), "timestamp": utc_now_iso()},
    )


@app.exception_handler(MissingCredentialsError)
async def credentials_error_handler(request: Request, exc: MissingCredentialsError):
    logger.error(f"Credentials unavailable: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc), "timestamp": utc_now_iso()},
    )


class CallIdsRequiredError(ValueError):
    """Request body carried neither callIds nor callId."""


@app.exception_handler(CallIdsRequiredError)
async def call_ids_error_handler(request: Request, exc: CallIdsRequiredError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Call IDs required",
            "message": "Please provide callIds array or single callId",
            "example": CALL_IDS_EXAMPLE,
        },
    )


def _require_call_ids(body: dict) -> list[str]:
    call_ids = normalize_call_ids(body.get("callIds"), body.get("callId"))
    if not call_ids:
        raise CallIdsRequiredError("callIds or callId required")
    return call_ids


# ── Routes ──

@app.get("/api/health")
async def health():
    """Health check — whether vendor and LLM credentials are configured."""
    try:
        credentials = get_credentials()
    except MissingCredentialsError as e:
        return {"status": "degraded", "gong": False, "openai": False, "detail": str(e)}
    return {"status": "healthy", "gong": True, "openai": bool(credentials.openai_key)}


@app.post("/api/transcript")
async def transcript(body: dict, client: GongClient = Depends(get_gong_client)):
    """Fetch transcripts and return normalized utterances plus analytics per call.

    Body: {"callIds": ["8319037588481130420"]} or {"callId": "8319037588481130420"}
    """
    call_ids = _require_call_ids(body)
    logger.info(f"Processing transcript request for call IDs: {call_ids}")

    call_transcripts = await fetch_transcripts(client, call_ids)
    response = build_transcript_response(call_transcripts, call_ids)
    return response.model_dump(by_alias=True, mode="json")


@app.post("/api/ai-analysis")
async def ai_analysis(
    body: dict,
    client: GongClient = Depends(get_gong_client),
    openai_key: str | None = Depends(get_openai_key),
    store: AnalysisStore = Depends(get_store),
):
    """LLM analysis per call. Body: {"callIds": [...], "analysisType": "full|summary|sentiment"}"""
    call_ids = _require_call_ids(body)
    try:
        analysis_type = AnalysisType(body.get("analysisType") or AnalysisType.FULL.value)
    except ValueError:
        analysis_type = AnalysisType.FULL

    if not openai_key:
        raise HTTPException(status_code=503, detail="OpenAI API key not configured")

    try:
        return await run_ai_analysis(call_ids, analysis_type, client, openai_key, store)
    except NoTranscriptsError:
        raise HTTPException(status_code=404, detail="No transcripts found")


@app.post("/api/batch-analysis")
async def batch_analysis(
    body: dict,
    client: GongClient = Depends(get_gong_client),
    openai_key: str | None = Depends(get_openai_key),
    store: AnalysisStore = Depends(get_store),
):
    """Summarize many calls in paced batches. Body: {"callIds": [...], "batchSize": 5}"""
    call_ids = body.get("callIds")
    if not isinstance(call_ids, list) or not call_ids:
        raise HTTPException(status_code=400, detail="callIds array required")

    batch_size = body.get("batchSize", DEFAULT_BATCH_SIZE)
    if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size < 1:
        raise HTTPException(status_code=400, detail="batchSize must be a positive integer")

    if not openai_key:
        raise HTTPException(status_code=503, detail="OpenAI API key not configured")

    return await run_batch_analysis(
        normalize_call_ids(call_ids), client, openai_key, store, batch_size=batch_size,
    )


@app.get("/api/calls")
async def list_calls(
    fromDateTime: str | None = None,
    toDateTime: str | None = None,
    period: str = "week",
    limit: int = Query(50, ge=1, le=1000),
    userId: str | None = None,
    minDuration: int | None = None,
    maxDuration: int | None = None,
    client: GongClient = Depends(get_gong_client),
):
    """List calls in a period with display fields and summary statistics."""
    try:
        from_dt, to_dt = get_date_range(period, fromDateTime, toDateTime)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date: {e}")

    logger.info(f"Fetching calls {from_dt} → {to_dt} (limit={limit}, user={userId})")
    calls = await client.list_calls(from_dt, to_dt, user_id=userId, max_records=limit)
    calls = [enhance_call(c) for c in filter_calls_by_duration(calls, minDuration, maxDuration)]
    stats = summarize_calls(calls)

    return {
        "calls": calls,
        "callsSummary": {
            "totalCalls": len(calls),
            "hasRecordings": stats["hasRecordings"],
            "processedAt": utc_now_iso(),
            "dateRange": {"from": from_dt, "to": to_dt},
        },
        "stats": stats,
        "filters": {"fromDateTime": fromDateTime, "toDateTime": toDateTime, "userId": userId, "period": period},
    }


@app.get("/api/calls/stats")
async def calls_stats(
    period: str | None = None,
    fromDateTime: str | None = None,
    toDateTime: str | None = None,
    groupBy: str = "day",
    userId: str | None = None,
    client: GongClient = Depends(get_gong_client),
):
    """Call volume, duration and participant trends plus distributions (groupBy: hour|day|week|month)."""
    try:
        from_dt, to_dt = get_date_range(period, fromDateTime, toDateTime)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date: {e}")

    stats = await get_call_stats(client, from_dt, to_dt, group_by=groupBy, user_id=userId)
    return {
        **stats,
        "dateRange": {"from": from_dt, "to": to_dt},
        "groupBy": groupBy,
        "processedAt": utc_now_iso(),
    }


@app.get("/api/calls/{call_id}/insights")
async def call_insights(call_id: str, client: GongClient = Depends(get_gong_client)):
    """Heuristic analysis of one call: qualification, next steps, concerns and scores."""
    try:
        insights = await get_call_insights(client, call_id)
    except CallNotFoundError:
        raise HTTPException(status_code=404, detail="Call not found")
    return insights.model_dump(by_alias=True, mode="json")


@app.get("/api/users")
async def list_users(
    active: bool | None = None,
    email: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    client: GongClient = Depends(get_gong_client),
):
    """List workspace users with display fields and distribution analytics."""
    users = await client.list_users(max_records=limit)
    users = [enhance_user(u) for u in filter_users(users, active=active, email=email)]
    logger.info(f"Retrieved {len(users)} users from Gong")

    return {
        "users": users,
        "usersSummary": {
            "totalUsers": len(users),
            "activeUsers": sum(1 for u in users if u["active"]),
            "processedAt": utc_now_iso(),
        },
        "analytics": summarize_users(users),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
