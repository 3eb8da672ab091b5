"""Tests for the HTTP surface (FastAPI TestClient, dependencies overridden)."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock, MagicMock

from app import app, get_gong_client, get_openai_key, get_store
from pipeline.orchestrator import NoTranscriptsError
from services.gong.client import GongAPIError
from services.secrets import Credentials, MissingCredentialsError


TRANSCRIPT = {
    "callId": "1",
    "transcript": [
        {"speakerId": "rep", "sentences": [{"text": "Hi there", "start": 1000, "end": 3000}]},
    ],
}


@pytest.fixture
def gong():
    client = MagicMock()
    client.get_transcripts = AsyncMock(return_value=[TRANSCRIPT])
    client.list_calls = AsyncMock(return_value=[])
    client.list_users = AsyncMock(return_value=[])
    client.get_call = AsyncMock(return_value={"id": "1", "title": "Discovery call", "parties": []})
    return client


@pytest.fixture
def api(gong, tmp_path):
    from services.store import AnalysisStore

    app.dependency_overrides[get_gong_client] = lambda: gong
    app.dependency_overrides[get_openai_key] = lambda: "sk-test"
    app.dependency_overrides[get_store] = lambda: AnalysisStore(str(tmp_path))
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Health ──

class TestHealth:
    def test_healthy(self, api):
        creds = Credentials(access_key="ak", secret_key="sk", base_url="https://api.gong.io/v2", openai_key="sk-openai")
        with patch("app.get_credentials", return_value=creds):
            resp = api.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "gong": True, "openai": True}

    def test_degraded_without_credentials(self, api):
        with patch("app.get_credentials", side_effect=MissingCredentialsError("Missing vendor credentials")):
            resp = api.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"


# ── Transcripts ──

class TestTranscriptRoute:
    def test_missing_call_ids(self, api):
        resp = api.post("/api/transcript", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert set(body) == {"error", "message", "example"}
        assert body["error"] == "Call IDs required"
        assert "callIds" in body["example"]

    def test_missing_call_ids_ai_analysis(self, api):
        resp = api.post("/api/ai-analysis", json={"callIds": []})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Please provide callIds array or single callId"

    def test_single_call_id(self, api, gong):
        resp = api.post("/api/transcript", json={"callId": "1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["transcriptSummary"]["requestedCallIds"] == ["1"]
        [call] = data["callTranscripts"]
        assert call["transcript"][0]["speakerName"] == "Speaker 1"
        assert call["transcript"][0]["timestamp"] == "00:01"
        assert call["analytics"]["totalWords"] == 2
        assert gong.get_transcripts.await_args.args[0] == ["1"]

    def test_vendor_error_status_passed_through(self, api, gong):
        gong.get_transcripts = AsyncMock(side_effect=GongAPIError(401, "Invalid credentials"))
        resp = api.post("/api/transcript", json={"callIds": ["1"]})
        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] == "Invalid credentials"
        assert body["timestamp"].endswith("Z")

    def test_missing_credentials_is_500(self, api):
        def unavailable():
            raise MissingCredentialsError("Missing vendor credentials: GONG_ACCESS_KEY")

        app.dependency_overrides[get_gong_client] = unavailable
        resp = api.post("/api/transcript", json={"callIds": ["1"]})
        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"


# ── AI Analysis ──

class TestAiAnalysisRoute:
    def test_requires_openai_key(self, api):
        app.dependency_overrides[get_openai_key] = lambda: None
        resp = api.post("/api/ai-analysis", json={"callIds": ["1"]})
        assert resp.status_code == 503

    def test_unknown_type_falls_back_to_full(self, api):
        result = {"results": [], "summary": {}}
        with patch("app.run_ai_analysis", new_callable=AsyncMock, return_value=result) as mock_run:
            resp = api.post("/api/ai-analysis", json={"callIds": ["1"], "analysisType": "poetry"})
        assert resp.status_code == 200
        assert mock_run.await_args.args[1].value == "full"

    def test_summary_type_passed(self, api):
        with patch("app.run_ai_analysis", new_callable=AsyncMock, return_value={}) as mock_run:
            api.post("/api/ai-analysis", json={"callId": "1", "analysisType": "summary"})
        assert mock_run.await_args.args[0] == ["1"]
        assert mock_run.await_args.args[1].value == "summary"

    def test_no_transcripts_is_404(self, api):
        with patch("app.run_ai_analysis", new_callable=AsyncMock, side_effect=NoTranscriptsError("none")):
            resp = api.post("/api/ai-analysis", json={"callIds": ["1"]})
        assert resp.status_code == 404


# ── Batch Analysis ──

class TestBatchRoute:
    @pytest.mark.parametrize("body", [{}, {"callIds": []}, {"callIds": "1"}])
    def test_requires_call_id_list(self, api, body):
        assert api.post("/api/batch-analysis", json=body).status_code == 400

    @pytest.mark.parametrize("batch_size", [0, -1, "5", True])
    def test_rejects_bad_batch_size(self, api, batch_size):
        resp = api.post("/api/batch-analysis", json={"callIds": ["1"], "batchSize": batch_size})
        assert resp.status_code == 400

    def test_passes_batch_size(self, api):
        with patch("app.run_batch_analysis", new_callable=AsyncMock, return_value={"results": []}) as mock_run:
            resp = api.post("/api/batch-analysis", json={"callIds": ["1", "2"], "batchSize": 1})
        assert resp.status_code == 200
        assert mock_run.await_args.args[0] == ["1", "2"]
        assert mock_run.await_args.kwargs["batch_size"] == 1


# ── Calls & Users ──

class TestDirectoryRoutes:
    def test_calls_enhanced_and_filtered(self, api, gong):
        gong.list_calls = AsyncMock(return_value=[
            {"id": "1", "title": "Product demo", "duration": 1800, "parties": []},
            {"id": "2", "title": "Quick sync", "duration": 60, "parties": []},
        ])
        resp = api.get("/api/calls", params={
            "fromDateTime": "2024-01-01T00:00:00Z",
            "toDateTime": "2024-02-01T00:00:00Z",
            "minDuration": 300,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert [c["id"] for c in data["calls"]] == ["1"]
        assert data["calls"][0]["callType"] == "demo"
        assert data["callsSummary"]["dateRange"] == {
            "from": "2024-01-01T00:00:00.000Z", "to": "2024-02-01T00:00:00.000Z",
        }
        assert data["stats"]["totalCalls"] == 1
        assert gong.list_calls.await_args.kwargs["max_records"] == 50

    def test_calls_invalid_date(self, api):
        resp = api.get("/api/calls", params={"fromDateTime": "yesterday-ish", "toDateTime": "2024-01-01"})
        assert resp.status_code == 400

    def test_users_filtered(self, api, gong):
        gong.list_users = AsyncMock(return_value=[
            {"id": "u1", "firstName": "Ana", "lastName": "Rep", "emailAddress": "ana@x.com"},
            {"id": "u2", "emailAddress": "old@x.com", "active": False},
        ])
        resp = api.get("/api/users", params={"active": "true"})
        assert resp.status_code == 200
        data = resp.json()
        assert [u["id"] for u in data["users"]] == ["u1"]
        assert data["users"][0]["fullName"] == "Ana Rep"
        assert data["usersSummary"]["activeUsers"] == 1
        assert data["analytics"]["totalUsers"] == 1


# ── Insights & Stats ──

class TestInsightsRoutes:
    def test_call_insights(self, api, gong):
        resp = api.get("/api/calls/1/insights")
        assert resp.status_code == 200
        data = resp.json()
        assert data["callOverview"]["callType"] == "discovery"
        assert data["hasTranscript"] is True
        assert data["businessInsights"]["nextSteps"] == ["Schedule product demo"]
        assert set(data["scores"]) == {"engagement", "qualification", "nextStepClarity"}
        assert gong.get_call.await_args.args[0] == "1"

    def test_call_insights_not_found(self, api, gong):
        gong.get_call = AsyncMock(return_value=None)
        assert api.get("/api/calls/missing/insights").status_code == 404

    def test_call_stats(self, api, gong):
        gong.list_calls = AsyncMock(return_value=[
            {"id": "1", "title": "Great demo", "duration": 600, "started": "2024-03-06T14:30:00Z", "parties": []},
        ])
        resp = api.get("/api/calls/stats", params={
            "fromDateTime": "2024-03-01T00:00:00Z",
            "toDateTime": "2024-04-01T00:00:00Z",
            "groupBy": "week",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["overview"]["totalCalls"] == 1
        assert data["trends"]["callsByPeriod"] == {"2024-03-03": 1}
        assert data["insights"]["sentimentDistribution"]["positive"] == 1
        assert data["groupBy"] == "week"
        assert gong.list_calls.await_args.kwargs["max_records"] == 1000

    def test_call_stats_invalid_date(self, api):
        resp = api.get("/api/calls/stats", params={"fromDateTime": "soon", "toDateTime": "2024-01-01"})
        assert resp.status_code == 400
