"""Gong REST client — calls, users and transcripts.

Auth: HTTP Basic with ``base64(access_key:secret_key)``.
List endpoints page with ``records.cursor``; the client follows the cursor until
it is absent or ``max_records`` is reached.
"""

import base64
from typing import Optional

import httpx
from loguru import logger

from config.settings import GONG_TIMEOUT_SECONDS
from services.secrets import Credentials


class GongAPIError(Exception):
    """Vendor request failed; ``status_code`` is the HTTP status to surface."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def build_auth_header(access_key: str, secret_key: str) -> str:
    token = base64.b64encode(f"{access_key}:{secret_key}".encode()).decode()
    return f"Basic {token}"


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        if data.get("message"):
            return str(data["message"])
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
    return default


class GongClient:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        base_url: str,
        timeout: float = GONG_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            access_key: Gong API access key
            secret_key: Gong API secret key
            base_url: API root, e.g. https://api.gong.io/v2
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.headers = {
            "Authorization": build_auth_header(access_key, secret_key),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @classmethod
    def from_credentials(cls, credentials: Credentials, **kwargs) -> "GongClient":
        return cls(
            access_key=credentials.access_key,
            secret_key=credentials.secret_key,
            base_url=credentials.base_url,
            **kwargs,
        )

    async def _request(self, method: str, path: str, params: dict | None = None, json: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, headers=self.headers, params=params, json=json)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, "Gong API request failed")
            logger.error(f"Gong {method} {path} failed with {e.response.status_code}: {message}")
            raise GongAPIError(e.response.status_code, message) from e
        except httpx.RequestError as e:
            logger.error(f"Gong {method} {path} unreachable: {e}")
            raise GongAPIError(502, f"Gong API unreachable: {e}") from e

    async def _collect(
        self,
        method: str,
        path: str,
        key: str,
        params: dict | None = None,
        body: dict | None = None,
        max_records: int | None = None,
    ) -> list[dict]:
        """Follow ``records.cursor`` and concatenate ``data[key]`` across pages."""
        items: list[dict] = []
        cursor = None
        while True:
            page_params = dict(params or {})
            page_body = dict(body) if body is not None else None
            if cursor:
                if page_body is not None:
                    page_body["cursor"] = cursor
                else:
                    page_params["cursor"] = cursor

            data = await self._request(method, path, params=page_params or None, json=page_body)
            items.extend(data.get(key) or [])

            if max_records is not None and len(items) >= max_records:
                return items[:max_records]
            cursor = (data.get("records") or {}).get("cursor")
            if not cursor:
                return items

    async def get_transcripts(self, call_ids: list[str], from_datetime: str, to_datetime: str) -> list[dict]:
        """Transcripts for the given calls: ``[{callId, transcript: [...]}, ...]``."""
        body = {
            "filter": {
                "callIds": list(call_ids),
                "fromDateTime": from_datetime,
                "toDateTime": to_datetime,
            }
        }
        logger.info(f"Requesting transcripts for {len(call_ids)} call(s)")
        transcripts = await self._collect("POST", "/calls/transcript", "callTranscripts", body=body)
        logger.info(f"Retrieved transcripts for {len(transcripts)} calls")
        return transcripts

    async def list_calls(
        self,
        from_datetime: str,
        to_datetime: str,
        user_id: str | None = None,
        max_records: int | None = None,
    ) -> list[dict]:
        params = {"fromDateTime": from_datetime, "toDateTime": to_datetime}
        if user_id:
            params["participantIds"] = user_id
        return await self._collect("GET", "/calls", "calls", params=params, max_records=max_records)

    async def get_call(self, call_id: str) -> dict | None:
        data = await self._request("GET", f"/calls/{call_id}")
        return data.get("call")

    async def list_users(self, max_records: int | None = None) -> list[dict]:
        return await self._collect("GET", "/users", "users", max_records=max_records)
