"""Resilient Airtable Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): max N retries with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - Timeouts: immediate failure (the timeout already waited long enough)
    - All failures mapped to AirtableAPIError (core/errors.py)

Design Decisions:
    - Wrapper over raw httpx: isolates retry logic from the submission service (ADR: single responsibility)
    - ±25% jitter on backoff: Airtable's 5 req/s per-base limit is shared by all respondents
    - Attachments use the content API uploadAttachment endpoint (base64 body); with no
      record to anchor to, an empty record is created first ("pending" mode)
    - list_fields reads the table schema from the tables endpoint: Airtable exposes
      fields only as part of a table
"""

import asyncio
import base64
import logging
import random
from typing import Any

import httpx

from app.core.domain_types import AIRTABLE_FIELD_TYPES, FileUpload
from app.core.errors import AirtableAPIError, ErrorContext
from app.core.repository_protocols import TableRef

logger = logging.getLogger(__name__)


class ResilientAirtableClient:
    """Wraps httpx.AsyncClient with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        api_url: str = "https://api.airtable.com/v0",
        content_url: str = "https://content.airtable.com/v0",
        auth_url: str = "https://airtable.com/oauth2/v1",
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds, transport=transport,
        )
        self.api_url = api_url.rstrip("/")
        self.content_url = content_url.rstrip("/")
        self.auth_url = auth_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── Metadata ────────────────────────────────────────────────

    async def whoami(self, access_token: str) -> dict:
        """Identity of the token owner ({"id": "usr...", ...})."""
        return await self._request(
            "GET", f"{self.api_url}/meta/whoami", access_token,
        )

    async def list_bases(self, access_token: str) -> list[dict]:
        data = await self._request(
            "GET", f"{self.api_url}/meta/bases", access_token,
        )
        return data.get("bases", [])

    async def list_tables(self, base_id: str, access_token: str) -> list[dict]:
        data = await self._request(
            "GET", f"{self.api_url}/meta/bases/{base_id}/tables", access_token,
        )
        return data.get("tables", [])

    async def list_fields(
        self, base_id: str, table_id: str, access_token: str,
    ) -> list[dict]:
        """Fields of one table usable as form questions, with select choices as options."""
        tables = await self.list_tables(base_id, access_token)
        table = next(
            (t for t in tables if table_id in (t.get("id"), t.get("name"))), None,
        )
        if table is None:
            raise AirtableAPIError(
                f"Table {table_id} not found in base {base_id}",
                "not_found", status_code=404,
            )
        return [
            {
                "id": f["id"],
                "name": f["name"],
                "type": AIRTABLE_FIELD_TYPES[f["type"]].value,
                "options": [
                    c["name"]
                    for c in (f.get("options") or {}).get("choices", [])
                ],
            }
            for f in table.get("fields", [])
            if f.get("type") in AIRTABLE_FIELD_TYPES
        ]

    # ─── Records (RecordStore) ───────────────────────────────────

    async def create_record(
        self, table: TableRef, fields: dict[str, Any], access_token: str,
    ) -> str:
        context = ErrorContext(operation="create_record")
        data = await self._request(
            "POST", f"{self.api_url}/{table.base_id}/{table.table_id}",
            access_token, json={"fields": fields}, context=context,
        )
        logger.info("Airtable record created", extra={"record_id": data["id"]})
        return data["id"]

    async def attach_file(
        self,
        table: TableRef,
        record_id: str | None,
        field_id: str,
        upload: FileUpload,
        access_token: str,
    ) -> str:
        """Upload one file into an attachment field. Returns the record it landed on."""
        if record_id is None:
            record_id = await self.create_record(table, {}, access_token)
        context = ErrorContext(operation="attach_file")
        await self._request(
            "POST",
            f"{self.content_url}/{table.base_id}/{record_id}/{field_id}/uploadAttachment",
            access_token,
            json={
                "contentType": upload.content_type,
                "file": base64.b64encode(upload.content).decode("ascii"),
                "filename": upload.filename,
            },
            context=context,
        )
        return record_id

    # ─── OAuth ───────────────────────────────────────────────────

    async def exchange_code(
        self,
        *,
        code: str,
        code_verifier: str,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
    ) -> dict:
        """Exchange an authorization code for tokens. No retry: codes are single-use."""
        try:
            response = await self.client.post(
                f"{self.auth_url}/token",
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                    "client_id": client_id,
                    "code_verifier": code_verifier,
                },
                auth=(client_id, client_secret),
            )
        except httpx.HTTPError as e:
            raise AirtableAPIError(str(e), "connection_error")
        if response.status_code >= 400:
            raise AirtableAPIError(
                self._error_message(response), "oauth_error",
                status_code=response.status_code,
            )
        return response.json()

    # ─── Transport ───────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        url: str,
        access_token: str,
        *,
        json: dict | None = None,
        context: ErrorContext | None = None,
    ) -> dict:
        """Send request with automatic retry on transient failures."""
        headers = {"Authorization": f"Bearer {access_token}"}
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method, url, headers=headers, json=json,
                )
            except httpx.TimeoutException:
                raise AirtableAPIError(
                    "API timeout", "timeout", context=context,
                )
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                )
                continue
            if response.status_code >= 400:
                raise AirtableAPIError(
                    self._error_message(response), "client_error",
                    status_code=response.status_code, context=context,
                )
            if attempt:
                logger.info(
                    "Airtable request succeeded after retry",
                    extra={"attempt": attempt + 1},
                )
            return response.json()

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise AirtableAPIError(
                "Rate limit exceeded after retries",
                "rate_limit",
                status_code=429,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise AirtableAPIError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None

    def _error_message(self, response: httpx.Response) -> str:
        """Airtable returns {"error": {"type", "message"}} or {"error": "TYPE"}."""
        try:
            error = response.json().get("error")
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(error, dict):
            return error.get("message") or error.get("type") or str(error)
        return str(error or f"HTTP {response.status_code}")


# Singleton (initialized on startup)
airtable_client: ResilientAirtableClient | None = None


def init_airtable(**kwargs) -> ResilientAirtableClient:
    global airtable_client
    airtable_client = ResilientAirtableClient(**kwargs)
    return airtable_client


async def close_airtable() -> None:
    global airtable_client
    if airtable_client:
        await airtable_client.aclose()
        airtable_client = None


def get_airtable_client() -> ResilientAirtableClient:
    """FastAPI dependency for the Airtable client."""
    if not airtable_client:
        raise RuntimeError("Airtable client not initialized")
    return airtable_client
