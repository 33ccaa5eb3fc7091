"""Supabase REST client (PostgREST + GoTrue) used by the cloud push."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from stashbox.adapters.supabase.models import RemoteIdentity
from stashbox.core.logging_utils import truncate_log_content
from stashbox.utils.retry_utils import retry_with_backoff

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Self

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status codes that should trigger a retry of a read call
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.5  # seconds
DEFAULT_MAX_DELAY = 10.0  # seconds

UPSERT_PREFER = "resolution=merge-duplicates,return=minimal"


class SupabaseClientError(Exception):
    """Base exception for Supabase client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SupabaseAuthError(SupabaseClientError):
    """The access token is missing, expired or rejected."""


class SupabaseRetryableError(SupabaseClientError):
    """Error that can be retried."""


def _is_retryable_error(exc: Exception) -> bool:
    if isinstance(exc, SupabaseRetryableError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


def _json_default(value: Any) -> str:
    if isinstance(value, datetime | date):
        return value.isoformat()
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _encode(payload: Any) -> bytes:
    return json.dumps(payload, default=_json_default, ensure_ascii=False).encode("utf-8")


def _error_detail(response: httpx.Response) -> str:
    """Pull the human-readable message out of a PostgREST/GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return truncate_log_content(response.text) or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return truncate_log_content(str(body)) or response.reason_phrase


class SupabaseClient:
    """Async HTTP client for the parts of Supabase the push needs.

    Use as an async context manager; the underlying ``httpx.AsyncClient`` lives
    for the duration of the ``async with`` block.
    """

    def __init__(
        self,
        api_url: str,
        anon_key: str,
        access_token: str,
        timeout: float = 30.0,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: Project URL (e.g. https://xyzcompany.supabase.co)
            anon_key: Project anon key, sent as ``apikey``
            access_token: Signed-in user's JWT, sent as the bearer token
            timeout: Request timeout in seconds
            max_retries: Retries for read calls; writes are never retried
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            transport: Optional httpx transport (tests inject ``httpx.MockTransport``)
        """
        self.api_url = api_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "apikey": self.anon_key,
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise SupabaseClientError("Client not initialized. Use async context manager.")
        return self._client

    async def _with_retry(self, func: Callable[[], Awaitable[T]], operation_name: str) -> T:
        return await retry_with_backoff(
            func,
            should_retry=_is_retryable_error,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=operation_name,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        detail = _error_detail(response)
        message = f"{operation} failed ({response.status_code}): {detail}"
        if response.status_code in (401, 403):
            raise SupabaseAuthError(message, status_code=response.status_code)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise SupabaseRetryableError(message, status_code=response.status_code)
        raise SupabaseClientError(message, status_code=response.status_code)

    async def get_current_identity(self) -> RemoteIdentity:
        """Resolve the user the access token belongs to.

        Raises:
            SupabaseAuthError: If there is no signed-in user
            SupabaseClientError: On any other failure
        """
        if not self.access_token:
            raise SupabaseAuthError("No access token configured")

        async def _fetch() -> RemoteIdentity:
            response = await self.client.get("/auth/v1/user")
            self._raise_for_status(response, "get_user")
            data = response.json()
            if not isinstance(data, dict) or not data.get("id"):
                raise SupabaseAuthError("User not authenticated")
            return RemoteIdentity.model_validate(data)

        return await self._with_retry(_fetch, "get_user")

    async def upsert(
        self,
        collection: str,
        record: dict[str, Any],
        *,
        on_conflict: str,
    ) -> None:
        """Insert or update one row of ``collection`` keyed by ``on_conflict``.

        Sent exactly once; the caller decides whether to re-run.
        """
        response = await self.client.post(
            f"/rest/v1/{collection}",
            params={"on_conflict": on_conflict},
            content=_encode(record),
            headers={"Prefer": UPSERT_PREFER},
        )
        self._raise_for_status(response, f"upsert {collection}")

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        """Return the ``users`` row for ``user_id`` or None when absent."""

        async def _fetch() -> dict[str, Any] | None:
            response = await self.client.get(
                "/rest/v1/users",
                params={"id": f"eq.{user_id}", "select": "id"},
            )
            self._raise_for_status(response, "fetch_profile")
            rows = response.json()
            if isinstance(rows, list) and rows:
                return rows[0]
            return None

        return await self._with_retry(_fetch, "fetch_profile")

    async def insert_profile(self, profile: dict[str, Any]) -> None:
        response = await self.client.post(
            "/rest/v1/users",
            content=_encode(profile),
            headers={"Prefer": "return=minimal"},
        )
        self._raise_for_status(response, "insert_profile")
        logger.info("supabase_profile_created", extra={"user_id": profile.get("id")})
