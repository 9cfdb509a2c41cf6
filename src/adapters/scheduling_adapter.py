"""Adapter for loading users from the scheduling system.

Calls the scheduling-system proxy over HTTP (httpx) and parses the
returned users into RemoteIdentity records. Transient transport errors
are retried with tenacity.
"""

import os

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from src.config import settings
from src.reconciliation.errors import RemoteFetchError
from src.reconciliation.schemas import RemoteIdentity

logger = structlog.get_logger()


class SchedulingAdapter:
    """Adapter for the scheduling-system user roster.

    Read-only: users are fetched fresh for every reconciliation session
    and never written back.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        integration_key: str | None = None,
        timeout: float | None = None,
        max_attempts: int = 3,
        wait: wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize with proxy endpoint and credentials.

        Args:
            base_url: Proxy URL. Falls back to settings / SCHEDULING_API_URL.
            api_key: Bearer token. Falls back to settings / SCHEDULING_API_KEY.
            integration_key: Integration name sent to the proxy
            timeout: Request timeout in seconds
            max_attempts: Attempts per request on transport errors
            wait: tenacity wait strategy between attempts
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._base_url = (
            base_url
            or settings.scheduling_api_url
            or os.environ.get("SCHEDULING_API_URL")
        )
        self._api_key = (
            api_key or settings.scheduling_api_key or os.environ.get("SCHEDULING_API_KEY")
        )
        self._integration_key = integration_key or settings.scheduling_integration_key
        self._timeout = timeout or settings.scheduling_timeout_seconds
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Create an HTTP client for the proxy.

        Raises:
            ValueError: If no proxy URL is configured
        """
        if not self._base_url:
            raise ValueError(
                "No scheduling proxy URL. Set SCHEDULING_API_URL env var "
                "or pass base_url to constructor."
            )
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return httpx.AsyncClient(
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _call(
        self,
        action: str,
        organization_id: str,
        **extra,
    ) -> dict:
        """POST an action to the proxy and return the JSON body.

        Raises:
            RemoteFetchError: On non-2xx responses or exhausted retries
        """
        body = {
            "action": action,
            "organizationId": organization_id,
            "integrationKey": self._integration_key,
            **extra,
        }
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, log_level=20),  # INFO level
            reraise=True,
        )
        try:
            async with self._client() as client:
                async for attempt in retrying:
                    with attempt:
                        response = await client.post(self._base_url, json=body)
        except httpx.TransportError as e:
            logger.error(
                "scheduling proxy unreachable",
                action=action,
                attempts=self._max_attempts,
                error=str(e),
            )
            raise RemoteFetchError(f"Scheduling system unreachable: {e}") from e

        if response.is_error:
            raise RemoteFetchError(
                _error_message(response), status_code=response.status_code
            )
        return response.json()

    async def get_users(
        self,
        organization_id: str,
        status: str = "active",
    ) -> list[RemoteIdentity]:
        """Load users for an organization.

        Args:
            organization_id: Organization identifier
            status: User status filter (default "active")

        Returns:
            List of RemoteIdentity records

        Raises:
            RemoteFetchError: If the roster cannot be fetched
        """
        payload = await self._call(
            "get_users", organization_id, params={"status": status}
        )
        rows = payload.get("data") or []

        # Best effort - skip malformed rows
        users = []
        for row in rows:
            try:
                users.append(RemoteIdentity.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed scheduling user",
                    row=row,
                    error=str(e),
                )
        return users


def _error_message(response: httpx.Response) -> str:
    """Extract the proxy's error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return f"Scheduling API error ({response.status_code})"
