"""Synchronous HTTP client for the user-management API under test.

Responses come back raw: the probes assert on status codes, so nothing here
calls raise_for_status(). Transport failures (httpx.HTTPError) propagate.
"""

from __future__ import annotations

from typing import Optional

import httpx

from userprobe.config import DEFAULT_TIMEOUT_S
from userprobe.models import UserCreateRequest

CREATE_PATH = "/user/create"
LIST_PATH = "/user/get"


class UserApiClient:
    """Thin wrapper over one httpx.Client bound to the target base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def __enter__(self) -> UserApiClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if not self._client.is_closed:
            self._client.close()

    def create_user(self, request: UserCreateRequest) -> httpx.Response:
        """POST /user/create with the request as a JSON body."""
        return self._client.post(CREATE_PATH, json=request.to_payload())

    def list_users(self) -> httpx.Response:
        """GET /user/get."""
        return self._client.get(LIST_PATH)

    def ping(self) -> bool:
        """True if the target answers HTTP at all, whatever the status."""
        try:
            self._client.get(LIST_PATH)
        except httpx.HTTPError:
            return False
        return True
