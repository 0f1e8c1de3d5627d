"""Shared JSON-over-HTTP plumbing for collaborator adapters."""

from typing import Any, Optional

import httpx

from chat_widget.application.errors import NetworkFailure, ServerError


class HttpCollaborator:
    """POSTs JSON bodies to one collaborator endpoint.

    Transport errors become ``NetworkFailure``; non-2xx statuses and
    undecodable bodies become ``ServerError``. Requests are attempted once.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Initialize collaborator.

        Args:
            client: Shared async HTTP client (carries base URL and timeout)
            path: Endpoint path, e.g. "/api/chat"
            headers: Extra headers sent with every request
        """
        self._client = client
        self._path = path
        self._headers = headers or {}

    async def _post(self, body: dict[str, Any]) -> Any:
        """
        POST a JSON body and decode the JSON response.

        Returns:
            Decoded response body, or None for an empty body
        """
        try:
            response = await self._client.post(self._path, json=body, headers=self._headers)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"POST {self._path} failed: {e!r}") from e

        if not response.is_success:
            raise ServerError(
                f"POST {self._path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(
                f"POST {self._path} returned an invalid JSON body",
                status_code=response.status_code,
            ) from e
