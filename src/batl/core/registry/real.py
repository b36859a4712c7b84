"""Production registry client over HTTP."""

import logging

import httpx

from batl.core.errors import NetworkFailure
from batl.core.name import Name
from batl.core.registry.abc import DEFAULT_REGISTRY_URL, Registry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


class HttpRegistry(Registry):
    """Registry client using httpx.

    Only HTTP 200 counts as success.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"{method} {path} failed: {e}") from e

        if response.status_code != 200:
            raise NetworkFailure(f"{method} {path} returned status {response.status_code}")
        return response

    def search(self, query: str) -> list[str]:
        response = self._send("GET", "/pkg", params={"q": query})
        try:
            items = response.json()
        except ValueError as e:
            raise NetworkFailure(f"Registry returned an invalid listing: {e}") from e
        if not isinstance(items, list):
            raise NetworkFailure("Registry returned an invalid listing")
        return [str(item) for item in items]

    def download(self, name: Name) -> bytes:
        return self._send("GET", f"/pkg/{name.to_url_path()}").content

    def upload(self, name: Name, archive: bytes, credentials: str) -> None:
        self._send(
            "POST",
            f"/pkg/{name.to_url_path()}",
            content=archive,
            headers={"x-api-key": credentials, "content-type": "application/x-tar"},
        )
