"""Registry client interface.

The registry stores repository archives keyed by the name's URL path
(`a/b/_v1.0.0`). Transfers are opaque tar byte streams.
"""

from abc import ABC, abstractmethod

from batl.core.name import Name

DEFAULT_REGISTRY_URL = "https://api.batl.circetools.net"


class Registry(ABC):
    """Abstract interface for registry operations."""

    @abstractmethod
    def search(self, query: str) -> list[str]:
        """List item identifiers matching `query`."""
        ...

    @abstractmethod
    def download(self, name: Name) -> bytes:
        """Fetch the archive published under `name`.

        Raises:
            NetworkFailure: On transport errors or any non-200 response
        """
        ...

    @abstractmethod
    def upload(self, name: Name, archive: bytes, credentials: str) -> None:
        """Publish `archive` under `name`.

        Raises:
            NetworkFailure: On transport errors or any non-200 response
        """
        ...
