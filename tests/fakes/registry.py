"""Fake implementation of Registry for testing."""

from batl.core.errors import NetworkFailure
from batl.core.name import Name
from batl.core.registry.abc import Registry


class FakeRegistry(Registry):
    """In-memory registry keyed by URL path.

    Constructor Injection:
    - packages: URL path (e.g. "a/b/_v1.0.0") -> archive bytes
    - search_results: returned verbatim from search()
    - reject_uploads: make upload() fail like a non-200 response

    Examples:
        >>> registry = FakeRegistry(packages={"tools/_v1.0.0": b"..."})
        >>> registry.download(Name.parse("tools@1.0.0"))
        b'...'
    """

    def __init__(
        self,
        *,
        packages: dict[str, bytes] | None = None,
        search_results: list[str] | None = None,
        reject_uploads: bool = False,
    ) -> None:
        self._packages = dict(packages or {})
        self._search_results = list(search_results or [])
        self._reject_uploads = reject_uploads
        self._uploads: list[tuple[str, bytes, str]] = []
        self._queries: list[str] = []

    def search(self, query: str) -> list[str]:
        self._queries.append(query)
        return list(self._search_results)

    def download(self, name: Name) -> bytes:
        path = name.to_url_path()
        if path not in self._packages:
            raise NetworkFailure(f"GET /pkg/{path} returned status 404")
        return self._packages[path]

    def upload(self, name: Name, archive: bytes, credentials: str) -> None:
        path = name.to_url_path()
        if self._reject_uploads:
            raise NetworkFailure(f"POST /pkg/{path} returned status 401")
        self._uploads.append((path, archive, credentials))
        self._packages[path] = archive

    @property
    def uploads(self) -> list[tuple[str, bytes, str]]:
        """(url path, archive, credentials) per upload. For test assertions only."""
        return list(self._uploads)

    @property
    def queries(self) -> list[str]:
        return list(self._queries)
