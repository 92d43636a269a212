"""
Error taxonomy for the catalog search engine.

Backend errors wrap the underlying transport or driver failure (kept as
``__cause__``) and are never retried here; callers map them to a server
error. Identifiers missing from a store are not errors.
"""

from typing import Optional


class CatalogSearchError(Exception):
    """Base catalog search error"""


class BackendError(CatalogSearchError):
    """An external store was unreachable or answered with something unusable"""

    def __init__(self, message: str, backend: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.backend = backend
        self.status_code = status_code

    def __str__(self) -> str:
        base = f"[{self.backend}] {self.args[0]}"
        if self.status_code is not None:
            base += f" (status {self.status_code})"
        return base


class IndexBackendError(BackendError):
    """Full-text index request failed or returned a malformed payload"""


class RelationalStoreError(BackendError):
    """Relational catalog query failed"""

    def __init__(self, message: str, backend: str = "postgres"):
        super().__init__(message, backend)


class InvalidIdentifierError(ValueError, CatalogSearchError):
    """Catalog identifier is not 16 characters of [0-9a-z]"""

    def __init__(self, value: str):
        super().__init__(f"Invalid catalog id {value!r}. Must be 16 lowercase alphanumeric characters.")
        self.value = value
