"""
Catalog error taxonomy.

Every failure raised by the release store and the Google clients is a
CatalogError subclass. Errors collect operation context as they travel
up the stack so the final message says which operation, which release
and which remote call failed.
"""
from typing import List, Optional, Tuple


class CatalogError(Exception):
    """Base exception for catalog store errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        release_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context: List[Tuple[str, Optional[str]]] = []
        if operation:
            self.context.append((operation, release_id))

    def add_context(self, operation: str, release_id: Optional[str] = None) -> "CatalogError":
        """Record an outer operation; the outermost frame is listed first."""
        self.context.insert(0, (operation, release_id))
        return self

    @property
    def operation(self) -> Optional[str]:
        return self.context[0][0] if self.context else None

    @property
    def release_id(self) -> Optional[str]:
        for _, release_id in self.context:
            if release_id:
                return release_id
        return None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        frames = []
        for operation, release_id in self.context:
            frames.append(f"{operation}(id={release_id})" if release_id else operation)
        return f"{' -> '.join(frames)}: {self.message}"


class Unauthenticated(CatalogError):
    """Credential missing, invalid or expired (HTTP 401 from Google)."""
    status_code = 401


class PermissionDenied(CatalogError):
    """Credential lacks scope or access to the resource (HTTP 403)."""
    status_code = 403


class NotFound(CatalogError):
    """Spreadsheet, sheet, folder or release row does not exist."""
    status_code = 404


class RemoteUnavailable(CatalogError):
    """Transport failure or 5xx-class reply from Google."""
    status_code = 503


class RemoteRequestRejected(CatalogError):
    """Any other 4xx reply, e.g. a malformed range."""
    status_code = 502


class ConfigurationMissing(CatalogError):
    """A required external identifier is not configured."""
    status_code = 500


class ValidationFailed(CatalogError):
    """A required release field is missing; raised before any remote call."""
    status_code = 422
