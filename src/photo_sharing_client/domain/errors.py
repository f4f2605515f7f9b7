"""Error taxonomy shared by the client layers."""

from dataclasses import dataclass, replace
from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of a failed operation."""

    NETWORK = "network_error"
    AUTH = "auth_error"
    CLIENT = "client_error"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(eq=False)
class ApiError(Exception):
    """A classified failure, optionally tagged with the operation that raised it."""

    kind: ErrorKind
    message: str
    status_code: int | None = None
    operation: str | None = None

    def __str__(self) -> str:
        prefix = f"{self.operation}: " if self.operation else ""
        return f"{prefix}{self.kind.value}: {self.message}"

    def with_operation(self, operation: str) -> "ApiError":
        """Return a copy of the error carrying the failing operation name."""
        return replace(self, operation=operation)

    @property
    def is_auth_error(self) -> bool:
        return self.kind is ErrorKind.AUTH
