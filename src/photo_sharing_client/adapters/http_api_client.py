"""REST API client for the photo sharing service."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

import httpx

from photo_sharing_client.domain.errors import ApiError, ErrorKind

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500

TokenProvider = Callable[[], str | None]
AuthErrorHook = Callable[[ApiError], None]


class RequestKind(StrEnum):
    """Encoding of an outbound request body."""

    JSON = "json"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class Attachment:
    """A single named binary attachment for a multipart upload."""

    field_name: str
    file_name: str
    content: bytes
    content_type: str


class ApiClient(Protocol):
    """Interface for requests against the photo sharing service."""

    def bind_session(
        self, token_provider: TokenProvider, on_auth_error: AuthErrorHook
    ) -> None:
        """Attach the credential source and the auth-failure hook."""

    async def request(
        self,
        method: str,
        path: str,
        body: dict[str, object] | Attachment | None = None,
        kind: RequestKind = RequestKind.JSON,
    ) -> object:
        """Perform a request and return the parsed payload or raise ApiError."""


def _no_token() -> str | None:
    return None


def _ignore_auth_error(error: ApiError) -> None:
    return None


@dataclass
class HttpxApiClient(ApiClient):
    """API client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0
    token_provider: TokenProvider = field(default=_no_token)
    on_auth_error: AuthErrorHook = field(default=_ignore_auth_error)

    @classmethod
    def create(cls, base_url: str, timeout: float = 15.0) -> "HttpxApiClient":
        """Create an API client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    def bind_session(
        self, token_provider: TokenProvider, on_auth_error: AuthErrorHook
    ) -> None:
        """Attach the credential source and the auth-failure hook."""
        self.token_provider = token_provider
        self.on_auth_error = on_auth_error

    async def request(
        self,
        method: str,
        path: str,
        body: dict[str, object] | Attachment | None = None,
        kind: RequestKind = RequestKind.JSON,
    ) -> object:
        """Perform a request and return the parsed JSON payload."""
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: dict[str, object] = {"headers": headers, "timeout": self.timeout}
        if kind is RequestKind.MULTIPART:
            if not isinstance(body, Attachment):
                raise TypeError("multipart requests take a single Attachment")
            kwargs["files"] = {
                body.field_name: (body.file_name, body.content, body.content_type)
            }
        elif body is not None:
            kwargs["json"] = body

        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(ErrorKind.NETWORK, str(exc) or type(exc).__name__) from exc

        error = classify_response(response)
        if error is not None:
            if error.is_auth_error:
                self.on_auth_error(error)
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                ErrorKind.NETWORK,
                "Malformed response body",
                status_code=response.status_code,
            ) from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def classify_response(response: httpx.Response) -> ApiError | None:
    """Map a non-2xx response to an ApiError; return None on success."""
    status = response.status_code
    if httpx.codes.is_success(status):
        return None
    message = _server_message(response)
    if status in {HTTP_UNAUTHORIZED, HTTP_FORBIDDEN}:
        return ApiError(ErrorKind.AUTH, message or "Not authorized", status)
    if status == HTTP_NOT_FOUND:
        return ApiError(ErrorKind.NOT_FOUND, message or "Not found", status)
    if status >= HTTP_SERVER_ERROR:
        return ApiError(ErrorKind.NETWORK, message or "Server error", status)
    return ApiError(ErrorKind.CLIENT, message or "Request rejected", status)


def _server_message(response: httpx.Response) -> str:
    """Extract the server-supplied message, if the body has one."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(payload, str):
        return payload
    return ""
