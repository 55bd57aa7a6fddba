from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class RestClientError(Exception):
    """Base error for client failures."""


class AuthError(RestClientError):
    """Credential material does not satisfy the call's auth constraint."""


class MissingCredentialError(AuthError):
    def __init__(self, constraint: Any, missing: str):
        super().__init__(
            f"{constraint} authentication requires {missing}, none configured"
        )
        self.constraint = constraint
        self.missing = missing


class TransportError(RestClientError):
    """The service was never reached (connect, timeout, TLS, protocol)."""


class ApiError(RestClientError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        message: str,
        raw_body: bytes = b"",
        response_json: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(f"{status_code} {method} {url}: {message}")
        self.status_code = status_code
        self.method = method
        self.url = url
        self.message = message
        self.raw_body = raw_body
        self.response_json = response_json
        self.headers = dict(headers or {})

    @property
    def status(self) -> int:
        return self.status_code


class RateLimitedError(ApiError):
    def __init__(self, *, retry_after_seconds: int, **kwargs: Any):
        super().__init__(**kwargs)
        self.retry_after_seconds = retry_after_seconds


class DecodeError(RestClientError):
    def __init__(self, message: str, *, path: Optional[str] = None):
        detail = f"{path}: {message}" if path else message
        super().__init__(detail)
        self.path = path
        self.reason = message


class PagedError(RestClientError):
    """Aggregation over multiple pages failed."""


class PageDecodeError(PagedError):
    def __init__(self, page_index: int, cause: DecodeError):
        super().__init__(f"page {page_index} failed to decode: {cause}")
        self.page_index = page_index
        self.cause = cause


class CyclicPaginationError(PagedError):
    def __init__(self, url: str, page_index: int):
        super().__init__(
            f"next page after page {page_index} points back to visited url {url}"
        )
        self.url = url
        self.page_index = page_index


__all__ = [
    "RestClientError",
    "AuthError",
    "MissingCredentialError",
    "TransportError",
    "ApiError",
    "RateLimitedError",
    "DecodeError",
    "PagedError",
    "PageDecodeError",
    "CyclicPaginationError",
]
