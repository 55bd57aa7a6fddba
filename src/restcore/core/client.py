import copy
import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel

from .auth import AuthConstraint, AuthHeader, Credentials, ResolvedAuth, resolve
from .decoding import decode_value
from .errors import ApiError, DecodeError, RateLimitedError, TransportError
from .observability import observe_call
from .pagination import (
    DEFAULT_CURSOR_HEADER,
    DEFAULT_CURSOR_PARAM,
    collect_all,
    decode_page,
    detect_protocol,
)
from .urls import QueryParams, build_url, query_string

T = TypeVar("T")

DEFAULT_USER_AGENT = "restcore/0.1"
DEFAULT_ACCEPT = "application/json"

RATELIMIT_REMAINING = "x-ratelimit-remaining"
RATELIMIT_RESET = "x-ratelimit-reset"


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    body: Optional[bytes] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class Message:
    """Body and content type a wrapper hands to a verb method."""

    body: Optional[bytes] = None
    content_type: Optional[str] = None

    @classmethod
    def json(cls, payload: Any) -> "Message":
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return cls(
            body=json.dumps(payload).encode("utf-8"),
            content_type="application/json",
        )

    @classmethod
    def octet_stream(
        cls, data: bytes, content_type: str = "application/octet-stream"
    ) -> "Message":
        return cls(body=data, content_type=content_type)

    @classmethod
    def form(cls, pairs: QueryParams) -> "Message":
        """application/x-www-form-urlencoded body; unset values are dropped."""
        return cls(
            body=query_string(pairs).encode("ascii"),
            content_type="application/x-www-form-urlencoded",
        )


@dataclass(frozen=True)
class Response(Generic[T]):
    status: int
    headers: httpx.Headers
    body: T
    links: Dict[str, Dict[str, str]] = field(default_factory=dict)


def _strip_query(url: str) -> str:
    return str(httpx.URL(url).copy_with(query=None))


class RestClient:
    """
    Shared async HTTP client for generated REST wrappers.
    - Resolves the auth header per call, before any I/O
    - Builds URLs against the base host, a client-wide override or a per-call host
    - One round trip per dispatch; no retries
    - Decodes bodies with the tolerant decoder when a target type is given
    - Aggregates link- or cursor-paged list endpoints
    """

    def __init__(
        self,
        *,
        base_url: str,
        credentials: Optional[Credentials] = None,
        upload_host: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        accept: str = DEFAULT_ACCEPT,
        timeout_seconds: float = 10.0,
        cursor_header: str = DEFAULT_CURSOR_HEADER,
        cursor_param: str = DEFAULT_CURSOR_PARAM,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        base_url = (base_url or "").rstrip("/")
        if not base_url:
            raise ValueError("base_url must be provided.")

        self.base_url = base_url
        self.credentials = credentials or Credentials()
        self.upload_host = upload_host.rstrip("/") if upload_host else None
        self.user_agent = user_agent
        self.accept = accept
        self.timeout_seconds = timeout_seconds
        self.cursor_header = cursor_header
        self.cursor_param = cursor_param
        self.log = logger or logging.getLogger("restcore.client")
        # None keeps api_call/page_fetched on the shared event logger
        self._event_logger = logger
        self._host_override: Optional[str] = None

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout_seconds)

    @classmethod
    def from_config(cls, config: Any, **kwargs: Any) -> "RestClient":
        """Keyword arguments override the matching config fields."""
        settings: Dict[str, Any] = dict(
            base_url=config.base_url,
            credentials=config.credentials,
            upload_host=config.upload_host,
            user_agent=config.user_agent,
            timeout_seconds=config.timeout_seconds,
            cursor_header=config.cursor_header,
            cursor_param=config.cursor_param,
        )
        settings.update(kwargs)
        return cls(**settings)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --- URLs --------------------------------------------------------------- #

    @property
    def host_override(self) -> Optional[str]:
        return self._host_override

    def with_host_override(self, host: str) -> "RestClient":
        """
        Point every endpoint at another host (e.g. an enterprise install).
        Mutates this client: set it before the client is shared between
        concurrent tasks, or use with_host() for a separate copy.
        """
        self._host_override = host.rstrip("/")
        self.log.debug("host override set to %s", self._host_override)
        return self

    def remove_host_override(self) -> "RestClient":
        """Mutates this client; see with_host_override()."""
        self._host_override = None
        return self

    def with_host(self, host: str) -> "RestClient":
        """
        Copy of this client pointed at ``host``. The copy shares the
        connection pool, and closing it leaves the pool open.
        """
        clone = copy.copy(self)
        clone._owns_http = False
        clone._host_override = host.rstrip("/")
        return clone

    def url(
        self, path: str, params: QueryParams = (), *, host: Optional[str] = None
    ) -> str:
        """Per-call ``host`` wins over the client-wide override, then base_url."""
        return build_url(
            self._host_override or self.base_url, path, params, base_override=host
        )

    def upload_url(self, path: str, params: QueryParams = ()) -> str:
        return self.url(path, params, host=self.upload_host)

    # --- Dispatch ----------------------------------------------------------- #

    async def send(
        self,
        request: Request,
        auth: Optional[ResolvedAuth],
        *,
        accept: Optional[str] = None,
        constraint: AuthConstraint = AuthConstraint.DEFAULT,
    ) -> Response[Any]:
        """
        Exactly one round trip.
        - Raises TransportError when the service was never reached
        - Raises ApiError (or RateLimitedError) on non-2xx/3xx statuses
        - Raises DecodeError if a 2xx body isn't JSON
        - Returns the envelope with parsed JSON (None for empty bodies)
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": accept or self.accept,
        }
        if request.content_type:
            headers["Content-Type"] = request.content_type
        extra: Dict[str, Any] = {}
        if isinstance(auth, AuthHeader):
            headers["Authorization"] = auth.value
        elif auth is not None:
            extra["auth"] = auth

        safe_url = _strip_query(request.url)
        with observe_call(
            request.method, safe_url, auth=str(constraint), logger=self._event_logger
        ) as call:
            try:
                resp = await self.http.request(
                    request.method,
                    request.url,
                    content=request.body,
                    headers=headers,
                    **extra,
                )
            except httpx.TransportError as exc:
                call["error_type"] = type(exc).__name__
                raise TransportError(
                    f"Network/timeout error calling {request.method} {safe_url}: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                call["error_type"] = type(exc).__name__
                raise TransportError(
                    f"HTTPX error calling {request.method} {safe_url}: {exc}"
                ) from exc
            call["status"] = resp.status_code

        if 200 <= resp.status_code < 400:
            body = self._safe_json(resp, strict=resp.status_code < 300)
            return Response(
                status=resp.status_code,
                headers=resp.headers,
                body=body,
                links=dict(resp.links),
            )

        raise self._to_api_error(resp, method=request.method)

    def _safe_json(self, resp: httpx.Response, *, strict: bool = True) -> Any:
        # Handle empty responses (204 No Content, etc.)
        if resp.status_code == 204 or not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as exc:
            if not strict:
                return None
            snippet = (resp.text or "")[:500]
            raise DecodeError(
                f"Expected JSON from {resp.request.method} "
                f"{_strip_query(str(resp.request.url))}, got non-JSON body "
                f"snippet: {snippet!r}"
            ) from exc

    def _to_api_error(self, resp: httpx.Response, *, method: str) -> ApiError:
        url = _strip_query(str(resp.request.url))
        raw = resp.content or b""
        response_json: Optional[Dict[str, Any]] = None
        message = raw.decode("utf-8", errors="replace") if raw else "empty response"

        if "json" in resp.headers.get("content-type", "").lower() and raw:
            try:
                parsed = json.loads(raw)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                response_json = parsed
                detail = (
                    parsed.get("message")
                    or parsed.get("error_description")
                    or parsed.get("error")
                )
                if detail:
                    message = str(detail)

        kwargs = dict(
            status_code=resp.status_code,
            method=method,
            url=url,
            message=message,
            raw_body=raw,
            response_json=response_json,
            headers=resp.headers,
        )

        retry_after = self._rate_limit_wait(resp.headers)
        if retry_after is not None:
            return RateLimitedError(retry_after_seconds=retry_after, **kwargs)
        return ApiError(**kwargs)

    @staticmethod
    def _rate_limit_wait(headers: httpx.Headers) -> Optional[int]:
        remaining = headers.get(RATELIMIT_REMAINING)
        reset = headers.get(RATELIMIT_RESET)
        if remaining is None or reset is None:
            return None
        try:
            if int(remaining) != 0:
                return None
            return max(0, int(reset) - int(time.time()))
        except ValueError:
            return None

    # --- Verbs -------------------------------------------------------------- #

    async def request(
        self,
        method: str,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        resolved = resolve(auth, self.credentials)
        message = message or Message()
        req = Request(
            method=method.upper(),
            url=url,
            body=message.body,
            content_type=message.content_type,
        )
        resp = await self.send(req, resolved, accept=accept, constraint=auth)
        if model is None or resp.body is None:
            return resp
        return replace(resp, body=decode_value(resp.body, model))

    async def get(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        return await self.request(
            "GET", url, message, model=model, auth=auth, accept=accept
        )

    async def post(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        return await self.request(
            "POST", url, message, model=model, auth=auth, accept=accept
        )

    async def post_jwt(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        """POST authenticated as the application (JWT), not the token bearer."""
        return await self.request(
            "POST", url, message, model=model, auth=AuthConstraint.JWT, accept=accept
        )

    async def put(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        return await self.request(
            "PUT", url, message, model=model, auth=auth, accept=accept
        )

    async def patch(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        return await self.request(
            "PATCH", url, message, model=model, auth=auth, accept=accept
        )

    async def delete(
        self,
        url: str,
        message: Optional[Message] = None,
        *,
        model: Optional[Type[T]] = None,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[Any]:
        return await self.request(
            "DELETE", url, message, model=model, auth=auth, accept=accept
        )

    # --- Pagination --------------------------------------------------------- #

    async def get_pages(
        self,
        url: str,
        item_type: Type[T],
        *,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Tuple[Optional[str], Response[List[T]]]:
        """Fetch one page; returns the next page URL (if any) and its items."""
        resp = await self.get(url, auth=auth, accept=accept)
        items = decode_page(resp, item_type, 0)
        protocol = detect_protocol(
            resp, cursor_header=self.cursor_header, cursor_param=self.cursor_param
        )
        return protocol.next_url(url, resp), replace(resp, body=items)

    async def get_all_pages(
        self,
        url: str,
        item_type: Type[T],
        *,
        auth: AuthConstraint = AuthConstraint.DEFAULT,
        accept: Optional[str] = None,
    ) -> Response[List[T]]:
        """Aggregate every page; status and headers come from the last page."""

        async def fetch(page_url: str) -> Response[Any]:
            return await self.get(page_url, auth=auth, accept=accept)

        items, last = await collect_all(
            fetch,
            url,
            item_type,
            cursor_header=self.cursor_header,
            cursor_param=self.cursor_param,
            logger=self._event_logger,
        )
        return replace(last, body=items)


__all__ = [
    "DEFAULT_USER_AGENT",
    "Request",
    "Message",
    "Response",
    "RestClient",
]
