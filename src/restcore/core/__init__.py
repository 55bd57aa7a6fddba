"""Core runtime for restcore (service-agnostic)."""

from .auth import AuthConstraint, AuthHeader, Credentials, JWTSigner, resolve
from .client import Message, Request, Response, RestClient
from .config import ClientConfig, create_client_from_env, load_env_config
from .decoding import (
    DateOnly,
    NullBool,
    NullDict,
    NullFloat,
    NullInt,
    NullList,
    NullStr,
    OptionalUrl,
    TolerantDateTime,
    TolerantEnum,
    decode,
    decode_tagged,
    decode_value,
    null_default,
)
from .errors import (
    ApiError,
    AuthError,
    CyclicPaginationError,
    DecodeError,
    MissingCredentialError,
    PagedError,
    PageDecodeError,
    RateLimitedError,
    RestClientError,
    TransportError,
)
from .oauth import (
    AccessToken,
    get_access_token,
    refresh_access_token,
    user_consent_url,
    with_access_token,
)
from .pagination import CursorPaging, LinkPaging, SinglePage, collect_all
from .urls import build_url, encode_path, expand_path, query_string

__all__ = [
    # Client
    "RestClient",
    "Request",
    "Message",
    "Response",
    # Auth
    "AuthConstraint",
    "AuthHeader",
    "Credentials",
    "JWTSigner",
    "resolve",
    # OAuth2
    "AccessToken",
    "user_consent_url",
    "get_access_token",
    "refresh_access_token",
    "with_access_token",
    # URLs
    "build_url",
    "encode_path",
    "expand_path",
    "query_string",
    # Decoding
    "decode",
    "decode_value",
    "decode_tagged",
    "null_default",
    "NullStr",
    "NullInt",
    "NullFloat",
    "NullBool",
    "NullList",
    "NullDict",
    "TolerantEnum",
    "DateOnly",
    "TolerantDateTime",
    "OptionalUrl",
    # Pagination
    "collect_all",
    "LinkPaging",
    "CursorPaging",
    "SinglePage",
    # Config helpers
    "ClientConfig",
    "create_client_from_env",
    "load_env_config",
    # Exceptions
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
