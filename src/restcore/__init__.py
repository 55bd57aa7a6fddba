"""restcore package exports."""

from .core import (
    ApiError,
    AuthConstraint,
    AuthError,
    ClientConfig,
    Credentials,
    CyclicPaginationError,
    DecodeError,
    JWTSigner,
    Message,
    MissingCredentialError,
    PagedError,
    PageDecodeError,
    RateLimitedError,
    Response,
    RestClient,
    RestClientError,
    TolerantEnum,
    TransportError,
    create_client_from_env,
    load_env_config,
)

__all__ = [
    # Client
    "RestClient",
    "Message",
    "Response",
    # Auth
    "AuthConstraint",
    "Credentials",
    "JWTSigner",
    # Decoding
    "TolerantEnum",
    # Config
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
