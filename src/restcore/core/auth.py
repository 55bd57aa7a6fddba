"""Authentication constraints, credential material and header resolution."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

import httpx
import jwt

from .errors import MissingCredentialError

# Services reject app JWTs that live longer than 10 minutes; keep a
# minute of headroom for clock drift.
MAX_JWT_LIFETIME_SECONDS = 9 * 60


class AuthConstraint(str, Enum):
    """Which credential a single endpoint requires."""

    DEFAULT = "default"
    BEARER_TOKEN = "bearer_token"
    JWT = "jwt"
    BASIC_CLIENT_CREDENTIALS = "basic_client_credentials"

    def __str__(self) -> str:
        return self.value


def _mask(value: Optional[Union[str, bytes]]) -> str:
    return "None" if value is None else "'***'"


@dataclass(frozen=True)
class JWTSigner:
    """Mints short-lived application JWTs (``iat``/``exp``/``iss``)."""

    issuer: Union[str, int]
    private_key: Union[str, bytes] = field(repr=False)
    algorithm: str = "RS256"
    lifetime_seconds: int = MAX_JWT_LIFETIME_SECONDS
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def mint(self) -> str:
        now = int(self.clock())
        claims = {
            "iat": now,
            "exp": now + self.lifetime_seconds,
            "iss": str(self.issuer),
        }
        return jwt.encode(claims, self.private_key, algorithm=self.algorithm)


@dataclass(frozen=True)
class Credentials:
    token: Optional[str] = None
    jwt_signer: Optional[JWTSigner] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    token_scheme: str = "Bearer"
    refresh_token: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Credentials(token={_mask(self.token)}, "
            f"jwt_signer={self.jwt_signer!r}, "
            f"client_id={self.client_id!r}, "
            f"client_secret={_mask(self.client_secret)}, "
            f"token_scheme={self.token_scheme!r}, "
            f"refresh_token={_mask(self.refresh_token)})"
        )


@dataclass(frozen=True)
class AuthHeader:
    scheme: str
    credentials: str = field(repr=False)

    @property
    def value(self) -> str:
        return f"{self.scheme} {self.credentials}"


# Bearer-style credentials travel as a prebuilt header; Basic goes to httpx.
ResolvedAuth = Union[AuthHeader, httpx.BasicAuth]


def resolve(
    constraint: AuthConstraint, credentials: Optional[Credentials]
) -> Optional[ResolvedAuth]:
    """
    Pick the credential for one request.
    - DEFAULT: configured token, else unauthenticated (None)
    - BEARER_TOKEN: configured token, required
    - JWT: freshly minted app JWT, required; overrides the token
    - BASIC_CLIENT_CREDENTIALS: client id/secret as httpx.BasicAuth, required
    Raises MissingCredentialError before any I/O happens.
    """
    creds = credentials or Credentials()

    if constraint is AuthConstraint.DEFAULT:
        if creds.token:
            return AuthHeader(creds.token_scheme, creds.token)
        return None

    if constraint is AuthConstraint.BEARER_TOKEN:
        if not creds.token:
            raise MissingCredentialError(constraint, "an API token")
        return AuthHeader(creds.token_scheme, creds.token)

    if constraint is AuthConstraint.JWT:
        if creds.jwt_signer is None:
            raise MissingCredentialError(constraint, "a JWT signer")
        return AuthHeader("Bearer", creds.jwt_signer.mint())

    if constraint is AuthConstraint.BASIC_CLIENT_CREDENTIALS:
        if not creds.client_id or not creds.client_secret:
            raise MissingCredentialError(constraint, "a client id and secret")
        # httpx writes the Basic header at dispatch
        return httpx.BasicAuth(creds.client_id, creds.client_secret)

    raise ValueError(f"Unknown auth constraint: {constraint!r}")


__all__ = [
    "AuthConstraint",
    "AuthHeader",
    "Credentials",
    "JWTSigner",
    "MAX_JWT_LIFETIME_SECONDS",
    "ResolvedAuth",
    "resolve",
]
