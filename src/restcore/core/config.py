from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .auth import Credentials, JWTSigner
from .client import DEFAULT_USER_AGENT, RestClient
from .pagination import DEFAULT_CURSOR_HEADER, DEFAULT_CURSOR_PARAM

DEFAULT_PREFIX = "RESTCORE"


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    credentials: Credentials = field(default_factory=Credentials)
    upload_host: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 10.0
    cursor_header: str = DEFAULT_CURSOR_HEADER
    cursor_param: str = DEFAULT_CURSOR_PARAM


def _env(prefix: str, name: str) -> str:
    return os.getenv(f"{prefix}_{name}", "").strip()


def _load_jwt_signer(prefix: str) -> Optional[JWTSigner]:
    issuer = _env(prefix, "JWT_ISSUER")
    key = _env(prefix, "JWT_PRIVATE_KEY")
    key_path = _env(prefix, "JWT_PRIVATE_KEY_PATH")
    if key_path and not key:
        key = Path(key_path).read_text(encoding="utf-8")

    if not issuer and not key:
        return None
    if not issuer or not key:
        raise ValueError(
            f"{prefix}_JWT_ISSUER and {prefix}_JWT_PRIVATE_KEY(_PATH) must be set together."
        )
    # PEM keys stored in .env files usually carry escaped newlines
    key = key.replace("\\n", "\n")
    algorithm = _env(prefix, "JWT_ALGORITHM") or "RS256"
    return JWTSigner(issuer=issuer, private_key=key, algorithm=algorithm)


def load_env_config(
    prefix: str = DEFAULT_PREFIX, *, use_dotenv: bool = True
) -> ClientConfig:
    """Load client configuration from ``<prefix>_*`` variables (optional .env)."""
    if use_dotenv:
        load_dotenv()

    timeout_raw = _env(prefix, "TIMEOUT_SECONDS")
    try:
        timeout = float(timeout_raw) if timeout_raw else 10.0
    except ValueError as exc:
        raise ValueError(
            f"{prefix}_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
        ) from exc

    credentials = Credentials(
        token=_env(prefix, "API_TOKEN") or None,
        jwt_signer=_load_jwt_signer(prefix),
        client_id=_env(prefix, "CLIENT_ID") or None,
        client_secret=_env(prefix, "CLIENT_SECRET") or None,
        refresh_token=_env(prefix, "REFRESH_TOKEN") or None,
    )
    return ClientConfig(
        base_url=_env(prefix, "BASE_URL"),
        credentials=credentials,
        upload_host=_env(prefix, "UPLOAD_HOST") or None,
        user_agent=_env(prefix, "USER_AGENT") or DEFAULT_USER_AGENT,
        timeout_seconds=timeout,
        cursor_header=_env(prefix, "CURSOR_HEADER") or DEFAULT_CURSOR_HEADER,
        cursor_param=_env(prefix, "CURSOR_PARAM") or DEFAULT_CURSOR_PARAM,
    )


def create_client_from_env(prefix: str = DEFAULT_PREFIX, **kwargs) -> RestClient:
    """Create a RestClient from environment variables."""
    config = load_env_config(prefix)
    if not config.base_url:
        raise ValueError(f"Missing {prefix}_BASE_URL in environment.")
    return RestClient.from_config(config, **kwargs)


__all__ = ["ClientConfig", "load_env_config", "create_client_from_env"]
