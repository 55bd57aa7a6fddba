import pytest
from restcore.core.client import DEFAULT_USER_AGENT, RestClient
from restcore.core.config import create_client_from_env, load_env_config
from restcore.core.pagination import DEFAULT_CURSOR_HEADER, DEFAULT_CURSOR_PARAM

ENV_NAMES = (
    "BASE_URL",
    "API_TOKEN",
    "UPLOAD_HOST",
    "USER_AGENT",
    "TIMEOUT_SECONDS",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "JWT_ISSUER",
    "JWT_PRIVATE_KEY",
    "JWT_PRIVATE_KEY_PATH",
    "JWT_ALGORITHM",
    "REFRESH_TOKEN",
    "CURSOR_HEADER",
    "CURSOR_PARAM",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for prefix in ("RESTCORE", "GITHUB"):
        for name in ENV_NAMES:
            monkeypatch.delenv(f"{prefix}_{name}", raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("RESTCORE_BASE_URL", "https://api.example.com")
    config = load_env_config(use_dotenv=False)

    assert config.base_url == "https://api.example.com"
    assert config.credentials.token is None
    assert config.credentials.jwt_signer is None
    assert config.upload_host is None
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.timeout_seconds == 10.0
    assert config.cursor_header == DEFAULT_CURSOR_HEADER
    assert config.cursor_param == DEFAULT_CURSOR_PARAM


def test_full_environment_with_custom_prefix(monkeypatch):
    monkeypatch.setenv("GITHUB_BASE_URL", " https://api.github.com ")
    monkeypatch.setenv("GITHUB_API_TOKEN", "ghp_x")
    monkeypatch.setenv("GITHUB_UPLOAD_HOST", "https://uploads.github.com")
    monkeypatch.setenv("GITHUB_USER_AGENT", "octo-bot/2")
    monkeypatch.setenv("GITHUB_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("GITHUB_CLIENT_ID", "Iv1.abc")
    monkeypatch.setenv("GITHUB_CLIENT_SECRET", "s3cret")
    monkeypatch.setenv("GITHUB_JWT_ISSUER", "4242")
    monkeypatch.setenv("GITHUB_JWT_PRIVATE_KEY", "line1\\nline2")
    monkeypatch.setenv("GITHUB_JWT_ALGORITHM", "HS256")
    monkeypatch.setenv("GITHUB_REFRESH_TOKEN", "rt-1")
    monkeypatch.setenv("GITHUB_CURSOR_HEADER", "X-Page-Token")
    monkeypatch.setenv("GITHUB_CURSOR_PARAM", "page_token")

    config = load_env_config("GITHUB", use_dotenv=False)

    assert config.base_url == "https://api.github.com"
    assert config.credentials.token == "ghp_x"
    assert config.credentials.client_id == "Iv1.abc"
    assert config.credentials.client_secret == "s3cret"
    assert config.upload_host == "https://uploads.github.com"
    assert config.user_agent == "octo-bot/2"
    assert config.timeout_seconds == 2.5
    assert config.credentials.refresh_token == "rt-1"
    assert config.cursor_header == "X-Page-Token"
    assert config.cursor_param == "page_token"
    signer = config.credentials.jwt_signer
    assert signer.issuer == "4242"
    assert signer.private_key == "line1\nline2"
    assert signer.algorithm == "HS256"


def test_private_key_read_from_file(monkeypatch, tmp_path):
    key_file = tmp_path / "app.pem"
    key_file.write_text("-----BEGIN KEY-----\nabc\n-----END KEY-----\n")
    monkeypatch.setenv("RESTCORE_JWT_ISSUER", "1")
    monkeypatch.setenv("RESTCORE_JWT_PRIVATE_KEY_PATH", str(key_file))

    signer = load_env_config(use_dotenv=False).credentials.jwt_signer
    assert signer.private_key.startswith("-----BEGIN KEY-----")
    assert signer.algorithm == "RS256"


@pytest.mark.parametrize(
    "name, value",
    [("JWT_ISSUER", "1"), ("JWT_PRIVATE_KEY", "key")],
)
def test_jwt_settings_must_come_together(monkeypatch, name, value):
    monkeypatch.setenv(f"RESTCORE_{name}", value)
    with pytest.raises(ValueError, match="must be set together"):
        load_env_config(use_dotenv=False)


def test_bad_timeout(monkeypatch):
    monkeypatch.setenv("RESTCORE_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ValueError, match="TIMEOUT_SECONDS"):
        load_env_config(use_dotenv=False)


def test_create_client_requires_base_url(monkeypatch):
    monkeypatch.setattr("restcore.core.config.load_dotenv", lambda: False)
    with pytest.raises(ValueError, match="RESTCORE_BASE_URL"):
        create_client_from_env()


@pytest.mark.asyncio
async def test_create_client_from_env(monkeypatch):
    monkeypatch.setattr("restcore.core.config.load_dotenv", lambda: False)
    monkeypatch.setenv("RESTCORE_BASE_URL", "https://api.example.com/")
    monkeypatch.setenv("RESTCORE_API_TOKEN", "tok")
    monkeypatch.setenv("RESTCORE_UPLOAD_HOST", "https://uploads.example.com")

    client = create_client_from_env(cursor_param="page_token")
    try:
        assert isinstance(client, RestClient)
        assert client.base_url == "https://api.example.com"
        assert client.credentials.token == "tok"
        assert client.cursor_param == "page_token"
        assert client.upload_url("/a") == "https://uploads.example.com/a"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_from_config_carries_cursor_names(monkeypatch):
    monkeypatch.setenv("RESTCORE_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("RESTCORE_CURSOR_HEADER", "X-Page-Token")
    monkeypatch.setenv("RESTCORE_CURSOR_PARAM", "page_token")
    config = load_env_config(use_dotenv=False)

    client = RestClient.from_config(config)
    override = RestClient.from_config(config, cursor_param="after", user_agent="ua/1")
    try:
        assert client.cursor_header == "X-Page-Token"
        assert client.cursor_param == "page_token"
        assert override.cursor_header == "X-Page-Token"
        assert override.cursor_param == "after"
        assert override.user_agent == "ua/1"
    finally:
        await client.aclose()
        await override.aclose()
