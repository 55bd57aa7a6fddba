import logging

import httpx
import pytest
import respx
from restcore.core.auth import AuthConstraint, Credentials
from restcore.core.client import RestClient
from restcore.core.errors import ApiError, TransportError
from restcore.core.logging import LogfmtFormatter, setup_logging
from restcore.core.observability import log_event, observe_call

BASE = "https://api.example.com"


def _api_calls(caplog):
    return [r for r in caplog.records if r.getMessage() == "api_call"]


@pytest.mark.asyncio
@respx.mock
async def test_api_call_logged_on_success(caplog):
    caplog.set_level(logging.INFO, logger="restcore.observability")
    respx.get(f"{BASE}/repos/octo/hello").mock(
        return_value=httpx.Response(200, json={"ok": True})
    )
    client = RestClient(base_url=BASE, credentials=Credentials(token="secret-token"))
    try:
        await client.get(client.url("/repos/octo/hello", [("ref", "main")]))
    finally:
        await client.aclose()

    (record,) = _api_calls(caplog)
    assert record.method == "GET"
    assert record.url == f"{BASE}/repos/octo/hello"
    assert record.status == 200
    assert record.duration_ms >= 0
    assert record.auth == "default"


@pytest.mark.asyncio
@respx.mock
async def test_api_call_logged_for_error_status(caplog):
    caplog.set_level(logging.INFO, logger="restcore.observability")
    respx.get(f"{BASE}/missing").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )
    async with RestClient(base_url=BASE) as client:
        with pytest.raises(ApiError):
            await client.get(client.url("/missing"))

    (record,) = _api_calls(caplog)
    assert record.status == 404


@pytest.mark.asyncio
@respx.mock
async def test_transport_failure_is_logged_as_exception(caplog):
    caplog.set_level(logging.INFO, logger="restcore.observability")
    respx.get(f"{BASE}/slow").mock(side_effect=httpx.ConnectTimeout("boom"))
    async with RestClient(base_url=BASE) as client:
        with pytest.raises(TransportError):
            await client.get(client.url("/slow"))

    (record,) = _api_calls(caplog)
    assert record.status == "exception"
    assert record.error_type == "ConnectTimeout"
    assert record.url == f"{BASE}/slow"
    assert record.duration_ms >= 0


@pytest.mark.asyncio
@respx.mock
async def test_credentials_never_reach_log_records(caplog):
    caplog.set_level(logging.DEBUG)
    respx.post(f"{BASE}/applications/app/token").mock(
        return_value=httpx.Response(200, json={})
    )
    creds = Credentials(token="secret-token", client_id="app", client_secret="shh")
    async with RestClient(base_url=BASE, credentials=creds) as client:
        await client.post(
            client.url("/applications/app/token"),
            auth=AuthConstraint.BASIC_CLIENT_CREDENTIALS,
        )

    (record,) = _api_calls(caplog)
    assert record.auth == "basic_client_credentials"
    formatted = LogfmtFormatter().format(record)
    for secret in ("secret-token", "shh", "Authorization"):
        assert secret not in caplog.text
        assert secret not in formatted


@pytest.mark.asyncio
@respx.mock
async def test_injected_logger_receives_call_and_page_events(caplog):
    custom = logging.getLogger("restcore.tests.custom")
    caplog.set_level(logging.INFO, logger=custom.name)
    caplog.set_level(logging.INFO, logger="restcore.observability")
    respx.get(f"{BASE}/items").mock(
        side_effect=[
            httpx.Response(
                200, json=[{"id": 1}], headers={"Link": f'<{BASE}/items?page=2>; rel="next"'}
            ),
            httpx.Response(200, json=[{"id": 2}]),
        ]
    )
    async with RestClient(base_url=BASE, logger=custom) as client:
        resp = await client.get_all_pages(client.url("/items"), dict)

    assert [item["id"] for item in resp.body] == [1, 2]
    mine = [r for r in caplog.records if r.name == custom.name]
    events = [r.getMessage() for r in mine]
    assert events.count("api_call") == 2
    assert events.count("page_fetched") == 2
    assert not [r for r in caplog.records if r.name == "restcore.observability"]


def test_log_event_drops_reserved_keys(caplog):
    caplog.set_level(logging.INFO, logger="restcore.observability")
    log_event("custom", service="github", name="ignored", lineno=-1)

    record = next(r for r in caplog.records if r.getMessage() == "custom")
    assert record.service == "github"
    assert record.name == "restcore.observability"
    assert record.lineno != -1


def test_logfmt_formatter_quotes_and_skips_missing():
    record = logging.LogRecord(
        "restcore.observability", logging.INFO, __file__, 1, "api_call", None, None
    )
    record.method = "GET"
    record.url = "https://api.example.com/search?q=a b"
    record.status = 200

    line = LogfmtFormatter().format(record)
    assert line.startswith("level=info logger=restcore.observability event=api_call")
    assert "method=GET" in line
    assert 'url="https://api.example.com/search?q=a b"' in line
    assert "status=200" in line
    assert "duration_ms" not in line


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging("debug")
        setup_logging("debug")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, LogfmtFormatter)
        assert root.level == logging.DEBUG
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])


def test_observe_call_records_unexpected_errors(caplog):
    caplog.set_level(logging.INFO, logger="restcore.observability")
    with pytest.raises(KeyError):
        with observe_call("GET", f"{BASE}/x", auth="default"):
            raise KeyError("boom")

    (record,) = _api_calls(caplog)
    assert record.status == "exception"
    assert record.error_type == "KeyError"


def test_logfmt_values():
    record = logging.LogRecord("restcore", logging.WARNING, __file__, 1, "", None, None)
    record.service = ""
    record.paging = 'say "hi"'
    record.count = True

    line = LogfmtFormatter(fields=("service", "paging", "count")).format(record)
    assert line == (
        'level=warning logger=restcore service="" paging="say \\"hi\\"" count=true'
    )
