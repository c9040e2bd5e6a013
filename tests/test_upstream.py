"""
Tests for UpstreamClient against httpx.MockTransport.
"""

import json
import re

import httpx
import pytest

from convert_proxy import config
from convert_proxy.obfuscation import reverse_char_codes, xor_encode
from convert_proxy.upstream import UpstreamClient

TOKEN = r"[0-9a-f]{32}"


def make_client(handler, **kwargs):
    return UpstreamClient(transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_call_success_returns_parsed_body():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(200, json={"i": "job", "s": "P"})

    client = make_client(handler)
    res = await client.call("/abc/", {"data": "x"})

    assert res.status is True
    assert res.code == 200
    assert res.data == {"i": "job", "s": "P"}
    assert any(seen["url"] == f"{base}/abc/" for base in config.UPSTREAM_ENDPOINTS)
    assert seen["body"] == {"data": "x"}
    assert seen["headers"]["user-agent"] == "Postify/1.0.0"
    assert seen["headers"]["origin"] == "https://ogmp3.lat"
    assert seen["headers"]["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_call_absolute_url_skips_pool():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={})

    client = make_client(handler)
    await client.call("https://example.org/direct")
    assert seen == ["https://example.org/direct"]


@pytest.mark.asyncio
async def test_call_picks_from_every_endpoint():
    hosts = set()

    def handler(request):
        hosts.add(f"{request.url.scheme}://{request.url.host}")
        return httpx.Response(200, json={})

    client = make_client(handler)
    for _ in range(60):
        await client.call("/x/")
    assert hosts == set(config.UPSTREAM_ENDPOINTS)


@pytest.mark.asyncio
async def test_get_sends_no_body():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["content"] = request.content
        return httpx.Response(200, json={"ok": 1})

    client = make_client(handler)
    res = await client.call("/x/", {"data": "ignored"}, method="get")
    assert res.status
    assert seen == {"method": "GET", "content": b""}


@pytest.mark.asyncio
async def test_non_2xx_reports_upstream_status():
    client = make_client(lambda request: httpx.Response(503, text="busy"))
    res = await client.call("/x/", {})
    assert res.status is False
    assert res.code == 503
    assert "503" in res.error


@pytest.mark.asyncio
async def test_network_error_becomes_500():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    res = await client.call("/x/", {})
    assert res.status is False
    assert res.code == 500
    assert "connection refused" in res.error


@pytest.mark.asyncio
async def test_non_json_body_is_returned_as_text():
    client = make_client(lambda request: httpx.Response(200, text="plain"))
    res = await client.call("/x/")
    assert res.status
    assert res.data == "plain"


@pytest.mark.asyncio
async def test_fetch_status_path_and_body():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"s": "C", "i": "job42"})

    client = make_client(handler)
    res = await client.fetch_status("job42")

    assert res.status
    assert res.data["s"] == "C"
    assert re.fullmatch(rf"/{TOKEN}/status/{re.escape(xor_encode('job42'))}/{TOKEN}/", seen["path"])
    assert seen["body"] == {"data": "job42"}


@pytest.mark.asyncio
async def test_fetch_status_without_token_is_a_failure():
    client = make_client(lambda request: httpx.Response(200, json={}))
    res = await client.fetch_status(None)
    assert res.status is False
    assert res.code == 500


def test_submit_path_uses_reversed_char_codes():
    url = "https://youtu.be/dQw4w9WgXcQ"
    path = UpstreamClient.submit_path(url)
    assert re.fullmatch(rf"/{TOKEN}/init/{re.escape(reverse_char_codes(url))}/{TOKEN}/", path)


def test_submit_path_tokens_are_independent():
    path = UpstreamClient.submit_path("https://youtu.be/dQw4w9WgXcQ")
    parts = path.strip("/").split("/")
    assert parts[0] != parts[3]


def test_download_url_template():
    url = UpstreamClient.download_url("job42")
    assert re.fullmatch(
        rf"{re.escape(config.DOWNLOAD_BASE)}/{TOKEN}/download/{re.escape(xor_encode('job42'))}/{TOKEN}/",
        url,
    )


@pytest.mark.asyncio
async def test_redirects_are_followed():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        if request.url.path == "/moved/":
            return httpx.Response(307, headers={"Location": "https://api3.apiapi.lat/final/"})
        return httpx.Response(200, json={"s": "C", "i": "job"})

    client = make_client(handler)
    res = await client.call("https://api.apiapi.lat/moved/", {"data": "x"})

    assert res.status is True
    assert res.data == {"s": "C", "i": "job"}
    assert seen == ["/moved/", "/final/"]
