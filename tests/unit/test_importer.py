"""
Unit tests for URL import using httpx.MockTransport.
"""

import ipaddress

import httpx
import pytest

from app.core.config import settings
from app.modules.flashcards import importer
from app.modules.flashcards.errors import FetchError, InputError
from app.modules.flashcards.importer import ensure_public_host, fetch_url_text, validate_url

PUBLIC_IP = "93.184.216.34"


@pytest.fixture(autouse=True)
def dns(monkeypatch):
    """Fake resolver: literal IPs resolve to themselves, names default to a public IP."""
    table = {}

    async def fake_resolve(host):
        try:
            return [ipaddress.ip_address(host)]
        except ValueError:
            return [ipaddress.ip_address(table.get(host, PUBLIC_IP))]

    monkeypatch.setattr(importer, "resolve_host", fake_resolve)
    return table


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestValidateUrl:
    @pytest.mark.parametrize(
        "url", ["", "   ", "example.com/page", "ftp://example.com/x", "https://"]
    )
    def test_rejects_non_http_urls(self, url):
        with pytest.raises(InputError):
            validate_url(url)

    def test_accepts_and_trims(self):
        assert validate_url("  https://example.com/a  ") == "https://example.com/a"


class TestFetchUrlText:
    @pytest.mark.asyncio
    async def test_returns_normalized_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers.get("user-agent")
            return httpx.Response(
                200, text="<html><body><p>Chlorophyll &amp; light</p></body></html>"
            )

        async with _client(handler) as client:
            text = await fetch_url_text("https://example.com/plants", client=client)

        assert text == "Chlorophyll & light"
        assert "FlashPagesBot" in seen["ua"]

    @pytest.mark.asyncio
    async def test_respects_max_chars(self):
        def handler(request):
            return httpx.Response(200, text="<p>" + "abc " * 100 + "</p>")

        async with _client(handler) as client:
            text = await fetch_url_text("https://example.com", client=client, max_chars=10)
        assert len(text) <= 10

    @pytest.mark.asyncio
    async def test_404_raises_without_normalizing(self, monkeypatch):
        calls = []
        monkeypatch.setattr(importer, "normalize", lambda *a, **k: calls.append(a) or "")

        def handler(request):
            return httpx.Response(404, text="<p>Not here</p>")

        async with _client(handler) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_url_text("https://example.com/missing", client=client)

        assert exc.value.status_code == 404
        assert exc.value.message == "Could not fetch that page (HTTP 404)"
        assert calls == []

    @pytest.mark.asyncio
    async def test_transport_error_becomes_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_url_text("https://example.com", client=client)

        assert exc.value.status_code is None
        assert "connection refused" in exc.value.detail

    @pytest.mark.asyncio
    async def test_invalid_url_never_hits_network(self):
        def handler(request):
            raise AssertionError("network should not be used")

        async with _client(handler) as client:
            with pytest.raises(InputError):
                await fetch_url_text("not-a-url", client=client)


class TestHostGuard:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "http://127.0.0.1/admin",
            "http://[::1]:8080/",
            "http://169.254.169.254/latest/meta-data/",
            "http://10.0.0.5/",
            "http://192.168.1.1/",
        ],
    )
    async def test_non_public_literals_are_refused(self, url):
        with pytest.raises(InputError) as exc:
            await ensure_public_host(url)
        assert exc.value.message == "That address cannot be imported"

    @pytest.mark.asyncio
    async def test_name_resolving_to_private_address_is_refused(self, dns):
        dns["intranet.example.com"] = "10.1.2.3"
        with pytest.raises(InputError):
            await ensure_public_host("https://intranet.example.com/wiki")

    @pytest.mark.asyncio
    async def test_public_host_passes(self):
        await ensure_public_host("https://example.com/page")

    @pytest.mark.asyncio
    async def test_setting_allows_private_hosts(self, monkeypatch):
        monkeypatch.setattr(settings.importer, "allow_private_hosts", True)
        await ensure_public_host("http://127.0.0.1/")

    @pytest.mark.asyncio
    async def test_private_target_never_hits_network(self, dns):
        dns["localhost.test"] = "127.0.0.1"

        def handler(request):
            raise AssertionError("network should not be used")

        async with _client(handler) as client:
            with pytest.raises(InputError):
                await fetch_url_text("http://localhost.test/", client=client)


class TestRedirects:
    @pytest.mark.asyncio
    async def test_public_redirect_is_followed(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "/new"})
            return httpx.Response(200, text="<p>Moved content</p>")

        async with _client(handler) as client:
            text = await fetch_url_text("https://example.com/old", client=client)

        assert text == "Moved content"
        assert seen == ["https://example.com/old", "https://example.com/new"]

    @pytest.mark.asyncio
    async def test_redirect_to_private_address_is_refused(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            return httpx.Response(
                302, headers={"Location": "http://169.254.169.254/latest/meta-data/"}
            )

        async with _client(handler) as client:
            with pytest.raises(InputError):
                await fetch_url_text("https://example.com/hop", client=client)

        assert seen == ["example.com"]

    @pytest.mark.asyncio
    async def test_redirect_loop_is_cut_off(self, monkeypatch):
        monkeypatch.setattr(settings.importer, "max_redirects", 2)
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(302, headers={"Location": "/again"})

        async with _client(handler) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_url_text("https://example.com/start", client=client)

        assert len(calls) == 3
        assert "redirects" in exc.value.detail
