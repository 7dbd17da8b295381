"""Fetch a web page and turn it into source text for the pipeline.

Every hop, including each redirect, must resolve to public addresses only;
loopback, private and link-local targets are refused before a request is
sent.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from urllib.parse import urlparse

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import FetchError, InputError
from app.modules.flashcards.normalizer import normalize

logger = get_logger(__name__)

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def validate_url(url: str) -> str:
    value = (url or "").strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputError("Please provide a valid http(s) URL", detail=value)
    return value


async def resolve_host(host: str) -> list[IPAddress]:
    """Return every address ``host`` resolves to."""
    try:
        return [ipaddress.ip_address(host)]
    except ValueError:
        pass
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise FetchError(detail=f"could not resolve {host}: {e}") from e
    return [ipaddress.ip_address(info[4][0].split("%", 1)[0]) for info in infos]


async def ensure_public_host(url: str) -> None:
    """Raise ``InputError`` when ``url`` points at a non-public address."""
    if settings.importer.allow_private_hosts:
        return
    host = urlparse(url).hostname or ""
    addresses = await resolve_host(host)
    blocked = [str(a) for a in addresses if not a.is_global]
    if not addresses or blocked:
        logger.warning("Refusing to import %s (resolves to %s)", url, blocked or "nothing")
        raise InputError(
            "That address cannot be imported", detail=f"{host} -> {', '.join(blocked)}"
        )


async def fetch_url_text(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    max_chars: int | None = None,
) -> str:
    """Download ``url`` and return its normalized plain text.

    Redirects are followed by hand so every hop passes ``ensure_public_host``.
    Non-2xx responses raise ``FetchError`` carrying the status code; the body
    is not normalized in that case.
    """
    target = validate_url(url)
    cfg = settings.importer
    headers = {"User-Agent": cfg.user_agent}

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=cfg.timeout_seconds)
    try:
        for _ in range(cfg.max_redirects + 1):
            await ensure_public_host(target)
            try:
                response = await http.get(target, headers=headers, follow_redirects=False)
            except httpx.HTTPError as e:
                logger.warning("Fetching %s failed: %s", target, e)
                raise FetchError(detail=str(e)) from e
            if not response.is_redirect:
                break
            target = validate_url(str(response.url.join(response.headers["location"])))
            logger.info("Following redirect to %s", target)
        else:
            raise FetchError(detail=f"more than {cfg.max_redirects} redirects")
    finally:
        if owns_client:
            await http.aclose()

    if not response.is_success:
        logger.warning("Fetching %s returned HTTP %s", target, response.status_code)
        raise FetchError(status_code=response.status_code, detail=target)

    text = normalize(response.text, cfg.max_chars if max_chars is None else max_chars)
    logger.info("Imported %d characters from %s", len(text), target)
    return text
