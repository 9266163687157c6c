"""Guarded HTTP downloads shared by the plain, API-docs and PDF loaders.

Every URL, including each redirect hop, is checked against the SSRF rules
before a request is sent, and bodies are capped at :data:`MAX_CONTENT_SIZE`.
"""

import ipaddress
import socket
from typing import Iterator, Optional, Union
from urllib.parse import urljoin, urlparse

import httpx

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}

_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; KnowledgeIngest/1.0)"}

_TOO_LARGE = "Response body exceeds the maximum allowed size."

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _resolved_addresses(hostname: str) -> Iterator[IPAddress]:
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return
    for info in infos:
        # IPv6 zone ids ("fe80::1%eth0") are not part of the address
        try:
            yield ipaddress.ip_address(info[4][0].split("%")[0])
        except ValueError:
            continue


def _is_internal(address: IPAddress) -> bool:
    return address.is_private or address.is_loopback or address.is_link_local or address.is_reserved


def validate_url(url: str) -> None:
    """Raise ValueError unless *url* is http(s) and points at a public host."""
    parsed = urlparse(url)
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")
    if not parsed.hostname:
        raise ValueError("URL must have a valid hostname.")
    if any(_is_internal(address) for address in _resolved_addresses(parsed.hostname)):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def _redirect_target(current_url: str, response: httpx.Response) -> Optional[str]:
    """Return the validated next hop for a redirect response, else None."""
    if not response.is_redirect:
        return None
    next_url = urljoin(current_url, response.headers.get("location", ""))
    validate_url(next_url)
    return next_url


async def _read_capped(response: httpx.Response) -> bytes:
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_CONTENT_SIZE:
        raise RuntimeError(_TOO_LARGE)

    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > MAX_CONTENT_SIZE:
            raise RuntimeError(_TOO_LARGE)
    return bytes(body)


async def fetch_bytes(url: str, timeout: float = TIMEOUT) -> bytes:
    """Download *url* and return the raw body.

    Raises:
        ValueError: if the URL or a redirect target fails SSRF / scheme validation.
        httpx.HTTPError: on network errors or a non-2xx status.
        RuntimeError: if the body exceeds MAX_CONTENT_SIZE or redirects loop.
    """
    validate_url(url)

    current_url = url
    async with httpx.AsyncClient(follow_redirects=False, timeout=timeout, headers=_HEADERS) as client:
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url) as response:
                next_url = _redirect_target(current_url, response)
                if next_url is None:
                    response.raise_for_status()
                    return await _read_capped(response)
            current_url = next_url

    raise RuntimeError("Too many redirects.")


async def fetch_url(url: str, timeout: float = TIMEOUT) -> str:
    """Download *url* and decode it as text, replacing undecodable bytes."""
    body = await fetch_bytes(url, timeout=timeout)
    return body.decode(errors="replace")
