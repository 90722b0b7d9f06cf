from __future__ import annotations

import ipaddress
from urllib.parse import quote, urlparse


def normalize_base_url(base_url: str | None) -> str | None:
    if base_url is None:
        return None
    base_url = base_url.strip().rstrip("/")
    if not base_url:
        return None

    # urlparse 会把 "localhost:5000" 的 localhost 当作 scheme，只认显式的 ://
    if "://" in base_url:
        return base_url

    trimmed = base_url.lstrip("/")
    parsed = urlparse(f"http://{trimmed}")
    host = parsed.hostname or ""

    scheme = "https"
    try:
        ip_addr = ipaddress.ip_address(host)
        if ip_addr.is_private or ip_addr.is_loopback:
            scheme = "http"
    except ValueError:
        if host in {"localhost"}:
            scheme = "http"

    return f"{scheme}://{trimmed}"


def join_url(base_url: str, *segments: str, trailing_slash: bool = False) -> str:
    """拼接 URL，每个路径片段单独转义（片段内的 / 也会被转义）"""
    path = "/".join(quote(str(segment).strip("/"), safe="") for segment in segments)
    url = f"{base_url.rstrip('/')}/{path}" if path else base_url.rstrip("/")
    if trailing_slash:
        url += "/"
    return url
