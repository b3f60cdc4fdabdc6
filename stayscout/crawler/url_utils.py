"""
URL utilities for the crawler.

This module handles URL parsing, absolute-link resolution and query
parameter rewriting for date-parameterized target URLs.
"""

from typing import Dict, Optional
from urllib.parse import urlparse, urljoin, urlunparse, parse_qsl, urlencode


def domain_of(url: str) -> str:
    """
    Extract domain from URL.

    Example:
        >>> domain_of("https://www.Booking.com/hotel/mx/x.html")
        'www.booking.com'
    """
    if not url:
        return ""
    return urlparse(url).netloc.lower()


def host_allowed(url: str, allowed_suffixes) -> bool:
    """
    True if the URL's host ends with one of allowed_suffixes.

    Example:
        >>> host_allowed("https://assets.songkick.com/a.js", ("songkick.com",))
        True
        >>> host_allowed("https://ads.example.net/x", ("songkick.com",))
        False
    """
    host = urlparse(url).hostname or ""
    host = host.lower()
    return any(host == s or host.endswith("." + s) for s in allowed_suffixes)


def absolute_url(base_url: str, href: Optional[str]) -> str:
    """
    Resolve href against base_url. Empty href yields "".

    Example:
        >>> absolute_url("https://www.songkick.com", "/concerts/123-band")
        'https://www.songkick.com/concerts/123-band'
    """
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url.rstrip("/") + "/", href)


def with_query_params(url: str, params: Dict[str, str]) -> str:
    """
    Set (or replace) query parameters, keeping the others in order.

    Example:
        >>> with_query_params("https://x.com/h.html?checkin=2026-01-01&a=1",
        ...                   {"checkin": "2026-01-02", "checkout": "2026-01-03"})
        'https://x.com/h.html?checkin=2026-01-02&a=1&checkout=2026-01-03'
    """
    u = urlparse(url)
    pairs = parse_qsl(u.query, keep_blank_values=True)
    seen = set()
    out = []
    for k, v in pairs:
        if k in params:
            if k in seen:
                continue
            out.append((k, params[k]))
            seen.add(k)
        else:
            out.append((k, v))
    for k, v in params.items():
        if k not in seen:
            out.append((k, v))
    return urlunparse((u.scheme, u.netloc, u.path, u.params, urlencode(out), u.fragment))


def query_param(url: str, name: str) -> Optional[str]:
    """Value of the first query parameter called name, if any."""
    for k, v in parse_qsl(urlparse(url).query, keep_blank_values=True):
        if k == name:
            return v
    return None
