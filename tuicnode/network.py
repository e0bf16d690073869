"""
Public IP and country discovery.

Both lookups degrade instead of failing: an unusable answer is replaced by
a placeholder and reported as a :class:`~tuicnode.errors.Issue`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from .core.transport import get_text
from .errors import Issue
from .settings import GEO_URL_TEMPLATE, IP_ECHO_URL

logger = logging.getLogger("tuicnode.network")

IP_PLACEHOLDER  = "YOUR_SERVER_IP"
UNKNOWN_COUNTRY = "XX"

_IPV4_RE    = re.compile(r"[0-9]{1,3}(\.[0-9]{1,3}){3}")
_COUNTRY_RE = re.compile(r"[A-Za-z]{2}")

Fetch = Callable[[str, float], str]


def fetch_text(url: str, timeout: float) -> str:
    return get_text(url, timeout=timeout)


@dataclass(frozen=True)
class NodeNetworkInfo:
    ip:      str
    country: str
    issues:  tuple[Issue, ...] = ()


def discover_ip(
    fetch:   Fetch = fetch_text,
    url:     str   = IP_ECHO_URL,
    timeout: float = 5.0,
) -> tuple[str, Issue | None]:
    try:
        body = fetch(url, timeout).strip()
    except Exception as e:
        logger.debug("IP lookup via %s failed: %s", url, e)
        return IP_PLACEHOLDER, Issue("network.ip", f"IP lookup failed: {e}")
    if not _IPV4_RE.fullmatch(body):
        return IP_PLACEHOLDER, Issue("network.ip", f"IP lookup returned malformed answer {body[:64]!r}")
    return body, None


def lookup_country(
    ip:       str,
    fetch:    Fetch = fetch_text,
    template: str   = GEO_URL_TEMPLATE,
    timeout:  float = 5.0,
) -> tuple[str, Issue | None]:
    if ip == IP_PLACEHOLDER:
        return UNKNOWN_COUNTRY, Issue("network.country", "Country lookup skipped without a public IP")
    url = template.format(ip=ip)
    try:
        body = fetch(url, timeout)
    except Exception as e:
        logger.debug("Country lookup via %s failed: %s", url, e)
        return UNKNOWN_COUNTRY, Issue("network.country", f"Country lookup failed: {e}")
    lines = body.strip().splitlines()
    code = lines[0].strip() if lines else ""
    if not _COUNTRY_RE.fullmatch(code):
        return UNKNOWN_COUNTRY, Issue("network.country", f"Country lookup returned {code[:16]!r}")
    return code.upper(), None


def resolve(
    fetch:       Fetch = fetch_text,
    *,
    ip_echo_url: str   = IP_ECHO_URL,
    geo_url:     str   = GEO_URL_TEMPLATE,
    timeout:     float = 5.0,
) -> NodeNetworkInfo:
    """Discover the node's public IPv4 and country code.  Never raises."""
    ip, ip_issue = discover_ip(fetch, ip_echo_url, timeout)
    country, geo_issue = lookup_country(ip, fetch, geo_url, timeout)
    issues = tuple(i for i in (ip_issue, geo_issue) if i is not None)
    return NodeNetworkInfo(ip=ip, country=country, issues=issues)
