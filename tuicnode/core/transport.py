"""
HTTP transport helpers.

Two clients from the standard library, tried in order:

- ``http.client`` (primary) — a single direct request, no redirects.
- ``urllib.request`` (fallback) — used when the primary client cannot
  complete the exchange at the connection level; follows redirects and
  honours proxy environment variables.

Every call carries an explicit timeout.  Zero external dependencies.
"""

from __future__ import annotations

import http.client
import logging
import os
import urllib.error
import urllib.parse
import urllib.request

logger = logging.getLogger("tuicnode.transport")

_USER_AGENT = "tuicnode"


def _request(
    method:  str,
    url:     str,
    timeout: float,
) -> tuple[int, bytes]:
    """Execute a single request through ``http.client``."""
    parsed = urllib.parse.urlparse(url)
    scheme = parsed.scheme or "http"
    host = parsed.hostname or "localhost"
    port = parsed.port or (443 if scheme == "https" else 80)
    path = parsed.path or "/"
    if parsed.query:
        path += "?" + parsed.query

    if scheme == "https":
        conn = http.client.HTTPSConnection(host, port, timeout=timeout)
    else:
        conn = http.client.HTTPConnection(host, port, timeout=timeout)
    try:
        conn.request(method, path, headers={"User-Agent": _USER_AGENT})
        resp = conn.getresponse()
        return resp.status, resp.read()
    finally:
        conn.close()


def _urlopen(url: str, timeout: float) -> tuple[int, bytes]:
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as e:
        return e.code, e.read()


def get_text(url: str, timeout: float = 5.0) -> str:
    """
    GET *url* and return the decoded body.

    :raises RuntimeError: On a non-2xx status.
    :raises OSError:      When neither client can reach the server.
    """
    try:
        status, data = _request("GET", url, timeout)
    except (OSError, http.client.HTTPException) as e:
        logger.debug("GET %s via http.client failed (%s); falling back to urllib", url, e)
        status, data = _urlopen(url, timeout)
    if not 200 <= status < 300:
        raise RuntimeError(f"GET {url} failed (HTTP {status})")
    return data.decode("utf-8", errors="replace")


def download(url: str, dest: str, timeout: float = 120.0) -> None:
    """
    Fetch *url* into *dest*, following redirects.

    The body lands in ``<dest>.part`` first and is renamed into place only
    once the transfer completed, so an interrupted download never leaves a
    truncated file at *dest*.
    """
    part = dest + ".part"
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(part, "wb") as f:
            while True:
                chunk = resp.read(64 * 1024)
                if not chunk:
                    break
                f.write(chunk)
        os.replace(part, dest)
    except BaseException:
        try:
            os.unlink(part)
        except FileNotFoundError:
            pass
        raise
