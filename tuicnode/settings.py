"""
Immutable run configuration.

All paths live under a single work directory.  Environment overrides are
resolved once by :meth:`Settings.from_env`; the resulting object is passed
explicitly to every stage so no component reads ambient process state.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass
from typing import Mapping

DEFAULT_PORT     = 28888
DEFAULT_WORK_DIR = "proxy_files"
BINARY_VERSION   = "v1.3.5"
BINARY_URL       = (
    "https://github.com/Itsusinn/tuic/releases/download/"
    f"{BINARY_VERSION}/tuic-server-x86_64-linux"
)
IP_ECHO_URL      = "https://api.ipify.org"
GEO_URL_TEMPLATE = "http://ip-api.com/line/{ip}?fields=countryCode"

MASQUERADE_DOMAINS = (
    "www.microsoft.com",
    "www.cloudflare.com",
    "www.bing.com",
    "www.apple.com",
    "www.amazon.com",
    "www.wikipedia.org",
    "cdnjs.cloudflare.com",
    "cdn.jsdelivr.net",
    "static.cloudflareinsights.com",
    "www.speedtest.net",
)


def choose_masquerade(rng: random.Random | None = None) -> str:
    """Pick the decoy domain for this run.  Pass a seeded ``rng`` to fix it."""
    return (rng or random.Random()).choice(MASQUERADE_DOMAINS)


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"Invalid port {raw!r}: not an integer") from None
    if not 0 < port < 65536:
        raise ValueError(f"Invalid port {port}: must be within 1-65535")
    return port


@dataclass(frozen=True)
class Settings:
    work_dir:     str   = DEFAULT_WORK_DIR
    port:         int   = DEFAULT_PORT
    binary_url:   str   = BINARY_URL
    ip_echo_url:  str   = IP_ECHO_URL
    geo_url:      str   = GEO_URL_TEMPLATE
    http_timeout: float = 5.0
    download_timeout: float = 120.0

    @classmethod
    def from_env(
        cls,
        environ:  Mapping[str, str] | None = None,
        *,
        work_dir: str | None = None,
        port:     int | None = None,
    ) -> "Settings":
        """
        Build settings from the environment, with explicit arguments winning.

        - ``SERVER_PORT``     — listen port (default 28888)
        - ``TUIC_WORK_DIR``   — storage directory (default ``proxy_files``)
        - ``TUIC_BINARY_URL`` — relay binary download location
        """
        env = os.environ if environ is None else environ
        if port is None:
            raw = env.get("SERVER_PORT", "").strip()
            port = _parse_port(raw) if raw else DEFAULT_PORT
        else:
            port = _parse_port(str(port))
        return cls(
            work_dir=work_dir or env.get("TUIC_WORK_DIR", "").strip() or DEFAULT_WORK_DIR,
            port=port,
            binary_url=env.get("TUIC_BINARY_URL", "").strip() or BINARY_URL,
        )

    # ── Derived paths ─────────────────────────────────────────────────────────

    def _path(self, name: str) -> str:
        return os.path.join(self.work_dir, name)

    @property
    def config_path(self) -> str:
        return self._path("server.toml")

    @property
    def cert_path(self) -> str:
        return self._path("tuic-cert.pem")

    @property
    def key_path(self) -> str:
        return self._path("tuic-key.pem")

    @property
    def binary_path(self) -> str:
        return self._path("tuic-server")

    @property
    def credential_path(self) -> str:
        return self._path("tuic_user.txt")
