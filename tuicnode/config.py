"""
tuic-server configuration rendering.

:func:`render` derives a :class:`ServerConfig` from the node's inputs; the
only non-deterministic field is the admin (``[restful]``) secret, sampled
fresh on every call and never persisted.  :meth:`ServerConfig.dumps`
produces the TOML text byte-for-byte identically for identical configs.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable

import tomlkit

from .core.fs import atomic_write
from .credentials import Credential
from .errors import ConfigRenderError

logger = logging.getLogger("tuicnode.config")

DEFAULT_ALPN = ("h3",)
MAX_CLIENTS_PER_USER = 999_999_999


@dataclass(frozen=True)
class QuicTuning:
    initial_mtu:    int  = 1500
    min_mtu:        int  = 1200
    gso:            bool = True
    pmtu:           bool = True
    send_window:    int  = 8 * 1024 * 1024
    receive_window: int  = 4 * 1024 * 1024
    max_idle_time:  str  = "20s"
    controller:     str  = "bbr"
    initial_window: int  = 4 * 1024 * 1024


@dataclass(frozen=True)
class ServerConfig:
    port:           int
    users:          tuple[tuple[str, str], ...]
    certificate:    str
    private_key:    str
    alpn:           tuple[str, ...]
    restful_secret: str
    masquerade:     str
    quic:           QuicTuning = field(default_factory=QuicTuning)

    def to_document(self) -> tomlkit.TOMLDocument:
        doc = tomlkit.document()
        doc.add(tomlkit.comment(f"masquerade: {self.masquerade}"))
        doc.add("log_level", "off")
        doc.add("server", f"0.0.0.0:{self.port}")
        doc.add(tomlkit.nl())
        doc.add("udp_relay_ipv6", False)
        doc.add("zero_rtt_handshake", True)
        doc.add("dual_stack", False)
        doc.add("auth_timeout", "10s")
        doc.add("task_negotiation_timeout", "5s")
        doc.add("gc_interval", "10s")
        doc.add("gc_lifetime", "10s")
        doc.add("max_external_packet_size", 8192)

        users = tomlkit.table()
        for node_id, password in self.users:
            users.add(node_id, password)
        doc.add("users", users)

        tls = tomlkit.table()
        tls.add("self_sign", False)
        tls.add("certificate", self.certificate)
        tls.add("private_key", self.private_key)
        tls.add("alpn", list(self.alpn))
        doc.add("tls", tls)

        restful = tomlkit.table()
        restful.add("addr", f"127.0.0.1:{self.port}")
        restful.add("secret", self.restful_secret)
        restful.add("maximum_clients_per_user", MAX_CLIENTS_PER_USER)
        doc.add("restful", restful)

        q = self.quic
        quic = tomlkit.table()
        quic.add("initial_mtu", q.initial_mtu)
        quic.add("min_mtu", q.min_mtu)
        quic.add("gso", q.gso)
        quic.add("pmtu", q.pmtu)
        quic.add("send_window", q.send_window)
        quic.add("receive_window", q.receive_window)
        quic.add("max_idle_time", q.max_idle_time)
        congestion = tomlkit.table()
        congestion.add("controller", q.controller)
        congestion.add("initial_window", q.initial_window)
        quic.add("congestion_control", congestion)
        doc.add("quic", quic)
        return doc

    def dumps(self) -> str:
        return tomlkit.dumps(self.to_document())


def render(
    port:          int,
    credential:    Credential,
    cert_paths:    tuple[str, str],
    alpn:          tuple[str, ...] = DEFAULT_ALPN,
    masquerade:    str = "",
    *,
    secret_factory: Callable[[], str] = lambda: secrets.token_hex(16),
) -> ServerConfig:
    """Build the server config.  ``cert_paths`` is ``(certificate, private_key)``."""
    cert_path, key_path = cert_paths
    return ServerConfig(
        port=port,
        users=((credential.uuid, credential.password),),
        certificate=cert_path,
        private_key=key_path,
        alpn=tuple(alpn),
        restful_secret=secret_factory(),
        masquerade=masquerade,
    )


def write_config(config: ServerConfig, path: str) -> None:
    """
    Render *config* to *path*.

    The file embeds the credential and admin secret, so it is owner-only.

    :raises ConfigRenderError: If rendering or writing fails.
    """
    try:
        atomic_write(path, config.dumps().encode("utf-8"), mode=0o600)
    except Exception as e:
        raise ConfigRenderError(f"Failed to write config {path}: {e}") from e
    logger.info("Server config written to %s", path)
