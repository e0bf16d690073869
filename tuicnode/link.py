"""``tuic://`` share-link encoding."""

from __future__ import annotations

from .credentials import Credential
from .network import NodeNetworkInfo

NODE_LABEL_PREFIX = "TUIC-"

# Client-side parameters; order is part of the link format.
LINK_PARAMS = (
    ("congestion_control", "bbr"),
    ("alpn", "h3"),
    ("allowInsecure", "1"),
    ("sni", None),
    ("udp_relay_mode", "native"),
    ("disable_sni", "0"),
    ("reduce_rtt", "1"),
    ("max_udp_relay_packet_size", "8192"),
)


def encode(
    credential: Credential,
    network:    NodeNetworkInfo,
    port:       int,
    masquerade: str,
) -> str:
    """Render the share link a client imports to connect to this node."""
    if not (credential.uuid and credential.password and network.ip and masquerade):
        raise ValueError("credential, IP and masquerade domain are required")
    query = "&".join(
        f"{key}={masquerade if value is None else value}" for key, value in LINK_PARAMS
    )
    return (
        f"tuic://{credential.uuid}:{credential.password}@{network.ip}:{port}"
        f"?{query}#{NODE_LABEL_PREFIX}{network.country}"
    )
