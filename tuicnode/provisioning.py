"""
Provision a TUIC node and hand control to the relay binary.

Each stage is idempotent against the work directory; only this module knows
the order they run in.  Fatal stage failures propagate as
:class:`~tuicnode.errors.ProvisionError`; degraded lookups are collected in
:attr:`ProvisionResult.issues`.
"""

from __future__ import annotations

import logging
import os
import random
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable

from . import binary, certs, config, credentials, link, network
from .certs import Certificate
from .credentials import Credential
from .errors import Issue, ProvisionError
from .network import NodeNetworkInfo
from .settings import Settings, choose_masquerade

logger = logging.getLogger("tuicnode.provisioning")


@dataclass(frozen=True)
class ProvisionResult:
    settings:    Settings
    masquerade:  str
    certificate: Certificate
    credential:  Credential
    network:     NodeNetworkInfo
    link:        str

    @property
    def issues(self) -> tuple[Issue, ...]:
        return self.network.issues


def provision(
    settings: Settings,
    rng:      random.Random | None = None,
    *,
    fetch:    network.Fetch = network.fetch_text,
) -> ProvisionResult:
    """
    Run every provisioning stage against ``settings.work_dir``.

    Steps:
    1. Ensure a valid self-signed certificate for the masquerade domain
    2. Ensure the tuic-server binary is present
    3. Load or create the node credential
    4. Render server.toml
    5. Discover public IP and country
    6. Encode the share link

    :raises ProvisionError: If any fatal stage fails.
    """
    try:
        os.makedirs(settings.work_dir, exist_ok=True)
    except OSError as e:
        raise ProvisionError(f"Cannot create work directory {settings.work_dir}: {e}") from e
    masquerade = choose_masquerade(rng)
    logger.info("Provisioning TUIC node in %s (masquerade %s)", settings.work_dir, masquerade)

    # ── Step 1: Certificate ───────────────────────────────────────────────────
    cert = certs.ensure_certificate(settings.cert_path, settings.key_path, masquerade)
    if cert.common_name != masquerade:
        logger.debug("Reused certificate CN %s differs from SNI %s", cert.common_name, masquerade)

    # ── Step 2: Relay binary ──────────────────────────────────────────────────
    binary.ensure_binary(
        settings.binary_path, settings.binary_url, timeout=settings.download_timeout,
    )

    # ── Step 3: Credential ────────────────────────────────────────────────────
    cred = credentials.load_or_create(settings.credential_path)

    # ── Step 4: Server config ─────────────────────────────────────────────────
    server_config = config.render(
        settings.port, cred, (settings.cert_path, settings.key_path),
        config.DEFAULT_ALPN, masquerade,
    )
    config.write_config(server_config, settings.config_path)

    # ── Step 5: Network identity ──────────────────────────────────────────────
    info = network.resolve(
        fetch,
        ip_echo_url=settings.ip_echo_url,
        geo_url=settings.geo_url,
        timeout=settings.http_timeout,
    )
    for issue in info.issues:
        logger.warning("%s: %s", issue.stage, issue.message)

    # ── Step 6: Share link ────────────────────────────────────────────────────
    share_link = link.encode(cred, info, settings.port, masquerade)

    return ProvisionResult(
        settings=settings,
        masquerade=masquerade,
        certificate=cert,
        credential=cred,
        network=info,
        link=share_link,
    )


def summary(result: ProvisionResult) -> str:
    """Human-readable status block, in fixed order."""
    return "\n".join([
        f"SNI / masquerade domain: {result.masquerade}",
        f"Server: {result.network.ip}:{result.settings.port}",
        f"UUID: {result.credential.uuid}",
        f"Password: {result.credential.password}",
        f"TUIC link: {result.link}",
    ])


def launch(
    result:          ProvisionResult,
    *,
    replace_process: bool = False,
    execv:           Callable[[str, list[str]], None] = os.execv,
) -> int:
    """
    Start tuic-server against the rendered config and return its exit code.

    No signal handlers are installed: the child shares the process group
    and receives terminal/panel signals directly.  With ``replace_process``
    the current process image is replaced instead and this never returns.

    :raises ProvisionError: If the binary cannot be executed.
    """
    bin_path = os.path.abspath(result.settings.binary_path)
    argv = [bin_path, "-c", result.settings.config_path]
    logger.info("Starting tuic-server: %s", " ".join(argv))
    sys.stdout.flush()
    sys.stderr.flush()

    try:
        if replace_process:
            execv(bin_path, argv)
            return 0  # not reached with os.execv
        proc = subprocess.Popen(argv)
    except OSError as e:
        raise ProvisionError(
            f"Cannot start tuic-server at {bin_path}: {e}. "
            "Delete it to have it downloaded again."
        ) from e
    try:
        return proc.wait()
    except KeyboardInterrupt:
        # SIGINT reached the child too; let it finish its own shutdown
        return proc.wait()
