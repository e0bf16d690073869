"""Fetch the pinned tuic-server release for this host."""

from __future__ import annotations

import logging
import os
import platform
from typing import Callable

from .core.transport import download
from .errors import DownloadError, UnsupportedArchitectureError

logger = logging.getLogger("tuicnode.binary")

SUPPORTED_ARCH = "x86_64"


def is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def ensure_binary(
    path:    str,
    url:     str,
    *,
    arch:    str | None = None,
    fetch:   Callable[[str, str, float], None] | None = None,
    timeout: float = 120.0,
) -> None:
    """
    Make sure an executable relay binary exists at *path*.

    The release is not checksum-verified.

    :raises UnsupportedArchitectureError: Host is not ``x86_64``; raised
                                          before any network access.
    :raises DownloadError:                Transfer did not complete.
    """
    if is_executable(path):
        logger.info("tuic-server already present at %s", path)
        return

    arch = arch if arch is not None else platform.machine()
    if arch != SUPPORTED_ARCH:
        raise UnsupportedArchitectureError(arch)

    logger.info("Downloading tuic-server from %s", url)
    try:
        (fetch or download)(url, path, timeout)
    except Exception as e:
        raise DownloadError(url, e) from e
    os.chmod(path, 0o755)
    logger.info("tuic-server downloaded to %s", path)
