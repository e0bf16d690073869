"""
Persisted node identity.

The credential file holds exactly two lines: the node UUID and the hex
password.  Once written it is reused on every later run.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from dataclasses import dataclass

from .core.fs import atomic_write
from .errors import ProvisionError

logger = logging.getLogger("tuicnode.credentials")

_KERNEL_UUID = "/proc/sys/kernel/random/uuid"

_ID_RE     = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
    r"|[0-9a-fA-F]{32}"
)
_SECRET_RE = re.compile(r"[0-9a-fA-F]+")


@dataclass(frozen=True)
class Credential:
    uuid:     str
    password: str


def _new_id() -> str:
    try:
        with open(_KERNEL_UUID) as f:
            value = f.read().strip()
        if _ID_RE.fullmatch(value):
            return value
    except OSError:
        pass
    return str(uuid.uuid4())


def generate() -> Credential:
    return Credential(uuid=_new_id(), password=secrets.token_hex(16))


def parse(text: str) -> Credential | None:
    """Parse the two-line file format; ``None`` if it is malformed."""
    lines = text.strip().splitlines()
    if len(lines) != 2:
        return None
    node_id, password = (line.strip() for line in lines)
    if not _ID_RE.fullmatch(node_id) or not _SECRET_RE.fullmatch(password):
        return None
    return Credential(uuid=node_id, password=password)


def load_or_create(path: str) -> Credential:
    """
    Return the persisted credential, creating it on first use.

    A malformed file (e.g. a write interrupted by an older version) is
    replaced with a fresh credential.
    """
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        text = None
    except OSError as e:
        raise ProvisionError(f"Cannot read credential file {path}: {e}") from e
    else:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = ""

    if text is not None:
        cred = parse(text)
        if cred is not None:
            logger.info("Loaded credential from %s", path)
            return cred
        logger.warning("Credential file %s is malformed, regenerating", path)

    cred = generate()
    try:
        atomic_write(path, f"{cred.uuid}\n{cred.password}\n".encode(), mode=0o600)
    except OSError as e:
        raise ProvisionError(f"Cannot write credential file {path}: {e}") from e
    logger.info("Generated credential and saved to %s", path)
    return cred
