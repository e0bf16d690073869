"""
Error kinds raised and returned by the provisioning stages.

Fatal conditions are raised as :class:`ProvisionError` subclasses and carry
the process exit code the CLI should terminate with.  Degraded conditions
(a lookup that fell back to a placeholder) are returned as :class:`Issue`
values inside stage results and never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    FATAL    = "fatal"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class Issue:
    """A non-fatal problem absorbed by a stage."""

    stage:    str
    message:  str
    severity: Severity = Severity.DEGRADED


class ProvisionError(RuntimeError):
    """Fatal provisioning failure; aborts the pipeline."""

    exit_code = 1
    severity  = Severity.FATAL


class UnsupportedArchitectureError(ProvisionError):
    exit_code = 3

    def __init__(self, arch: str) -> None:
        super().__init__(f"Unsupported architecture: {arch}")
        self.arch = arch


class DownloadError(ProvisionError):
    exit_code = 4

    def __init__(self, url: str, reason: object) -> None:
        super().__init__(
            f"Download failed ({reason}); fetch it manually from {url}"
        )
        self.url = url


class CertificateError(ProvisionError):
    exit_code = 5


class ConfigRenderError(ProvisionError):
    exit_code = 6
