"""
tuicnode — idempotent provisioner for a single TUIC relay node.

Command-line usage::

    SERVER_PORT=28888 tuicnode            # provision, print the link, run tuic-server
    tuicnode --no-launch --seed 7         # provision only, fixed masquerade domain

Library usage::

    from tuicnode import Settings, provision, summary, launch

    result = provision(Settings.from_env())
    print(summary(result))
    raise SystemExit(launch(result))

Repeated runs against the same work directory reuse the stored credential
and (while valid) certificate; only the admin secret and masquerade domain
change between runs.
"""

from __future__ import annotations

from .errors       import ProvisionError                     # noqa: F401
from .provisioning import ProvisionResult, launch, provision, summary  # noqa: F401
from .settings     import Settings                           # noqa: F401

__all__ = ["ProvisionError", "ProvisionResult", "Settings", "launch", "provision", "summary"]
