"""
CosignerConfig schema.

The frozen runtime view of one cosigner deployment: which address the
cosigner acts as, who owns it, the settlement token it pays claims in and
where its state lives.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CosignerConfig:
    """Deployment configuration of a single cosigner."""

    cosigner_address: str
    owner_address: str
    settlement_token: str
    database_url: str = "sqlite://"
    url: str = ""
    log_level: str = "INFO"
    delegates: tuple[str, ...] = ()
    checksum: str = ""
