"""
Configuration Loader (``cosigner_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into a frozen
``CosignerConfig``.  The public runtime entry point is
``cosigner_config.get_active_config()``.

Invariants enforced
-------------------
* Required keys have no silent defaults; a missing one raises ``KeyError``.
* Every address is validated and returned in checksummed form.
* ``compute_checksum`` is a deterministic SHA-256 of the canonical JSON of
  the parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required key  -> ``KeyError``.
* Invalid address or log level  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from cosigner_config.schema import CosignerConfig
from cosigner_kernel.domain.addresses import is_null_address, to_address

_REQUIRED_KEYS = ("cosigner_address", "owner_address", "settlement_token")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_address(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a hex address, got {value!r}")
    address = to_address(value)
    if is_null_address(address):
        raise ValueError(f"{key}: the null address is not allowed")
    return address


def parse_log_level(value: Any) -> str:
    level = str(value).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"log_level: unknown level {value!r}")
    return level


def parse_config(data: dict[str, Any]) -> CosignerConfig:
    """
    Parse a configuration mapping.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if an address or the log level is invalid.
    """
    for key in _REQUIRED_KEYS:
        if key not in data:
            raise KeyError(f"Missing required configuration key: {key}")

    delegates = data.get("delegates") or []
    if not isinstance(delegates, list):
        raise ValueError("delegates: expected a list of addresses")

    return CosignerConfig(
        cosigner_address=parse_address(data, "cosigner_address"),
        owner_address=parse_address(data, "owner_address"),
        settlement_token=parse_address(data, "settlement_token"),
        database_url=str(data.get("database_url", "sqlite://")),
        url=str(data.get("url", "") or ""),
        log_level=parse_log_level(data.get("log_level", "INFO")),
        delegates=tuple(to_address(d) for d in delegates),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
