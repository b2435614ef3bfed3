"""
cosigner_config -- single public entrypoint for cosigner configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  It reads a YAML file (the packaged ``defaults.yaml``
    unless a path is given) and returns a frozen ``CosignerConfig``.

Architecture position:
    Configuration sits above ``cosigner_kernel``.  The kernel never imports
    from this package; the orchestrator accepts a ``CosignerConfig`` through
    ``CosignerOrchestrator.from_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` -- a required key is missing.
    - ``ValueError`` -- an address or the log level is malformed.

Audit relevance:
    Every successful call emits a ``COSIGNER_CONFIG_TRACE`` log entry with
    the source path, the cosigner address and the configuration checksum.
"""

from __future__ import annotations

from pathlib import Path

from cosigner_config.loader import load_yaml_file, parse_config
from cosigner_config.schema import CosignerConfig
from cosigner_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> CosignerConfig:
    """
    Load the active cosigner configuration.

    Args:
        path: YAML file to read.  Defaults to ``cosigner_config/defaults.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If a required key is missing.
        ValueError: If a value fails validation.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(source))

    _logger.info(
        "COSIGNER_CONFIG_TRACE",
        extra={
            "trace_type": "COSIGNER_CONFIG_TRACE",
            "source": str(source),
            "cosigner": config.cosigner_address,
            "checksum": config.checksum,
            "delegate_count": len(config.delegates),
        },
    )
    return config


__all__ = ["CosignerConfig", "DEFAULT_CONFIG_PATH", "get_active_config"]
