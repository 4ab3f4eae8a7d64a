"""
Precision Loader (``amount_config.loader``).

Responsibility
--------------
Loads per-company YAML settings files and parses their ``precision``
section into a ``PrecisionConfig``.  No engine calls this directly; the
single public entry point for runtime settings is
``amount_config.get_precision_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel's
value objects only; engines never import this module.

Invariants enforced
-------------------
* Every parsed object is a frozen ``PrecisionConfig``.
* Absent decimal counts fall back to the kernel defaults; present but
  invalid counts are rejected, never silently replaced.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed settings for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* ``precision`` present but not a mapping  -> ``ValueError``.
* Negative or non-integral decimal count  -> ``InvalidPrecisionError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from amount_kernel.domain.values import PrecisionConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Preconditions:
        - ``path`` must point to an existing, readable YAML file.
    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_precision(data: dict[str, Any]) -> PrecisionConfig:
    """
    Parse a ``PrecisionConfig`` from a settings document.

    Reads the top-level ``precision`` mapping.  Keys may be snake_case
    (``amt_dec``) or the camelCase names the settings API uses
    (``amtDec``).  A document without a ``precision`` section yields the
    all-default config.

    Raises:
        ValueError: if ``precision`` is present but is not a mapping.
        InvalidPrecisionError: if a decimal count is invalid.
    """
    section = data.get("precision")
    if section is None:
        return PrecisionConfig()
    if not isinstance(section, dict):
        raise ValueError(
            f"'precision' must be a mapping, got {type(section).__name__}"
        )
    return PrecisionConfig.from_mapping(section)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
