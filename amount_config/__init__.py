"""
amount_config -- single public entrypoint for per-company precision settings.

Responsibility:
    Provides the ONLY way to obtain a ``PrecisionConfig`` from stored
    settings at runtime through ``get_precision_config()``.  Engines never
    read settings files or global stores; the caller resolves precision
    here once and passes it into every calculation.

Architecture position:
    Configuration -- YAML-driven settings, resolved per company.
    This package sits above ``amount_kernel`` and beside
    ``amount_engines``.  The kernel and the engines MUST NEVER import
    from ``amount_config``.

Invariants enforced:
    - Single entrypoint: all runtime precision flows through
      ``get_precision_config()``.
    - Resolution order: ``<config_dir>/<company_id>.yaml``, then
      ``<config_dir>/default.yaml``.
    - Deterministic: the same settings file always produces the same
      ``PrecisionConfig`` and checksum.
    - Records logged during the lookup carry ``company_id`` through
      ``LogContext``.

Failure modes:
    - ``PrecisionConfigNotFoundError`` -- neither a company file nor a
      default file exists.
    - ``InvalidPrecisionError`` -- a decimal count is negative or not an int.
    - ``ValueError`` -- the ``precision`` section is not a mapping.
    - ``yaml.YAMLError`` -- the settings file is not valid YAML.

Audit relevance:
    Every successful ``get_precision_config()`` call emits an
    ``AMOUNT_CONFIG_TRACE`` log entry containing the company, the source
    file, whether the default set was used, and a checksum of the parsed
    settings.  This ties every calculated amount back to the precision
    that governed its rounding.
"""

from __future__ import annotations

import logging
from pathlib import Path

from amount_config.loader import compute_checksum, load_yaml_file, parse_precision
from amount_kernel.domain.values import PrecisionConfig
from amount_kernel.exceptions import PrecisionConfigNotFoundError
from amount_kernel.logging_config import LogContext

_logger = logging.getLogger("amount_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

_DEFAULT_SET = "default"


def get_precision_config(
    company_id: str,
    config_dir: Path | None = None,
) -> PrecisionConfig:
    """The ONLY public precision-settings entrypoint.

    Contract:
        Looks up the company's settings file, falling back to the default
        set, and parses its ``precision`` section.

    Guarantees:
        - Absent decimal counts fall back to the kernel defaults.
        - An ``AMOUNT_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - This function does NOT cache; callers hold the returned config
          for the duration of a calculation.

    Args:
        company_id: Company identifier; names the settings file.
        config_dir: Override path to the settings directory.
            Defaults to amount_config/sets/.

    Returns:
        PrecisionConfig for the company.

    Raises:
        PrecisionConfigNotFoundError: no company file and no default file.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR

    with LogContext.bind(company_id=company_id):
        source = _find_settings_file(sets_dir, company_id)
        data = load_yaml_file(source)
        precision = parse_precision(data)

        _logger.info(
            "AMOUNT_CONFIG_TRACE",
            extra={
                "trace_type": "AMOUNT_CONFIG_TRACE",
                "source": str(source),
                "used_default": source.stem == _DEFAULT_SET and company_id != _DEFAULT_SET,
                "checksum": compute_checksum(precision.to_dict()),
            },
        )
    return precision


def _find_settings_file(sets_dir: Path, company_id: str) -> Path:
    """Return the company's settings file, or the default set.

    Raises:
        PrecisionConfigNotFoundError: neither file exists.
    """
    # Company ids name files directly; anything path-like is not a company.
    if company_id and Path(company_id).name == company_id:
        candidate = sets_dir / f"{company_id}.yaml"
        if candidate.is_file():
            return candidate

    default = sets_dir / f"{_DEFAULT_SET}.yaml"
    if default.is_file():
        return default

    _logger.error(
        "precision_config_not_found",
        extra={"config_dir": str(sets_dir)},
    )
    raise PrecisionConfigNotFoundError(company_id, str(sets_dir))


__all__ = [
    "PrecisionConfig",
    "get_precision_config",
]
