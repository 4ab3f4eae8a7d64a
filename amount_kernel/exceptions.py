"""
Typed Exception Hierarchy for the Amount Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Almost nothing inside the calculation engine is allowed to fail. Draft
documents are recalculated on every keystroke, so bad numeric input is
recovered locally (it becomes zero) and a missing precision setting is
recovered locally (it becomes two decimal places). What remains are
contract violations -- a NaN reaching the rounding step, a negative number
of decimal places, an unknown document type -- and those must surface
immediately with enough structure for the caller to report them.

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from AmountKernelError:

    AmountKernelError (base)
    |
    +-- RoundingError
    |   +-- NonFiniteAmountError
    |
    +-- PrecisionError
    |   +-- InvalidPrecisionError
    |
    +-- ConfigError
    |   +-- PrecisionConfigNotFoundError
    |
    +-- DocumentError
        +-- UnknownDocumentTypeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Rounding        | NON_FINITE_AMOUNT           | NaN/Infinity passed to round_amount
----------------|-----------------------------|-----------------------------------------
Precision       | INVALID_PRECISION           | Decimal count negative or not an int
----------------|-----------------------------|-----------------------------------------
Config          | PRECISION_CONFIG_NOT_FOUND  | No YAML set for company and no default
----------------|-----------------------------|-----------------------------------------
Document        | UNKNOWN_DOCUMENT_TYPE       | No engine registered for document type
"""


class AmountKernelError(Exception):
    """
    Base exception for all amount kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "AMOUNT_KERNEL_ERROR"


# Rounding-related exceptions


class RoundingError(AmountKernelError):
    """Base exception for rounding-related errors."""

    code: str = "ROUNDING_ERROR"


class NonFiniteAmountError(RoundingError):
    """
    NaN or Infinity reached the rounding service.

    Upstream arithmetic only ever produces finite values from coerced
    inputs, so this indicates a contract violation, not bad user data.
    """

    code: str = "NON_FINITE_AMOUNT"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Cannot round non-finite amount: {value}")


# Precision-related exceptions


class PrecisionError(AmountKernelError):
    """Base exception for precision-related errors."""

    code: str = "PRECISION_ERROR"


class InvalidPrecisionError(PrecisionError):
    """Decimal-place count is not a non-negative integer."""

    code: str = "INVALID_PRECISION"

    def __init__(self, field: str, decimals: object):
        self.field = field
        self.decimals = decimals
        super().__init__(
            f"Invalid decimal places for {field}: {decimals!r} "
            f"(must be a non-negative integer)"
        )


# Configuration-related exceptions


class ConfigError(AmountKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class PrecisionConfigNotFoundError(ConfigError):
    """Neither a company-specific nor a default precision set exists."""

    code: str = "PRECISION_CONFIG_NOT_FOUND"

    def __init__(self, company_id: str, config_dir: str):
        self.company_id = company_id
        self.config_dir = config_dir
        super().__init__(
            f"No precision configuration for company '{company_id}' "
            f"and no default set in {config_dir}"
        )


# Document-related exceptions


class DocumentError(AmountKernelError):
    """Base exception for document-engine errors."""

    code: str = "DOCUMENT_ERROR"


class UnknownDocumentTypeError(DocumentError):
    """No document engine is registered for the requested type."""

    code: str = "UNKNOWN_DOCUMENT_TYPE"

    def __init__(self, document_type: str, available: list[str]):
        self.document_type = document_type
        self.available = available
        super().__init__(
            f"Unknown document type: {document_type} "
            f"(available: {', '.join(available)})"
        )
