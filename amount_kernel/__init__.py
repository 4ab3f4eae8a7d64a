"""
Amount Kernel

The leaf layer of the transaction amount-calculation engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Decimal precision configuration and numeric coercion
- A single rounding rule and the arithmetic primitives built on it
"""

__version__ = "0.1.0"
