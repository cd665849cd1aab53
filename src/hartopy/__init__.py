"""hartopy package root."""

from hartopy.decoder import decode
from hartopy.exceptions import (
    DecodeError,
    EmissionValidationError,
    HartopyError,
    UnsupportedValueError,
)
from hartopy.synthesis import infer, render_declarations, render_module

__all__ = [
    "__version__",
    "DecodeError",
    "EmissionValidationError",
    "HartopyError",
    "UnsupportedValueError",
    "decode",
    "infer",
    "render_declarations",
    "render_module",
]

__version__ = "0.1.0"
