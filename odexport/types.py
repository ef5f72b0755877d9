"""
Type definitions for integrator export.
"""

from enum import Enum, auto


class BindingState(Enum):
    """Origin of the ODE right-hand side."""

    SYMBOLIC = auto()  # Unbound or bound to a casadi.Function
    EXTERNAL = auto()  # Bound by name to a user supplied routine


class DataType(Enum):
    """Primitive types of exported variables."""

    REAL = auto()
    INT = auto()


class DataStruct(Enum):
    """Data structure an exported variable is stored in."""

    NONE = auto()  # Local variable
    VARIABLES = auto()  # Global variables struct


class InvalidOptionError(ValueError):
    """Raised for an option or binding that conflicts with the current configuration."""
