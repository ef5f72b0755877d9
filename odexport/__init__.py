"""
odexport - Integrator export configuration for embedded optimal control

Decides the fixed-step integration grid of generated ODE integrators and
binds their right-hand side and output functions, either symbolically
through CasADi or by name to externally implemented routines.
"""

from beartype.claw import beartype_package

beartype_package(__name__)

__version__ = "0.1.0"

from odexport.types import BindingState, DataStruct, DataType, InvalidOptionError
from odexport.grid import TimeGrid, derive_integration_grid, locate_interval
from odexport.variable import ExportFlags, ExportVariable
from odexport.binding import ModelBinding, OutputBinding, jacobian_function
from odexport.export import IntegratorExport

__all__ = [
    "BindingState",
    "DataStruct",
    "DataType",
    "InvalidOptionError",
    "TimeGrid",
    "derive_integration_grid",
    "locate_interval",
    "ExportFlags",
    "ExportVariable",
    "ModelBinding",
    "OutputBinding",
    "jacobian_function",
    "IntegratorExport",
    "__version__",
]
