"""
Configuration records shared with the code emitter.
"""

from dataclasses import dataclass, field, replace

from beartype.typing import Optional

from odexport.binding import ModelBinding
from odexport.types import DataStruct, DataType


@dataclass
class ExportFlags:
    """
    Switches controlling the shape of the exported integrator.

    export_rhs: right-hand side generated from a casadi.Function, otherwise
        referenced by name only. Read-only, follows the model binding.
    equidistant: integration grid is uniform
    crs_format: emit sparse Jacobians in compressed-row-storage layout
    """

    equidistant: bool = True
    crs_format: bool = False
    origin: Optional[ModelBinding] = field(default=None, repr=False, compare=False)

    @property
    def export_rhs(self) -> bool:
        return self.origin is None or self.origin.is_symbolic

    def copy(self, origin: Optional[ModelBinding] = None) -> "ExportFlags":
        return replace(self, origin=origin)


@dataclass
class ExportVariable:
    """A variable declared in the generated code."""

    name: str
    rows: int = 1
    cols: int = 1
    dtype: DataType = DataType.REAL
    data_struct: DataStruct = DataStruct.NONE
    by_value: bool = False  # passed by value to generated functions

    @property
    def dim(self) -> int:
        return self.rows * self.cols

    @property
    def full_name(self) -> str:
        """Name as referenced from generated code."""
        if self.data_struct == DataStruct.NONE:
            return self.name
        return f"{self.data_struct.name.lower()}.{self.name}"

    def copy(self) -> "ExportVariable":
        return replace(self)
