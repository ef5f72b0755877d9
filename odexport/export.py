"""
Integrator export configuration.

IntegratorExport collects everything the code emitter needs to render a
fixed-step integrator: the integration grid, the per control interval step
counts, the model bindings and the export flags.
"""

from __future__ import annotations

import logging

import casadi as ca
import numpy as np
from beartype.typing import Dict, List, Optional, Sequence, Union

from odexport.binding import ModelBinding
from odexport.grid import TimeGrid, derive_integration_grid, locate_interval
from odexport.integrators import build_rk_integrator, integrate_n_steps
from odexport.types import BindingState, DataStruct, DataType, InvalidOptionError
from odexport.variable import ExportFlags, ExportVariable

logger = logging.getLogger(__name__)


class IntegratorExport:
    """
    Configuration of one exported integrator.

    Instances have value semantics: ``copy``, ``copy.copy``,
    ``copy.deepcopy`` and ``assign`` all produce configurations that share
    no mutable state with the source.

    Parameters
    ----------
    common_header_name : str
        Name of the header shared by all generated files
    """

    def __init__(self, common_header_name: str = "") -> None:
        self.common_header_name = common_header_name
        self.reset_int = ExportVariable(
            "resetIntegrator", 1, 1, DataType.INT, DataStruct.VARIABLES, by_value=True
        )
        self._grid: Optional[TimeGrid] = None
        self._num_steps = np.zeros(0, dtype=np.int64)
        self._binding = ModelBinding()
        self.flags = ExportFlags(origin=self._binding)
        self._nx = 0
        self._nu = 0
        self._np = 0
        self._N = 0
        self.integrate: Optional[ca.Function] = None

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------
    def set_dimensions(self, nx: int, nu: int = 0, n_p: int = 0) -> None:
        """Set the number of states, inputs and parameters."""
        if min(nx, nu, n_p) < 0:
            raise InvalidOptionError(f"Dimensions must be non-negative, got ({nx}, {nu}, {n_p})")
        self._nx = nx
        self._nu = nu
        self._np = n_p

    @property
    def nx(self) -> int:
        return self._nx

    @property
    def nu(self) -> int:
        return self._nu

    @property
    def n_p(self) -> int:
        return self._np

    @property
    def N(self) -> int:
        """Number of control intervals of the last control grid."""
        return self._N

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------
    def set_grid(self, grid: TimeGrid, num_steps: Optional[int] = None) -> None:
        """
        Set the integration grid.

        With ``num_steps`` omitted, ``grid`` is the integration grid itself
        and is not assumed to be uniform. Otherwise ``grid`` is the control
        grid and the integration grid is derived for ``num_steps`` steps
        over the whole horizon, see ``derive_integration_grid``.
        """
        if num_steps is None:
            self._grid = grid.copy()
            self.flags.equidistant = False
            logger.debug("integration grid set explicitly: %r", self._grid)
            return
        self._grid, self._num_steps = derive_integration_grid(grid, num_steps)
        self._N = grid.num_intervals

    def get_grid(self) -> Optional[TimeGrid]:
        return None if self._grid is None else self._grid.copy()

    def get_num_steps(self) -> np.ndarray:
        """Steps per control interval, empty for an equidistant control grid."""
        return self._num_steps.copy()

    def equidistant_control_grid(self) -> bool:
        return self._num_steps.size == 0

    def get_integration_interval(self, time: Union[float, int]) -> int:
        """Index of the integration grid interval containing the normalized ``time``."""
        if self._grid is None:
            raise InvalidOptionError("No integration grid set")
        return locate_interval(self._grid, time)

    # ------------------------------------------------------------------
    # Model bindings
    # ------------------------------------------------------------------
    def set_model(self, rhs: ca.Function, diffs: Optional[ca.Function] = None) -> None:
        """Bind a symbolic right-hand side f(x, u, p) -> x_dot."""
        self._binding.set_model(rhs, diffs)
        if rhs.n_in() == 3:
            self.set_dimensions(int(rhs.numel_in(0)), int(rhs.numel_in(1)), int(rhs.numel_in(2)))

    def bind_external(self, rhs_name: str, diffs_name: str) -> None:
        """
        Reference an externally implemented right-hand side by name.

        Raises
        ------
        InvalidOptionError
            If a symbolic right-hand side of nonzero dimension is bound
        """
        self._binding.bind_external(rhs_name, diffs_name)

    def set_outputs(self, grids: Sequence[TimeGrid], functions: Sequence[ca.Function]) -> None:
        self._binding.set_outputs(grids, functions)

    def set_outputs_external(
        self,
        grids: Sequence[TimeGrid],
        names: Sequence[str],
        diffs_names: Sequence[str],
        dims: Sequence[int],
    ) -> None:
        self._binding.set_outputs_external(grids, names, diffs_names, dims)

    @property
    def binding_state(self) -> BindingState:
        return self._binding.state

    @property
    def can_bind_external(self) -> bool:
        return self._binding.can_bind_external

    def get_name_ode(self) -> str:
        return self._binding.name_ode

    def get_name_diffs_ode(self) -> str:
        return self._binding.name_diffs_ode

    def get_dim_ode(self) -> int:
        """Number of differential states, from the function or from ``set_dimensions``."""
        if self._binding.is_symbolic:
            return self._binding.symbolic_dim
        return self._nx

    def get_name_output(self, index: int) -> str:
        return self._binding.name_output(index)

    def get_name_diffs_output(self, index: int) -> str:
        return self._binding.name_diffs_output(index)

    def get_dim_output(self, index: int) -> int:
        return self._binding.dim_output(index)

    def get_num_outputs(self) -> int:
        return self._binding.num_outputs

    def get_output_expressions(self) -> List[ca.Function]:
        return self._binding.output_functions

    def get_output_grids(self) -> List[TimeGrid]:
        return self._binding.output_grids

    # ------------------------------------------------------------------
    # Integration routine
    # ------------------------------------------------------------------
    def setup_integrate(self, tableau: Optional[Dict[str, Sequence]] = None, name: str = "integrate") -> ca.Function:
        """
        Build the ``integrate`` handle from the symbolic right-hand side.

        For an equidistant control grid the handle covers one full control
        interval. Otherwise it performs a single step and the emitter
        repeats it ``get_num_steps()[i]`` times in control interval i.

        Parameters
        ----------
        tableau : dict, optional
            Butcher tableau of the step, RK4 if omitted
        name : str
            Name of the handle

        Raises
        ------
        InvalidOptionError
            Without a symbolic model, without a grid, or on a non-uniform
            integration grid
        """
        if not self._binding.is_symbolic or self._binding.ode is None:
            raise InvalidOptionError("A symbolic model is required to set up the integration routine")
        if self._grid is None:
            raise InvalidOptionError("No integration grid set")
        if not self._grid.is_equidistant():
            raise InvalidOptionError("Fixed-step integration requires a uniform integration grid")

        h = self._grid.interval_length(0)
        step = build_rk_integrator(self._binding.ode, h, tableau, name=f"{name}_step")
        self.integrate = integrate_n_steps(step, self._grid.num_intervals, name=name)
        logger.debug("integrate '%s': %d steps of %g", name, self._grid.num_intervals, h)
        return self.integrate

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------
    def assign(self, other: "IntegratorExport") -> "IntegratorExport":
        """Make this configuration an independent copy of ``other``."""
        if other is self:
            return self
        self.common_header_name = other.common_header_name
        self.reset_int = other.reset_int.copy()
        self._grid = None if other._grid is None else other._grid.copy()
        self._num_steps = other._num_steps.copy()
        self._binding = other._binding.copy()
        self.flags = other.flags.copy(origin=self._binding)
        self._nx, self._nu, self._np, self._N = other._nx, other._nu, other._np, other._N
        # casadi functions are immutable
        self.integrate = other.integrate
        return self

    def copy(self) -> "IntegratorExport":
        return IntegratorExport().assign(self)

    def __copy__(self) -> "IntegratorExport":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "IntegratorExport":
        return self.copy()


__all__ = ["IntegratorExport"]
