"""
Binding of the ODE right-hand side and output functions.

A binding is either symbolic, backed by ``casadi.Function`` objects whose
names and dimensions are read off the functions, or external, backed by
plain names and dimensions of routines linked in later. Consumers query
names and dimensions through the same accessors for both origins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import casadi as ca
from beartype.typing import List, Optional, Sequence

from odexport.grid import TimeGrid
from odexport.types import BindingState, InvalidOptionError

logger = logging.getLogger(__name__)


def jacobian_function(f: ca.Function, name: Optional[str] = None) -> ca.Function:
    """
    Build the sensitivity function of ``f``.

    The result takes the inputs of ``f`` and returns output 0 of ``f``
    together with its Jacobian with respect to all inputs stacked.

    Parameters
    ----------
    f : ca.Function
        Function whose first output is differentiated
    name : str, optional
        Name of the result, defaults to ``jac_<f.name()>``

    Returns
    -------
    ca.Function
        Function (inputs of f) -> (f, jac)
    """
    args = f.mx_in()
    out = f.call(args)[0]
    z = ca.vertcat(*[ca.vec(a) for a in args])
    jac = ca.jacobian(out, z)
    if name is None:
        name = "jac_" + f.name()
    return ca.Function(name, args, [out, jac], f.name_in(), ["f", "jac"])


@dataclass
class OutputBinding:
    """One output function, sampled on its own grid."""

    grid: TimeGrid
    function: Optional[ca.Function] = None
    diffs: Optional[ca.Function] = None
    name: str = ""
    diffs_name: str = ""
    dim: int = 0

    @property
    def is_symbolic(self) -> bool:
        return self.function is not None


class ModelBinding:
    """
    Right-hand side and output bindings of an exported integrator.

    The binding starts symbolic and unbound. ``set_model`` binds a
    ``casadi.Function``; ``bind_external`` switches to external names and
    is only legal while no symbolic right-hand side with nonzero dimension
    is bound. There is no transition back once that lock is engaged.
    """

    def __init__(self) -> None:
        self._state = BindingState.SYMBOLIC
        self._ode: Optional[ca.Function] = None
        self._diffs_ode: Optional[ca.Function] = None
        self._name_ode = ""
        self._name_diffs_ode = ""
        self._outputs: List[OutputBinding] = []

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def is_symbolic(self) -> bool:
        return self._state == BindingState.SYMBOLIC

    @property
    def symbolic_dim(self) -> int:
        """Number of entries of the symbolic right-hand side, 0 if unbound."""
        if self._ode is None:
            return 0
        return int(self._ode.numel_out(0))

    @property
    def can_bind_external(self) -> bool:
        return self.symbolic_dim == 0

    def _switch_origin(self, state: BindingState) -> None:
        # outputs only exist for the origin they were bound with
        if state != self._state and self._outputs:
            logger.debug("dropping %d outputs bound for %s origin", len(self._outputs), self._state.name)
            self._outputs = []
        self._state = state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def set_model(self, rhs: ca.Function, diffs: Optional[ca.Function] = None) -> None:
        """
        Bind a symbolic right-hand side.

        Parameters
        ----------
        rhs : ca.Function
            Dynamics function, output 0 is the state derivative
        diffs : ca.Function, optional
            Sensitivity function, derived from ``rhs`` if omitted

        Outputs bound by name are dropped when switching from an external
        binding.
        """
        if diffs is None:
            diffs = jacobian_function(rhs)
        if self._state == BindingState.EXTERNAL:
            logger.debug("replacing external binding '%s' by symbolic '%s'", self._name_ode, rhs.name())
        self._ode = rhs
        self._diffs_ode = diffs
        self._name_ode = ""
        self._name_diffs_ode = ""
        self._switch_origin(BindingState.SYMBOLIC)

    def bind_external(self, rhs_name: str, diffs_name: str) -> None:
        """
        Reference an externally implemented right-hand side by name.

        Symbolic outputs are dropped when switching from a symbolic binding.

        Raises
        ------
        InvalidOptionError
            If a symbolic right-hand side of nonzero dimension is bound
        """
        if not self.can_bind_external:
            raise InvalidOptionError(
                f"Cannot bind external model '{rhs_name}': symbolic model "
                f"'{self._ode.name()}' of dimension {self.symbolic_dim} already bound"
            )
        self._name_ode = rhs_name
        self._name_diffs_ode = diffs_name
        self._switch_origin(BindingState.EXTERNAL)
        logger.debug("bound external model '%s' / '%s'", rhs_name, diffs_name)

    def set_outputs(self, grids: Sequence[TimeGrid], functions: Sequence[ca.Function]) -> None:
        """Bind symbolic output functions, one grid per output."""
        if not self.is_symbolic:
            raise InvalidOptionError("Symbolic outputs require a symbolic model binding")
        if len(grids) != len(functions):
            raise InvalidOptionError(f"Got {len(grids)} output grids for {len(functions)} output functions")
        self._outputs = [
            OutputBinding(grid=g.copy(), function=f, diffs=jacobian_function(f)) for g, f in zip(grids, functions)
        ]

    def set_outputs_external(
        self,
        grids: Sequence[TimeGrid],
        names: Sequence[str],
        diffs_names: Sequence[str],
        dims: Sequence[int],
    ) -> None:
        """Reference externally implemented output functions by name."""
        if self.is_symbolic:
            raise InvalidOptionError("External outputs require an external model binding")
        n = len(grids)
        if not (len(names) == len(diffs_names) == len(dims) == n):
            raise InvalidOptionError(
                f"Output arity mismatch: {n} grids, {len(names)} names, "
                f"{len(diffs_names)} diffs names, {len(dims)} dimensions"
            )
        self._outputs = [
            OutputBinding(grid=g.copy(), name=name, diffs_name=d_name, dim=int(dim))
            for g, name, d_name, dim in zip(grids, names, diffs_names, dims)
        ]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def ode(self) -> Optional[ca.Function]:
        return self._ode

    @property
    def diffs_ode(self) -> Optional[ca.Function]:
        return self._diffs_ode

    @property
    def name_ode(self) -> str:
        if self.is_symbolic:
            return self._ode.name() if self._ode is not None else ""
        return self._name_ode

    @property
    def name_diffs_ode(self) -> str:
        if self.is_symbolic:
            return self._diffs_ode.name() if self._diffs_ode is not None else ""
        return self._name_diffs_ode

    @property
    def num_outputs(self) -> int:
        return len(self._outputs)

    def name_output(self, index: int) -> str:
        out = self._outputs[index]
        if self.is_symbolic:
            return out.function.name()
        return out.name

    def name_diffs_output(self, index: int) -> str:
        out = self._outputs[index]
        if self.is_symbolic:
            return out.diffs.name()
        return out.diffs_name

    def dim_output(self, index: int) -> int:
        out = self._outputs[index]
        if self.is_symbolic:
            return int(out.function.numel_out(0))
        return out.dim

    @property
    def output_grids(self) -> List[TimeGrid]:
        return [out.grid.copy() for out in self._outputs]

    @property
    def output_functions(self) -> List[ca.Function]:
        return [out.function for out in self._outputs if out.function is not None]

    def copy(self) -> "ModelBinding":
        """Independent copy, casadi functions are immutable and shared."""
        other = ModelBinding()
        other._state = self._state
        other._ode = self._ode
        other._diffs_ode = self._diffs_ode
        other._name_ode = self._name_ode
        other._name_diffs_ode = self._name_diffs_ode
        other._outputs = [replace(out, grid=out.grid.copy()) for out in self._outputs]
        return other
