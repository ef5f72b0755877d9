"""
Fixed-step explicit Runge–Kutta routines in CasADi.

The functions here build the ``integrate`` handle of an exported
integrator: a casadi.Function describing the fixed-step routine that the
code emitter renders. Nothing is evaluated numerically.

All functions operate on an ODE of the form x_dot = f(x, u, p), where
- x: state vector
- u: input vector (can be empty)
- p: parameter vector (can be empty)
"""

from __future__ import annotations

import casadi as ca
from beartype.typing import Dict, Optional, Sequence

from odexport.types import InvalidOptionError

EULER_TABLEAU: Dict[str, Sequence] = {
    "A": [[0.0]],
    "b": [1.0],
    "c": [0.0],
}

RK4_TABLEAU: Dict[str, Sequence] = {
    "A": [
        [0.0, 0.0, 0.0, 0.0],
        [0.5, 0.0, 0.0, 0.0],
        [0.0, 0.5, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ],
    "b": [1.0 / 6.0, 1.0 / 3.0, 1.0 / 3.0, 1.0 / 6.0],
    "c": [0.0, 0.5, 0.5, 1.0],
}


def check_rhs_signature(f: ca.Function) -> None:
    """Raise InvalidOptionError unless f has the form f(x, u, p) -> x_dot."""
    if f.n_in() != 3:
        raise InvalidOptionError(f"Function '{f.name()}' must take (x, u, p), got {f.n_in()} inputs")
    if f.numel_in(0) != f.numel_out(0):
        raise InvalidOptionError(
            f"Function '{f.name()}' maps {f.numel_in(0)} states to {f.numel_out(0)} derivatives"
        )


def _symbols(f: ca.Function):
    sym = ca.MX if f.is_a("MXFunction") else ca.SX
    x = sym.sym("x", f.numel_in(0))
    u = sym.sym("u", f.numel_in(1))
    p = sym.sym("p", f.numel_in(2))
    return x, u, p


def build_rk_integrator(
    f: ca.Function,
    h: float,
    tableau: Optional[Dict[str, Sequence]] = None,
    name: str = "rk_step",
) -> ca.Function:
    """
    Build a one-step explicit Runge–Kutta integrator from a Butcher tableau.

    Parameters
    ----------
    f : ca.Function
        Dynamics function f(x, u, p) -> x_dot
    h : float
        Step size
    tableau : dict, optional
        Dictionary with keys 'A', 'b', 'c' (lower-triangular A), RK4 if omitted
    name : str
        Name of the resulting CasADi function

    Returns
    -------
    ca.Function
        Function F(x, u, p) -> xf applying one step of size h
    """
    check_rhs_signature(f)
    if tableau is None:
        tableau = RK4_TABLEAU
    A = tableau["A"]
    b = tableau["b"]
    s = len(b)
    if len(A) != s or any(len(row) != s for row in A) or len(tableau["c"]) != s:
        raise InvalidOptionError(f"Inconsistent Butcher tableau with {s} stages")

    x, u, p = _symbols(f)
    K = [None] * s
    for i in range(s):
        inc = 0
        for j in range(i):
            if A[i][j] != 0:
                inc = inc + A[i][j] * K[j]
        K[i] = f(x + h * inc, u, p)

    x_next = x
    for i in range(s):
        if b[i] != 0:
            x_next = x_next + h * b[i] * K[i]

    return ca.Function(name, [x, u, p], [x_next], ["x", "u", "p"], ["xf"])


def integrate_n_steps(F_step: ca.Function, N: int, name: str = "integrate") -> ca.Function:
    """
    Roll a one-step integrator (x, u, p) -> xf for N steps with fixed u, p.
    """
    x0, u, p = _symbols(F_step)
    xk = x0
    for _ in range(N):
        xk = F_step(xk, u, p)
    return ca.Function(name, [x0, u, p], [xk], ["x0", "u", "p"], ["xf"])
