import casadi as ca
from beartype import beartype
from beartype.typing import Union

EPS = 1e-9


@beartype
def DM_close(e1: Union[ca.DM, float], e2: Union[ca.DM, float]) -> bool:
    """Check if two numeric CasADi values are close within EPS tolerance."""
    close = float(ca.mmax(ca.fabs(ca.DM(e1) - ca.DM(e2)))) < EPS
    if not close:
        print(ca.DM(e1), ca.DM(e2))
    return close


def oscillator(name: str = "oscillator") -> ca.Function:
    """Spring with stiffness p driven by force u: x_dot = [v, -p x + u]."""
    x = ca.SX.sym("x", 2)
    u = ca.SX.sym("u", 1)
    p = ca.SX.sym("p", 1)
    x_dot = ca.vertcat(x[1], -p[0] * x[0] + u[0])
    return ca.Function(name, [x, u, p], [x_dot], ["x", "u", "p"], ["x_dot"])


def position_output(name: str = "position") -> ca.Function:
    x = ca.SX.sym("x", 2)
    u = ca.SX.sym("u", 1)
    p = ca.SX.sym("p", 1)
    return ca.Function(name, [x, u, p], [x[0]], ["x", "u", "p"], ["y"])
