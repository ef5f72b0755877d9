"""
Example: configure the exported integrator of a mass-spring-damper.

The control horizon of 2 s is split into 10 equal intervals and the
integrator should take 40 steps over the horizon, so one 4-step routine
is generated and reused in every control interval.
"""

import casadi as ca

from odexport import IntegratorExport, TimeGrid


def mass_spring_damper() -> ca.Function:
    x = ca.SX.sym("x", 2)  # position, velocity
    u = ca.SX.sym("u", 1)  # force
    p = ca.SX.sym("p", 3)  # mass, damping, stiffness
    m, c, k = p[0], p[1], p[2]
    x_dot = ca.vertcat(x[1], (u[0] - c * x[1] - k * x[0]) / m)
    return ca.Function("msd_rhs", [x, u, p], [x_dot], ["x", "u", "p"], ["x_dot"])


if __name__ == "__main__":
    export = IntegratorExport("msd_common.h")
    export.set_model(mass_spring_damper())
    export.set_grid(TimeGrid(0.0, 2.0, 11), 40)

    print("rhs:", export.get_name_ode(), "diffs:", export.get_name_diffs_ode())
    print("integration grid:", export.get_grid())
    print("equidistant control grid:", export.equidistant_control_grid())

    F = export.setup_integrate()
    print(F)
    print("x after one control interval:", F([1.0, 0.0], 0.0, [1.0, 0.1, 1.0]))
