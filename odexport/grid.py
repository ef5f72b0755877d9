"""
Time grids for integrator export.

Provides:
- TimeGrid: immutable partition of a time interval
- derive_integration_grid: fine integration grid from a coarse control grid
- locate_interval: index of the grid interval owning a normalized time
"""

from __future__ import annotations

import logging
import math
import warnings

import numpy as np
from beartype.typing import Sequence, Tuple, Union

logger = logging.getLogger(__name__)

EPS = float(np.finfo(float).eps)

# tolerance used when rounding step counts up
ROUND_TOL = 10.0 * EPS

Real = Union[float, int]


class TimeGrid:
    """
    Ordered, strictly increasing sequence of time points t0 < t1 < ... < tn.

    Parameters
    ----------
    first : float
        First time point
    last : float
        Last time point, must be larger than ``first``
    num_points : int
        Number of equally spaced points, at least 2
    """

    def __init__(self, first: Real, last: Real, num_points: int = 2) -> None:
        if num_points < 2:
            raise ValueError(f"TimeGrid needs at least 2 points, got {num_points}")
        if not last > first:
            raise ValueError(f"TimeGrid bounds must be increasing, got [{first}, {last}]")
        self._set_times(np.linspace(float(first), float(last), num_points))

    @classmethod
    def from_times(cls, times: Union[Sequence[Real], np.ndarray]) -> "TimeGrid":
        """Create a grid from explicit time points."""
        t = np.asarray(times, dtype=float).flatten()
        if t.size < 2:
            raise ValueError(f"TimeGrid needs at least 2 points, got {t.size}")
        if not np.all(np.diff(t) > 0):
            raise ValueError("TimeGrid times must be strictly increasing")
        grid = cls.__new__(cls)
        grid._set_times(t)
        return grid

    def _set_times(self, t: np.ndarray) -> None:
        t = np.array(t, dtype=float)
        t.flags.writeable = False
        self._times = t

    @property
    def times(self) -> np.ndarray:
        """Copy of the time points."""
        return self._times.copy()

    @property
    def num_points(self) -> int:
        return int(self._times.size)

    @property
    def num_intervals(self) -> int:
        return int(self._times.size) - 1

    @property
    def first_time(self) -> float:
        return float(self._times[0])

    @property
    def last_time(self) -> float:
        return float(self._times[-1])

    @property
    def duration(self) -> float:
        return self.last_time - self.first_time

    def time(self, index: int) -> float:
        """Boundary time with the given index, 0 <= index <= num_intervals."""
        return float(self._times[index])

    def interval_length(self, index: int) -> float:
        return float(self._times[index + 1] - self._times[index])

    def is_equidistant(self) -> bool:
        """True if all intervals have the same length (up to round-off)."""
        h = np.diff(self._times)
        return bool(np.allclose(h, h[0], rtol=1e-12, atol=ROUND_TOL * abs(self.duration)))

    def copy(self) -> "TimeGrid":
        return TimeGrid.from_times(self._times)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeGrid):
            return NotImplemented
        return bool(np.array_equal(self._times, other._times))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.is_equidistant():
            return f"TimeGrid({self.first_time}, {self.last_time}, {self.num_points})"
        return f"TimeGrid.from_times({self._times.tolist()})"


def derive_integration_grid(control_grid: TimeGrid, num_steps: int) -> Tuple[TimeGrid, np.ndarray]:
    """
    Derive the fine integration grid from a coarse control grid.

    Parameters
    ----------
    control_grid : TimeGrid
        Control horizon partition with N intervals spanning T
    num_steps : int
        Total number of integration steps over the whole horizon

    Returns
    -------
    grid : TimeGrid
        For an equidistant control grid, a uniform grid over [0, T/N] with
        ceil(num_steps/N) + 1 points, reused for every control interval.
        Otherwise a single step [0, h] with h = T/num_steps.
    steps : np.ndarray
        Empty for an equidistant control grid, otherwise the number of
        steps of size h inside each control interval.
    """
    if num_steps < 1:
        raise ValueError(f"num_steps must be positive, got {num_steps}")

    N = control_grid.num_intervals
    T = control_grid.duration
    h = T / num_steps

    steps = np.array(
        [math.ceil(control_grid.interval_length(i) / h - ROUND_TOL) for i in range(N)],
        dtype=np.int64,
    )

    if control_grid.is_equidistant():
        points = math.ceil(num_steps / N - ROUND_TOL) + 1
        grid = TimeGrid(0.0, T / N, points)
        logger.debug("equidistant control grid: N=%d, %d points over [0, %g]", N, points, T / N)
        return grid, np.zeros(0, dtype=np.int64)

    # the fine grid holds one step only, repeated steps[i] times per interval
    if np.any(steps < 1):
        warnings.warn(f"Control grid has intervals without integration steps: {steps.tolist()}")
    logger.debug("non-equidistant control grid: N=%d, h=%g, steps=%s", N, h, steps.tolist())
    return TimeGrid(0.0, h, 2), steps


def locate_interval(grid: TimeGrid, time: Real) -> int:
    """
    Index of the interval of ``grid`` containing ``time``.

    ``time`` is normalized by the grid duration. An interval owns its upper
    boundary, times beyond the last boundary map to the last interval.
    """
    index = 0
    scale = 1.0 / (grid.last_time - grid.first_time)
    while index < grid.num_intervals - 1 and time > scale * grid.time(index + 1):
        index += 1
    return index
