"""Tests for TimeGrid, integration grid derivation and interval lookup."""

import numpy as np
import pytest

from odexport import TimeGrid, derive_integration_grid, locate_interval


class TestTimeGrid:
    def test_uniform_construction(self):
        grid = TimeGrid(0.0, 2.0, 5)
        assert grid.num_points == 5
        assert grid.num_intervals == 4
        assert grid.first_time == 0.0
        assert grid.last_time == 2.0
        assert grid.duration == 2.0
        assert grid.time(2) == 1.0
        assert grid.interval_length(3) == pytest.approx(0.5)
        assert grid.is_equidistant()

    def test_from_times(self):
        grid = TimeGrid.from_times([0.0, 1.0, 3.0])
        assert grid.num_intervals == 2
        assert grid.interval_length(1) == 2.0
        assert not grid.is_equidistant()

    def test_invalid_grids(self):
        with pytest.raises(ValueError):
            TimeGrid(0.0, 1.0, 1)
        with pytest.raises(ValueError):
            TimeGrid(1.0, 1.0, 3)
        with pytest.raises(ValueError):
            TimeGrid.from_times([0.0, 2.0, 1.0])
        with pytest.raises(ValueError):
            TimeGrid.from_times([0.0])

    def test_times_are_not_shared(self):
        grid = TimeGrid(0.0, 1.0, 3)
        t = grid.times
        t[0] = -1.0
        assert grid.first_time == 0.0
        assert grid.copy() == grid
        assert grid.copy() is not grid

    def test_equality(self):
        assert TimeGrid(0.0, 1.0, 3) == TimeGrid.from_times([0.0, 0.5, 1.0])
        assert TimeGrid(0.0, 1.0, 3) != TimeGrid(0.0, 1.0, 4)


class TestDeriveIntegrationGrid:
    def test_equidistant_control_grid(self):
        """N=4 intervals over T=4 with 8 steps: one 2-step grid over [0, 1]."""
        grid, steps = derive_integration_grid(TimeGrid(0.0, 4.0, 5), 8)
        assert steps.size == 0
        assert grid.num_points == 3
        assert grid.first_time == 0.0
        assert grid.last_time == pytest.approx(1.0)
        assert grid == TimeGrid(0.0, 1.0, 3)

    def test_equidistant_rounds_up(self):
        grid, steps = derive_integration_grid(TimeGrid(0.0, 4.0, 5), 6)
        assert steps.size == 0
        assert grid.num_points == 3

    def test_exact_multiple_is_not_rounded_up(self):
        grid, _ = derive_integration_grid(TimeGrid(0.0, 0.3, 4), 30)
        assert grid.num_points == 11
        assert grid.last_time == pytest.approx(0.1)

    def test_non_equidistant_control_grid(self):
        grid, steps = derive_integration_grid(TimeGrid.from_times([0.0, 1.0, 3.0]), 6)
        np.testing.assert_array_equal(steps, [2, 4])
        assert grid.num_points == 2
        assert grid.first_time == 0.0
        assert grid.last_time == pytest.approx(0.5)

    def test_non_equidistant_steps_positive(self):
        control = TimeGrid.from_times([0.0, 0.1, 0.3, 0.6, 0.65])
        _, steps = derive_integration_grid(control, 10)
        assert steps.size == control.num_intervals
        assert np.all(steps >= 1)
        assert steps.sum() >= 10

    def test_interval_without_steps_warns(self):
        with pytest.warns(UserWarning):
            _, steps = derive_integration_grid(TimeGrid.from_times([0.0, 1e-20, 1.0]), 2)
        assert steps[0] == 0

    def test_invalid_step_count(self):
        with pytest.raises(ValueError):
            derive_integration_grid(TimeGrid(0.0, 1.0, 3), 0)


class TestLocateInterval:
    def setup_method(self):
        # scaled boundaries 0, 0.25, 0.5, 0.75, 1
        self.grid = TimeGrid(0.0, 2.0, 5)

    def test_interior_times(self):
        assert locate_interval(self.grid, 0.1) == 0
        assert locate_interval(self.grid, 0.3) == 1
        assert locate_interval(self.grid, 0.6) == 2
        assert locate_interval(self.grid, 0.9) == 3

    def test_boundary_belongs_to_lower_interval(self):
        assert locate_interval(self.grid, 0.25) == 0
        assert locate_interval(self.grid, 0.5) == 1
        assert locate_interval(self.grid, 0.26) == 1

    def test_end_and_beyond(self):
        assert locate_interval(self.grid, 1.0) == 3
        assert locate_interval(self.grid, 10) == 3
        assert locate_interval(self.grid, -1.0) == 0

    def test_monotonic(self):
        idx = [locate_interval(self.grid, t) for t in np.linspace(-0.1, 1.2, 200)]
        assert all(a <= b for a, b in zip(idx, idx[1:]))
        assert min(idx) == 0
        assert max(idx) == self.grid.num_intervals - 1
