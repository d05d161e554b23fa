"""
Tests for return metrics.

This module tests the XIRR root-finder, MOIC and the equity ledger built from
a projection's cash flows.
"""

import numpy as np
import pytest

from hycalc.models import ConfigurationError, ConvergenceError, moic, xirr
from hycalc.models.return_metrics import ReturnSolver, XirrConfig, net_present_value


class TestXirr:
    """Test cases for the XIRR solver."""

    def test_round_trip(self):
        """1,000 growing to 1,610.51 over 36 months is 1.1^(5/3) - 1 per year."""
        rate = xirr([-1000, 1610.51], [0, 36])

        assert rate == pytest.approx(1.1 ** (5 / 3) - 1, rel=1e-6)
        assert rate == pytest.approx(0.172, abs=1e-3)

    def test_one_year_return(self):
        """Test a simple annual return."""
        assert xirr([-100, 110], [0, 12]) == pytest.approx(0.10, rel=1e-6)

    def test_monthly_cash_flows(self):
        """The solved rate discounts the flows to zero."""
        values = np.array([-10000.0] + [150.0] * 59 + [10150.0])
        months = np.arange(61)

        rate = xirr(values, months)

        assert abs(net_present_value(rate, values, months.astype(float))) < 1e-5
        assert rate == pytest.approx((1 + 0.015) ** 12 - 1, rel=1e-5)

    def test_negative_return(self):
        """Losing money yields a negative rate."""
        rate = xirr([-1000, 900], [0, 12])

        assert rate == pytest.approx(-0.1, rel=1e-6)

    def test_newton_overshoot_below_minus_one(self):
        """A first Newton step past -100% is pulled back into the bracket."""
        # From the default guess of 20% the raw Newton step lands near -122%
        assert xirr([-1000, 500], [0, 12]) == pytest.approx(-0.5, rel=1e-6)
        assert xirr([-1000, 300], [0, 12]) == pytest.approx(-0.7, rel=1e-6)

    def test_guess_far_from_root(self):
        """A poor starting rate still converges to the root."""
        values = [-1000, 100, 100, 1100]
        months = [0, 12, 24, 36]

        for guess in (-0.9, 0.0, 0.2, 5.0):
            assert xirr(values, months, guess=guess) == pytest.approx(0.10, rel=1e-6)

    def test_long_horizon_low_return(self):
        """Thirty years of thin monthly flows with a sale at the end solve cleanly."""
        values = np.array([-100000.0] + [50.0] * 359 + [50.0 + 350000.0])
        months = np.arange(361)

        rate = xirr(values, months)

        assert -0.22 < rate < 0.08
        assert abs(net_present_value(rate, values, months.astype(float))) < 1.0

    def test_mismatched_lengths(self):
        """Test that values and months must align."""
        with pytest.raises(ConfigurationError, match="same length"):
            xirr([-1000, 500, 600], [0, 12])

    def test_invalid_guess(self):
        """Test that the starting rate must be above -100%."""
        with pytest.raises(ConfigurationError, match="greater than -1"):
            xirr([-1000, 1100], [0, 12], guess=-1.0)

    def test_no_sign_change_does_not_converge(self):
        """Cash flows that are all positive have no root."""
        with pytest.raises(ConvergenceError) as exc_info:
            xirr([100, 100, 100], [0, 12, 24])

        assert exc_info.value.iterations >= 0

    def test_iteration_budget(self):
        """A budget too small to converge raises ConvergenceError."""
        with pytest.raises(ConvergenceError, match="did not converge"):
            xirr([-1000, 4500], [0, 12], guess=0.0, max_iterations=1)


class TestMoic:
    """Test cases for the multiple on invested capital."""

    def test_moic(self):
        """Positive cash flows and sale proceeds over total equity invested."""
        multiple = moic([0, 10, -5, 20], 200, 100, [0, 0, 5, 0])

        assert multiple == pytest.approx((10 + 20 + 200) / (100 + 5))

    def test_moic_without_positive_equity(self):
        """MOIC is undefined when no capital is invested."""
        assert moic([0, 10], 100, -50, [0, 0]) is None
        assert moic([0, 10], 100, 0, [0, 0]) is None


class TestReturnSolver:
    """Test cases for ReturnSolver."""

    def test_solver_uses_config(self, basic_config):
        """The solver reads its root-finder settings from XirrConfig."""
        solver = ReturnSolver(XirrConfig(initial_guess=0.05, tolerance=1e-6, max_iterations=50))

        assert solver.config.initial_guess == 0.05
        assert solver.config.max_iterations == 50

    def test_default_config(self):
        """Test the default root-finder settings."""
        config = XirrConfig()

        assert config.initial_guess == 0.2
        assert config.tolerance == 1e-7
        assert config.max_iterations == 100
