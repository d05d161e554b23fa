"""Tests for the annual roll-up of monthly series."""

import numpy as np
import pytest

from hycalc.models import MonthlyTimeGrid, run_projection
from hycalc.models.annual_summary import sum_by_year, year_end_values


class TestAnnualHelpers:
    """Test the roll-up helpers."""

    def test_sum_by_year_skips_closing(self):
        """Month 0 belongs to no projection year."""
        grid = MonthlyTimeGrid(years=2)
        series = np.ones(len(grid))
        series[0] = 1000.0

        np.testing.assert_array_equal(sum_by_year(series, grid), [12.0, 12.0])

    def test_year_end_values(self):
        """Balances are read at months 12, 24, ..."""
        series = np.arange(37, dtype=float)

        np.testing.assert_array_equal(year_end_values(series), [12.0, 24.0, 36.0])


class TestAnnualSummary:
    """Test cases for AnnualSummary."""

    def test_revenue_by_year(self, basic_config):
        """Test annual rent totals."""
        summary = run_projection(basic_config).annual_summary()

        assert summary.years[0] == 1
        assert len(summary.years) == 20
        assert summary.flows["revenue"][0] == pytest.approx(12 * 4500)
        assert summary.flows["revenue"][1] == pytest.approx(12 * 4500 * 1.02)

    def test_debt_payments_by_year(self, basic_config):
        """Annual debt payments equal twelve level payments."""
        result = run_projection(basic_config)
        summary = result.annual_summary()
        totals = summary.total_debt_payments()

        assert totals[0] == pytest.approx(-np.sum(result.cash_flows.total_debt_service[1:13]))
        np.testing.assert_allclose(totals.sum(), -result.cash_flows.total_debt_service.sum())

    def test_year_end_balances(self, advanced_config):
        """Year-end balances follow the tranche windows."""
        summary = run_projection(advanced_config).annual_summary()

        # Refinanced at month 60, the end of year 5
        assert summary.balances["initial_mortgage"][4] == 0.0
        assert summary.balances["refinanced_mortgage"][4] > 0
        assert summary.balances["initial_mortgage"][3] > 0
        assert summary.balances["home_equity_loan"][9] == pytest.approx(0.0, abs=1e-6)

    def test_to_rows(self, basic_config):
        """Test tabular export."""
        rows = run_projection(basic_config).annual_summary().to_rows()

        assert len(rows) == 20
        assert rows[0]["year"] == 1
        assert "levered_fcf" in rows[0]
        assert "initial_mortgage_balance" in rows[0]
        assert rows[-1]["initial_mortgage_balance"] == pytest.approx(0.0, abs=1e-6)
