"""
Monthly time grid for property projections.

This module provides the month index range 0..N and the per-tranche active
windows used by the amortization engine and cash flow projector. Month 0 is
the closing instant: nothing accrues and nothing is paid.
"""

from typing import Literal, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .property_config import PropertyConfig

TrancheName = Literal["initial_mortgage", "home_equity_loan", "refinanced_mortgage"]

TRANCHE_NAMES: Tuple[TrancheName, ...] = (
    "initial_mortgage",
    "home_equity_loan",
    "refinanced_mortgage",
)


class MonthlyTimeGrid(BaseModel):
    """Month index range and tranche activity windows for one projection."""

    model_config = ConfigDict(frozen=True)

    years: int = Field(..., ge=1, le=50, description="Investment horizon in years")
    refinance_month: Optional[int] = Field(
        default=None, ge=1, description="Refinance trigger month (None if inactive)"
    )
    hel_term_months: Optional[int] = Field(
        default=None, ge=1, description="Home-equity loan term in months (None if inactive)"
    )

    @classmethod
    def from_config(cls, config: PropertyConfig) -> "MonthlyTimeGrid":
        """Build the grid for a configuration snapshot."""
        return cls(
            years=config.investment_years,
            refinance_month=config.refinance_month,
            hel_term_months=config.hel_term_months,
        )

    @property
    def num_months(self) -> int:
        """Last month index (N = years * 12)."""
        return self.years * 12

    @property
    def months(self) -> NDArray[np.int64]:
        """Month indices 0..N."""
        return np.arange(self.num_months + 1, dtype=np.int64)

    def __len__(self) -> int:
        """Number of grid points (N + 1)."""
        return self.num_months + 1

    def zeros(self) -> NDArray[np.float64]:
        """A float series aligned with the grid."""
        return np.zeros(len(self), dtype=np.float64)

    def is_origination_month(self, month: int) -> bool:
        return month == 0

    def is_refinance_month(self, month: int) -> bool:
        return self.refinance_month is not None and month == self.refinance_month

    def is_after_refinance(self, month: int) -> bool:
        return self.refinance_month is not None and month > self.refinance_month

    def is_annual_booking_month(self, month: int) -> bool:
        """Annual expense lines are booked once every 12 months, never at closing."""
        return month > 0 and month % 12 == 0

    def year_of_month(self, month: int) -> int:
        """0-based projection year a month belongs to (months 1-12 are year 0)."""
        if not 0 <= month <= self.num_months:
            raise ValueError(f"Month {month} is outside the time grid range")
        return max(0, (month - 1) // 12)

    def hold_flags(self) -> NDArray[np.float64]:
        """1.0 for every month the property is held, 0.0 at closing."""
        flags = np.ones(len(self), dtype=np.float64)
        flags[0] = 0.0
        return flags

    def annual_booking_flags(self) -> NDArray[np.bool_]:
        months = self.months
        return (months > 0) & (months % 12 == 0)

    def escalation_years(self) -> NDArray[np.int64]:
        """Whole years elapsed for annually stepped escalation: floor((i-1)/12), min 0."""
        return np.maximum(0, (self.months - 1) // 12)

    def window_bounds(self, tranche: TrancheName) -> Tuple[int, int]:
        """
        First and last active month of a tranche (inclusive).

        An empty window is returned as (1, 0).
        """
        n = self.num_months
        if tranche == "initial_mortgage":
            if self.refinance_month is None:
                return 1, n
            return 1, min(n, self.refinance_month)
        if tranche == "home_equity_loan":
            if self.hel_term_months is None:
                return 1, 0
            return 1, min(n, self.hel_term_months)
        if tranche == "refinanced_mortgage":
            if self.refinance_month is None:
                return 1, 0
            return self.refinance_month + 1, n
        raise ValueError(f"Unknown tranche: {tranche}")

    def active_window(self, tranche: TrancheName) -> NDArray[np.bool_]:
        """Months in which the tranche may accrue interest or receive payments."""
        first, last = self.window_bounds(tranche)
        months = self.months
        return (months >= first) & (months <= last)

    def payment_index(self, tranche: TrancheName) -> NDArray[np.int64]:
        """
        Tranche-relative payment number per month, 0 outside the active window.

        The refinanced mortgage restarts at 1 on its first active month.
        """
        first, _ = self.window_bounds(tranche)
        active = self.active_window(tranche)
        return np.where(active, self.months - first + 1, 0).astype(np.int64)


def annual_step_factors(rate: float, grid: MonthlyTimeGrid) -> NDArray[np.float64]:
    """
    Growth factors that step once per year: (1 + rate) ** floor((i-1)/12).

    Args:
        rate: Annual growth rate (as decimal)
        grid: Time grid to align with

    Returns:
        Factor per month, 1.0 for months 0-12
    """
    return (1 + rate) ** grid.escalation_years().astype(np.float64)


def monthly_compound_factors(
    rate: float, grid: MonthlyTimeGrid, lag: int = 1
) -> NDArray[np.float64]:
    """
    Growth factors compounded monthly at rate/12: (1 + rate/12) ** max(0, i - lag).

    Args:
        rate: Annual growth rate (as decimal)
        grid: Time grid to align with
        lag: Months before compounding starts (1 means month 1 is unescalated)

    Returns:
        Factor per month
    """
    exponents = np.maximum(0, grid.months - lag).astype(np.float64)
    return (1 + rate / 12) ** exponents
