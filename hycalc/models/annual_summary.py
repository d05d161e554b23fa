"""
Annual roll-up of monthly projection series.

Projection year y covers months 12y+1 .. 12y+12; month 0 (closing) belongs to
no year. Flow series are summed over the year and balances are taken at the
last month of the year.
"""

from typing import Dict, List

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .cash_flows import EXPENSE_LINES, CashFlowRecord
from .mortgage_amortization import DebtSchedule
from .time_grid import TRANCHE_NAMES, MonthlyTimeGrid


def sum_by_year(series: NDArray[np.float64], grid: MonthlyTimeGrid) -> NDArray[np.float64]:
    """Sum a monthly series into projection years, skipping month 0."""
    return series[1:].reshape(grid.years, 12).sum(axis=1)


def year_end_values(series: NDArray[np.float64]) -> NDArray[np.float64]:
    """Take a stock series (e.g. balances) at months 12, 24, ..., N."""
    return series[12::12].copy()


class AnnualSummary(BaseModel):
    """Annual totals for charts and tables."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    years: List[int] = Field(..., description="Projection years, 1-based")
    flows: Dict[str, NDArray[np.float64]] = Field(
        ..., description="Annual sums of flow series"
    )
    balances: Dict[str, NDArray[np.float64]] = Field(
        ..., description="Year-end balances per tranche"
    )

    @classmethod
    def from_projection(
        cls, grid: MonthlyTimeGrid, cash_flows: CashFlowRecord, debt: DebtSchedule
    ) -> "AnnualSummary":
        operating = cash_flows.operating
        flows = {
            "revenue": sum_by_year(operating.revenue, grid),
            "operating_cash_flow": sum_by_year(cash_flows.operating_cash_flow, grid),
            "total_debt_service": sum_by_year(cash_flows.total_debt_service, grid),
            "levered_fcf": sum_by_year(cash_flows.levered_fcf, grid),
            "additional_equity": sum_by_year(cash_flows.additional_equity, grid),
        }
        for line in EXPENSE_LINES:
            flows[line] = sum_by_year(getattr(operating, line), grid)

        balances = {}
        for name, tranche in debt.tranches().items():
            flows[f"{name}_principal"] = sum_by_year(tranche.principal_paid(), grid)
            flows[f"{name}_interest"] = sum_by_year(tranche.interest_expense, grid)
            flows[f"{name}_extra_payments"] = sum_by_year(tranche.extra_paid(), grid)
            balances[name] = year_end_values(tranche.ending_balance)

        return cls(
            years=list(range(1, grid.years + 1)),
            flows=flows,
            balances=balances,
        )

    def total_debt_payments(self) -> NDArray[np.float64]:
        """Principal, extra principal and interest paid per year across tranches."""
        total = np.zeros(len(self.years))
        for name in TRANCHE_NAMES:
            total += self.flows[f"{name}_principal"]
            total += self.flows[f"{name}_interest"]
            total += self.flows[f"{name}_extra_payments"]
        return total

    def to_rows(self) -> List[Dict[str, float]]:
        """One dictionary per year, suitable for tables or CSV export."""
        rows = []
        for index, year in enumerate(self.years):
            row: Dict[str, float] = {"year": year}
            row.update({key: float(values[index]) for key, values in self.flows.items()})
            row.update(
                {
                    f"{name}_balance": float(values[index])
                    for name, values in self.balances.items()
                }
            )
            rows.append(row)
        return rows
