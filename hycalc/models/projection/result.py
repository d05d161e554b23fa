"""
Projection result model.

This module provides the output record of one projection run: the time grid,
sources and uses, debt schedule, cash flows, terminal sale and solved
returns, plus helpers that flatten them into the named monthly series the
presentation layer reads.

All monthly series share the grid's length (N + 1) and index alignment;
index 0 is the closing instant and is zero for flow quantities.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from ..annual_summary import AnnualSummary
from ..cash_flows import EXPENSE_LINES, CashFlowRecord, HomeSale
from ..mortgage_amortization import AmortizationMath, DebtSchedule
from ..property_config import PropertyConfig
from ..return_metrics import ReturnRecord
from ..sources_uses import SourcesAndUses
from ..time_grid import MonthlyTimeGrid


class ProjectionResult(BaseModel):
    """
    Complete output of one projection run.

    Example:
        ```python
        result = ProjectionEngine().run(config)

        result.irr, result.moic
        result.get_series("levered_fcf")
        result.home_sale.net_sale_proceeds
        ```
    """

    config: PropertyConfig = Field(..., description="Configuration snapshot projected")
    time_grid: MonthlyTimeGrid = Field(..., description="Month grid and tranche windows")
    sources_uses: SourcesAndUses = Field(..., description="Closing sources and uses")
    debt: DebtSchedule = Field(..., description="Amortization of every tranche")
    cash_flows: CashFlowRecord = Field(..., description="Operating and levered flows")
    home_sale: HomeSale = Field(..., description="Terminal sale at month N")
    returns: ReturnRecord = Field(..., description="IRR, MOIC and equity ledger")

    execution_time_seconds: Optional[float] = Field(
        default=None, description="Time taken to run the projection"
    )
    created_at: datetime = Field(
        default_factory=datetime.now, description="When the projection was completed"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def irr(self) -> float:
        return self.returns.irr

    @property
    def moic(self) -> Optional[float]:
        return self.returns.moic

    @property
    def num_months(self) -> int:
        return self.time_grid.num_months

    def series(self) -> Dict[str, NDArray[np.float64]]:
        """Every named monthly series, each of length N + 1."""
        operating = self.cash_flows.operating
        data: Dict[str, NDArray[np.float64]] = {
            "months": self.time_grid.months.astype(np.float64),
            "revenue": operating.revenue,
            "raw_revenue": operating.raw_revenue,
        }
        for line in EXPENSE_LINES:
            data[line] = getattr(operating, line)
        data["operating_cash_flow"] = self.cash_flows.operating_cash_flow
        data["property_value"] = operating.property_value
        data["assessed_value"] = operating.assessed_value

        for name, tranche in self.debt.tranches().items():
            data[f"{name}_beginning_balance"] = tranche.beginning_balance
            data[f"{name}_issuance"] = tranche.issuance
            data[f"{name}_principal"] = tranche.principal_paid()
            data[f"{name}_interest"] = tranche.interest_expense
            data[f"{name}_extra_payments"] = tranche.extra_paid()
            data[f"{name}_refinance"] = tranche.refinance
            data[f"{name}_ending_balance"] = tranche.ending_balance
            data[f"{name}_debt_service"] = self.cash_flows.tranche_debt_service(name)

        data["total_debt_service"] = self.cash_flows.total_debt_service
        data["total_debt_balance"] = self.cash_flows.total_debt_balance
        data["levered_fcf"] = self.cash_flows.levered_fcf
        data["additional_equity"] = self.cash_flows.additional_equity
        data["xirr_cash_flows"] = self.returns.xirr_cash_flows

        ledger = self.returns.equity
        data["equity_contributions"] = ledger.contributions
        data["equity_distributions"] = ledger.distributions
        data["cumulative_contributions"] = ledger.cumulative_contributions
        data["cumulative_distributions"] = ledger.cumulative_distributions
        data["net_equity"] = ledger.net_equity
        return data

    def series_names(self) -> List[str]:
        return list(self.series().keys())

    def get_series(self, name: str) -> NDArray[np.float64]:
        """
        Get one named monthly series.

        Raises:
            KeyError: If no series has that name
        """
        data = self.series()
        if name not in data:
            raise KeyError(f"Unknown series: {name}")
        return data[name]

    def annual_summary(self) -> AnnualSummary:
        return AnnualSummary.from_projection(self.time_grid, self.cash_flows, self.debt)

    def create_summary_report(self) -> Dict[str, Any]:
        """Create a summary of the headline metrics."""
        ledger = self.returns.equity
        sale = self.home_sale
        return {
            "projection_info": {
                "investment_years": self.time_grid.years,
                "num_months": self.num_months,
                "advanced_mode": self.config.advanced_mode,
                "refinance_month": self.time_grid.refinance_month,
                "hel_active": self.config.is_hel_active,
                "created_at": self.created_at.isoformat(),
                "execution_time_seconds": self.execution_time_seconds,
            },
            "returns": {
                "irr": self.irr,
                "moic": self.moic,
                "total_equity_invested": ledger.total_invested,
                "total_equity_returned": ledger.total_returned,
                "net_profit": ledger.net_profit,
            },
            "sources_and_uses": self.sources_uses.model_dump(),
            "home_sale": {
                **sale.model_dump(),
                "exit_loan_to_value": AmortizationMath.calculate_loan_to_value_ratio(
                    sale.total_debt_payoff, sale.property_value
                ),
            },
            "debt": {
                f"{name}_total_interest": tranche.total_interest()
                for name, tranche in self.debt.tranches().items()
            },
            "cash_flow_totals": {
                "revenue": float(np.sum(self.cash_flows.operating.revenue)),
                "operating_cash_flow": float(np.sum(self.cash_flows.operating_cash_flow)),
                "total_debt_service": float(np.sum(self.cash_flows.total_debt_service)),
                "levered_fcf": float(np.sum(self.cash_flows.levered_fcf)),
                "additional_equity": float(np.sum(self.cash_flows.additional_equity)),
            },
        }

    def to_dict(self, include_arrays: bool = False) -> Dict[str, Any]:
        """
        Convert result to dictionary for serialization.

        Args:
            include_arrays: Whether to include the monthly series in output

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "IRR": self.irr,
            "MOIC": self.moic,
            "home_sale": self.home_sale.model_dump(),
            "summary": self.create_summary_report(),
        }

        if include_arrays:
            result["series"] = {
                name: values.tolist() for name, values in self.series().items()
            }
            result["annual"] = self.annual_summary().to_rows()

        return result

    def to_json(self, include_arrays: bool = False, indent: int = 2) -> str:
        """Convert result to JSON string."""
        return json.dumps(self.to_dict(include_arrays=include_arrays), indent=indent)

    def compare_with(self, other: "ProjectionResult") -> Dict[str, Any]:
        """
        Compare this result with another projection over the same horizon.

        Args:
            other: Another ProjectionResult to compare with

        Returns:
            Dictionary of differences (self - other)
        """
        if self.num_months != other.num_months:
            raise ValueError(
                f"Cannot compare projections with different horizons: "
                f"{self.num_months} vs {other.num_months} months"
            )

        moic_difference = None
        if self.moic is not None and other.moic is not None:
            moic_difference = self.moic - other.moic

        return {
            "irr_difference": self.irr - other.irr,
            "moic_difference": moic_difference,
            "net_sale_proceeds_difference": (
                self.home_sale.net_sale_proceeds - other.home_sale.net_sale_proceeds
            ),
            "total_interest_difference": sum(
                tranche.total_interest() for tranche in self.debt.tranches().values()
            )
            - sum(tranche.total_interest() for tranche in other.debt.tranches().values()),
            "levered_fcf_difference": float(
                np.sum(self.cash_flows.levered_fcf - other.cash_flows.levered_fcf)
            ),
        }
