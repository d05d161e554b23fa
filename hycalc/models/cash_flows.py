"""
Operating and levered cash flow projection.

Combines rent and operating expense projections with the debt schedule into a
monthly levered free cash flow series, and values the terminal home sale.
Expenses are stored as negative amounts and annual expense lines are booked
once every 12 months rather than spread across months.
"""

from typing import Dict, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .mortgage_amortization import DebtSchedule
from .property_config import PropertyConfig
from .time_grid import (
    TRANCHE_NAMES,
    MonthlyTimeGrid,
    TrancheName,
    annual_step_factors,
    monthly_compound_factors,
)

EXPENSE_LINES = ("insurance", "hoa", "property_tax", "maintenance", "management_fee")


class OperatingProjection(BaseModel):
    """Revenue, expense lines and property value per month."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    revenue: NDArray[np.float64] = Field(..., description="Collected rent")
    raw_revenue: NDArray[np.float64] = Field(
        ..., description="Rent before occupancy adjustment"
    )
    insurance: NDArray[np.float64] = Field(..., description="Insurance (negative)")
    hoa: NDArray[np.float64] = Field(..., description="HOA fees (negative)")
    property_tax: NDArray[np.float64] = Field(..., description="Property tax (negative)")
    maintenance: NDArray[np.float64] = Field(..., description="Maintenance (negative)")
    management_fee: NDArray[np.float64] = Field(
        ..., description="Management fee (negative)"
    )
    property_value: NDArray[np.float64] = Field(..., description="Market value of home")
    assessed_value: NDArray[np.float64] = Field(
        ..., description="Value used to assess property tax"
    )

    def total_expenses(self) -> NDArray[np.float64]:
        return (
            self.insurance
            + self.hoa
            + self.property_tax
            + self.maintenance
            + self.management_fee
        )

    def operating_cash_flow(self) -> NDArray[np.float64]:
        return self.revenue + self.total_expenses()


class HomeSale(BaseModel):
    """Terminal sale at the last month of the horizon."""

    property_value: float = Field(..., description="Sale price at month N")
    initial_mortgage_balance: float = Field(..., description="Initial mortgage payoff")
    home_equity_loan_balance: float = Field(..., description="Home-equity loan payoff")
    refinanced_mortgage_balance: float = Field(
        ..., description="Refinanced mortgage payoff"
    )
    net_sale_proceeds: float = Field(..., description="Sale price less all payoffs")

    @property
    def total_debt_payoff(self) -> float:
        return (
            self.initial_mortgage_balance
            + self.home_equity_loan_balance
            + self.refinanced_mortgage_balance
        )


class CashFlowRecord(BaseModel):
    """Monthly operating, debt service and levered cash flows."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    operating: OperatingProjection = Field(..., description="Operating projection")
    operating_cash_flow: NDArray[np.float64] = Field(
        ..., description="Revenue plus (negative) expenses"
    )
    debt_service: Dict[str, NDArray[np.float64]] = Field(
        ..., description="Debt service per tranche (negative is cash out)"
    )
    total_debt_service: NDArray[np.float64] = Field(
        ..., description="Debt service summed across tranches"
    )
    levered_fcf: NDArray[np.float64] = Field(
        ..., description="Operating cash flow after debt service"
    )
    additional_equity: NDArray[np.float64] = Field(
        ..., description="Equity the investor must inject to cover negative months"
    )
    total_debt_balance: NDArray[np.float64] = Field(
        ..., description="Ending balance summed across tranches"
    )

    def tranche_debt_service(self, name: TrancheName) -> NDArray[np.float64]:
        return self.debt_service[name]

    def positive_cash_flows(self) -> NDArray[np.float64]:
        return np.maximum(self.levered_fcf, 0.0)


class CashFlowProjector:
    """Projects operating and levered cash flows for one configuration."""

    def __init__(self, config: PropertyConfig, grid: MonthlyTimeGrid, debt: DebtSchedule):
        """Initialize the projector.

        Args:
            config: Property configuration snapshot
            grid: Time grid built from the same configuration
            debt: Debt schedule from the amortization engine
        """
        self.config = config
        self.grid = grid
        self.debt = debt

    def _annual_line(
        self, annual_amount: float, escalation: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Book an escalated annual expense once every 12 months, stored negative."""
        booked = self.grid.annual_booking_flags()
        return np.where(booked, -annual_amount * escalation, 0.0)

    def project_operations(self) -> OperatingProjection:
        """
        Project revenue and operating expenses.

        Advanced mode applies occupancy and a growth rate per expense line;
        basic mode escalates every line by the shared CPI assumption.

        Returns:
            OperatingProjection aligned with the grid
        """
        config = self.config
        grid = self.grid
        hold = grid.hold_flags()
        months = grid.months.astype(np.float64)

        rent_factors = annual_step_factors(config.annual_rent_increase, grid)
        raw_revenue = hold * config.monthly_rent * rent_factors
        property_value = config.purchase_price * monthly_compound_factors(
            config.home_growth_rate, grid
        )

        if config.advanced_mode:
            revenue = raw_revenue * config.occupancy_rate
            assessed_value = config.purchase_price * monthly_compound_factors(
                config.property_tax_growth, grid
            )
            insurance = self._annual_line(
                config.annual_insurance,
                (1 + config.annual_insurance_growth / 12) ** months,
            )
            hoa = self._annual_line(
                config.annual_hoa, (1 + config.annual_hoa_growth / 12) ** months
            )
            maintenance = self._annual_line(
                config.annual_maintenance,
                (1 + config.maintenance_growth / 12) ** months,
            )
        else:
            revenue = raw_revenue.copy()
            assessed_value = property_value.copy()
            cpi = monthly_compound_factors(config.cpi_assumption, grid)
            insurance = self._annual_line(config.annual_insurance, cpi)
            hoa = self._annual_line(config.annual_hoa, cpi)
            maintenance = self._annual_line(config.annual_maintenance, cpi)

        property_tax = self._annual_line(config.property_tax_rate, assessed_value)
        management_fee = -revenue * config.management_fee

        return OperatingProjection(
            revenue=revenue,
            raw_revenue=raw_revenue,
            insurance=insurance,
            hoa=hoa,
            property_tax=property_tax,
            maintenance=maintenance,
            management_fee=management_fee,
            property_value=property_value,
            assessed_value=assessed_value,
        )

    def project_home_sale(self, operating: OperatingProjection) -> HomeSale:
        """Value the terminal sale at month N."""
        last = self.grid.num_months
        balances = {
            name: float(self.debt.get_tranche(name).ending_balance[last])
            for name in TRANCHE_NAMES
        }
        property_value = float(operating.property_value[last])
        return HomeSale(
            property_value=property_value,
            initial_mortgage_balance=balances["initial_mortgage"],
            home_equity_loan_balance=balances["home_equity_loan"],
            refinanced_mortgage_balance=balances["refinanced_mortgage"],
            net_sale_proceeds=property_value - sum(balances.values()),
        )

    def run(self) -> Tuple[CashFlowRecord, HomeSale]:
        """
        Build the cash flow record and the terminal home sale.

        Returns:
            Tuple of (cash_flow_record, home_sale)
        """
        operating = self.project_operations()
        operating_cash_flow = operating.operating_cash_flow()

        debt_service = {
            name: self.debt.get_tranche(name).debt_service() for name in TRANCHE_NAMES
        }
        total_debt_service = (
            debt_service["initial_mortgage"]
            + debt_service["home_equity_loan"]
            + debt_service["refinanced_mortgage"]
        )
        levered_fcf = operating_cash_flow + total_debt_service
        additional_equity = np.maximum(0.0, -levered_fcf)

        record = CashFlowRecord(
            operating=operating,
            operating_cash_flow=operating_cash_flow,
            debt_service=debt_service,
            total_debt_service=total_debt_service,
            levered_fcf=levered_fcf,
            additional_equity=additional_equity,
            total_debt_balance=self.debt.total_balance(),
        )
        return record, self.project_home_sale(operating)
