"""
Pydantic models for a leveraged rental property projection.

This module defines the immutable configuration snapshot consumed by the
projection engine: acquisition terms, operating assumptions, and up to three
debt tranches (initial mortgage, home-equity loan, refinanced mortgage).
All rates are stored as fractions (0.06 for 6%).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExtraPaymentPlan(BaseModel):
    """Irregular extra-principal payments applied to one tranche."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    annual_amount: float = Field(
        ..., ge=0, description="Total extra principal paid per year"
    )
    payments_per_year: int = Field(
        ..., ge=1, le=12, description="Number of extra payments per year"
    )

    @property
    def months_between_payments(self) -> int:
        """Spacing between extra payments, in whole months."""
        return 12 // self.payments_per_year

    @property
    def amount_per_payment(self) -> float:
        """Extra principal applied on each payment month."""
        return self.annual_amount / self.payments_per_year


class LoanTerms(BaseModel):
    """Terms shared by every debt tranche."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rate: float = Field(..., ge=0, le=1, description="Annual interest rate (0-1)")
    term_years: int = Field(..., ge=1, le=50, description="Loan term in years")
    extra_payments: Optional[ExtraPaymentPlan] = Field(
        default=None, description="Optional extra-principal payment plan"
    )

    @property
    def monthly_rate(self) -> float:
        """Monthly interest rate."""
        return self.rate / 12

    @property
    def term_months(self) -> int:
        """Loan term in months."""
        return self.term_years * 12


class MortgageTerms(LoanTerms):
    """Initial purchase mortgage. The amount is the purchase price less the down payment."""

    origination_fee_rate: float = Field(
        default=0.0, ge=0, le=1, description="Origination fee as a fraction of the loan"
    )


class HomeEquityLoanTerms(LoanTerms):
    """Home-equity loan drawn at closing."""

    amount: float = Field(..., ge=0, description="Home-equity loan amount")
    origination_fee_rate: float = Field(
        default=0.0, ge=0, le=1, description="Origination fee as a fraction of the loan"
    )


class RefinanceTerms(LoanTerms):
    """Refinanced mortgage that pays off the initial mortgage mid-horizon."""

    refinance_years: float = Field(
        ..., gt=0, description="Years after closing at which the refinance occurs"
    )

    @property
    def trigger_month(self) -> int:
        """Month index at which the initial mortgage is paid off."""
        return int(round(self.refinance_years * 12))

    @field_validator("refinance_years")
    @classmethod
    def validate_refinance_years(cls, v: float) -> float:
        if round(v * 12) < 1:
            raise ValueError("Refinance must occur at least one month after closing")
        return v


class PropertyConfig(BaseModel):
    """
    Immutable configuration snapshot for one projection run.

    Example:
        ```python
        config = PropertyConfig(
            purchase_price=500000,
            down_payment_fraction=0.25,
            investment_years=20,
            monthly_rent=4500,
            annual_rent_increase=0.02,
            management_fee=0.10,
            initial_mortgage=MortgageTerms(rate=0.06, term_years=20),
        )
        ```
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    advanced_mode: bool = Field(
        default=False,
        description="Use per-line growth rates and occupancy instead of the shared CPI",
    )

    # Acquisition
    purchase_price: float = Field(..., gt=0, description="Property purchase price")
    closing_costs: float = Field(default=0.0, ge=0, description="Closing costs")
    down_payment_fraction: float = Field(
        ..., ge=0, le=1, description="Down payment as a fraction of price (0-1)"
    )
    investment_years: int = Field(
        ..., ge=1, le=50, description="Investment horizon in years"
    )
    home_growth_rate: float = Field(
        default=0.0, ge=-1, le=1, description="Annual home value growth rate"
    )

    # Revenue
    monthly_rent: float = Field(..., ge=0, description="Monthly rent at closing")
    annual_rent_increase: float = Field(
        default=0.0, ge=-1, le=1, description="Annual rent escalation rate"
    )
    occupancy_rate: float = Field(
        default=1.0, ge=0, le=1, description="Occupancy rate (advanced mode only)"
    )

    # Operating expenses
    annual_insurance: float = Field(default=0.0, ge=0, description="Annual insurance")
    annual_insurance_growth: float = Field(
        default=0.0, ge=-1, le=1, description="Annual insurance growth (advanced)"
    )
    annual_hoa: float = Field(default=0.0, ge=0, description="Annual HOA fees")
    annual_hoa_growth: float = Field(
        default=0.0, ge=-1, le=1, description="Annual HOA growth (advanced)"
    )
    property_tax_rate: float = Field(
        default=0.0, ge=0, le=1, description="Property tax as a fraction of assessed value"
    )
    property_tax_growth: float = Field(
        default=0.0, ge=-1, le=1, description="Assessed value growth (advanced)"
    )
    annual_maintenance: float = Field(
        default=0.0, ge=0, description="Annual maintenance cost"
    )
    maintenance_growth: float = Field(
        default=0.0, ge=-1, le=1, description="Annual maintenance growth (advanced)"
    )
    management_fee: float = Field(
        default=0.0, ge=0, le=1, description="Management fee as a fraction of revenue"
    )
    cpi_assumption: float = Field(
        default=0.0, ge=-1, le=1, description="Shared expense escalation (basic mode)"
    )

    # Debt
    initial_mortgage: MortgageTerms = Field(..., description="Initial mortgage terms")
    home_equity_loan: Optional[HomeEquityLoanTerms] = Field(
        default=None, description="Optional home-equity loan"
    )
    refinance: Optional[RefinanceTerms] = Field(
        default=None, description="Optional refinance of the initial mortgage"
    )

    @property
    def num_months(self) -> int:
        """Number of months in the horizon (N)."""
        return self.investment_years * 12

    @property
    def is_refinance_active(self) -> bool:
        return self.refinance is not None

    @property
    def is_hel_active(self) -> bool:
        return self.home_equity_loan is not None

    @property
    def refinance_month(self) -> Optional[int]:
        """
        Refinance trigger month, or None when no refinance is configured.

        A trigger month beyond the horizon is returned as-is; the time grid
        simply never reaches it.
        """
        if self.refinance is None:
            return None
        return self.refinance.trigger_month

    @property
    def hel_term_months(self) -> Optional[int]:
        """Home-equity loan term in months, or None when inactive."""
        if self.home_equity_loan is None:
            return None
        return self.home_equity_loan.term_months

    @property
    def hel_amount(self) -> float:
        """Home-equity loan amount, 0 when inactive."""
        if self.home_equity_loan is None:
            return 0.0
        return self.home_equity_loan.amount
