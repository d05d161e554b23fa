"""
Sources and uses of funds at closing.

The equity check is the plug that balances total uses (price, closing costs,
origination fees) against total financing. A negative equity check means the
purchase is over-levered; that is a valid input, not an error.
"""

from pydantic import BaseModel, ConfigDict, Field

from .property_config import PropertyConfig


class SourcesAndUses(BaseModel):
    """Closing-day sources and uses of funds."""

    model_config = ConfigDict(frozen=True)

    purchase_price: float = Field(..., description="Property purchase price")
    closing_costs: float = Field(..., description="Closing costs")
    origination_fees: float = Field(..., description="Loan origination fees")
    total_uses: float = Field(..., description="Total uses of funds")

    down_payment: float = Field(..., description="Down payment")
    initial_mortgage: float = Field(..., description="Initial mortgage amount")
    hel_amount: float = Field(..., description="Home-equity loan amount (0 if inactive)")
    total_financing: float = Field(..., description="Total debt financing")
    equity: float = Field(..., description="Equity required at closing")
    total_sources: float = Field(..., description="Total sources of funds")

    def is_balanced(self, tolerance: float = 1e-6) -> bool:
        """Check that sources equal uses."""
        return abs(self.total_sources - self.total_uses) <= tolerance * max(
            1.0, abs(self.total_uses)
        )


def calculate_sources_and_uses(config: PropertyConfig) -> SourcesAndUses:
    """
    Size the equity check for a configuration.

    Args:
        config: Property configuration snapshot

    Returns:
        SourcesAndUses with total_sources == total_uses
    """
    purchase_price = config.purchase_price
    down_payment = purchase_price * config.down_payment_fraction
    initial_mortgage = purchase_price - down_payment

    origination_fees = initial_mortgage * config.initial_mortgage.origination_fee_rate
    hel_amount = 0.0
    if config.home_equity_loan is not None:
        hel_amount = config.home_equity_loan.amount
        origination_fees += hel_amount * config.home_equity_loan.origination_fee_rate

    total_uses = purchase_price + config.closing_costs + origination_fees
    total_financing = initial_mortgage + hel_amount
    equity = total_uses - total_financing
    total_sources = equity + total_financing

    return SourcesAndUses(
        purchase_price=purchase_price,
        closing_costs=config.closing_costs,
        origination_fees=origination_fees,
        total_uses=total_uses,
        down_payment=down_payment,
        initial_mortgage=initial_mortgage,
        hel_amount=hel_amount,
        total_financing=total_financing,
        equity=equity,
        total_sources=total_sources,
    )
