"""
Mortgage amortization calculations for leveraged property projections.

This module advances up to three debt tranches (initial mortgage, home-equity
loan, refinanced mortgage) month by month over a MonthlyTimeGrid: interest
accrual, scheduled principal from the standard amortization formula, optional
extra principal, and the refinance transfer that pays off the initial
mortgage and issues the refinanced mortgage in the same month.

Series use a cash-flow sign convention: issuance is positive, principal
repayments and the refinance payoff are negative, interest is positive.
"""

import logging
from typing import Dict, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .property_config import LoanTerms, PropertyConfig
from .sources_uses import SourcesAndUses
from .time_grid import TRANCHE_NAMES, MonthlyTimeGrid, TrancheName

logger = logging.getLogger(__name__)


class AmortizationMath:
    """Closed-form level-payment amortization formulas."""

    @staticmethod
    def calculate_monthly_payment(
        principal: float, monthly_rate: float, num_payments: int
    ) -> float:
        """
        Calculate the level monthly payment using the standard formula.

        Args:
            principal: Loan principal amount
            monthly_rate: Monthly interest rate (annual rate / 12)
            num_payments: Number of monthly payments

        Returns:
            Monthly payment amount (positive)
        """
        if principal <= 0 or num_payments <= 0:
            return 0.0
        if monthly_rate == 0:
            return principal / num_payments

        growth = (1 + monthly_rate) ** num_payments
        return principal * monthly_rate * growth / (growth - 1)

    @staticmethod
    def calculate_scheduled_balance(
        principal: float, monthly_rate: float, num_payments: int, payments_made: int
    ) -> float:
        """
        Balance remaining on the bank schedule after a number of level payments.

        Args:
            principal: Loan principal amount
            monthly_rate: Monthly interest rate
            num_payments: Number of monthly payments in the term
            payments_made: Payments already made

        Returns:
            Scheduled remaining balance
        """
        payment = AmortizationMath.calculate_monthly_payment(
            principal, monthly_rate, num_payments
        )
        if payments_made <= 0:
            return principal
        if monthly_rate == 0:
            return principal - payment * payments_made

        growth = (1 + monthly_rate) ** payments_made
        return principal * growth - payment * (growth - 1) / monthly_rate

    @staticmethod
    def calculate_interest_payment(
        principal: float, monthly_rate: float, num_payments: int, payment_number: int
    ) -> float:
        """Interest portion of a scheduled payment (1-based payment number)."""
        if not 1 <= payment_number <= num_payments:
            return 0.0
        balance = AmortizationMath.calculate_scheduled_balance(
            principal, monthly_rate, num_payments, payment_number - 1
        )
        return balance * monthly_rate

    @staticmethod
    def calculate_principal_payment(
        principal: float, monthly_rate: float, num_payments: int, payment_number: int
    ) -> float:
        """
        Principal portion of a scheduled payment (1-based payment number).

        With a zero rate this is straight-line: principal / num_payments.
        Payment numbers outside 1..num_payments carry no principal.
        """
        if principal <= 0 or not 1 <= payment_number <= num_payments:
            return 0.0
        if monthly_rate == 0:
            return principal / num_payments

        payment = AmortizationMath.calculate_monthly_payment(
            principal, monthly_rate, num_payments
        )
        interest = AmortizationMath.calculate_interest_payment(
            principal, monthly_rate, num_payments, payment_number
        )
        return payment - interest

    @staticmethod
    def calculate_loan_to_value_ratio(loan_balance: float, property_value: float) -> float:
        """
        Calculate loan-to-value ratio.

        Args:
            loan_balance: Current loan balance
            property_value: Current property value

        Returns:
            LTV ratio (0-1)
        """
        if property_value <= 0:
            return 1.0
        return min(1.0, loan_balance / property_value)


class TrancheSchedule(BaseModel):
    """Month-by-month state of one debt tranche."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: TrancheName = Field(..., description="Tranche identifier")
    monthly_rate: float = Field(..., ge=0, description="Monthly interest rate")
    beginning_balance: NDArray[np.float64] = Field(..., description="Beginning balance")
    issuance: NDArray[np.float64] = Field(..., description="New principal issued")
    extra_principal: NDArray[np.float64] = Field(
        ..., description="Extra principal paid (negative)"
    )
    scheduled_principal: NDArray[np.float64] = Field(
        ..., description="Scheduled principal paid (negative)"
    )
    refinance: NDArray[np.float64] = Field(
        ..., description="Refinance payoff (negative, initial mortgage only)"
    )
    interest_expense: NDArray[np.float64] = Field(..., description="Interest accrued")
    ending_balance: NDArray[np.float64] = Field(..., description="Ending balance")
    payment_index: NDArray[np.int64] = Field(
        ..., description="Tranche-relative payment number (0 when inactive)"
    )

    def debt_service(self) -> NDArray[np.float64]:
        """Cash impact of the tranche: extra + scheduled principal - interest."""
        return self.extra_principal + self.scheduled_principal - self.interest_expense

    def principal_paid(self) -> NDArray[np.float64]:
        """Scheduled principal as positive amounts."""
        return -self.scheduled_principal

    def extra_paid(self) -> NDArray[np.float64]:
        """Extra principal as positive amounts."""
        return -self.extra_principal

    def balance_residual(self) -> NDArray[np.float64]:
        """
        Difference between the stored ending balance and the roll-forward.

        Zero everywhere for a consistent schedule, including the refinance month.
        """
        rolled = (
            self.beginning_balance
            + self.issuance
            + self.extra_principal
            + self.scheduled_principal
            + self.refinance
        )
        return self.ending_balance - rolled

    def total_interest(self) -> float:
        return float(np.sum(self.interest_expense))


class DebtSchedule(BaseModel):
    """Amortization state of all three tranches over the grid."""

    initial_mortgage: TrancheSchedule
    home_equity_loan: TrancheSchedule
    refinanced_mortgage: TrancheSchedule

    def get_tranche(self, name: TrancheName) -> TrancheSchedule:
        if name not in TRANCHE_NAMES:
            raise ValueError(f"Unknown tranche: {name}")
        return getattr(self, name)

    def tranches(self) -> Dict[TrancheName, TrancheSchedule]:
        return {name: self.get_tranche(name) for name in TRANCHE_NAMES}

    def total_debt_service(self) -> NDArray[np.float64]:
        return (
            self.initial_mortgage.debt_service()
            + self.home_equity_loan.debt_service()
            + self.refinanced_mortgage.debt_service()
        )

    def total_balance(self) -> NDArray[np.float64]:
        return (
            self.initial_mortgage.ending_balance
            + self.home_equity_loan.ending_balance
            + self.refinanced_mortgage.ending_balance
        )


class AmortizationEngine:
    """Advances every debt tranche month by month, including the refinance event."""

    def __init__(
        self,
        config: PropertyConfig,
        grid: MonthlyTimeGrid,
        sources_uses: SourcesAndUses,
    ):
        """Initialize the amortization engine.

        Args:
            config: Property configuration snapshot
            grid: Time grid built from the same configuration
            sources_uses: Closing-day financing amounts
        """
        self.config = config
        self.grid = grid
        self.sources_uses = sources_uses

    def _terms(self, name: TrancheName) -> Optional[LoanTerms]:
        if name == "initial_mortgage":
            return self.config.initial_mortgage
        if name == "home_equity_loan":
            return self.config.home_equity_loan
        return self.config.refinance

    def _origination_amount(self, name: TrancheName) -> float:
        if name == "initial_mortgage":
            return self.sources_uses.initial_mortgage
        if name == "home_equity_loan":
            return self.sources_uses.hel_amount
        # The refinanced mortgage is issued by the refinance transfer, not at closing.
        return 0.0

    def run(self) -> DebtSchedule:
        """
        Build the debt schedule for all tranches.

        Returns:
            DebtSchedule with one TrancheSchedule per tranche
        """
        grid = self.grid
        size = len(grid)

        arrays = {
            name: {
                "beginning_balance": grid.zeros(),
                "issuance": grid.zeros(),
                "extra_principal": grid.zeros(),
                "scheduled_principal": grid.zeros(),
                "refinance": grid.zeros(),
                "interest_expense": grid.zeros(),
                "ending_balance": grid.zeros(),
            }
            for name in TRANCHE_NAMES
        }
        windows = {name: grid.active_window(name) for name in TRANCHE_NAMES}
        payment_indices = {name: grid.payment_index(name) for name in TRANCHE_NAMES}

        # Principal the bank schedule amortizes; the refinanced mortgage's is set at payoff
        schedule_principal = {
            name: self._origination_amount(name) for name in TRANCHE_NAMES
        }
        refinance_payoff = 0.0

        for i in range(size):
            for name in TRANCHE_NAMES:
                state = arrays[name]
                terms = self._terms(name)
                active = bool(windows[name][i])

                beginning = 0.0 if grid.is_origination_month(i) else state["ending_balance"][i - 1]

                issuance = 0.0
                if grid.is_origination_month(i):
                    issuance = self._origination_amount(name)
                elif name == "refinanced_mortgage" and grid.is_refinance_month(i):
                    issuance = refinance_payoff

                available = beginning + issuance

                extra = 0.0
                if active and terms is not None and terms.extra_payments is not None:
                    plan = terms.extra_payments
                    if i % plan.months_between_payments == 0:
                        extra = min(plan.amount_per_payment, max(available, 0.0))

                remaining = available - extra

                scheduled = 0.0
                payment_number = int(payment_indices[name][i])
                if payment_number > 0 and terms is not None:
                    formula = AmortizationMath.calculate_principal_payment(
                        schedule_principal[name],
                        terms.monthly_rate,
                        terms.term_months,
                        payment_number,
                    )
                    scheduled = min(formula, max(remaining, 0.0))

                ending = remaining - scheduled

                refinance = 0.0
                if name == "initial_mortgage" and grid.is_refinance_month(i):
                    refinance_payoff = ending
                    refinance = -refinance_payoff
                    schedule_principal["refinanced_mortgage"] = refinance_payoff
                    logger.debug(
                        f"Refinance at month {i}: initial mortgage payoff {refinance_payoff:.2f}"
                    )
                    ending = 0.0

                interest = 0.0
                if active and terms is not None:
                    interest = beginning * terms.monthly_rate

                if name == "initial_mortgage" and grid.is_after_refinance(i):
                    ending = 0.0

                state["beginning_balance"][i] = beginning
                state["issuance"][i] = issuance
                state["extra_principal"][i] = -extra
                state["scheduled_principal"][i] = -scheduled
                state["refinance"][i] = refinance
                state["interest_expense"][i] = interest
                state["ending_balance"][i] = ending

        schedules = {}
        for name in TRANCHE_NAMES:
            terms = self._terms(name)
            schedules[name] = TrancheSchedule(
                name=name,
                monthly_rate=terms.monthly_rate if terms is not None else 0.0,
                payment_index=payment_indices[name],
                **arrays[name],
            )

        return DebtSchedule(**schedules)
