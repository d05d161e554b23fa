"""
Return metrics for leveraged property projections.

This module solves the internal rate of return over monthly-indexed cash
flows (XIRR, Newton-Raphson with a forward-difference derivative,
falling back to bisection inside an NPV sign-change bracket) and the
multiple on invested capital, and keeps an equity ledger of contributions
and distributions for reporting.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .cash_flows import CashFlowRecord, HomeSale
from .errors import ConfigurationError, ConvergenceError
from .sources_uses import SourcesAndUses

logger = logging.getLogger(__name__)

ArrayLike = Union[Sequence[float], NDArray[np.float64]]


class XirrConfig(BaseModel):
    """Configuration for the XIRR root-finder."""

    initial_guess: float = Field(default=0.2, gt=-1, description="Starting rate")
    tolerance: float = Field(
        default=1e-7, gt=0, description="NPV magnitude treated as zero"
    )
    max_iterations: int = Field(
        default=100, ge=1, le=10000, description="Newton-Raphson iteration budget"
    )


# Rates scanned for an NPV sign change before iterating
BRACKET_SCAN_RATES = (
    -0.99, -0.9, -0.75, -0.5, -0.25, -0.1, 0.0, 0.05, 0.1, 0.15,
    0.2, 0.3, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0,
)


def net_present_value(
    rate: float, values: NDArray[np.float64], months: NDArray[np.float64]
) -> float:
    """Discount monthly-indexed cash flows at an effective annual rate."""
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        return float(np.sum(values / (1 + rate) ** (months / 12)))


def find_sign_change(
    values: NDArray[np.float64], months: NDArray[np.float64], guess: float
) -> Optional[Tuple[float, float]]:
    """
    Find a rate interval over which the NPV changes sign.

    Scans a fixed set of rates (plus the guess) and returns the sign-change
    interval closest to the guess, or None when the NPV never changes sign.
    """
    rates = sorted(set(BRACKET_SCAN_RATES) | {guess})
    npvs = [net_present_value(rate, values, months) for rate in rates]

    best: Optional[Tuple[float, float]] = None
    best_distance = np.inf
    for (low, f_low), (high, f_high) in zip(zip(rates, npvs), zip(rates[1:], npvs[1:])):
        if not (np.isfinite(f_low) and np.isfinite(f_high)):
            continue
        if f_low * f_high > 0:
            continue
        distance = 0.0 if low <= guess <= high else min(abs(guess - low), abs(guess - high))
        if distance < best_distance:
            best, best_distance = (low, high), distance
    return best


def xirr(
    values: ArrayLike,
    months: ArrayLike,
    guess: float = 0.2,
    tolerance: float = 1e-7,
    max_iterations: int = 100,
) -> float:
    """
    Solve for the effective annual rate r with sum(v / (1+r)^(m/12)) == 0.

    Args:
        values: Cash flows (negative for contributions)
        months: Month offset of each cash flow
        guess: Initial rate estimate
        tolerance: NPV magnitude accepted as converged
        max_iterations: Iteration budget

    Returns:
        Internal rate of return as an effective annual rate

    Raises:
        ConfigurationError: If values and months differ in length, or the guess
            is not above -100%
        ConvergenceError: If no root is found within the iteration budget
    """
    cash_flows = np.asarray(values, dtype=np.float64)
    offsets = np.asarray(months, dtype=np.float64)
    if cash_flows.shape != offsets.shape:
        raise ConfigurationError("Values and months arrays must have the same length.")
    if guess <= -1:
        raise ConfigurationError(f"Initial guess {guess} must be greater than -1")

    bracket = find_sign_change(cash_flows, offsets, guess)
    if bracket is not None and not bracket[0] <= guess <= bracket[1]:
        rate = (bracket[0] + bracket[1]) / 2
    else:
        rate = guess
    npv = net_present_value(rate, cash_flows, offsets)
    if bracket is not None:
        lower, upper = bracket
        npv_lower = net_present_value(lower, cash_flows, offsets)

    for iteration in range(max_iterations):
        if abs(npv) < tolerance:
            logger.debug(f"XIRR converged to {rate:.8f} after {iteration} iterations")
            return rate

        step = abs(rate) * 1e-6 if rate != 0 else 1e-6
        derivative = (net_present_value(rate + step, cash_flows, offsets) - npv) / step
        if derivative != 0 and np.isfinite(derivative):
            candidate = rate - npv / derivative
        else:
            candidate = np.nan

        if bracket is not None:
            # Newton steps that leave the sign-change interval fall back to bisection
            if not (np.isfinite(candidate) and lower < candidate < upper):
                candidate = (lower + upper) / 2
        elif not np.isfinite(candidate):
            candidate = rate
        elif candidate <= -1:
            candidate = (rate - 1) / 2

        previous_rate, previous_npv = rate, npv
        rate = candidate
        npv = net_present_value(rate, cash_flows, offsets)

        if bracket is None:
            if np.isfinite(npv) and previous_npv * npv < 0:
                bracket = (min(previous_rate, rate), max(previous_rate, rate))
                lower, upper = bracket
                npv_lower = net_present_value(lower, cash_flows, offsets)
            continue

        if npv * npv_lower > 0:
            lower, npv_lower = rate, npv
        else:
            upper = rate

        if upper - lower < tolerance:
            logger.debug(f"XIRR bracket closed at {rate:.8f}")
            return rate

    if abs(npv) < tolerance:
        return rate

    logger.warning(f"XIRR did not converge in {max_iterations} iterations (last rate {rate})")
    raise ConvergenceError(
        f"XIRR calculation did not converge in {max_iterations} iterations.",
        max_iterations,
        rate,
    )


def moic(
    levered_fcf: ArrayLike,
    net_sale_proceeds: float,
    initial_equity: float,
    additional_equity: ArrayLike,
) -> Optional[float]:
    """
    Multiple on invested capital.

    (positive levered cash flows + net sale proceeds) /
    (initial equity + additional equity draws)

    Returns:
        The multiple, or None when invested capital is not positive
    """
    returned = float(np.sum(np.maximum(np.asarray(levered_fcf, dtype=np.float64), 0.0)))
    returned += net_sale_proceeds
    invested = initial_equity + float(np.sum(np.asarray(additional_equity, dtype=np.float64)))
    if invested <= 0:
        return None
    return returned / invested


class EquityLedger(BaseModel):
    """Equity contributions and distributions over the horizon."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    contributions: NDArray[np.float64] = Field(..., description="Cash invested per month")
    distributions: NDArray[np.float64] = Field(
        ..., description="Cash returned per month, sale proceeds included"
    )
    cumulative_contributions: NDArray[np.float64] = Field(
        ..., description="Running total of contributions"
    )
    cumulative_distributions: NDArray[np.float64] = Field(
        ..., description="Running total of distributions"
    )
    net_equity: NDArray[np.float64] = Field(
        ..., description="Cumulative distributions less cumulative contributions"
    )
    total_invested: float = Field(..., description="Initial plus additional equity")
    total_returned: float = Field(..., description="Distributions plus sale proceeds")

    @property
    def net_profit(self) -> float:
        return self.total_returned - self.total_invested

    @classmethod
    def from_cash_flows(
        cls, cash_flows: CashFlowRecord, home_sale: HomeSale, initial_equity: float
    ) -> "EquityLedger":
        """Build the ledger from levered cash flows and the terminal sale."""
        contributions = cash_flows.additional_equity.copy()
        contributions[0] = initial_equity

        distributions = cash_flows.positive_cash_flows()
        distributions[-1] += home_sale.net_sale_proceeds

        cumulative_contributions = np.cumsum(contributions)
        cumulative_distributions = np.cumsum(distributions)

        return cls(
            contributions=contributions,
            distributions=distributions,
            cumulative_contributions=cumulative_contributions,
            cumulative_distributions=cumulative_distributions,
            net_equity=cumulative_distributions - cumulative_contributions,
            total_invested=initial_equity + float(np.sum(cash_flows.additional_equity)),
            total_returned=float(np.sum(cash_flows.positive_cash_flows()))
            + home_sale.net_sale_proceeds,
        )


class ReturnRecord(BaseModel):
    """Solved returns for one projection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    months: NDArray[np.int64] = Field(..., description="Month offsets")
    xirr_cash_flows: NDArray[np.float64] = Field(
        ..., description="Equity outflow at month 0, levered FCF, sale at month N"
    )
    irr: float = Field(..., description="Internal rate of return (effective annual)")
    moic: Optional[float] = Field(..., description="Multiple on invested capital")
    equity: EquityLedger = Field(..., description="Equity contributions and distributions")


class ReturnSolver:
    """Computes IRR, MOIC and the equity ledger from projected cash flows."""

    def __init__(self, config: Optional[XirrConfig] = None):
        """Initialize the return solver.

        Args:
            config: Root-finder settings
        """
        self.config = config or XirrConfig()

    def build_xirr_cash_flows(
        self, cash_flows: CashFlowRecord, home_sale: HomeSale, initial_equity: float
    ) -> NDArray[np.float64]:
        """Levered FCF with the equity check at month 0 and the sale added at month N."""
        vector = cash_flows.levered_fcf.copy()
        vector[0] = -initial_equity
        vector[-1] += home_sale.net_sale_proceeds
        return vector

    def solve(
        self,
        months: NDArray[np.int64],
        cash_flows: CashFlowRecord,
        home_sale: HomeSale,
        sources_uses: SourcesAndUses,
    ) -> ReturnRecord:
        """
        Solve returns for one projection.

        Raises:
            ConvergenceError: If XIRR does not converge
        """
        equity = sources_uses.equity
        vector = self.build_xirr_cash_flows(cash_flows, home_sale, equity)

        irr = xirr(
            vector,
            months,
            guess=self.config.initial_guess,
            tolerance=self.config.tolerance,
            max_iterations=self.config.max_iterations,
        )
        multiple = moic(
            cash_flows.levered_fcf,
            home_sale.net_sale_proceeds,
            equity,
            cash_flows.additional_equity,
        )

        return ReturnRecord(
            months=months,
            xirr_cash_flows=vector,
            irr=irr,
            moic=multiple,
            equity=EquityLedger.from_cash_flows(cash_flows, home_sale, equity),
        )
