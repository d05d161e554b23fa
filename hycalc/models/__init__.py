"""Data models and calculation engines for leveraged property projections."""

from .property_config import (
    ExtraPaymentPlan,
    HomeEquityLoanTerms,
    MortgageTerms,
    PropertyConfig,
    RefinanceTerms,
)
from .errors import ConfigurationError, ConvergenceError
from .time_grid import TRANCHE_NAMES, MonthlyTimeGrid
from .sources_uses import SourcesAndUses, calculate_sources_and_uses
from .mortgage_amortization import (
    AmortizationEngine,
    AmortizationMath,
    DebtSchedule,
    TrancheSchedule,
)
from .cash_flows import CashFlowProjector, CashFlowRecord, HomeSale, OperatingProjection
from .return_metrics import EquityLedger, ReturnRecord, ReturnSolver, XirrConfig, moic, xirr
from .annual_summary import AnnualSummary
from .projection import ProjectionEngine, ProjectionResult, run_projection

__all__ = [
    "PropertyConfig",
    "MortgageTerms",
    "HomeEquityLoanTerms",
    "RefinanceTerms",
    "ExtraPaymentPlan",
    "ConfigurationError",
    "ConvergenceError",
    "TRANCHE_NAMES",
    "MonthlyTimeGrid",
    "SourcesAndUses",
    "calculate_sources_and_uses",
    "AmortizationEngine",
    "AmortizationMath",
    "DebtSchedule",
    "TrancheSchedule",
    "CashFlowProjector",
    "CashFlowRecord",
    "HomeSale",
    "OperatingProjection",
    "EquityLedger",
    "ReturnRecord",
    "ReturnSolver",
    "XirrConfig",
    "moic",
    "xirr",
    "AnnualSummary",
    "ProjectionEngine",
    "ProjectionResult",
    "run_projection",
]
