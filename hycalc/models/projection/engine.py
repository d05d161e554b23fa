"""
Projection engine.

Runs one projection as a pure function of a PropertyConfig snapshot:
time grid -> sources and uses -> amortization -> cash flows -> returns.
Re-running with an unchanged configuration repeats the same floating-point
operations in the same order and produces identical series.
"""

import logging
import time
from typing import Optional

from ..cash_flows import CashFlowProjector
from ..mortgage_amortization import AmortizationEngine
from ..property_config import PropertyConfig
from ..return_metrics import ReturnSolver, XirrConfig
from ..sources_uses import calculate_sources_and_uses
from ..time_grid import MonthlyTimeGrid
from .result import ProjectionResult

logger = logging.getLogger(__name__)


class ProjectionEngine:
    """Coordinates the projection components for one configuration snapshot."""

    def __init__(self, xirr_config: Optional[XirrConfig] = None):
        """Initialize the projection engine.

        Args:
            xirr_config: Root-finder settings for the IRR solve
        """
        self.return_solver = ReturnSolver(xirr_config)

    def run(self, config: PropertyConfig) -> ProjectionResult:
        """
        Project cash flows, debt and returns for a configuration.

        Args:
            config: Immutable configuration snapshot

        Returns:
            ProjectionResult with every monthly series and the return metrics

        Raises:
            ConvergenceError: If the IRR cannot be solved
        """
        started = time.perf_counter()

        grid = MonthlyTimeGrid.from_config(config)
        sources_uses = calculate_sources_and_uses(config)
        debt = AmortizationEngine(config, grid, sources_uses).run()
        cash_flows, home_sale = CashFlowProjector(config, grid, debt).run()
        returns = self.return_solver.solve(grid.months, cash_flows, home_sale, sources_uses)

        elapsed = time.perf_counter() - started
        logger.debug(
            f"Projected {grid.num_months} months in {elapsed:.4f}s: "
            f"IRR={returns.irr:.6f} MOIC={returns.moic}"
        )

        return ProjectionResult(
            config=config,
            time_grid=grid,
            sources_uses=sources_uses,
            debt=debt,
            cash_flows=cash_flows,
            home_sale=home_sale,
            returns=returns,
            execution_time_seconds=elapsed,
        )


def run_projection(
    config: PropertyConfig, xirr_config: Optional[XirrConfig] = None
) -> ProjectionResult:
    """Run a single projection with default engine settings."""
    return ProjectionEngine(xirr_config).run(config)
