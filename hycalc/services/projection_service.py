"""
Projection service for coordinating engine runs on behalf of a caller.

The service owns the cached configuration snapshot: repeated requests with an
unchanged configuration return the cached result instead of re-running the
engine, so presentation layers can fire on every input change cheaply.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from hycalc.config import Settings
from hycalc.models.projection import ProjectionEngine, ProjectionResult
from hycalc.models.property_config import PropertyConfig
from hycalc.models.return_metrics import XirrConfig

logger = logging.getLogger(__name__)


class ProjectionService:
    """Service for running projections with a single-snapshot cache."""

    def __init__(self, xirr_config: Optional[XirrConfig] = None) -> None:
        """Initialize the projection service.

        Args:
            xirr_config: Root-finder settings passed to the engine
        """
        self.logger = logging.getLogger(__name__)
        self.engine = ProjectionEngine(xirr_config)
        # Snapshot and result are replaced together in one assignment
        self._cache: Optional[Tuple[PropertyConfig, ProjectionResult]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProjectionService":
        """Build a service using the solver settings from application config."""
        return cls(
            XirrConfig(
                initial_guess=settings.xirr_initial_guess,
                tolerance=settings.xirr_tolerance,
                max_iterations=settings.xirr_max_iterations,
            )
        )

    @property
    def cached_config(self) -> Optional[PropertyConfig]:
        cache = self._cache
        return cache[0] if cache is not None else None

    @property
    def cached_result(self) -> Optional[ProjectionResult]:
        cache = self._cache
        return cache[1] if cache is not None else None

    def run(self, config: PropertyConfig) -> ProjectionResult:
        """Run a projection, reusing the cached result for an unchanged snapshot.

        Args:
            config: Configuration snapshot to project

        Returns:
            ProjectionResult for the configuration

        Raises:
            ConvergenceError: If the IRR cannot be solved
        """
        cache = self._cache
        if cache is not None and cache[0] == config:
            self.logger.debug("Configuration unchanged, returning cached projection")
            return cache[1]

        try:
            self.logger.info(
                f"Starting projection: {config.investment_years} years, "
                f"advanced_mode={config.advanced_mode}, "
                f"refinance={config.is_refinance_active}, hel={config.is_hel_active}"
            )
            result = self.engine.run(config)
        except Exception as e:
            self.logger.error(f"Projection failed: {str(e)}")
            raise

        self._cache = (config, result)
        self.logger.info(f"Completed projection: IRR={result.irr:.4%}")
        return result

    def run_from_dict(self, payload: Dict[str, Any]) -> ProjectionResult:
        """Validate a raw configuration mapping and run it.

        Raises:
            pydantic.ValidationError: If the payload is not a valid configuration
        """
        return self.run(PropertyConfig.model_validate(payload))

    def clear_cache(self) -> None:
        """Drop the cached snapshot and result."""
        self._cache = None
