"""Tests for the projection service and its snapshot cache."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from hycalc.config import get_settings
from hycalc.models import ConvergenceError
from hycalc.services import ProjectionService


class TestProjectionService:
    """Test cases for ProjectionService."""

    def test_run(self, basic_config):
        """Test running a projection through the service."""
        service = ProjectionService()
        result = service.run(basic_config)

        assert result.config == basic_config
        assert service.cached_config == basic_config

    def test_unchanged_config_returns_cached_result(self, basic_config):
        """An equal snapshot reuses the cached result without re-running."""
        service = ProjectionService()
        first = service.run(basic_config)

        with patch.object(service.engine, "run") as mock_run:
            second = service.run(basic_config.model_copy())

        mock_run.assert_not_called()
        assert second is first

    def test_changed_config_replaces_cache(self, basic_config):
        """A different snapshot runs the engine and replaces the cache."""
        service = ProjectionService()
        first = service.run(basic_config)
        changed = basic_config.model_copy(update={"monthly_rent": 5000})

        second = service.run(changed)

        assert second is not first
        assert service.cached_config == changed
        assert second.irr > first.irr

    def test_clear_cache(self, basic_config):
        """Test dropping the cached snapshot."""
        service = ProjectionService()
        first = service.run(basic_config)
        service.clear_cache()

        assert service.cached_config is None
        assert service.run(basic_config) is not first

    def test_failure_is_logged_and_reraised(self, basic_config, caplog):
        """Engine failures propagate and leave the cache untouched."""
        service = ProjectionService()

        with patch.object(
            service.engine, "run", side_effect=ConvergenceError("no root", 100, 0.5)
        ):
            with caplog.at_level(logging.ERROR, logger="hycalc.services.projection_service"):
                with pytest.raises(ConvergenceError):
                    service.run(basic_config)

        assert "Projection failed: no root" in caplog.text
        assert service.cached_config is None

    def test_run_from_dict(self, basic_config):
        """Test validating and running a raw payload."""
        service = ProjectionService()
        result = service.run_from_dict(basic_config.model_dump())

        assert result.config == basic_config

    def test_run_from_invalid_dict(self):
        """Invalid payloads raise ValidationError before any projection runs."""
        service = ProjectionService()

        with pytest.raises(ValidationError):
            service.run_from_dict({"purchase_price": -1})

    def test_from_settings(self):
        """Solver settings come from the application configuration."""
        env = {
            "SECRET_KEY": "valid-secret-123",
            "XIRR_INITIAL_GUESS": "0.1",
            "XIRR_TOLERANCE": "1e-8",
            "XIRR_MAX_ITERATIONS": "250",
        }
        with patch.dict(os.environ, env, clear=True):
            service = ProjectionService.from_settings(get_settings())

        solver_config = service.engine.return_solver.config
        assert solver_config.initial_guess == 0.1
        assert solver_config.tolerance == 1e-8
        assert solver_config.max_iterations == 250

    def test_cached_config_and_result_stay_paired(self, basic_config):
        """Concurrent callers never get a result for a different snapshot."""
        service = ProjectionService()
        configs = [
            basic_config,
            basic_config.model_copy(update={"monthly_rent": 5000}),
        ]

        def run(index):
            config = configs[index % 2]
            return config, service.run(config)

        with ThreadPoolExecutor(max_workers=4) as executor:
            outcomes = list(executor.map(run, range(16)))

        for config, result in outcomes:
            assert result.config == config
        assert service.cached_result is not None
        assert service.cached_result.config == service.cached_config
