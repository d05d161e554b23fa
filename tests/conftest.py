"""
Pytest configuration and shared fixtures for the projection tests.
"""

import pytest

from hycalc import create_app
from hycalc.config import reset_global_settings
from hycalc.models import (
    ExtraPaymentPlan,
    HomeEquityLoanTerms,
    MortgageTerms,
    PropertyConfig,
    RefinanceTerms,
)


@pytest.fixture(autouse=True)
def app_environment(monkeypatch):
    """Provide the settings every app instance requires."""
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("APP_ENV", "testing")
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def basic_config():
    """The default basic-mode scenario: $500k purchase, 25% down, 20 years at 6%."""
    return PropertyConfig(
        purchase_price=500000,
        closing_costs=5000,
        down_payment_fraction=0.25,
        investment_years=20,
        home_growth_rate=0.04,
        monthly_rent=4500,
        annual_rent_increase=0.02,
        annual_insurance=2000,
        annual_hoa=1500,
        property_tax_rate=0.0225,
        annual_maintenance=1000,
        management_fee=0.10,
        cpi_assumption=0.02,
        initial_mortgage=MortgageTerms(rate=0.06, term_years=20),
    )


@pytest.fixture
def advanced_config():
    """Advanced mode with a home-equity loan, a refinance and extra payments."""
    return PropertyConfig(
        advanced_mode=True,
        purchase_price=500000,
        closing_costs=5000,
        down_payment_fraction=0.25,
        investment_years=20,
        home_growth_rate=0.04,
        monthly_rent=4500,
        annual_rent_increase=0.02,
        occupancy_rate=0.95,
        annual_insurance=2000,
        annual_insurance_growth=0.03,
        annual_hoa=1500,
        annual_hoa_growth=0.02,
        property_tax_rate=0.0225,
        property_tax_growth=0.02,
        annual_maintenance=1000,
        maintenance_growth=0.025,
        management_fee=0.10,
        initial_mortgage=MortgageTerms(
            rate=0.07,
            term_years=30,
            origination_fee_rate=0.01,
            extra_payments=ExtraPaymentPlan(annual_amount=6000, payments_per_year=4),
        ),
        home_equity_loan=HomeEquityLoanTerms(
            amount=50000, rate=0.08, term_years=10, origination_fee_rate=0.005
        ),
        refinance=RefinanceTerms(
            rate=0.05,
            term_years=15,
            refinance_years=5,
            extra_payments=ExtraPaymentPlan(annual_amount=2400, payments_per_year=12),
        ),
    )


@pytest.fixture
def app():
    """Create a Flask application configured for testing."""
    return create_app("testing")


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
