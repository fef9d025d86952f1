"""Pytest configuration and shared fixtures for PayoffSage tests.

This module provides debt factories, a Flask app/client pair wired with the
testing config, and helper utilities for comparing currency values.
"""

from __future__ import annotations

import json

import pytest

from payoffsage import create_app
from payoffsage.services.debts import DebtInput


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep log files written by the app inside the test's temp directory."""

    data_dir = tmp_path / "instance"
    monkeypatch.setenv("PAYOFFSAGE_DATA_DIR", str(data_dir))
    return data_dir


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app():
    app = create_app("testing")
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def cli_runner(app):
    return app.test_cli_runner()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def debt_factory():
    """Factory for creating DebtInput records with sensible defaults."""

    def _create_debt(
        debt_id: int = 1,
        name: str | None = None,
        current_balance: float = 1000.0,
        interest_rate: float = 12.0,
        minimum_payment: float = 50.0,
    ) -> DebtInput:
        return DebtInput(
            debt_id=debt_id,
            name=name or f"Debt {debt_id}",
            current_balance=current_balance,
            interest_rate=interest_rate,
            minimum_payment=minimum_payment,
        )

    return _create_debt


@pytest.fixture
def three_debts(debt_factory) -> list[DebtInput]:
    """Debts whose snowball and avalanche payoff orders differ."""

    return [
        debt_factory(1, "Car Loan", current_balance=2000.0, interest_rate=6.0, minimum_payment=50.0),
        debt_factory(2, "Store Card", current_balance=500.0, interest_rate=24.0, minimum_payment=25.0),
        debt_factory(3, "Credit Card", current_balance=1000.0, interest_rate=30.0, minimum_payment=30.0),
    ]


@pytest.fixture
def debts_file(tmp_path):
    """Write a debts payload to disk and return its path."""

    def _write(debts: list[dict], name: str = "debts.json"):
        path = tmp_path / name
        path.write_text(json.dumps({"debts": debts}), encoding="utf-8")
        return path

    return _write


# =============================================================================
# Helper Functions
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01 = 1 cent)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    diff = abs(actual - expected)
    assert diff <= tolerance, (
        f"Expected {expected}, got {actual} (difference: {diff}, tolerance: {tolerance})"
    )


