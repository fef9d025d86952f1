"""Target-timeline solver tests."""

from __future__ import annotations

import pytest

from payoffsage.services.debts import (
    DebtPayoffCalculator,
    InvalidInputError,
    PayoffSettings,
)


@pytest.fixture
def flat_debt(debt_factory):
    """$1,200 at 0% with a $100 minimum: 12 months on minimums alone."""
    return debt_factory(current_balance=1200.0, interest_rate=0.0, minimum_payment=100.0)


class TestExtraPaymentForTarget:
    """Tests for calculate_extra_payment_for_target."""

    @pytest.mark.parametrize("target", [12, 24, 600])
    def test_target_met_by_minimums_returns_zero(self, flat_debt, target):
        solution = DebtPayoffCalculator([flat_debt]).calculate_extra_payment_for_target(target)

        assert solution.extra_payment == 0
        assert solution.is_achievable
        assert solution.iterations == 0

    def test_finds_minimal_extra_within_tolerance(self, flat_debt):
        calculator = DebtPayoffCalculator([flat_debt])

        solution = calculator.calculate_extra_payment_for_target(6)

        # $200/month clears $1,200 in six months, so $100 extra is the exact answer.
        assert solution.is_achievable
        assert 100.0 <= solution.extra_payment < 101.0

        confirmed = DebtPayoffCalculator([flat_debt], solution.extra_payment).calculate_avalanche()
        assert confirmed.total_months <= 6
        short = DebtPayoffCalculator([flat_debt], solution.extra_payment - 1.0).calculate_avalanche()
        assert short.total_months > 6

    def test_unreachable_target_returns_ceiling(self, debt_factory):
        debt = debt_factory(current_balance=100000.0, interest_rate=5.0, minimum_payment=1000.0)

        solution = DebtPayoffCalculator([debt]).calculate_extra_payment_for_target(1)

        assert not solution.is_achievable
        assert solution.extra_payment == 10000.0

    def test_ceiling_is_configurable(self, debt_factory):
        debt = debt_factory(current_balance=100000.0, interest_rate=5.0, minimum_payment=1000.0)
        settings = PayoffSettings(extra_payment_ceiling=250000.0)

        solution = DebtPayoffCalculator([debt], settings=settings).calculate_extra_payment_for_target(1)

        assert solution.is_achievable
        confirmed = DebtPayoffCalculator(
            [debt], solution.extra_payment, settings=settings
        ).calculate_avalanche()
        assert confirmed.total_months == 1

    def test_non_convergent_baseline_still_searches(self, debt_factory):
        """Minimums below the monthly interest never finish, but extra payments do."""
        debt = debt_factory(current_balance=1000.0, interest_rate=24.0, minimum_payment=10.0)
        calculator = DebtPayoffCalculator([debt])

        solution = calculator.calculate_extra_payment_for_target(12)

        assert solution.is_achievable
        assert solution.extra_payment > 0
        confirmed = DebtPayoffCalculator([debt], solution.extra_payment).calculate_avalanche()
        assert confirmed.total_months <= 12

    def test_search_is_bounded(self, flat_debt):
        settings = PayoffSettings(max_search_iterations=5)

        solution = DebtPayoffCalculator(
            [flat_debt], settings=settings
        ).calculate_extra_payment_for_target(6)

        assert solution.iterations <= 5
        assert solution.is_achievable
        assert solution.extra_payment >= 100.0

    @pytest.mark.parametrize("target", [0, -3, 601, 1.5, True, "12"])
    def test_target_out_of_range(self, flat_debt, target):
        with pytest.raises(InvalidInputError) as excinfo:
            DebtPayoffCalculator([flat_debt]).calculate_extra_payment_for_target(target)

        assert excinfo.value.field == "target_months"


class TestPlanForTarget:
    """Tests for the verified target plan."""

    def test_plan_with_minimums_only(self, flat_debt):
        plan = DebtPayoffCalculator([flat_debt]).plan_for_target(18)

        assert plan.required_extra_payment == 0
        assert plan.is_achievable
        assert plan.current_timeline == 12
        assert plan.target_timeline == 18
        assert plan.message == "Target is achievable with minimum payments only"

    def test_plan_reports_savings(self, debt_factory):
        debt = debt_factory(current_balance=5000.0, interest_rate=20.0, minimum_payment=150.0)

        plan = DebtPayoffCalculator([debt]).plan_for_target(24)

        assert plan.is_achievable
        assert plan.required_extra_payment > 0
        assert plan.actual_timeline <= 24
        assert plan.current_timeline > 24
        assert plan.months_saved == plan.current_timeline - plan.actual_timeline
        assert plan.interest_savings > 0
        assert plan.total_interest_with_extra < plan.total_interest_minimum_only
        assert plan.message.startswith("Extra payment of $")

    def test_plan_for_unreachable_target(self, debt_factory):
        debt = debt_factory(current_balance=100000.0, interest_rate=5.0, minimum_payment=1000.0)

        plan = DebtPayoffCalculator([debt]).plan_for_target(1)

        assert not plan.is_achievable
        assert plan.required_extra_payment == 10000.0
        assert plan.actual_timeline > 1
        assert "may not be practical" in plan.message
        assert plan.to_dict()["is_achievable"] is False

    def test_plan_without_baseline(self, debt_factory):
        debt = debt_factory(current_balance=1000.0, interest_rate=24.0, minimum_payment=10.0)

        plan = DebtPayoffCalculator([debt]).plan_for_target(12)

        assert plan.is_achievable
        assert plan.current_timeline is None
        assert plan.interest_savings is None
        assert plan.months_saved is None
        assert plan.actual_timeline <= 12
