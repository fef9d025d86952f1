"""Debt payoff calculators.

Simulates month-by-month amortization of a set of debts under snowball,
avalanche, custom and minimum-only orderings, compares the strategies and
solves the inverse problem: the extra monthly payment needed to clear every
debt within a target number of months.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Hashable, Iterable, Sequence

from ..logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO_BALANCE_THRESHOLD = 0.01

STRATEGY_DESCRIPTIONS = {
    "snowball": "Pay off debts from smallest to largest balance",
    "avalanche": "Pay off debts from highest to lowest interest rate",
    "custom": "Pay off debts in custom priority order",
    "minimum_only": "Pay only minimum payments on all debts",
}


class PayoffError(ValueError):
    """Base class for payoff calculation failures."""


class InvalidInputError(PayoffError):
    """Raised when a debt record or calculator parameter is out of domain."""

    def __init__(
        self, message: str, *, field: str | None = None, debt_id: Hashable | None = None
    ) -> None:
        super().__init__(message)
        self.field = field
        self.debt_id = debt_id


class NonConvergentError(PayoffError):
    """Raised when a simulation hits the month cap with balances outstanding."""

    def __init__(self, message: str, *, months: int, remaining_balance: float) -> None:
        super().__init__(message)
        self.months = months
        self.remaining_balance = remaining_balance


@dataclass(slots=True, frozen=True)
class PayoffSettings:
    """Tunables for the simulation loop, the target solver and the recommendation."""

    max_months: int = 600
    extra_payment_ceiling: float = 10_000.0
    search_tolerance: float = 1.0
    max_search_iterations: int = 64
    materiality_amount: float = 50.0
    materiality_ratio: float = 0.01
    momentum_months: int = 2


@dataclass(slots=True, frozen=True)
class DebtInput:
    """Represents a liability input for payoff projections."""

    debt_id: Hashable
    name: str
    current_balance: float
    interest_rate: float  # annual percentage, 19.99 means 19.99%
    minimum_payment: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class CustomPayoffOrder:
    debt_id: Hashable
    priority: int  # 1 pays off first


@dataclass(slots=True, frozen=True)
class PayoffStrategy:
    strategy: str
    extra_payment: float
    description: str


@dataclass(slots=True, frozen=True)
class PaymentScheduleEntry:
    """One debt's payment in one simulated month."""

    month: int
    debt_id: Hashable
    debt_name: str
    payment_amount: float
    principal_payment: float
    interest_payment: float
    remaining_balance: float
    is_paid_off: bool


@dataclass(slots=True, frozen=True)
class SavingsSummary:
    months_saved: int = 0
    interest_saved: float = 0.0


@dataclass(slots=True, frozen=True)
class DebtPayoffResult:
    """Full schedule and aggregate totals for one strategy run."""

    strategy: PayoffStrategy
    total_months: int
    total_interest_paid: float
    total_amount_paid: float
    monthly_schedule: tuple[PaymentScheduleEntry, ...]
    debt_payoff_order: tuple[Hashable, ...]
    savings_vs_minimum: SavingsSummary | None = field(default_factory=SavingsSummary)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["monthly_schedule"] = [asdict(entry) for entry in self.monthly_schedule]
        payload["debt_payoff_order"] = list(self.debt_payoff_order)
        return payload

    @property
    def first_payoff_month(self) -> int | None:
        """Month in which the first debt was retired."""

        for entry in self.monthly_schedule:
            if entry.is_paid_off:
                return entry.month
        return None


@dataclass(slots=True, frozen=True)
class DebtPayoffComparison:
    debts: tuple[DebtInput, ...]
    snowball: DebtPayoffResult
    avalanche: DebtPayoffResult
    minimum_only: DebtPayoffResult
    recommended_strategy: str
    recommendation_reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "debts": [debt.to_dict() for debt in self.debts],
            "strategies": {
                "snowball": self.snowball.to_dict(),
                "avalanche": self.avalanche.to_dict(),
                "minimum_only": self.minimum_only.to_dict(),
            },
            "recommended_strategy": self.recommended_strategy,
            "recommendation_reason": self.recommendation_reason,
        }


@dataclass(slots=True, frozen=True)
class ExtraPaymentSolution:
    """Raw output of the inverse solver."""

    extra_payment: float
    is_achievable: bool
    iterations: int = 0


@dataclass(slots=True, frozen=True)
class TargetPaymentPlan:
    required_extra_payment: float
    is_achievable: bool
    target_timeline: int
    current_timeline: int | None
    actual_timeline: int | None
    total_interest_with_extra: float | None
    total_interest_minimum_only: float | None
    interest_savings: float | None
    months_saved: int | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class DebtSummaryStats:
    total_balance: float
    total_minimum_payments: float
    average_interest_rate: float
    highest_interest_rate: float
    lowest_balance: float
    debt_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _round_currency(amount: float) -> float:
    """Round to cents using half-up rounding."""

    return float(Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _id_key(debt_id: Hashable) -> tuple[str, Any]:
    """Sort key for debt ids; numeric ids order before string ids."""

    if isinstance(debt_id, (int, float)) and not isinstance(debt_id, bool):
        return ("", debt_id)
    return (type(debt_id).__name__, debt_id)


def _validate_debts(debts: Sequence[DebtInput]) -> None:
    if not debts:
        raise InvalidInputError("At least one debt is required.", field="debts")

    seen: set[Hashable] = set()
    for debt in debts:
        label = f"Debt {debt.debt_id!r}"
        if debt.debt_id in seen:
            raise InvalidInputError(
                f"{label} appears more than once.", field="debt_id", debt_id=debt.debt_id
            )
        seen.add(debt.debt_id)
        if not _is_number(debt.current_balance) or debt.current_balance <= 0:
            raise InvalidInputError(
                f"{label} must have a positive current_balance.",
                field="current_balance",
                debt_id=debt.debt_id,
            )
        if not _is_number(debt.minimum_payment) or debt.minimum_payment <= 0:
            raise InvalidInputError(
                f"{label} must have a positive minimum_payment.",
                field="minimum_payment",
                debt_id=debt.debt_id,
            )
        if not _is_number(debt.interest_rate) or debt.interest_rate < 0:
            raise InvalidInputError(
                f"{label} must have a non-negative interest_rate.",
                field="interest_rate",
                debt_id=debt.debt_id,
            )


class DebtPayoffCalculator:
    """Month-by-month payoff simulator for a fixed set of debts.

    The calculator holds no state between calls; every strategy run builds its
    own working balances, so repeated or concurrent calls are independent.
    """

    def __init__(
        self,
        debts: Iterable[DebtInput],
        extra_payment: float = 0.0,
        *,
        settings: PayoffSettings | None = None,
    ) -> None:
        self.debts: tuple[DebtInput, ...] = tuple(debts)
        _validate_debts(self.debts)
        if not _is_number(extra_payment) or extra_payment < 0:
            raise InvalidInputError("Extra payment cannot be negative.", field="extra_payment")
        self.extra_payment = _round_currency(extra_payment)
        self.settings = settings or PayoffSettings()

    # Orderings -----------------------------------------------------------

    def _snowball_order(self) -> list[DebtInput]:
        return sorted(self.debts, key=lambda d: (d.current_balance, _id_key(d.debt_id)))

    def _avalanche_order(self) -> list[DebtInput]:
        return sorted(
            self.debts,
            key=lambda d: (-d.interest_rate, -d.current_balance, _id_key(d.debt_id)),
        )

    def _minimum_only_order(self) -> list[DebtInput]:
        return sorted(self.debts, key=lambda d: _id_key(d.debt_id))

    def _custom_order(
        self, custom_order: Iterable[CustomPayoffOrder | tuple[Hashable, int]]
    ) -> list[DebtInput]:
        known = {debt.debt_id for debt in self.debts}
        priorities: dict[Hashable, int] = {}
        for item in custom_order:
            if not isinstance(item, CustomPayoffOrder):
                item = CustomPayoffOrder(*item)
            if item.debt_id not in known:
                raise InvalidInputError(
                    f"Custom order references unknown debt {item.debt_id!r}.",
                    field="custom_order",
                    debt_id=item.debt_id,
                )
            if item.debt_id in priorities:
                raise InvalidInputError(
                    f"Custom order lists debt {item.debt_id!r} more than once.",
                    field="custom_order",
                    debt_id=item.debt_id,
                )
            if isinstance(item.priority, bool) or not isinstance(item.priority, int) or item.priority < 1:
                raise InvalidInputError(
                    f"Priority for debt {item.debt_id!r} must be a positive integer.",
                    field="custom_order",
                    debt_id=item.debt_id,
                )
            priorities[item.debt_id] = item.priority

        missing = [debt.debt_id for debt in self.debts if debt.debt_id not in priorities]
        if missing:
            raise InvalidInputError(
                f"Custom order is missing debt(s): {', '.join(repr(m) for m in missing)}.",
                field="custom_order",
                debt_id=missing[0],
            )
        return sorted(self.debts, key=lambda d: (priorities[d.debt_id], _id_key(d.debt_id)))

    def _strategy(self, name: str, extra_payment: float | None = None) -> PayoffStrategy:
        extra = self.extra_payment if extra_payment is None else extra_payment
        return PayoffStrategy(
            strategy=name, extra_payment=extra, description=STRATEGY_DESCRIPTIONS[name]
        )

    # Simulation ----------------------------------------------------------

    def simulate(self, order: Sequence[DebtInput], strategy: PayoffStrategy) -> DebtPayoffResult:
        """Run the amortization loop with ``order`` as the extra-payment priority.

        Freed minimums and the unspent part of a final minimum payment only
        roll into the extra pool when ``strategy.extra_payment`` is positive;
        with no extra budget every debt pays exactly its minimum.
        """

        debts = list(order)
        count = len(debts)
        balances = [debt.current_balance for debt in debts]
        active = [True] * count
        allocate = strategy.extra_payment > 0
        max_months = self.settings.max_months

        schedule: list[PaymentScheduleEntry] = []
        payoff_order: list[Hashable] = []
        freed_minimums = 0.0
        month = 0

        while any(active):
            if month >= max_months:
                remaining = _round_currency(math.fsum(balances))
                logger.warning(
                    "Payoff simulation did not converge",
                    extra={
                        "strategy": strategy.strategy,
                        "extra_payment": strategy.extra_payment,
                        "months": month,
                        "remaining_balance": remaining,
                    },
                )
                raise NonConvergentError(
                    f"Debts are not paid off within {max_months} months "
                    f"(${remaining:,.2f} still outstanding).",
                    months=month,
                    remaining_balance=remaining,
                )
            month += 1

            pool = _round_currency(strategy.extra_payment + freed_minimums) if allocate else 0.0
            interest = [0.0] * count
            owed = [0.0] * count
            payments = [0.0] * count

            # Minimums first, capped at what is owed this month.
            for idx, debt in enumerate(debts):
                if not active[idx]:
                    continue
                interest[idx] = _round_currency(balances[idx] * debt.interest_rate / 1200)
                owed[idx] = _round_currency(balances[idx] + interest[idx])
                payments[idx] = min(debt.minimum_payment, owed[idx])
                if allocate:
                    pool = _round_currency(pool + debt.minimum_payment - payments[idx])

            # Pooled extra cascades down the priority list.
            for idx in range(count):
                if pool <= 0:
                    break
                if not active[idx]:
                    continue
                room = _round_currency(owed[idx] - payments[idx])
                applied = min(pool, room)
                payments[idx] = _round_currency(payments[idx] + applied)
                pool = _round_currency(pool - applied)

            retired_minimums = 0.0
            for idx, debt in enumerate(debts):
                if not active[idx]:
                    continue
                payment = _round_currency(payments[idx])
                # A payment below the accrued interest leaves principal at zero;
                # the shortfall capitalizes into the balance.
                principal = max(_round_currency(payment - interest[idx]), 0.0)
                remaining = _round_currency(owed[idx] - payment)
                if remaining < ZERO_BALANCE_THRESHOLD:
                    remaining = 0.0
                balances[idx] = remaining
                is_paid_off = remaining == 0.0
                schedule.append(
                    PaymentScheduleEntry(
                        month=month,
                        debt_id=debt.debt_id,
                        debt_name=debt.name,
                        payment_amount=payment,
                        principal_payment=principal,
                        interest_payment=interest[idx],
                        remaining_balance=remaining,
                        is_paid_off=is_paid_off,
                    )
                )
                if is_paid_off:
                    active[idx] = False
                    payoff_order.append(debt.debt_id)
                    retired_minimums += debt.minimum_payment
            freed_minimums = _round_currency(freed_minimums + retired_minimums)

        logger.debug(
            "Payoff simulation finished",
            extra={"strategy": strategy.strategy, "months": month, "debts": count},
        )
        return DebtPayoffResult(
            strategy=strategy,
            total_months=month,
            total_interest_paid=_round_currency(math.fsum(e.interest_payment for e in schedule)),
            total_amount_paid=_round_currency(math.fsum(e.payment_amount for e in schedule)),
            monthly_schedule=tuple(schedule),
            debt_payoff_order=tuple(payoff_order),
        )

    # Strategy wrappers ---------------------------------------------------

    def calculate_minimum_only(self) -> DebtPayoffResult:
        """Pay exactly the minimum on every debt; the baseline for savings."""

        return self.simulate(self._minimum_only_order(), self._strategy("minimum_only", 0.0))

    def calculate_snowball(self) -> DebtPayoffResult:
        """Return payoff schedule prioritizing smallest balances first."""

        return self._with_savings(self.simulate(self._snowball_order(), self._strategy("snowball")))

    def calculate_avalanche(self) -> DebtPayoffResult:
        """Return payoff schedule prioritizing highest interest rate first."""

        return self._with_savings(
            self.simulate(self._avalanche_order(), self._strategy("avalanche"))
        )

    def calculate_custom(
        self, custom_order: Iterable[CustomPayoffOrder | tuple[Hashable, int]]
    ) -> DebtPayoffResult:
        """Return payoff schedule following caller-supplied priorities."""

        order = self._custom_order(custom_order)
        return self._with_savings(self.simulate(order, self._strategy("custom")))

    def calculate(
        self,
        strategy: str,
        custom_order: Iterable[CustomPayoffOrder | tuple[Hashable, int]] | None = None,
    ) -> DebtPayoffResult:
        """Dispatch to the strategy wrapper named by ``strategy``."""

        if strategy == "snowball":
            return self.calculate_snowball()
        if strategy == "avalanche":
            return self.calculate_avalanche()
        if strategy == "minimum_only":
            return self.calculate_minimum_only()
        if strategy == "custom":
            if not custom_order:
                raise InvalidInputError(
                    "Custom order is required for custom strategy.", field="custom_order"
                )
            return self.calculate_custom(custom_order)
        raise InvalidInputError(f"Invalid debt payoff strategy: {strategy!r}.", field="strategy")

    def _with_savings(
        self, result: DebtPayoffResult, baseline: DebtPayoffResult | None = None
    ) -> DebtPayoffResult:
        if baseline is None:
            try:
                baseline = self.calculate_minimum_only()
            except NonConvergentError:
                logger.warning(
                    "Minimum-only baseline did not converge; savings unavailable",
                    extra={"strategy": result.strategy.strategy},
                )
                return replace(result, savings_vs_minimum=None)
        savings = SavingsSummary(
            months_saved=baseline.total_months - result.total_months,
            interest_saved=_round_currency(
                baseline.total_interest_paid - result.total_interest_paid
            ),
        )
        return replace(result, savings_vs_minimum=savings)

    # Comparison ----------------------------------------------------------

    def compare_strategies(self) -> DebtPayoffComparison:
        """Run avalanche, snowball and minimum-only and recommend one."""

        minimum_only = self.calculate_minimum_only()
        avalanche = self._with_savings(
            self.simulate(self._avalanche_order(), self._strategy("avalanche")), minimum_only
        )
        snowball = self._with_savings(
            self.simulate(self._snowball_order(), self._strategy("snowball")), minimum_only
        )
        recommended, reason = self._recommend(snowball=snowball, avalanche=avalanche)
        logger.info(
            "Compared payoff strategies",
            extra={
                "debts": len(self.debts),
                "extra_payment": self.extra_payment,
                "recommended_strategy": recommended,
            },
        )
        return DebtPayoffComparison(
            debts=self.debts,
            snowball=snowball,
            avalanche=avalanche,
            minimum_only=minimum_only,
            recommended_strategy=recommended,
            recommendation_reason=reason,
        )

    def _recommend(
        self, *, snowball: DebtPayoffResult, avalanche: DebtPayoffResult
    ) -> tuple[str, str]:
        settings = self.settings
        interest_difference = _round_currency(
            snowball.total_interest_paid - avalanche.total_interest_paid
        )
        materiality = max(
            settings.materiality_amount, settings.materiality_ratio * snowball.total_interest_paid
        )
        snowball_first = snowball.first_payoff_month or snowball.total_months
        avalanche_first = avalanche.first_payoff_month or avalanche.total_months
        head_start = avalanche_first - snowball_first

        if interest_difference < materiality and head_start >= settings.momentum_months:
            return "snowball", (
                f"Avalanche saves only ${interest_difference:,.2f} in interest while snowball "
                f"clears its first debt {head_start} months sooner, so the quick wins make "
                "snowball the better choice."
            )
        if interest_difference > 0:
            return "avalanche", (
                f"Avalanche saves ${interest_difference:,.2f} in interest compared with "
                "snowball, making it the most cost-effective plan."
            )
        return "avalanche", (
            "Both strategies cost the same in interest, so paying the highest rate first "
            "is the default choice."
        )

    # Target solver -------------------------------------------------------

    def _validate_target(self, target_months: Any) -> None:
        max_months = self.settings.max_months
        if (
            isinstance(target_months, bool)
            or not isinstance(target_months, int)
            or not 1 <= target_months <= max_months
        ):
            raise InvalidInputError(
                f"Target months must be between 1 and {max_months}.", field="target_months"
            )

    def _payoff_months(self, order: Sequence[DebtInput], strategy: PayoffStrategy) -> int | None:
        """Return months to payoff, or None when the run does not converge."""

        try:
            return self.simulate(order, strategy).total_months
        except NonConvergentError:
            return None

    def _meets_target(self, extra_payment: float, target_months: int) -> bool:
        months = self._payoff_months(
            self._avalanche_order(), self._strategy("avalanche", extra_payment)
        )
        return months is not None and months <= target_months

    def calculate_extra_payment_for_target(self, target_months: int) -> ExtraPaymentSolution:
        """Find the smallest extra payment that clears every debt within ``target_months``.

        Binary search over ``[0, extra_payment_ceiling]`` on the avalanche
        ordering. Months-to-payoff never increases as the extra payment grows,
        so the bracket always holds a missing lower bound and a meeting upper
        bound. The answer is within ``search_tolerance`` of the true minimum;
        callers should confirm it with :meth:`calculate_avalanche`.
        """

        self._validate_target(target_months)
        settings = self.settings

        baseline_months = self._payoff_months(
            self._minimum_only_order(), self._strategy("minimum_only", 0.0)
        )
        if baseline_months is not None and baseline_months <= target_months:
            return ExtraPaymentSolution(extra_payment=0.0, is_achievable=True)

        ceiling = _round_currency(settings.extra_payment_ceiling)
        iterations = 1
        if not self._meets_target(ceiling, target_months):
            logger.warning(
                "Target payoff not achievable within extra payment ceiling",
                extra={"target_months": target_months, "ceiling": ceiling},
            )
            return ExtraPaymentSolution(
                extra_payment=ceiling, is_achievable=False, iterations=iterations
            )

        low, high = 0.0, ceiling
        while high - low > settings.search_tolerance and iterations < settings.max_search_iterations:
            mid = _round_currency((low + high) / 2)
            if mid in (low, high):
                break
            iterations += 1
            if self._meets_target(mid, target_months):
                high = mid
            else:
                low = mid

        logger.debug(
            "Solved extra payment for target",
            extra={"target_months": target_months, "extra_payment": high, "iterations": iterations},
        )
        return ExtraPaymentSolution(extra_payment=high, is_achievable=True, iterations=iterations)

    def plan_for_target(self, target_months: int) -> TargetPaymentPlan:
        """Solve for ``target_months`` and verify the answer with a fresh avalanche run."""

        self._validate_target(target_months)
        try:
            baseline: DebtPayoffResult | None = self.calculate_minimum_only()
        except NonConvergentError:
            baseline = None

        if baseline is not None and baseline.total_months <= target_months:
            return TargetPaymentPlan(
                required_extra_payment=0.0,
                is_achievable=True,
                target_timeline=target_months,
                current_timeline=baseline.total_months,
                actual_timeline=baseline.total_months,
                total_interest_with_extra=baseline.total_interest_paid,
                total_interest_minimum_only=baseline.total_interest_paid,
                interest_savings=0.0,
                months_saved=0,
                message="Target is achievable with minimum payments only",
            )

        solution = self.calculate_extra_payment_for_target(target_months)
        verifier = DebtPayoffCalculator(
            self.debts, solution.extra_payment, settings=self.settings
        )
        try:
            verification: DebtPayoffResult | None = verifier.calculate_avalanche()
        except NonConvergentError:
            verification = None

        is_achievable = (
            solution.is_achievable
            and verification is not None
            and verification.total_months <= target_months
        )
        if is_achievable:
            message = (
                f"Extra payment of ${solution.extra_payment:,.2f}/month will achieve your target"
            )
        else:
            message = "Target requires very high extra payments and may not be practical"

        current_timeline = baseline.total_months if baseline else None
        baseline_interest = baseline.total_interest_paid if baseline else None
        actual_timeline = verification.total_months if verification else None
        interest_with_extra = verification.total_interest_paid if verification else None
        interest_savings = months_saved = None
        if baseline is not None and verification is not None:
            interest_savings = _round_currency(
                baseline.total_interest_paid - verification.total_interest_paid
            )
            months_saved = baseline.total_months - verification.total_months

        return TargetPaymentPlan(
            required_extra_payment=solution.extra_payment,
            is_achievable=is_achievable,
            target_timeline=target_months,
            current_timeline=current_timeline,
            actual_timeline=actual_timeline,
            total_interest_with_extra=interest_with_extra,
            total_interest_minimum_only=baseline_interest,
            interest_savings=interest_savings,
            months_saved=months_saved,
            message=message,
        )

    # Summary -------------------------------------------------------------

    def summary_stats(self) -> DebtSummaryStats:
        balances = [debt.current_balance for debt in self.debts]
        rates = [debt.interest_rate for debt in self.debts]
        return DebtSummaryStats(
            total_balance=_round_currency(math.fsum(balances)),
            total_minimum_payments=_round_currency(
                math.fsum(debt.minimum_payment for debt in self.debts)
            ),
            average_interest_rate=_round_currency(math.fsum(rates) / len(rates)),
            highest_interest_rate=max(rates),
            lowest_balance=min(balances),
            debt_count=len(self.debts),
        )
