"""Payoff request payload validation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List

from payoffsage.services.debts import CustomPayoffOrder, DebtInput

StrategyChoices = Dict[str, str]


DEFAULT_STRATEGIES: StrategyChoices = {
    "avalanche": "Avalanche · prioritize highest APR first",
    "snowball": "Snowball · knock out the smallest balance",
    "custom": "Custom · follow your own priority order",
    "comparison": "Comparison · run snowball, avalanche and minimum-only side by side",
}


def _parse_amount(
    errors: Dict[str, List[str]], key: str, value: Any, *, minimum: Decimal, inclusive: bool
) -> float | None:
    """Parse a numeric field, recording an error under ``key`` when it is invalid."""

    if value is None or value == "" or isinstance(value, bool):
        errors.setdefault(key, []).append("This field is required.")
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        errors.setdefault(key, []).append("Enter a valid number.")
        return None
    if not amount.is_finite():
        errors.setdefault(key, []).append("Enter a valid number.")
        return None

    if amount < minimum or (not inclusive and amount == minimum):
        message = "Amount must be at least zero." if inclusive else "Amount must be greater than zero."
        errors.setdefault(key, []).append(message)
        return None
    return float(amount)


def _parse_debts(errors: Dict[str, List[str]], raw: Any) -> List[DebtInput]:
    if not isinstance(raw, list) or not raw:
        errors.setdefault("debts", []).append("At least one debt is required.")
        return []

    debts: List[DebtInput] = []
    for index, item in enumerate(raw):
        prefix = f"debts[{index}]"
        if not isinstance(item, dict):
            errors.setdefault(prefix, []).append("Each debt must be an object.")
            continue

        before = sum(len(messages) for messages in errors.values())
        debt_id = item.get("debt_id")
        if isinstance(debt_id, bool) or not isinstance(debt_id, (int, str)) or debt_id == "":
            errors.setdefault(f"{prefix}.debt_id", []).append("Enter a debt identifier.")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.setdefault(f"{prefix}.name", []).append("Enter the creditor or account name.")

        balance = _parse_amount(
            errors, f"{prefix}.current_balance", item.get("current_balance"),
            minimum=Decimal("0"), inclusive=False,
        )
        rate = _parse_amount(
            errors, f"{prefix}.interest_rate", item.get("interest_rate"),
            minimum=Decimal("0"), inclusive=True,
        )
        minimum_payment = _parse_amount(
            errors, f"{prefix}.minimum_payment", item.get("minimum_payment"),
            minimum=Decimal("0"), inclusive=False,
        )

        if sum(len(messages) for messages in errors.values()) == before:
            debts.append(
                DebtInput(
                    debt_id=debt_id,
                    name=name.strip(),
                    current_balance=balance,
                    interest_rate=rate,
                    minimum_payment=minimum_payment,
                )
            )

    ids = [debt.debt_id for debt in debts]
    if len(ids) != len(set(ids)):
        errors.setdefault("debts", []).append("Debt identifiers must be unique.")
    return debts


@dataclass(slots=True)
class PayoffRequestForm:
    """Represents a payoff calculation request and associated validation errors."""

    debts: Any = None
    extra_payment: Any = 0
    strategy: Any = "comparison"
    custom_order: Any = None
    parsed_debts: List[DebtInput] = field(default_factory=list, init=False)
    parsed_extra_payment: float = field(default=0.0, init=False)
    parsed_custom_order: List[CustomPayoffOrder] = field(default_factory=list, init=False)
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PayoffRequestForm":
        return cls(
            debts=payload.get("debts"),
            extra_payment=payload.get("extra_payment", 0),
            strategy=payload.get("strategy") or "comparison",
            custom_order=payload.get("custom_order") or [],
        )

    def validate(self, *, strategies: StrategyChoices | None = None) -> bool:
        """Validate request inputs returning True when all values are acceptable."""

        self.errors.clear()
        strategies = strategies or DEFAULT_STRATEGIES

        self.parsed_debts = _parse_debts(self.errors, self.debts)
        extra = _parse_amount(
            self.errors, "extra_payment", self.extra_payment, minimum=Decimal("0"), inclusive=True
        )
        self.parsed_extra_payment = extra or 0.0

        if not isinstance(self.strategy, str) or self.strategy not in strategies:
            self.errors.setdefault("strategy", []).append("Choose a payoff strategy.")
        elif self.strategy == "custom":
            self.parsed_custom_order = self._parse_custom_order()

        return not self.errors

    def _parse_custom_order(self) -> List[CustomPayoffOrder]:
        if not isinstance(self.custom_order, list) or not self.custom_order:
            self.errors.setdefault("custom_order", []).append(
                "Custom order is required for custom strategy."
            )
            return []

        order: List[CustomPayoffOrder] = []
        for item in self.custom_order:
            if not isinstance(item, dict) or "debt_id" not in item:
                self.errors.setdefault("custom_order", []).append(
                    "Each entry needs a debt_id and a priority."
                )
                continue
            priority = item.get("priority")
            if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
                self.errors.setdefault("custom_order", []).append(
                    "Priority must be a positive whole number."
                )
                continue
            order.append(CustomPayoffOrder(debt_id=item["debt_id"], priority=priority))
        return order

    @property
    def error_messages(self) -> Iterable[str]:
        """Flattened iterable of error strings for summaries."""

        for messages in self.errors.values():
            yield from messages


@dataclass(slots=True)
class TargetPaymentForm:
    """Validates a target-timeline request."""

    debts: Any = None
    target_months: Any = None
    max_months: int = 600
    parsed_debts: List[DebtInput] = field(default_factory=list, init=False)
    parsed_target_months: int = field(default=0, init=False)
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], *, max_months: int = 600) -> "TargetPaymentForm":
        return cls(
            debts=payload.get("debts"),
            target_months=payload.get("target_months"),
            max_months=max_months,
        )

    def validate(self) -> bool:
        self.errors.clear()
        self.parsed_debts = _parse_debts(self.errors, self.debts)

        months = self.target_months
        if (
            isinstance(months, bool)
            or not isinstance(months, int)
            or not 1 <= months <= self.max_months
        ):
            self.errors.setdefault("target_months", []).append(
                f"Target months must be between 1 and {self.max_months}."
            )
        else:
            self.parsed_target_months = months

        return not self.errors

    @property
    def error_messages(self) -> Iterable[str]:
        for messages in self.errors.values():
            yield from messages
