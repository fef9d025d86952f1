"""Debt payoff routes."""

from __future__ import annotations

from flask import current_app, jsonify, request

from payoffsage.logging_config import get_logger
from payoffsage.services.debts import (
    DebtPayoffCalculator,
    InvalidInputError,
    NonConvergentError,
    PayoffSettings,
)

from . import bp
from .forms import PayoffRequestForm, TargetPaymentForm

logger = get_logger(__name__)


def _settings() -> PayoffSettings:
    return current_app.config.get("PAYOFF_SETTINGS") or PayoffSettings()


def _json_payload() -> dict | None:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else None


def _error(message: str, status: int, fields: dict | None = None):
    body: dict = {"error": message}
    if fields:
        body["fields"] = fields
    return jsonify(body), status


def _calculation_error(exc: Exception):
    """Translate calculator failures into JSON error responses."""

    if isinstance(exc, NonConvergentError):
        logger.warning(
            "Payoff calculation did not converge",
            extra={"months": exc.months, "remaining_balance": exc.remaining_balance},
        )
        return _error(str(exc), 422)
    field = getattr(exc, "field", None)
    logger.warning("Rejected payoff input", extra={"field": field, "reason": str(exc)})
    return _error(str(exc), 400, {field: [str(exc)]} if field else None)


@bp.post("/calculate")
def calculate():
    """Run a single strategy or a full strategy comparison."""

    payload = _json_payload()
    if payload is None:
        return _error("Request body must be a JSON object.", 400)

    form = PayoffRequestForm.from_payload(payload)
    if not form.validate():
        return _error(next(iter(form.error_messages)), 400, form.errors)

    try:
        calculator = DebtPayoffCalculator(
            form.parsed_debts, form.parsed_extra_payment, settings=_settings()
        )
        summary_stats = calculator.summary_stats().to_dict()
        if form.strategy == "comparison":
            comparison = calculator.compare_strategies()
            return jsonify(
                {
                    "strategy": "comparison",
                    "comparison": comparison.to_dict(),
                    "summary_stats": summary_stats,
                }
            )
        result = calculator.calculate(form.strategy, form.parsed_custom_order)
    except (InvalidInputError, NonConvergentError) as exc:
        return _calculation_error(exc)

    return jsonify(
        {"strategy": form.strategy, "result": result.to_dict(), "summary_stats": summary_stats}
    )


@bp.post("/target-payment")
def target_payment():
    """Solve for the extra payment that reaches a target payoff month."""

    payload = _json_payload()
    if payload is None:
        return _error("Request body must be a JSON object.", 400)

    settings = _settings()
    form = TargetPaymentForm.from_payload(payload, max_months=settings.max_months)
    if not form.validate():
        return _error(next(iter(form.error_messages)), 400, form.errors)

    try:
        calculator = DebtPayoffCalculator(form.parsed_debts, settings=settings)
        plan = calculator.plan_for_target(form.parsed_target_months)
    except (InvalidInputError, NonConvergentError) as exc:
        return _calculation_error(exc)

    logger.info(
        "Solved target payoff plan",
        extra={
            "target_months": plan.target_timeline,
            "required_extra_payment": plan.required_extra_payment,
            "is_achievable": plan.is_achievable,
        },
    )
    return jsonify(plan.to_dict())
