"""Flask CLI commands for PayoffSage."""

from __future__ import annotations

import json

import click

from .blueprints.payoff.forms import PayoffRequestForm, TargetPaymentForm
from .services.debts import DebtPayoffCalculator, DebtPayoffResult, PayoffError


def _load_debts(path: str) -> object:
    """Read a debts JSON file holding either a list or a ``{"debts": [...]}`` object."""

    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        return data.get("debts")
    return data


def _form_failure(errors: dict) -> click.ClickException:
    lines = [f"{key}: {'; '.join(messages)}" for key, messages in errors.items()]
    return click.ClickException("Invalid input:\n  " + "\n  ".join(lines))


def _echo_result(result: DebtPayoffResult) -> None:
    click.echo(f"Strategy: {result.strategy.strategy} (extra ${result.strategy.extra_payment:,.2f}/month)")
    click.echo(f"  Months to debt-free: {result.total_months}")
    click.echo(f"  Total interest: ${result.total_interest_paid:,.2f}")
    click.echo(f"  Total paid: ${result.total_amount_paid:,.2f}")
    click.echo(f"  Payoff order: {', '.join(str(debt_id) for debt_id in result.debt_payoff_order)}")
    savings = result.savings_vs_minimum
    if savings is not None and (savings.months_saved or savings.interest_saved):
        click.echo(
            f"  Saves {savings.months_saved} months and ${savings.interest_saved:,.2f} "
            "versus minimum payments"
        )


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("payoffsage-plan")
    @click.argument("debts_file", type=click.Path(exists=True, dir_okay=False))
    @click.option("--extra", type=float, default=0.0, show_default=True, help="Extra monthly payment")
    @click.option(
        "--strategy",
        type=click.Choice(["comparison", "snowball", "avalanche"]),
        default="comparison",
        show_default=True,
    )
    def payoffsage_plan(debts_file: str, extra: float, strategy: str) -> None:
        """Simulate a payoff plan for the debts listed in DEBTS_FILE."""

        form = PayoffRequestForm(debts=_load_debts(debts_file), extra_payment=extra, strategy=strategy)
        if not form.validate():
            raise _form_failure(form.errors)

        settings = app.config["PAYOFF_SETTINGS"]
        try:
            calculator = DebtPayoffCalculator(
                form.parsed_debts, form.parsed_extra_payment, settings=settings
            )
            if strategy == "comparison":
                comparison = calculator.compare_strategies()
                for result in (comparison.avalanche, comparison.snowball, comparison.minimum_only):
                    _echo_result(result)
                click.echo(f"Recommended: {comparison.recommended_strategy}")
                click.echo(comparison.recommendation_reason)
            else:
                _echo_result(calculator.calculate(strategy))
        except PayoffError as exc:
            raise click.ClickException(str(exc)) from exc

    @app.cli.command("payoffsage-target")
    @click.argument("debts_file", type=click.Path(exists=True, dir_okay=False))
    @click.option("--months", type=int, required=True, help="Target months to be debt-free")
    def payoffsage_target(debts_file: str, months: int) -> None:
        """Find the extra payment that clears DEBTS_FILE within --months."""

        settings = app.config["PAYOFF_SETTINGS"]
        form = TargetPaymentForm(
            debts=_load_debts(debts_file), target_months=months, max_months=settings.max_months
        )
        if not form.validate():
            raise _form_failure(form.errors)

        try:
            plan = DebtPayoffCalculator(form.parsed_debts, settings=settings).plan_for_target(
                form.parsed_target_months
            )
        except PayoffError as exc:
            raise click.ClickException(str(exc)) from exc

        click.echo(plan.message)
        click.echo(f"  Required extra payment: ${plan.required_extra_payment:,.2f}/month")
        click.echo(f"  Achievable: {'yes' if plan.is_achievable else 'no'}")
        if plan.current_timeline is not None:
            click.echo(f"  Minimum-only timeline: {plan.current_timeline} months")
        if plan.actual_timeline is not None:
            click.echo(f"  Projected timeline: {plan.actual_timeline} months")
