"""Debt payoff blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("payoff", __name__, url_prefix="/debt-payoff")

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
