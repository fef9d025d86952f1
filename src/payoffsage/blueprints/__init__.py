"""Blueprint exports."""

from . import payoff

__all__ = ["payoff"]
