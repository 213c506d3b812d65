"""
metrics.py — Pure mathematical functions for fund return analysis.

No imports from within this library. All functions are stateless and
have no side effects. Safe to import from any module.
"""
from __future__ import annotations

import numpy as np
import numpy.typing as npt
from scipy import optimize


IRR_LOWER_BOUND = -0.99
IRR_UPPER_BOUND = 5.0


# ---------------------------------------------------------------------------
# IRR
# ---------------------------------------------------------------------------

def calc_npv(cashflows: npt.ArrayLike, rate: float) -> float:
    """Net Present Value of yearly cash flows (index 0 = year 0) at ``rate``."""
    cashflows = np.asarray(cashflows, dtype=np.float64)
    periods = np.arange(len(cashflows), dtype=np.float64)
    return float(np.sum(cashflows / (1 + rate) ** periods))


def calc_irr(
    cashflows: npt.ArrayLike,
    lower: float = IRR_LOWER_BOUND,
    upper: float = IRR_UPPER_BOUND,
    tol: float = 1e-10,
) -> float:
    """
    Compute the Internal Rate of Return of a yearly cash flow series.

    Uses Brent's method on the NPV function within a fixed bracket.

    Parameters
    ----------
    cashflows:
        Cash flows indexed by year. Negative = outflows, positive = inflows.
    lower, upper:
        Rate bracket searched for a root.
    tol:
        Absolute tolerance on the rate.

    Returns
    -------
    float
        IRR as a decimal (e.g. 0.25 = 25%). Returns nan when the series has
        no sign change or no root lies inside the bracket.
    """
    cashflows = np.asarray(cashflows, dtype=np.float64)

    # Need at least one sign change
    if not (np.any(cashflows > 0) and np.any(cashflows < 0)):
        return float("nan")

    def npv_func(r: float) -> float:
        return calc_npv(cashflows, r)

    try:
        result = optimize.brentq(npv_func, lower, upper, xtol=tol, maxiter=1000)
    except (ValueError, RuntimeError):
        # No bracketed root, or no convergence
        return float("nan")
    return float(result)


# ---------------------------------------------------------------------------
# Return multiples
# ---------------------------------------------------------------------------

def calc_moic(invested: float, total_value: float) -> float:
    """Multiple on Invested Capital."""
    if invested <= 0:
        return float("nan")
    return total_value / invested


def split_flows(cashflows: npt.ArrayLike) -> tuple[float, float]:
    """
    Split a net yearly series into (paid-in, distributed) totals.

    Paid-in is the magnitude of all negative years; distributed is the sum
    of all positive years. Outflows and inflows landing in the same year
    are netted before the split.
    """
    cashflows = np.asarray(cashflows, dtype=np.float64)
    invested = float(-np.sum(cashflows[cashflows < 0]))
    distributed = float(np.sum(cashflows[cashflows > 0]))
    return invested, distributed


# ---------------------------------------------------------------------------
# Fee modeling
# ---------------------------------------------------------------------------

def calc_management_fees(
    committed: float,
    fee_rate: float,
    fund_life: int,
) -> npt.NDArray[np.float64]:
    """
    Flat annual management fee on committed capital.

    Returns an array indexed by year 0..fund_life. No fee is charged in
    year 0; every year 1..fund_life is charged ``committed * fee_rate``.
    """
    fees = np.full(fund_life + 1, committed * fee_rate, dtype=np.float64)
    fees[0] = 0.0
    return fees


# ---------------------------------------------------------------------------
# Carried interest (single hurdle checkpoint)
# ---------------------------------------------------------------------------

def hurdle_amount(invested: float, hurdle_rate: float, fund_life: int) -> float:
    """Capital plus preferred return compounded over the whole fund life."""
    return invested * (1 + hurdle_rate) ** fund_life


def calc_carry(
    total_distributions: float,
    invested: float,
    carry_rate: float = 0.20,
    hurdle_rate: float = 0.08,
    fund_life: int = 10,
) -> float:
    """
    Carried interest owed to the GP.

    The hurdle is checked once, at the end of the fund: LPs must receive
    their paid-in capital compounded at ``hurdle_rate`` for ``fund_life``
    years. Carry is ``carry_rate`` of distributions above that amount, with
    no catch-up.

    Parameters
    ----------
    total_distributions:
        Total distributions to LPs over the fund life.
    invested:
        Total paid-in capital.
    carry_rate:
        GP carried interest percentage (e.g. 0.20 = 20%).
    hurdle_rate:
        Annual preferred return rate (e.g. 0.08 = 8%).
    fund_life:
        Years over which the hurdle compounds.

    Returns
    -------
    float
        Carry amount due to GP (never negative).
    """
    if total_distributions - invested <= 0:
        # Return of capital only, no carry
        return 0.0

    target = hurdle_amount(invested, hurdle_rate, fund_life)
    if total_distributions <= target:
        return 0.0

    return max(0.0, carry_rate * (total_distributions - target))
