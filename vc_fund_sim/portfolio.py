"""
portfolio.py — Deal records, exit timing and follow-on reserve allocation.

No imports from within this library.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

import numpy as np
import numpy.typing as npt
import pandas as pd


logger = logging.getLogger(__name__)

FollowOnPolicy = Literal["none", "top_quartile"]

FOLLOW_ON_POLICIES: tuple[str, ...] = ("none", "top_quartile")

# Share of the portfolio selected for follow-on under "top_quartile"
TOP_QUARTILE_SHARE = 0.25

# Exit windows (inclusive, in fund years) by outcome tier
WRITE_OFF_EXIT_WINDOW = (2, 6)
MODEST_EXIT_WINDOW = (4, 8)
WINNER_FIRST_EXIT_YEAR = 6
WINNER_THRESHOLD = 3.0


@dataclass(frozen=True)
class Deal:
    """A single portfolio company, fixed once the trial has drawn it."""

    deal_id: int
    initial_check: float
    invest_year: int
    multiple: float
    exit_year: int
    follow_on: float = 0.0
    follow_on_year: Optional[int] = None

    @property
    def total_investment(self) -> float:
        return self.initial_check + self.follow_on

    @property
    def proceeds(self) -> float:
        return self.total_investment * self.multiple

    @property
    def holding_period(self) -> int:
        return self.exit_year - self.invest_year

    @property
    def is_write_off(self) -> bool:
        return self.multiple == 0


# ---------------------------------------------------------------------------
# Investment and exit timing
# ---------------------------------------------------------------------------

def draw_invest_years(
    n: int,
    invest_period: int,
    rng: np.random.Generator,
) -> npt.NDArray[np.int64]:
    """Initial investment year per deal, uniform over 1..invest_period."""
    return rng.integers(1, invest_period + 1, size=n)


def exit_window(multiple: float, fund_life_years: int) -> tuple[int, int]:
    """
    Inclusive (first, last) exit year range for an outcome tier.

    Write-offs exit early, modest outcomes mid-life and winners late. Both
    ends are clamped into the fund term so the range is never empty.
    """
    if multiple == 0:
        low, high = WRITE_OFF_EXIT_WINDOW
    elif multiple < WINNER_THRESHOLD:
        low, high = MODEST_EXIT_WINDOW
    else:
        low, high = WINNER_FIRST_EXIT_YEAR, fund_life_years

    high = min(high, fund_life_years)
    low = min(low, high)
    return low, high


def draw_exit_year(
    multiple: float,
    fund_life_years: int,
    rng: np.random.Generator,
) -> int:
    """Exit year for one deal, uniform over its tier's window."""
    low, high = exit_window(multiple, fund_life_years)
    return int(rng.integers(low, high + 1))


def draw_exit_years(
    multiples: npt.NDArray[np.float64],
    fund_life_years: int,
    rng: np.random.Generator,
) -> npt.NDArray[np.int64]:
    """Apply ``draw_exit_year`` to every deal, in deal order."""
    return np.array(
        [draw_exit_year(float(m), fund_life_years, rng) for m in multiples],
        dtype=np.int64,
    )


# ---------------------------------------------------------------------------
# Follow-on allocation
# ---------------------------------------------------------------------------

def follow_on_scores(
    multiples: npt.NDArray[np.float64],
    exit_years: npt.NDArray[np.int64],
    fund_life_years: int,
) -> npt.NDArray[np.float64]:
    """Score favouring large multiples that exit late in the fund."""
    return np.asarray(multiples, dtype=np.float64) * (
        np.asarray(exit_years, dtype=np.float64) / fund_life_years
    )


def allocate_follow_ons(
    multiples: npt.NDArray[np.float64],
    exit_years: npt.NDArray[np.int64],
    invest_years: npt.NDArray[np.int64],
    initial_check: float,
    reserve_pool: float,
    invest_period: int,
    fund_life_years: int,
    policy: FollowOnPolicy = "top_quartile",
) -> tuple[npt.NDArray[np.float64], list[Optional[int]]]:
    """
    Decide which deals receive reserve capital, how much, and when.

    Under ``"top_quartile"`` deals are ranked by ``follow_on_scores`` and the
    top ceil(25%) are funded in rank order. Each follow-on lands in
    ``min(invest_period + 1, exit_year - 1)`` (never before the deal's own
    investment year) and is sized ``min(initial_check, remaining / 2)``.
    Allocation stops once the reserve is exhausted.

    Parameters
    ----------
    multiples, exit_years, invest_years:
        Per-deal draws for the trial.
    initial_check:
        Size of each initial check.
    reserve_pool:
        Capital set aside for follow-ons.
    invest_period:
        Length of the initial investment period in years.
    fund_life_years:
        Fund term in years.
    policy:
        'none' or 'top_quartile'.

    Returns
    -------
    (amounts, years)
        Follow-on amount per deal (0.0 when none) and follow-on year per
        deal (None when none).
    """
    n = len(multiples)
    amounts = np.zeros(n, dtype=np.float64)
    years: list[Optional[int]] = [None] * n

    if policy == "none" or n == 0:
        return amounts, years
    if policy != "top_quartile":
        raise ValueError(f"Unknown follow-on policy: {policy!r}")

    scores = follow_on_scores(multiples, exit_years, fund_life_years)
    # Stable sort on the negated score: ties keep deal order
    ranked = np.argsort(-scores, kind="stable")
    n_follow = math.ceil(TOP_QUARTILE_SHARE * n)

    remaining = reserve_pool
    for i in ranked[:n_follow]:
        if remaining <= 0:
            logger.debug("Reserve exhausted before deal %d", i)
            break
        fo_year = max(
            min(invest_period + 1, int(exit_years[i]) - 1),
            int(invest_years[i]),
        )
        fo_check = min(initial_check, remaining / 2)

        amounts[i] = fo_check
        years[i] = fo_year
        remaining -= fo_check

    return amounts, years


# ---------------------------------------------------------------------------
# Tabular views
# ---------------------------------------------------------------------------

def deals_frame(deals: Sequence[Deal]) -> pd.DataFrame:
    """Return a deal-level breakdown DataFrame."""
    return pd.DataFrame(
        [
            {
                "deal_id": d.deal_id,
                "invest_year": d.invest_year,
                "initial_check": d.initial_check,
                "multiple": d.multiple,
                "exit_year": d.exit_year,
                "follow_on": d.follow_on,
                "follow_on_year": d.follow_on_year,
                "total_investment": d.total_investment,
                "proceeds": d.proceeds,
            }
            for d in deals
        ],
        columns=[
            "deal_id", "invest_year", "initial_check", "multiple", "exit_year",
            "follow_on", "follow_on_year", "total_investment", "proceeds",
        ],
    )
