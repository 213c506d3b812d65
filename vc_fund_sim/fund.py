"""
fund.py — Single-fund lifecycle simulation.

One trial draws a portfolio, allocates reserves, turns every deal into a
list of dated cash flow events, folds them into yearly LP cash flows, runs
the carry waterfall and extracts return metrics.

Depends on: metrics.py, outcomes.py, portfolio.py
"""
from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from vc_fund_sim.errors import ConfigurationError
from vc_fund_sim.metrics import (
    calc_carry,
    calc_irr,
    calc_management_fees,
    calc_moic,
    split_flows,
)
from vc_fund_sim.outcomes import OutcomeDistribution, draw_multiples, make_distribution
from vc_fund_sim.portfolio import (
    FOLLOW_ON_POLICIES,
    Deal,
    allocate_follow_ons,
    deals_frame,
    draw_exit_years,
    draw_invest_years,
)


logger = logging.getLogger(__name__)

RandomSource = Union[np.random.Generator, np.random.SeedSequence, int, None]

EventKind = Literal["initial_check", "follow_on", "management_fee", "exit_proceeds"]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FundConfig:
    """Configuration for a simulated VC fund. Validated on construction."""

    fund_size: float = 50_000_000
    n_initial_deals: int = 30
    reserve_ratio: float = 0.4  # share of the fund held back for follow-ons
    fund_life_years: int = 10
    invest_period: int = 3  # initial checks go out in years 1..invest_period
    mgmt_fee_rate: float = 0.02
    carry_rate: float = 0.20
    hurdle_rate: float = 0.08
    follow_on_policy: str = "top_quartile"
    dist_mode: str = "discrete"
    # Mapping or (name, value) pairs; stored as sorted pairs
    dist_params: Union[Mapping[str, Any], tuple[tuple[str, Any], ...]] = ()
    _distribution: OutcomeDistribution = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.fund_size > 0:
            raise ConfigurationError(f"fund_size must be positive, got {self.fund_size}")
        if not _is_whole(self.n_initial_deals) or self.n_initial_deals <= 0:
            raise ConfigurationError(
                f"n_initial_deals must be a positive integer, got {self.n_initial_deals}"
            )
        if not 0 <= self.reserve_ratio < 1:
            raise ConfigurationError(
                f"reserve_ratio must be in [0, 1), got {self.reserve_ratio}"
            )
        if not _is_whole(self.fund_life_years) or self.fund_life_years <= 0:
            raise ConfigurationError(
                f"fund_life_years must be a positive integer, got {self.fund_life_years}"
            )
        if not _is_whole(self.invest_period) or self.invest_period < 1:
            raise ConfigurationError(
                f"invest_period must be a positive integer, got {self.invest_period}"
            )
        if self.fund_life_years < self.invest_period:
            raise ConfigurationError(
                f"fund_life_years ({self.fund_life_years}) must be at least "
                f"invest_period ({self.invest_period})"
            )
        if self.mgmt_fee_rate < 0:
            raise ConfigurationError(
                f"mgmt_fee_rate must be non-negative, got {self.mgmt_fee_rate}"
            )
        if not 0 <= self.carry_rate <= 1:
            raise ConfigurationError(f"carry_rate must be in [0, 1], got {self.carry_rate}")
        if self.hurdle_rate <= -1:
            raise ConfigurationError(f"hurdle_rate must exceed -1, got {self.hurdle_rate}")
        if self.follow_on_policy not in FOLLOW_ON_POLICIES:
            raise ConfigurationError(
                f"follow_on_policy must be one of {list(FOLLOW_ON_POLICIES)}, "
                f"got {self.follow_on_policy!r}"
            )
        object.__setattr__(self, "dist_params", _freeze_params(self.dist_params))
        # Validates dist_mode and dist_params
        object.__setattr__(
            self, "_distribution", make_distribution(self.dist_mode, dict(self.dist_params))
        )

    @property
    def initial_pool(self) -> float:
        return self.fund_size * (1 - self.reserve_ratio)

    @property
    def reserve_pool(self) -> float:
        return self.fund_size * self.reserve_ratio

    @property
    def initial_check(self) -> float:
        return self.initial_pool / self.n_initial_deals

    @property
    def n_years(self) -> int:
        """Length of every yearly series (year 0 through fund_life_years)."""
        return int(self.fund_life_years) + 1

    @property
    def years(self) -> npt.NDArray[np.int64]:
        return np.arange(self.n_years)

    @property
    def distribution(self) -> OutcomeDistribution:
        return self._distribution

    def replace(self, **changes: Any) -> "FundConfig":
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


def _freeze_params(params: Any) -> tuple[tuple[str, Any], ...]:
    """Sorted, hashable (name, value) pairs; list values become tuples."""
    try:
        items = dict(params or {}).items()
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"dist_params must be a mapping of parameter names to values, got {params!r}"
        ) from None
    return tuple(
        sorted((name, tuple(value) if isinstance(value, list) else value) for name, value in items)
    )


def _is_whole(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return float(value).is_integer()
    except (TypeError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Deals
# ---------------------------------------------------------------------------

def build_deals(config: FundConfig, rng: np.random.Generator) -> tuple[Deal, ...]:
    """
    Draw the trial's portfolio.

    Draw order: investment years, exit multiples, exit years. Follow-ons
    are then allocated deterministically from those draws.
    """
    n = int(config.n_initial_deals)
    initial_check = config.initial_check

    invest_years = draw_invest_years(n, int(config.invest_period), rng)
    multiples = draw_multiples(n, config.distribution, rng)
    exit_years = draw_exit_years(multiples, int(config.fund_life_years), rng)
    # A company cannot be exited before the fund has invested in it
    exit_years = np.maximum(exit_years, invest_years)

    follow_ons, follow_on_years = allocate_follow_ons(
        multiples=multiples,
        exit_years=exit_years,
        invest_years=invest_years,
        initial_check=initial_check,
        reserve_pool=config.reserve_pool,
        invest_period=int(config.invest_period),
        fund_life_years=int(config.fund_life_years),
        policy=config.follow_on_policy,
    )

    return tuple(
        Deal(
            deal_id=i,
            initial_check=initial_check,
            invest_year=int(invest_years[i]),
            multiple=float(multiples[i]),
            exit_year=int(exit_years[i]),
            follow_on=float(follow_ons[i]),
            follow_on_year=follow_on_years[i],
        )
        for i in range(n)
    )


# ---------------------------------------------------------------------------
# Cash flow events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CashFlowEvent:
    """A single dated LP cash flow. Negative = paid in, positive = received."""

    year: int
    amount: float
    kind: EventKind
    deal_id: Optional[int] = None


def deal_events(deal: Deal) -> list[CashFlowEvent]:
    """Capital calls and exit proceeds for one deal."""
    events = [
        CashFlowEvent(deal.invest_year, -deal.initial_check, "initial_check", deal.deal_id)
    ]
    if deal.follow_on_year is not None and deal.follow_on > 0:
        events.append(
            CashFlowEvent(deal.follow_on_year, -deal.follow_on, "follow_on", deal.deal_id)
        )
    events.append(
        CashFlowEvent(deal.exit_year, deal.proceeds, "exit_proceeds", deal.deal_id)
    )
    return events


def fee_events(config: FundConfig) -> list[CashFlowEvent]:
    """Flat management fee on committed capital, every year 1..fund_life_years."""
    fees = calc_management_fees(
        committed=config.fund_size,
        fee_rate=config.mgmt_fee_rate,
        fund_life=int(config.fund_life_years),
    )
    return [
        CashFlowEvent(year, -float(fee), "management_fee")
        for year, fee in enumerate(fees)
        if year > 0
    ]


def build_cash_flow_events(
    deals: Sequence[Deal],
    config: FundConfig,
) -> tuple[CashFlowEvent, ...]:
    """All LP cash flow events of a trial: deal flows first, then fees."""
    events: list[CashFlowEvent] = []
    for deal in deals:
        events.extend(deal_events(deal))
    events.extend(fee_events(config))
    return tuple(events)


def fold_cash_flows(
    events: Sequence[CashFlowEvent],
    fund_life_years: int,
) -> npt.NDArray[np.float64]:
    """Sum events into a yearly series indexed 0..fund_life_years."""
    cf = np.zeros(fund_life_years + 1, dtype=np.float64)
    for event in events:
        if not 0 <= event.year <= fund_life_years:
            raise ValueError(
                f"Event year {event.year} out of range [0, {fund_life_years}]"
            )
        cf[event.year] += event.amount
    return cf


# ---------------------------------------------------------------------------
# Waterfall
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Waterfall:
    """Carry split of a gross LP series."""

    gp_carry: float
    lp_cf_net: npt.NDArray[np.float64]
    gp_cf: npt.NDArray[np.float64]


def apply_waterfall(
    lp_cf_gross: npt.NDArray[np.float64],
    total_invested: float,
    total_distributions: float,
    config: FundConfig,
) -> Waterfall:
    """
    Charge carry against the gross LP series.

    The whole carry is taken from the LPs in the final year and paid to
    the GP in that same year.
    """
    gp_carry = calc_carry(
        total_distributions=total_distributions,
        invested=total_invested,
        carry_rate=config.carry_rate,
        hurdle_rate=config.hurdle_rate,
        fund_life=int(config.fund_life_years),
    )

    lp_cf_net = np.array(lp_cf_gross, dtype=np.float64, copy=True)
    lp_cf_net[-1] -= gp_carry

    gp_cf = np.zeros_like(lp_cf_net)
    gp_cf[-1] = gp_carry

    return Waterfall(gp_carry=gp_carry, lp_cf_net=lp_cf_net, gp_cf=gp_cf)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Outcome of one simulated fund."""

    years: npt.NDArray[np.int64]
    lp_cf_gross: npt.NDArray[np.float64]
    lp_cf_net: npt.NDArray[np.float64]
    gp_cf: npt.NDArray[np.float64]
    total_invested: float
    total_dist: float
    gp_carry: float
    lp_irr_gross: float
    lp_irr_net: float
    lp_moic_gross: float
    lp_moic_net: float
    config: FundConfig
    deals: tuple[Deal, ...] = ()
    events: tuple[CashFlowEvent, ...] = ()

    @property
    def total_follow_on(self) -> float:
        return float(sum(d.follow_on for d in self.deals))

    @property
    def irr_defined(self) -> bool:
        return not math.isnan(self.lp_irr_net)

    def to_record(self) -> dict[str, float]:
        """Scalar metrics of this trial, one summary row."""
        return {
            "lp_irr_gross": self.lp_irr_gross,
            "lp_irr_net": self.lp_irr_net,
            "lp_moic_gross": self.lp_moic_gross,
            "lp_moic_net": self.lp_moic_net,
            "gp_carry": self.gp_carry,
            "total_invested": self.total_invested,
            "total_dist": self.total_dist,
        }

    def deals_frame(self) -> pd.DataFrame:
        return deals_frame(self.deals)

    def cash_flow_table(self) -> pd.DataFrame:
        """
        Return a year-by-year cash flow DataFrame.

        Columns:
            year, capital_called, fees, distributions, lp_cf_gross,
            lp_cf_net, gp_cf, cumulative_net
        """
        n_years = len(self.years)

        def _total(*kinds: str) -> npt.NDArray[np.float64]:
            cf = np.zeros(n_years, dtype=np.float64)
            for event in self.events:
                if event.kind in kinds:
                    cf[event.year] += event.amount
            return cf

        return pd.DataFrame(
            {
                "year": self.years,
                "capital_called": -_total("initial_check", "follow_on"),
                "fees": -_total("management_fee"),
                "distributions": _total("exit_proceeds"),
                "lp_cf_gross": self.lp_cf_gross,
                "lp_cf_net": self.lp_cf_net,
                "gp_cf": self.gp_cf,
                "cumulative_net": np.cumsum(self.lp_cf_net),
            }
        )

    def __repr__(self) -> str:
        return (
            f"SimulationResult(invested=${self.total_invested:,.0f}, "
            f"distributed=${self.total_dist:,.0f}, "
            f"net_moic={self.lp_moic_net:.2f}x, net_irr={self.lp_irr_net:.1%})"
        )


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def simulate_fund(
    config: Optional[FundConfig] = None,
    rng: RandomSource = None,
) -> SimulationResult:
    """
    Simulate one fund from first close to the end of its term.

    Parameters
    ----------
    config:
        Fund configuration. Defaults to ``FundConfig()``.
    rng:
        A ``numpy.random.Generator``, or anything ``numpy.random.default_rng``
        accepts (an integer seed, a SeedSequence, or None for fresh entropy).

    Returns
    -------
    SimulationResult
    """
    config = config if config is not None else FundConfig()
    rng = np.random.default_rng(rng)
    fund_life = int(config.fund_life_years)

    deals = build_deals(config, rng)
    events = build_cash_flow_events(deals, config)
    lp_cf_gross = fold_cash_flows(events, fund_life)

    total_invested, total_dist = split_flows(lp_cf_gross)
    waterfall = apply_waterfall(lp_cf_gross, total_invested, total_dist, config)

    lp_irr_gross = calc_irr(lp_cf_gross)
    lp_irr_net = calc_irr(waterfall.lp_cf_net)
    if math.isnan(lp_irr_net):
        logger.debug("Net IRR undefined for trial (invested=%.0f, distributed=%.0f)",
                     total_invested, total_dist)

    return SimulationResult(
        years=config.years,
        lp_cf_gross=lp_cf_gross,
        lp_cf_net=waterfall.lp_cf_net,
        gp_cf=waterfall.gp_cf,
        total_invested=total_invested,
        total_dist=total_dist,
        gp_carry=waterfall.gp_carry,
        lp_irr_gross=lp_irr_gross,
        lp_irr_net=lp_irr_net,
        lp_moic_gross=calc_moic(total_invested, total_dist),
        lp_moic_net=calc_moic(total_invested, total_dist - waterfall.gp_carry),
        config=config,
        deals=deals,
        events=events,
    )
