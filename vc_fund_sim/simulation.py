"""
simulation.py — Monte Carlo driver and strategy comparison.

Depends on: fund.py, jcurve.py
"""
from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
from typing import Iterator, Optional, Sequence

import numpy as np
import pandas as pd

from vc_fund_sim.fund import FundConfig, RandomSource, SimulationResult, simulate_fund
from vc_fund_sim.jcurve import JCurve


logger = logging.getLogger(__name__)

SUMMARY_COLUMNS: list[str] = [
    "trial",
    "lp_irr_gross",
    "lp_irr_net",
    "lp_moic_gross",
    "lp_moic_net",
    "gp_carry",
    "total_invested",
    "total_dist",
]

DEFAULT_MOIC_THRESHOLDS: tuple[float, ...] = (1.5, 2.0, 3.0, 5.0)
DEFAULT_DEAL_COUNTS: tuple[int, ...] = (20, 30, 50, 100)
PERCENTILES: tuple[int, ...] = (10, 25, 50, 75, 90)
PROGRESS_EVERY = 100


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def build_summary(sims: Sequence[SimulationResult]) -> pd.DataFrame:
    """One row of scalar metrics per trial, in trial order."""
    rows = [{"trial": i, **sim.to_record()} for i, sim in enumerate(sims)]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


@dataclass
class MonteCarloResults:
    """All trials of a Monte Carlo run plus their per-trial summary table."""

    sims: list[SimulationResult]
    summary: pd.DataFrame
    config: FundConfig

    def __len__(self) -> int:
        return len(self.sims)

    def __iter__(self) -> Iterator[SimulationResult]:
        return iter(self.sims)

    @property
    def n_undefined_irr(self) -> int:
        return int(self.summary["lp_irr_net"].isna().sum())

    def defined_irr(self, column: str = "lp_irr_net") -> pd.Series:
        """IRR values of the trials where the IRR is defined."""
        return self.summary[column].dropna()

    def percentiles(self, column: str = "lp_moic_net") -> dict[str, float]:
        """p10/p25/p50/p75/p90 of a summary column, ignoring undefined values."""
        values = self.summary[column].dropna().to_numpy()
        if len(values) == 0:
            return {f"p{p}": float("nan") for p in PERCENTILES}
        return {f"p{p}": float(np.percentile(values, p)) for p in PERCENTILES}

    def prob_moic_at_least(self, threshold: float, column: str = "lp_moic_net") -> float:
        """Share of trials whose MOIC is at or above ``threshold``."""
        values = self.summary[column].dropna()
        if len(values) == 0:
            return float("nan")
        return float((values >= threshold).mean())

    def survival_table(
        self,
        thresholds: Sequence[float] = DEFAULT_MOIC_THRESHOLDS,
    ) -> pd.DataFrame:
        """
        P(net MOIC ≥ t) for each threshold.

        Columns: moic_threshold, prob_net_moic_ge
        """
        return pd.DataFrame(
            {
                "moic_threshold": list(thresholds),
                "prob_net_moic_ge": [self.prob_moic_at_least(t) for t in thresholds],
            }
        )

    def summary_stats(self) -> dict[str, float | int]:
        """
        Headline net LP metrics.

        MOIC statistics use every trial; IRR statistics use only the trials
        whose net IRR is defined.
        """
        moic = self.summary["lp_moic_net"].dropna()
        irr = self.defined_irr("lp_irr_net")
        return {
            "n_trials": len(self.summary),
            "n_undefined_irr": self.n_undefined_irr,
            "mean_net_moic": float(moic.mean()) if len(moic) else float("nan"),
            "median_net_moic": float(moic.median()) if len(moic) else float("nan"),
            "mean_net_irr": float(irr.mean()) if len(irr) else float("nan"),
            "median_net_irr": float(irr.median()) if len(irr) else float("nan"),
            "mean_gp_carry": float(self.summary["gp_carry"].mean()),
        }

    def jcurve(self) -> JCurve:
        return JCurve().add_results(self.sims)

    def jcurve_paths(self) -> pd.DataFrame:
        """Long-format cumulative net LP cash flow, one row per (trial, year)."""
        return self.jcurve().paths()

    def jcurve_summary(self) -> pd.DataFrame:
        """Per-year median and quantile bands of cumulative net LP cash flow."""
        return self.jcurve().summary()


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def _log_progress(i: int, n_sims: int, verbose: bool) -> None:
    if i % PROGRESS_EVERY == 0:
        logger.log(logging.INFO if verbose else logging.DEBUG, "Sim %d/%d", i, n_sims)


def run_monte_carlo(
    n_sims: int = 2000,
    config: Optional[FundConfig] = None,
    rng: RandomSource = None,
    n_workers: int = 1,
    verbose: bool = False,
) -> MonteCarloResults:
    """
    Simulate ``n_sims`` independent funds and tabulate their metrics.

    Every trial gets its own generator spawned from ``rng``, so a trial's
    draws depend only on the base seed and its index. Results are the same
    whether trials run sequentially or in a process pool.

    Parameters
    ----------
    n_sims:
        Number of trials.
    config:
        Fund configuration shared by all trials. Defaults to ``FundConfig()``.
    rng:
        Base random source: a Generator, an integer seed, a SeedSequence, or
        None for fresh entropy.
    n_workers:
        Number of worker processes. 1 runs in-process.
    verbose:
        Report progress every 100 trials at INFO level instead of DEBUG.

    Returns
    -------
    MonteCarloResults
    """
    if n_sims < 1:
        raise ValueError(f"n_sims must be at least 1, got {n_sims}")
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1, got {n_workers}")

    config = config if config is not None else FundConfig()
    trial_rngs = np.random.default_rng(rng).spawn(n_sims)

    logger.info(
        "Running %d trials (deals=%d, reserve=%.0f%%, policy=%s, dist=%s, workers=%d)",
        n_sims,
        config.n_initial_deals,
        config.reserve_ratio * 100,
        config.follow_on_policy,
        config.dist_mode,
        n_workers,
    )

    sims: list[SimulationResult] = []
    if n_workers == 1:
        for i, trial_rng in enumerate(trial_rngs, start=1):
            sims.append(simulate_fund(config, trial_rng))
            _log_progress(i, n_sims, verbose)
    else:
        chunksize = max(1, n_sims // (n_workers * 4))
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            results = executor.map(
                simulate_fund, repeat(config, n_sims), trial_rngs, chunksize=chunksize
            )
            for i, result in enumerate(results, start=1):
                sims.append(result)
                _log_progress(i, n_sims, verbose)

    mc = MonteCarloResults(sims=sims, summary=build_summary(sims), config=config)

    if mc.n_undefined_irr:
        logger.warning(
            "%d of %d trials have an undefined net IRR; they are excluded from IRR statistics",
            mc.n_undefined_irr,
            n_sims,
        )
    logger.info("Finished %d trials", n_sims)
    return mc


# ---------------------------------------------------------------------------
# Strategy comparison
# ---------------------------------------------------------------------------

def run_strategies(
    deal_counts: Sequence[int] = DEFAULT_DEAL_COUNTS,
    config: Optional[FundConfig] = None,
    n_sims: int = 3000,
    rng: RandomSource = None,
    n_workers: int = 1,
) -> pd.DataFrame:
    """
    Run one Monte Carlo batch per portfolio size.

    Returns the concatenated per-trial summaries with two extra columns:
    ``strategy`` (e.g. "30 deals") and ``n_initial_deals``.
    """
    base = config if config is not None else FundConfig()
    strategy_rngs = np.random.default_rng(rng).spawn(len(deal_counts))

    frames = []
    for n_deals, strategy_rng in zip(deal_counts, strategy_rngs):
        mc = run_monte_carlo(
            n_sims=n_sims,
            config=base.replace(n_initial_deals=n_deals),
            rng=strategy_rng,
            n_workers=n_workers,
        )
        frame = mc.summary.copy()
        frame["strategy"] = f"{n_deals} deals"
        frame["n_initial_deals"] = n_deals
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


def summarise_strategies(
    trials: pd.DataFrame,
    threshold: float = 3.0,
) -> pd.DataFrame:
    """
    Reduce ``run_strategies`` output to one row per strategy.

    Columns: strategy, n_initial_deals, n_trials, moic_net_mean,
    moic_net_median, irr_net_mean, irr_net_median, prob_net_moic_ge
    """
    rows = []
    for (strategy, n_deals), group in trials.groupby(
        ["strategy", "n_initial_deals"], sort=False
    ):
        moic = group["lp_moic_net"].dropna()
        irr = group["lp_irr_net"].dropna()
        rows.append(
            {
                "strategy": strategy,
                "n_initial_deals": n_deals,
                "n_trials": len(group),
                "moic_net_mean": float(moic.mean()),
                "moic_net_median": float(moic.median()),
                "irr_net_mean": float(irr.mean()) if len(irr) else float("nan"),
                "irr_net_median": float(irr.median()) if len(irr) else float("nan"),
                "prob_net_moic_ge": float((moic >= threshold).mean()),
            }
        )
    return pd.DataFrame(rows)


def compare_strategies(
    deal_counts: Sequence[int] = DEFAULT_DEAL_COUNTS,
    config: Optional[FundConfig] = None,
    n_sims: int = 3000,
    rng: RandomSource = None,
    n_workers: int = 1,
    threshold: float = 3.0,
) -> pd.DataFrame:
    """Compare portfolio sizes on net MOIC, net IRR and P(net MOIC ≥ threshold)."""
    trials = run_strategies(
        deal_counts=deal_counts,
        config=config,
        n_sims=n_sims,
        rng=rng,
        n_workers=n_workers,
    )
    return summarise_strategies(trials, threshold=threshold)
