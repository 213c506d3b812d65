"""
jcurve.py — Cumulative LP cash flow paths across simulated funds.

The J-curve of a fund is its cumulative net LP cash flow by year: negative
early (capital calls and fees), recovering as exits are distributed.
Across many trials the paths are summarised into a median line with
p10–p90 and p25–p75 bands.

Depends only on: fund.py
"""
from __future__ import annotations

from typing import Iterable

import numpy as np
import numpy.typing as npt
import pandas as pd

from vc_fund_sim.fund import SimulationResult


BAND_QUANTILES: dict[str, float] = {
    "p10_cum": 0.10,
    "p25_cum": 0.25,
    "median_cum": 0.50,
    "p75_cum": 0.75,
    "p90_cum": 0.90,
}


class JCurve:
    """
    J-curve of a batch of simulated funds.

    Supports method chaining:

        summary = (
            JCurve()
            .add_result(single_trial)
            .add_results(mc.sims)
            .summary()
        )
    """

    def __init__(self) -> None:
        self._results: list[SimulationResult] = []

    # ------------------------------------------------------------------
    # Builder methods
    # ------------------------------------------------------------------

    def add_result(self, result: SimulationResult) -> "JCurve":
        """Add a single trial."""
        self._results.append(result)
        return self

    def add_results(self, results: Iterable[SimulationResult]) -> "JCurve":
        """Add multiple trials."""
        self._results.extend(results)
        return self

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def cumulative_matrix(self) -> npt.NDArray[np.float64]:
        """Cumulative net LP cash flow, shape (n_trials, n_years)."""
        if not self._results:
            raise ValueError("JCurve is empty. Add simulation results first.")
        lengths = {len(r.lp_cf_net) for r in self._results}
        if len(lengths) != 1:
            raise ValueError(
                f"All trials must share a fund life; got series lengths {sorted(lengths)}"
            )
        flows = np.vstack([r.lp_cf_net for r in self._results])
        return np.cumsum(flows, axis=1)

    def paths(self) -> pd.DataFrame:
        """
        Long-format paths, one row per (trial, year).

        Columns: sim_id, year, lp_cf_net, cum_cf
        """
        rows = []
        for sim_id, result in enumerate(self._results):
            rows.append(
                pd.DataFrame(
                    {
                        "sim_id": sim_id,
                        "year": result.years,
                        "lp_cf_net": result.lp_cf_net,
                        "cum_cf": np.cumsum(result.lp_cf_net),
                    }
                )
            )
        if not rows:
            return pd.DataFrame(columns=["sim_id", "year", "lp_cf_net", "cum_cf"])
        return pd.concat(rows, ignore_index=True)

    def summary(self) -> pd.DataFrame:
        """
        Per-year quantile bands of cumulative net LP cash flow.

        Columns: year, median_cum, p10_cum, p25_cum, p75_cum, p90_cum
        """
        cum = self.cumulative_matrix()
        data = {"year": np.arange(cum.shape[1])}
        for column in ("median_cum", "p10_cum", "p25_cum", "p75_cum", "p90_cum"):
            data[column] = np.quantile(cum, BAND_QUANTILES[column], axis=0)
        return pd.DataFrame(data)

    # ------------------------------------------------------------------
    # Shape analysis
    # ------------------------------------------------------------------

    def shape(self) -> dict[str, float | int]:
        """
        Key points of the median J-curve.

        Returns
        -------
        dict with:
            trough_year: year of the lowest median cumulative cash flow
            trough_value: median cumulative cash flow at the trough
            breakeven_year: first year at or after the trough where the
                median cumulative cash flow is ≥ 0 (-1 if never)
            final_value: median cumulative cash flow at the end of the fund
        """
        return jcurve_shape(self.summary())

    def __len__(self) -> int:
        return len(self._results)

    def __repr__(self) -> str:
        return f"JCurve(n_trials={len(self._results)})"


def jcurve_shape(summary: pd.DataFrame) -> dict[str, float | int]:
    """Trough and breakeven of a ``JCurve.summary()`` frame."""
    median = summary["median_cum"].to_numpy()
    trough_idx = int(np.argmin(median))

    breakeven_year = -1
    for t in range(trough_idx, len(median)):
        if median[t] >= 0:
            breakeven_year = int(summary["year"].iloc[t])
            break

    return {
        "trough_year": int(summary["year"].iloc[trough_idx]),
        "trough_value": float(median[trough_idx]),
        "breakeven_year": breakeven_year,
        "final_value": float(median[-1]),
    }
