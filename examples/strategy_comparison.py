"""
strategy_comparison.py — Portfolio size vs. outcome distribution.

Demonstrates:
- Running the same fund with 20, 30, 50 and 100 initial deals
- Comparing mean/median net MOIC and IRR and P(net MOIC ≥ 3x)
- Swapping the discrete outcome model for a Pareto power law
- Parallel trials with a process pool

Run:
    python examples/strategy_comparison.py
"""
from __future__ import annotations

import logging

from vc_fund_sim import FundConfig, run_strategies, summarise_strategies
from vc_fund_sim import visualization as viz


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # -------------------------------------------------------------------
    # 1. Discrete outcomes
    # -------------------------------------------------------------------
    config = FundConfig(fund_size=50_000_000, reserve_ratio=0.4)
    trials = run_strategies(
        deal_counts=(20, 30, 50, 100),
        config=config,
        n_sims=3_000,
        rng=123,
        n_workers=4,
    )
    table = summarise_strategies(trials, threshold=3.0)

    print("\n=== Discrete outcomes ===")
    print(table.round(3).to_string(index=False))

    # -------------------------------------------------------------------
    # 2. Pareto outcomes
    # -------------------------------------------------------------------
    pareto = config.replace(dist_mode="pareto", dist_params={"alpha": 1.3})
    pareto_trials = run_strategies(
        deal_counts=(20, 30, 50, 100),
        config=pareto,
        n_sims=3_000,
        rng=123,
        n_workers=4,
    )
    print("\n=== Pareto outcomes (alpha = 1.3) ===")
    print(summarise_strategies(pareto_trials).round(3).to_string(index=False))

    # -------------------------------------------------------------------
    # 3. Visualization
    # -------------------------------------------------------------------
    print("\nOpening strategy comparison charts...")
    viz.plot_strategy_comparison(trials).show()
    viz.plot_strategy_comparison(
        pareto_trials,
        title="Net LP MOIC by Portfolio Size (Pareto outcomes)",
    ).show()


if __name__ == "__main__":
    main()
