"""
basic_fund_simulation.py — One simulated fund, then a Monte Carlo batch.

Demonstrates:
- Configuring a $50M fund with a 40% follow-on reserve
- Inspecting a single trial's deals and yearly cash flows
- Running 2,000 trials and reading the net MOIC / IRR distribution
- Survival table P(net MOIC ≥ x)

Run:
    python examples/basic_fund_simulation.py
"""
from __future__ import annotations

import logging

import numpy as np

from vc_fund_sim import FundConfig, run_monte_carlo, simulate_fund
from vc_fund_sim import visualization as viz


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # -------------------------------------------------------------------
    # 1. Configure the fund
    # -------------------------------------------------------------------
    config = FundConfig(
        fund_size=50_000_000,
        n_initial_deals=30,
        reserve_ratio=0.4,
        fund_life_years=10,
        invest_period=3,
        mgmt_fee_rate=0.02,
        carry_rate=0.20,
        hurdle_rate=0.08,
        follow_on_policy="top_quartile",
        dist_mode="discrete",
    )

    # -------------------------------------------------------------------
    # 2. A single trial
    # -------------------------------------------------------------------
    result = simulate_fund(config, np.random.default_rng(7))
    print(result)

    deals = result.deals_frame()
    print("\n=== Top 5 Deals by Proceeds ===")
    print(deals.sort_values("proceeds", ascending=False).head().to_string(index=False))
    print(f"\nFollow-on capital deployed: ${result.total_follow_on:,.0f}")

    print("\n=== Yearly Cash Flows ($M) ===")
    table = result.cash_flow_table()
    money = table.columns.drop("year")
    table[money] = table[money] / 1e6
    print(table.round(2).to_string(index=False))

    # -------------------------------------------------------------------
    # 3. Monte Carlo
    # -------------------------------------------------------------------
    mc = run_monte_carlo(n_sims=2_000, config=config, rng=123, verbose=True)

    stats = mc.summary_stats()
    print("\n=== Net LP Returns ===")
    print(f"  Trials:            {stats['n_trials']:,}")
    print(f"  Undefined IRR:     {stats['n_undefined_irr']:,}")
    print(f"  Median net MOIC:   {stats['median_net_moic']:.2f}x")
    print(f"  Mean net MOIC:     {stats['mean_net_moic']:.2f}x")
    print(f"  Median net IRR:    {stats['median_net_irr']:.1%}")
    print(f"  Mean GP carry:     ${stats['mean_gp_carry']:,.0f}")

    print("\nNet MOIC percentiles:")
    for label, value in mc.percentiles("lp_moic_net").items():
        print(f"  {label}: {value:.2f}x")

    print("\n=== Survival Table ===")
    print(mc.survival_table().to_string(index=False))

    # -------------------------------------------------------------------
    # 4. Visualization
    # -------------------------------------------------------------------
    print("\nOpening charts...")
    viz.plot_fund_cash_flows(result).show()
    viz.plot_moic_distribution(mc, threshold=3.0).show()
    viz.plot_irr_distribution(mc).show()
    viz.plot_survival_curve(mc).show()


if __name__ == "__main__":
    main()
