"""
jcurve_analysis.py — J-curve fan chart across simulated funds.

Demonstrates:
- Collecting cumulative net LP cash flow paths from a Monte Carlo run
- Median and p10/p25/p75/p90 bands by year
- J-curve shape (trough, breakeven)
- Comparing the J-curve with and without follow-on reserves

Run:
    python examples/jcurve_analysis.py
"""
from __future__ import annotations

from vc_fund_sim import FundConfig, JCurve, run_monte_carlo
from vc_fund_sim import visualization as viz


def describe(label: str, jcurve: JCurve) -> None:
    shape = jcurve.shape()
    breakeven = shape["breakeven_year"]
    print(f"\n=== {label} ===")
    print(f"  Trough:    Year {shape['trough_year']} "
          f"(median cumulative: ${shape['trough_value']:,.0f})")
    print(f"  Breakeven: {'Year ' + str(breakeven) if breakeven >= 0 else 'Not reached'}")
    print(f"  Final:     ${shape['final_value']:,.0f}")


def main() -> None:
    config = FundConfig()

    # -------------------------------------------------------------------
    # 1. Monte Carlo with top-quartile follow-ons
    # -------------------------------------------------------------------
    mc = run_monte_carlo(n_sims=2_000, config=config, rng=2024)
    jcurve = mc.jcurve()
    print(jcurve)

    summary = jcurve.summary()
    display = summary.copy()
    for col in display.columns.drop("year"):
        display[col] = display[col].map(lambda x: f"${x/1e6:.1f}M")
    print("\n=== Cumulative Net LP Cash Flow by Year ===")
    print(display.to_string(index=False))

    describe("Top-quartile follow-ons", jcurve)

    # -------------------------------------------------------------------
    # 2. Same fund without follow-ons
    # -------------------------------------------------------------------
    mc_none = run_monte_carlo(
        n_sims=2_000,
        config=config.replace(follow_on_policy="none"),
        rng=2024,
    )
    describe("No follow-ons", mc_none.jcurve())

    # -------------------------------------------------------------------
    # 3. Visualization
    # -------------------------------------------------------------------
    print("\nOpening J-curve fan charts...")
    viz.plot_jcurve_fan(summary, title="J-Curve: Top-Quartile Follow-Ons").show()
    viz.plot_jcurve_fan(mc_none.jcurve_summary(), title="J-Curve: No Follow-Ons").show()


if __name__ == "__main__":
    main()
