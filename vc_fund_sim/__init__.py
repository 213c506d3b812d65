"""
vc_fund_sim — Monte Carlo simulation of venture capital fund outcomes.

Public API surface:

    from vc_fund_sim import FundConfig, simulate_fund, run_monte_carlo
    from vc_fund_sim import SimulationResult, MonteCarloResults
    from vc_fund_sim import JCurve, compare_strategies, run_strategies
    from vc_fund_sim import metrics
    from vc_fund_sim import visualization as viz
"""
from __future__ import annotations

# Core data classes and engines
from vc_fund_sim.errors import ConfigurationError
from vc_fund_sim.fund import (
    CashFlowEvent,
    FundConfig,
    SimulationResult,
    apply_waterfall,
    build_cash_flow_events,
    build_deals,
    fold_cash_flows,
    simulate_fund,
)
from vc_fund_sim.jcurve import JCurve
from vc_fund_sim.outcomes import (
    DiscreteDistribution,
    LognormalDistribution,
    ParetoDistribution,
    draw_multiples,
    make_distribution,
)
from vc_fund_sim.portfolio import Deal, allocate_follow_ons, draw_exit_year
from vc_fund_sim.simulation import (
    MonteCarloResults,
    compare_strategies,
    run_monte_carlo,
    run_strategies,
    summarise_strategies,
)

# Submodules available for direct import
from vc_fund_sim import metrics
from vc_fund_sim import visualization

__version__ = "0.1.0"
__author__ = "vc-fund-sim"

__all__ = [
    # Configuration
    "FundConfig",
    "ConfigurationError",
    # Outcome distributions
    "DiscreteDistribution",
    "LognormalDistribution",
    "ParetoDistribution",
    "draw_multiples",
    "make_distribution",
    # Portfolio
    "Deal",
    "draw_exit_year",
    "allocate_follow_ons",
    # Single fund
    "CashFlowEvent",
    "SimulationResult",
    "build_deals",
    "build_cash_flow_events",
    "fold_cash_flows",
    "apply_waterfall",
    "simulate_fund",
    # Monte Carlo
    "MonteCarloResults",
    "run_monte_carlo",
    "run_strategies",
    "summarise_strategies",
    "compare_strategies",
    # J-Curve
    "JCurve",
    # Submodules
    "metrics",
    "visualization",
    # Version
    "__version__",
]
