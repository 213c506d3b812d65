"""
conftest.py — Shared pytest fixtures for vc_fund_sim test suite.
"""
from __future__ import annotations

import numpy as np
import pytest

from vc_fund_sim.fund import FundConfig, SimulationResult, simulate_fund
from vc_fund_sim.simulation import MonteCarloResults, run_monte_carlo


@pytest.fixture(scope="session")
def default_config() -> FundConfig:
    """$50M fund, 30 deals, 40% reserve, top-quartile follow-ons."""
    return FundConfig(
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


@pytest.fixture(scope="session")
def no_follow_on_config(default_config: FundConfig) -> FundConfig:
    return default_config.replace(follow_on_policy="none")


@pytest.fixture(scope="session")
def sample_result(default_config: FundConfig) -> SimulationResult:
    """A single trial with a fixed seed."""
    return simulate_fund(default_config, np.random.default_rng(7))


@pytest.fixture(scope="session")
def many_results(default_config: FundConfig) -> list[SimulationResult]:
    """Two hundred independent trials for property checks."""
    rngs = np.random.default_rng(2024).spawn(200)
    return [simulate_fund(default_config, rng) for rng in rngs]


@pytest.fixture(scope="session")
def mc_results(default_config: FundConfig) -> MonteCarloResults:
    """Small Monte Carlo batch for analysis-layer tests."""
    return run_monte_carlo(300, default_config, rng=42)
