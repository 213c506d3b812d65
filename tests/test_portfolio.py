"""Tests for vc_fund_sim.portfolio — exit timing and follow-on allocation."""
from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from vc_fund_sim.portfolio import (
    Deal,
    allocate_follow_ons,
    deals_frame,
    draw_exit_year,
    draw_exit_years,
    draw_invest_years,
    exit_window,
    follow_on_scores,
)


class TestDeal:
    def test_proceeds_include_follow_on(self):
        deal = Deal(0, initial_check=1_000_000, invest_year=1, multiple=10.0,
                    exit_year=8, follow_on=500_000, follow_on_year=4)
        assert deal.total_investment == pytest.approx(1_500_000)
        assert deal.proceeds == pytest.approx(15_000_000)
        assert deal.holding_period == 7

    def test_write_off(self):
        deal = Deal(0, initial_check=1.0, invest_year=1, multiple=0.0, exit_year=3)
        assert deal.is_write_off
        assert deal.proceeds == 0.0
        assert deal.follow_on_year is None

    def test_deals_frame(self):
        deals = [
            Deal(0, 1.0, 1, 3.0, 7, 0.5, 4),
            Deal(1, 1.0, 2, 0.0, 3),
        ]
        df = deals_frame(deals)
        assert isinstance(df, pd.DataFrame)
        assert len(df) == 2
        assert df.loc[0, "proceeds"] == pytest.approx(4.5)


class TestExitTiming:
    def test_windows_by_tier(self):
        assert exit_window(0.0, 10) == (2, 6)
        assert exit_window(1.0, 10) == (4, 8)
        assert exit_window(2.99, 10) == (4, 8)
        assert exit_window(3.0, 10) == (6, 10)
        assert exit_window(50.0, 12) == (6, 12)

    def test_short_fund_clamps_winner_window(self):
        assert exit_window(10.0, 4) == (4, 4)

    def test_short_fund_clamps_all_windows(self):
        for multiple in (0.0, 1.0, 10.0):
            low, high = exit_window(multiple, 1)
            assert low == high == 1

    def test_draws_stay_in_window(self):
        rng = np.random.default_rng(0)
        for multiple in (0.0, 1.0, 3.0, 50.0):
            low, high = exit_window(multiple, 10)
            years = [draw_exit_year(multiple, 10, rng) for _ in range(500)]
            assert min(years) >= low
            assert max(years) <= high

    def test_draws_cover_window(self):
        rng = np.random.default_rng(1)
        years = {draw_exit_year(0.0, 10, rng) for _ in range(1_000)}
        assert years == {2, 3, 4, 5, 6}

    def test_winner_on_short_fund_is_valid(self):
        rng = np.random.default_rng(2)
        years = {draw_exit_year(10.0, 5, rng) for _ in range(100)}
        assert years == {5}

    def test_draw_exit_years_vector(self):
        multiples = np.array([0.0, 1.0, 10.0])
        years = draw_exit_years(multiples, 10, np.random.default_rng(3))
        assert years.shape == (3,)
        assert years.dtype == np.int64

    def test_invest_years_range(self):
        years = draw_invest_years(1_000, 3, np.random.default_rng(4))
        assert set(np.unique(years)) == {1, 2, 3}


class TestFollowOnAllocation:
    @pytest.fixture
    def draws(self):
        multiples = np.array([0.0, 50.0, 1.0, 10.0, 3.0, 0.0, 1.0, 10.0])
        exit_years = np.array([3, 9, 5, 7, 6, 2, 8, 10])
        invest_years = np.array([1, 1, 2, 3, 2, 1, 3, 2])
        return multiples, exit_years, invest_years

    def test_scores(self, draws):
        multiples, exit_years, _ = draws
        scores = follow_on_scores(multiples, exit_years, 10)
        assert scores[1] == pytest.approx(45.0)
        assert scores[7] == pytest.approx(10.0)
        assert scores[0] == 0.0

    def test_none_policy_allocates_nothing(self, draws):
        multiples, exit_years, invest_years = draws
        amounts, years = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=1_000_000, reserve_pool=20_000_000,
            invest_period=3, fund_life_years=10, policy="none",
        )
        assert np.all(amounts == 0)
        assert all(y is None for y in years)

    def test_top_quartile_selects_ceil_quarter(self, draws):
        multiples, exit_years, invest_years = draws
        amounts, years = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=1_000_000, reserve_pool=20_000_000,
            invest_period=3, fund_life_years=10,
        )
        # ceil(0.25 * 8) = 2 deals: 50x (score 45) then 10x exiting in year 10
        funded = set(np.nonzero(amounts)[0])
        assert funded == {1, 7}
        assert amounts[1] == pytest.approx(1_000_000)
        assert amounts[7] == pytest.approx(1_000_000)

    def test_follow_on_year_rule(self, draws):
        multiples, exit_years, invest_years = draws
        _, years = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=1_000_000, reserve_pool=20_000_000,
            invest_period=3, fund_life_years=10,
        )
        # min(invest_period + 1, exit_year - 1)
        assert years[1] == 4
        assert years[7] == 4

    def test_follow_on_year_before_early_exit(self):
        amounts, years = allocate_follow_ons(
            np.array([10.0]), np.array([3]), np.array([1]),
            initial_check=1.0, reserve_pool=10.0,
            invest_period=3, fund_life_years=10,
        )
        assert years[0] == 2
        assert amounts[0] == pytest.approx(1.0)

    def test_follow_on_never_precedes_investment(self):
        # exit_year - 1 = 2 would precede the year-3 investment
        _, years = allocate_follow_ons(
            np.array([10.0]), np.array([3]), np.array([3]),
            initial_check=1.0, reserve_pool=10.0,
            invest_period=3, fund_life_years=10,
        )
        assert years[0] == 3

    def test_check_capped_at_half_remaining_reserve(self):
        multiples = np.array([50.0, 10.0, 10.0, 3.0])
        exit_years = np.array([10, 9, 8, 7])
        invest_years = np.array([1, 1, 1, 1])
        amounts, _ = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=10.0, reserve_pool=8.0,
            invest_period=3, fund_life_years=10,
        )
        # ceil(0.25 * 4) = 1 deal; min(10, 8 / 2) = 4
        assert amounts[0] == pytest.approx(4.0)
        assert amounts[1:].sum() == 0.0

    def test_reserve_halving_sequence(self):
        n = 8
        multiples = np.full(n, 10.0)
        exit_years = np.full(n, 10)
        invest_years = np.ones(n, dtype=np.int64)
        amounts, _ = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=100.0, reserve_pool=16.0,
            invest_period=3, fund_life_years=10,
        )
        # ceil(2) = 2 deals in deal order (ties): 8, then 4
        assert amounts[0] == pytest.approx(8.0)
        assert amounts[1] == pytest.approx(4.0)
        assert amounts.sum() <= 16.0

    def test_empty_reserve_allocates_nothing(self, draws):
        multiples, exit_years, invest_years = draws
        amounts, years = allocate_follow_ons(
            multiples, exit_years, invest_years,
            initial_check=1_000_000, reserve_pool=0.0,
            invest_period=3, fund_life_years=10,
        )
        assert amounts.sum() == 0.0
        assert all(y is None for y in years)

    def test_total_never_exceeds_reserve(self):
        rng = np.random.default_rng(11)
        for _ in range(50):
            n = int(rng.integers(1, 60))
            multiples = rng.choice([0.0, 1.0, 3.0, 10.0, 50.0], size=n)
            exit_years = rng.integers(2, 11, size=n)
            invest_years = np.minimum(rng.integers(1, 4, size=n), exit_years)
            reserve = float(rng.uniform(0, 5e6))
            amounts, _ = allocate_follow_ons(
                multiples, exit_years, invest_years,
                initial_check=1e6, reserve_pool=reserve,
                invest_period=3, fund_life_years=10,
            )
            assert amounts.sum() <= reserve + 1e-6
            assert math.ceil(0.25 * n) >= np.count_nonzero(amounts)

    def test_deterministic(self, draws):
        multiples, exit_years, invest_years = draws
        kwargs = dict(initial_check=1e6, reserve_pool=2e6, invest_period=3, fund_life_years=10)
        a, ya = allocate_follow_ons(multiples, exit_years, invest_years, **kwargs)
        b, yb = allocate_follow_ons(multiples, exit_years, invest_years, **kwargs)
        assert np.array_equal(a, b)
        assert ya == yb

    def test_unknown_policy_raises(self, draws):
        multiples, exit_years, invest_years = draws
        with pytest.raises(ValueError):
            allocate_follow_ons(
                multiples, exit_years, invest_years,
                initial_check=1.0, reserve_pool=1.0,
                invest_period=3, fund_life_years=10, policy="pro_rata",
            )
