"""Tests for vc_fund_sim.jcurve — cumulative cash flow paths and bands."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from vc_fund_sim.fund import FundConfig, simulate_fund
from vc_fund_sim.jcurve import JCurve, jcurve_shape


@pytest.fixture
def jcurve(many_results) -> JCurve:
    return JCurve().add_results(many_results)


def _summary(median: list[float]) -> pd.DataFrame:
    return pd.DataFrame({"year": np.arange(len(median)), "median_cum": median})


class TestJCurveBuilder:
    def test_chaining(self, sample_result, many_results):
        jc = JCurve()
        assert jc.add_result(sample_result) is jc
        assert jc.add_results(many_results[:5]) is jc
        assert len(jc) == 6

    def test_repr(self, jcurve):
        assert repr(jcurve) == "JCurve(n_trials=200)"

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            JCurve().summary()

    def test_mixed_fund_lives_raise(self, sample_result):
        short = simulate_fund(FundConfig(fund_life_years=8), np.random.default_rng(1))
        with pytest.raises(ValueError, match="fund life"):
            JCurve().add_result(sample_result).add_result(short).cumulative_matrix()


class TestPaths:
    def test_cumulative_matrix(self, jcurve, many_results):
        cum = jcurve.cumulative_matrix()
        assert cum.shape == (200, 11)
        assert np.allclose(cum[3], np.cumsum(many_results[3].lp_cf_net))
        assert np.allclose(cum[:, -1], [r.lp_cf_net.sum() for r in many_results])

    def test_long_paths(self, jcurve, many_results):
        paths = jcurve.paths()
        assert list(paths.columns) == ["sim_id", "year", "lp_cf_net", "cum_cf"]
        assert len(paths) == 200 * 11
        first = paths[paths["sim_id"] == 0]
        assert np.allclose(first["cum_cf"], np.cumsum(many_results[0].lp_cf_net))

    def test_empty_paths(self):
        paths = JCurve().paths()
        assert paths.empty
        assert list(paths.columns) == ["sim_id", "year", "lp_cf_net", "cum_cf"]


class TestSummary:
    def test_columns(self, jcurve):
        summary = jcurve.summary()
        assert list(summary.columns) == [
            "year", "median_cum", "p10_cum", "p25_cum", "p75_cum", "p90_cum",
        ]
        assert list(summary["year"]) == list(range(11))

    def test_bands_are_nested(self, jcurve):
        s = jcurve.summary()
        assert (s["p10_cum"] <= s["p25_cum"] + 1e-6).all()
        assert (s["p25_cum"] <= s["median_cum"] + 1e-6).all()
        assert (s["median_cum"] <= s["p75_cum"] + 1e-6).all()
        assert (s["p75_cum"] <= s["p90_cum"] + 1e-6).all()

    def test_median_matches_numpy(self, jcurve):
        cum = jcurve.cumulative_matrix()
        s = jcurve.summary()
        assert np.allclose(s["median_cum"], np.median(cum, axis=0))

    def test_early_years_are_negative(self, jcurve):
        s = jcurve.summary()
        assert s["median_cum"].iloc[0] == 0.0
        # Capital calls and fees dominate the investment period
        assert (s["median_cum"].iloc[1:4] < 0).all()


class TestShape:
    def test_trough_and_breakeven(self):
        shape = jcurve_shape(_summary([0.0, -5.0, -8.0, -3.0, 2.0, 6.0]))
        assert shape == {
            "trough_year": 2,
            "trough_value": -8.0,
            "breakeven_year": 4,
            "final_value": 6.0,
        }

    def test_never_breaks_even(self):
        shape = jcurve_shape(_summary([0.0, -1.0, -2.0]))
        assert shape["trough_year"] == 2
        assert shape["breakeven_year"] == -1

    def test_never_negative(self):
        shape = jcurve_shape(_summary([0.0, 1.0, 2.0]))
        assert shape["trough_year"] == 0
        assert shape["breakeven_year"] == 0

    def test_breakeven_at_positive_trough(self):
        shape = jcurve_shape(_summary([5.0, 3.0, 4.0]))
        assert shape["trough_year"] == 1
        assert shape["breakeven_year"] == 1

    def test_simulated_shape(self, jcurve):
        shape = jcurve.shape()
        assert 1 <= shape["trough_year"] <= 10
        assert shape["trough_value"] < 0
