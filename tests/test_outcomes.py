"""Tests for vc_fund_sim.outcomes — exit multiple distributions."""
from __future__ import annotations

import numpy as np
import pytest

from vc_fund_sim.errors import ConfigurationError
from vc_fund_sim.outcomes import (
    DISCRETE_MULTIPLES,
    DiscreteDistribution,
    LognormalDistribution,
    ParetoDistribution,
    draw_multiples,
    make_distribution,
)


class TestMakeDistribution:
    def test_discrete_default(self):
        assert make_distribution("discrete") == DiscreteDistribution()

    def test_lognormal_defaults(self):
        dist = make_distribution("lognormal")
        assert dist == LognormalDistribution(meanlog=0.0, sdlog=1.5, cap=100.0)

    def test_pareto_defaults(self):
        dist = make_distribution("pareto")
        assert dist == ParetoDistribution(scale=1.0, alpha=1.5, cap=200.0)

    def test_overrides(self):
        dist = make_distribution("lognormal", {"sdlog": 0.8, "cap": 50})
        assert dist.sdlog == pytest.approx(0.8)
        assert dist.cap == pytest.approx(50)
        assert dist.meanlog == pytest.approx(0.0)

    def test_unknown_mode_raises(self):
        with pytest.raises(ConfigurationError, match="dist_mode"):
            make_distribution("uniform")

    def test_unknown_parameter_raises(self):
        with pytest.raises(ConfigurationError, match="xm"):
            make_distribution("pareto", {"xm": 2.0})

    def test_invalid_parameter_value_raises(self):
        with pytest.raises(ConfigurationError):
            make_distribution("pareto", {"alpha": 0.0})
        with pytest.raises(ConfigurationError):
            make_distribution("lognormal", {"cap": -1.0})

    def test_discrete_probabilities_must_sum_to_one(self):
        with pytest.raises(ConfigurationError, match="sum to 1"):
            DiscreteDistribution(multiples=(0.0, 1.0), probabilities=(0.5, 0.4))

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            make_distribution("nope")


class TestDiscreteSampler:
    def test_support(self):
        rng = np.random.default_rng(1)
        draws = draw_multiples(5_000, DiscreteDistribution(), rng)
        assert set(np.unique(draws)).issubset(set(DISCRETE_MULTIPLES))

    def test_write_off_frequency(self):
        rng = np.random.default_rng(123)
        draws = draw_multiples(10_000, DiscreteDistribution(), rng)
        assert np.mean(draws == 0) == pytest.approx(0.55, abs=0.02)

    def test_shape(self):
        draws = draw_multiples(30, DiscreteDistribution(), np.random.default_rng(0))
        assert draws.shape == (30,)

    def test_zero_draws(self):
        draws = draw_multiples(0, DiscreteDistribution(), np.random.default_rng(0))
        assert len(draws) == 0


class TestContinuousSamplers:
    def test_lognormal_non_negative_and_capped(self):
        dist = LognormalDistribution(meanlog=2.0, sdlog=2.0, cap=25.0)
        draws = draw_multiples(5_000, dist, np.random.default_rng(3))
        assert np.all(draws >= 0)
        assert draws.max() <= 25.0
        # With meanlog=2 a sizeable share sits on the cap
        assert np.any(draws == 25.0)

    def test_lognormal_median(self):
        dist = LognormalDistribution(meanlog=0.0, sdlog=1.5, cap=1e9)
        draws = draw_multiples(20_000, dist, np.random.default_rng(4))
        assert np.median(draws) == pytest.approx(1.0, rel=0.1)

    def test_pareto_floor_and_cap(self):
        dist = ParetoDistribution(scale=2.0, alpha=1.5, cap=200.0)
        draws = draw_multiples(5_000, dist, np.random.default_rng(5))
        assert draws.min() >= 2.0
        assert draws.max() <= 200.0

    def test_pareto_tail_probability(self):
        # P(X > 4) = (1/4)^1.5 = 0.125 for scale=1, alpha=1.5
        dist = ParetoDistribution(scale=1.0, alpha=1.5, cap=200.0)
        draws = draw_multiples(20_000, dist, np.random.default_rng(6))
        assert np.mean(draws > 4.0) == pytest.approx(0.125, abs=0.01)


class TestReproducibility:
    @pytest.mark.parametrize(
        "dist",
        [DiscreteDistribution(), LognormalDistribution(), ParetoDistribution()],
    )
    def test_same_seed_same_draws(self, dist):
        a = draw_multiples(100, dist, np.random.default_rng(99))
        b = draw_multiples(100, dist, np.random.default_rng(99))
        assert np.array_equal(a, b)

    def test_unsupported_distribution_raises(self):
        with pytest.raises(TypeError):
            draw_multiples(10, object(), np.random.default_rng(0))

    def test_negative_count_raises(self):
        with pytest.raises(ValueError):
            draw_multiples(-1, DiscreteDistribution(), np.random.default_rng(0))
