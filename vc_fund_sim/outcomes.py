"""
outcomes.py — Exit multiple distributions for portfolio companies.

Each distribution is a small frozen dataclass holding its parameters.
``draw_multiples`` is the single place that dispatches on the variant.

Depends only on: errors.py
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Literal, Mapping, Optional, Union

import numpy as np
import numpy.typing as npt

from vc_fund_sim.errors import ConfigurationError


DistMode = Literal["discrete", "lognormal", "pareto"]

# Bucketed outcomes: write-off, money back, and three tiers of winners
DISCRETE_MULTIPLES: tuple[float, ...] = (0.0, 1.0, 3.0, 10.0, 50.0)
DISCRETE_PROBABILITIES: tuple[float, ...] = (0.55, 0.25, 0.10, 0.07, 0.03)


@dataclass(frozen=True)
class DiscreteDistribution:
    """Categorical draw over a fixed set of multiples."""

    multiples: tuple[float, ...] = DISCRETE_MULTIPLES
    probabilities: tuple[float, ...] = DISCRETE_PROBABILITIES

    def __post_init__(self) -> None:
        if len(self.multiples) != len(self.probabilities):
            raise ConfigurationError(
                "multiples and probabilities must have the same length"
            )
        if any(m < 0 for m in self.multiples):
            raise ConfigurationError("multiples must be non-negative")
        if any(p < 0 for p in self.probabilities):
            raise ConfigurationError("probabilities must be non-negative")
        if not np.isclose(sum(self.probabilities), 1.0):
            raise ConfigurationError(
                f"probabilities must sum to 1, got {sum(self.probabilities):.6f}"
            )


@dataclass(frozen=True)
class LognormalDistribution:
    """Heavy-tailed lognormal multiples, capped at ``cap``."""

    meanlog: float = 0.0
    sdlog: float = 1.5
    cap: float = 100.0

    def __post_init__(self) -> None:
        if self.sdlog < 0:
            raise ConfigurationError(f"sdlog must be non-negative, got {self.sdlog}")
        if self.cap <= 0:
            raise ConfigurationError(f"cap must be positive, got {self.cap}")


@dataclass(frozen=True)
class ParetoDistribution:
    """Power-law multiples with minimum ``scale`` and tail index ``alpha``."""

    scale: float = 1.0
    alpha: float = 1.5
    cap: float = 200.0

    def __post_init__(self) -> None:
        if self.scale <= 0:
            raise ConfigurationError(f"scale must be positive, got {self.scale}")
        if self.alpha <= 0:
            raise ConfigurationError(f"alpha must be positive, got {self.alpha}")
        if self.cap <= 0:
            raise ConfigurationError(f"cap must be positive, got {self.cap}")


OutcomeDistribution = Union[DiscreteDistribution, LognormalDistribution, ParetoDistribution]

_DISTRIBUTIONS: dict[str, type] = {
    "discrete": DiscreteDistribution,
    "lognormal": LognormalDistribution,
    "pareto": ParetoDistribution,
}


def make_distribution(
    mode: str,
    params: Optional[Mapping[str, Any]] = None,
) -> OutcomeDistribution:
    """
    Build a distribution variant from its mode tag and parameter overrides.

    Parameters
    ----------
    mode:
        'discrete', 'lognormal' or 'pareto'.
    params:
        Overrides for the variant's fields (e.g. ``{"sdlog": 1.2}``).

    Raises
    ------
    ConfigurationError
        Unknown mode, unknown parameter name, or invalid parameter value.
    """
    try:
        cls = _DISTRIBUTIONS[mode]
    except KeyError:
        raise ConfigurationError(
            f"dist_mode must be one of {sorted(_DISTRIBUTIONS)}, got {mode!r}"
        ) from None

    params = dict(params or {})
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(params) - allowed)
    if unknown:
        raise ConfigurationError(
            f"unknown {mode} parameter(s) {unknown}; allowed: {sorted(allowed)}"
        )
    return cls(**params)


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

def _draw_discrete(
    dist: DiscreteDistribution, n: int, rng: np.random.Generator
) -> npt.NDArray[np.float64]:
    return rng.choice(
        np.asarray(dist.multiples, dtype=np.float64),
        size=n,
        replace=True,
        p=np.asarray(dist.probabilities, dtype=np.float64),
    )


def _draw_lognormal(
    dist: LognormalDistribution, n: int, rng: np.random.Generator
) -> npt.NDArray[np.float64]:
    x = rng.lognormal(mean=dist.meanlog, sigma=dist.sdlog, size=n)
    return np.minimum(x, dist.cap)


def _draw_pareto(
    dist: ParetoDistribution, n: int, rng: np.random.Generator
) -> npt.NDArray[np.float64]:
    # Inverse CDF: x = xm / u^(1/alpha), u on (0, 1]
    u = 1.0 - rng.random(size=n)
    x = dist.scale / u ** (1.0 / dist.alpha)
    return np.minimum(x, dist.cap)


def draw_multiples(
    n: int,
    distribution: OutcomeDistribution,
    rng: np.random.Generator,
) -> npt.NDArray[np.float64]:
    """
    Draw ``n`` independent, non-negative exit multiples.

    Parameters
    ----------
    n:
        Number of companies.
    distribution:
        One of the distribution variants defined in this module.
    rng:
        Random source; the only state consumed.

    Returns
    -------
    ndarray of shape (n,)
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    if isinstance(distribution, DiscreteDistribution):
        return _draw_discrete(distribution, n, rng)
    if isinstance(distribution, LognormalDistribution):
        return _draw_lognormal(distribution, n, rng)
    if isinstance(distribution, ParetoDistribution):
        return _draw_pareto(distribution, n, rng)
    raise TypeError(f"Unsupported distribution: {type(distribution).__name__}")
