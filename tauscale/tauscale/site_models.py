"""Discretised among-site rate heterogeneity (Weibull or Gamma)."""

from __future__ import annotations

from enum import Enum

import numpy as np
from scipy.stats import gamma

from .parameters import RealParameter


class RateDistribution(Enum):
    WEIBULL = "weibull"
    GAMMA = "gamma"


def _midpoint_quantiles(n_categories: int) -> np.ndarray:
    return (2.0 * np.arange(n_categories) + 1.0) / (2.0 * n_categories)


def weibull_category_rates(shape: float, n_categories: int) -> np.ndarray:
    """Unnormalised Weibull rates at the category midpoints."""
    q = _midpoint_quantiles(n_categories)
    return np.power(-np.log(1.0 - q), 1.0 / shape)


def gamma_category_rates(shape: float, n_categories: int) -> np.ndarray:
    """Unnormalised mean-one Gamma rates at the category midpoints."""
    q = _midpoint_quantiles(n_categories)
    return gamma.ppf(q, a=shape, scale=1.0 / shape)


_RATE_FUNCTIONS = {
    RateDistribution.WEIBULL: weibull_category_rates,
    RateDistribution.GAMMA: gamma_category_rates,
}


def category_rates(
    distribution: RateDistribution,
    shape: float | None,
    gamma_category_count: int,
    proportion_invariant: float = 0.0,
    *,
    invariant_category: bool = True,
) -> tuple[np.ndarray, np.ndarray]:
    """Rates and proportions for every site category.

    When ``invariant_category`` holds and ``proportion_invariant > 0`` the
    first category is the invariant one (rate 0). Variable-category rates are
    scaled so the proportion-weighted mean rate is 1.
    """
    if gamma_category_count < 1:
        raise ValueError("gamma_category_count must be >= 1")
    if not (0.0 <= proportion_invariant < 1.0):
        raise ValueError("proportion_invariant must be in [0, 1)")
    if shape is not None and shape <= 0.0:
        raise ValueError("shape must be > 0")

    has_invariant = invariant_category and proportion_invariant > 0.0
    offset = 1 if has_invariant else 0
    prop_variable = 1.0 - proportion_invariant

    if shape is None or gamma_category_count == 1:
        rates = np.zeros(offset + 1)
        proportions = np.zeros(offset + 1)
        rates[offset] = 1.0 / prop_variable
        proportions[offset] = prop_variable
    else:
        rates = np.zeros(offset + gamma_category_count)
        proportions = np.zeros(offset + gamma_category_count)
        raw = _RATE_FUNCTIONS[distribution](float(shape), gamma_category_count)
        mean = prop_variable * float(np.mean(raw))
        rates[offset:] = raw / mean
        proportions[offset:] = prop_variable / gamma_category_count

    if has_invariant:
        rates[0] = 0.0
        proportions[0] = proportion_invariant
    return rates, proportions


def _value(param: float | RealParameter | None) -> float | None:
    if isinstance(param, RealParameter):
        return param.get_value()
    return None if param is None else float(param)


class SiteModel:
    """Site categories for a Weibull or Gamma rate model.

    `shape` and `proportion_invariant` may be plain floats or parameters; with
    parameters the categories are recomputed whenever their values change.
    """

    def __init__(
        self,
        gamma_category_count: int = 4,
        shape: float | RealParameter | None = 1.0,
        proportion_invariant: float | RealParameter = 0.0,
        distribution: RateDistribution | str = RateDistribution.WEIBULL,
    ) -> None:
        if isinstance(distribution, str):
            try:
                distribution = RateDistribution(distribution.lower())
            except ValueError as exc:
                choices = {d.value for d in RateDistribution}
                raise ValueError(f"distribution must be one of {choices}") from exc
        self.distribution = distribution
        self.gamma_category_count = int(gamma_category_count)
        self.shape = shape
        self.proportion_invariant = proportion_invariant
        self._cache_key: tuple | None = None
        self._rates = np.zeros(0)
        self._proportions = np.zeros(0)
        self._refresh()

    @property
    def has_invariant_category(self) -> bool:
        return (_value(self.proportion_invariant) or 0.0) > 0.0

    @property
    def category_count(self) -> int:
        return len(self.category_rates())

    def _refresh(self) -> None:
        key = (_value(self.shape), _value(self.proportion_invariant))
        if key == self._cache_key:
            return
        shape, pinv = key
        self._rates, self._proportions = category_rates(
            self.distribution,
            shape,
            self.gamma_category_count,
            pinv or 0.0,
        )
        self._cache_key = key

    def category_rates(self) -> np.ndarray:
        self._refresh()
        return self._rates.copy()

    def category_proportions(self) -> np.ndarray:
        self._refresh()
        return self._proportions.copy()

    def mean_rate(self) -> float:
        return float(np.dot(self.category_rates(), self.category_proportions()))
