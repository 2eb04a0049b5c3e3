"""Tests for the tuning schedule and operator configuration."""

from __future__ import annotations

import math

import pytest

from tauscale.config import TauScaleConfig
from tauscale.schedule import OperatorSchedule


class _Counts:
    def __init__(self, accepted: int, rejected: int, target: float = 0.25) -> None:
        self.n_accepted = accepted
        self.n_rejected = rejected
        self.target_acceptance_probability = target


def test_calc_delta_is_zero_at_target():
    schedule = OperatorSchedule()
    assert schedule.calc_delta(_Counts(0, 0), math.log(0.25)) == pytest.approx(0.0)


def test_calc_delta_sign_and_decay():
    schedule = OperatorSchedule()
    early = schedule.calc_delta(_Counts(0, 0), 0.0)
    late = schedule.calc_delta(_Counts(50, 49), 0.0)
    assert early == pytest.approx(0.75)
    assert late == pytest.approx(0.75 / 10.0)
    assert schedule.calc_delta(_Counts(0, 0), -math.inf) == pytest.approx(-0.25)


def test_calc_delta_caps_log_alpha_at_zero():
    schedule = OperatorSchedule(transform="none")
    assert schedule.calc_delta(_Counts(5, 5), 3.0) == pytest.approx(0.75)


def test_calc_delta_ignores_nan_log_alpha():
    schedule = OperatorSchedule()
    assert schedule.calc_delta(_Counts(3, 4), float("nan")) == 0.0


def test_log_transform_and_delay():
    schedule = OperatorSchedule(transform="log", auto_optimize_delay=10)
    delta = schedule.calc_delta(_Counts(0, 0), 0.0)
    assert delta == pytest.approx(0.75 / math.log(12.0))


def test_schedule_rejects_unknown_transform():
    with pytest.raises(ValueError, match="transform"):
        OperatorSchedule(transform="cubic")
    with pytest.raises(ValueError):
        OperatorSchedule(auto_optimize_delay=-1)


def test_config_defaults():
    config = TauScaleConfig()
    assert config.scale_factor == 1.0
    assert config.one_interval_only is True
    assert config.optimise is True
    assert config.upper == pytest.approx(1.0 - 1e-8)
    assert config.lower == pytest.approx(1e-8)


def test_config_from_mapping_accepts_both_spellings():
    a = TauScaleConfig.from_mapping({"scaleFactor": 0.3, "oneIntervalOnly": "true", "upper": "0.9"})
    b = TauScaleConfig.from_mapping({"scale_factor": 0.3, "one_interval_only": True, "upper": 0.9})
    assert a == b


@pytest.mark.parametrize(
    "options",
    [
        {"scaleFactor": 0.3, "scale_factor": 0.4},
        {"windowSize": 1.0},
        {"lower": 0.5, "upper": 0.4},
        {"upper": 1.5},
        {"scaleFactor": 0.0},
        {"optimise": "maybe"},
    ],
)
def test_config_rejects_invalid_options(options):
    with pytest.raises(ValueError):
        TauScaleConfig.from_mapping(options)
