"""Validated options for the interval-scaling operator."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

# Framework attribute names mapped to keyword names.
_OPTION_ALIASES = {
    "scaleFactor": "scale_factor",
    "oneIntervalOnly": "one_interval_only",
    "optimise": "optimise",
    "upper": "upper",
    "lower": "lower",
}


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class TauScaleConfig:
    scale_factor: float = 1.0
    one_interval_only: bool = True
    optimise: bool = True
    upper: float = 1.0 - 1e-8
    lower: float = 1e-8

    def __post_init__(self) -> None:
        if not (0.0 < self.lower < self.upper < 1.0):
            raise ValueError("scale factor bounds must satisfy 0 < lower < upper < 1")
        if not self.scale_factor > 0.0:
            raise ValueError("scaleFactor must be > 0")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "TauScaleConfig":
        """Build a config from framework-style or snake_case option names."""
        known = set(_OPTION_ALIASES) | set(_OPTION_ALIASES.values())
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"unknown operator options: {unknown}")
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in kwargs:
                raise ValueError(f"option given twice: {name}")
            if name in {"one_interval_only", "optimise"}:
                kwargs[name] = _as_bool(key, value)
            else:
                kwargs[name] = float(value)
        return cls(**kwargs)

    def as_kwargs(self) -> dict[str, Any]:
        return asdict(self)
