"""Real-valued parameters and a container grouping scalar parameters."""

from __future__ import annotations

import math
import re
from typing import List, Sequence

# id[dimension minor] (lower,upper): v1 v2 ...
_WITH_MINOR = re.compile(r".*\[(.*) (.*)\].*\((.*),(.*)\): (.*) ")
_WITHOUT_MINOR = re.compile(r".*\[(.*)\].*\((.*),(.*)\): (.*) ")


def _format_state(
    name: str | None,
    dimension: int,
    minor_dimension: int,
    lower: float,
    upper: float,
    values: Sequence[float],
) -> str:
    shape = f"{dimension} {minor_dimension}" if minor_dimension > 0 else f"{dimension}"
    body = "".join(f"{float(v)!r} " for v in values)
    return f"{name}[{shape}] ({float(lower)!r},{float(upper)!r}): {body}"


def parse_state(text: str) -> tuple[int, int, float, float, List[float]]:
    """Parse ``id[dim minor] (lower,upper): v1 v2 `` state text.

    Returns ``(dimension, minor_dimension, lower, upper, values)``.
    """
    match = _WITH_MINOR.fullmatch(text)
    if match:
        dimension, minor, lower, upper, values = match.groups()
    else:
        match = _WITHOUT_MINOR.fullmatch(text)
        if not match:
            raise ValueError("parameter could not be parsed")
        dimension, lower, upper, values = match.groups()
        minor = "0"
    try:
        out_values = [float(v) for v in values.split(" ") if v]
        out = (int(dimension), int(minor), float(lower), float(upper), out_values)
    except ValueError as exc:
        raise ValueError(f"parameter could not be parsed: {exc}") from exc
    if len(out_values) != out[0]:
        raise ValueError("parameter dimension does not match the number of values")
    return out


class RealParameter:
    """Vector of real values with bounds, dirty flags and store/restore."""

    def __init__(
        self,
        values: float | Sequence[float],
        *,
        name: str | None = None,
        lower: float = -math.inf,
        upper: float = math.inf,
        minor_dimension: int = 0,
    ) -> None:
        if isinstance(values, (int, float)):
            values = [values]
        self._values = [float(v) for v in values]
        if not self._values:
            raise ValueError("a parameter needs at least one value")
        if lower > upper:
            raise ValueError("lower bound must not exceed upper bound")
        self.name = name
        self.lower = float(lower)
        self.upper = float(upper)
        self.minor_dimension = int(minor_dimension)
        self._stored = list(self._values)
        self._dirty = [False] * len(self._values)
        self.last_dirty = 0

    @property
    def dimension(self) -> int:
        return len(self._values)

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(self._values)

    def get_value(self, index: int = 0) -> float:
        return self._values[index]

    def set_value(self, value: float, index: int = 0) -> None:
        self._values[index] = float(value)
        self._dirty[index] = True
        self.last_dirty = index

    def set_bounds(self, lower: float, upper: float) -> None:
        self.lower = float(lower)
        self.upper = float(upper)

    def is_dirty(self, index: int = 0) -> bool:
        return self._dirty[index]

    def store(self) -> None:
        self._stored = list(self._values)

    def restore(self) -> None:
        self._values = list(self._stored)
        self._dirty = [False] * len(self._values)

    def accept(self) -> None:
        self._dirty = [False] * len(self._values)

    def scale(self, scale: float) -> int:
        scaled = [v * scale for v in self._values]
        if any(v < self.lower or v > self.upper for v in scaled):
            raise ValueError("parameter scaled out of range")
        for i, v in enumerate(scaled):
            self.set_value(v, i)
        return self.dimension

    def to_string(self) -> str:
        return _format_state(self.name, self.dimension, self.minor_dimension, self.lower, self.upper, self._values)

    def from_string(self, text: str) -> None:
        dimension, minor, lower, upper, values = parse_state(text)
        self.set_bounds(lower, upper)
        self.minor_dimension = minor
        self._values = values
        self._stored = list(values)
        self._dirty = [False] * dimension

    def copy(self) -> "RealParameter":
        out = RealParameter(
            self._values,
            name=self.name,
            lower=self.lower,
            upper=self.upper,
            minor_dimension=self.minor_dimension,
        )
        out._stored = list(self._stored)
        out._dirty = list(self._dirty)
        out.last_dirty = self.last_dirty
        return out

    def __repr__(self) -> str:
        return self.to_string()


class RealParameterContainer:
    """Several scalar parameters exposed as one vector-valued parameter.

    Useful when a prior or operator needs a vector (e.g. a Dirichlet prior on
    relative substitution rates) while each entry lives in its own parameter.
    Reads and writes are forwarded to the member parameters; the dimension is
    fixed by the member count.
    """

    def __init__(
        self,
        parameters: Sequence[RealParameter],
        *,
        name: str | None = None,
        lower: float | None = None,
        upper: float | None = None,
        minor_dimension: int = 0,
    ) -> None:
        if not parameters:
            raise ValueError("a parameter container needs at least one parameter")
        for parameter in parameters:
            if parameter.dimension != 1:
                raise ValueError(f"container members must have dimension 1: {parameter.name}")
        self.parameters: List[RealParameter] = list(parameters)
        self.name = name
        self.minor_dimension = int(minor_dimension)
        self.last_dirty = 0
        self.set_bounds(
            self.parameters[0].lower if lower is None else lower,
            self.parameters[0].upper if upper is None else upper,
        )

    @property
    def dimension(self) -> int:
        return len(self.parameters)

    def set_dimension(self, dimension: int) -> None:
        raise ValueError("changing dimension is not allowed in a parameter container")

    def set_minor_dimension(self, dimension: int) -> None:
        raise ValueError("changing dimension is not allowed in a parameter container")

    # Bounds are pushed down to every member.

    @property
    def lower(self) -> float:
        return self._lower

    @lower.setter
    def lower(self, value: float) -> None:
        self._lower = float(value)
        for parameter in self.parameters:
            parameter.lower = self._lower

    @property
    def upper(self) -> float:
        return self._upper

    @upper.setter
    def upper(self, value: float) -> None:
        self._upper = float(value)
        for parameter in self.parameters:
            parameter.upper = self._upper

    def set_bounds(self, lower: float, upper: float) -> None:
        self.lower = lower
        self.upper = upper

    # Values

    def get_value(self, index: int = 0) -> float:
        return self.parameters[index].get_value()

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(p.get_value() for p in self.parameters)

    def set_value(self, value: float, index: int = 0) -> None:
        self.parameters[index].set_value(value)
        self.last_dirty = index

    def is_dirty(self, index: int) -> bool:
        return self.parameters[index].is_dirty(0)

    def swap(self, left: int, right: int) -> None:
        tmp = self.get_value(left)
        self.set_value(self.get_value(right), left)
        self.set_value(tmp, right)

    def scale(self, scale: float) -> int:
        for i in range(self.dimension):
            value = self.get_value(i) * scale
            if value < self._lower or value > self._upper:
                raise ValueError("parameter scaled out of range")
            self.set_value(value, i)
        return self.dimension

    # Matrix view

    def get_matrix_value(self, i: int, j: int) -> float:
        return self.get_value(i * self.minor_dimension + j)

    def matrix_row(self, i: int) -> List[float]:
        return [self.get_value(i * self.minor_dimension + j) for j in range(self.minor_dimension)]

    def matrix_column(self, j: int) -> List[float]:
        n_rows = self.dimension // self.minor_dimension
        return [self.get_value(i * self.minor_dimension + j) for i in range(n_rows)]

    # State

    def store(self) -> None:
        for parameter in self.parameters:
            parameter.store()

    def restore(self) -> None:
        for parameter in self.parameters:
            parameter.restore()

    def copy(self) -> "RealParameterContainer":
        return RealParameterContainer(
            [p.copy() for p in self.parameters],
            name=self.name,
            lower=self._lower,
            upper=self._upper,
            minor_dimension=self.minor_dimension,
        )

    def assign_to(self, other: "RealParameterContainer") -> None:
        other.assign_from(self)

    def assign_from(self, other: "RealParameterContainer") -> None:
        if other.dimension != self.dimension:
            raise ValueError("cannot assign between containers of different dimension")
        self.name = other.name
        self.set_bounds(other.lower, other.upper)
        for mine, theirs in zip(self.parameters, other.parameters):
            mine.set_value(theirs.get_value())

    def to_string(self) -> str:
        return _format_state(self.name, self.dimension, self.minor_dimension, self._lower, self._upper, self.values)

    def from_string(self, text: str) -> None:
        dimension, minor, lower, upper, values = parse_state(text)
        if dimension != self.dimension:
            raise ValueError("changing dimension is not allowed in a parameter container")
        self.minor_dimension = minor
        self.set_bounds(lower, upper)
        for parameter, value in zip(self.parameters, values):
            parameter.set_value(value)

    def log_header(self) -> str:
        return "".join(f"{p.name}\t" for p in self.parameters)

    def log_row(self) -> str:
        return "".join(f"{v!r}\t" for v in self.values)

    def __repr__(self) -> str:
        return self.to_string()
