"""Per-iteration step schedule used by operator auto-tuning."""

from __future__ import annotations

import math

TRANSFORMS = ("sqrt", "log", "none")


class OperatorSchedule:
    """Robbins-Monro step sizes that shrink with the number of trials.

    The step is centred on the operator's target acceptance probability, so
    its expectation vanishes once the operator accepts at the target rate.
    """

    def __init__(self, transform: str = "sqrt", auto_optimize_delay: int = 0) -> None:
        if transform not in TRANSFORMS:
            raise ValueError(f"transform must be one of {set(TRANSFORMS)}")
        if auto_optimize_delay < 0:
            raise ValueError("auto_optimize_delay must be >= 0")
        self.transform = transform
        self.auto_optimize_delay = int(auto_optimize_delay)

    def _damping(self, count: float) -> float:
        if self.transform == "sqrt":
            return math.sqrt(count)
        if self.transform == "log":
            # log(1) would divide by zero on the first trial.
            return math.log(count + 1.0)
        return 1.0

    def calc_delta(self, operator, log_alpha: float) -> float:
        target = operator.target_acceptance_probability
        count = operator.n_accepted + operator.n_rejected + 1.0
        alpha = math.exp(min(float(log_alpha), 0.0))
        delta = (alpha - target) / self._damping(count + self.auto_optimize_delay)
        if not math.isfinite(delta):
            return 0.0
        return delta
