"""Interval-scaling node-height operator and its auto-tuning."""

from __future__ import annotations

import logging
import math

import numpy as np

from .config import TauScaleConfig
from .intervals import IntervalPartition, partition_intervals
from .schedule import OperatorSchedule
from .trees import TimeTree

logger = logging.getLogger(__name__)

DEFAULT_TARGET_ACCEPTANCE = 0.234
_SUGGEST_BELOW = 0.10
_SUGGEST_ABOVE = 0.40


def _format_scale(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text if text else "0"


class TauScaleOperator:
    """Scale one intercoalescent interval, or every node height above a node.

    With ``one_interval_only`` (the default) an interval is picked at random
    and its duration multiplied by the drawn scale; every node above it is
    shifted by the same amount so the other intervals keep their durations.
    Otherwise an internal node is picked and all node heights at or above it
    are multiplied by the scale.

    The host engine owns accept/reject. `proposal` mutates heights in place and
    the host restores them (``TimeTree.restore``) when it rejects.
    """

    def __init__(
        self,
        tree: TimeTree,
        *,
        scale_factor: float = 1.0,
        one_interval_only: bool = True,
        optimise: bool = True,
        upper: float = 1.0 - 1e-8,
        lower: float = 1e-8,
        rng: np.random.Generator | None = None,
        schedule: OperatorSchedule | None = None,
        target_acceptance_probability: float = DEFAULT_TARGET_ACCEPTANCE,
    ) -> None:
        config = TauScaleConfig(
            scale_factor=scale_factor,
            one_interval_only=one_interval_only,
            optimise=optimise,
            upper=upper,
            lower=lower,
        )
        if not (0.0 < target_acceptance_probability < 1.0):
            raise ValueError("target_acceptance_probability must be in (0, 1)")
        self.tree = tree
        self.one_interval_only = config.one_interval_only
        self.optimise = config.optimise
        self.upper = config.upper
        self.lower = config.lower
        self.rng = rng if rng is not None else np.random.default_rng(0)
        self.schedule = schedule if schedule is not None else OperatorSchedule()
        self._target = float(target_acceptance_probability)
        self.n_accepted = 0
        self.n_rejected = 0
        self._scale_factor = 0.0
        self.scale_factor = config.scale_factor
        self.partition: IntervalPartition | None = None
        self.reinitialize()

    @classmethod
    def from_config(
        cls,
        tree: TimeTree,
        config: TauScaleConfig,
        **kwargs,
    ) -> "TauScaleOperator":
        return cls(tree, **config.as_kwargs(), **kwargs)

    def reinitialize(self) -> None:
        """Rebuild the interval partition from the tree's current heights.

        Call after any topology change; height-only proposals keep it valid.
        """
        if self.one_interval_only:
            self.partition = partition_intervals(self.tree)
            logger.debug("interval mode over %d intervals", self.partition.interval_count)
        else:
            self.partition = None

    # Scale factor

    @property
    def scale_factor(self) -> float:
        return self._scale_factor

    @scale_factor.setter
    def scale_factor(self, value: float) -> None:
        self._scale_factor = max(min(float(value), self.upper), self.lower)

    @property
    def target_acceptance_probability(self) -> float:
        return self._target

    def get_scaler(self) -> float:
        f = self._scale_factor
        return f + float(self.rng.random()) * ((1.0 / f) - f)

    # Proposal

    def proposal(self) -> float:
        """Mutate node heights and return the log Hastings ratio.

        ``-inf`` tells the host to reject outright.
        """
        scale = self.get_scaler()
        if self.one_interval_only:
            return self._scale_interval(scale)
        return self._scale_above_node(scale)

    def _scale_interval(self, scale: float) -> float:
        partition = self.partition
        index = int(self.rng.integers(partition.interval_count))
        old_interval = partition.duration(self.tree, index)
        increment = scale * old_interval - old_interval
        for node_nr in partition.node_sets[index]:
            node = self.tree.node(node_nr)
            node.height = node.height + increment
        return -math.log(scale)

    def _scale_above_node(self, scale: float) -> float:
        tree = self.tree
        n_leaves = tree.leaf_node_count()
        node = tree.node(n_leaves + int(self.rng.integers(tree.internal_node_count())))
        node_height = node.height
        new_height = node_height * scale
        if new_height < max(node.left.height, node.right.height):
            return -math.inf

        heights = tree.heights()
        internal = heights[n_leaves:]
        moving = internal >= node_height
        # Unmoved nodes must stay below the scaled node, or the reverse move
        # would pick up a different node set.
        if np.any(internal[~moving] >= new_height):
            return -math.inf

        moved = np.flatnonzero(moving) + n_leaves
        for idx in moved:
            tree.node(int(idx)).height = heights[idx] * scale
        return math.log(scale) * (len(moved) - 2)

    # Acceptance bookkeeping

    def accept(self) -> None:
        self.n_accepted += 1

    def reject(self) -> None:
        self.n_rejected += 1

    @property
    def acceptance_probability(self) -> float | None:
        total = self.n_accepted + self.n_rejected
        if total == 0:
            return None
        return self.n_accepted / total

    # Tuning

    def optimize(self, log_alpha: float) -> None:
        """Move the scale factor toward the target acceptance rate."""
        if not self.optimise:
            return
        delta = self.schedule.calc_delta(self, log_alpha)
        delta += math.log(1.0 / self._scale_factor - 1.0)
        self.scale_factor = 1.0 / (math.exp(delta) + 1.0)
        logger.debug("tuned scale factor to %.6g (log_alpha=%.4g)", self._scale_factor, log_alpha)

    def get_performance_suggestion(self) -> str:
        prob = self.acceptance_probability
        if prob is None:
            return ""
        ratio = min(max(prob / self._target, 0.5), 2.0)
        suggested = self._scale_factor**ratio
        if prob < _SUGGEST_BELOW or prob > _SUGGEST_ABOVE:
            return f"Try setting scaleFactor to about {_format_scale(suggested)}"
        return ""
