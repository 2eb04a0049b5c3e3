"""tauscale command-line interface."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .intervals import partition_intervals
from .site_models import RateDistribution, SiteModel
from .trees import read_time_trees


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tauscale",
        description="Inspect coalescent-interval partitions and site-rate categories.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    intervals = sub.add_parser(
        "intervals",
        help="Print interval boundaries and the nodes each interval moves.",
    )
    intervals.add_argument("input", help="Path to ultrametric time trees (Newick, one per line).")

    rates = sub.add_parser("rates", help="Print site-rate categories and proportions.")
    rates.add_argument(
        "--distribution",
        choices=[d.value for d in RateDistribution],
        default=RateDistribution.WEIBULL.value,
        help="Rate distribution discretised into categories.",
    )
    rates.add_argument("--categories", type=int, default=4, help="Number of variable-rate categories.")
    rates.add_argument("--shape", type=float, default=1.0, help="Shape parameter of the rate distribution.")
    rates.add_argument(
        "--pinv",
        type=float,
        default=0.0,
        help="Proportion of invariant sites; > 0 adds a zero-rate category.",
    )
    return parser


def _run_intervals(path: str) -> int:
    try:
        trees = read_time_trees(path)
    except Exception as exc:  # pragma: no cover - error path
        print(f"error: failed reading input trees: {exc}", file=sys.stderr)
        return 1
    if not trees:
        print("error: no trees loaded from input file", file=sys.stderr)
        return 1

    for number, tree in enumerate(trees, start=1):
        try:
            partition = partition_intervals(tree)
        except ValueError as exc:
            print(f"error: tree {number}: {exc}", file=sys.stderr)
            return 1
        times = partition.boundary_times(tree)
        print(f"tree {number}: {partition.interval_count} intervals")
        for i, nodes in enumerate(partition.node_sets):
            members = ",".join(str(n) for n in sorted(nodes))
            print(f"  [{i}] {times[i]:.6g} -> {times[i + 1]:.6g}\tnodes: {members}")
    return 0


def _run_rates(args: argparse.Namespace) -> int:
    if args.categories < 1:
        print("error: --categories must be >= 1", file=sys.stderr)
        return 2
    if args.shape <= 0:
        print("error: --shape must be > 0", file=sys.stderr)
        return 2
    if args.pinv < 0 or args.pinv >= 1:
        print("error: --pinv must be in [0, 1)", file=sys.stderr)
        return 2

    model = SiteModel(
        gamma_category_count=args.categories,
        shape=args.shape,
        proportion_invariant=args.pinv,
        distribution=args.distribution,
    )
    print("category\trate\tproportion")
    for i, (rate, prop) in enumerate(zip(model.category_rates(), model.category_proportions())):
        print(f"{i}\t{rate:.6f}\t{prop:.6f}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s: %(message)s")

    if args.command == "intervals":
        return _run_intervals(args.input)
    return _run_rates(args)
