#!/usr/bin/env python3
"""Generate simulated coalescent time trees for operator checks."""

from __future__ import annotations

import argparse
from pathlib import Path

import msprime


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--n-taxa", type=int, default=8)
    parser.add_argument("--n-trees", type=int, default=20)
    parser.add_argument("--population-size", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--output", required=True, help="Output Newick file path.")
    args = parser.parse_args()

    if args.n_taxa < 3:
        parser.error("--n-taxa must be >= 3")

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as handle:
        for ts in msprime.sim_ancestry(
            samples=args.n_taxa,
            ploidy=1,
            population_size=args.population_size,
            sequence_length=1,
            recombination_rate=0,
            num_replicates=args.n_trees,
            random_seed=args.seed,
        ):
            handle.write(ts.first().as_newick().rstrip() + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
