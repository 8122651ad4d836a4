#!/usr/bin/env python3
"""Leduc Hold'em CFR solver.

Usage:
    python3 run_leduc.py                      # 50K vanilla CFR iterations
    python3 run_leduc.py 5000 --mode full     # every deal each iteration
    python3 run_leduc.py 200000 --mode sampled --seed 7
"""

from __future__ import annotations

import argparse
import logging
import time

from cfr.config import add_config_arguments, config_from_args, validate_iterations
from cfr.errors import ConfigurationError
from cfr.trainer import CFRTrainer
from leduc.game import LeducPoker


def main(argv=None):
    parser = argparse.ArgumentParser(description="Leduc Hold'em CFR solver")
    add_config_arguments(parser, default_iterations=50000)
    args = parser.parse_args(argv)
    try:
        validate_iterations(args.iterations)
        config = config_from_args(args)
        config.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))
    if args.verbose:
        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")

    game = LeducPoker()
    print(f"Leduc Hold'em: {len(game.deals())} deals")
    print(f"Running {config.mode} CFR for {args.iterations} iterations...")

    trainer = CFRTrainer(game, config)
    t0 = time.time()
    result = trainer.train(args.iterations)
    elapsed = time.time() - t0

    print(f"Completed in {elapsed:.1f}s")
    print(f"Average game value for first player: {result.average_utility:.5f}")
    print(f"Information sets: {len(result.store)}")
    print(f"Exploitability: {trainer.exploitability():.6f}")

    print("\n=== Average Strategy ===")
    profile = trainer.average_strategy_profile()
    for key, probs in profile.items():
        prob_str = ", ".join(f"{a}: {p:.5f}" for a, p in probs.items())
        print(f"  {key:<12} {prob_str}")


if __name__ == "__main__":
    main()
