#!/usr/bin/env python3
"""Run Kuhn Poker CFR and display the equilibrium strategy.

Usage:
    python3 run_kuhn.py                          # 500K vanilla CFR iterations
    python3 run_kuhn.py 100000 --mode full       # every deal each iteration
    python3 run_kuhn.py 100000 --mode sampled --seed 0
    python3 run_kuhn.py 100000 --batch-size 64 --workers 4
"""

from __future__ import annotations

import argparse
import logging
import time

from cfr.config import add_config_arguments, config_from_args, validate_iterations
from cfr.errors import ConfigurationError
from cfr.trainer import CFRTrainer
from kuhn.game import KuhnPoker

KUHN_GAME_VALUE = -1.0 / 18.0


def print_separator(title=""):
    print(f"\n{'='*60}")
    if title:
        print(f"  {title}")
        print(f"{'='*60}")


def print_profile(profile):
    print(f"  {'Infoset':<10} {'Action probabilities'}")
    print(f"  {'-'*40}")
    for key in sorted(profile, key=lambda k: (len(k), k)):
        probs = ", ".join(f"{a}: {p:.5f}" for a, p in profile[key].items())
        print(f"  {key:<10} {probs}")


def print_bet_frequencies(profile):
    """Opening bet frequencies, when both the J and K opening info sets exist."""
    j_open = profile.get("J|")
    k_open = profile.get("K|")
    if j_open is None or k_open is None:
        return
    j_bet = j_open["b"]
    k_bet = k_open["b"]
    print(f"\n  Bet frequency with J: {j_bet:.5f} (equilibrium range [0, 1/3])")
    if j_bet > 0:
        print(f"  Bet(K) / Bet(J): {k_bet / j_bet:.3f} (equilibrium ratio 3)")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Kuhn Poker CFR solver")
    add_config_arguments(parser, default_iterations=500000)
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

    print(f"Running Kuhn Poker {config.mode} CFR for {args.iterations} iterations")
    print(f"Known Nash game value: -1/18 = {KUHN_GAME_VALUE:.6f}")

    trainer = CFRTrainer(KuhnPoker(), config)
    t0 = time.time()
    result = trainer.train(args.iterations)
    elapsed = time.time() - t0

    print_separator("Results")
    print(f"  Average game value for first player: {result.average_utility:.5f}")
    print(f"  Information sets: {len(result.store)}")
    print(f"  Exploitability: {trainer.exploitability():.6f}")
    print(f"  Elapsed time: {elapsed:.1f}s")

    profile = trainer.average_strategy_profile()
    print_separator("Average Strategy Profile")
    print_profile(profile)
    print_bet_frequencies(profile)
    print()


if __name__ == "__main__":
    main()
