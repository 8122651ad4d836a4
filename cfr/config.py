"""Training configuration and its command-line options."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional

from cfr.errors import ConfigurationError

MODES = ("vanilla", "full", "sampled")
EXECUTORS = ("thread", "process")


@dataclass
class CFRConfig:
    """Options for CFRTrainer.

    mode:
        "vanilla" walks one deal per iteration, cycling through the deals.
        "full" walks every deal each iteration against one snapshot.
        "sampled" is external-sampling MCCFR with a uniformly drawn deal
        and the updating player alternating with iteration parity.
    prune: skip subtrees that neither player can reach.
    batch_size: iterations sharing one store snapshot. 1 = serial CFR.
    workers: walks run concurrently within a batch. Does not change results.
    executor: "thread" or "process" pool for workers > 1.
    seed: master seed; iteration i samples with seed + i.
    log_every: iterations between progress log lines (0 disables).
    """
    mode: str = "vanilla"
    prune: bool = False
    batch_size: int = 1
    workers: int = 1
    executor: str = "thread"
    seed: Optional[int] = None
    log_every: int = 0

    def validate(self) -> None:
        if self.mode not in MODES:
            raise ConfigurationError(f"Unknown mode {self.mode!r}, expected one of {MODES}")
        if self.executor not in EXECUTORS:
            raise ConfigurationError(
                f"Unknown executor {self.executor!r}, expected one of {EXECUTORS}"
            )
        if not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")
        if self.log_every < 0:
            raise ConfigurationError(f"log_every must be >= 0, got {self.log_every}")
        if self.seed is not None and self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")


def validate_iterations(iterations) -> int:
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise ConfigurationError(f"Iteration count must be a positive integer, got {iterations!r}")
    return iterations


def add_config_arguments(parser: argparse.ArgumentParser, default_iterations: int) -> None:
    parser.add_argument("iterations", type=int, nargs="?", default=default_iterations,
                        help="CFR iterations")
    parser.add_argument("--mode", choices=MODES, default="vanilla",
                        help="Tree walk mode")
    parser.add_argument("--prune", action="store_true",
                        help="Skip subtrees with zero reach for both players")
    parser.add_argument("--batch-size", type=int, default=1,
                        help="Iterations sharing one store snapshot")
    parser.add_argument("--workers", type=int, default=1,
                        help="Concurrent walks per batch")
    parser.add_argument("--executor", choices=EXECUTORS, default="thread",
                        help="Pool used when --workers > 1")
    parser.add_argument("--seed", type=int, default=None,
                        help="Master random seed")
    parser.add_argument("--verbose", action="store_true",
                        help="Log training progress")


def config_from_args(args: argparse.Namespace) -> CFRConfig:
    log_every = max(1, args.iterations // 10) if args.verbose else 0
    return CFRConfig(
        mode=args.mode,
        prune=args.prune,
        batch_size=args.batch_size,
        workers=args.workers,
        executor=args.executor,
        seed=args.seed,
        log_every=log_every,
    )
