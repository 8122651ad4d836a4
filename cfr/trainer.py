"""CFR trainer: drives iterations, walks deals, folds deltas into the store.

Iterations are grouped into batches of `batch_size`. Every walk in a
batch reads the same store view; once all of them have finished, their
deltas are merged by key and committed in one step, and only then does
the next batch start. With batch_size=1 this is ordinary serial CFR.

Walks within a batch can run on a thread or process pool. The pool
only changes how the batch is executed: results are merged in task
order, so a run is reproducible for a given seed regardless of the
number of workers.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Dict, List, Mapping, Optional, Sequence

import torch

from cfr.config import CFRConfig, validate_iterations
from cfr.evaluation import exploitability as profile_exploitability
from cfr.extractor import average_strategy_profile
from cfr.infoset import InfoSet, InfoSetStore, merge_updates
from cfr.walker import TreeWalker, WalkResult
from game_interface import Deal, GameRules

logger = logging.getLogger(__name__)

NUM_PLAYERS = 2


@dataclass(frozen=True)
class WalkTask:
    """One deal to walk within a batch.

    deal_index is None in sampled mode: the deal is drawn from the
    iteration's own generator inside the walk.
    """
    iteration: int
    deal_index: Optional[int]
    seed: int


@dataclass
class TrainingResult:
    average_utility: float
    store: InfoSetStore
    iterations: int
    deals_evaluated: int
    seed: int


def iteration_generator(seed: int, iteration: int) -> torch.Generator:
    """Independent generator for one iteration."""
    return torch.Generator(device="cpu").manual_seed(seed + iteration)


def run_walk(
    game: GameRules,
    deals: Sequence[Deal],
    view: Mapping[str, InfoSet],
    prune: bool,
    sampled: bool,
    task: WalkTask,
) -> WalkResult:
    """Walk one task against a frozen view. Module-level so it pickles."""
    if not sampled:
        walker = TreeWalker(game, view, prune=prune)
        return walker.walk(deals[task.deal_index])

    rng = iteration_generator(task.seed, task.iteration)
    deal_index = int(torch.randint(len(deals), (1,), generator=rng).item())
    walker = TreeWalker(
        game, view, prune=prune,
        updating_player=task.iteration % NUM_PLAYERS,
        rng=rng,
    )
    return walker.walk(deals[deal_index])


class CFRTrainer:
    """CFR trainer for any game implementing the GameRules protocol.

    Repeated calls to train() continue the same run: the store and the
    iteration counter carry over.
    """

    def __init__(self, game: GameRules, config: Optional[CFRConfig] = None) -> None:
        self.game = game
        self.config = config or CFRConfig()
        self.config.validate()
        self.store = InfoSetStore()
        self.deals: List[Deal] = list(game.deals())
        self.iteration = 0
        self.seed = self._master_seed()

    def _master_seed(self) -> int:
        if self.config.seed is not None:
            return self.config.seed
        return int(torch.randint(0, 2**31 - 1, (1,)).item())

    def _tasks(self, start: int, stop: int) -> List[WalkTask]:
        tasks = []
        for iteration in range(start, stop):
            if self.config.mode == "vanilla":
                tasks.append(WalkTask(iteration, iteration % len(self.deals), self.seed))
            elif self.config.mode == "full":
                tasks.extend(
                    WalkTask(iteration, idx, self.seed) for idx in range(len(self.deals))
                )
            else:
                tasks.append(WalkTask(iteration, None, self.seed))
        return tasks

    def _run_batch(self, tasks: List[WalkTask], executor: Optional[Executor]) -> List[WalkResult]:
        sampled = self.config.mode == "sampled"
        if executor is None:
            fn = partial(run_walk, self.game, self.deals, self.store.view(),
                         self.config.prune, sampled)
            return [fn(task) for task in tasks]

        if isinstance(executor, ProcessPoolExecutor):
            view: Mapping[str, InfoSet] = self.store.snapshot()
        else:
            view = self.store.view()
        fn = partial(run_walk, self.game, self.deals, view, self.config.prune, sampled)
        chunksize = max(1, len(tasks) // (self.config.workers * 4))
        # list() is the barrier: every walk finishes (or raises) before commit
        return list(executor.map(fn, tasks, chunksize=chunksize))

    def _make_executor(self) -> Optional[Executor]:
        if self.config.workers == 1:
            return None
        if self.config.executor == "process":
            return ProcessPoolExecutor(max_workers=self.config.workers)
        return ThreadPoolExecutor(max_workers=self.config.workers)

    def train(self, iterations: int) -> TrainingResult:
        """Run CFR for the given number of iterations."""
        validate_iterations(iterations)
        config = self.config
        logger.info(
            "Training %d iterations: mode=%s prune=%s batch_size=%d workers=%d seed=%d",
            iterations, config.mode, config.prune, config.batch_size,
            config.workers, self.seed,
        )

        t0 = time.perf_counter()
        total_utility = 0.0
        deals_evaluated = 0
        start = self.iteration
        stop = start + iterations
        next_log = start + config.log_every if config.log_every else None

        executor = self._make_executor()
        try:
            for batch_start in range(start, stop, config.batch_size):
                batch_stop = min(batch_start + config.batch_size, stop)
                results = self._run_batch(self._tasks(batch_start, batch_stop), executor)
                self.store.commit(merge_updates(r.updates for r in results))
                total_utility += sum(r.utility for r in results)
                deals_evaluated += len(results)
                self.iteration = batch_stop

                if next_log is not None and self.iteration >= next_log:
                    logger.info(
                        "Iteration %d/%d: average utility %.5f, %d info sets",
                        self.iteration - start, iterations,
                        total_utility / deals_evaluated, len(self.store),
                    )
                    while next_log <= self.iteration:
                        next_log += config.log_every
        finally:
            if executor is not None:
                executor.shutdown()

        average_utility = total_utility / deals_evaluated
        logger.info(
            "Finished %d iterations in %.1fs: average utility %.5f, %d info sets",
            iterations, time.perf_counter() - t0, average_utility, len(self.store),
        )
        return TrainingResult(
            average_utility=average_utility,
            store=self.store,
            iterations=iterations,
            deals_evaluated=deals_evaluated,
            seed=self.seed,
        )

    def average_strategy_profile(self) -> Dict[str, Dict[str, float]]:
        """Return the average strategy as {infoset_key: {action: prob}}."""
        return average_strategy_profile(self.game, self.store)

    def exploitability(self) -> float:
        """Exploitability of the current average strategy."""
        return profile_exploitability(self.game, self.average_strategy_profile())
