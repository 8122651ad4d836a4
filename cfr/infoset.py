"""Information sets, the info set store, and regret matching.

The store maps info set keys to accumulated regret and strategy sums.
It only ever grows, and entries only ever change by addition, so
updates from independent tree walks can be merged in any order.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from cfr.errors import InfoSetArityMismatch

# key -> (regret delta, strategy delta)
Updates = Dict[str, Tuple[List[float], List[float]]]


def normalize(values: List[float]) -> List[float]:
    """Scale non-negative values to sum to 1, or uniform if they sum to 0."""
    if any(v < 0.0 for v in values):
        raise ValueError(f"Cannot normalize negative values: {values}")
    total = sum(values)
    if total > 0:
        return [v / total for v in values]
    n = len(values)
    return [1.0 / n] * n


class InfoSet:
    """Tracks regrets and cumulative strategy for one information set."""

    __slots__ = ("regret_sum", "strategy_sum")

    def __init__(self, num_actions: int) -> None:
        self.regret_sum = [0.0] * num_actions
        self.strategy_sum = [0.0] * num_actions

    @property
    def num_actions(self) -> int:
        return len(self.regret_sum)

    def current_strategy(self) -> List[float]:
        """Regret-matching: normalize positive regrets."""
        return normalize([max(r, 0.0) for r in self.regret_sum])

    def average_strategy(self) -> List[float]:
        """Cumulative strategy average (the converged solution)."""
        return normalize(self.strategy_sum)

    def accumulate(self, regret_delta: List[float], strategy_delta: List[float]) -> None:
        for idx, delta in enumerate(regret_delta):
            self.regret_sum[idx] += delta
        for idx, delta in enumerate(strategy_delta):
            self.strategy_sum[idx] += delta

    def copy(self) -> "InfoSet":
        clone = InfoSet(0)
        clone.regret_sum = list(self.regret_sum)
        clone.strategy_sum = list(self.strategy_sum)
        return clone

    def __repr__(self) -> str:
        return f"InfoSet(regret_sum={self.regret_sum}, strategy_sum={self.strategy_sum})"


def uniform_strategy(num_actions: int) -> List[float]:
    return [1.0 / num_actions] * num_actions


def lookup_strategy(view: Mapping[str, InfoSet], key: str, num_actions: int) -> List[float]:
    """Current strategy at `key` without creating it.

    A key that has never been committed behaves as a zero entry, which
    regret-matches to the uniform strategy.
    """
    infoset = view.get(key)
    if infoset is None:
        return uniform_strategy(num_actions)
    if infoset.num_actions != num_actions:
        raise InfoSetArityMismatch(key, infoset.num_actions, num_actions)
    return infoset.current_strategy()


def add_update(updates: Updates, key: str,
               regret_delta: List[float], strategy_delta: List[float]) -> None:
    """Add one node's deltas into an update map, summing repeated keys."""
    existing = updates.get(key)
    if existing is None:
        updates[key] = (list(regret_delta), list(strategy_delta))
        return
    regrets, strategy = existing
    if len(regrets) != len(regret_delta):
        raise InfoSetArityMismatch(key, len(regrets), len(regret_delta))
    for idx, delta in enumerate(regret_delta):
        regrets[idx] += delta
    for idx, delta in enumerate(strategy_delta):
        strategy[idx] += delta


def merge_updates(batches: Iterable[Updates]) -> Updates:
    """Vector-sum several walks' updates, grouped by key."""
    merged: Updates = {}
    for updates in batches:
        for key, (regret_delta, strategy_delta) in updates.items():
            add_update(merged, key, regret_delta, strategy_delta)
    return merged


class InfoSetStore:
    """Mapping from info set key to InfoSet for one training run."""

    def __init__(self) -> None:
        self._infosets: Dict[str, InfoSet] = {}

    def get_or_create(self, key: str, num_actions: int) -> InfoSet:
        infoset = self._infosets.get(key)
        if infoset is None:
            infoset = InfoSet(num_actions)
            self._infosets[key] = infoset
        elif infoset.num_actions != num_actions:
            raise InfoSetArityMismatch(key, infoset.num_actions, num_actions)
        return infoset

    def commit(self, updates: Updates) -> None:
        """Fold a walk's (or a merged batch's) deltas into the store.

        Widths are checked for every key before anything is applied.
        """
        for key, (regret_delta, _) in updates.items():
            infoset = self._infosets.get(key)
            if infoset is not None and infoset.num_actions != len(regret_delta):
                raise InfoSetArityMismatch(key, infoset.num_actions, len(regret_delta))
        for key, (regret_delta, strategy_delta) in updates.items():
            self.get_or_create(key, len(regret_delta)).accumulate(regret_delta, strategy_delta)

    def view(self) -> Mapping[str, InfoSet]:
        """Read-only view for tree walks. Valid until the next commit."""
        return MappingProxyType(self._infosets)

    def snapshot(self) -> Dict[str, InfoSet]:
        """Deep copy, safe to ship to another process."""
        return {key: infoset.copy() for key, infoset in self._infosets.items()}

    def keys(self) -> List[str]:
        return list(self._infosets)

    def items(self) -> Iterator[Tuple[str, InfoSet]]:
        return iter(self._infosets.items())

    def __contains__(self, key: object) -> bool:
        return key in self._infosets

    def __getitem__(self, key: str) -> InfoSet:
        return self._infosets[key]

    def __len__(self) -> int:
        return len(self._infosets)
