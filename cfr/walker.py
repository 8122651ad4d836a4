"""Recursive CFR tree walk over one deal.

A walk reads a frozen view of the info set store and returns the
root utility plus the regret/strategy deltas for every decision node
it updated. It never writes to the store: the trainer commits the
deltas once the walk has finished, so walks that share a view cannot
interfere with each other.

Utilities are always relative to the player to act at the history
being evaluated, so a child's value is negated on the way up.

Variants:
- vanilla: every action of every player is explored and updated
- pruned: subtrees where both players' reach is exactly zero are skipped
- external sampling: only the updating player's nodes are explored and
  updated; the other player's action is sampled from their current
  strategy
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

import torch

from cfr.infoset import InfoSet, Updates, add_update, lookup_strategy
from game_interface import Deal, GameRules

Reach = Tuple[float, float]


@dataclass
class WalkResult:
    utility: float
    updates: Updates


def round_boundary_sign(game: GameRules, history: str) -> float:
    """Sign applied to the next round's value at a round boundary.

    The parent negates whatever we return, so it expects a value
    relative to the opponent of the player who closed the round. The
    next round is evaluated relative to its first mover.
    """
    closer = game.active_player(history[:-1])
    expected = 1 - closer
    first_mover = game.active_player(history + game.ROUND_SEPARATOR)
    return 1.0 if expected == first_mover else -1.0


def sample_action_index(probs: List[float], rng: torch.Generator) -> int:
    """Sample an action index from probabilities."""
    r = torch.rand(1, generator=rng).item()
    cumulative = 0.0
    for i, p in enumerate(probs):
        cumulative += p
        if r < cumulative:
            return i
    return len(probs) - 1


class TreeWalker:
    """CFR traversal of a single deal's game tree."""

    def __init__(
        self,
        game: GameRules,
        view: Mapping[str, InfoSet],
        prune: bool = False,
        updating_player: Optional[int] = None,
        rng: Optional[torch.Generator] = None,
    ) -> None:
        if updating_player is not None and rng is None:
            raise ValueError("External sampling needs a random generator")
        self.game = game
        self.view = view
        self.prune = prune
        self.updating_player = updating_player
        self.rng = rng

    def walk(self, deal: Deal) -> WalkResult:
        """Walk the tree for `deal` from the root.

        The update map only leaves this method if the whole walk
        succeeded.
        """
        updates: Updates = {}
        utility = self._cfr(deal, "", (1.0, 1.0), updates)
        return WalkResult(utility=utility, updates=updates)

    def _cfr(self, deal: Deal, history: str, reach: Reach, updates: Updates) -> float:
        game = self.game

        if game.is_terminal(history):
            return float(game.payoff(deal, history))

        if game.is_round_end(history):
            sign = round_boundary_sign(game, history)
            return sign * self._cfr(deal, history + game.ROUND_SEPARATOR, reach, updates)

        if self.prune and reach[0] == 0.0 and reach[1] == 0.0:
            return 0.0

        player = game.active_player(history)
        actions = game.legal_actions(history)
        key = game.infoset_key(deal, history)
        strategy = lookup_strategy(self.view, key, len(actions))

        if self.updating_player is not None and player != self.updating_player:
            idx = sample_action_index(strategy, self.rng)
            return -self._cfr(deal, history + actions[idx], reach, updates)

        action_utils = []
        node_util = 0.0
        for idx, action in enumerate(actions):
            prob = strategy[idx]
            if player == 0:
                child_reach = (reach[0] * prob, reach[1])
            else:
                child_reach = (reach[0], reach[1] * prob)
            util = -self._cfr(deal, history + action, child_reach, updates)
            action_utils.append(util)
            node_util += prob * util

        opponent_reach = reach[1 - player]
        own_reach = reach[player]
        regret_delta = [opponent_reach * (u - node_util) for u in action_utils]
        strategy_delta = [own_reach * p for p in strategy]
        add_update(updates, key, regret_delta, strategy_delta)

        return node_util
