"""Read strategies out of a trained info set store.

Each probability is labeled with its action by re-deriving the legal
actions from the public history stored in the key.
"""

from __future__ import annotations

from typing import Dict

from cfr.errors import InfoSetArityMismatch
from cfr.infoset import InfoSet, InfoSetStore
from game_interface import GameRules

StrategyProfile = Dict[str, Dict[str, float]]


def _label(game: GameRules, key: str, infoset: InfoSet, probs) -> Dict[str, float]:
    actions = game.legal_actions(game.key_history(key))
    if len(actions) != infoset.num_actions:
        raise InfoSetArityMismatch(key, infoset.num_actions, len(actions))
    return {action: probs[idx] for idx, action in enumerate(actions)}


def average_strategy_profile(game: GameRules, store: InfoSetStore) -> StrategyProfile:
    """Return the average strategy as {infoset_key: {action: prob}}."""
    return {
        key: _label(game, key, infoset, infoset.average_strategy())
        for key, infoset in sorted(store.items())
    }


def current_strategy_profile(game: GameRules, store: InfoSetStore) -> StrategyProfile:
    """Return the regret-matching strategy as {infoset_key: {action: prob}}."""
    return {
        key: _label(game, key, infoset, infoset.current_strategy())
        for key, infoset in sorted(store.items())
    }
