"""Evaluate strategy profiles: reach probabilities, game value, exploitability.

Profiles are {infoset_key: {action: prob}} as produced by the strategy
extractor. Info sets missing from a profile play uniformly.

Values here are computed directly from terminal utilities for a fixed
player, so they do not depend on the walker's sign conventions and can
be used to check it.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from cfr.extractor import StrategyProfile
from game_interface import Deal, GameRules, terminal_utility


def _action_probs(game: GameRules, profile: StrategyProfile,
                  deal: Deal, history: str) -> List[Tuple[str, float]]:
    actions = game.legal_actions(history)
    probs = profile.get(game.infoset_key(deal, history), {})
    uniform = 1.0 / len(actions)
    return [(a, probs.get(a, uniform)) for a in actions]


def reach_probabilities(
    game: GameRules, profile: StrategyProfile, deal: Deal
) -> Dict[str, Tuple[float, float]]:
    """Per-player reach probability of every history for one deal."""
    reaches: Dict[str, Tuple[float, float]] = {}

    def visit(history: str, reach_p0: float, reach_p1: float) -> None:
        reaches[history] = (reach_p0, reach_p1)
        if game.is_terminal(history):
            return
        if game.is_round_end(history):
            visit(history + game.ROUND_SEPARATOR, reach_p0, reach_p1)
            return
        player = game.active_player(history)
        for action, p in _action_probs(game, profile, deal, history):
            if player == 0:
                visit(history + action, reach_p0 * p, reach_p1)
            else:
                visit(history + action, reach_p0, reach_p1 * p)

    visit("", 1.0, 1.0)
    return reaches


def expected_value(game: GameRules, profile: StrategyProfile, player: int = 0) -> float:
    """Expected utility for `player` when both players follow `profile`."""

    def value(deal: Deal, history: str) -> float:
        if game.is_terminal(history):
            return terminal_utility(game, deal, history, player)
        if game.is_round_end(history):
            return value(deal, history + game.ROUND_SEPARATOR)
        return sum(p * value(deal, history + a)
                   for a, p in _action_probs(game, profile, deal, history))

    deals = game.deals()
    return sum(value(deal, "") for deal in deals) / len(deals)


def best_response_value(game: GameRules, profile: StrategyProfile, br_player: int) -> float:
    """Value of best response for br_player against the profile."""
    deals = game.deals()
    chance = 1.0 / len(deals)

    state_reach: Dict[Tuple[int, str], float] = {}
    infoset_states: Dict[str, List[Tuple[int, str]]] = {}

    def collect(d: int, history: str, reach_opp: float) -> None:
        if game.is_terminal(history):
            return
        if game.is_round_end(history):
            collect(d, history + game.ROUND_SEPARATOR, reach_opp)
            return
        deal = deals[d]
        if game.active_player(history) == br_player:
            state_reach[(d, history)] = reach_opp
            key = game.infoset_key(deal, history)
            infoset_states.setdefault(key, []).append((d, history))
            for a in game.legal_actions(history):
                collect(d, history + a, reach_opp)
        else:
            for a, p in _action_probs(game, profile, deal, history):
                collect(d, history + a, reach_opp * p)

    for d in range(len(deals)):
        collect(d, "", chance)

    value_cache: Dict[Tuple[int, str], float] = {}
    action_cache: Dict[str, str] = {}

    def best_action(key: str) -> str:
        if key in action_cache:
            return action_cache[key]
        states = infoset_states[key]
        actions = game.legal_actions(states[0][1])
        totals = [0.0] * len(actions)
        for d, history in states:
            for idx, a in enumerate(actions):
                totals[idx] += state_reach[(d, history)] * state_value(d, history + a)
        best_idx = max(range(len(actions)), key=lambda i: totals[i])
        action_cache[key] = actions[best_idx]
        return actions[best_idx]

    def state_value(d: int, history: str) -> float:
        if (d, history) in value_cache:
            return value_cache[(d, history)]
        deal = deals[d]
        if game.is_terminal(history):
            v = terminal_utility(game, deal, history, br_player)
        elif game.is_round_end(history):
            v = state_value(d, history + game.ROUND_SEPARATOR)
        elif game.active_player(history) == br_player:
            a = best_action(game.infoset_key(deal, history))
            v = state_value(d, history + a)
        else:
            v = sum(p * state_value(d, history + a)
                    for a, p in _action_probs(game, profile, deal, history))
        value_cache[(d, history)] = v
        return v

    return sum(chance * state_value(d, "") for d in range(len(deals)))


def exploitability(game: GameRules, profile: StrategyProfile) -> float:
    """Mean best-response gain against the profile; 0 at a Nash equilibrium."""
    br0 = best_response_value(game, profile, 0)
    br1 = best_response_value(game, profile, 1)
    return 0.5 * (br0 + br1)
