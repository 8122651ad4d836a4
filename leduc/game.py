"""Leduc Hold'em game rules.

Leduc Hold'em uses a 6-card deck with 3 ranks (J, Q, K) and 2 copies per rank.
Players each ante 1 chip, receive one private card, then play two betting rounds:
- Round 1 (preflop): bet size = 2
- Round 2 (after a public board card is revealed): bet size = 4
Each round allows one bet and one raise.

Action encoding:
  'x' = check
  'b' = bet
  'r' = raise
  'c' = call
  'f' = fold
  'd' = deal the board card (round separator)

Hand ranking at showdown:
- Pair with board card beats any non-pair
- Otherwise higher rank wins
- Equal ranks = tie (split pot)
"""

from __future__ import annotations

from itertools import permutations
from typing import Dict, List, Tuple

from cfr.errors import MalformedHistoryError
from game_interface import GameRules

RANKS = [0, 1, 2]
RANK_TO_STR = {0: "J", 1: "Q", 2: "K"}
DECK = [rank for rank in RANKS for _ in (0, 1)]
ANTE = 1
ROUND_SEPARATOR = "d"

# Legal actions keyed by the last action token ("" = root).
LEGAL_ACTIONS: Dict[str, List[str]] = {
    "": ["x", "b"],
    "d": ["x", "b"],
    "x": ["x", "b"],
    "b": ["f", "c", "r"],
    "r": ["f", "c"],
}

# Round action strings that close a round, mapped to the chips (in bet
# units) the loser of that round put in.
ROUND_END_STAKES = {"xx": 0, "bc": 1, "xbc": 1, "brc": 2, "xbrc": 2}

# Folded round action strings, mapped to the folder's contribution.
FOLD_STAKES = {"bf": 0, "xbf": 0, "brf": 1, "xbrf": 1}

BET_SIZES = (2, 4)

LeducDeal = Tuple[int, int, int]


def split_rounds(history: str) -> List[str]:
    return history.split(ROUND_SEPARATOR)


class LeducPoker:
    """Leduc Hold'em rules.

    A deal is (card_p0, card_p1, board_card) as ranks.
    """

    NUM_PLAYERS = 2
    ROUND_SEPARATOR = ROUND_SEPARATOR

    def is_terminal(self, history: str) -> bool:
        rounds = split_rounds(history)
        last = rounds[-1]
        if last.endswith("f"):
            return True
        return len(rounds) == 2 and last in ROUND_END_STAKES

    def is_round_end(self, history: str) -> bool:
        rounds = split_rounds(history)
        return len(rounds) == 1 and rounds[0] in ROUND_END_STAKES

    def legal_actions(self, history: str) -> List[str]:
        try:
            return list(LEGAL_ACTIONS[history[-1:]])
        except KeyError:
            raise MalformedHistoryError(history) from None

    def active_player(self, history: str) -> int:
        # Player 0 opens every round.
        return len(split_rounds(history)[-1]) % 2

    def payoff(self, deal: LeducDeal, history: str) -> int:
        """Payoff for the player who would act next at a terminal history."""
        if not self.is_terminal(history):
            raise MalformedHistoryError(history, "not terminal")
        rounds = split_rounds(history)
        try:
            if len(rounds) == 1:
                return ANTE + BET_SIZES[0] * FOLD_STAKES[rounds[0]]
            pot = ANTE + BET_SIZES[0] * ROUND_END_STAKES[rounds[0]]
            last = rounds[1]
            if last.endswith("f"):
                return pot + BET_SIZES[1] * FOLD_STAKES[last]
            pot += BET_SIZES[1] * ROUND_END_STAKES[last]
        except KeyError:
            raise MalformedHistoryError(history, "unknown round") from None

        player = self.active_player(history)
        return pot * self._showdown_sign(deal, player)

    def _showdown_sign(self, deal: LeducDeal, player: int) -> int:
        """+1 if `player` wins the showdown, -1 if they lose, 0 on a tie."""
        board = deal[2]
        mine, theirs = deal[player], deal[1 - player]
        if mine == board:
            return 1
        if theirs == board:
            return -1
        if mine > theirs:
            return 1
        if mine < theirs:
            return -1
        return 0

    def deals(self) -> List[LeducDeal]:
        """All ordered (card_p0, card_p1, board) draws from the deck."""
        return [
            tuple(DECK[i] for i in idx)
            for idx in permutations(range(len(DECK)), 3)
        ]

    def infoset_key(self, deal: LeducDeal, history: str) -> str:
        rounds = split_rounds(history)
        card = deal[self.active_player(history)]
        board_str = RANK_TO_STR[deal[2]] if len(rounds) == 2 else "-"
        return f"{RANK_TO_STR[card]}{board_str}|{history}"

    def key_history(self, key: str) -> str:
        return key.split("|", 1)[1]


# Verify LeducPoker satisfies the GameRules protocol at import time
assert isinstance(LeducPoker(), GameRules), "LeducPoker must implement the GameRules protocol"
