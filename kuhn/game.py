"""Kuhn Poker game rules.

Kuhn Poker is a simplified poker game with 3 cards (J, Q, K) and 2 players.
Each player antes 1 chip, receives one card, then can check/bet in a single round.

Action encoding:
  'c' = check/call
  'b' = bet
  'f' = fold

Terminal histories: cc, bc, bf, cbc, cbf
"""

from __future__ import annotations

from itertools import permutations
from typing import Dict, List, Tuple

from cfr.errors import MalformedHistoryError
from game_interface import GameRules

NUM_CARDS = 3
CARD_RANKS = list(range(NUM_CARDS))
RANK_NAMES = {0: "J", 1: "Q", 2: "K"}
TERMINAL_HISTORIES = {"cc", "bc", "bf", "cbc", "cbf"}

# Legal actions keyed by the last action token ("" = root).
LEGAL_ACTIONS: Dict[str, List[str]] = {
    "": ["c", "b"],
    "c": ["c", "b"],
    "b": ["c", "f"],
}

KuhnDeal = Tuple[int, int]


class KuhnPoker:
    """Kuhn Poker rules."""

    NUM_PLAYERS = 2
    ROUND_SEPARATOR = ""

    def is_terminal(self, history: str) -> bool:
        return history in TERMINAL_HISTORIES

    def is_round_end(self, history: str) -> bool:
        # Single betting round: the only round end is the end of the hand.
        return False

    def legal_actions(self, history: str) -> List[str]:
        try:
            return list(LEGAL_ACTIONS[history[-1:]])
        except KeyError:
            raise MalformedHistoryError(history) from None

    def active_player(self, history: str) -> int:
        return len(history) % 2

    def payoff(self, deal: KuhnDeal, history: str) -> int:
        """Payoff for the player who would act next at a terminal history."""
        if history not in TERMINAL_HISTORIES:
            raise MalformedHistoryError(history, "not terminal")
        if history.endswith("f"):
            # Opponent folded: collect their ante.
            return 1
        stake = 2 if "b" in history else 1
        player = self.active_player(history)
        if deal[player] > deal[1 - player]:
            return stake
        return -stake

    def deals(self) -> List[KuhnDeal]:
        """All possible (card0, card1) deals."""
        return list(permutations(CARD_RANKS, 2))

    def infoset_key(self, deal: KuhnDeal, history: str) -> str:
        """Information set key: private card + public history."""
        card = deal[self.active_player(history)]
        return f"{RANK_NAMES[card]}|{history}"

    def key_history(self, key: str) -> str:
        return key.split("|", 1)[1]

    # ---- Enumeration helpers ----

    def all_histories(self) -> List[str]:
        """All histories (including terminal)."""
        return ["", "c", "b", "cb", "cc", "bc", "bf", "cbc", "cbf"]

    def all_infosets(self, player: int) -> List[str]:
        """All information set keys for a player."""
        infosets = []
        for card in CARD_RANKS:
            for h in self.all_histories():
                if h in TERMINAL_HISTORIES or self.active_player(h) != player:
                    continue
                infosets.append(f"{RANK_NAMES[card]}|{h}")
        return infosets


# Verify KuhnPoker satisfies the GameRules protocol at import time
assert isinstance(KuhnPoker(), GameRules), "KuhnPoker must implement the GameRules protocol"
