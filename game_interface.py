"""Game rules interface for the CFR engine.

Defines the protocol that a game must implement to be solved by the
tree walker and trainer in `cfr`. This allows the same engine to solve
Kuhn Poker, Leduc Hold'em, or any other two-player zero-sum game whose
rules can be written as a function of the public action history and
the deal.

The interface uses Python's Protocol (structural subtyping) so games
don't need to explicitly inherit; they just need to implement the
required methods.
"""

from __future__ import annotations

from typing import Any, List, Protocol, Sequence, runtime_checkable


# A deal is a tuple of cards: one private card per player, then any
# public cards. Games define what a card is.
Deal = Sequence[Any]


@runtime_checkable
class GameRules(Protocol):
    """Rules of a two-player zero-sum imperfect-information game.

    Histories are strings of single-character action tokens. The root
    history is the empty string. ROUND_SEPARATOR is appended by the
    walker when a betting round ends without ending the hand.
    """

    NUM_PLAYERS: int
    ROUND_SEPARATOR: str

    def is_terminal(self, history: str) -> bool:
        """Return True if the hand is over."""
        ...

    def is_round_end(self, history: str) -> bool:
        """Return True if the last action closed a round but not the hand."""
        ...

    def legal_actions(self, history: str) -> List[str]:
        """Return the ordered legal actions, keyed by the last token.

        Raises MalformedHistoryError for a token with no successors.
        """
        ...

    def active_player(self, history: str) -> int:
        """Return the player to act.

        At a terminal history this is the player who would act next,
        i.e. the opponent of the player who took the last action.
        """
        ...

    def payoff(self, deal: Deal, history: str) -> int:
        """Return the payoff for `active_player(history)`.

        Only defined when is_terminal(history) is True.
        """
        ...

    def deals(self) -> List[Deal]:
        """Return every possible deal, each ordered draw exactly once."""
        ...

    def infoset_key(self, deal: Deal, history: str) -> str:
        """Return the information set key for the player to act.

        Two (deal, history) pairs share a key iff the acting player
        cannot distinguish them.
        """
        ...

    def key_history(self, key: str) -> str:
        """Return the public history embedded in an info set key."""
        ...


def terminal_utility(game: GameRules, deal: Deal, history: str, player: int) -> float:
    """Utility for `player` at a terminal history."""
    value = float(game.payoff(deal, history))
    if game.active_player(history) == player:
        return value
    return -value
