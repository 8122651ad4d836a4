"""Tests for the CFR tree walk.

Validates:
- Reach-probability factorization against direct path products
- Regret and strategy deltas emitted for a single walk
- Zero-reach pruning leaves the result unchanged
- External sampling only updates the updating player
- Info set keys identify exactly what the acting player observes
"""

import torch
import pytest

from cfr.config import CFRConfig
from cfr.errors import InfoSetArityMismatch
from cfr.evaluation import reach_probabilities
from cfr.extractor import current_strategy_profile
from cfr.infoset import InfoSet
from cfr.trainer import CFRTrainer
from cfr.walker import TreeWalker, sample_action_index
from kuhn.game import KuhnPoker
from leduc.game import LeducPoker


def decision_histories(game):
    histories = []

    def visit(history):
        if game.is_terminal(history):
            return
        if game.is_round_end(history):
            visit(history + game.ROUND_SEPARATOR)
            return
        histories.append(history)
        for a in game.legal_actions(history):
            visit(history + a)

    visit("")
    return histories


@pytest.fixture(scope="module")
def trained_leduc():
    trainer = CFRTrainer(LeducPoker(), CFRConfig(mode="vanilla"))
    trainer.train(360)
    return trainer


class TestReachProbabilities:
    def test_factorization_matches_path_product(self, trained_leduc):
        """Probability of a terminal equals the product of both players' reach."""
        game = trained_leduc.game
        profile = current_strategy_profile(game, trained_leduc.store)
        for deal in game.deals()[::7]:
            reaches = reach_probabilities(game, profile, deal)
            for history, (r0, r1) in reaches.items():
                if not game.is_terminal(history):
                    continue
                path_prob = 1.0
                for i, action in enumerate(history):
                    prefix = history[:i]
                    if action == game.ROUND_SEPARATOR:
                        continue
                    key = game.infoset_key(deal, prefix)
                    path_prob *= profile.get(key, {}).get(
                        action, 1.0 / len(game.legal_actions(prefix)))
                assert abs(path_prob - r0 * r1) < 1e-12, f"deal={deal}, h={history}"

    def test_terminal_probabilities_sum_to_one(self, trained_leduc):
        game = trained_leduc.game
        profile = current_strategy_profile(game, trained_leduc.store)
        deal = game.deals()[0]
        reaches = reach_probabilities(game, profile, deal)
        total = sum(r0 * r1 for h, (r0, r1) in reaches.items() if game.is_terminal(h))
        assert abs(total - 1.0) < 1e-9


class TestVanillaWalk:
    def test_deltas_use_reach_of_each_player(self, trained_leduc):
        game = trained_leduc.game
        view = trained_leduc.store.view()
        profile = current_strategy_profile(game, trained_leduc.store)
        deal = game.deals()[5]
        result = TreeWalker(game, view).walk(deal)
        reaches = reach_probabilities(game, profile, deal)

        for history in decision_histories(game):
            key = game.infoset_key(deal, history)
            regret_delta, strategy_delta = result.updates[key]
            player = game.active_player(history)
            # strategy delta sums to the actor's own reach
            assert abs(sum(strategy_delta) - reaches[history][player]) < 1e-9
            # regrets are relative to the node value under the current strategy
            probs = list(profile.get(key, {}).values()) or [
                1.0 / len(regret_delta)] * len(regret_delta)
            assert abs(sum(p * r for p, r in zip(probs, regret_delta))) < 1e-9

    def test_first_walk_from_empty_store(self):
        game = KuhnPoker()
        deal = (0, 1)  # J vs Q
        result = TreeWalker(game, {}).walk(deal)
        # P0 checks with probability 1/2 before facing the bet at "cb"
        regret_delta, strategy_delta = result.updates["J|cb"]
        assert strategy_delta == [0.25, 0.25]
        # J|cb: call loses 2, fold loses 1, both reached with P1 reach 1/2
        assert regret_delta == pytest.approx([0.5 * (-2.0 + 1.5), 0.5 * (-1.0 + 1.5)])
        assert set(result.updates) == {"J|", "Q|c", "Q|b", "J|cb"}

    def test_walk_does_not_touch_view(self):
        game = KuhnPoker()
        view = {}
        TreeWalker(game, view).walk((2, 0))
        assert view == {}

    def test_arity_mismatch_in_view(self):
        game = KuhnPoker()
        with pytest.raises(InfoSetArityMismatch):
            TreeWalker(game, {"K|": InfoSet(3)}).walk((2, 0))


class TestPruning:
    def test_prune_skips_unreachable_subtrees(self):
        game = KuhnPoker()
        # P0 never checks with K; P1 never bets after a check with J
        view = {"K|": InfoSet(2), "J|c": InfoSet(2)}
        view["K|"].regret_sum = [-1.0, 1.0]
        view["J|c"].regret_sum = [1.0, -1.0]
        pruned = TreeWalker(game, view, prune=True).walk((2, 0))
        full = TreeWalker(game, view).walk((2, 0))
        assert pruned.utility == full.utility
        # "cb" has zero reach for both players
        assert "K|cb" in full.updates
        assert "K|cb" not in pruned.updates
        assert full.updates["K|cb"][0] == [0.0, 0.0]
        assert full.updates["K|cb"][1] == [0.0, 0.0]

    def test_pruned_training_matches_unpruned(self):
        game = LeducPoker()
        plain = CFRTrainer(game, CFRConfig(mode="vanilla")).train(600)
        pruned = CFRTrainer(game, CFRConfig(mode="vanilla", prune=True)).train(600)

        assert abs(plain.average_utility - pruned.average_utility) < 1e-9
        assert set(pruned.store.keys()) <= set(plain.store.keys())
        for key, infoset in plain.store.items():
            if key in pruned.store:
                other = pruned.store[key].average_strategy()
                for a, b in zip(infoset.average_strategy(), other):
                    assert abs(a - b) < 1e-9, key
            else:
                assert all(s == 0.0 for s in infoset.strategy_sum), key


class TestExternalSampling:
    def test_only_updating_player_is_updated(self):
        game = LeducPoker()
        rng = torch.Generator().manual_seed(3)
        for updating in (0, 1):
            walker = TreeWalker(game, {}, updating_player=updating, rng=rng)
            for deal in game.deals()[:10]:
                result = walker.walk(deal)
                assert result.updates
                for key in result.updates:
                    history = game.key_history(key)
                    assert game.active_player(history) == updating

    def test_requires_generator(self):
        with pytest.raises(ValueError):
            TreeWalker(KuhnPoker(), {}, updating_player=0)

    def test_sample_action_index_follows_distribution(self):
        rng = torch.Generator().manual_seed(0)
        counts = [0, 0, 0]
        for _ in range(6000):
            counts[sample_action_index([0.2, 0.0, 0.8], rng)] += 1
        assert counts[1] == 0
        assert abs(counts[0] / 6000 - 0.2) < 0.03


class TestInfosetKeys:
    @pytest.mark.parametrize("game", [KuhnPoker(), LeducPoker()])
    def test_keys_match_observations(self, game):
        """Same key iff the actor sees the same cards and history."""
        seen = {}
        for deal in game.deals():
            for history in decision_histories(game):
                player = game.active_player(history)
                board_dealt = bool(game.ROUND_SEPARATOR) and game.ROUND_SEPARATOR in history
                public = deal[2:] if board_dealt else ()
                observation = (deal[player], tuple(public), history)
                key = game.infoset_key(deal, history)
                if key in seen:
                    assert seen[key] == observation, key
                else:
                    seen[key] = observation
        assert len(set(seen.values())) == len(seen)
