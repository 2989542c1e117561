"""Card and deck generation tests"""
import random
from collections import Counter

import pytest

from classes import Card, CardState, generate_deck


class TestCard:
    """Card tests"""

    def test_starts_hidden(self):
        card = Card("A", card_id=0)
        assert card.state is CardState.HIDDEN
        assert card.is_hidden

    def test_reveal_match(self):
        card = Card("A", card_id=0)
        card.reveal()
        assert card.is_revealed
        card.match()
        assert card.is_matched

    def test_reveal_hide(self):
        card = Card("A", card_id=0)
        card.reveal()
        card.hide()
        assert card.is_hidden

    def test_matched_is_final(self):
        card = Card("A", card_id=0)
        card.reveal()
        card.match()
        card.hide()
        card.reveal()
        assert card.is_matched

    def test_hidden_card_cannot_match(self):
        card = Card("A", card_id=0)
        card.match()
        assert card.is_hidden

    def test_error_state_is_reserved(self):
        assert CardState.ERROR.value == "error"
        card = Card("A", card_id=0)
        card.reveal()
        card.hide()
        assert card.state is not CardState.ERROR


class TestGenerateDeck:
    """generate_deck tests"""

    @pytest.mark.parametrize("symbols", [["A"], ["A", "B"], list("ABCDEFGH")])
    def test_pairs_and_ids(self, symbols):
        deck = generate_deck(symbols, random.Random(3))

        assert len(deck) == 2 * len(symbols)
        counts = Counter(card.symbol for card in deck)
        assert set(counts) == set(symbols)
        assert all(count == 2 for count in counts.values())
        assert sorted(card.card_id for card in deck) == list(range(len(deck)))
        assert all(card.is_hidden for card in deck)

    def test_ids_follow_deck_order(self):
        deck = generate_deck(["A", "B", "C"], random.Random(5))
        assert [card.card_id for card in deck] == list(range(6))

    def test_empty(self):
        assert generate_deck([]) == []

    def test_rejects_duplicates(self):
        with pytest.raises(ValueError):
            generate_deck(["A", "A"])

    def test_does_not_mutate_input(self):
        symbols = ["A", "B", "C"]
        generate_deck(symbols, random.Random(1))
        assert symbols == ["A", "B", "C"]

    def test_seeded(self):
        first = [card.symbol for card in generate_deck(["A", "B", "C"], random.Random(9))]
        second = [card.symbol for card in generate_deck(["A", "B", "C"], random.Random(9))]
        assert first == second

    def test_uniform_shuffle(self):
        # AABB has 6 distinct arrangements, each should show up about equally often
        rng = random.Random(2024)
        trials = 6000
        counts = Counter(
            "".join(card.symbol for card in generate_deck(["A", "B"], rng))
            for _ in range(trials)
        )

        assert len(counts) == 6
        for arrangement, count in counts.items():
            assert 800 < count < 1200, arrangement
