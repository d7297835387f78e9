"""
Tests for the StudySession state machine.
"""

import random
from collections import Counter

import pytest

from flashdeck.exceptions import InvalidStudyStateError
from flashdeck.models import Card
from flashdeck.study_session import StudySession, StudyState


def _ids(cards):
    return [card.id for card in cards]


class TestStart:
    def test_initial_state(self, abc_cards):
        session = StudySession.start(abc_cards)

        assert _ids(session.ordered_cards) == [10, 20, 30]
        assert session.current_index == 0
        assert session.position == 1
        assert session.total == 3
        assert session.is_flipped is False
        assert session.known_card_ids == frozenset()
        assert session.state is StudyState.IN_PROGRESS
        assert session.is_complete is False
        assert session.progress_percent == 0
        assert session.current_card.id == 10

    def test_empty_card_list_is_rejected(self):
        with pytest.raises(ValueError, match="no cards"):
            StudySession.start([])

    def test_session_keeps_its_own_copy_of_the_cards(self, abc_cards):
        session = StudySession(abc_cards)
        abc_cards.reverse()
        abc_cards.append(Card(id=99, deck_id=1, front="x", back="y"))

        assert _ids(session.ordered_cards) == [10, 20, 30]
        assert session.total == 3


class TestFlip:
    def test_flip_twice_restores_state(self, abc_cards):
        session = StudySession(abc_cards)

        session.flip()
        assert session.is_flipped is True
        assert session.current_text == "A back"

        session.flip()
        assert session.is_flipped is False
        assert session.current_text == "A front"

    def test_flip_does_not_move_or_mark(self, abc_cards):
        session = StudySession(abc_cards)
        session.flip()

        assert session.current_index == 0
        assert session.known_count == 0


class TestNavigation:
    def test_next_advances_and_unflips(self, abc_cards):
        session = StudySession(abc_cards)
        session.flip()

        session.next()

        assert session.current_index == 1
        assert session.is_flipped is False

    def test_next_at_last_card_is_a_noop(self, abc_cards):
        session = StudySession(abc_cards)
        session.next()
        session.next()
        session.flip()

        session.next()

        assert session.current_index == 2
        assert session.is_flipped is True

    def test_previous_goes_back_and_unflips(self, abc_cards):
        session = StudySession(abc_cards)
        session.next()
        session.flip()

        session.previous()

        assert session.current_index == 0
        assert session.is_flipped is False

    def test_previous_at_first_card_is_a_noop(self, abc_cards):
        session = StudySession(abc_cards)
        session.flip()

        session.previous()

        assert session.current_index == 0
        assert session.is_flipped is True

    def test_revisiting_a_known_card_shows_its_front(self, abc_cards):
        session = StudySession(abc_cards)
        session.flip()
        session.mark_current_as_known()

        session.previous()

        assert session.is_current_card_known is True
        assert session.is_flipped is False
        session.flip()
        assert session.current_text == "A back"

    def test_index_stays_in_range_under_random_navigation(self, abc_cards):
        rng = random.Random(7)
        session = StudySession(abc_cards, rng=rng)
        for _ in range(500):
            if session.is_complete:
                session.reset()
            action = rng.choice(
                [
                    session.next,
                    session.previous,
                    session.flip,
                    session.mark_current_as_known,
                    session.shuffle,
                ]
            )
            action()
            assert 0 <= session.current_index < session.total
            assert session.is_complete == (
                session.known_count == session.total
            )


class TestMarkKnown:
    def test_auto_advances_to_next_card(self, abc_cards):
        session = StudySession(abc_cards)

        session.mark_current_as_known()

        assert session.known_card_ids == {10}
        assert session.current_index == 1
        assert session.is_complete is False

    def test_completes_when_all_cards_known(self):
        cards = [
            Card(id=1, deck_id=1, front="A", back="a"),
            Card(id=2, deck_id=1, front="B", back="b"),
        ]
        session = StudySession(cards)

        session.mark_current_as_known()
        assert session.current_index == 1

        session.mark_current_as_known()

        assert session.known_card_ids == {1, 2}
        assert session.is_complete is True
        assert session.state is StudyState.COMPLETE
        assert session.progress_percent == 100

    def test_remarking_a_known_card_still_advances(self, abc_cards):
        session = StudySession(abc_cards)
        session.mark_current_as_known()
        session.previous()

        session.mark_current_as_known()

        assert session.known_card_ids == {10}
        assert session.current_index == 1
        assert session.is_complete is False

    def test_marking_last_card_without_completion_stays_put(self, abc_cards):
        session = StudySession(abc_cards)
        session.next()
        session.next()

        session.mark_current_as_known()

        assert session.known_card_ids == {30}
        assert session.current_index == 2
        assert session.is_complete is False

    def test_completion_can_happen_out_of_order(self, abc_cards):
        session = StudySession(abc_cards)
        session.next()
        session.next()
        session.mark_current_as_known()  # C, stays on C
        session.previous()
        session.previous()
        session.mark_current_as_known()  # A, advances to B
        session.mark_current_as_known()  # B

        assert session.is_complete is True
        assert session.known_card_ids == {10, 20, 30}


class TestCompletedSessionIsGated:
    @pytest.fixture
    def completed(self, dog_cat_cards):
        session = StudySession(dog_cat_cards)
        session.mark_current_as_known()
        session.mark_current_as_known()
        assert session.is_complete
        return session

    @pytest.mark.parametrize(
        "operation", ["flip", "next", "previous", "mark_current_as_known"]
    )
    def test_navigation_raises(self, completed, operation):
        index, flipped = completed.current_index, completed.is_flipped

        with pytest.raises(InvalidStudyStateError):
            getattr(completed, operation)()

        assert completed.current_index == index
        assert completed.is_flipped == flipped
        assert completed.known_card_ids == {1, 2}
        assert completed.is_complete is True

    def test_reset_returns_to_in_progress(self, completed):
        completed.reset()
        assert completed.state is StudyState.IN_PROGRESS
        completed.flip()
        assert completed.is_flipped is True

    def test_shuffle_returns_to_in_progress(self, completed):
        completed.shuffle()
        assert completed.state is StudyState.IN_PROGRESS
        assert completed.known_count == 0


class TestResetAndShuffle:
    def test_reset_restores_original_order(self, abc_cards):
        session = StudySession(abc_cards, rng=random.Random(3))
        session.shuffle()
        session.mark_current_as_known()
        session.flip()

        session.reset()

        assert _ids(session.ordered_cards) == [10, 20, 30]
        assert session.known_card_ids == frozenset()
        assert session.current_index == 0
        assert session.is_flipped is False
        assert session.is_complete is False

    def test_shuffle_is_a_permutation_of_the_full_deck(self, abc_cards):
        session = StudySession(abc_cards, rng=random.Random(11))
        session.mark_current_as_known()
        session.flip()

        session.shuffle()

        assert sorted(_ids(session.ordered_cards)) == [10, 20, 30]
        assert session.known_card_ids == frozenset()
        assert session.current_index == 0
        assert session.is_flipped is False
        assert _ids(session.original_cards) == [10, 20, 30]

    def test_shuffle_is_uniform_over_permutations(self, abc_cards):
        session = StudySession(abc_cards, rng=random.Random(1234))
        counts = Counter()
        rounds = 6000
        for _ in range(rounds):
            session.shuffle()
            counts[tuple(_ids(session.ordered_cards))] += 1

        assert len(counts) == 6
        for permutation, count in counts.items():
            assert 850 <= count <= 1150, (permutation, count)

    def test_shuffle_with_injected_rng_is_reproducible(self, abc_cards):
        first = StudySession(abc_cards, rng=random.Random(42))
        second = StudySession(abc_cards, rng=random.Random(42))
        first.shuffle()
        second.shuffle()
        assert _ids(first.ordered_cards) == _ids(second.ordered_cards)


class TestProgress:
    @pytest.mark.parametrize(
        "total, known, expected",
        [(3, 1, 33), (3, 2, 67), (8, 1, 13), (2, 1, 50), (4, 0, 0)],
    )
    def test_progress_rounds_half_up(self, total, known, expected):
        cards = [
            Card(id=i, deck_id=1, front=f"f{i}", back=f"b{i}")
            for i in range(1, total + 1)
        ]
        session = StudySession(cards)
        for _ in range(known):
            session.mark_current_as_known()

        assert session.progress_percent == expected


def test_end_to_end_dog_and_cat(dog_cat_cards):
    session = StudySession.start(dog_cat_cards)

    session.flip()
    assert session.current_text == "Anjing"

    session.mark_current_as_known()
    assert session.current_index == 1
    assert session.is_flipped is False
    assert session.current_text == "Cat"

    session.flip()
    assert session.current_text == "Kucing"

    session.mark_current_as_known()
    assert session.is_complete is True
    assert session.progress_percent == 100
