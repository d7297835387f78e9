"""
In-memory state machine for a single study pass over a deck.

A StudySession is built once from an ordered, non-empty list of cards and
tracks the current position, whether the card is flipped, and which cards the
user has marked as known. Nothing here is persisted; the session is discarded
when the user leaves study mode.
"""

import logging
import random
from enum import Enum
from typing import FrozenSet, Hashable, List, Optional, Protocol, Sequence, Tuple

from .exceptions import InvalidStudyStateError

logger = logging.getLogger(__name__)


class StudyCard(Protocol):
    """Anything with a stable ``id`` and front/back text can be studied."""

    @property
    def id(self) -> Hashable: ...

    @property
    def front(self) -> str: ...

    @property
    def back(self) -> str: ...


class StudyState(str, Enum):
    """The two states of a study pass."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class StudySession:
    """
    Tracks navigation, flip state and completion for one study pass.

    The session starts IN_PROGRESS and only becomes COMPLETE when the last
    unknown card is marked as known. ``shuffle()`` and ``reset()`` are the only
    ways back to IN_PROGRESS. While COMPLETE, ``flip``, ``next``, ``previous``
    and ``mark_current_as_known`` raise InvalidStudyStateError.
    """

    def __init__(
        self, cards: Sequence[StudyCard], rng: Optional[random.Random] = None
    ):
        """
        Create a session over ``cards`` in their given order.

        Parameters:
            cards (Sequence[StudyCard]): Cards to study; must not be empty.
            rng (Optional[random.Random]): Source of randomness for shuffle().
                A fresh ``random.Random`` is used when omitted.

        Raises:
            ValueError: If ``cards`` is empty. Callers must leave study mode
                instead of constructing a session for an empty deck.
        """
        if not cards:
            raise ValueError("Cannot start a study session with no cards.")

        self._original_cards: Tuple[StudyCard, ...] = tuple(cards)
        self._rng = rng if rng is not None else random.Random()
        self._ordered_cards: Tuple[StudyCard, ...] = self._original_cards
        self._current_index = 0
        self._is_flipped = False
        self._known_card_ids: set = set()
        self._state = StudyState.IN_PROGRESS
        logger.debug(f"Study session started with {self.total} cards.")

    @classmethod
    def start(
        cls, cards: Sequence[StudyCard], rng: Optional[random.Random] = None
    ) -> "StudySession":
        """Alias for the constructor, reading as the start of a study pass."""
        return cls(cards, rng=rng)

    # --- Read accessors ---

    @property
    def state(self) -> StudyState:
        return self._state

    @property
    def is_complete(self) -> bool:
        return self._state is StudyState.COMPLETE

    @property
    def is_flipped(self) -> bool:
        return self._is_flipped

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def position(self) -> int:
        """1-based position of the current card, for display."""
        return self._current_index + 1

    @property
    def total(self) -> int:
        return len(self._ordered_cards)

    @property
    def ordered_cards(self) -> Tuple[StudyCard, ...]:
        return self._ordered_cards

    @property
    def original_cards(self) -> Tuple[StudyCard, ...]:
        return self._original_cards

    @property
    def known_card_ids(self) -> FrozenSet[Hashable]:
        return frozenset(self._known_card_ids)

    @property
    def known_count(self) -> int:
        return len(self._known_card_ids)

    @property
    def current_card(self) -> StudyCard:
        return self._ordered_cards[self._current_index]

    @property
    def current_text(self) -> str:
        """The side of the current card that is facing the user."""
        card = self.current_card
        return card.back if self._is_flipped else card.front

    @property
    def is_current_card_known(self) -> bool:
        return self.current_card.id in self._known_card_ids

    @property
    def progress_percent(self) -> int:
        """
        Percentage of cards marked known, rounded half up to an integer.

        Uses integer arithmetic so 1 of 8 cards gives 13, not 12.
        """
        known, total = len(self._known_card_ids), len(self._ordered_cards)
        return (200 * known + total) // (2 * total)

    # --- Commands ---

    def flip(self) -> None:
        self._require_in_progress("flip")
        self._is_flipped = not self._is_flipped

    def next(self) -> None:
        """Advance one card. At the last card this does nothing."""
        self._require_in_progress("next")
        self._advance()

    def previous(self) -> None:
        """Go back one card. At the first card this does nothing."""
        self._require_in_progress("previous")
        if self._current_index > 0:
            self._current_index -= 1
            self._is_flipped = False

    def mark_current_as_known(self) -> None:
        """
        Mark the current card as known, then either complete or auto-advance.

        Re-marking a card that is already known leaves the known set as it is
        but still runs the completion check and the auto-advance.
        """
        self._require_in_progress("mark_current_as_known")
        self._known_card_ids.add(self.current_card.id)

        if len(self._known_card_ids) == len(self._ordered_cards):
            self._state = StudyState.COMPLETE
            logger.info(
                f"Study session complete: all {self.total} cards known."
            )
        else:
            self._advance()

    def shuffle(self) -> None:
        """Start a fresh pass over a uniformly shuffled copy of the deck."""
        shuffled: List[StudyCard] = list(self._original_cards)
        self._rng.shuffle(shuffled)
        self._begin_pass(tuple(shuffled))
        logger.debug("Study session shuffled.")

    def reset(self) -> None:
        """Start a fresh pass over the deck in its original order."""
        self._begin_pass(self._original_cards)
        logger.debug("Study session reset.")

    # --- Internals ---

    def _advance(self) -> None:
        if self._current_index < len(self._ordered_cards) - 1:
            self._current_index += 1
            self._is_flipped = False

    def _begin_pass(self, cards: Tuple[StudyCard, ...]) -> None:
        self._ordered_cards = cards
        self._current_index = 0
        self._is_flipped = False
        self._known_card_ids = set()
        self._state = StudyState.IN_PROGRESS

    def _require_in_progress(self, operation: str) -> None:
        if self._state is StudyState.COMPLETE:
            raise InvalidStudyStateError(
                f"Cannot {operation} a completed study session; "
                "reset or shuffle to study again."
            )
