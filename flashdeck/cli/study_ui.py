"""
Command-line interface for studying a deck with a StudySession.
"""

import logging
from typing import Callable, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from flashdeck.study_session import StudySession

logger = logging.getLogger(__name__)
console = Console()

FLIP = "flip"
NEXT = "next"
PREVIOUS = "previous"
MARK_KNOWN = "mark_known"
SHUFFLE = "shuffle"
RESET = "reset"
QUIT = "quit"

# Typed keys, lower-cased and stripped; Enter and Space both arrive as "".
KEYMAP: Dict[str, str] = {
    "": FLIP,
    "f": FLIP,
    "p": PREVIOUS,
    "h": PREVIOUS,
    "n": NEXT,
    "l": NEXT,
    "k": MARK_KNOWN,
    "s": SHUFFLE,
    "r": RESET,
    "q": QUIT,
}

# Commands still offered once every card is known.
COMPLETE_ACTIONS = frozenset({SHUFFLE, RESET, QUIT})


class StudyKeyBindings:
    """
    Routes typed keys to a StudySession for as long as the session is shown.

    Handlers exist only between ``subscribe()`` and ``unsubscribe()``; using the
    bindings as a context manager ties them to the visible lifetime of the
    session. Keys that make no sense in the current state are ignored here so
    the session itself never sees them: mark-known before the card is flipped,
    and navigation once the pass is complete.
    """

    def __init__(self, session: StudySession):
        self.session = session
        self._handlers: Dict[str, Callable[[], None]] = {}

    @property
    def active(self) -> bool:
        return bool(self._handlers)

    def subscribe(self) -> None:
        self._handlers = {
            FLIP: self.session.flip,
            NEXT: self.session.next,
            PREVIOUS: self.session.previous,
            MARK_KNOWN: self.session.mark_current_as_known,
            SHUFFLE: self.session.shuffle,
            RESET: self.session.reset,
            QUIT: lambda: None,
        }
        logger.debug("Study key bindings subscribed.")

    def unsubscribe(self) -> None:
        self._handlers = {}
        logger.debug("Study key bindings unsubscribed.")

    def __enter__(self) -> "StudyKeyBindings":
        self.subscribe()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()

    def handle(self, key: str) -> Optional[str]:
        """
        Run the command bound to ``key``.

        Returns:
            Optional[str]: The action performed, or None if the key is unbound,
            the bindings are not subscribed, or the action is not available in
            the session's current state.
        """
        action = KEYMAP.get(key.strip().lower())
        if action is None or action not in self._handlers:
            return None
        if self.session.is_complete and action not in COMPLETE_ACTIONS:
            return None
        if action == MARK_KNOWN and not self.session.is_flipped:
            return None

        self._handlers[action]()
        return action


def render_status(session: StudySession) -> None:
    """Show position, known badge, progress and the visible side of the card."""
    badge = (
        "[bold green]Known[/bold green]"
        if session.is_current_card_known
        else "[yellow]In Progress[/yellow]"
    )
    console.rule(
        f"[bold]Card {session.position} of {session.total}[/bold]  {badge}"
    )
    console.print(
        f"{session.progress_percent}% complete "
        f"({session.known_count}/{session.total} cards)"
    )

    if session.is_flipped:
        console.print(
            Panel(escape(session.current_text), title="BACK", border_style="blue")
        )
    else:
        console.print(
            Panel(escape(session.current_text), title="FRONT", border_style="green")
        )
        console.print(
            "[italic]Press Enter or Space to reveal the answer.[/italic]"
        )


def render_completion(session: StudySession) -> None:
    console.print(
        Panel(
            f"You've reviewed all {session.total} cards in this deck.",
            title="Study Session Complete!",
            border_style="green",
        )
    )
    console.print(
        "[bold]r[/bold] Study Again   "
        "[bold]s[/bold] Shuffle & Study   "
        "[bold]q[/bold] Quit"
    )


def render_shortcuts() -> None:
    console.print(
        "[dim]Keyboard shortcuts: Enter/Space flip, p previous, n next, "
        "k mark as known, s shuffle, r reset, q quit[/dim]"
    )


def _read_key() -> str:
    try:
        return console.input("[bold]> [/bold]")
    except EOFError:
        return "q"


def start_study_flow(session: StudySession) -> None:
    """
    Drive an interactive study pass until the user quits.

    Parameters:
        session (StudySession): A freshly started session for a non-empty deck.
    """
    console.print("[bold cyan]Starting study session...[/bold cyan]")
    render_shortcuts()

    with StudyKeyBindings(session) as bindings:
        while True:
            if session.is_complete:
                render_completion(session)
            else:
                render_status(session)

            key = _read_key()
            action = bindings.handle(key)

            if action == QUIT:
                break
            if action is None:
                if session.is_complete:
                    console.print("[yellow]Choose r, s or q.[/yellow]")
                elif KEYMAP.get(key.strip().lower()) == MARK_KNOWN:
                    console.print(
                        "[yellow]Flip the card before marking it as known.[/yellow]"
                    )
                else:
                    console.print(f"[yellow]Unknown command: {escape(repr(key))}[/yellow]")
            elif action == SHUFFLE:
                console.print("[cyan]Cards shuffled.[/cyan]")
            elif action == RESET:
                console.print("[cyan]Study session reset.[/cyan]")

            console.print("")

    console.print(
        f"[bold cyan]Study session finished: {session.known_count} of "
        f"{session.total} cards known.[/bold cyan]"
    )
