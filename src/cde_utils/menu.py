"""Arrow-key selection menu.

A bounded circular list walked with Up/Down and confirmed with Enter.
Rendering goes through the shared rich console.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from cde_utils import console
from cde_utils.styles import MENU_MARKER, MENU_SELECTED_STYLE, MENU_TITLE
from cde_utils.terminal import Key, TerminalInputReader


@dataclass(frozen=True, slots=True)
class MenuState:
    """Selection state of a menu.

    Attributes:
        items: Menu labels, in display order.
        selected: Index of the highlighted item.
        done: Whether Enter has been pressed.

    """

    items: tuple[str, ...]
    selected: int = 0
    done: bool = False

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("A menu needs at least one item")
        if not 0 <= self.selected < len(self.items):
            raise ValueError(f"Selected index {self.selected} out of range")

    def apply(self, key: Key) -> "MenuState":
        """Return the state after a key event; keys other than Up/Down/Enter are ignored."""
        size = len(self.items)
        match key:
            case Key.UP:
                return replace(self, selected=(self.selected - 1 + size) % size)
            case Key.DOWN:
                return replace(self, selected=(self.selected + 1) % size)
            case Key.ENTER:
                return replace(self, done=True)
            case _:
                return self


def render_menu(state: MenuState) -> None:
    """Redraw the whole menu with the selected item marked.

    Args:
        state: The state to draw.

    """
    console.clear()
    console.console.print(MENU_TITLE)
    for index, item in enumerate(state.items):
        if index == state.selected:
            console.console.print(f"{MENU_MARKER}{item}", style=MENU_SELECTED_STYLE, markup=False)
        else:
            console.console.print(f"   {item}", markup=False)


class SelectionMenu:
    """Blocking menu loop driven by a TerminalInputReader.

    Attributes:
        items: Menu labels.
        reader: Source of key events.
        render: Called with the state after every non-terminal transition.

    """

    def __init__(
        self,
        items: Sequence[str],
        reader: TerminalInputReader,
        render: Callable[[MenuState], None] = render_menu,
    ) -> None:
        self.items = tuple(items)
        self.reader = reader
        self.render = render

    def run(self) -> int:
        """Show the menu until Enter is pressed.

        Returns:
            Index of the chosen item.

        """
        state = MenuState(self.items)
        self.render(state)
        while not state.done:
            state = state.apply(self.reader.read_key())
            if not state.done:
                self.render(state)
        return state.selected
