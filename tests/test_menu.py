"""Tests for menu.py module."""

from unittest.mock import MagicMock, patch

import pytest

from cde_utils import console
from cde_utils.menu import MenuState, SelectionMenu, render_menu
from cde_utils.terminal import Key

ITEMS = ("a", "b", "c", "d", "e", "Exit")


class TestMenuState:
    """Tests for the circular selection state."""

    def test_initial_state(self):
        """Test a new menu starts on the first item."""
        state = MenuState(ITEMS)

        assert state.selected == 0
        assert not state.done

    def test_up_wraps_to_last(self):
        """Test two Ups from the top of six items land on index 4."""
        state = MenuState(ITEMS).apply(Key.UP).apply(Key.UP)

        assert state.selected == 4

    def test_down_wraps_to_first(self):
        """Test Down from the last item returns to the top."""
        state = MenuState(ITEMS, selected=5).apply(Key.DOWN)

        assert state.selected == 0

    def test_enter_is_terminal(self):
        """Test Enter keeps the selection and finishes."""
        state = MenuState(ITEMS, selected=3).apply(Key.ENTER)

        assert state.done
        assert state.selected == 3

    def test_unknown_key_is_ignored(self):
        """Test non-actionable keys leave the state unchanged."""
        state = MenuState(ITEMS, selected=2)

        assert state.apply(Key.UNKNOWN) is state

    def test_apply_is_pure(self):
        """Test transitions return new states."""
        state = MenuState(ITEMS)
        state.apply(Key.DOWN)

        assert state.selected == 0

    def test_empty_items_rejected(self):
        """Test a menu needs items."""
        with pytest.raises(ValueError, match="at least one item"):
            MenuState(())

    def test_out_of_range_selection_rejected(self):
        """Test the selection must be a valid index."""
        with pytest.raises(ValueError, match="out of range"):
            MenuState(ITEMS, selected=6)


class TestSelectionMenu:
    """Tests for the menu loop."""

    def test_run_returns_selected_index(self):
        """Test navigation followed by Enter returns the index."""
        reader = MagicMock()
        reader.read_key.side_effect = [Key.DOWN, Key.DOWN, Key.UP, Key.DOWN, Key.ENTER]
        renders = []

        choice = SelectionMenu(ITEMS, reader, render=renders.append).run()

        assert choice == 2
        assert [state.selected for state in renders] == [0, 1, 2, 1, 2]

    def test_enter_does_not_rerender(self):
        """Test the final Enter does not redraw the menu."""
        reader = MagicMock()
        reader.read_key.side_effect = [Key.ENTER]
        renders = []

        assert SelectionMenu(ITEMS, reader, render=renders.append).run() == 0
        assert len(renders) == 1


class TestRenderMenu:
    """Tests for menu drawing."""

    def test_marks_selected_item(self):
        """Test only the selected item carries the marker."""
        with patch.object(console.console, "clear") as mock_clear, patch.object(console.console, "print") as mock_print:
            render_menu(MenuState(ITEMS, selected=1))

        mock_clear.assert_called_once()
        lines = [call.args[0] for call in mock_print.call_args_list]
        assert "Use arrows to move" in lines[0]
        assert lines[1:] == ["   a", "> b", "   c", "   d", "   e", "   Exit"]
