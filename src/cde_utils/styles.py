"""Custom styling for questionary prompts and the arrow-key menu.

This module provides a consistent style for all interactive CLI prompts.
"""

from questionary import Style

# Custom color palette using ANSI 256 colors for broad terminal compatibility
PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#87d787 bold"),  # Green question mark
        ("question", "bold"),  # Bold question text
        ("answer", "fg:#5fd7ff bold"),  # Cyan submitted answer
        ("pointer", "fg:#5fd7ff bold"),  # Cyan pointer for selections
        ("highlighted", "fg:#1c1c1c bg:#5fd7ff bold"),  # Dark text on cyan background
        ("instruction", "fg:#6c6c6c italic"),  # Gray italic instructions
        ("text", ""),  # Default text
    ]
)

# Icon prefixes for prompts
POINTER = "❯ "
QMARK = "? "

# Arrow-key menu markup
MENU_TITLE = "[green]?[/green] Please choose the option  [cyan]\\[Use arrows to move, enter to select][/cyan]"
MENU_MARKER = "> "
MENU_SELECTED_STYLE = "cyan"
