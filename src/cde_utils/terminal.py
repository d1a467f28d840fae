"""Raw terminal key input.

Key decoding is a small state machine (``KeyDecoder``) fed one character at
a time, so it can be driven by the real terminal (``RawTerminal``) or by a
synthetic character source in tests.
"""

import os
import select
import sys
import termios
import tty
from enum import Enum
from typing import Protocol, TextIO

from icecream import ic

from cde_utils.exceptions import ValidationError

ESC = "\x1b"

# Stray characters drained after an escape sequence
_FLUSH_LIMIT = 5


class Key(Enum):
    """Logical key events."""

    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    UNKNOWN = "unknown"


class DecoderState(Enum):
    """Escape-sequence decoding progress."""

    IDLE = "idle"
    SAW_ESCAPE = "saw-escape"
    SAW_BRACKET = "saw-bracket"


class CharSource(Protocol):
    """Anything that can hand out one character at a time."""

    def read_char(self, timeout: float | None) -> str | None:
        """Read one character.

        Args:
            timeout: Seconds to wait, or None to block.

        Returns:
            The character, or None if the timeout expired.

        Raises:
            EOFError: If the input is exhausted.

        """
        ...


class KeyDecoder:
    """Bounded decoder: ``Idle -> SawEscape -> SawBracket -> {Up|Down|Unknown}``.

    ``feed`` returns None while a sequence is incomplete. A timeout inside a
    sequence is fed as ``None`` and resolves it to ``Key.UNKNOWN``.
    """

    def __init__(self) -> None:
        self.state = DecoderState.IDLE

    @property
    def idle(self) -> bool:
        """Whether no escape sequence is in progress."""
        return self.state is DecoderState.IDLE

    def feed(self, char: str | None) -> Key | None:
        """Advance the decoder by one character.

        Args:
            char: The next character, or None for a read timeout.

        Returns:
            A decoded key, or None if more input is needed.

        """
        match self.state:
            case DecoderState.IDLE:
                if char is None:
                    return None
                if char == ESC:
                    self.state = DecoderState.SAW_ESCAPE
                    return None
                if char in ("\n", "\r"):
                    return Key.ENTER
                return Key.UNKNOWN
            case DecoderState.SAW_ESCAPE:
                if char == "[":
                    self.state = DecoderState.SAW_BRACKET
                    return None
                self.state = DecoderState.IDLE
                return Key.UNKNOWN
            case DecoderState.SAW_BRACKET:
                self.state = DecoderState.IDLE
                if char == "A":
                    return Key.UP
                if char == "B":
                    return Key.DOWN
                return Key.UNKNOWN


class TerminalInputReader:
    """Reads actionable key events (Up, Down, Enter) from a character source.

    Attributes:
        source: The character source.
        escape_timeout: Timeout for characters following ESC.

    """

    def __init__(self, source: CharSource, *, escape_timeout: float = 1.0) -> None:
        self.source = source
        self.escape_timeout = escape_timeout

    def _flush(self) -> None:
        """Drain pending characters of an unrecognized sequence so they can't leak into the next read."""
        for _ in range(_FLUSH_LIMIT):
            if self.source.read_char(0) is None:
                return

    def read_key(self) -> Key:
        """Block until an actionable key is pressed.

        Returns:
            Key.UP, Key.DOWN or Key.ENTER.

        Raises:
            EOFError: If the input is exhausted.

        """
        decoder = KeyDecoder()
        while True:
            in_sequence = not decoder.idle
            char = self.source.read_char(self.escape_timeout if in_sequence else None)
            key = decoder.feed(char)
            if key is None:
                continue
            ic(key)
            if key is not Key.UNKNOWN:
                return key
            if in_sequence:
                self._flush()


class RawTerminal:
    """Character source over a tty in cbreak mode.

    Use as a context manager; the previous terminal attributes are restored
    on exit.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._fd: int = -1
        self._saved: list | None = None

    def __enter__(self) -> "RawTerminal":
        try:
            self._fd = self._stream.fileno()
            self._saved = termios.tcgetattr(self._fd)
        except (termios.error, OSError) as e:
            raise ValidationError("Interactive mode needs a terminal; pass tunables as options instead") from e
        tty.setcbreak(self._fd)
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        if self._saved is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def read_char(self, timeout: float | None) -> str | None:
        """Read one character, waiting at most ``timeout`` seconds."""
        if timeout is not None:
            ready, _, _ = select.select([self._fd], [], [], timeout)
            if not ready:
                return None
        data = os.read(self._fd, 1)
        if not data:
            raise EOFError("terminal input closed")
        return data.decode(errors="replace")
