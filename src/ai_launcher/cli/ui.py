"""Interactive fuzzy selection and line input for the launcher.

``SelectorState`` is the pure state machine (query, cursor, scroll window);
``FuzzySelectSession`` owns the terminal for one selection and renders the
state with a transient Rich ``Live`` display.
"""

from __future__ import annotations

import os
import sys
from typing import Iterable, Protocol, Sequence, TextIO

import readchar
from rich.console import Console
from rich.live import Live
from rich.text import Text

from ai_launcher.core.fuzzy import DEFAULT_THRESHOLD, FuzzySearch
from ai_launcher.core.models import SelectableItem, SelectionResult

if os.name != "nt":
    import select
    import termios
    import tty

ESC_TIMEOUT_SECONDS = 0.05
MAX_ESCAPE_SEQUENCE_LENGTH = 16
MAX_VISIBLE = 10
MIN_TERMINAL_WIDTH = 40
COMPACT_MODE_THRESHOLD = 60
MIN_DESCRIPTION_WIDTH = 15
TRUNCATION_SUFFIX = "..."

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"

KEY_SHIFT_TAB = "\x1b[Z"
_UP_KEYS = frozenset({readchar.key.UP, readchar.key.CTRL_P, KEY_SHIFT_TAB})
_DOWN_KEYS = frozenset({readchar.key.DOWN, readchar.key.CTRL_N, readchar.key.TAB})
_ENTER_KEYS = frozenset({readchar.key.ENTER, "\r", "\n"})
_BACKSPACE_KEYS = frozenset({readchar.key.BACKSPACE, "\x7f", "\x08"})
_CANCEL_KEYS = frozenset({readchar.key.CTRL_C})

SELECTOR_SEARCH_KEYS = ("name", "description", "aliases")


def _is_printable(key: str) -> bool:
    return len(key) == 1 and " " <= key <= "~"


class SelectorState:
    """Query, filtered list, cursor and scroll window of one selection."""

    def __init__(self, items: Sequence[SelectableItem], search: FuzzySearch[SelectableItem] | None = None):
        self.items = list(items)
        self.search = search or FuzzySearch(self.items, keys=SELECTOR_SEARCH_KEYS, threshold=DEFAULT_THRESHOLD)
        self.query = ""
        self.selected_index = 0
        self.scroll_offset = 0
        self.filtered_items: list[SelectableItem] = list(self.items)
        self.max_visible = min(MAX_VISIBLE, len(self.items))

    @property
    def selected_item(self) -> SelectableItem | None:
        if 0 <= self.selected_index < len(self.filtered_items):
            return self.filtered_items[self.selected_index]
        return None

    def visible_items(self) -> list[tuple[int, SelectableItem]]:
        end = min(self.scroll_offset + self.max_visible, len(self.filtered_items))
        return [(index, self.filtered_items[index]) for index in range(self.scroll_offset, end)]

    def remaining_below(self) -> int:
        end = min(self.scroll_offset + self.max_visible, len(self.filtered_items))
        return len(self.filtered_items) - end

    def move_up(self) -> None:
        self.selected_index = max(0, self.selected_index - 1)
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = max(0, self.selected_index - self.max_visible // 2)

    def move_down(self) -> None:
        if not self.filtered_items:
            return
        self.selected_index = min(len(self.filtered_items) - 1, self.selected_index + 1)
        if self.selected_index >= self.scroll_offset + self.max_visible:
            self.scroll_offset = max(
                0,
                min(
                    len(self.filtered_items) - self.max_visible,
                    self.selected_index - self.max_visible // 2 + 1,
                ),
            )

    def set_query(self, query: str) -> None:
        self.query = query
        if query:
            self.filtered_items = [match.item for match in self.search.search(query)]
        else:
            self.filtered_items = list(self.items)

        if self.selected_index >= len(self.filtered_items):
            self.selected_index = max(0, len(self.filtered_items) - 1)

        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index
        elif self.selected_index >= self.scroll_offset + self.max_visible:
            self.scroll_offset = max(0, self.selected_index - self.max_visible + 1)

    def handle_key(self, key: str) -> SelectionResult | None:
        """Apply one keystroke; return a result when the selection ends.

        A bare Escape must already be disambiguated from escape sequences
        by the caller.
        """
        if key in _CANCEL_KEYS or key == readchar.key.ESC:
            return SelectionResult(cancelled=True)

        if key in _ENTER_KEYS:
            item = self.selected_item
            if item is not None:
                return SelectionResult(cancelled=False, item=item)
            return None

        if key in _UP_KEYS:
            self.move_up()
        elif key in _DOWN_KEYS:
            self.move_down()
        elif key in _BACKSPACE_KEYS:
            self.set_query(self.query[:-1])
        elif _is_printable(key):
            self.set_query(self.query + key)
        return None


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def render_selector(state: SelectorState, terminal_width: int) -> Text:
    """Draw the prompt line and the visible window of *state*."""
    compact = terminal_width < COMPACT_MODE_THRESHOLD
    output = Text()
    output.append("❯", style="cyan")
    output.append(f" {state.query}")
    output.append("│", style="dim")

    for index, item in state.visible_items():
        selected = index == state.selected_index
        output.append("\n")
        output.append("▸" if selected else " ", style="green")
        output.append(" ")

        if item.is_template:
            output.append("[T]", style="yellow")
            output.append(" ")
            indicator_length = 4
        elif compact:
            indicator_length = 0
        else:
            output.append("   ")
            indicator_length = 3

        output.append(item.name, style="bold" if selected else "")

        alias_length = 0
        if not compact and item.aliases:
            alias_text = f"({', '.join(item.aliases)})"
            output.append(alias_text, style="cyan")
            alias_length = len(alias_text)

        if not compact and item.description:
            base_length = 2 + indicator_length + len(item.name) + alias_length
            available = terminal_width - base_length - len(TRUNCATION_SUFFIX)
            if available > MIN_DESCRIPTION_WIDTH:
                output.append(f" - {_truncate(item.description, available)}", style="dim")

    remaining = state.remaining_below()
    if len(state.filtered_items) > state.max_visible and remaining > 0:
        output.append(f"\n  ... and {remaining} more", style="dim")

    if not state.filtered_items:
        output.append("\n  No matches", style="dim")

    return output


class KeySource(Protocol):
    """Terminal input owned for the duration of a ``with`` block."""

    def __enter__(self) -> "KeySource": ...

    def __exit__(self, *exc_info: object) -> None: ...

    def read_key(self) -> str: ...


class RawTerminal:
    """POSIX raw-mode key reader.

    Raw mode and cursor visibility are restored on every exit path. Output
    post-processing stays on so newlines still return the carriage.
    """

    def __init__(self, stdin: TextIO, stdout: TextIO, hide_cursor: bool = True):
        self._stdin = stdin
        self._stdout = stdout
        self._hide_cursor = hide_cursor
        self._fd = -1
        self._saved: list | None = None

    def __enter__(self) -> "RawTerminal":
        self._fd = self._stdin.fileno()
        self._saved = termios.tcgetattr(self._fd)
        tty.setraw(self._fd)
        attrs = termios.tcgetattr(self._fd)
        attrs[1] |= termios.OPOST | termios.ONLCR
        termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
        self._stdout.write(HIDE_CURSOR if self._hide_cursor else SHOW_CURSOR)
        self._stdout.flush()
        return self

    def __exit__(self, *exc_info: object) -> None:
        try:
            if self._saved is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        finally:
            self._stdout.write(SHOW_CURSOR)
            self._stdout.flush()

    def _has_pending_input(self, timeout: float) -> bool:
        readable, _, _ = select.select([self._fd], [], [], timeout)
        return bool(readable)

    def _read_pending_byte(self) -> bytes:
        if not self._has_pending_input(ESC_TIMEOUT_SECONDS):
            return b""
        return os.read(self._fd, 1)

    def _read_escape_sequence(self) -> bytes:
        """Consume one CSI or SS3 sequence; later bytes stay queued."""
        introducer = self._read_pending_byte()
        data = b"\x1b" + introducer
        if introducer == b"O":
            return data + self._read_pending_byte()
        if introducer != b"[":
            return data
        while len(data) < MAX_ESCAPE_SEQUENCE_LENGTH:
            byte = self._read_pending_byte()
            if not byte:
                break
            data += byte
            if 0x40 <= byte[0] <= 0x7E:
                break
        return data

    def read_key(self) -> str:
        data = os.read(self._fd, 1)
        # A lone ESC is a keypress only if nothing follows quickly; arrow
        # keys arrive as ESC-prefixed sequences.
        if data == b"\x1b" and self._has_pending_input(ESC_TIMEOUT_SECONDS):
            data = self._read_escape_sequence()
        return data.decode("utf-8", errors="replace")


class ReadcharKeys:
    """Key reader for platforms without termios."""

    def __init__(self, stdout: TextIO, hide_cursor: bool = True):
        self._stdout = stdout
        self._hide_cursor = hide_cursor

    def __enter__(self) -> "ReadcharKeys":
        self._stdout.write(HIDE_CURSOR if self._hide_cursor else SHOW_CURSOR)
        self._stdout.flush()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stdout.write(SHOW_CURSOR)
        self._stdout.flush()

    def read_key(self) -> str:
        try:
            return readchar.readkey()
        except KeyboardInterrupt:
            return readchar.key.CTRL_C


def terminal_keys(stdin: TextIO, stdout: TextIO, hide_cursor: bool = True) -> KeySource:
    if os.name == "nt":
        return ReadcharKeys(stdout, hide_cursor=hide_cursor)
    return RawTerminal(stdin, stdout, hide_cursor=hide_cursor)


class FuzzySelectSession:
    """One interactive selection: terminal ownership plus rendering."""

    def __init__(self, items: Iterable[SelectableItem], console: Console, keys: KeySource):
        self.state = SelectorState(list(items))
        self.console = console
        self.keys = keys
        # Measured once per session.
        self.terminal_width = max(MIN_TERMINAL_WIDTH, console.width or 80)

    def render(self) -> Text:
        return render_selector(self.state, self.terminal_width)

    def run(self) -> SelectionResult:
        with self.keys as keys:
            with Live(self.render(), console=self.console, transient=True, auto_refresh=False) as live:
                while True:
                    result = self.state.handle_key(keys.read_key())
                    if result is not None:
                        return result
                    live.update(self.render(), refresh=True)


def _is_interactive(stdin: TextIO, stdout: TextIO) -> bool:
    try:
        return stdin.isatty() and stdout.isatty()
    except (AttributeError, ValueError):
        return False


def fuzzy_select(
    items: Sequence[SelectableItem],
    console: Console | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> SelectionResult:
    """Let the user pick an item; cancelled when no terminal is attached."""
    if not items:
        return SelectionResult(cancelled=True)

    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    console = console or Console()

    if not _is_interactive(stdin, stdout):
        error_console = Console(stderr=True)
        error_console.print("Interactive mode requires a terminal")
        error_console.print("Use direct invocation: ai <tool-name>")
        return SelectionResult(cancelled=True)

    return FuzzySelectSession(items, console, terminal_keys(stdin, stdout)).run()


def read_line(keys: KeySource, stdout: TextIO, prompt_text: str) -> str:
    """Minimal line editor on top of a key source."""
    stdout.write(prompt_text)
    stdout.flush()
    buffer = ""
    with keys as source:
        while True:
            key = source.read_key()
            if key in _CANCEL_KEYS or key == readchar.key.ESC:
                stdout.write("\n")
                return ""
            if key in _ENTER_KEYS:
                stdout.write("\n")
                return buffer
            if key in _BACKSPACE_KEYS:
                if buffer:
                    buffer = buffer[:-1]
                    stdout.write("\b \b")
            elif _is_printable(key):
                buffer += key
                stdout.write(key)
            stdout.flush()


def prompt_for_input(
    prompt_text: str,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> str:
    """Read one line in raw mode; empty string on cancel or without a TTY."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    if not _is_interactive(stdin, stdout):
        return ""
    return read_line(terminal_keys(stdin, stdout, hide_cursor=False), stdout, prompt_text)


__all__ = [
    "ESC_TIMEOUT_SECONDS",
    "SelectorState",
    "render_selector",
    "KeySource",
    "RawTerminal",
    "ReadcharKeys",
    "FuzzySelectSession",
    "fuzzy_select",
    "read_line",
    "prompt_for_input",
]
