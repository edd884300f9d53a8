"""Transcript surfaces that bot and user messages are rendered onto."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, TextIO

BOT_NAME = "Boxy"
COMPOSING_MARK = "…"


class Author(str, Enum):
    USER = "user"
    BOT = "bot"


@dataclass(slots=True)
class InputField:
    """View of the widget's text entry."""

    visible: bool = False
    label: str = ""
    placeholder: str = ""
    hint: str = ""
    focused: bool = False


@dataclass(slots=True)
class TranscriptEntry:
    """A single bubble in the transcript."""

    author: Author
    text: str = ""
    composing: bool = False
    complete: bool = False


@dataclass(slots=True)
class _RevealCursor:
    needs_break: bool = False
    prefix: str = ""
    open_tags: List[str] = field(default_factory=list)


class TranscriptRenderer:
    """In-memory transcript surface.

    The presentation queue drives the reveal primitives (``begin_bot_entry``,
    ``open_element``, ``write``, ``close_element``, ``line_break``,
    ``finish_bot_entry``); the input router appends user entries directly.
    Block spans start on a new line and list items get a ``- `` bullet so the
    recorded text reads like the rendered bubble.
    """

    def __init__(self) -> None:
        self.entries: List[TranscriptEntry] = []
        self.choices: List[str] = []
        self.input_field = InputField()
        self.scroll_count = 0
        self._current: Optional[TranscriptEntry] = None
        self._cursor = _RevealCursor()

    # transcript -----------------------------------------------------------

    def append_user(self, text: str) -> None:
        self.entries.append(
            TranscriptEntry(author=Author.USER, text=text, complete=True)
        )
        self._on_user_entry(text)
        self.scroll_to_latest()

    def begin_bot_entry(self) -> None:
        entry = TranscriptEntry(author=Author.BOT, composing=True)
        self.entries.append(entry)
        self._current = entry
        self._cursor = _RevealCursor()
        self._on_begin_bot_entry()

    def clear_composing(self) -> None:
        if self._current is not None and self._current.composing:
            self._current.composing = False
            self._on_clear_composing()

    def open_element(self, tag: str, block: bool) -> None:
        self._cursor.open_tags.append(tag)
        if block:
            self._cursor.needs_break = True
        if tag == "li":
            self._cursor.prefix = "- "

    def close_element(self, tag: str, block: bool) -> None:
        if self._cursor.open_tags and self._cursor.open_tags[-1] == tag:
            self._cursor.open_tags.pop()
        if block:
            self._cursor.needs_break = True

    def line_break(self) -> None:
        self._cursor.needs_break = False
        self._cursor.prefix = ""
        self._emit("\n")

    def write(self, text: str) -> None:
        if self._current is None:
            return
        at_line_start = not self._current.text or self._current.text.endswith("\n")
        if text.isspace() and (
            at_line_start or self._cursor.needs_break or self._cursor.prefix
        ):
            return
        if self._cursor.needs_break:
            self._cursor.needs_break = False
            if not at_line_start:
                self._emit("\n")
        if self._cursor.prefix:
            self._emit(self._cursor.prefix)
            self._cursor.prefix = ""
        self._emit(text)

    def finish_bot_entry(self) -> None:
        if self._current is None:
            return
        self.clear_composing()
        self._current.complete = True
        self._current = None
        self._on_finish_bot_entry()

    def scroll_to_latest(self) -> None:
        self.scroll_count += 1
        self._on_scroll()

    # widget chrome --------------------------------------------------------

    def show_choices(self, labels: Sequence[str]) -> None:
        self.choices = list(labels)

    def update_input(self, input_field: InputField) -> None:
        self.input_field = replace(input_field)

    # queries --------------------------------------------------------------

    @property
    def bot_messages(self) -> List[str]:
        return [entry.text for entry in self.entries if entry.author is Author.BOT]

    @property
    def user_messages(self) -> List[str]:
        return [entry.text for entry in self.entries if entry.author is Author.USER]

    @property
    def revealing(self) -> bool:
        return self._current is not None

    # hooks for subclasses -------------------------------------------------

    def _emit(self, text: str) -> None:
        if self._current is not None:
            self._current.text += text

    def _on_user_entry(self, text: str) -> None:
        pass

    def _on_begin_bot_entry(self) -> None:
        pass

    def _on_clear_composing(self) -> None:
        pass

    def _on_finish_bot_entry(self) -> None:
        pass

    def _on_scroll(self) -> None:
        pass


class TerminalRenderer(TranscriptRenderer):
    """Streams the transcript to a terminal as it is revealed."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__()
        self._stream = stream or sys.stdout

    def _write(self, text: str) -> None:
        self._stream.write(text)

    def _emit(self, text: str) -> None:
        super()._emit(text)
        if text == "\n":
            self._write("\n" + " " * (len(BOT_NAME) + 2))
        else:
            self._write(text)

    def _on_user_entry(self, text: str) -> None:
        self._write(f"You: {text}\n")

    def _on_begin_bot_entry(self) -> None:
        self._write(f"\n{BOT_NAME}: {COMPOSING_MARK}")

    def _on_clear_composing(self) -> None:
        self._write("\b \b")

    def _on_finish_bot_entry(self) -> None:
        self._write("\n")

    def _on_scroll(self) -> None:
        self._stream.flush()

    def render_controls(self) -> None:
        """Print the choice tray and input hint below the transcript."""

        for index, label in enumerate(self.choices, start=1):
            self._write(f"  [{index}] {label}\n")
        field_view = self.input_field
        if field_view.visible and field_view.hint:
            label = field_view.label or "Your response"
            self._write(f"  ({label}: {field_view.hint})\n")
        self._stream.flush()
