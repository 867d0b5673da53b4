"""Markdown rendering and copy-to-clipboard for bot responses."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

import pyperclip
from markdown_it import MarkdownIt
from rich.markdown import Markdown

from bot_workspace.config import get_settings
from bot_workspace.exceptions import ClipboardError

logger = logging.getLogger(__name__)


class BlockKind(str, Enum):
    """Top-level block types of a rendered response."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    QUOTE = "quote"
    CODE = "code"
    RULE = "rule"
    TABLE = "table"
    HTML = "html"


@dataclass(frozen=True)
class Block:
    """One top-level block of a response.

    For CODE blocks `text` is the code body only (no fences or container
    markers), which is what a per-block copy puts on the clipboard. A `nested`
    code block sits inside a list or quote, whose own block text still
    contains it.
    """

    kind: BlockKind
    text: str
    language: str | None = None
    level: int | None = None
    nested: bool = False


@dataclass(frozen=True)
class RenderedDocument:
    """A response parsed into blocks, alongside the original text."""

    raw: str
    blocks: tuple[Block, ...] = field(default_factory=tuple)

    @property
    def code_blocks(self) -> list[Block]:
        return [b for b in self.blocks if b.kind == BlockKind.CODE]

    def to_rich(self, code_theme: str = "monokai") -> Markdown:
        """Rich renderable for terminal display."""
        return Markdown(self.raw, code_theme=code_theme)


_OPENERS: dict[str, BlockKind] = {
    "heading_open": BlockKind.HEADING,
    "paragraph_open": BlockKind.PARAGRAPH,
    "bullet_list_open": BlockKind.LIST,
    "ordered_list_open": BlockKind.LIST,
    "blockquote_open": BlockKind.QUOTE,
    "table_open": BlockKind.TABLE,
}

_md = MarkdownIt("commonmark").enable("table")


def render(raw_text: str) -> RenderedDocument:
    """Parse raw Markdown into a RenderedDocument."""
    lines = raw_text.splitlines()
    tokens = _md.parse(raw_text)
    blocks: list[Block] = []

    for i, token in enumerate(tokens):
        # Fences are collected at any depth, in document order
        if token.type in ("fence", "code_block"):
            language = token.info.strip().split()[0] if token.info.strip() else None
            blocks.append(
                Block(BlockKind.CODE, token.content, language=language, nested=token.level != 0)
            )
            continue
        if token.level != 0 or token.nesting == -1:
            continue

        if token.type == "hr":
            blocks.append(Block(BlockKind.RULE, token.markup))
        elif token.type == "html_block":
            blocks.append(Block(BlockKind.HTML, token.content))
        elif token.type == "heading_open":
            inline = tokens[i + 1]
            blocks.append(Block(BlockKind.HEADING, inline.content, level=int(token.tag[1:])))
        elif token.type == "paragraph_open":
            blocks.append(Block(BlockKind.PARAGRAPH, tokens[i + 1].content))
        elif token.type in _OPENERS:
            blocks.append(Block(_OPENERS[token.type], _source(lines, token.map)))

    return RenderedDocument(raw=raw_text, blocks=tuple(blocks))


def _source(lines: list[str], line_map: list[int] | None) -> str:
    if not line_map:
        return ""
    start, end = line_map
    return "\n".join(lines[start:end])


@runtime_checkable
class Clipboard(Protocol):
    """Anything that can put text on a clipboard."""

    def write(self, text: str) -> None: ...


class SystemClipboard:
    """Platform clipboard via pyperclip."""

    def write(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(str(e)) from e


CallLater = Callable[[float, Callable[[], None]], Any]


class CopyAcknowledgment:
    """Copies text and shows a "copied" flag that clears itself.

    Copying again while the flag is shown restarts the window instead of
    stacking timers. If the clipboard write fails the flag is not set.
    """

    def __init__(
        self,
        clipboard: Clipboard | None = None,
        reset_after: float | None = None,
        call_later: CallLater | None = None,
        on_change: Callable[[bool], None] | None = None,
    ) -> None:
        """Initialize the acknowledgment.

        Args:
            clipboard: Clipboard to write to (defaults to the system clipboard)
            reset_after: Seconds the flag stays set after a copy (defaults to
                settings.copy_ack_seconds)
            call_later: Scheduler returning a handle with cancel(); defaults
                to the running event loop's call_later
            on_change: Called whenever the flag changes
        """
        self._clipboard = clipboard if clipboard is not None else SystemClipboard()
        self._reset_after = (
            reset_after if reset_after is not None else get_settings().copy_ack_seconds
        )
        self._call_later = call_later
        self._on_change = on_change
        self._handle: Any = None
        self.copied = False

    def copy(self, text: str) -> bool:
        """Write text to the clipboard and (re)start the acknowledgment.

        Returns:
            True if the clipboard write succeeded
        """
        try:
            self._clipboard.write(text)
        except Exception as e:
            logger.warning(f"Clipboard write failed: {e}")
            return False

        if self._handle is not None:
            self._handle.cancel()
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._handle = call_later(self._reset_after, self._expire)
        self._set(True)
        return True

    def cancel(self) -> None:
        """Clear the flag now and drop any pending reset."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._set(False)

    def _expire(self) -> None:
        self._handle = None
        self._set(False)

    def _set(self, value: bool) -> None:
        if self.copied == value:
            return
        self.copied = value
        if self._on_change is not None:
            self._on_change(value)


class ResponseFormatter:
    """Renders responses and copies them, tracking one acknowledgment."""

    def __init__(self, acknowledgment: CopyAcknowledgment | None = None) -> None:
        self.acknowledgment = acknowledgment or CopyAcknowledgment()

    def render(self, raw_text: str) -> RenderedDocument:
        return render(raw_text)

    def copy(self, raw_text: str) -> bool:
        """Copy the original text, not the rendered structure."""
        return self.acknowledgment.copy(raw_text)

    @property
    def copied(self) -> bool:
        return self.acknowledgment.copied
