"""Tests for response rendering and the copy acknowledgment."""

import asyncio

import pyperclip
import pytest
from rich.markdown import Markdown

from bot_workspace.config import get_settings
from bot_workspace.exceptions import ClipboardError
from bot_workspace.formatter import (
    BlockKind,
    CopyAcknowledgment,
    ResponseFormatter,
    SystemClipboard,
    render,
)

RESPONSE = """# Sample Size

For a prevalence study you need:

- p = 0.5
- d = 0.05

```python
n = (1.96 ** 2 * p * (1 - p)) / d ** 2
```

> Round up to the next whole participant.

| Mode | n |
|------|---|
| prevalence | 385 |

---

```
plain block
```
"""

NESTED = "1. Install it:\n\n   ```bash\n   pip install x\n   ```\n\n> ```py\n> print(1)\n> ```\n"


# ---------------------------------------------------------------------------
# TestRender
# ---------------------------------------------------------------------------

class TestRender:
    """Markdown parsing into blocks."""

    def test_block_kinds_in_order(self):
        doc = render(RESPONSE)
        assert [b.kind for b in doc.blocks] == [
            BlockKind.HEADING,
            BlockKind.PARAGRAPH,
            BlockKind.LIST,
            BlockKind.CODE,
            BlockKind.QUOTE,
            BlockKind.TABLE,
            BlockKind.RULE,
            BlockKind.CODE,
        ]

    def test_heading(self):
        heading = render(RESPONSE).blocks[0]
        assert heading.text == "Sample Size"
        assert heading.level == 1

    def test_code_blocks_extracted(self):
        code = render(RESPONSE).code_blocks
        assert len(code) == 2
        assert code[0].language == "python"
        assert code[0].text == "n = (1.96 ** 2 * p * (1 - p)) / d ** 2\n"
        assert code[1].language is None
        assert code[1].text == "plain block\n"

    def test_list_keeps_source(self):
        block = render(RESPONSE).blocks[2]
        assert block.text == "- p = 0.5\n- d = 0.05"

    def test_raw_preserved(self):
        assert render(RESPONSE).raw == RESPONSE

    def test_plain_text(self):
        doc = render("Just a sentence.")
        assert [b.kind for b in doc.blocks] == [BlockKind.PARAGRAPH]
        assert doc.code_blocks == []

    def test_empty(self):
        assert render("").blocks == ()

    def test_html_fallback_body(self):
        doc = render("<div>\n<p>Formatted</p>\n</div>\n")
        assert doc.blocks[0].kind == BlockKind.HTML

    def test_to_rich(self):
        assert isinstance(render(RESPONSE).to_rich(), Markdown)


class TestNestedCode:
    """Code fences inside lists and quotes."""

    def test_fences_inside_list_and_quote_extracted(self):
        doc = render(NESTED)

        assert [b.kind for b in doc.blocks] == [
            BlockKind.LIST,
            BlockKind.CODE,
            BlockKind.QUOTE,
            BlockKind.CODE,
        ]
        code = doc.code_blocks
        assert [(b.language, b.text) for b in code] == [
            ("bash", "pip install x\n"),
            ("py", "print(1)\n"),
        ]
        assert all(b.nested for b in code)

    def test_container_keeps_its_source(self):
        quote = render(NESTED).blocks[2]
        assert quote.text == "> ```py\n> print(1)\n> ```"

    def test_top_level_fence_not_nested(self):
        assert render(RESPONSE).code_blocks[0].nested is False


# ---------------------------------------------------------------------------
# TestCopyAcknowledgment
# ---------------------------------------------------------------------------

class TestCopyAcknowledgment:
    """Self-expiring "copied" flag."""

    def test_default_window_is_two_seconds(self, clipboard, scheduler):
        ack = CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)
        ack.copy("x")
        assert scheduler.handles[0].when == 2.0

    def test_default_window_follows_settings(self, clipboard, scheduler, monkeypatch):
        monkeypatch.setenv("COPY_ACK_SECONDS", "5")
        get_settings.cache_clear()
        try:
            ack = CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)
        finally:
            get_settings.cache_clear()

        ack.copy("x")
        scheduler.advance(4.5)
        assert ack.copied is True
        scheduler.advance(0.5)
        assert ack.copied is False

    def test_copy_sets_and_expires(self, clipboard, scheduler):
        ack = CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)

        assert ack.copy("hello") is True
        assert clipboard.writes == ["hello"]
        assert ack.copied is True

        scheduler.advance(1.5)
        assert ack.copied is True
        scheduler.advance(0.5)
        assert ack.copied is False

    def test_second_copy_restarts_window(self, clipboard, scheduler):
        """Expiry is measured from the second copy, not the first."""
        ack = CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)

        ack.copy("one")
        scheduler.advance(1.5)
        ack.copy("two")

        scheduler.advance(1.0)   # 2.5 s after the first copy
        assert ack.copied is True
        scheduler.advance(0.75)  # 3.25 s
        assert ack.copied is True
        scheduler.advance(0.25)  # 2.0 s after the second copy
        assert ack.copied is False

        assert len(scheduler.live) == 0
        assert sum(1 for h in scheduler.handles if h.fired) == 1

    def test_flag_changes_reported_once(self, clipboard, scheduler):
        changes = []
        ack = CopyAcknowledgment(
            clipboard=clipboard,
            call_later=scheduler.call_later,
            on_change=changes.append,
        )
        ack.copy("one")
        ack.copy("two")
        scheduler.advance(2.0)
        assert changes == [True, False]

    def test_clipboard_failure_is_swallowed(self, scheduler):
        from conftest import FakeClipboard

        ack = CopyAcknowledgment(
            clipboard=FakeClipboard(error=ClipboardError("no display")),
            call_later=scheduler.call_later,
        )
        assert ack.copy("hello") is False
        assert ack.copied is False
        assert scheduler.handles == []

    def test_any_clipboard_exception_is_swallowed(self, scheduler):
        from conftest import FakeClipboard

        ack = CopyAcknowledgment(
            clipboard=FakeClipboard(error=RuntimeError("boom")),
            call_later=scheduler.call_later,
        )
        assert ack.copy("hello") is False

    def test_cancel_clears(self, clipboard, scheduler):
        ack = CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)
        ack.copy("x")
        ack.cancel()
        assert ack.copied is False
        assert scheduler.live == []

    @pytest.mark.asyncio
    async def test_uses_running_loop_by_default(self, clipboard):
        ack = CopyAcknowledgment(clipboard=clipboard, reset_after=0.01)
        ack.copy("x")
        assert ack.copied is True
        await asyncio.sleep(0.05)
        assert ack.copied is False


class TestSystemClipboard:
    """pyperclip-backed clipboard."""

    def test_writes_via_pyperclip(self, monkeypatch):
        written = []
        monkeypatch.setattr(pyperclip, "copy", written.append)
        SystemClipboard().write("text")
        assert written == ["text"]

    def test_pyperclip_failure_becomes_clipboard_error(self, monkeypatch):
        def broken(text):
            raise pyperclip.PyperclipException("no mechanism")

        monkeypatch.setattr(pyperclip, "copy", broken)
        with pytest.raises(ClipboardError, match="no mechanism"):
            SystemClipboard().write("text")


class TestResponseFormatter:
    """Render + copy facade."""

    def test_copy_writes_raw_text(self, clipboard, scheduler):
        formatter = ResponseFormatter(
            CopyAcknowledgment(clipboard=clipboard, call_later=scheduler.call_later)
        )
        formatter.render(RESPONSE)
        assert formatter.copy(RESPONSE) is True
        assert clipboard.writes == [RESPONSE]
        assert formatter.copied is True
