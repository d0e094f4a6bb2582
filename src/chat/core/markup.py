"""Markdown-like formatting for bot answers.

`render` turns untrusted answer text into display HTML through a fixed
sequence of substitutions. The text is HTML-escaped once, up front, and every
later stage only ever introduces tags of its own, so nothing the author wrote
can become live markup.

Stage order:
  1. escape ``&``, ``<``, ``>``
  2. fenced code   ```x```      -> <pre><code>x</code></pre>
  3. inline code   `x`          -> <code>x</code>
  4. bold          **x**        -> <strong>x</strong>
  5. italic        *x*          -> <em>x</em>
  6. headers       ###/##/# x   -> <h3>/<h2>/<h1>
  7. list items    * x, - x, 1. x -> <li>x</li>
  8. list wrapping (first <li> .. last </li>) -> <ul>..</ul>
  9. newlines      -> <br />

Code elements produced by stages 2-3 are set aside while stages 4-8 run and
put back before stage 9, so emphasis, header and list markers inside code are
shown as written.
"""

from __future__ import annotations

import re
from typing import List

_FENCE_RE = re.compile(r"```([^`]+)```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")

# Longest prefix first so "### x" is never taken by the one-hash rule
_HEADER_RULES = (
    (re.compile(r"^### (.*)$", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"^## (.*)$", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^# (.*)$", re.MULTILINE), r"<h1>\1</h1>"),
)

# Ordered and unordered markers both produce a plain <li>
_LIST_ITEM_RULES = (
    (re.compile(r"^\* (.*)$", re.MULTILINE), r"<li>\1</li>"),
    (re.compile(r"^- (.*)$", re.MULTILINE), r"<li>\1</li>"),
    (re.compile(r"^([0-9]+)\. (.*)$", re.MULTILINE), r"<li>\2</li>"),
)
_LIST_RUN_RE = re.compile(r"(<li>.*</li>)", re.DOTALL)
_LIST_SEAM_RE = re.compile(r"</ul>\s*<ul>")

# Placeholder for set-aside code elements: NUL <index> NUL
_SLOT = "\x00"
_SLOT_RE = re.compile(_SLOT + r"(\d+)" + _SLOT)


def escape_html(text: str) -> str:
    """Replace ``&``, ``<`` and ``>`` with named character references."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _set_aside(slots: List[str], html: str) -> str:
    slots.append(html)
    return f"{_SLOT}{len(slots) - 1}{_SLOT}"


def _restore(text: str, slots: List[str]) -> str:
    # A slot may hold other slots (fenced code inside an inline-code span)
    while _SLOT_RE.search(text):
        text = _SLOT_RE.sub(lambda m: slots[int(m.group(1))], text)
    return text


def render(raw_text: str) -> str:
    """Render answer text to safe HTML. Never raises; empty input gives ``""``."""
    if not raw_text:
        return ""

    # NUL is reserved for code placeholders and has no display meaning in HTML
    text = escape_html(raw_text.replace(_SLOT, ""))

    slots: List[str] = []
    text = _FENCE_RE.sub(lambda m: _set_aside(slots, f"<pre><code>{m.group(1)}</code></pre>"), text)
    text = _INLINE_CODE_RE.sub(lambda m: _set_aside(slots, f"<code>{m.group(1)}</code>"), text)

    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    text = _ITALIC_RE.sub(r"<em>\1</em>", text)

    for pattern, repl in _HEADER_RULES:
        text = pattern.sub(repl, text)

    for pattern, repl in _LIST_ITEM_RULES:
        text = pattern.sub(repl, text)
    text = _LIST_RUN_RE.sub(r"<ul>\1</ul>", text)
    text = _LIST_SEAM_RE.sub("", text)

    text = _restore(text, slots)
    return text.replace("\n", "<br />")
