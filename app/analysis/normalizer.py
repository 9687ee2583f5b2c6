"""Text Normalizer: turns lightly marked-up model output into display text.

Rules, applied in order:
  1. "## Heading" lines become "Heading:"
  2. **bold** and *italic* markers are dropped, inner text kept
  3. `inline code` markers (and ``` fence lines) are dropped
  4. [label](url) links keep only the label
  5. Line-leading "-", "*", "+" list markers become "• "
  6. Line-leading "1. " ordered markers are removed
  7. Blank lines are dropped and the rest joined with a blank line between
"""

from __future__ import annotations

import re

BULLET = "• "

# ---------------------------------------------------------------------------
# Markup patterns (order matters: later rules assume earlier ones ran)
# ---------------------------------------------------------------------------
_HEADING = re.compile(r"^[ \t]*#{2,}[ \t]*(.*?)[ \t]*:?[ \t]*$", re.MULTILINE)
_BOLD = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
_ITALIC = re.compile(r"\*(?=\S)(.+?)(?<=\S)\*")
_CODE_FENCE = re.compile(r"^[ \t]*```.*$", re.MULTILINE)
_INLINE_CODE = re.compile(r"`([^`\n]*)`")
_LINK = re.compile(r"\[([^\]\n]*)\]\(([^)\n]*)\)")
_BULLET_MARKER = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_ORDERED_MARKER = re.compile(r"^[ \t]*(?:\d+\.[ \t]+)+", re.MULTILINE)


def _apply_rules(text: str) -> str:
    text = _HEADING.sub(r"\1:", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _CODE_FENCE.sub("", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _BULLET_MARKER.sub(BULLET, text)
    text = _ORDERED_MARKER.sub("", text)
    lines = [line for line in text.split("\n") if line.strip()]
    return "\n\n".join(lines)


def normalize(raw: str) -> str:
    """Convert raw model output into clean display text.

    Never fails; empty or all-whitespace input yields "". The rule set is
    re-applied until the text stops changing, so the result is a fixed
    point: normalize(normalize(x)) == normalize(x).
    """
    if not raw or not raw.strip():
        return ""

    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    # Nested markup (***x***, [[a](u)](u)) loses one layer per sweep. Every
    # rule shrinks the text or swaps an ASCII marker for a bullet, so this ends.
    while True:
        cleaned = _apply_rules(text)
        if cleaned == text:
            return text
        text = cleaned
