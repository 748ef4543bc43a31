"""Text-scanning helpers shared by the pattern-matching parsers."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

_BLOCK_LINE_PREFIX = re.compile(r"^\s*\*\s?")
_BLOCK_START = re.compile(r"^\s*/\*\*?\s?")
_DOC_LOOKBACK = 20


def line_number(content: str, index: int) -> int:
    """Return the 1-based line containing character ``index``."""
    return content.count("\n", 0, index) + 1


def extract_braced(
    content: str, start: int, open_char: str = "{", close_char: str = "}"
) -> Optional[Tuple[str, int]]:
    """Return the text inside the first balanced ``open_char`` pair at/after ``start``.

    The second element is the index just past the closing character. An
    unterminated block yields whatever text follows the opener.
    """
    brace = content.find(open_char, start)
    if brace == -1:
        return None
    depth = 1
    index = brace + 1
    while index < len(content) and depth > 0:
        char = content[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
        index += 1
    end = index - 1 if depth == 0 else index
    return content[brace + 1 : end], index


def split_top_level(text: str, separators: Iterable[str] = (",",)) -> List[str]:
    """Split ``text`` on separators that are not nested in brackets."""
    seps = set(separators)
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    previous = ""
    for char in text:
        arrow = char == ">" and previous == "="
        previous = char
        if char in "<({[":
            depth += 1
        elif char in ">)}]" and not arrow:
            depth = max(depth - 1, 0)
        if char in seps and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


_COMMENT = re.compile(r"/\*.*?\*/|(?:^|(?<=\s))//[^\n]*", re.DOTALL | re.MULTILINE)
_MASKS = {",": "\x1d", ";": "\x1e"}


def mask_comment_separators(text: str) -> str:
    """Hide separators inside comments so member splitting ignores them."""

    def _mask(match: re.Match[str]) -> str:
        masked = match.group(0)
        for char, placeholder in _MASKS.items():
            masked = masked.replace(char, placeholder)
        return masked

    return _COMMENT.sub(_mask, text)


def unmask(text: str) -> str:
    for char, placeholder in _MASKS.items():
        text = text.replace(placeholder, char)
    return text


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` blocks from a declaration body."""
    text = re.sub(r"/\*.*?\*/", "", text, flags=re.DOTALL)
    # A "//" glued to a non-space character (as in URLs) is not a comment.
    return re.sub(r"(^|\s)//[^\n]*", r"\1", text, flags=re.MULTILINE)


def extract_doc_comment(content: str, index: int) -> Optional[str]:
    """Collect the doc comment immediately preceding position ``index``.

    Understands ``///`` line docs, ``/** */`` blocks, and plain ``//`` or ``#``
    comment runs. Attribute and decorator lines between the comment and the
    declaration are skipped.
    """
    lines = content[:index].split("\n")
    # The declaration line itself may start mid-line; drop that partial line.
    if lines and lines[-1].strip():
        lines = lines[:-1]
    doc_lines: List[str] = []
    lowest = max(0, len(lines) - _DOC_LOOKBACK)
    position = len(lines) - 1
    while position >= lowest:
        line = lines[position].strip()
        if not doc_lines and not line:
            position -= 1
            continue
        if line.startswith("///"):
            doc_lines.insert(0, line[3:].strip())
        elif line.endswith("*/"):
            cursor = position
            block: List[str] = []
            while cursor >= 0 and "/*" not in lines[cursor]:
                block.insert(0, _BLOCK_LINE_PREFIX.sub("", lines[cursor]).replace("*/", "").strip())
                cursor -= 1
            if cursor >= 0:
                opener = _BLOCK_START.sub("", lines[cursor].strip()).replace("*/", "").strip()
                block.insert(0, opener)
            doc_lines = block + doc_lines
            break
        elif line.startswith("//"):
            doc_lines.insert(0, line[2:].strip())
        elif line.startswith("#") and not line.startswith("#["):
            doc_lines.insert(0, line[1:].strip())
        elif line.startswith(("@", "#[")):
            if doc_lines:
                break
        else:
            break
        position -= 1
    doc = " ".join(part for part in doc_lines if part).strip()
    return doc or None


def preceding_lines(content: str, index: int) -> List[str]:
    """Return stripped lines before ``index``, nearest first."""
    lines = content[:index].split("\n")
    if lines and lines[-1].strip():
        lines = lines[:-1]
    return [line.strip() for line in reversed(lines)]


def split_names(text: Optional[str], separator: str = ",") -> Optional[List[str]]:
    """Split a generic parameter list into names, dropping bounds and defaults."""
    if not text:
        return None
    names: List[str] = []
    for part in split_top_level(text, (separator,)):
        name = re.split(r"\s+extends\s+|[:=]", part, maxsplit=1)[0].strip()
        if name:
            names.append(name)
    return names or None


__all__ = [
    "extract_braced",
    "extract_doc_comment",
    "line_number",
    "mask_comment_separators",
    "preceding_lines",
    "split_names",
    "split_top_level",
    "strip_comments",
    "unmask",
]
