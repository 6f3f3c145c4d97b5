"""Shared scanning helpers for the C# source parser."""

from __future__ import annotations

import re
from typing import List, Optional

_PAIRS = {"(": ")", "[": "]", "<": ">", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _PAIRS.items()}

_DOC_LINE = re.compile(r"///[ \t]?(?P<body>[^\r\n]*)")
_DOC_TAG = re.compile(r"<(summary|remarks|example)>(.*?)</\1>")
_WHITESPACE = re.compile(r"\s+")


def skip_opaque(text: str, index: int) -> Optional[int]:
    """Return the index just past a literal or comment starting at ``index``.

    Covers string, verbatim string and char literals plus line and block
    comments. Returns ``None`` when none starts there. Unterminated runs end
    at the end of the text; regular literals also stop at a newline.
    """
    if index >= len(text):
        return None
    char = text[index]
    if text.startswith("//", index):
        newline = text.find("\n", index)
        return len(text) if newline < 0 else newline
    if text.startswith("/*", index):
        close = text.find("*/", index + 2)
        return len(text) if close < 0 else close + 2
    if char == "@" and text.startswith('"', index + 1):
        cursor = index + 2
        while cursor < len(text):
            if text[cursor] == '"':
                if text.startswith('"', cursor + 1):
                    cursor += 2
                    continue
                return cursor + 1
            cursor += 1
        return len(text)
    if char in {'"', "'"}:
        cursor = index + 1
        while cursor < len(text):
            current = text[cursor]
            if current == "\\":
                cursor += 2
                continue
            if current == char:
                return cursor + 1
            if current == "\n":
                return cursor
            cursor += 1
        return len(text)
    return None


def find_balanced(text: str, open_index: int) -> Optional[int]:
    """Return the index of the bracket closing the one at ``open_index``.

    Only the bracket kind found at ``open_index`` is counted; literals and
    comments are skipped. ``None`` means the bracket is never closed.
    """
    if open_index >= len(text) or text[open_index] not in _PAIRS:
        return None
    opener = text[open_index]
    closer = _PAIRS[opener]
    depth = 0
    cursor = open_index
    while cursor < len(text):
        end = skip_opaque(text, cursor)
        if end is not None:
            cursor = end
            continue
        char = text[cursor]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return cursor
        cursor += 1
    return None


def split_top_level(text: str, separator: str = ",", maxsplit: int = -1) -> List[str]:
    """Split ``text`` on ``separator`` outside brackets, literals and comments."""
    parts: List[str] = []
    depth = 0
    start = 0
    cursor = 0
    while cursor < len(text):
        end = skip_opaque(text, cursor)
        if end is not None:
            cursor = end
            continue
        char = text[cursor]
        if char in _PAIRS:
            depth += 1
        elif char in _CLOSERS:
            # "=>" is not a closing bracket
            if not (char == ">" and cursor > 0 and text[cursor - 1] == "="):
                depth = max(depth - 1, 0)
        elif char == separator and depth == 0 and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append(text[start:cursor])
            start = cursor + 1
        cursor += 1
    parts.append(text[start:])
    return parts


def strip_comments(text: str) -> str:
    """Remove line and block comments, leaving literals untouched."""
    cleaned: List[str] = []
    cursor = 0
    while cursor < len(text):
        end = skip_opaque(text, cursor)
        if end is None:
            cleaned.append(text[cursor])
            cursor += 1
            continue
        if not text.startswith(("//", "/*"), cursor):
            cleaned.append(text[cursor:end])
        cursor = end
    return "".join(cleaned)


def unquote(value: str) -> str:
    """Return the contents of a C# string literal, or ``value`` unchanged."""
    value = value.strip()
    if value.startswith('@"') and value.endswith('"') and len(value) >= 3:
        return value[2:-1].replace('""', '"')
    if value.startswith('"') and value.endswith('"') and len(value) >= 2:
        return re.sub(r"\\(.)", _unescape, value[1:-1])
    return value


def _unescape(match: re.Match[str]) -> str:
    char = match.group(1)
    return {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}.get(char, char)


def collapse_doc_comments(text: str) -> str:
    """Join the bodies of every ``///`` line so multi-line XML tags read as one."""
    return " ".join(match.group("body") for match in _DOC_LINE.finditer(text))


def extract_doc_comments(text: str) -> List[str]:
    """Return every ``<summary|remarks|example>`` body found in ``///`` lines of ``text``."""
    docs: List[str] = []
    for match in _DOC_TAG.finditer(collapse_doc_comments(text)):
        body = _WHITESPACE.sub(" ", match.group(2)).strip()
        if body:
            docs.append(body)
    return docs


def first_doc_comment(text: str) -> Optional[str]:
    docs = extract_doc_comments(text)
    return docs[0] if docs else None


__all__ = [
    "collapse_doc_comments",
    "extract_doc_comments",
    "find_balanced",
    "first_doc_comment",
    "skip_opaque",
    "split_top_level",
    "strip_comments",
    "unquote",
]
