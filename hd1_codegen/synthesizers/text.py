"""
Structural helpers for scanning foreign source text.

These understand just enough of JavaScript/TypeScript lexical structure
(string literals, comments, bracket nesting) to find balanced blocks. They
never attempt a full parse.
"""

_QUOTES = "'\"`"


def _skip_string(text: str, i: int) -> int:
    """Return the index just past the string literal starting at ``i``."""
    quote = text[i]
    i += 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    return len(text)


def _skip_comment(text: str, i: int) -> int:
    """Return the index just past the comment starting at ``i`` (or ``i`` if none)."""
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end < 0 else end + 1
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        return len(text) if end < 0 else end + 2
    return i


def find_matching(text: str, open_index: int, opener: str = "{", closer: str = "}") -> int:
    """
    Index of the bracket closing the one at ``open_index``, or -1 when the
    block is unbalanced. Brackets inside strings and comments are ignored.
    """
    depth = 0
    i = open_index
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            i = _skip_string(text, i)
            continue
        skipped = _skip_comment(text, i)
        if skipped != i:
            i = skipped
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, separator: str = ",", angles: bool = True) -> list[str]:
    """
    Split ``text`` on ``separator`` occurring outside any brackets or strings.

    ``angles`` treats <...> as brackets (TypeScript generics); disable it for
    JavaScript expressions where < and > are comparison operators.
    """
    openers = "{([<" if angles else "{(["
    closers = "})]>" if angles else "})]"
    parts = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in _QUOTES:
            i = _skip_string(text, i)
            continue
        skipped = _skip_comment(text, i)
        if skipped != i:
            i = skipped
            continue
        if ch in openers:
            depth += 1
        elif ch in closers and not (ch == ">" and i > 0 and text[i - 1] == "="):
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1
    tail = text[start:]
    if tail.strip():
        parts.append(tail)
    return parts
