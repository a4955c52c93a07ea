"""Small string helpers with the semantics the shell relies on."""

from __future__ import annotations

_SPACES = frozenset("\t\n\v\f\r ")


def atoi(text: str) -> int:
    """Parse a leading decimal integer, ignoring whitespace and trailing junk.

    Returns 0 when no digits follow the optional sign.
    """
    rest = text.lstrip("".join(_SPACES))
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = []
    for char in rest:
        if not ("0" <= char <= "9"):
            break
        digits.append(char)
    if not digits:
        return 0
    return sign * int("".join(digits))


def split(text: str, sep: str) -> list[str]:
    """Split on a single separator character, dropping empty words."""
    if len(sep) != 1:
        raise ValueError("separator must be a single character")
    return [word for word in text.split(sep) if word]


def strtrim(text: str, chars: str) -> str:
    """Remove every character in ``chars`` from both ends of ``text``."""
    return text.strip(chars) if chars else text


def substr(text: str, start: int, length: int) -> str:
    """Return at most ``length`` characters of ``text`` beginning at ``start``."""
    if start < 0 or length < 0:
        raise ValueError("start and length must not be negative")
    if start >= len(text):
        return ""
    return text[start:start + length]


def strnstr(haystack: str, needle: str, limit: int) -> int | None:
    """Find ``needle`` within the first ``limit`` characters of ``haystack``.

    Returns the index of the match, or None when there is none.
    """
    if not needle:
        return 0
    index = haystack[:max(limit, 0)].find(needle)
    return None if index < 0 else index


def _code(text: str, index: int) -> int:
    return ord(text[index]) if index < len(text) else 0


def strncmp(first: str, second: str, limit: int) -> int:
    """Compare at most ``limit`` characters; the sign gives the ordering."""
    index = 0
    while (
        index < limit
        and index < len(first)
        and index < len(second)
        and first[index] == second[index]
    ):
        index += 1
    if index >= limit:
        return 0
    return _code(first, index) - _code(second, index)


def strcmp(first: str | None, second: str | None) -> int:
    """Compare two strings; a missing string compares as -1."""
    if first is None or second is None:
        return -1
    index = 0
    while index < len(first) and index < len(second) and first[index] == second[index]:
        index += 1
    return _code(first, index) - _code(second, index)


def itoa(number: int) -> str:
    """Render an integer in decimal."""
    return str(int(number))