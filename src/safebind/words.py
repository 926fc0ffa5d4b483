"""Word splitting and case conversion for identifiers."""

from __future__ import annotations

import enum
import re

# Upper-case run not followed by lower case | capitalised or lower word | digits with one unit letter | digits.
_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+[A-Z](?![a-z])|\d+")


class Case(enum.Enum):
    SNAKE = "snake"
    CLASS = "class"


def split_words(s: str) -> list[str]:
    """Split an identifier into words.

    `_` always separates words. Inside a chunk, camel-case boundaries split, a
    bare run of digits sticks to the word before it (`myFunc1` -> `my`,
    `Func1`) and a digit run followed by a single capital is a word of its
    own (`Qt3DWindow` -> `Qt`, `3D`, `Window`).
    """
    words: list[str] = []
    for chunk in s.split("_"):
        chunk_words: list[str] = []
        for token in _WORD_RE.findall(chunk):
            if token.isdigit() and chunk_words:
                chunk_words[-1] += token
            else:
                chunk_words.append(token)
        words.extend(chunk_words)
    return words


def _capitalize(word: str) -> str:
    word = word.lower()
    for i, ch in enumerate(word):
        if ch.isalpha():
            return word[:i] + ch.upper() + word[i + 1 :]
    return word


def to_snake_case(words: list[str]) -> str:
    return "_".join(w.lower() for w in words)


def to_class_case(words: list[str]) -> str:
    return "".join(_capitalize(w) for w in words)


def to_upper_case_words(words: list[str]) -> str:
    return "_".join(w.upper() for w in words)


def convert_case(words: list[str], case: Case) -> str:
    if case is Case.SNAKE:
        return to_snake_case(words)
    return to_class_case(words)


def snake_case(s: str) -> str:
    return to_snake_case(split_words(s))


def class_case(s: str) -> str:
    return to_class_case(split_words(s))


def common_prefix_len(items: list[list[str]]) -> int:
    if not items:
        return 0
    n = min(len(x) for x in items)
    for i in range(n):
        if any(x[i] != items[0][i] for x in items[1:]):
            return i
    return n


def common_suffix_len(items: list[list[str]]) -> int:
    return common_prefix_len([list(reversed(x)) for x in items])
