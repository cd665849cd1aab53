from __future__ import annotations

import keyword
import re

_SEPARATORS = frozenset("._-")
_SEPARATOR_RE = re.compile(r"[._\-]+")
_NON_WORD_RE = re.compile(r"\W+")

# Names the emitted module binds at class or module scope.
RESERVED_NAMES = frozenset({"Any", "BaseModel", "ConfigDict", "Field", "RootModel"})


def to_camel_case(value: str) -> str:
    """Derive a field name from a raw JSON key.

    Keys without `.`, `_` or `-` keep their casing apart from the first
    character; others are split on separator runs and each word is
    title-cased.
    """
    if not any(char in _SEPARATORS for char in value):
        return value[:1].upper() + value[1:]
    return "".join(word.capitalize() for word in _SEPARATOR_RE.split(value) if word)


def safe_identifier(value: str, prefix: str = "Json", fallback: str = "Field") -> str:
    cleaned = _NON_WORD_RE.sub("", value)
    if cleaned and (cleaned[0].isdigit() or not cleaned.isidentifier()):
        cleaned = f"{prefix}{cleaned}"
    if not cleaned.isidentifier():
        cleaned = fallback
    if keyword.iskeyword(cleaned) or cleaned in RESERVED_NAMES:
        cleaned = f"{cleaned}_"
    return cleaned


def element_hint(hint: str) -> str:
    # items -> Item; the heuristic only drops one trailing "s".
    return hint.removesuffix("s")


def unique_field_name(name: str, taken: set[str]) -> str:
    candidate = name
    counter = 2
    while candidate in taken:
        candidate = f"{name}{counter}"
        counter += 1
    taken.add(candidate)
    return candidate
