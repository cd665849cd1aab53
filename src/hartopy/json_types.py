"""Tagged JSON values produced by the decoder.

The variant is closed: every decoded document is built only from the six
classes below, so consumers can `match` over them exhaustively instead of
probing runtime types of plain Python containers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, TypeAlias

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class JsonNull:
    pass


@dataclass(frozen=True)
class JsonBool:
    value: bool


@dataclass(frozen=True)
class JsonNumber:
    """A number literal kept as its raw text.

    `integral` is set only for literals without fraction or exponent that fit
    in a signed 64-bit integer.
    """

    text: str
    integral: bool

    @classmethod
    def from_literal(cls, text: str) -> JsonNumber:
        # 20 characters covers "-9223372036854775808"; longer literals never fit.
        if len(text) > 20 or any(marker in text for marker in ".eE"):
            return cls(text=text, integral=False)
        value = int(text)
        return cls(text=text, integral=INT64_MIN <= value <= INT64_MAX)


@dataclass(frozen=True)
class JsonString:
    value: str


@dataclass(frozen=True)
class JsonArray:
    items: tuple[JsonValue, ...] = ()

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class JsonObject:
    members: tuple[tuple[str, JsonValue], ...] = ()

    def keys(self) -> list[str]:
        return [key for key, _ in self.members]

    def get(self, key: str) -> JsonValue | None:
        for member_key, value in self.members:
            if member_key == key:
                return value
        return None

    def __iter__(self) -> Iterator[tuple[str, JsonValue]]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)


JsonValue: TypeAlias = JsonNull | JsonBool | JsonNumber | JsonString | JsonArray | JsonObject
