from __future__ import annotations

import json

from hartopy.exceptions import DecodeError
from hartopy.json_types import (
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
)

UTF8_BOM = b"\xef\xbb\xbf"
_BOM = "\ufeff"


def _reject_constant(name: str) -> JsonNumber:
    raise ValueError(f"{name} is not a valid JSON number")


def _object_pairs(pairs: list[tuple[str, object]]) -> dict[str, object]:
    # Later duplicates win, matching a plain mapping decode.
    return dict(pairs)


def strip_bom(text: str | bytes) -> str:
    if isinstance(text, bytes):
        if text.startswith(UTF8_BOM):
            text = text[len(UTF8_BOM):]
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"input is not UTF-8: {exc.reason}", offset=exc.start) from exc
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return text


def decode(text: str | bytes) -> JsonValue:
    """Decode one JSON document into a tagged value tree.

    Raises `DecodeError` with the offending offset when `text` is not a single
    well-formed JSON document.
    """
    source = strip_bom(text)
    try:
        raw = json.loads(
            source,
            parse_int=JsonNumber.from_literal,
            parse_float=JsonNumber.from_literal,
            parse_constant=_reject_constant,
            object_pairs_hook=_object_pairs,
        )
        return _tag(raw)
    except DecodeError:
        raise
    except json.JSONDecodeError as exc:
        raise DecodeError(exc.msg, offset=exc.pos, line=exc.lineno, column=exc.colno) from exc
    except RecursionError as exc:
        raise DecodeError("document nesting is too deep") from exc
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc


def try_decode(text: str) -> JsonValue | None:
    try:
        return decode(text)
    except DecodeError:
        return None


def _tag(raw: object) -> JsonValue:
    match raw:
        case None:
            return JsonNull()
        case bool() as flag:
            return JsonBool(flag)
        case JsonNumber() as number:
            return number
        case str() as text:
            return JsonString(text)
        case list() as items:
            return JsonArray(tuple(_tag(item) for item in items))
        case dict() as members:
            return JsonObject(tuple((key, _tag(value)) for key, value in members.items()))
    raise DecodeError(f"unexpected decoded value of type {type(raw).__name__}")
