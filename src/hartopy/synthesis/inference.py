from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hartopy.decoder import decode, try_decode
from hartopy.exceptions import InferenceError, UnsupportedValueError
from hartopy.json_types import (
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
)
from hartopy.order_contract import ordered_or_sorted
from hartopy.synthesis.model import (
    ANY,
    BOOL,
    FLOAT64,
    INT64,
    STRING,
    ArrayType,
    AuxiliaryType,
    AuxiliaryTypeTable,
    FieldSpec,
    InferenceResult,
    NamedWrapperType,
    RecordType,
    SynthesisConfig,
    TypeDescriptor,
)
from hartopy.synthesis.naming import (
    element_hint,
    safe_identifier,
    to_camel_case,
    unique_field_name,
)

logger = logging.getLogger(__name__)


@dataclass
class SchemaInferrer:
    config: SynthesisConfig = field(default_factory=SynthesisConfig)

    def infer(self, value: JsonValue, name_hint: str) -> InferenceResult:
        """Infer the primary type of `value` and every auxiliary type it needs.

        The table is created per call, so concurrent calls never share state.
        `name_hint` is reserved up front and becomes the primary type name.
        Object keys are visited in the order chosen by the active order
        policy, lexicographic by default.
        """
        table = AuxiliaryTypeTable(config=self.config)
        table.reserve(name_hint)
        try:
            primary = _InferencePass(table, self.config).shape(value, name_hint, "$")
        except RecursionError as exc:
            raise InferenceError("document nesting is too deep") from exc
        return InferenceResult(primary=primary, types=table)

    def infer_text(self, text: str | bytes, name_hint: str) -> InferenceResult:
        return self.infer(decode(text), name_hint)


def infer(
    value: JsonValue,
    name_hint: str,
    config: SynthesisConfig | None = None,
) -> InferenceResult:
    return SchemaInferrer(config or SynthesisConfig()).infer(value, name_hint)


class _InferencePass:
    def __init__(self, table: AuxiliaryTypeTable, config: SynthesisConfig) -> None:
        self.table = table
        self.config = config

    def shape(self, value: JsonValue, hint: str, path: str) -> TypeDescriptor:
        # Objects at the root of a document (or of a double-encoded string)
        # belong to the declaration named `hint` instead of a new table entry.
        if isinstance(value, JsonObject):
            return RecordType(name=hint, fields=self.fields(value, hint, path))
        return self.type_of(value, hint, path)

    def type_of(self, value: JsonValue, hint: str, path: str) -> TypeDescriptor:
        match value:
            case JsonObject():
                name = self.table.reserve(hint, path=path)
                record = RecordType(name=name, fields=self.fields(value, name, path))
                self.table.define(AuxiliaryType(name=name, shape=record))
                return record
            case JsonArray(items=items):
                if not items:
                    return ArrayType(ANY)
                return ArrayType(self.type_of(items[0], element_hint(hint), f"{path}[0]"))
            case JsonString(value=text):
                inner = try_decode(text)
                if isinstance(inner, (JsonObject, JsonArray)):
                    return self.wrapper(inner, hint, path)
                return STRING
            case JsonNumber(integral=integral):
                return INT64 if integral else FLOAT64
            case JsonBool():
                return BOOL
            case JsonNull():
                return ANY
        raise UnsupportedValueError(
            f"unsupported value of type {type(value).__name__}", path=path
        )

    def fields(self, value: JsonObject, hint: str, path: str) -> tuple[FieldSpec, ...]:
        members = dict(value.members)
        taken: set[str] = set()
        specs: list[FieldSpec] = []
        for key in ordered_or_sorted(members, source=f"object keys at {path}"):
            base = safe_identifier(to_camel_case(key), self.config.identifier_prefix)
            field_name = unique_field_name(base, taken)
            field_type = self.type_of(members[key], hint + field_name, f"{path}.{key}")
            specs.append(FieldSpec(field_name=field_name, json_key=key, type=field_type))
        return tuple(specs)

    def wrapper(self, inner: JsonValue, hint: str, path: str) -> NamedWrapperType:
        name = self.table.reserve(hint, path=path)
        logger.debug("double-encoded JSON at %s becomes wrapper %s", path, name)
        shape = self.shape(inner, name, path)
        self.table.define(AuxiliaryType(name=name, shape=shape, wrapper=True))
        return NamedWrapperType(name)
