from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NamedTuple, TypeAlias

from hartopy.exceptions import NameCollisionError
from hartopy.order_contract import sort_once


class PrimitiveKind(str, Enum):
    BOOL = "bool"
    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    ANY = "any"


class CollisionPolicy(str, Enum):
    SUFFIX = "suffix"
    STRICT = "strict"


@dataclass(frozen=True)
class PrimitiveType:
    kind: PrimitiveKind


@dataclass(frozen=True)
class ArrayType:
    element: TypeDescriptor


@dataclass(frozen=True)
class FieldSpec:
    field_name: str
    json_key: str
    type: TypeDescriptor


@dataclass(frozen=True)
class RecordType:
    name: str
    fields: tuple[FieldSpec, ...] = ()


@dataclass(frozen=True)
class NamedWrapperType:
    name: str


TypeDescriptor: TypeAlias = PrimitiveType | ArrayType | RecordType | NamedWrapperType

BOOL = PrimitiveType(PrimitiveKind.BOOL)
INT64 = PrimitiveType(PrimitiveKind.INT64)
FLOAT64 = PrimitiveType(PrimitiveKind.FLOAT64)
STRING = PrimitiveType(PrimitiveKind.STRING)
ANY = PrimitiveType(PrimitiveKind.ANY)


@dataclass(frozen=True)
class AuxiliaryType:
    """A named declaration synthesized during inference.

    Plain records carry their own shape. Wrappers carry the shape of the
    decoded inner document and need the string-unwrap/re-wrap glue.
    """

    name: str
    shape: TypeDescriptor
    wrapper: bool = False


@dataclass(frozen=True)
class SynthesisConfig:
    wrapper_suffix: str = "Wrapper"
    collision_policy: CollisionPolicy = CollisionPolicy.SUFFIX
    identifier_prefix: str = "Json"


@dataclass
class AuxiliaryTypeTable:
    """Name -> declaration mapping built by one inference pass."""

    config: SynthesisConfig = field(default_factory=SynthesisConfig)
    _types: dict[str, AuxiliaryType] = field(default_factory=dict)
    _reserved: set[str] = field(default_factory=set)

    def reserve(self, hint: str, *, path: str = "$") -> str:
        """Claim a unique name derived from `hint`.

        The first collision appends the wrapper suffix once. A collision on
        the suffixed name is numbered, or rejected under the strict policy.
        """
        if hint not in self._reserved:
            self._reserved.add(hint)
            return hint
        name = f"{hint}{self.config.wrapper_suffix}"
        if name in self._reserved:
            if self.config.collision_policy is CollisionPolicy.STRICT:
                raise NameCollisionError(name, path=path)
            base = name
            counter = 2
            while name in self._reserved:
                name = f"{base}{counter}"
                counter += 1
        self._reserved.add(name)
        return name

    def define(self, declaration: AuxiliaryType) -> None:
        self._types[declaration.name] = declaration

    def names(self) -> list[str]:
        return sort_once(self._types, source="AuxiliaryTypeTable.names")

    def __getitem__(self, name: str) -> AuxiliaryType:
        return self._types[name]

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[AuxiliaryType]:
        return iter([self._types[name] for name in self.names()])

    def __len__(self) -> int:
        return len(self._types)


class InferenceResult(NamedTuple):
    primary: TypeDescriptor
    types: AuxiliaryTypeTable


def referenced_names(descriptor: TypeDescriptor) -> set[str]:
    """Names of every named type reachable from `descriptor`."""
    match descriptor:
        case PrimitiveType():
            return set()
        case ArrayType(element=element):
            return referenced_names(element)
        case RecordType(name=name, fields=fields):
            names = {name}
            for spec in fields:
                names |= referenced_names(spec.type)
            return names
        case NamedWrapperType(name=name):
            return {name}
    return set()
