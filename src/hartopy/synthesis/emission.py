from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable

import libcst as cst

from hartopy.exceptions import EmissionValidationError
from hartopy.order_contract import sort_once
from hartopy.synthesis.model import (
    ANY,
    ArrayType,
    AuxiliaryType,
    InferenceResult,
    NamedWrapperType,
    PrimitiveKind,
    PrimitiveType,
    RecordType,
    TypeDescriptor,
)

GENERATED_HEADER = "# Auto-generated by hartopy. Do not edit by hand."
STDLIB_MODULES = frozenset({"json", "typing"})

# Lone surrogates are legal in JSON strings but cannot be written as UTF-8.
_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")

_PRIMITIVE_ANNOTATIONS = {
    PrimitiveKind.BOOL: "bool",
    PrimitiveKind.INT64: "int",
    PrimitiveKind.FLOAT64: "float",
    PrimitiveKind.STRING: "str",
    PrimitiveKind.ANY: "Any",
}


def escape_string(value: str) -> str:
    """Escape `value` for embedding between double quotes in Python source."""
    escaped = json.dumps(value, ensure_ascii=False)[1:-1]
    return _SURROGATE_RE.sub(lambda match: f"\\u{ord(match.group()):04x}", escaped)


def string_literal(value: str) -> str:
    return f'"{escape_string(value)}"'


@dataclass
class ImportSet:
    """Module -> imported names; an empty name set means `import module`."""

    modules: dict[str, set[str]] = field(default_factory=dict)

    def add(self, module: str, *names: str) -> None:
        self.modules.setdefault(module, set()).update(names)

    def merge(self, other: ImportSet) -> None:
        for module, names in other.modules.items():
            self.add(module, *names)

    def lines(self) -> list[str]:
        """Import statements, stdlib group first, separated by a blank line."""
        stdlib: list[str] = []
        third_party: list[str] = []
        for module in sort_once(
            self.modules,
            source="ImportSet.lines.modules",
            # `import x` lines precede `from x import y` lines in each group.
            key=lambda name: (bool(self.modules[name]), name),
        ):
            names = self.modules[module]
            if names:
                joined = ", ".join(sort_once(names, source="ImportSet.lines.names"))
                line = f"from {module} import {joined}"
            else:
                line = f"import {module}"
            (stdlib if module in STDLIB_MODULES else third_party).append(line)
        if stdlib and third_party:
            return [*stdlib, "", *third_party]
        return [*stdlib, *third_party]

    def identifiers(self) -> list[str]:
        return [line for line in self.lines() if line]


@dataclass(frozen=True)
class RenderedDeclarations:
    name: str
    source: str
    imports: ImportSet
    type_names: tuple[str, ...]


def validate_source(source: str) -> None:
    try:
        cst.parse_module(source)
    except cst.ParserSyntaxError as exc:
        raise EmissionValidationError(str(exc), source=source) from exc
    except RecursionError as exc:
        raise EmissionValidationError("nesting is too deep to parse", source=source) from exc


def render_annotation(descriptor: TypeDescriptor) -> str:
    match descriptor:
        case PrimitiveType(kind=kind):
            return _PRIMITIVE_ANNOTATIONS[kind]
        case ArrayType(element=element):
            return f"list[{render_annotation(element)}]"
        case RecordType(name=name) | NamedWrapperType(name=name):
            return name
    raise TypeError(f"unknown type descriptor: {descriptor!r}")


def _uses_any(descriptor: TypeDescriptor) -> bool:
    match descriptor:
        case PrimitiveType(kind=kind):
            return kind is PrimitiveKind.ANY
        case ArrayType(element=element):
            return _uses_any(element)
    return False


class _Renderer:
    def __init__(self) -> None:
        self.imports = ImportSet()
        self.type_names: list[str] = []

    def record(self, name: str, record: RecordType) -> list[str]:
        self.imports.add("pydantic", "BaseModel", "ConfigDict")
        self.type_names.append(name)
        lines = [
            f"class {name}(BaseModel):",
            "    model_config = ConfigDict(populate_by_name=True)",
        ]
        if record.fields:
            lines.append("")
            self.imports.add("pydantic", "Field")
        for spec in record.fields:
            annotation = render_annotation(spec.type)
            if _uses_any(spec.type):
                self.imports.add("typing", "Any")
            if spec.type != ANY:
                annotation = f"{annotation} | None"
            lines.append(
                f"    {spec.field_name}: {annotation} = "
                f"Field(default=None, alias={string_literal(spec.json_key)})"
            )
        return lines

    def root(self, name: str, descriptor: TypeDescriptor) -> list[str]:
        # `root: T` instead of `RootModel[T]` keeps T a lazy annotation, so
        # it may name a class declared further down.
        self.imports.add("pydantic", "RootModel")
        if _uses_any(descriptor):
            self.imports.add("typing", "Any")
        self.type_names.append(name)
        return [f"class {name}(RootModel):", f"    root: {render_annotation(descriptor)}"]

    def shape(self, name: str, descriptor: TypeDescriptor) -> list[str]:
        if isinstance(descriptor, RecordType):
            return self.record(name, descriptor)
        return self.root(name, descriptor)

    def auxiliary(self, declaration: AuxiliaryType) -> list[str]:
        if declaration.wrapper:
            return self.wrapper(declaration)
        return self.shape(declaration.name, declaration.shape)

    def wrapper(self, declaration: AuxiliaryType) -> list[str]:
        # The alias carries the plain shape. The public class adds the
        # string unwrap/re-wrap and serializes through the alias, which has
        # no custom serializer to re-enter.
        name = declaration.name
        alias = f"_{name}Shape"
        self.imports.add("json")
        self.imports.add("typing", "Any")
        self.imports.add("pydantic", "model_serializer", "model_validator")
        if isinstance(declaration.shape, RecordType):
            construct = f"{alias}.model_construct(_fields_set=self.model_fields_set, **dict(self))"
        else:
            construct = f"{alias}.model_construct(self.root)"
        lines = self.shape(alias, declaration.shape)
        lines += [
            "",
            "",
            f"class {name}({alias}):",
            f'    """{name} travels on the wire as a JSON document encoded in a string."""',
            "",
            '    @model_validator(mode="before")',
            "    @classmethod",
            "    def decode_embedded_json(cls, data: Any) -> Any:",
            "        if isinstance(data, str):",
            "            return json.loads(data)",
            "        return data",
            "",
            '    @model_serializer(mode="plain")',
            "    def encode_embedded_json(self) -> str:",
            f"        shape = {construct}",
            '        payload = shape.model_dump(mode="json", by_alias=True, exclude_unset=True)',
            '        return json.dumps(payload, separators=(",", ":"))',
        ]
        self.type_names.append(name)
        return lines


def render_declarations(result: InferenceResult, name: str) -> RenderedDeclarations:
    """Render auxiliary types (sorted by name) followed by the primary type.

    Raises `EmissionValidationError` carrying the raw text when the result
    does not parse as Python. Types nested too deeply to render raise it
    with empty text.
    """
    renderer = _Renderer()
    try:
        blocks = [renderer.auxiliary(declaration) for declaration in result.types]
        blocks.append(renderer.shape(name, result.primary))
    except RecursionError as exc:
        raise EmissionValidationError("type nesting is too deep to render", source="") from exc
    source = "\n\n\n".join("\n".join(block) for block in blocks) + "\n"
    validate_source(source)
    return RenderedDeclarations(
        name=name,
        source=source,
        imports=renderer.imports,
        type_names=tuple(renderer.type_names),
    )


def render_module(
    parts: Iterable[RenderedDeclarations],
    *,
    extra_imports: ImportSet | None = None,
    body: str = "",
) -> str:
    """Assemble a complete module: header, imports, declarations, then `body`.

    Raises `EmissionValidationError` when the assembled text does not parse.
    """
    parts = list(parts)
    imports = ImportSet()
    for part in parts:
        imports.merge(part.imports)
    if extra_imports is not None:
        imports.merge(extra_imports)
    preamble = [GENERATED_HEADER, "from __future__ import annotations", ""]
    preamble.extend(imports.lines())
    sections = ["\n".join(preamble)]
    sections.extend(part.source.rstrip("\n") for part in parts)
    type_names = [type_name for part in parts for type_name in part.type_names]
    if type_names:
        sections.append(_rebuild_trailer(type_names))
    if body:
        sections.append(body.rstrip("\n"))
    source = "\n\n\n".join(sections) + "\n"
    validate_source(source)
    return source


def _rebuild_trailer(type_names: list[str]) -> str:
    lines = ["for _model in ("]
    lines.extend(f"    {type_name}," for type_name in type_names)
    lines.append("):")
    lines.append("    _model.model_rebuild()")
    return "\n".join(lines)
