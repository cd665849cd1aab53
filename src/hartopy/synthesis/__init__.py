"""Schema inference and model emission for JSON documents."""

from hartopy.synthesis.emission import (
    ImportSet,
    RenderedDeclarations,
    escape_string,
    render_declarations,
    render_module,
)
from hartopy.synthesis.inference import SchemaInferrer, infer
from hartopy.synthesis.model import (
    ArrayType,
    AuxiliaryType,
    AuxiliaryTypeTable,
    CollisionPolicy,
    FieldSpec,
    InferenceResult,
    NamedWrapperType,
    PrimitiveKind,
    PrimitiveType,
    RecordType,
    SynthesisConfig,
    TypeDescriptor,
)
from hartopy.synthesis.naming import safe_identifier, to_camel_case

__all__ = [
    "ArrayType",
    "AuxiliaryType",
    "AuxiliaryTypeTable",
    "CollisionPolicy",
    "FieldSpec",
    "ImportSet",
    "InferenceResult",
    "NamedWrapperType",
    "PrimitiveKind",
    "PrimitiveType",
    "RecordType",
    "RenderedDeclarations",
    "SchemaInferrer",
    "SynthesisConfig",
    "TypeDescriptor",
    "escape_string",
    "infer",
    "render_declarations",
    "render_module",
    "safe_identifier",
    "to_camel_case",
]
