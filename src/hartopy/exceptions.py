"""Error taxonomy for hartopy.

Each failure carries enough context for a batch caller to log it and move on
to the next document, field or archive entry.
"""

from __future__ import annotations


class HartopyError(Exception):
    """Base class for every error raised by hartopy."""


class DecodeError(HartopyError, ValueError):
    """Raw text did not parse as a JSON document."""

    def __init__(
        self,
        reason: str,
        *,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.reason = reason
        self.offset = offset
        self.line = line
        self.column = column
        if offset is None:
            message = f"invalid JSON: {reason}"
        else:
            message = f"invalid JSON at offset {offset} (line {line}, column {column}): {reason}"
        super().__init__(message)


class InferenceError(HartopyError):
    """Internal failure of one inference pass."""

    def __init__(self, message: str, *, path: str = "$") -> None:
        self.path = path
        super().__init__(f"{message} at {path}")


class UnsupportedValueError(InferenceError):
    """A decoded value matched none of the JSON value kinds."""


class NameCollisionError(InferenceError):
    """A synthesized type name collided after the single suffix retry."""

    def __init__(self, name: str, *, path: str = "$") -> None:
        self.name = name
        super().__init__(f"type name {name!r} is already taken", path=path)


class EmissionValidationError(HartopyError):
    """Rendered text is not syntactically valid Python.

    The raw text is kept on ``source`` so callers can still inspect or write it.
    """

    def __init__(self, diagnostic: str, *, source: str) -> None:
        self.diagnostic = diagnostic
        self.source = source
        super().__init__(f"generated code failed validation: {diagnostic}")


class ArchiveError(HartopyError):
    """An HTTP archive could not be read or has an unexpected shape."""


class OrderViolationError(HartopyError):
    """Values handed over in caller order were not actually ordered."""

    def __init__(self, message: str, *, payload: dict[str, object]) -> None:
        self.payload = payload
        super().__init__(f"{message} ({payload.get('source', '?')})")
