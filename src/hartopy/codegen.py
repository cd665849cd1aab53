from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from hartopy.exceptions import HartopyError
from hartopy.har import Entry, Request
from hartopy.synthesis.emission import (
    ImportSet,
    RenderedDeclarations,
    escape_string,
    render_declarations,
    render_module,
    string_literal,
)
from hartopy.synthesis.inference import SchemaInferrer
from hartopy.synthesis.model import SynthesisConfig
from hartopy.synthesis.naming import safe_identifier, to_camel_case

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"
_NON_WORD_RE = re.compile(r"\W")
_DROPPED_HEADERS = frozenset({"content-length"})


def generate_models(
    text: str | bytes,
    name: str,
    config: SynthesisConfig | None = None,
) -> RenderedDeclarations:
    """Decode `text`, infer its schema and render the declarations."""
    result = SchemaInferrer(config or SynthesisConfig()).infer_text(text, name)
    return render_declarations(result, name)


def generate_model_module(
    text: str | bytes,
    name: str,
    config: SynthesisConfig | None = None,
) -> str:
    return render_module([generate_models(text, name, config)])


def entry_file_stem(request: Request) -> str:
    """`<METHOD>_<host>_<path>` with every non-word character replaced by `_`."""
    parts = urlsplit(request.url)
    path = parts.path.strip("/").replace("/", "_") or "root"
    return _NON_WORD_RE.sub("_", f"{request.method}_{parts.netloc}_{path}")


def model_prefix(stem: str, config: SynthesisConfig | None = None) -> str:
    config = config or SynthesisConfig()
    return safe_identifier(to_camel_case(stem), config.identifier_prefix)


def unescape_body(text: str) -> str | None:
    """Read `text` as the contents of a JSON string literal, if it is one."""
    try:
        value = json.loads(f'"{text}"')
    except ValueError:
        return None
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class RequestFunction:
    """Everything the request-function template needs for one entry."""

    function_name: str
    method: str
    base_url: str
    entry: Entry
    body_text: str = ""
    request_models: RenderedDeclarations | None = None
    response_models: RenderedDeclarations | None = None


def _request_models(
    entry: Entry, name: str, config: SynthesisConfig
) -> tuple[RenderedDeclarations | None, str]:
    post_data = entry.request.post_data
    text = post_data.text
    if JSON_MIME not in post_data.mime_type or not text:
        return None, text
    unescaped = unescape_body(text)
    if unescaped is not None:
        try:
            return generate_models(unescaped, name, config), unescaped
        except HartopyError as exc:
            logger.debug("unescaped request body for %s is not usable: %s", name, exc)
    try:
        return generate_models(text, name, config), text
    except HartopyError as exc:
        logger.warning("Could not generate request model for %s: %s", name, exc)
        return None, text


def _response_models(
    entry: Entry, name: str, config: SynthesisConfig
) -> RenderedDeclarations | None:
    content = entry.response.content
    if JSON_MIME not in content.mime_type or not content.text:
        return None
    try:
        return generate_models(content.text, name, config)
    except HartopyError as exc:
        logger.warning("Could not generate response model for %s: %s", name, exc)
        return None


def build_request_function(
    entry: Entry,
    function_name: str,
    prefix: str,
    config: SynthesisConfig | None = None,
) -> RequestFunction:
    config = config or SynthesisConfig()
    parts = urlsplit(entry.request.url)
    base_url = f"{parts.scheme}://{parts.netloc}{parts.path}"
    request_models, body_text = _request_models(entry, f"{prefix}Request", config)
    return RequestFunction(
        function_name=function_name,
        method=entry.request.method.upper(),
        base_url=base_url,
        entry=entry,
        body_text=body_text,
        request_models=request_models,
        response_models=_response_models(entry, f"{prefix}Response", config),
    )


def _pairs_literal(name: str, pairs: list[tuple[str, str]]) -> list[str]:
    if not pairs:
        return [f"{name}: list[tuple[str, str]] = []"]
    lines = [f"{name}: list[tuple[str, str]] = ["]
    lines.extend(
        f"    ({string_literal(key)}, {string_literal(value)})," for key, value in pairs
    )
    lines.append("]")
    return lines


def _form_literal(pairs: list[tuple[str, str]]) -> list[str]:
    grouped: dict[str, list[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    lines = ["FORM: dict[str, list[str]] = {"]
    for key, values in grouped.items():
        joined = ", ".join(string_literal(value) for value in values)
        lines.append(f"    {string_literal(key)}: [{joined}],")
    lines.append("}")
    return lines


def render_request_function(spec: RequestFunction) -> str:
    request = spec.entry.request
    headers = [
        (header.name, header.value)
        for header in request.headers
        if not header.name.startswith(":")
        and header.name.lower() not in _DROPPED_HEADERS
    ]
    params = [(item.name, item.value) for item in request.query_string]
    form = [(item.name, item.value) for item in request.post_data.params]

    lines = [f"URL = {string_literal(spec.base_url)}"]
    lines += _pairs_literal("HEADERS", headers)
    lines += _pairs_literal("PARAMS", params)
    if spec.body_text:
        lines.append(f"RECORDED_BODY = {string_literal(spec.body_text)}")
    elif form:
        lines += _form_literal(form)
    lines += ["", ""]

    signature = ["    client: httpx.Client,"]
    if spec.request_models is not None:
        signature.append(f"    body: {spec.request_models.name} | None = None,")
    if spec.response_models is not None:
        returns = spec.response_models.name
    else:
        returns = "httpx.Response"
    lines.append(f"def {spec.function_name}(")
    lines += signature
    lines.append(f") -> {returns}:")
    summary = f"{spec.method} {spec.base_url} (recorded status {spec.entry.response.status})."
    lines.append(f'    """{escape_string(summary)}"""')

    call = [
        "    response = client.request(",
        f"        {string_literal(spec.method)},",
        "        URL,",
        "        headers=HEADERS,",
        "        params=PARAMS,",
    ]
    if spec.request_models is not None:
        lines += [
            "    if body is not None:",
            "        content = body.model_dump_json(by_alias=True, exclude_unset=True)",
            "    else:",
            "        content = RECORDED_BODY",
        ]
        call.append("        content=content,")
    elif spec.body_text:
        call.append("        content=RECORDED_BODY,")
    elif form:
        call.append("        data=FORM,")
    call.append("    )")
    lines += call
    lines.append("    response.raise_for_status()")
    if spec.response_models is not None:
        lines.append(f"    return {returns}.model_validate_json(response.content)")
    else:
        lines.append("    return response")
    return "\n".join(lines) + "\n"


def generate_request_module(
    entry: Entry,
    function_name: str,
    prefix: str,
    config: SynthesisConfig | None = None,
) -> str:
    """Render a module holding one request function plus its body models.

    Raises `EmissionValidationError` (with the raw text) when the module
    does not parse.
    """
    spec = build_request_function(entry, function_name, prefix, config)
    parts = [
        models
        for models in (spec.request_models, spec.response_models)
        if models is not None
    ]
    extra = ImportSet()
    extra.add("httpx")
    return render_module(parts, extra_imports=extra, body=render_request_function(spec))
