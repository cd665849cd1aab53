from __future__ import annotations

import importlib.util
import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterator

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest


@contextmanager
def _env_values(values: dict[str, str | None]) -> Iterator[None]:
    previous = {key: os.environ.get(key) for key in values}
    for key, value in values.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


@pytest.fixture
def env_scope():
    return _env_values


@pytest.fixture
def load_generated(tmp_path: Path) -> Iterator[Callable[[str, str], ModuleType]]:
    """Import generated source as a real module so pydantic can resolve names."""
    loaded: list[str] = []

    def _load(source: str, name: str = "generated_models") -> ModuleType:
        path = tmp_path / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(name, path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        loaded.append(name)
        spec.loader.exec_module(module)
        return module

    yield _load
    for name in loaded:
        sys.modules.pop(name, None)


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def _har_entry(
    *,
    method: str = "POST",
    url: str = "https://api.example.com/v1/users?page=2",
    request_body: object | None = None,
    response_body: object | None = None,
    status: int = 201,
) -> dict[str, object]:
    request: dict[str, object] = {
        "method": method,
        "url": url,
        "headers": [
            {"name": ":authority", "value": "api.example.com"},
            {"name": "Content-Type", "value": "application/json"},
            {"name": "Content-Length", "value": "42"},
            {"name": "X-Token", "value": 'abc"def'},
        ],
        "queryString": [{"name": "page", "value": "2"}],
    }
    if request_body is not None:
        request["postData"] = {"mimeType": "application/json", "text": json.dumps(request_body)}
    content: dict[str, object] = {"mimeType": "application/json; charset=utf-8"}
    if response_body is not None:
        content["text"] = json.dumps(response_body)
    return {"request": request, "response": {"status": status, "content": content}}


@pytest.fixture
def har_entry() -> Callable[..., dict[str, object]]:
    return _har_entry


@pytest.fixture
def write_har(tmp_path: Path) -> Callable[[list[dict[str, object]], str], Path]:
    def _write(entries: list[dict[str, object]], name: str = "capture.har") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps({"log": {"version": "1.2", "entries": entries}}), encoding="utf-8")
        return path

    return _write
