"""HTTP Archive (HAR) shapes and reader.

Only the parts of the archive that request synthesis needs are modelled;
everything else in an entry is ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hartopy.decoder import strip_bom
from hartopy.exceptions import ArchiveError, DecodeError


class _HarModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Header(_HarModel):
    name: str
    value: str = ""


class QueryString(_HarModel):
    name: str
    value: str = ""


class Param(_HarModel):
    name: str
    value: str = ""


class PostData(_HarModel):
    mime_type: str = Field(default="", alias="mimeType")
    text: str = ""
    params: List[Param] = []


class Content(_HarModel):
    mime_type: str = Field(default="", alias="mimeType")
    text: str = ""


class Request(_HarModel):
    method: str
    url: str
    headers: List[Header] = []
    query_string: List[QueryString] = Field(default=[], alias="queryString")
    post_data: PostData = Field(default_factory=PostData, alias="postData")


class Response(_HarModel):
    status: int = 0
    content: Content = Field(default_factory=Content)


class Entry(_HarModel):
    request: Request
    response: Response = Field(default_factory=Response)


class Log(_HarModel):
    entries: List[Entry] = []


class Har(_HarModel):
    log: Log


def parse_har(raw: str | bytes) -> Har:
    try:
        text = strip_bom(raw)
    except DecodeError as exc:
        raise ArchiveError(str(exc)) from exc
    try:
        return Har.model_validate_json(text)
    except ValidationError as exc:
        raise ArchiveError(f"not a valid HAR document: {exc}") from exc


def read_har_file(path: Path) -> Har:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ArchiveError(f"cannot read {path}: {exc}") from exc
    return parse_har(raw)
