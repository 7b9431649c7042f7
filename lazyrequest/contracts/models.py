"""
lazyrequest/contracts/models.py

Purpose:
    Immutable data contracts for parsed template documents and the
    resolved request units derived from them.

Semantics:
    - The Template AST arrives fully formed from an external parser. Field
      aliases accept its camelCase wire shape (fileVariables, blockVariables,
      expectedResponse, statusCode, ...).
    - Every model is frozen. Resolution produces new instances through
      model_copy(update=...); the source AST is never mutated.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import SourceType


_CONTRACT_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def _coerce_pairs(value: Any, first: str, second: str) -> Any:
    """Accept [(a, b)], [{first: a, second: b}] or {a: b} for ordered pair lists."""
    if value is None:
        return ()
    if isinstance(value, dict):
        return [{first: k, second: v} for k, v in value.items()]
    if isinstance(value, (list, tuple)):
        coerced = []
        for item in value:
            if isinstance(item, (list, tuple)) and len(item) == 2:
                coerced.append({first: item[0], second: item[1]})
            else:
                coerced.append(item)
        return coerced
    return value


class TemplateVariable(BaseModel):
    model_config = _CONTRACT_CONFIG

    key: str
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float, bool)):
            return str(v)
        return v


class HttpHeader(BaseModel):
    model_config = _CONTRACT_CONFIG

    name: str
    value: str = ""


class RequestBody(BaseModel):
    model_config = _CONTRACT_CONFIG

    raw: str = ""
    content_type: Optional[str] = Field(default=None, alias="contentType")


class ExpectedResponse(BaseModel):
    model_config = _CONTRACT_CONFIG

    # Zero or negative means "do not assert the status code".
    status_code: int = Field(default=0, alias="statusCode")
    status_text: Optional[str] = Field(default=None, alias="statusText")
    headers: Tuple[HttpHeader, ...] = ()
    body: Any = None
    variables: Tuple[TemplateVariable, ...] = ()

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, v: Any) -> Any:
        return _coerce_pairs(v, "name", "value")

    @field_validator("variables", mode="before")
    @classmethod
    def coerce_variables(cls, v: Any) -> Any:
        return _coerce_pairs(v, "key", "value")


class HttpRequest(BaseModel):
    model_config = _CONTRACT_CONFIG

    method: str = "GET"
    url: str
    headers: Tuple[HttpHeader, ...] = ()
    body: Optional[RequestBody] = None
    name: Optional[str] = None
    block_variables: Tuple[TemplateVariable, ...] = Field(default=(), alias="blockVariables")
    expected_response: Optional[ExpectedResponse] = Field(default=None, alias="expectedResponse")

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, v: Any) -> Any:
        return _coerce_pairs(v, "name", "value")

    @field_validator("block_variables", mode="before")
    @classmethod
    def coerce_variables(cls, v: Any) -> Any:
        return _coerce_pairs(v, "key", "value")

    @field_validator("body", mode="before")
    @classmethod
    def coerce_body(cls, v: Any) -> Any:
        # A bare string is shorthand for {"raw": ...}.
        if isinstance(v, str):
            return {"raw": v}
        return v


class HttpAst(BaseModel):
    model_config = _CONTRACT_CONFIG

    file_variables: Tuple[TemplateVariable, ...] = Field(default=(), alias="fileVariables")
    requests: Tuple[HttpRequest, ...] = ()

    @field_validator("file_variables", mode="before")
    @classmethod
    def coerce_variables(cls, v: Any) -> Any:
        return _coerce_pairs(v, "key", "value")


class ParsedSource(BaseModel):
    """One template document (inline text or file) and its AST."""

    model_config = _CONTRACT_CONFIG

    source_type: SourceType = Field(alias="sourceType")
    source_name: str = Field(alias="sourceName")
    file_path: Optional[str] = Field(default=None, alias="filePath")
    ast: HttpAst


class ResolvedRequestUnit(BaseModel):
    """A fully interpolated request tagged with where it came from."""

    model_config = _CONTRACT_CONFIG

    source_type: SourceType = Field(alias="sourceType")
    source_name: str = Field(alias="sourceName")
    file_path: Optional[str] = Field(default=None, alias="filePath")
    request_index: int = Field(ge=0, alias="requestIndex")
    request: HttpRequest

    @property
    def display_name(self) -> str:
        return self.request.name or f"request-{self.request_index + 1}"

    @property
    def sort_key(self) -> Tuple[str, int]:
        return (self.source_name, self.request_index)


def variables_to_map(variables: Tuple[TemplateVariable, ...]) -> Dict[str, str]:
    """Ordered pairs to a mapping; later keys win, blank keys are dropped."""
    mapping: Dict[str, str] = {}
    for variable in variables:
        if not variable.key.strip():
            continue
        mapping[variable.key] = variable.value
    return mapping
