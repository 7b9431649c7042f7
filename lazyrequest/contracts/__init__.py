from .enums import ComparisonStrategy, ExecutionMode, RequestExecutionStrategy, SourceType
from .models import (
    ExpectedResponse,
    HttpAst,
    HttpHeader,
    HttpRequest,
    ParsedSource,
    RequestBody,
    ResolvedRequestUnit,
    TemplateVariable,
)

__all__ = [
    "ComparisonStrategy",
    "ExecutionMode",
    "RequestExecutionStrategy",
    "SourceType",
    "ExpectedResponse",
    "HttpAst",
    "HttpHeader",
    "HttpRequest",
    "ParsedSource",
    "RequestBody",
    "ResolvedRequestUnit",
    "TemplateVariable",
]
