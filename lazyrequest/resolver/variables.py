"""
lazyrequest/resolver/variables.py

Purpose:
    Expands {{name}} placeholders inside parsed requests and emits
    self-contained ResolvedRequestUnits.

Scopes (lowest to highest precedence):
    file variables < request block variables < expected-response variables

    Each request starts from the file scope only, so block variables can
    never leak into sibling requests. Scopes are plain dicts merged at the
    point of use; nothing is shared between requests.

Interpolation:
    Replacement values may contain placeholders themselves. Rewriting is a
    bounded fixed-point loop (max_interpolation_passes, default 10) that
    stops as soon as a pass changes nothing or nothing is left to expand.
    Cyclic definitions therefore terminate. Whatever survives the cap is
    handled like any other unknown placeholder: left verbatim, or rejected
    when strict mode is on.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from pydantic import ValidationError

from lazyrequest.base.exceptions import TemplateInputError, UnresolvedVariableError
from lazyrequest.contracts.models import (
    ExpectedResponse,
    HttpHeader,
    HttpRequest,
    ParsedSource,
    ResolvedRequestUnit,
    variables_to_map,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")
DEFAULT_MAX_INTERPOLATION_PASSES = 10


class VariableResolver:
    def __init__(
        self,
        max_interpolation_passes: int = DEFAULT_MAX_INTERPOLATION_PASSES,
        throw_on_unresolved: bool = False,
    ):
        if max_interpolation_passes < 1:
            raise ValueError("max_interpolation_passes must be >= 1")
        self.max_interpolation_passes = max_interpolation_passes
        self.throw_on_unresolved = throw_on_unresolved

    def resolve_sources(self, sources: Sequence[ParsedSource]) -> List[ResolvedRequestUnit]:
        """Resolve a batch of sources, flattened in source order."""
        if isinstance(sources, (str, bytes, dict)) or not isinstance(sources, Sequence):
            raise TemplateInputError(
                "sources must be a sequence of ParsedSource",
                details={"received": type(sources).__name__},
            )

        resolved: List[ResolvedRequestUnit] = []
        for position, source in enumerate(sources):
            resolved.extend(self.resolve_source(self._ensure_source(source, position)))
        return resolved

    def resolve_source(self, source: ParsedSource) -> List[ResolvedRequestUnit]:
        file_scope = variables_to_map(source.ast.file_variables)
        logger.debug(
            "Resolving %d request(s) from %s (%d file variable(s))",
            len(source.ast.requests),
            source.source_name,
            len(file_scope),
        )

        units: List[ResolvedRequestUnit] = []
        for request_index, request in enumerate(source.ast.requests):
            scope = {**file_scope, **variables_to_map(request.block_variables)}
            unresolved: Set[str] = set()
            resolved_request = self.resolve_request(request, scope, unresolved)

            if unresolved:
                logger.warning(
                    "Unresolved placeholder(s) left verbatim in %s #%d: %s",
                    source.source_name,
                    request_index,
                    ", ".join(sorted(unresolved)),
                )

            units.append(
                ResolvedRequestUnit(
                    source_type=source.source_type,
                    source_name=source.source_name,
                    file_path=source.file_path,
                    request_index=request_index,
                    request=resolved_request,
                )
            )
        return units

    def resolve_request(
        self,
        request: HttpRequest,
        variables: Mapping[str, str],
        unresolved: Optional[Set[str]] = None,
    ) -> HttpRequest:
        """Return an interpolated copy of request; the input is left untouched."""
        update: Dict[str, Any] = {
            "url": self.interpolate_string(request.url, variables, unresolved),
            "headers": self._interpolate_headers(request.headers, variables, unresolved),
        }

        if request.body is not None:
            update["body"] = request.body.model_copy(
                update={
                    "raw": self.interpolate_string(request.body.raw, variables, unresolved),
                    "content_type": self.interpolate_value(request.body.content_type, variables, unresolved),
                }
            )

        if request.expected_response is not None:
            update["expected_response"] = self._resolve_expected(
                request.expected_response, variables, unresolved
            )

        return request.model_copy(update=update)

    def _resolve_expected(
        self,
        expected: ExpectedResponse,
        variables: Mapping[str, str],
        unresolved: Optional[Set[str]],
    ) -> ExpectedResponse:
        # Third layer: visible only while interpolating this block.
        scope = {**variables, **variables_to_map(expected.variables)}
        return expected.model_copy(
            update={
                "status_text": self.interpolate_value(expected.status_text, scope, unresolved),
                "headers": self._interpolate_headers(expected.headers, scope, unresolved),
                "body": self.interpolate_value(expected.body, scope, unresolved),
            }
        )

    def _interpolate_headers(self, headers, variables, unresolved):
        return tuple(
            HttpHeader(
                name=self.interpolate_string(header.name, variables, unresolved),
                value=self.interpolate_string(header.value, variables, unresolved),
            )
            for header in headers
        )

    def interpolate_string(
        self,
        text: str,
        variables: Mapping[str, str],
        unresolved: Optional[Set[str]] = None,
    ) -> str:
        output = text
        for _ in range(self.max_interpolation_passes):
            changed = False

            def substitute(match: re.Match) -> str:
                nonlocal changed
                name = match.group(1)
                if name not in variables:
                    if self.throw_on_unresolved:
                        raise UnresolvedVariableError(name)
                    return match.group(0)
                changed = True
                return variables[name]

            output = PLACEHOLDER_PATTERN.sub(substitute, output)
            if not changed or not PLACEHOLDER_PATTERN.search(output):
                break

        remaining = PLACEHOLDER_PATTERN.findall(output)
        if remaining:
            if self.throw_on_unresolved:
                raise UnresolvedVariableError(
                    remaining[0],
                    details={"reason": f"still present after {self.max_interpolation_passes} passes"},
                )
            if unresolved is not None:
                unresolved.update(remaining)
        return output

    def interpolate_value(
        self,
        value: Any,
        variables: Mapping[str, str],
        unresolved: Optional[Set[str]] = None,
    ) -> Any:
        """Interpolate strings anywhere inside a structured value. Keys are kept as-is."""
        if value is None:
            return None
        if isinstance(value, str):
            return self.interpolate_string(value, variables, unresolved)
        if isinstance(value, list):
            return [self.interpolate_value(item, variables, unresolved) for item in value]
        if isinstance(value, tuple):
            return tuple(self.interpolate_value(item, variables, unresolved) for item in value)
        if isinstance(value, dict):
            return {key: self.interpolate_value(item, variables, unresolved) for key, item in value.items()}
        return value

    @staticmethod
    def _ensure_source(source: Any, position: int) -> ParsedSource:
        if isinstance(source, ParsedSource):
            return source
        if isinstance(source, dict):
            try:
                return ParsedSource.model_validate(source)
            except ValidationError as e:
                raise TemplateInputError(
                    f"Malformed source at position {position}: {e.error_count()} validation error(s)",
                    details={"position": position, "errors": e.errors(include_url=False)},
                ) from e
        raise TemplateInputError(
            f"Malformed source at position {position}: expected ParsedSource, got {type(source).__name__}",
            details={"position": position},
        )
