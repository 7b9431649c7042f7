"""Pytest configuration for lazyrequest."""
import pytest

from lazyrequest.base.config import set_config
from lazyrequest.contracts.models import ParsedSource


@pytest.fixture(autouse=True)
def reset_config():
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def make_source():
    """Build a ParsedSource from the camelCase AST wire shape."""
    def _make(requests, file_variables=(), source_name="inline", source_type="inline"):
        return ParsedSource.model_validate({
            "sourceType": source_type,
            "sourceName": source_name,
            "filePath": source_name if source_type == "file" else None,
            "ast": {"fileVariables": list(file_variables), "requests": list(requests)},
        })
    return _make
