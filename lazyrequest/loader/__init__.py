from .sources import (
    DEFAULT_EXTENSIONS,
    DiscoveryResult,
    discover_files,
    find_files,
    load_file,
    load_files,
    load_inline,
    load_sources,
    parse_ast,
)

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DiscoveryResult",
    "discover_files",
    "find_files",
    "load_file",
    "load_files",
    "load_inline",
    "load_sources",
    "parse_ast",
]
