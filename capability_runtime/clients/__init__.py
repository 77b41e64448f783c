"""HTTP client engine for ``ClientDefinition`` capabilities."""

from .engine import ClientEngine, build_auth_headers
from .response import extract_path, map_fields, transform_response

__all__ = [
    "ClientEngine",
    "build_auth_headers",
    "extract_path",
    "map_fields",
    "transform_response",
]
