"""
Shared case conversion for API responses.
Uses Pydantic's alias_generators for consistency with schema serialization.
"""
from pydantic.alias_generators import to_camel


def to_camel_key(s: str) -> str:
    """Convert a single snake_case key to camelCase (first letter lower)."""
    return to_camel(s)
