"""Mapping from C# type tokens to :class:`CSharpType` nodes."""

from __future__ import annotations

import re

from .utils import find_balanced, split_top_level
from ..models import CSharpType, TypeKind

_PRIMITIVES = {
    "string": TypeKind.STRING,
    "String": TypeKind.STRING,
    "int": TypeKind.INT,
    "Int32": TypeKind.INT,
    "long": TypeKind.INT,
    "Int64": TypeKind.INT,
    "short": TypeKind.INT,
    "Int16": TypeKind.INT,
    "byte": TypeKind.INT,
    "Byte": TypeKind.INT,
    "double": TypeKind.DOUBLE,
    "Double": TypeKind.DOUBLE,
    "float": TypeKind.DOUBLE,
    "Single": TypeKind.DOUBLE,
    "decimal": TypeKind.DECIMAL,
    "Decimal": TypeKind.DECIMAL,
    "bool": TypeKind.BOOL,
    "Boolean": TypeKind.BOOL,
    "DateTime": TypeKind.DATETIME,
    "DateTimeOffset": TypeKind.DATETIME,
    "Guid": TypeKind.GUID,
}

_SEQUENCE_TYPES = {
    "List",
    "IEnumerable",
    "IList",
    "ICollection",
    "IReadOnlyList",
    "IReadOnlyCollection",
}
_MAPPING_TYPES = {"Dictionary", "IDictionary", "IReadOnlyDictionary"}

_GENERIC = re.compile(r"^(?P<base>[A-Za-z_][\w.]*)\s*<")
_NAMESPACE = re.compile(r"^(?:global::)?(?:System\.(?:Collections\.Generic\.)?)")


def parse_type(token: str) -> CSharpType:
    """Return the IR node for a C# type token. Unknown tokens become custom types."""
    text = token.strip()

    if text.endswith("?"):
        return CSharpType.nullable(parse_type(text[:-1]))
    if text.endswith("[]"):
        return CSharpType.array(parse_type(text[:-2]))

    generic = _GENERIC.match(text)
    if generic:
        parsed = _parse_generic(text, generic)
        if parsed is not None:
            return parsed

    kind = _PRIMITIVES.get(_NAMESPACE.sub("", text))
    if kind is not None:
        return CSharpType.primitive(kind)
    return CSharpType.custom(text)


def _parse_generic(text: str, match: re.Match[str]) -> CSharpType | None:
    base = _NAMESPACE.sub("", match.group("base"))
    open_index = match.end() - 1
    close_index = find_balanced(text, open_index)
    if close_index is None or close_index != len(text) - 1:
        return None
    arguments = [arg.strip() for arg in split_top_level(text[open_index + 1 : close_index])]
    if base in _SEQUENCE_TYPES and len(arguments) == 1:
        return CSharpType.array(parse_type(arguments[0]))
    if base in _MAPPING_TYPES and len(arguments) == 2:
        return CSharpType.dictionary(parse_type(arguments[0]), parse_type(arguments[1]))
    return None


__all__ = ["parse_type"]
