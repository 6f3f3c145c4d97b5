"""C# source parsing: type lexicon, declaration extraction and scanning helpers."""

from .parser import parse_dtos, parse_enums, parse_property, parse_source, parse_validation_attributes
from .types import parse_type

__all__ = [
    "parse_dtos",
    "parse_enums",
    "parse_property",
    "parse_source",
    "parse_type",
    "parse_validation_attributes",
]
