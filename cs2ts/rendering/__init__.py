"""Renderers turning parsed declarations into TypeScript sources."""

from .enums import render_enum
from .templates import render_header
from .zod import field_expression, render_schema, validation_fragment, zod_type

__all__ = [
    "field_expression",
    "render_enum",
    "render_header",
    "render_schema",
    "validation_fragment",
    "zod_type",
]
