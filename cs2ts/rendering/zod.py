"""Zod schema rendering for C# record DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .templates import documentation_lines, get_environment, js_string, render_header
from ..config import Config
from ..models import CSharpType, DtoIR, DtoProperty, TypeKind, ValidationRule

FILE_TYPE = "Zod Schema"
PHONE_PATTERN = r"/^\+?[1-9]\d{1,14}$/"

_SIMPLE_TYPES = {
    TypeKind.STRING: "z.string()",
    TypeKind.INT: "z.number().int()",
    TypeKind.DOUBLE: "z.number()",
    TypeKind.DECIMAL: "z.number()",
    TypeKind.BOOL: "z.boolean()",
    TypeKind.GUID: "z.string().uuid()",
}


@dataclass
class _Field:
    name: str
    expression: str
    documentation: Optional[str]


def zod_type(type_name: CSharpType, localized: bool = False) -> str:
    """Return the Zod builder expression for ``type_name`` without modifiers."""
    kind = type_name.kind
    if kind in _SIMPLE_TYPES:
        return _SIMPLE_TYPES[kind]
    if kind is TypeKind.DATETIME:
        return "z.date().or(z.string().datetime())" if localized else "z.string().datetime()"
    if kind is TypeKind.ARRAY:
        return f"z.array({zod_type(type_name.inner, localized)})"
    if kind is TypeKind.NULLABLE:
        return f"{zod_type(type_name.inner, localized)}.nullable()"
    if kind is TypeKind.DICTIONARY:
        key, value = type_name.args
        return f"z.record({zod_type(key, localized)}, {zod_type(value, localized)})"
    return f"{type_name.name}Schema"


def field_expression(prop: DtoProperty, *, localized: bool, is_update: bool) -> str:
    """Build the full expression for one property.

    Validation refinements go on the non-nullable base so ``.min``/``.email``
    stay callable; ``.nullable()`` and the terminal ``.optional()`` /
    ``.required()`` follow.
    """
    refinements = "".join(
        validation_fragment(rule, prop.name, localized)
        for rule in prop.validations
        if rule.rule_type != "Required"
    )
    type_name = prop.type_name
    if refinements and type_name.kind is TypeKind.NULLABLE:
        expression = f"{zod_type(type_name.inner, localized)}{refinements}.nullable()"
    else:
        expression = f"{zod_type(type_name, localized)}{refinements}"
    return expression + (".optional()" if is_update else ".required()")


def validation_fragment(rule: ValidationRule, prop_name: str, localized: bool) -> str:
    """Render one validation rule as a chain of Zod refinements.

    Unknown rule types and rules missing their parameters render as ``""``.
    """
    params = rule.parameters
    if rule.rule_type == "Range":
        minimum = params.get("Minimum")
        maximum = params.get("Maximum")
        if minimum is None or maximum is None:
            return ""
        message = _message(
            rule, prop_name, "range", localized, f"Value must be between {minimum} and {maximum}"
        )
        return f".min({minimum}, {{ message: {message} }}).max({maximum}, {{ message: {message} }})"
    if rule.rule_type == "StringLength":
        fragment = ""
        minimum = params.get("MinimumLength")
        maximum = params.get("MaximumLength")
        if minimum is not None:
            message = _message(rule, prop_name, "minLength", localized, f"Minimum length is {minimum}")
            fragment += f".min({minimum}, {{ message: {message} }})"
        if maximum is not None:
            message = _message(rule, prop_name, "maxLength", localized, f"Maximum length is {maximum}")
            fragment += f".max({maximum}, {{ message: {message} }})"
        return fragment
    if rule.rule_type == "EmailAddress":
        message = _message(rule, prop_name, "email", localized, "Invalid email address")
        return f".email({{ message: {message} }})"
    if rule.rule_type == "Phone":
        message = _message(rule, prop_name, "phone", localized, "Invalid phone number")
        return f".regex({PHONE_PATTERN}, {{ message: {message} }})"
    if rule.rule_type == "RegularExpression":
        pattern = params.get("pattern")
        if pattern is None:
            return ""
        message = _message(rule, prop_name, "pattern", localized, "Invalid format")
        return f".regex(new RegExp({js_string(pattern)}), {{ message: {message} }})"
    return ""


def render_schema(dto: DtoIR, config: Config, *, now: Optional[datetime] = None) -> str:
    """Render ``dto`` as a Zod object schema plus its inferred type alias."""
    is_update = dto.is_update
    fields: List[_Field] = [
        _Field(
            name=prop.name,
            expression=field_expression(prop, localized=config.localized, is_update=is_update),
            documentation=prop.documentation,
        )
        for prop in dto.properties
    ]
    body = get_environment().get_template("schema.ts.j2").render(
        name=dto.name,
        fields=fields,
        localized=config.localized,
        i18n_library=config.i18n_library,
        additional_imports=config.additional_imports,
        documentation_lines=documentation_lines(dto.documentation),
    )
    return render_header(config, FILE_TYPE, now=now) + body


def _message(
    rule: ValidationRule, prop_name: str, slot: str, localized: bool, default: str
) -> str:
    if localized:
        return f"t('{prop_name}.{slot}')"
    return js_string(rule.error_message if rule.error_message is not None else default)


__all__ = ["field_expression", "js_string", "render_schema", "validation_fragment", "zod_type"]
