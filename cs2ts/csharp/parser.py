"""Regex-driven extraction of enums and records from C# source text."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from .types import parse_type
from .utils import (
    extract_doc_comments,
    find_balanced,
    first_doc_comment,
    split_top_level,
    strip_comments,
    unquote,
)
from ..models import DtoIR, DtoProperty, EnumIR, EnumValue, ParseResult, ValidationRule

_ENUM_PATTERN = re.compile(
    r"public\s+enum\s+(?P<name>\w+)\s*(?::\s*[\w.]+\s*)?\{(?P<body>[^}]*)\}"
)
_RECORD_PATTERN = re.compile(
    r"public\s+(?:(?:sealed|abstract|partial)\s+)*record\s+(?:(?:class|struct)\s+)?(?P<name>\w+)\s*\("
)
_DISPLAY_PATTERN = re.compile(r"\[\s*Display\s*\([^\]]*?\bName\s*=\s*\"(?P<name>[^\"]*)\"")
_ATTRIBUTE_NAME = re.compile(r"^(?:\w+\s*:\s*)?(?P<name>[\w.]+)\s*(?P<args>\(.*\))?\s*$", re.DOTALL)
_PROPERTY_PATTERN = re.compile(r"^(?P<type>[A-Za-z0-9_<>?\[\].,\s:]+?)\s+(?P<name>@?[A-Za-z_]\w*)$")
_ATTRIBUTE_LINE = re.compile(r"^\s*\[.*\]\s*$")
_NAMED_ARGUMENT = re.compile(r"^(?P<key>\w+)\s*=(?!=)\s*(?P<value>.+)$", re.DOTALL)

_SUPPORTED_RULES = {
    "Required",
    "Range",
    "StringLength",
    "EmailAddress",
    "Phone",
    "RegularExpression",
}
_POSITIONAL_PARAMETERS: Dict[str, Tuple[str, ...]] = {
    "Range": ("Minimum", "Maximum"),
    "StringLength": ("MaximumLength",),
    "RegularExpression": ("pattern",),
}


def parse_source(text: str) -> ParseResult:
    """Extract every enum and record declared in ``text``."""
    return ParseResult(enums=parse_enums(text), dtos=parse_dtos(text))


def parse_enums(text: str) -> List[EnumIR]:
    enums: List[EnumIR] = []
    for match in _ENUM_PATTERN.finditer(text):
        documentation = first_doc_comment(_preceding_doc_window(text[: match.start()]))

        values: List[EnumValue] = []
        for item in split_top_level(match.group("body")):
            value = _parse_enum_value(item)
            if value is not None:
                values.append(value)

        enums.append(
            EnumIR(name=match.group("name"), values=values, documentation=documentation)
        )
    return enums


def _parse_enum_value(item: str) -> Optional[EnumValue]:
    if not item.strip():
        return None
    code = strip_comments(item)
    display = _DISPLAY_PATTERN.search(code)
    declaration = _strip_attributes(code)
    declaration = split_top_level(declaration, "=", maxsplit=1)[0]
    tokens = declaration.split()
    if not tokens:
        return None
    return EnumValue(
        name=tokens[-1],
        display_name=display.group("name") if display else None,
        documentation=first_doc_comment(item),
    )


def parse_dtos(text: str) -> List[DtoIR]:
    dtos: List[DtoIR] = []
    window_start = 0
    for match in _RECORD_PATTERN.finditer(text):
        if match.start() < window_start:
            # nested inside a previous record's parameter list
            continue
        open_index = match.end() - 1
        close_index = find_balanced(text, open_index)
        if close_index is None:
            continue

        docs = extract_doc_comments(text[window_start : match.start()])
        properties: List[DtoProperty] = []
        for fragment in split_top_level(text[open_index + 1 : close_index]):
            prop = parse_property(fragment)
            if prop is not None:
                properties.append(prop)

        dtos.append(
            DtoIR(
                name=match.group("name"),
                properties=properties,
                documentation="\n".join(docs) if docs else None,
            )
        )
        window_start = close_index + 1
    return dtos


def parse_property(fragment: str) -> Optional[DtoProperty]:
    """Parse one record parameter, including its attributes and doc comments."""
    if not fragment.strip():
        return None
    docs = extract_doc_comments(fragment)

    code = strip_comments(fragment).strip()
    validations: List[ValidationRule] = []
    while code.startswith("["):
        close_index = find_balanced(code, 0)
        if close_index is None:
            return None
        validations.extend(parse_validation_attributes(code[: close_index + 1]))
        code = code[close_index + 1 :].lstrip()

    code = split_top_level(code, "=", maxsplit=1)[0].strip()
    match = _PROPERTY_PATTERN.match(code)
    if not match:
        return None
    type_token = re.sub(r"\s+", " ", match.group("type")).strip()
    return DtoProperty(
        name=match.group("name").lstrip("@"),
        type_name=parse_type(type_token),
        validations=validations,
        documentation=" ".join(docs) if docs else None,
    )


def parse_validation_attributes(text: str) -> List[ValidationRule]:
    """Parse ``[Attr(...), Attr2]`` groups into validation rules.

    Attributes outside the supported data annotation set are dropped.
    """
    rules: List[ValidationRule] = []
    cursor = 0
    while True:
        open_index = text.find("[", cursor)
        if open_index < 0:
            break
        close_index = find_balanced(text, open_index)
        if close_index is None:
            break
        for attribute in split_top_level(text[open_index + 1 : close_index]):
            rule = _parse_attribute(attribute)
            if rule is not None:
                rules.append(rule)
        cursor = close_index + 1
    return rules


def _parse_attribute(attribute: str) -> Optional[ValidationRule]:
    match = _ATTRIBUTE_NAME.match(attribute.strip())
    if not match:
        return None
    name = match.group("name").rsplit(".", 1)[-1]
    if name.endswith("Attribute"):
        name = name[: -len("Attribute")]
    if name not in _SUPPORTED_RULES:
        return None

    rule = ValidationRule(rule_type=name)
    raw_args = match.group("args")
    if not raw_args:
        return rule

    positional: List[str] = []
    for argument in split_top_level(raw_args[1:-1]):
        argument = argument.strip()
        if not argument:
            continue
        named = _NAMED_ARGUMENT.match(argument)
        if named:
            key = named.group("key")
            value = unquote(named.group("value"))
            if key == "ErrorMessage":
                rule.error_message = value
            else:
                rule.parameters[key] = value
        elif argument.startswith("typeof("):
            # Range(typeof(decimal), "0", "10")
            continue
        else:
            positional.append(unquote(argument))

    for key, value in zip(_POSITIONAL_PARAMETERS.get(name, ()), positional):
        rule.parameters.setdefault(key, value)
    return rule


def _preceding_doc_window(prefix: str) -> str:
    """Return the ``///`` block sitting directly above a declaration.

    Blank lines and attribute-only lines (``[Flags]``) between the block and
    the declaration are skipped.
    """
    lines = prefix.splitlines()
    if lines and not lines[-1].strip():
        lines.pop()
    while lines and (not lines[-1].strip() or _ATTRIBUTE_LINE.match(lines[-1])):
        lines.pop()
    block: List[str] = []
    while lines and lines[-1].lstrip().startswith("///"):
        block.append(lines.pop())
    return "\n".join(reversed(block))


def _strip_attributes(text: str) -> str:
    result: List[str] = []
    cursor = 0
    while cursor < len(text):
        if text[cursor] == "[":
            close_index = find_balanced(text, cursor)
            if close_index is not None:
                cursor = close_index + 1
                continue
        result.append(text[cursor])
        cursor += 1
    return "".join(result)


__all__ = [
    "parse_dtos",
    "parse_enums",
    "parse_property",
    "parse_source",
    "parse_validation_attributes",
]
