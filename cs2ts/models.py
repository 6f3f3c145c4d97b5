"""Intermediate representation shared by the parser, renderers and engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TypeKind(str, Enum):
    """Discriminator for :class:`CSharpType`."""

    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATETIME = "datetime"
    GUID = "guid"
    ARRAY = "array"
    NULLABLE = "nullable"
    DICTIONARY = "dictionary"
    CUSTOM = "custom"


@dataclass(frozen=True)
class CSharpType:
    """Tagged type node.

    ``args`` holds the element type for arrays, the wrapped type for
    nullables and ``(key, value)`` for dictionaries. ``name`` is only set
    for custom types.
    """

    kind: TypeKind
    args: Tuple["CSharpType", ...] = ()
    name: Optional[str] = None

    @classmethod
    def primitive(cls, kind: TypeKind) -> "CSharpType":
        return cls(kind=kind)

    @classmethod
    def array(cls, element: "CSharpType") -> "CSharpType":
        return cls(kind=TypeKind.ARRAY, args=(element,))

    @classmethod
    def nullable(cls, inner: "CSharpType") -> "CSharpType":
        # int?? is not a thing; collapse instead of nesting.
        if inner.kind is TypeKind.NULLABLE:
            return inner
        return cls(kind=TypeKind.NULLABLE, args=(inner,))

    @classmethod
    def dictionary(cls, key: "CSharpType", value: "CSharpType") -> "CSharpType":
        return cls(kind=TypeKind.DICTIONARY, args=(key, value))

    @classmethod
    def custom(cls, name: str) -> "CSharpType":
        return cls(kind=TypeKind.CUSTOM, name=name)

    @property
    def inner(self) -> "CSharpType":
        """Wrapped type of an array or nullable node."""
        if self.kind not in (TypeKind.ARRAY, TypeKind.NULLABLE):
            raise TypeError(f"{self.kind.value} type has no inner type")
        return self.args[0]


@dataclass
class EnumValue:
    """Single member of a C# enum."""

    name: str
    display_name: Optional[str] = None
    documentation: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name if self.display_name is not None else self.name


@dataclass
class EnumIR:
    """Parsed C# enum declaration."""

    name: str
    values: List[EnumValue] = field(default_factory=list)
    documentation: Optional[str] = None


@dataclass
class ValidationRule:
    """Validation attribute attached to a DTO property."""

    rule_type: str
    parameters: Dict[str, str] = field(default_factory=dict)
    error_message: Optional[str] = None
    condition: Optional[str] = None


@dataclass
class DtoProperty:
    """Positional parameter of a C# record."""

    name: str
    type_name: CSharpType
    validations: List[ValidationRule] = field(default_factory=list)
    documentation: Optional[str] = None


@dataclass
class DtoIR:
    """Parsed C# record declaration."""

    name: str
    properties: List[DtoProperty] = field(default_factory=list)
    documentation: Optional[str] = None

    @property
    def is_update(self) -> bool:
        return self.name.startswith("Update")


@dataclass
class ParseResult:
    """Everything extracted from one source file."""

    enums: List[EnumIR] = field(default_factory=list)
    dtos: List[DtoIR] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.enums and not self.dtos


@dataclass
class ProcessingStats:
    """Counters reported after a generation run."""

    files_processed: int = 0
    enums_generated: int = 0
    schemas_generated: int = 0
    files_skipped: int = 0

    def snapshot(self) -> "ProcessingStats":
        return ProcessingStats(
            files_processed=self.files_processed,
            enums_generated=self.enums_generated,
            schemas_generated=self.schemas_generated,
            files_skipped=self.files_skipped,
        )

    def since(self, earlier: "ProcessingStats") -> "ProcessingStats":
        """Return the counters accumulated after ``earlier`` was taken."""
        return ProcessingStats(
            files_processed=self.files_processed - earlier.files_processed,
            enums_generated=self.enums_generated - earlier.enums_generated,
            schemas_generated=self.schemas_generated - earlier.schemas_generated,
            files_skipped=self.files_skipped - earlier.files_skipped,
        )

    def summary(self) -> str:
        lines = [
            "Generation Summary:",
            f"  Files processed: {self.files_processed}",
            f"  Enums generated: {self.enums_generated}",
            f"  Schemas generated: {self.schemas_generated}",
            f"  Files skipped: {self.files_skipped}",
        ]
        return "\n".join(lines)


__all__ = [
    "CSharpType",
    "DtoIR",
    "DtoProperty",
    "EnumIR",
    "EnumValue",
    "ParseResult",
    "ProcessingStats",
    "TypeKind",
    "ValidationRule",
]
