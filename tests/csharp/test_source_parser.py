"""Tests for cs2ts.csharp.parser."""

from __future__ import annotations

import textwrap

from cs2ts.csharp import parse_dtos, parse_enums, parse_property, parse_source, parse_validation_attributes
from cs2ts.models import CSharpType, TypeKind


def test_parse_simple_enum_with_display_attribute() -> None:
    text = 'public enum Color { Red, [Display(Name="Bright Green")] Green, Blue }'

    enums = parse_enums(text)

    assert len(enums) == 1
    color = enums[0]
    assert color.name == "Color"
    assert [value.name for value in color.values] == ["Red", "Green", "Blue"]
    assert [value.display_name for value in color.values] == [None, "Bright Green", None]
    assert [value.label for value in color.values] == ["Red", "Bright Green", "Blue"]
    assert color.documentation is None


def test_parse_enum_documentation_and_value_docs() -> None:
    text = textwrap.dedent(
        """
        namespace App.Models
        {
            /// <summary>
            /// Lifecycle of an order.
            /// </summary>
            [Flags]
            public enum OrderStatus : byte
            {
                /// <summary>Just created</summary>
                Pending = 0,
                [Display(Name = "In progress", Order = 2)]
                Processing = 1, // worker picked it up
                Done
            }
        }
        """
    )

    (status,) = parse_enums(text)

    assert status.name == "OrderStatus"
    assert status.documentation == "Lifecycle of an order."
    assert [value.name for value in status.values] == ["Pending", "Processing", "Done"]
    assert status.values[0].documentation == "Just created"
    assert status.values[1].display_name == "In progress"
    assert status.values[2].documentation is None


def test_parse_enum_ignores_trailing_comma() -> None:
    (enum,) = parse_enums("public enum Size { Small, Large, }")
    assert [value.name for value in enum.values] == ["Small", "Large"]


def test_parse_simple_record() -> None:
    (dto,) = parse_dtos("public record CreateUser(string Name, int? Age, List<string> Tags);")

    assert dto.name == "CreateUser"
    assert not dto.is_update
    assert [prop.name for prop in dto.properties] == ["Name", "Age", "Tags"]
    assert dto.properties[0].type_name == CSharpType.primitive(TypeKind.STRING)
    assert dto.properties[1].type_name == CSharpType.nullable(CSharpType.primitive(TypeKind.INT))
    assert dto.properties[2].type_name == CSharpType.array(CSharpType.primitive(TypeKind.STRING))
    assert all(prop.validations == [] for prop in dto.properties)


def test_parse_record_with_nested_generic_parameters() -> None:
    (dto,) = parse_dtos(
        "public record Lookup(Dictionary<string, List<int>> Index, Guid Id);"
    )

    assert [prop.name for prop in dto.properties] == ["Index", "Id"]
    assert dto.properties[0].type_name.kind is TypeKind.DICTIONARY
    assert dto.properties[1].type_name.kind is TypeKind.GUID


def test_parse_record_documentation() -> None:
    text = textwrap.dedent(
        """
        /// <summary>Payload for updating a user.</summary>
        /// <remarks>All fields optional.</remarks>
        public record UpdateUser(
            /// <summary>Display name (shown publicly)</summary>
            string Name,
            int Age);
        """
    )

    (dto,) = parse_dtos(text)

    assert dto.is_update
    assert dto.documentation == "Payload for updating a user.\nAll fields optional."
    assert dto.properties[0].documentation == "Display name (shown publicly)"
    assert dto.properties[1].documentation is None


def test_parse_multiple_records_keeps_documentation_per_declaration() -> None:
    text = textwrap.dedent(
        """
        /// <summary>First</summary>
        public record A(string X);

        /// <summary>Second</summary>
        public record B(string Y);
        """
    )

    first, second = parse_dtos(text)

    assert first.documentation == "First"
    assert second.documentation == "Second"


def test_parse_property_with_attributes_and_default_value() -> None:
    prop = parse_property(
        '[Required, StringLength(50, MinimumLength = 2, ErrorMessage = "Bad name")] string Name = ""'
    )

    assert prop is not None
    assert prop.name == "Name"
    assert prop.type_name == CSharpType.primitive(TypeKind.STRING)
    assert [rule.rule_type for rule in prop.validations] == ["Required", "StringLength"]
    length = prop.validations[1]
    assert length.parameters == {"MaximumLength": "50", "MinimumLength": "2"}
    assert length.error_message == "Bad name"


def test_parse_property_with_target_prefixed_attributes() -> None:
    prop = parse_property("[property: EmailAddress] [property: Phone] string Contact")

    assert prop is not None
    assert [rule.rule_type for rule in prop.validations] == ["EmailAddress", "Phone"]


def test_parse_property_rejects_malformed_fragment() -> None:
    assert parse_property("   ") is None
    assert parse_property("Name") is None
    assert parse_property("[Required string Name") is None


def test_parse_validation_attributes_maps_positional_arguments() -> None:
    rules = parse_validation_attributes(
        '[Range(1, 99)][RegularExpression(@"^[A-Z]{3}$", ErrorMessage = "Three capitals")][Obsolete]'
    )

    assert [rule.rule_type for rule in rules] == ["Range", "RegularExpression"]
    assert rules[0].parameters == {"Minimum": "1", "Maximum": "99"}
    assert rules[1].parameters == {"pattern": "^[A-Z]{3}$"}
    assert rules[1].error_message == "Three capitals"


def test_parse_validation_attributes_skips_typeof_argument() -> None:
    (rule,) = parse_validation_attributes('[Range(typeof(decimal), "0.5", "10")]')
    assert rule.parameters == {"Minimum": "0.5", "Maximum": "10"}


def test_parse_source_collects_both_kinds() -> None:
    text = textwrap.dedent(
        """
        public enum Role { Admin, User }

        public record CreateAccount(string Email, Role Role);
        """
    )

    result = parse_source(text)

    assert [enum.name for enum in result.enums] == ["Role"]
    assert [dto.name for dto in result.dtos] == ["CreateAccount"]
    assert result.dtos[0].properties[1].type_name == CSharpType.custom("Role")
    assert not result.is_empty()


def test_parse_source_never_raises_on_garbage() -> None:
    result = parse_source("public record Broken(string Name\npublic enum { }")
    assert result.is_empty()


def test_commented_out_display_attribute_is_ignored() -> None:
    text = textwrap.dedent(
        """
        public enum Tier
        {
            // [Display(Name="Old label")]
            Basic,
            /* [Display(Name="Gone")] */ Premium
        }
        """
    )

    (tier,) = parse_enums(text)

    assert [value.name for value in tier.values] == ["Basic", "Premium"]
    assert [value.display_name for value in tier.values] == [None, None]
