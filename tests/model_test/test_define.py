"""Tests for field types, formats and directives."""

import pytest

from tabulous.model.define import (
    LEGAL_DIRECTIVES,
    BaseType,
    FieldType,
    TableDirective,
    TableFormat,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("BOOL", FieldType(BaseType.BOOL)),
        (" FLOAT ", FieldType(BaseType.FLOAT)),
        ("STRING_NAME", FieldType(BaseType.STRING_NAME)),
        ("ARRAY[INT]", FieldType(BaseType.INT, is_array=True)),
        ("ARRAY[ STRING ]", FieldType(BaseType.STRING, is_array=True)),
    ],
)
def test_parse_field_type(text: str, expected: FieldType) -> None:
    """Test type keywords parse into field types."""
    assert FieldType.parse(text) == expected


@pytest.mark.parametrize("text", ["", "int", "ARRAY[]", "ARRAY[FOO]", "ARRAY[ARRAY[INT]]"])
def test_parse_field_type_invalid(text: str) -> None:
    """Test unknown and nested types are rejected."""
    with pytest.raises(ValueError):
        FieldType.parse(text)


def test_field_type_str() -> None:
    """Test field types print as their keyword."""
    assert str(FieldType(BaseType.FLOAT)) == "FLOAT"
    assert str(FieldType(BaseType.INT, is_array=True)) == "ARRAY[INT]"


def test_interned_types() -> None:
    """Test which base types are stored as interned strings."""
    assert BaseType.INT.is_interned
    assert BaseType.STRING_NAME.is_interned
    assert not BaseType.FLOAT.is_interned
    assert not BaseType.BOOL.is_interned


def test_legal_directives() -> None:
    """Test only mod and grid tables accept extra directives."""
    assert LEGAL_DIRECTIVES[TableFormat.DB_ENTITIES_MOD] == {TableDirective.MODIFIES}
    assert TableDirective.TRANSPOSE in LEGAL_DIRECTIVES[TableFormat.ENUM_X_ENUM]
    assert not LEGAL_DIRECTIVES[TableFormat.DB_ENTITIES]
    assert not TableFormat.ENUM_X_ENUM.is_db_style
    assert TableFormat.WIKI_LOOKUP.is_db_style
