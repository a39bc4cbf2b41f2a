"""Enumerations and small value types shared by the table pipeline."""

import re
from dataclasses import dataclass
from enum import StrEnum


class TableFormat(StrEnum):
    """Layout of one table source file, selected by a format directive."""

    DB_ENTITIES = "DB_ENTITIES"
    DB_ENTITIES_MOD = "DB_ENTITIES_MOD"
    DB_ANONYMOUS_ROWS = "DB_ANONYMOUS_ROWS"
    ENUMERATION = "ENUMERATION"
    WIKI_LOOKUP = "WIKI_LOOKUP"
    ENUM_X_ENUM = "ENUM_X_ENUM"

    @property
    def is_db_style(self) -> bool:
        """Whether the format is parsed by the row/field parser."""
        return self is not TableFormat.ENUM_X_ENUM


class TableDirective(StrEnum):
    """Format specific directives (``@NAME`` or ``@NAME=value`` lines)."""

    MODIFIES = "MODIFIES"
    DATA_TYPE = "DATA_TYPE"
    TABLE_TYPE = "TABLE_TYPE"
    DATA_DEFAULT = "DATA_DEFAULT"
    DATA_UNIT = "DATA_UNIT"
    TRANSPOSE = "TRANSPOSE"
    DONT_PARSE = "DONT_PARSE"


# Directives legal for each format. DONT_PARSE is legal everywhere.
LEGAL_DIRECTIVES: dict[TableFormat, frozenset[TableDirective]] = {
    TableFormat.DB_ENTITIES: frozenset(),
    TableFormat.DB_ENTITIES_MOD: frozenset({TableDirective.MODIFIES}),
    TableFormat.DB_ANONYMOUS_ROWS: frozenset(),
    TableFormat.ENUMERATION: frozenset(),
    TableFormat.WIKI_LOOKUP: frozenset(),
    TableFormat.ENUM_X_ENUM: frozenset(
        {
            TableDirective.DATA_TYPE,
            TableDirective.TABLE_TYPE,
            TableDirective.DATA_DEFAULT,
            TableDirective.DATA_UNIT,
            TableDirective.TRANSPOSE,
        }
    ),
}

# Directives that must carry an ``=value`` argument.
DIRECTIVES_WITH_ARGUMENT = frozenset(
    {
        TableDirective.MODIFIES,
        TableDirective.DATA_TYPE,
        TableDirective.TABLE_TYPE,
        TableDirective.DATA_DEFAULT,
        TableDirective.DATA_UNIT,
    }
)


class HeaderKeyword(StrEnum):
    """First-cell keywords of the optional DB-style header rows."""

    TYPE = "Type"
    UNIT = "Unit"
    DEFAULT = "Default"
    PREFIX = "Prefix"


class BaseType(StrEnum):
    """Scalar field types."""

    BOOL = "BOOL"
    INT = "INT"
    FLOAT = "FLOAT"
    STRING = "STRING"
    STRING_NAME = "STRING_NAME"

    @property
    def is_interned(self) -> bool:
        """Whether preprocessed cells of this type are interned string indexes."""
        return self in (BaseType.INT, BaseType.STRING, BaseType.STRING_NAME)


_ARRAY_TYPE = re.compile(r"^ARRAY\[(?P<inner>.*)\]$")


@dataclass(frozen=True)
class FieldType:
    """The declared type of a field, either a scalar or ``ARRAY[scalar]``.

    Attributes
    ----------
    base : BaseType
        Scalar type, or the element type for arrays.
    is_array : bool
        True for ``ARRAY[T]`` types.
    """

    base: BaseType
    is_array: bool = False

    @classmethod
    def parse(cls, text: str) -> "FieldType":
        """Parse a type keyword such as ``FLOAT`` or ``ARRAY[INT]``.

        Parameters
        ----------
        text : str
            The type keyword as written in a ``Type`` row or ``DATA_TYPE``.

        Returns
        -------
        FieldType
            The parsed type.

        Raises
        ------
        ValueError
            If the keyword is unknown or describes a nested array.
        """
        text = text.strip()
        match = _ARRAY_TYPE.match(text)
        if match:
            inner = match.group("inner").strip()
            if _ARRAY_TYPE.match(inner):
                raise ValueError(f"Nested array types are not allowed: {text}")
            return cls(BaseType(inner), is_array=True)
        try:
            return cls(BaseType(text))
        except ValueError:
            raise ValueError(f"Unknown field type: {text!r}") from None

    def __str__(self) -> str:
        if self.is_array:
            return f"ARRAY[{self.base}]"
        return str(self.base)


# Default type of every field in formats where the Type row is optional.
STRING_TYPE = FieldType(BaseType.STRING)
