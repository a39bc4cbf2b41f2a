"""Intermediate representation of one preprocessed table source file."""

from dataclasses import dataclass, field

from tabulous.model.define import FieldType, TableFormat
from tabulous.model.interner import StringInterner

# A preprocessed cell. The representation depends on the field type:
#   BOOL               -> 0 or 1
#   INT, STRING(_NAME) -> interned string index (0 is the empty string)
#   FLOAT              -> normalised numeric text, possibly with a "~" marker
#   ARRAY[T]           -> tuple of preprocessed T elements
# None means the cell was empty and no default was declared.
RawValue = int | str | tuple | None


@dataclass
class IntermediateTable:
    """Preprocessed form of one table source file.

    Produced by the table preprocessor and consumed (and then discarded) by
    the postprocessor. Only preprocessing fills it in.

    Attributes
    ----------
    format : TableFormat
        Layout of the source file.
    name : str
        Table name, from the format directive argument or the file stem.
    path : str
        Source description used in error messages.
    interner : StringInterner
        Deduplicated text of every interned cell in this file.
    column_names : list[str]
        Field names in source order. Empty for ENUMERATION tables.
    row_names : list[str]
        Entity names in source order, already prefixed. Empty for
        anonymous tables.
    n_rows : int
        Number of content rows.
    modifies_table_name : str
        Target table of a DB_ENTITIES_MOD table, else "".
    entity_prefix : str
        Prefix given by a ``Prefix/<value>`` header cell.
    field_types : dict[str, FieldType]
        Declared type per field.
    field_units : dict[str, str]
        Declared unit per FLOAT field ("" for no unit).
    field_defaults : dict[str, RawValue]
        Preprocessed default per field (None if no default was declared).
    field_prefixes : dict[str, str]
        Prefix prepended to non-empty text cells of the field.
    raw_values : dict[str, list[RawValue]]
        Preprocessed cells per field, one per content row.
    grid_type : FieldType | None
        Shared type of an ENUM_X_ENUM grid.
    grid_unit : str
        Shared unit of an ENUM_X_ENUM grid.
    grid_default : RawValue
        Shared preprocessed default of an ENUM_X_ENUM grid.
    grid_column_names : list[str]
        Column axis entity names of an ENUM_X_ENUM grid, already prefixed.
    grid_values : list[list[RawValue]]
        Preprocessed ENUM_X_ENUM cells, indexed ``[row][column]``.
    """

    format: TableFormat
    name: str
    path: str = ""
    interner: StringInterner = field(default_factory=StringInterner)
    column_names: list[str] = field(default_factory=list)
    row_names: list[str] = field(default_factory=list)
    n_rows: int = 0
    modifies_table_name: str = ""
    entity_prefix: str = ""
    field_types: dict[str, FieldType] = field(default_factory=dict)
    field_units: dict[str, str] = field(default_factory=dict)
    field_defaults: dict[str, RawValue] = field(default_factory=dict)
    field_prefixes: dict[str, str] = field(default_factory=dict)
    raw_values: dict[str, list[RawValue]] = field(default_factory=dict)
    grid_type: FieldType | None = None
    grid_unit: str = ""
    grid_default: RawValue = None
    grid_column_names: list[str] = field(default_factory=list)
    grid_values: list[list[RawValue]] = field(default_factory=list)

    @property
    def has_row_names(self) -> bool:
        return bool(self.row_names)

    def __repr__(self) -> str:
        return (
            f"IntermediateTable({self.name!r}, {self.format}, "
            f"rows={self.n_rows}, fields={len(self.column_names)})"
        )
