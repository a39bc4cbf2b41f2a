"""Typed read access to postprocessed tables.

Rows are addressed either by index or by entity name, never both. A missing
table or entity is an error, while a field that a table does not have
yields a per-type "missing" value. This lets callers project rows of
different tables onto the same object or dictionary shape, skipping the
optional fields a table leaves out.
"""

import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from tabulous.core.precision import UNKNOWN_PRECISION
from tabulous.model.define import BaseType, TableFormat
from tabulous.model.store import EMPTY_MAPPING, TableStore
from tabulous.utils.exceptions import TableLookupError


class TableAccess:
    """Read API over a :class:`~tabulous.model.store.TableStore`.

    Parameters
    ----------
    store : TableStore
        Postprocessed tables
    missing_bool : bool, optional
        Returned by :meth:`get_bool` for absent fields. Default False.
    missing_int : int, optional
        Returned by :meth:`get_int` for absent fields. Default -1.
    missing_float : float, optional
        Returned by :meth:`get_float` for absent fields. Default NaN.
    missing_string : str, optional
        Returned by :meth:`get_string` and :meth:`get_string_name` for absent
        fields. Default "".
    missing_array : tuple, optional
        Returned by :meth:`get_array` for absent fields. Default ().
    """

    def __init__(
        self,
        store: TableStore,
        missing_bool: bool = False,
        missing_int: int = -1,
        missing_float: float = math.nan,
        missing_string: str = "",
        missing_array: tuple = (),
    ) -> None:
        self.store = store
        self.missing_bool = missing_bool
        self.missing_int = missing_int
        self.missing_float = missing_float
        self.missing_string = missing_string
        self.missing_array = missing_array

    # ------------------------------------------------------------------
    # Tables, rows and enumerations
    # ------------------------------------------------------------------

    def has_table(self, table: str) -> bool:
        return table in self.store.tables or table in self.store.table_n_rows

    def has_field(self, table: str, field: str) -> bool:
        return field in self.store.field_types.get(table, {})

    def has_row_name(self, table: str, name: str) -> bool:
        return name in self.store.enumeration_dicts.get(table, {})

    def has_entity(self, name: str) -> bool:
        """Whether ``name`` is in the global enumeration space."""
        return name in self.store.enumerations

    def get_row(self, name: str) -> int:
        """Return the row index of an entity of any table, or -1."""
        return self.store.enumerations.get(name, -1)

    def get_row_name(self, table: str, row: int) -> str:
        """Return the entity name of a row, or "" for anonymous tables."""
        n_rows = self.get_n_rows(table)
        if not 0 <= row < n_rows:
            raise TableLookupError(f"Row {row} out of range for {table!r}")
        array = self.store.enumeration_arrays.get(table)
        return array[row] if array else ""

    def get_n_rows(self, table: str) -> int:
        n_rows = self.store.table_n_rows.get(table)
        if n_rows is None:
            raise TableLookupError(f"No table {table!r}")
        return n_rows

    def get_entity_prefix(self, table: str) -> str:
        if table not in self.store.entity_prefixes:
            raise TableLookupError(f"No table {table!r}")
        return self.store.entity_prefixes[table]

    def get_enumeration_dict(self, table: str) -> Mapping[str, int]:
        if table not in self.store.enumeration_dicts:
            raise TableLookupError(f"No enumeration {table!r}")
        return self.store.enumeration_dicts[table]

    def get_enumeration_array(self, table: str) -> tuple[str, ...]:
        if table not in self.store.enumeration_arrays:
            raise TableLookupError(f"No enumeration {table!r}")
        return self.store.enumeration_arrays[table]

    def get_wiki_title(self, key: str) -> str:
        return self.store.wiki_lookup.get(key, "")

    # ------------------------------------------------------------------
    # Typed getters
    # ------------------------------------------------------------------

    def get_bool(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> bool:
        return self._get(table, field, row, name, self.missing_bool)

    def get_int(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> int:
        return self._get(table, field, row, name, self.missing_int)

    def get_float(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> float:
        return self._get(table, field, row, name, self.missing_float)

    def get_string(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> str:
        return self._get(table, field, row, name, self.missing_string)

    def get_string_name(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> str:
        return self._get(table, field, row, name, self.missing_string)

    def get_array(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> tuple:
        return self._get(table, field, row, name, self.missing_array)

    def get_value(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> Any:
        """Return a value of any type, or None for an absent field."""
        return self._get(table, field, row, name, None)

    def get_precision(
        self, table: str, field: str, row: int | None = None, name: str | None = None
    ) -> int:
        """Return the significant digits of a FLOAT cell.

        Returns -1 if precisions were not recorded, the field is absent or
        not a FLOAT field, or the cell had no digits to count.
        """
        row = self._row_index(table, row, name)
        column = self.store.precisions.get(table, {}).get(field)
        if column is None:
            return UNKNOWN_PRECISION
        return column[row]

    def get_enum_x_enum(self, table: str, row: int | str, column: int | str) -> Any:
        """Return one cell of an ENUM_X_ENUM table.

        Parameters
        ----------
        table : str
            Table name
        row : int | str
            Row index or entity name of the row enumeration
        column : int | str
            Column index or entity name of the column enumeration

        Raises
        ------
        TableLookupError
            If the table is not an ENUM_X_ENUM table or an index or name is
            not part of the grid
        """
        if self.store.table_formats.get(table) is not TableFormat.ENUM_X_ENUM:
            raise TableLookupError(f"No ENUM_X_ENUM table {table!r}")
        grid = self.store.tables[table]
        row_axis, column_axis = self.store.grid_axes[table]
        if isinstance(row, str):
            row = self._axis_index(row_axis, row, table)
        if isinstance(column, str):
            column = self._axis_index(column_axis, column, table)
        if not 0 <= row < len(grid) or not 0 <= column < len(grid[row]):
            raise TableLookupError(f"Cell ({row}, {column}) out of range for {table!r}")
        return grid[row][column]

    # ------------------------------------------------------------------
    # Linear scans
    # ------------------------------------------------------------------

    def find_row(self, table: str, field: str, value: Any) -> int:
        """Return the first row whose ``field`` equals ``value``, or -1."""
        for row, cell in enumerate(self._column(table, field)):
            if cell == value:
                return row
        return -1

    def get_matching_rows(self, table: str, field: str, value: Any) -> list[int]:
        return [row for row, cell in enumerate(self._column(table, field)) if cell == value]

    def count_matching(self, table: str, field: str, value: Any) -> int:
        return sum(1 for cell in self._column(table, field) if cell == value)

    def get_true_rows(self, table: str, field: str) -> list[int]:
        column = self._column(table, field)
        field_type = self.store.field_types[table][field]
        if field_type.base is not BaseType.BOOL or field_type.is_array:
            raise TypeError(f"Field {field!r} of {table!r} is not a BOOL field")
        return [row for row, cell in enumerate(column) if cell]

    # ------------------------------------------------------------------
    # Projection helpers
    # ------------------------------------------------------------------

    def build_dictionary(
        self,
        table: str,
        row: int | None = None,
        name: str | None = None,
        fields: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Project one row onto a dictionary.

        Parameters
        ----------
        table : str
            Table name
        row : int | None, optional
            Row index. Exactly one of ``row`` and ``name`` must be given.
        name : str | None, optional
            Entity name
        fields : Iterable[str] | None, optional
            Fields to include; fields the table does not have are skipped.
            All fields if None.

        Returns
        -------
        dict[str, Any]
            Field name to value
        """
        columns = self._db_table(table)
        row = self._row_index(table, row, name)
        if fields is None:
            fields = columns.keys()
        return {field: columns[field][row] for field in fields if field in columns}

    def build_dictionaries(
        self, table: str, fields: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        """Project every row of a table onto a list of dictionaries."""
        fields = list(fields) if fields is not None else None
        return [
            self.build_dictionary(table, row=row, fields=fields)
            for row in range(self.get_n_rows(table))
        ]

    def build_object(
        self,
        obj: Any,
        table: str,
        row: int | None = None,
        name: str | None = None,
        fields: Iterable[str] | None = None,
        field_map: Mapping[str, str] | None = None,
    ) -> Any:
        """Set attributes of ``obj`` from one row.

        ``field_map`` renames fields to attribute names; fields the table
        does not have leave the object untouched.

        Returns
        -------
        Any
            ``obj``
        """
        field_map = field_map or {}
        values = self.build_dictionary(table, row=row, name=name, fields=fields)
        for field, value in values.items():
            setattr(obj, field_map.get(field, field), value)
        return obj

    def build_objects(
        self,
        factory: Callable[[], Any],
        table: str,
        fields: Iterable[str] | None = None,
        field_map: Mapping[str, str] | None = None,
    ) -> list[Any]:
        """Create one object per row with ``factory`` and fill it from the row."""
        fields = list(fields) if fields is not None else None
        return [
            self.build_object(factory(), table, row=row, fields=fields, field_map=field_map)
            for row in range(self.get_n_rows(table))
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _db_table(self, table: str) -> Mapping[str, tuple]:
        columns = self.store.tables.get(table)
        if columns is None and table in self.store.table_n_rows:
            # ENUMERATION tables have rows but no fields
            return EMPTY_MAPPING
        if columns is None or self.store.table_formats.get(table) is TableFormat.ENUM_X_ENUM:
            raise TableLookupError(f"No DB table {table!r}")
        return columns

    def _column(self, table: str, field: str) -> tuple:
        columns = self._db_table(table)
        if field not in columns:
            raise TableLookupError(f"No field {field!r} in {table!r}")
        return columns[field]

    def _axis_index(self, axis: str, name: str, table: str) -> int:
        index = self.store.enumeration_dicts[axis].get(name)
        if index is None:
            raise TableLookupError(
                f"No entity {name!r} in {axis!r}, an axis of {table!r}"
            )
        return index

    def _row_index(self, table: str, row: int | None, name: str | None) -> int:
        if (row is None) == (name is None):
            raise ValueError("Exactly one of row and name must be given")
        n_rows = self.get_n_rows(table)
        if name is not None:
            row = self.store.enumeration_dicts.get(table, {}).get(name)
            if row is None:
                raise TableLookupError(f"No entity {name!r} in {table!r}")
        if not 0 <= row < n_rows:
            raise TableLookupError(f"Row {row} out of range for {table!r}")
        return row

    def _get(
        self, table: str, field: str, row: int | None, name: str | None, missing: Any
    ) -> Any:
        columns = self._db_table(table)
        row = self._row_index(table, row, name)
        column = columns.get(field)
        if column is None:
            return missing
        return column[row]
