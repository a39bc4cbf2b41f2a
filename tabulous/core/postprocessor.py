"""Table postprocessor - links and resolves the intermediate tables of a dataset.

Postprocessing runs in fixed stages:

1. Order the tables so that every DB_ENTITIES_MOD table comes after all
   other tables (stable otherwise).
2. Register caller supplied enumerations in the global enumeration space.
3. Create the enumeration of every named DB_ENTITIES and ENUMERATION table.
4. Extend target enumerations with the new row names of mod tables.
5. Resolve every cell of every table into its final type, applying mods
   last.
6. Freeze the result into a :class:`~tabulous.model.store.TableStore`.

Entity names are globally unique: any INT cell of any table can name an
entity of any table and resolves to that entity's row index.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from tabulous.core.precision import UNKNOWN_PRECISION, get_precision
from tabulous.core.resolver import ValueResolver
from tabulous.model.define import BaseType, FieldType, TableFormat
from tabulous.model.intermediate import IntermediateTable
from tabulous.model.store import TableStore
from tabulous.units.converter import UnitConverter
from tabulous.utils.exceptions import EnumerationError, TableSchemaError

NAME_FIELD = "name"
NAME_TYPE = FieldType(BaseType.STRING_NAME)

_ENUMERATED_FORMATS = (TableFormat.DB_ENTITIES, TableFormat.ENUMERATION)


class TablePostprocessor:
    """Build the final table store from the intermediate tables of one dataset.

    An instance holds the working containers of one run. Every call to
    :meth:`postprocess` starts from empty containers, so an instance can be
    reused, but not by two threads at once.

    Parameters
    ----------
    units : UnitConverter | None, optional
        Converter for FLOAT fields with units. A default converter is
        created if not given.
    enable_wiki : bool, optional
        Fill the wiki lookup from the wiki field. Default False.
    enable_precisions : bool, optional
        Record significant digits of FLOAT fields. Default False.
    wiki_field : str, optional
        Name of the localized wiki title field. Default ``"en.wiki"``.
    """

    def __init__(
        self,
        units: UnitConverter | None = None,
        enable_wiki: bool = False,
        enable_precisions: bool = False,
        wiki_field: str = "en.wiki",
    ) -> None:
        self.units = units or UnitConverter()
        self.enable_wiki = enable_wiki
        self.enable_precisions = enable_precisions
        self.wiki_field = wiki_field
        self._reset()

    def _reset(self) -> None:
        self.tables: dict[str, Any] = {}
        self.enumerations: dict[str, int] = {}
        self.enumeration_dicts: dict[str, dict[str, int]] = {}
        self.enumeration_arrays: dict[str, list[str]] = {}
        self.enumeration_owners: dict[str, str] = {}
        self.table_formats: dict[str, TableFormat] = {}
        self.table_n_rows: dict[str, int] = {}
        self.entity_prefixes: dict[str, str] = {}
        self.field_types: dict[str, dict[str, FieldType]] = {}
        self.field_defaults: dict[str, dict[str, Any]] = {}
        self.wiki_lookup: dict[str, str] = {}
        self.precisions: dict[str, dict[str, list[int]]] = {}
        self.grid_axes: dict[str, tuple[str, str]] = {}

    def postprocess(
        self,
        tables: Iterable[IntermediateTable],
        predefined_enumerations: Mapping[str, Mapping[str, int]] | None = None,
    ) -> TableStore:
        """Postprocess a dataset.

        Parameters
        ----------
        tables : Iterable[IntermediateTable]
            Intermediate tables in file order. They are consumed.
        predefined_enumerations : Mapping[str, Mapping[str, int]] | None, optional
            Enumerations defined outside the tables, enumeration name to
            ``{entity name: index}``.

        Returns
        -------
        TableStore
            Read-only postprocessed tables

        Raises
        ------
        TableSchemaError
            If the tables are inconsistent with each other
        EnumerationError
            If an entity name is defined twice or an unknown name is used
        """
        self._reset()
        ordered = self.order_tables(tables)

        self.register_predefined(predefined_enumerations or {})
        for table in ordered:
            if table.format in _ENUMERATED_FORMATS:
                self.create_enumeration(table)
        for table in ordered:
            if table.format is TableFormat.DB_ENTITIES_MOD:
                self.extend_enumeration(table)

        for table in ordered:
            if table.format in (TableFormat.DB_ENTITIES, TableFormat.DB_ANONYMOUS_ROWS):
                self.process_db_table(table)
            elif table.format is TableFormat.DB_ENTITIES_MOD:
                self.process_mod_table(table)
            elif table.format is TableFormat.WIKI_LOOKUP:
                self.process_wiki_lookup(table)
            elif table.format is TableFormat.ENUM_X_ENUM:
                self.process_enum_x_enum(table)

        logger.info(f"Postprocessed {len(ordered)} tables")
        return TableStore.build(
            tables=self.tables,
            enumerations=self.enumerations,
            enumeration_dicts=self.enumeration_dicts,
            enumeration_arrays=self.enumeration_arrays,
            enumeration_owners=self.enumeration_owners,
            table_formats=self.table_formats,
            table_n_rows=self.table_n_rows,
            entity_prefixes=self.entity_prefixes,
            field_types=self.field_types,
            wiki_lookup=self.wiki_lookup,
            precisions=self.precisions,
            grid_axes=self.grid_axes,
        )

    # ------------------------------------------------------------------
    # Ordering and enumerations
    # ------------------------------------------------------------------

    @staticmethod
    def order_tables(tables: Iterable[IntermediateTable]) -> list[IntermediateTable]:
        """Stable partition with every mod table after all other tables."""
        tables = list(tables)
        base = [t for t in tables if t.format is not TableFormat.DB_ENTITIES_MOD]
        mods = [t for t in tables if t.format is TableFormat.DB_ENTITIES_MOD]
        seen: set[str] = set()
        for table in base:
            if table.name in seen:
                raise TableSchemaError(f"Duplicate table name {table.name!r}")
            seen.add(table.name)
        return base + mods

    def register_predefined(
        self, predefined_enumerations: Mapping[str, Mapping[str, int]]
    ) -> None:
        for enum_name, members in predefined_enumerations.items():
            if enum_name in self.enumeration_dicts:
                raise EnumerationError(f"Duplicate enumeration name {enum_name!r}")
            members = {name: int(index) for name, index in members.items()}
            array = [""] * (max(members.values(), default=-1) + 1)
            for name, index in members.items():
                if index < 0:
                    raise EnumerationError(
                        f"Enumeration {enum_name!r}: negative index for {name!r}"
                    )
                self.add_entity(name, index, enum_name)
                array[index] = name
            self.enumeration_dicts[enum_name] = members
            self.enumeration_arrays[enum_name] = array

    def add_entity(self, name: str, row: int, owner: str) -> None:
        if name in self.enumerations:
            raise EnumerationError(
                f"Entity name {name!r} in {owner!r} is already defined by "
                f"{self.enumeration_owners[name]!r}; table enumerations must be "
                "globally unique"
            )
        self.enumerations[name] = row
        self.enumeration_owners[name] = owner

    def create_enumeration(self, table: IntermediateTable) -> None:
        if table.name in self.enumeration_dicts:
            raise EnumerationError(f"Duplicate enumeration name {table.name!r}")
        self.table_formats[table.name] = table.format
        self.table_n_rows[table.name] = table.n_rows
        self.entity_prefixes[table.name] = table.entity_prefix
        if not table.has_row_names:
            return
        enumeration: dict[str, int] = {}
        for row, name in enumerate(table.row_names):
            self.add_entity(name, row, table.name)
            enumeration[name] = row
        self.enumeration_dicts[table.name] = enumeration
        self.enumeration_arrays[table.name] = list(table.row_names)

    def extend_enumeration(self, table: IntermediateTable) -> None:
        target = table.modifies_table_name
        if self.table_formats.get(target) not in _ENUMERATED_FORMATS:
            raise TableSchemaError(
                f"{table.path}: mod table {table.name!r} modifies {target!r}, "
                "which is not a DB_ENTITIES or ENUMERATION table"
            )
        enumeration = self.enumeration_dicts.get(target)
        if enumeration is None:
            raise TableSchemaError(
                f"{table.path}: mod table {table.name!r} modifies {target!r}, "
                "which has no row names"
            )
        array = self.enumeration_arrays[target]
        added = 0
        for name in table.row_names:
            if name in enumeration:
                continue
            row = len(array)
            self.add_entity(name, row, target)
            enumeration[name] = row
            array.append(name)
            added += 1
        if added:
            logger.debug(f"{table.name} adds {added} rows to {target}")

    def axis_enumeration(
        self, names: list[str], table: IntermediateTable, axis: str
    ) -> str:
        """Return the name of the enumeration that defines all ``names``."""
        owners = set()
        for name in names:
            owner = self.enumeration_owners.get(name)
            if owner is None:
                raise EnumerationError(
                    f"{table.path}: unknown {axis} enumeration name {name!r}"
                )
            owners.add(owner)
        if len(owners) != 1:
            raise EnumerationError(
                f"{table.path}: {axis} names of {table.name!r} belong to more than "
                f"one enumeration: {', '.join(sorted(owners))}"
            )
        return owners.pop()

    # ------------------------------------------------------------------
    # Value resolution
    # ------------------------------------------------------------------

    def check_unit(self, table: IntermediateTable, unit: str, field: str) -> None:
        if unit and not self.units.is_valid_unit(unit):
            raise TableSchemaError(
                f"{table.path}: field {field!r} has unknown unit {unit!r}"
            )

    def resolver(self, table: IntermediateTable) -> ValueResolver:
        return ValueResolver(
            table.interner.strings, self.enumerations, self.units, table.path
        )

    def check_wiki_field(self, table: IntermediateTable) -> bool:
        """Whether the table's wiki field should feed the wiki lookup."""
        if not self.enable_wiki or self.wiki_field not in table.field_types:
            return False
        if table.field_types[self.wiki_field] not in (
            FieldType(BaseType.STRING),
            NAME_TYPE,
        ):
            raise TableSchemaError(
                f"{table.path}: wiki field {self.wiki_field!r} must be STRING"
            )
        return True

    def process_db_table(self, table: IntermediateTable) -> None:
        resolver = self.resolver(table)
        columns: dict[str, list[Any]] = {}
        types: dict[str, FieldType] = {}
        defaults: dict[str, Any] = {}
        precisions: dict[str, list[int]] = {}
        if table.has_row_names:
            columns[NAME_FIELD] = list(table.row_names)
            types[NAME_FIELD] = NAME_TYPE
            defaults[NAME_FIELD] = ""

        for field in table.column_names:
            field_type = table.field_types[field]
            unit = table.field_units.get(field, "")
            self.check_unit(table, unit, field)
            raw_values = table.raw_values[field]
            columns[field] = [resolver.resolve(raw, field_type, unit) for raw in raw_values]
            types[field] = field_type
            defaults[field] = resolver.resolve(
                table.field_defaults.get(field), field_type, unit
            )
            if self.enable_precisions and field_type == FieldType(BaseType.FLOAT):
                precisions[field] = [get_precision(raw) for raw in raw_values]

        if table.has_row_names and self.check_wiki_field(table):
            for name, raw in zip(
                table.row_names, table.raw_values[self.wiki_field], strict=True
            ):
                if raw:
                    self.wiki_lookup[name] = resolver.lookup(raw)

        self.tables[table.name] = columns
        self.table_formats[table.name] = table.format
        self.table_n_rows[table.name] = table.n_rows
        self.entity_prefixes[table.name] = table.entity_prefix
        self.field_types[table.name] = types
        self.field_defaults[table.name] = defaults
        if self.enable_precisions:
            self.precisions[table.name] = precisions
        logger.debug(
            f"Resolved {table.name}: {table.n_rows} rows, {len(columns)} fields"
        )

    def process_mod_table(self, table: IntermediateTable) -> None:
        target = table.modifies_table_name
        new_n_rows = len(self.enumeration_arrays[target])

        if self.table_formats[target] is TableFormat.ENUMERATION:
            if table.column_names:
                raise TableSchemaError(
                    f"{table.path}: cannot add fields to ENUMERATION {target!r}"
                )
            self.table_n_rows[target] = new_n_rows
            return

        resolver = self.resolver(table)
        columns = self.tables[target]
        types = self.field_types[target]
        defaults = self.field_defaults[target]
        precisions = self.precisions.get(target, {})
        n_rows = self.table_n_rows[target]

        # New fields, default filled at the current row count
        for field in table.column_names:
            field_type = table.field_types[field]
            unit = table.field_units.get(field, "")
            self.check_unit(table, unit, field)
            if field in types:
                if types[field] != field_type:
                    raise TableSchemaError(
                        f"{table.path}: field {field!r} is {field_type} but "
                        f"{types[field]} in {target!r}"
                    )
                continue
            default = resolver.resolve(table.field_defaults.get(field), field_type, unit)
            types[field] = field_type
            defaults[field] = default
            columns[field] = [default] * n_rows
            if self.enable_precisions and field_type == FieldType(BaseType.FLOAT):
                precisions[field] = [UNKNOWN_PRECISION] * n_rows

        # New entities, every field imputed with its recorded default
        if new_n_rows > n_rows:
            n_new = new_n_rows - n_rows
            for field, column in columns.items():
                if field != NAME_FIELD:
                    column.extend([defaults[field]] * n_new)
            columns[NAME_FIELD] = list(self.enumeration_arrays[target])
            for column in precisions.values():
                column.extend([UNKNOWN_PRECISION] * n_new)
            self.table_n_rows[target] = new_n_rows

        enumeration = self.enumeration_dicts[target]
        use_wiki = self.check_wiki_field(table)
        for i, name in enumerate(table.row_names):
            row = enumeration[name]
            for field in table.column_names:
                raw = table.raw_values[field][i]
                if raw is None:
                    continue
                field_type = table.field_types[field]
                unit = table.field_units.get(field, "")
                columns[field][row] = resolver.resolve(raw, field_type, unit)
                if field in precisions:
                    precisions[field][row] = get_precision(raw)
                if use_wiki and field == self.wiki_field and raw:
                    self.wiki_lookup[name] = resolver.lookup(raw)
        logger.debug(f"Applied {table.name} to {target}")

    def process_wiki_lookup(self, table: IntermediateTable) -> None:
        self.table_formats[table.name] = table.format
        if not self.enable_wiki:
            logger.warning(f"Wiki lookup disabled, {table.name} ignored")
            return
        if self.wiki_field not in table.field_types:
            raise TableSchemaError(
                f"{table.path}: WIKI_LOOKUP table has no {self.wiki_field!r} field"
            )
        self.check_wiki_field(table)
        resolver = self.resolver(table)
        for name, raw in zip(
            table.row_names, table.raw_values[self.wiki_field], strict=True
        ):
            if raw:
                self.wiki_lookup[name] = resolver.lookup(raw)

    def process_enum_x_enum(self, table: IntermediateTable) -> None:
        self.check_unit(table, table.grid_unit, "DATA_UNIT")
        resolver = self.resolver(table)
        default = resolver.resolve(table.grid_default, table.grid_type, table.grid_unit)
        row_axis = self.axis_enumeration(table.row_names, table, "row")
        column_axis = self.axis_enumeration(table.grid_column_names, table, "column")
        row_enumeration = self.enumeration_dicts[row_axis]
        column_enumeration = self.enumeration_dicts[column_axis]
        n_rows = len(self.enumeration_arrays[row_axis])
        n_columns = len(self.enumeration_arrays[column_axis])

        grid = [[default] * n_columns for _ in range(n_rows)]
        for i, row_name in enumerate(table.row_names):
            row = row_enumeration[row_name]
            for j, column_name in enumerate(table.grid_column_names):
                raw = table.grid_values[i][j]
                if raw is None:
                    continue
                grid[row][column_enumeration[column_name]] = resolver.resolve(
                    raw, table.grid_type, table.grid_unit
                )
        self.tables[table.name] = grid
        self.table_formats[table.name] = table.format
        self.grid_axes[table.name] = (row_axis, column_axis)
        logger.debug(f"Resolved {table.name}: {n_rows} x {n_columns} grid")
