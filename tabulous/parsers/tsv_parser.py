"""Table preprocessor - parses one tab-delimited table file.

The preprocessor has no knowledge of other files. It turns the text of one
``.tsv`` file into an :class:`~tabulous.model.intermediate.IntermediateTable`
holding field metadata and cells in a preprocessed form: text is interned,
bools are 0/1, floats stay as normalised text so that their significant
digits survive until postprocessing.

File layout
-----------
::

    # comment line
    @DB_ENTITIES=planets
    	mass	radius	#notes	en.wiki
    Type	FLOAT	FLOAT		STRING
    Unit	kg	km
    Prefix/PLANET_
    EARTH	5.9722e24	6371.0	ours	Earth

Lines starting with ``#`` are comments, cells whose header starts with ``#``
form comment columns, lines whose first cell starts with ``@`` are
directives.
"""

import re
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from tabulous.model.define import (
    DIRECTIVES_WITH_ARGUMENT,
    LEGAL_DIRECTIVES,
    STRING_TYPE,
    BaseType,
    FieldType,
    HeaderKeyword,
    TableDirective,
    TableFormat,
)
from tabulous.model.intermediate import IntermediateTable, RawValue
from tabulous.utils.exceptions import TableSchemaError

__all__ = [
    "parse_table_file",
    "parse_table_lines",
    "preprocess_float",
]

_FLOAT_BODY = re.compile(r"-?(\d+\.?\d*|\.\d+)(e[-+]?\d+)?")
_TRUE_TEXT = frozenset({"true", "x"})
_FALSE_TEXT = frozenset({"false"})
_PREFIX_ROW = HeaderKeyword.PREFIX + "/"
_NAME_FIELD = "name"

# Formats that must (or must not) name their rows
_ROW_NAMES_REQUIRED = frozenset(
    {TableFormat.DB_ENTITIES_MOD, TableFormat.ENUMERATION, TableFormat.WIKI_LOOKUP}
)
_TYPE_ROW_OPTIONAL = frozenset({TableFormat.ENUMERATION, TableFormat.WIKI_LOOKUP})


def _clean_cell(cell: str) -> str:
    cell = cell.strip()
    if len(cell) >= 2 and cell[0] == '"' and cell[-1] == '"':
        return cell[1:-1]
    if cell.startswith("'"):
        return cell[1:]
    return cell


def _is_comment_line(line: str) -> bool:
    return line.startswith(("#", '"#', "'#"))


def preprocess_float(text: str) -> str:
    """Normalise the text of a FLOAT cell without losing precision information.

    ``?`` and ``-?`` pass through unchanged, a leading ``~`` is kept, a
    leading ``+`` is dropped and ``E`` becomes ``e``.

    Parameters
    ----------
    text : str
        Non-empty cell text

    Returns
    -------
    str
        Normalised text

    Raises
    ------
    ValueError
        If the text is not a decimal number
    """
    if text in ("?", "-?"):
        return text
    tilde = text.startswith("~")
    body = text[1:] if tilde else text
    if body.startswith("+"):
        body = body[1:]
    body = body.replace("E", "e")
    if not _FLOAT_BODY.fullmatch(body):
        raise ValueError(f"Malformed float: {text!r}")
    return "~" + body if tilde else body


class _TableParser:
    """Single-use parser state for one source file."""

    def __init__(self, lines: Iterable[str], name: str, source: str) -> None:
        self.lines = lines
        self.default_name = name
        self.source = source or name
        self.format: TableFormat | None = None
        self.table_name = ""
        self.directives: dict[TableDirective, str] = {}
        self.content: list[tuple[int, list[str]]] = []
        self.table: IntermediateTable | None = None

    def error(self, message: str, line_number: int | None = None) -> TableSchemaError:
        if line_number is None:
            return TableSchemaError(f"{self.source}: {message}")
        return TableSchemaError(f"{self.source}:{line_number}: {message}")

    # ------------------------------------------------------------------
    # Lexing
    # ------------------------------------------------------------------

    def parse(self) -> IntermediateTable | None:
        comment_columns: list[int] | None = None
        n_columns = 0
        for line_number, line in enumerate(self.lines, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or _is_comment_line(line):
                continue
            cells = [_clean_cell(cell) for cell in line.split("\t")]
            if cells[0].startswith("@"):
                if not self.read_directive(cells, line_number):
                    logger.debug(f"{self.source}: DONT_PARSE, skipped")
                    return None
                continue
            if comment_columns is None:
                comment_columns = [i for i, c in enumerate(cells) if c.startswith("#")]
                n_columns = len(cells) - len(comment_columns)
            if len(cells) != n_columns + len(comment_columns):
                raise self.error(
                    f"Expected {n_columns + len(comment_columns)} columns, "
                    f"found {len(cells)}",
                    line_number,
                )
            if comment_columns:
                cells = [c for i, c in enumerate(cells) if i not in comment_columns]
            if not any(cells):
                continue
            self.content.append((line_number, cells))

        self.resolve_format(n_columns)
        table = IntermediateTable(
            format=self.format,
            name=self.table_name,
            path=self.source,
            modifies_table_name=self.directives.get(TableDirective.MODIFIES, ""),
        )
        self.table = table
        if table.format is TableFormat.ENUM_X_ENUM:
            self.parse_enum_x_enum()
        else:
            self.parse_db_style()
        logger.debug(
            f"Preprocessed {table.name} ({table.format}): "
            f"{table.n_rows} rows, {len(table.column_names)} fields"
        )
        return table

    def read_directive(self, cells: list[str], line_number: int) -> bool:
        """Record one directive line; return False for DONT_PARSE."""
        key = cells[0][1:].strip()
        argument = ""
        if "=" in key:
            key, argument = (s.strip() for s in key.split("=", 1))
        elif len(cells) > 1:
            argument = cells[1]

        if key in TableFormat.__members__:
            if self.format is not None:
                raise self.error("More than one format directive", line_number)
            self.format = TableFormat(key)
            self.table_name = argument
            return True
        if key not in TableDirective.__members__:
            raise self.error(f"Unknown directive @{key}", line_number)

        directive = TableDirective(key)
        if directive is TableDirective.DONT_PARSE:
            return False
        if directive is TableDirective.TABLE_TYPE:
            directive = TableDirective.DATA_TYPE
        if directive in self.directives:
            raise self.error(f"Duplicate directive @{key}", line_number)
        if directive in DIRECTIVES_WITH_ARGUMENT and not argument:
            raise self.error(f"Directive @{key} requires an argument", line_number)
        self.directives[directive] = argument
        return True

    def resolve_format(self, n_columns: int) -> None:
        if self.format is None:
            if TableDirective.MODIFIES in self.directives:
                self.format = TableFormat.DB_ENTITIES_MOD
            elif n_columns == 1:
                self.format = TableFormat.ENUMERATION
            else:
                self.format = TableFormat.DB_ENTITIES
        if not self.table_name:
            self.table_name = self.default_name

        legal = LEGAL_DIRECTIVES[self.format]
        for directive in self.directives:
            if directive not in legal:
                raise self.error(f"Directive @{directive} is not legal for {self.format}")
        if (
            self.format is TableFormat.DB_ENTITIES_MOD
            and TableDirective.MODIFIES not in self.directives
        ):
            raise self.error("DB_ENTITIES_MOD requires @MODIFIES=<table>")
        if (
            self.format is TableFormat.ENUM_X_ENUM
            and TableDirective.DATA_TYPE not in self.directives
        ):
            raise self.error("ENUM_X_ENUM requires @DATA_TYPE=<type>")

    # ------------------------------------------------------------------
    # Cell preprocessing
    # ------------------------------------------------------------------

    def preprocess_cell(
        self,
        text: str,
        field_type: FieldType,
        prefix: str,
        default: RawValue,
        line_number: int | None,
    ) -> RawValue:
        if not text:
            return default
        try:
            if field_type.is_array:
                return tuple(
                    self.preprocess_scalar(element.strip(), field_type.base, prefix)
                    for element in text.split(",")
                )
            return self.preprocess_scalar(text, field_type.base, prefix)
        except ValueError as e:
            raise self.error(str(e), line_number) from None

    def preprocess_scalar(self, text: str, base: BaseType, prefix: str) -> RawValue:
        if base is BaseType.BOOL:
            if not text:
                return None
            lowered = text.lower()
            if lowered in _TRUE_TEXT:
                return 1
            if lowered in _FALSE_TEXT:
                return 0
            raise ValueError(f"Malformed bool: {text!r}")
        if base is BaseType.FLOAT:
            return preprocess_float(text) if text else None
        if not text:
            return 0
        return self.table.interner.intern(prefix + text)

    # ------------------------------------------------------------------
    # DB-style formats
    # ------------------------------------------------------------------

    def parse_db_style(self) -> None:
        table = self.table
        rows = list(self.content)
        header_line = None

        # Single column mods only add row names and have no header row
        headerless = table.format is TableFormat.ENUMERATION or (
            table.format is TableFormat.DB_ENTITIES_MOD
            and bool(rows)
            and len(rows[0][1]) == 1
        )
        if not headerless:
            if not rows:
                raise self.error("Missing field name header row")
            header_line, header = rows.pop(0)
            self.read_field_names(header[1:], header_line)
        elif (
            table.format is TableFormat.ENUMERATION and rows and len(rows[0][1]) != 1
        ):
            raise self.error("ENUMERATION tables have a single column", rows[0][0])

        header_rows: dict[HeaderKeyword, tuple[int, list[str]]] = {}
        while rows and self.is_header_row(rows[0][1][0]):
            line_number, cells = rows.pop(0)
            if cells[0].startswith(_PREFIX_ROW):
                # Prefix/<value> names rows, its other cells are field prefixes
                keyword = HeaderKeyword.PREFIX
                entity_prefix = cells[0][len(_PREFIX_ROW) :]
            else:
                keyword = HeaderKeyword(cells[0])
                entity_prefix = None
            if keyword in header_rows:
                raise self.error(f"Duplicate {keyword} row", line_number)
            if entity_prefix is not None:
                table.entity_prefix = entity_prefix
            header_rows[keyword] = (line_number, cells[1:])

        self.read_types(header_rows.get(HeaderKeyword.TYPE), header_line)
        self.read_units(header_rows.get(HeaderKeyword.UNIT))
        self.read_prefixes(header_rows.get(HeaderKeyword.PREFIX))
        self.read_defaults(header_rows.get(HeaderKeyword.DEFAULT))
        self.read_rows(rows)

    @staticmethod
    def is_header_row(first_cell: str) -> bool:
        return first_cell in HeaderKeyword.__members__.values() or first_cell.startswith(
            _PREFIX_ROW
        )

    def read_field_names(self, names: list[str], line_number: int) -> None:
        if not names:
            raise self.error(f"{self.format} table has no fields", line_number)
        seen: set[str] = set()
        for name in names:
            if not name:
                raise self.error("Empty field name", line_number)
            if name == _NAME_FIELD:
                raise self.error(f"Field name {name!r} is reserved", line_number)
            if name in seen:
                raise self.error(f"Duplicate field name {name!r}", line_number)
            seen.add(name)
        self.table.column_names = list(names)

    def read_types(self, row: tuple[int, list[str]] | None, header_line: int | None) -> None:
        table = self.table
        if row is None:
            if table.column_names and table.format not in _TYPE_ROW_OPTIONAL:
                raise self.error(f"{table.format} requires a Type row", header_line)
            table.field_types = {name: STRING_TYPE for name in table.column_names}
            return
        line_number, cells = row
        for i, name in enumerate(table.column_names):
            text = cells[i] if i < len(cells) else ""
            if not text:
                if table.format in _TYPE_ROW_OPTIONAL:
                    table.field_types[name] = STRING_TYPE
                    continue
                raise self.error(f"Missing type for field {name!r}", line_number)
            try:
                table.field_types[name] = FieldType.parse(text)
            except ValueError as e:
                raise self.error(f"Field {name!r}: {e}", line_number) from None

    def read_units(self, row: tuple[int, list[str]] | None) -> None:
        table = self.table
        line_number, cells = row if row else (None, [])
        for i, name in enumerate(table.column_names):
            unit = cells[i] if i < len(cells) else ""
            if unit and table.field_types[name].base is not BaseType.FLOAT:
                raise self.error(f"Unit given for non-FLOAT field {name!r}", line_number)
            table.field_units[name] = unit

    def read_prefixes(self, row: tuple[int, list[str]] | None) -> None:
        table = self.table
        line_number, cells = row if row else (None, [])
        for i, name in enumerate(table.column_names):
            prefix = cells[i] if i < len(cells) else ""
            if prefix and not table.field_types[name].base.is_interned:
                raise self.error(
                    f"Prefix given for {table.field_types[name]} field {name!r}",
                    line_number,
                )
            table.field_prefixes[name] = prefix

    def read_defaults(self, row: tuple[int, list[str]] | None) -> None:
        table = self.table
        line_number, cells = row if row else (None, [])
        for i, name in enumerate(table.column_names):
            text = cells[i] if i < len(cells) else ""
            table.field_defaults[name] = self.preprocess_cell(
                text,
                table.field_types[name],
                table.field_prefixes[name],
                None,
                line_number,
            )

    def read_rows(self, rows: list[tuple[int, list[str]]]) -> None:
        table = self.table
        if not rows:
            logger.warning(f"{self.source}: table {table.name} has no content rows")
        named = bool(rows) and bool(rows[0][1][0])
        if table.format in _ROW_NAMES_REQUIRED and rows and not named:
            raise self.error(f"{table.format} rows must be named", rows[0][0])
        if table.format is TableFormat.DB_ANONYMOUS_ROWS and named:
            raise self.error("DB_ANONYMOUS_ROWS rows must not be named", rows[0][0])

        table.raw_values = {name: [] for name in table.column_names}
        seen: set[str] = set()
        for line_number, cells in rows:
            if bool(cells[0]) != named:
                raise self.error("Row names must be given for all rows or none", line_number)
            if named:
                row_name = table.entity_prefix + cells[0]
                if row_name in seen:
                    raise self.error(f"Duplicate row name {row_name!r}", line_number)
                seen.add(row_name)
                table.row_names.append(row_name)
            for i, name in enumerate(table.column_names, start=1):
                table.raw_values[name].append(
                    self.preprocess_cell(
                        cells[i],
                        table.field_types[name],
                        table.field_prefixes[name],
                        table.field_defaults[name],
                        line_number,
                    )
                )
        table.n_rows = len(rows)

    # ------------------------------------------------------------------
    # ENUM_X_ENUM
    # ------------------------------------------------------------------

    def parse_enum_x_enum(self) -> None:
        table = self.table
        if not self.content:
            raise self.error("ENUM_X_ENUM table has no column header row")
        header_line, header = self.content[0]

        row_prefix = column_prefix = ""
        if header[0]:
            if "\\" not in header[0]:
                raise self.error(
                    "First cell must be empty or 'rowPrefix\\columnPrefix'", header_line
                )
            row_prefix, column_prefix = header[0].split("\\", 1)
        column_names = header[1:]
        row_names = [cells[0] for _, cells in self.content[1:]]
        grid = [cells[1:] for _, cells in self.content[1:]]
        line_numbers = [line_number for line_number, _ in self.content[1:]]

        if TableDirective.TRANSPOSE in self.directives:
            row_names, column_names = column_names, row_names
            row_prefix, column_prefix = column_prefix, row_prefix
            grid = [list(column) for column in zip(*grid, strict=True)]
            line_numbers = [header_line] * len(row_names)

        table.row_names = self.check_axis(row_names, row_prefix, "row", header_line)
        table.grid_column_names = self.check_axis(
            column_names, column_prefix, "column", header_line
        )

        try:
            table.grid_type = FieldType.parse(self.directives[TableDirective.DATA_TYPE])
        except ValueError as e:
            raise self.error(str(e)) from None
        table.grid_unit = self.directives.get(TableDirective.DATA_UNIT, "")
        if table.grid_unit and table.grid_type.base is not BaseType.FLOAT:
            raise self.error(f"DATA_UNIT given for {table.grid_type} data")
        table.grid_default = self.preprocess_cell(
            self.directives.get(TableDirective.DATA_DEFAULT, ""),
            table.grid_type,
            "",
            None,
            None,
        )
        table.grid_values = [
            [
                self.preprocess_cell(text, table.grid_type, "", None, line_number)
                for text in cells
            ]
            for line_number, cells in zip(line_numbers, grid, strict=True)
        ]
        table.n_rows = len(table.row_names)

    def check_axis(
        self, names: list[str], prefix: str, axis: str, line_number: int
    ) -> list[str]:
        if not names:
            raise self.error(f"ENUM_X_ENUM table has no {axis} names", line_number)
        prefixed: list[str] = []
        for name in names:
            if not name:
                raise self.error(f"Empty {axis} name", line_number)
            if prefix + name in prefixed:
                raise self.error(f"Duplicate {axis} name {prefix + name!r}", line_number)
            prefixed.append(prefix + name)
        return prefixed


def parse_table_lines(
    lines: Iterable[str], name: str, source: str = ""
) -> IntermediateTable | None:
    """Preprocess the lines of one table source.

    Parameters
    ----------
    lines : Iterable[str]
        Lines of the source, with or without line terminators
    name : str
        Table name used when the format directive does not name the table
    source : str, optional
        Description of the source (usually its path) used in error messages

    Returns
    -------
    IntermediateTable | None
        The preprocessed table, or None if the source has a DONT_PARSE
        directive

    Raises
    ------
    TableSchemaError
        If the source violates the table schema
    """
    return _TableParser(lines, name, source).parse()


def parse_table_file(path: Path) -> IntermediateTable | None:
    """Preprocess one table file.

    The table name defaults to the file stem.

    Parameters
    ----------
    path : Path
        Path to a tab-delimited table file

    Returns
    -------
    IntermediateTable | None
        The preprocessed table, or None if the file has a DONT_PARSE
        directive

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    TableSchemaError
        If the file violates the table schema
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table file {path} does not exist")
    text = path.read_text(encoding="utf-8-sig")
    return parse_table_lines(text.splitlines(), path.stem, str(path))
