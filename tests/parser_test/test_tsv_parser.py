"""Tests for the tab-delimited table preprocessor."""

from pathlib import Path

import pytest

from tabulous.model.define import BaseType, FieldType, TableFormat
from tabulous.parsers.tsv_parser import (
    parse_table_file,
    parse_table_lines,
    preprocess_float,
)
from tabulous.utils.exceptions import TableSchemaError


def lines(*rows: list[str]) -> list[str]:
    """Join rows of cells into tab-delimited lines."""
    return ["\t".join(row) for row in rows]


def text(table, raw) -> str:
    """Return the interned text of a preprocessed cell."""
    return table.interner.lookup(raw)


PLANETS = lines(
    ["# Planets of the solar system"],
    ["@DB_ENTITIES=planets"],
    ["", "mass", "radius", "#notes", "moons", "habitable", "en.wiki"],
    ["Type", "FLOAT", "FLOAT", "", "ARRAY[INT]", "BOOL", "STRING"],
    ["Unit", "kg", "km", "", "", "", ""],
    ["Default", "", "1000", "", "", "false", ""],
    ["Prefix/PLANET_", "", "", "", "", "", ""],
    ["EARTH", "5.9722E24", "6371.0", "home", "MOON_LUNA", "x", "Earth"],
    ["MARS", "6.4171e23", "", "red", "MOON_PHOBOS, MOON_DEIMOS", "", "Mars_(planet)"],
    ["VENUS", "~4.8675e24", "6051.8", "", "", "true", ""],
)


def test_planets_table() -> None:
    """Test a DB_ENTITIES table with every header row and a comment column."""
    table = parse_table_lines(PLANETS, "unused", "planets.tsv")
    assert table.format is TableFormat.DB_ENTITIES
    assert table.name == "planets"
    assert table.path == "planets.tsv"
    assert table.column_names == ["mass", "radius", "moons", "habitable", "en.wiki"]
    assert table.row_names == ["PLANET_EARTH", "PLANET_MARS", "PLANET_VENUS"]
    assert table.n_rows == 3
    assert table.entity_prefix == "PLANET_"
    assert table.field_types["moons"] == FieldType(BaseType.INT, is_array=True)
    assert table.field_units == {
        "mass": "kg",
        "radius": "km",
        "moons": "",
        "habitable": "",
        "en.wiki": "",
    }
    assert table.raw_values["mass"] == ["5.9722e24", "6.4171e23", "~4.8675e24"]
    assert table.raw_values["radius"] == ["6371.0", "1000", "6051.8"]
    assert table.raw_values["habitable"] == [1, 0, 1]
    moons = table.raw_values["moons"]
    assert [text(table, m) for m in moons[0]] == ["MOON_LUNA"]
    assert [text(table, m) for m in moons[1]] == ["MOON_PHOBOS", "MOON_DEIMOS"]
    assert moons[2] is None
    assert text(table, table.raw_values["en.wiki"][1]) == "Mars_(planet)"
    assert table.raw_values["en.wiki"][2] is None


def test_interning_deduplicates() -> None:
    """Test equal strings of one file share one interned index."""
    table = parse_table_lines(
        lines(
            ["", "color", "shade"],
            ["Type", "STRING", "STRING"],
            ["A", "red", "red"],
            ["B", "red", ""],
        ),
        "things",
    )
    first = table.raw_values["color"][0]
    assert table.raw_values["color"] == [first, first]
    assert table.raw_values["shade"][0] == first
    assert table.interner.lookup(0) == ""


def test_field_prefix_row() -> None:
    """Test a Prefix row prefixes the text of interned fields."""
    table = parse_table_lines(
        lines(
            ["", "moon", "count"],
            ["Type", "INT", "FLOAT"],
            ["Prefix", "MOON_", ""],
            ["EARTH", "LUNA", "1"],
        ),
        "planets",
    )
    assert table.field_prefixes == {"moon": "MOON_", "count": ""}
    assert text(table, table.raw_values["moon"][0]) == "MOON_LUNA"


def test_entity_prefix_row_carries_field_prefixes() -> None:
    """Test the cells after Prefix/<value> are the field prefixes."""
    table = parse_table_lines(
        lines(
            ["", "moon"],
            ["Type", "INT"],
            ["Prefix/PLANET_", "MOON_"],
            ["EARTH", "LUNA"],
        ),
        "planets",
    )
    assert table.row_names == ["PLANET_EARTH"]
    assert table.entity_prefix == "PLANET_"
    assert table.field_prefixes == {"moon": "MOON_"}
    assert text(table, table.raw_values["moon"][0]) == "MOON_LUNA"


@pytest.mark.parametrize(
    ("rows", "expected"),
    [
        ([["RED"], ["GREEN"]], TableFormat.ENUMERATION),
        ([["", "a"], ["Type", "INT"], ["X", "1"]], TableFormat.DB_ENTITIES),
        ([["@MODIFIES=colors"], ["BLUE"]], TableFormat.DB_ENTITIES_MOD),
    ],
)
def test_format_inference(rows: list[list[str]], expected: TableFormat) -> None:
    """Test the format is inferred when no format directive is given."""
    assert parse_table_lines(lines(*rows), "t").format is expected


def test_enumeration_table() -> None:
    """Test an ENUMERATION table has no header and no fields."""
    table = parse_table_lines(lines(["@ENUMERATION=colors"], ["RED"], ["GREEN"]), "x")
    assert table.name == "colors"
    assert table.row_names == ["RED", "GREEN"]
    assert table.column_names == []
    assert table.n_rows == 2


def test_mod_table() -> None:
    """Test a mod table records its target and its rows."""
    table = parse_table_lines(
        lines(
            ["@DB_ENTITIES_MOD=more_planets"],
            ["@MODIFIES=planets"],
            ["", "mass"],
            ["Type", "FLOAT"],
            ["PLANET_PLUTO", "1.303e22"],
        ),
        "mods",
    )
    assert table.format is TableFormat.DB_ENTITIES_MOD
    assert table.name == "more_planets"
    assert table.modifies_table_name == "planets"
    assert table.row_names == ["PLANET_PLUTO"]


def test_legacy_directive_argument() -> None:
    """Test a directive argument may be given in the second cell."""
    table = parse_table_lines(lines(["@MODIFIES", "colors"], ["BLUE"]), "t")
    assert table.modifies_table_name == "colors"


def test_dont_parse() -> None:
    """Test DONT_PARSE makes the preprocessor skip the source."""
    assert parse_table_lines(lines(["@DONT_PARSE"], ["RED"]), "colors") is None


def test_quotes_and_apostrophes() -> None:
    """Test surrounding quotes and a leading apostrophe are stripped."""
    table = parse_table_lines(
        lines(
            ["", "label", "code"],
            ["Type", "STRING", "STRING"],
            ['"A"', '"a, b"', "'007"],
        ),
        "t",
    )
    assert table.row_names == ["A"]
    assert text(table, table.raw_values["label"][0]) == "a, b"
    assert text(table, table.raw_values["code"][0]) == "007"


def test_anonymous_rows() -> None:
    """Test DB_ANONYMOUS_ROWS tables have no row names."""
    table = parse_table_lines(
        lines(
            ["@DB_ANONYMOUS_ROWS=events"],
            ["", "year"],
            ["Type", "INT"],
            ["", "1969"],
            ["", "1972"],
        ),
        "t",
    )
    assert table.row_names == []
    assert table.n_rows == 2
    assert not table.has_row_names


def test_blank_and_comment_lines_are_skipped() -> None:
    """Test blank lines, comment lines and all-empty rows are ignored."""
    table = parse_table_lines(
        ["RED", "", "# note", '"# quoted note"', "  ", "GREEN\r\n"], "colors"
    )
    assert table.row_names == ["RED", "GREEN"]


@pytest.mark.parametrize(
    ("rows", "message"),
    [
        ([["@DB_ENTITIES"], ["@DB_ENTITIES"]], "More than one format"),
        ([["@BOGUS"]], "Unknown directive"),
        ([["@MODIFIES=a"], ["@MODIFIES=b"]], "Duplicate directive"),
        ([["@MODIFIES"]], "requires an argument"),
        ([["@DB_ENTITIES"], ["@TRANSPOSE"], ["", "a"]], "not legal"),
        ([["@DB_ENTITIES_MOD"], ["", "a"]], "requires @MODIFIES"),
        ([["@ENUM_X_ENUM"], ["", "A"], ["B", "1"]], "requires @DATA_TYPE"),
        ([["", "a", "b"], ["X", "1"]], "Expected 3 columns"),
        ([["", "a"], ["X", "1"]], "requires a Type row"),
        ([["", "a"], ["Type", "NUMBER"], ["X", "1"]], "Unknown field type"),
        ([["", "a"], ["Type", "ARRAY[ARRAY[INT]]"], ["X", "1"]], "Nested array"),
        ([["", "a", "a"], ["Type", "INT", "INT"]], "Duplicate field name"),
        ([["", "name"], ["Type", "INT"]], "reserved"),
        ([["", "a", ""], ["Type", "INT", "INT"]], "Empty field name"),
        ([["", "a"], ["Type", "INT"], ["Unit", "km"]], "non-FLOAT"),
        ([["", "a"], ["Type", "FLOAT"], ["Prefix", "P_"]], "Prefix given"),
        ([["", "a"], ["Type", "BOOL"], ["X", "maybe"]], "Malformed bool"),
        ([["", "a"], ["Type", "FLOAT"], ["X", "1.2.3"]], "Malformed float"),
        ([["", "a"], ["Type", "INT"], ["X", "1"], ["", "2"]], "all rows or none"),
        ([["", "a"], ["Type", "INT"], ["X", "1"], ["X", "2"]], "Duplicate row name"),
        ([["@DB_ANONYMOUS_ROWS"], ["", "a"], ["Type", "INT"], ["X", "1"]], "not be named"),
        ([["@WIKI_LOOKUP"], ["", "en.wiki"], ["", "Page"]], "must be named"),
        ([["", "a"], ["Type", "INT"], ["Type", "INT"]], "Duplicate Type row"),
        (
            [["", "a"], ["Type", "INT"], ["Prefix/P_", ""], ["Prefix", "Q_"]],
            "Duplicate Prefix row",
        ),
    ],
)
def test_schema_errors(rows: list[list[str]], message: str) -> None:
    """Test schema violations raise TableSchemaError naming the problem."""
    with pytest.raises(TableSchemaError, match=message):
        parse_table_lines(lines(*rows), "t", "t.tsv")


def test_error_reports_line_number() -> None:
    """Test errors carry the source and line number."""
    with pytest.raises(TableSchemaError, match=r"^t\.tsv:3: "):
        parse_table_lines(lines(["", "a"], ["Type", "BOOL"], ["X", "nope"]), "t", "t.tsv")


def test_wiki_lookup_defaults_to_string() -> None:
    """Test WIKI_LOOKUP tables need no Type row."""
    table = parse_table_lines(
        lines(["@WIKI_LOOKUP=wiki"], ["", "en.wiki"], ["TERRA", "Earth"]), "t"
    )
    assert table.field_types["en.wiki"] == FieldType(BaseType.STRING)
    assert text(table, table.raw_values["en.wiki"][0]) == "Earth"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.5", "1.5"),
        ("+2", "2"),
        ("1E3", "1e3"),
        ("-4.5e-2", "-4.5e-2"),
        ("~5", "~5"),
        (".5", ".5"),
        ("?", "?"),
        ("-?", "-?"),
    ],
)
def test_preprocess_float(raw: str, expected: str) -> None:
    """Test FLOAT cell normalisation."""
    assert preprocess_float(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "1,5", "1e", "--1", "1 km"])
def test_preprocess_float_malformed(raw: str) -> None:
    """Test malformed FLOAT text raises ValueError."""
    with pytest.raises(ValueError, match="Malformed float"):
        preprocess_float(raw)


GRID = lines(
    ["@ENUM_X_ENUM=distances"],
    ["@DATA_TYPE=FLOAT"],
    ["@DATA_UNIT=km"],
    ["@DATA_DEFAULT=-1"],
    ["PLANET_\\MOON_", "LUNA", "PHOBOS", "DEIMOS"],
    ["EARTH", "384400", "", ""],
    ["MARS", "", "9376", "23463"],
)


def test_enum_x_enum() -> None:
    """Test an ENUM_X_ENUM table with axis prefixes."""
    table = parse_table_lines(GRID, "t")
    assert table.format is TableFormat.ENUM_X_ENUM
    assert table.row_names == ["PLANET_EARTH", "PLANET_MARS"]
    assert table.grid_column_names == ["MOON_LUNA", "MOON_PHOBOS", "MOON_DEIMOS"]
    assert table.grid_type == FieldType(BaseType.FLOAT)
    assert table.grid_unit == "km"
    assert table.grid_default == "-1"
    assert table.grid_values == [
        ["384400", None, None],
        [None, "9376", "23463"],
    ]
    assert table.n_rows == 2


def test_enum_x_enum_transpose() -> None:
    """Test TRANSPOSE swaps the axes, their prefixes and the grid."""
    table = parse_table_lines(GRID[:4] + ["@TRANSPOSE"] + GRID[4:], "t")
    assert table.row_names == ["MOON_LUNA", "MOON_PHOBOS", "MOON_DEIMOS"]
    assert table.grid_column_names == ["PLANET_EARTH", "PLANET_MARS"]
    assert table.grid_values == [
        ["384400", None],
        [None, "9376"],
        [None, "23463"],
    ]


@pytest.mark.parametrize(
    ("rows", "message"),
    [
        ([["@ENUM_X_ENUM"], ["@DATA_TYPE=INT"], ["P", "A"], ["B", "1"]], "First cell"),
        ([["@ENUM_X_ENUM"], ["@DATA_TYPE=INT"], ["", "A", "A"], ["B", "1", "2"]], "Duplicate"),
        ([["@ENUM_X_ENUM"], ["@DATA_TYPE=INT"], ["@DATA_UNIT=km"], ["", "A"], ["B", "1"]], "DATA_UNIT"),
    ],
)
def test_enum_x_enum_errors(rows: list[list[str]], message: str) -> None:
    """Test ENUM_X_ENUM schema violations."""
    with pytest.raises(TableSchemaError, match=message):
        parse_table_lines(lines(*rows), "t")


def test_parse_table_file(tmp_path: Path) -> None:
    """Test reading a file names the table after its stem and handles a BOM."""
    path = tmp_path / "colors.tsv"
    path.write_text("\ufeffRED\nGREEN\n", encoding="utf-8")
    table = parse_table_file(path)
    assert table.name == "colors"
    assert table.path == str(path)
    assert table.row_names == ["RED", "GREEN"]


def test_parse_table_file_missing(tmp_path: Path) -> None:
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="does not exist"):
        parse_table_file(tmp_path / "nothing.tsv")
