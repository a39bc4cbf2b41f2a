"""Tabulous typed table package.

This package reads tab-delimited table files written under a small schema
language (typed fields, defaults, units, entity name enumerations, mod
tables and enum x enum grids) and turns them into read-only, statically
typed, unit-normalised columns.

Processing Pipeline
-------------------
1. **Parsers**: Preprocess each file on its own → IntermediateTable
2. **Core/Postprocessor**: Build the global enumeration space, resolve
   every cell, apply mod tables → TableStore
3. **Core/Access**: Typed reads by row index or entity name

Quick Start
-----------
::

    from tabulous import TableContext

    context = TableContext()
    context.postprocess(["tables/planets.tsv", "tables/planets_mod.tsv"])
    radius = context.access.get_float("planets", "radius", name="PLANET_EARTH")
"""

from tabulous.core import (
    TableAccess,
    TableContext,
    TablePostprocessor,
    TSVReader,
    create_reader,
)
from tabulous.model import (
    BaseType,
    FieldType,
    IntermediateTable,
    TableFormat,
    TableStore,
)
from tabulous.parsers import parse_table_file, parse_table_lines
from tabulous.units import UnitConverter

__all__ = [
    # Core pipeline
    "TableContext",
    "TablePostprocessor",
    "TableAccess",
    "TSVReader",
    "create_reader",
    "parse_table_file",
    "parse_table_lines",
    # Data model
    "BaseType",
    "FieldType",
    "IntermediateTable",
    "TableFormat",
    "TableStore",
    # Units
    "UnitConverter",
]
