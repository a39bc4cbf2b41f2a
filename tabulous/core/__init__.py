"""Core table processing pipeline.

This module provides the processing pipeline architecture:
- Reader: Parses table source files → IntermediateTable
- Postprocessor: Links and resolves all intermediate tables → TableStore
- Context: Holds settings and the TableStore of one dataset
- Access: Typed reads from a TableStore

Example Pipeline
----------------
::

    from tabulous.core import TableContext

    context = TableContext()
    context.postprocess(["data/planets.tsv", "data/moons.tsv"], enable_wiki=True)

    access = context.access
    mass = access.get_float("planets", "mass", name="PLANET_EARTH")
    row = access.get_int("moons", "primary", name="MOON_MOON")
"""

from tabulous.core.access import TableAccess
from tabulous.core.context import TableContext
from tabulous.core.postprocessor import TablePostprocessor
from tabulous.core.reader import Reader, TSVReader, create_reader
from tabulous.core.resolver import ValueResolver

__all__ = [
    "TableAccess",
    "TableContext",
    "TablePostprocessor",
    "Reader",
    "TSVReader",
    "ValueResolver",
    "create_reader",
]
