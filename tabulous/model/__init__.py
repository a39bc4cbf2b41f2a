"""Tabulous table model module.

This module contains the data structures passed between the stages of the
table pipeline:

- define: Table formats, directives and field types
- intermediate: Preprocessed form of one source file
- interner: Per-file string interning
- store: Read-only postprocessed tables of one dataset
"""

from tabulous.model.define import (
    BaseType,
    FieldType,
    HeaderKeyword,
    TableDirective,
    TableFormat,
)
from tabulous.model.intermediate import IntermediateTable, RawValue
from tabulous.model.interner import StringInterner
from tabulous.model.store import TableStore

__all__ = [
    "BaseType",
    "FieldType",
    "HeaderKeyword",
    "IntermediateTable",
    "RawValue",
    "StringInterner",
    "TableDirective",
    "TableFormat",
    "TableStore",
]
