"""Tabulous input parsers module.

This module contains the preprocessor that turns table source files into
intermediate tables.

Parsers:
- tsv_parser: Parse tab-delimited table files
"""

from tabulous.parsers.tsv_parser import *  # noqa: F401, F403
