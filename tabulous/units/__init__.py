"""Tabulous unit conversion module.

- definitions: Built-in unit registry and named constants
- converter: UnitConverter and the compound unit expression parser
"""

from tabulous.units.converter import UnitConverter

__all__ = ["UnitConverter"]
