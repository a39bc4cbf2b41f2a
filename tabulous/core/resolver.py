"""Resolution of preprocessed cells into their final typed values."""

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from tabulous.model.define import BaseType, FieldType
from tabulous.model.intermediate import RawValue
from tabulous.units.converter import UnitConverter
from tabulous.utils.exceptions import EnumerationError, TableSchemaError

_INTEGER = re.compile(r"[-+]?\d+")
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def _replace_escape(match: re.Match) -> str:
    sequence = match.group(1)
    if len(sequence) == 5:
        return chr(int(sequence[1:], 16))
    return _SIMPLE_ESCAPES.get(sequence, match.group(0))


def decode_escapes(text: str) -> str:
    """Decode backslash escapes, including ``\\uXXXX``, in STRING cell text.

    Unknown escapes are left as written.
    """
    if "\\" not in text:
        return text
    return _ESCAPE.sub(_replace_escape, text)


class ValueResolver:
    """Resolve the preprocessed cells of one table.

    Parameters
    ----------
    strings : Sequence[str]
        Interned strings of the table's source file, index to text.
    enumerations : Mapping[str, int]
        Global enumeration space used to resolve entity names in INT cells.
    units : UnitConverter
        Converter applied to FLOAT cells of fields with a unit.
    source : str, optional
        Table description used in error messages.
    """

    def __init__(
        self,
        strings: Sequence[str],
        enumerations: Mapping[str, int],
        units: UnitConverter,
        source: str = "",
    ) -> None:
        self.strings = strings
        self.enumerations = enumerations
        self.units = units
        self.source = source

    def resolve(self, raw: RawValue, field_type: FieldType, unit: str = "") -> Any:
        """Resolve one preprocessed cell.

        Parameters
        ----------
        raw : RawValue
            Preprocessed cell, None for an empty cell without default
        field_type : FieldType
            Declared type of the cell
        unit : str, optional
            Unit of a FLOAT cell

        Returns
        -------
        Any
            bool, int, float, str or a tuple of those for arrays

        Raises
        ------
        TableSchemaError
            If the cell cannot be resolved as its declared type
        EnumerationError
            If an INT cell names an unknown entity
        """
        if field_type.is_array:
            if raw is None:
                return ()
            return tuple(self.resolve_scalar(e, field_type.base, unit) for e in raw)
        return self.resolve_scalar(raw, field_type.base, unit)

    def resolve_scalar(self, raw: RawValue, base: BaseType, unit: str = "") -> Any:
        if base is BaseType.BOOL:
            return self.resolve_bool(raw)
        if base is BaseType.INT:
            return self.resolve_int(raw)
        if base is BaseType.FLOAT:
            return self.resolve_float(raw, unit)
        if base is BaseType.STRING:
            return decode_escapes(self.lookup(raw))
        if base is BaseType.STRING_NAME:
            return self.lookup(raw)
        raise TableSchemaError(f"{self.source}: unknown type {base}")

    def lookup(self, raw: RawValue) -> str:
        if not raw:
            return ""
        return self.strings[raw]

    def resolve_bool(self, raw: RawValue) -> bool:
        if raw is None:
            return False
        if raw not in (0, 1):
            raise TableSchemaError(f"{self.source}: bad preprocessed bool {raw!r}")
        return raw == 1

    def resolve_int(self, raw: RawValue) -> int:
        text = self.lookup(raw)
        if not text:
            return -1
        if _INTEGER.fullmatch(text):
            return int(text)
        row = self.enumerations.get(text)
        if row is None:
            raise EnumerationError(f"{self.source}: unknown enumeration {text!r}")
        return row

    def resolve_float(self, raw: RawValue, unit: str = "") -> float:
        if not raw:
            return math.nan
        if raw == "?":
            return math.inf
        if raw == "-?":
            return -math.inf
        value = float(raw.removeprefix("~"))
        if unit:
            value = self.units.convert(value, unit)
        return value
