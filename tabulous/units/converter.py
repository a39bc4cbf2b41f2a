"""Unit conversion with a parser for compound unit expressions.

A unit string is resolved in three steps:

1. exact match in the multiplier registry,
2. exact match in the non-linear conversion registry (temperature scales),
3. parsing as a compound expression of registered symbols and numbers.

The compound grammar is::

    expr   := term (('/' | ' ') term)*
    term   := factor ('^' factor)?
    factor := NUMBER | SYMBOL | '(' expr ')'

``/`` and a space (multiplication) share the lowest precedence and associate
to the left, ``^`` binds tighter. ``m^3/(kg s^2)`` is therefore
``m^3 / (kg * s^2)`` while ``kg m/s^2`` is ``(kg * m) / s^2``.
"""

import math
import re
from collections.abc import Callable, Mapping
from pathlib import Path

import yaml
from loguru import logger

from tabulous.units.definitions import UNIT_LAMBDAS, UNIT_MULTIPLIERS
from tabulous.utils.exceptions import UnitError

_SPACES_AROUND_OPERATOR = re.compile(r"\s*([/^])\s*")
_WHITESPACE_RUN = re.compile(r"\s+")
_NUMBER = re.compile(r"[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def _normalise(unit: str) -> str:
    unit = _SPACES_AROUND_OPERATOR.sub(r"\1", unit.strip())
    return _WHITESPACE_RUN.sub(" ", unit)


def _closing_paren(expr: str, start: int) -> int:
    """Return the index of the parenthesis that closes ``expr[start]``."""
    depth = 0
    for i in range(start, len(expr)):
        if expr[i] == "(":
            depth += 1
        elif expr[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


class UnitConverter:
    """Convert values between table units and internal (SI) units.

    Each instance owns its registries, so datasets that need different unit
    definitions can be postprocessed side by side.

    Parameters
    ----------
    multipliers : Mapping[str, float] | None, optional
        Unit multipliers added to (or replacing) the built-in ones.
    lambdas : Mapping[str, Callable[[float, bool], float]] | None, optional
        Non-linear conversions added to (or replacing) the built-in ones.
    replace : bool, optional
        If True, the given registries are used instead of the built-in
        ones rather than merged over them. Default False.
    """

    def __init__(
        self,
        multipliers: Mapping[str, float] | None = None,
        lambdas: Mapping[str, Callable[[float, bool], float]] | None = None,
        *,
        replace: bool = False,
    ) -> None:
        self.multipliers: dict[str, float] = {} if replace else dict(UNIT_MULTIPLIERS)
        self.lambdas: dict[str, Callable[[float, bool], float]] = (
            {} if replace else dict(UNIT_LAMBDAS)
        )
        if multipliers:
            self.multipliers.update(multipliers)
        if lambdas:
            self.lambdas.update(lambdas)
        self._parsed: dict[str, float] = {}

    @classmethod
    def from_yaml(cls, path: Path) -> "UnitConverter":
        """Create a converter with multiplier overrides read from a YAML file.

        The file must hold a mapping of unit symbol to multiplier. A multiplier
        may itself be a unit expression, which is resolved against the
        built-in registry.

        Parameters
        ----------
        path : Path
            Path to the YAML overrides file

        Returns
        -------
        UnitConverter
            Converter with the overrides applied

        Raises
        ------
        UnitError
            If the file does not hold a mapping or a multiplier is invalid
        """
        with Path(path).open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise UnitError(f"Unit overrides file {path} must contain a mapping")

        base = cls()
        overrides: dict[str, float] = {}
        for symbol, value in data.items():
            if isinstance(value, int | float) and not isinstance(value, bool):
                overrides[str(symbol)] = float(value)
            elif isinstance(value, str):
                overrides[str(symbol)] = base.get_multiplier(value)
            else:
                raise UnitError(
                    f"Invalid multiplier for unit {symbol!r} in {path}: {value!r}"
                )
        logger.debug(f"Loaded {len(overrides)} unit overrides from {path}")
        return cls(overrides)

    def convert(
        self,
        x: float,
        unit: str,
        to_internal: bool = True,
        allow_parse: bool = True,
        assert_on_error: bool = True,
    ) -> float:
        """Convert ``x`` from ``unit`` to internal units, or back.

        Parameters
        ----------
        x : float
            Value to convert
        unit : str
            Unit symbol or compound unit expression. An empty unit returns
            ``x`` unchanged.
        to_internal : bool, optional
            Convert from ``unit`` to internal units if True (default),
            otherwise from internal units to ``unit``.
        allow_parse : bool, optional
            Allow compound unit expressions. Default True.
        assert_on_error : bool, optional
            Raise on an unknown unit if True (default), otherwise return NaN.

        Returns
        -------
        float
            The converted value, or NaN for an unknown unit when
            ``assert_on_error`` is False

        Raises
        ------
        UnitError
            If the unit cannot be resolved and ``assert_on_error`` is True
        """
        if not unit:
            return x
        multiplier = self.multipliers.get(unit)
        if multiplier is not None:
            return x * multiplier if to_internal else x / multiplier
        func = self.lambdas.get(unit)
        if func is not None:
            return func(x, to_internal)
        if not allow_parse:
            if assert_on_error:
                raise UnitError(f"Unknown unit: {unit!r}")
            return math.nan
        try:
            multiplier = self.get_multiplier(unit)
        except UnitError:
            if assert_on_error:
                raise
            return math.nan
        return x * multiplier if to_internal else x / multiplier

    def is_valid_unit(self, unit: str, allow_parse: bool = True) -> bool:
        """Return True if ``unit`` is empty or can be resolved."""
        return not math.isnan(
            self.convert(1.0, unit, True, allow_parse, assert_on_error=False)
        )

    def get_multiplier(self, unit: str) -> float:
        """Return the size of one ``unit`` in internal units.

        Parameters
        ----------
        unit : str
            Unit symbol or compound unit expression

        Returns
        -------
        float
            The multiplier

        Raises
        ------
        UnitError
            If the expression is malformed or contains an unknown symbol
        """
        multiplier = self.multipliers.get(unit)
        if multiplier is not None:
            return multiplier
        multiplier = self._parsed.get(unit)
        if multiplier is None:
            multiplier = self._parse(_normalise(unit), unit)
            self._parsed[unit] = multiplier
        return multiplier

    def _parse(self, expr: str, unit: str) -> float:
        if not expr:
            raise UnitError(f"Empty operand in unit {unit!r}")
        multiplier = self.multipliers.get(expr)
        if multiplier is not None:
            return multiplier
        if expr in self.lambdas:
            raise UnitError(f"Non-linear unit {expr!r} cannot be part of {unit!r}")

        # A fully parenthesized expression unwraps one level
        if expr[0] == "(" and _closing_paren(expr, 0) == len(expr) - 1:
            return self._parse(expr[1:-1].strip(), unit)

        split = -1
        caret = -1
        depth = 0
        for i, char in enumerate(expr):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth < 0:
                    raise UnitError(f"Unmatched ')' in unit {unit!r}")
            elif depth == 0:
                if char in "/ ":
                    split = i
                elif char == "^" and caret < 0:
                    caret = i
        if depth != 0:
            raise UnitError(f"Unmatched '(' in unit {unit!r}")

        if split >= 0:
            left = self._parse(expr[:split], unit)
            right = self._parse(expr[split + 1 :], unit)
            return left / right if expr[split] == "/" else left * right

        if caret >= 0:
            base = self._parse(expr[:caret], unit)
            exponent = self._parse_exponent(expr[caret + 1 :], unit)
            return base**exponent

        if not _NUMBER.fullmatch(expr):
            raise UnitError(f"Unknown unit symbol {expr!r} in {unit!r}")
        return float(expr)

    def _parse_exponent(self, expr: str, unit: str) -> float:
        if not expr:
            raise UnitError(f"Empty exponent in unit {unit!r}")
        if expr[0] == "(" and _closing_paren(expr, 0) == len(expr) - 1:
            # Parenthesized exponents may be fractions such as (1/2)
            inner = expr[1:-1].strip()
            if _NUMBER.fullmatch(inner):
                return float(inner)
            return UnitConverter(replace=True)._parse(_normalise(inner), unit)
        if not _NUMBER.fullmatch(expr):
            raise UnitError(f"Exponent must be a number in unit {unit!r}")
        return float(expr)
