"""Significant digit counting for FLOAT table cells."""

from tabulous.utils.exceptions import TableSchemaError

UNKNOWN_PRECISION = -1

_DIGITS = "0123456789"


def get_precision(text: str | None) -> int:
    """Count the significant digits of a preprocessed FLOAT cell.

    Counting starts at the first non-zero digit. All digits after the decimal
    point count, including trailing zeros. Trailing zeros of the integer part
    count only if a decimal point follows them. Counting stops at the
    exponent marker. Anything after a space (an inline unit) is ignored.

    Parameters
    ----------
    text : str | None
        Preprocessed FLOAT text, e.g. ``"1.000e3"``, ``"~5"`` or ``"?"``

    Returns
    -------
    int
        Number of significant digits, 0 for text with the ``~`` marker, or
        -1 (unknown) for empty, missing, ``?`` and ``-?`` cells

    Raises
    ------
    TableSchemaError
        If the text contains a character that cannot be part of a float

    Examples
    --------
    ::

        get_precision("1100")    # 2
        get_precision("1000.")   # 4
        get_precision("0.0010")  # 2
    """
    if text is None:
        return UNKNOWN_PRECISION
    text = text.split(" ", 1)[0]
    if text in ("", "?", "-?"):
        return UNKNOWN_PRECISION
    if text.startswith("~"):
        return 0

    count = 0
    pending_zeros = 0
    significant = False
    decimal = False
    for char in text:
        if char in _DIGITS:
            if char == "0" and not significant:
                continue
            significant = True
            if decimal:
                count += 1
            elif char == "0":
                pending_zeros += 1
            else:
                count += pending_zeros + 1
                pending_zeros = 0
        elif char == ".":
            decimal = True
            count += pending_zeros
            pending_zeros = 0
        elif char in "eE":
            break
        elif char not in "-+":
            raise TableSchemaError(f"Malformed float: {text!r}")
    return count
