"""Tests for StringInterner."""

import pytest

from tabulous.model.interner import StringInterner


def test_empty_string_is_index_zero() -> None:
    """Test index 0 is reserved for the empty string."""
    interner = StringInterner()
    assert interner.intern("") == 0
    assert interner.lookup(0) == ""
    assert len(interner) == 1


def test_intern_deduplicates() -> None:
    """Test equal text yields equal indexes in insertion order."""
    interner = StringInterner()
    earth = interner.intern("EARTH")
    mars = interner.intern("MARS")
    assert (earth, mars) == (1, 2)
    assert interner.intern("EARTH") == earth
    assert interner.strings == ("", "EARTH", "MARS")
    assert "MARS" in interner
    assert "VENUS" not in interner


@pytest.mark.parametrize("index", [-1, 5])
def test_lookup_invalid_index(index: int) -> None:
    """Test unknown indexes raise IndexError."""
    with pytest.raises(IndexError):
        StringInterner().lookup(index)
