"""Per-file string interning for preprocessed table cells."""


class StringInterner:
    """Deduplicate cell text into small integer indexes.

    Index 0 is reserved for the empty string, so a preprocessed value of 0
    always means "no text". One interner belongs to one source file and is
    never shared between files.

    Examples
    --------
    ::

        interner = StringInterner()
        i = interner.intern("PLANET_EARTH")
        assert interner.intern("PLANET_EARTH") == i
        assert interner.lookup(i) == "PLANET_EARTH"
    """

    def __init__(self) -> None:
        self._strings: list[str] = [""]
        self._indexes: dict[str, int] = {"": 0}

    def intern(self, text: str) -> int:
        """Return the index of ``text``, adding it if it is new."""
        index = self._indexes.get(text)
        if index is None:
            index = len(self._strings)
            self._strings.append(text)
            self._indexes[text] = index
        return index

    def lookup(self, index: int) -> str:
        """Return the text for an index.

        Raises
        ------
        IndexError
            If the index was never returned by :meth:`intern`.
        """
        if index < 0:
            raise IndexError(f"Invalid interned string index {index}")
        return self._strings[index]

    @property
    def strings(self) -> tuple[str, ...]:
        """Inverse lookup table, index to text."""
        return tuple(self._strings)

    def __len__(self) -> int:
        return len(self._strings)

    def __contains__(self, text: object) -> bool:
        return text in self._indexes
