"""Table input readers - parse table source files into intermediate tables.

This module provides the input layer of the processing pipeline. Only the
tab-delimited format exists today; other formats only need a new Reader.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from tabulous.model.intermediate import IntermediateTable
from tabulous.utils.exceptions import FileTypeError

TSV_SUFFIXES = (".tsv", ".txt")


class Reader(ABC):
    """Abstract base for table source parsers.

    Follows strategy pattern - allows switching between input formats
    without changing the rest of the pipeline.
    """

    @abstractmethod
    def read(self, path: Path) -> IntermediateTable | None:
        """Parse a table source file.

        Parameters
        ----------
        path : Path
            Path to the table source file

        Returns
        -------
        IntermediateTable | None
            Preprocessed table, or None if the source asks not to be parsed
        """
        ...


class TSVReader(Reader):
    """Tab-delimited table reader."""

    def read(self, path: Path) -> IntermediateTable | None:
        """Parse a tab-delimited table file.

        Parameters
        ----------
        path : Path
            Path to the ``.tsv`` file

        Returns
        -------
        IntermediateTable | None
            Preprocessed table, or None if the file has a DONT_PARSE directive
        """
        from tabulous.parsers.tsv_parser import parse_table_file

        return parse_table_file(path)


def create_reader(path: Path) -> Reader:
    """Create appropriate reader based on file extension.

    Parameters
    ----------
    path : Path
        Path to table source file

    Returns
    -------
    Reader
        Appropriate reader instance

    Raises
    ------
    FileTypeError
        If the file extension is not supported
    """
    if Path(path).suffix.lower() in TSV_SUFFIXES:
        return TSVReader()
    raise FileTypeError(f"Unsupported table file type: {path}")
