"""Table processing context - holds the state of one dataset.

Similar to request context in web frameworks, this holds the settings and
the postprocessed tables of one dataset. Independent datasets use
independent contexts, so nothing global is shared between them.
"""

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from loguru import logger

from tabulous.core.access import TableAccess
from tabulous.core.postprocessor import TablePostprocessor
from tabulous.core.reader import TSV_SUFFIXES, Reader, create_reader
from tabulous.model.intermediate import IntermediateTable
from tabulous.model.store import TableStore
from tabulous.units.converter import UnitConverter
from tabulous.utils.settings import TabulousSettings, get_context, has_context


class TableContext:
    """Table processing context - holds state for the processing pipeline.

    Parameters
    ----------
    settings : TabulousSettings | None, optional
        Settings to use. Defaults to the initialized global settings, or to
        default settings if none were initialized.

    Attributes
    ----------
    settings : TabulousSettings
        Defaults for postprocessing options and missing field values
    store : TableStore | None
        Postprocessed tables of the last successful run
    """

    def __init__(self, settings: TabulousSettings | None = None) -> None:
        if settings is None:
            settings = get_context() if has_context() else TabulousSettings()
        self.settings = settings
        self.store: TableStore | None = None
        self._access: TableAccess | None = None

    def clear(self) -> None:
        """Discard the postprocessed tables."""
        self.store = None
        self._access = None

    @property
    def access(self) -> TableAccess:
        """Typed read API over the postprocessed tables.

        Raises
        ------
        RuntimeError
            If no tables have been postprocessed
        """
        if self.store is None:
            raise RuntimeError("No tables postprocessed")
        if self._access is None:
            self._access = TableAccess(
                self.store,
                missing_bool=self.settings.missing_bool,
                missing_int=self.settings.missing_int,
                missing_float=self.settings.missing_float,
                missing_string=self.settings.missing_string,
            )
        return self._access

    @staticmethod
    def expand_paths(paths: Iterable[str | Path]) -> list[Path]:
        """Expand directories into their table files, sorted by name."""
        expanded: list[Path] = []
        for path in map(Path, paths):
            if path.is_dir():
                expanded.extend(
                    sorted(p for p in path.iterdir() if p.suffix.lower() in TSV_SUFFIXES)
                )
            else:
                expanded.append(path)
        return expanded

    def read_tables(
        self, paths: Iterable[str | Path], reader: Reader | None = None
    ) -> list[IntermediateTable]:
        """Preprocess table files, skipping files marked DONT_PARSE.

        Parameters
        ----------
        paths : Iterable[str | Path]
            Table files or directories of table files, in processing order
        reader : Reader | None, optional
            Explicit reader. If None, chosen from each file's extension.

        Returns
        -------
        list[IntermediateTable]
            Preprocessed tables in file order
        """
        tables: list[IntermediateTable] = []
        for path in self.expand_paths(paths):
            table = (reader or create_reader(path)).read(path)
            if table is not None:
                tables.append(table)
        return tables

    def create_unit_converter(
        self,
        unit_multipliers: Mapping[str, float] | None = None,
        unit_lambdas: Mapping[str, Callable[[float, bool], float]] | None = None,
    ) -> UnitConverter:
        """Create the unit converter for a run.

        Multipliers from the settings' unit overrides file are applied first,
        then ``unit_multipliers``.
        """
        multipliers: dict[str, float] = {}
        if self.settings.unit_overrides_file is not None:
            multipliers.update(
                UnitConverter.from_yaml(self.settings.unit_overrides_file).multipliers
            )
        if unit_multipliers:
            multipliers.update(unit_multipliers)
        return UnitConverter(multipliers, unit_lambdas)

    def postprocess(
        self,
        paths: Iterable[str | Path],
        predefined_enumerations: Mapping[str, Mapping[str, int]] | None = None,
        enable_wiki: bool | None = None,
        enable_precisions: bool | None = None,
        unit_multipliers: Mapping[str, float] | None = None,
        unit_lambdas: Mapping[str, Callable[[float, bool], float]] | None = None,
    ) -> TableStore:
        """Preprocess and postprocess a dataset.

        Any previously postprocessed tables are discarded first; if the run
        fails the context holds no tables.

        Parameters
        ----------
        paths : Iterable[str | Path]
            Table files or directories of table files, in processing order
        predefined_enumerations : Mapping[str, Mapping[str, int]] | None, optional
            Enumerations defined outside the tables
        enable_wiki : bool | None, optional
            Fill the wiki lookup. Defaults to the settings.
        enable_precisions : bool | None, optional
            Record FLOAT precisions. Defaults to the settings.
        unit_multipliers : Mapping[str, float] | None, optional
            Extra or replacement unit multipliers
        unit_lambdas : Mapping[str, Callable[[float, bool], float]] | None, optional
            Extra or replacement non-linear unit conversions

        Returns
        -------
        TableStore
            Read-only postprocessed tables
        """
        self.clear()
        if enable_wiki is None:
            enable_wiki = self.settings.enable_wiki
        if enable_precisions is None:
            enable_precisions = self.settings.enable_precisions

        units = self.create_unit_converter(unit_multipliers, unit_lambdas)
        tables = self.read_tables(paths)
        logger.info(f"Preprocessed {len(tables)} table files")
        postprocessor = TablePostprocessor(
            units,
            enable_wiki=enable_wiki,
            enable_precisions=enable_precisions,
            wiki_field=self.settings.wiki_field,
        )
        self.store = postprocessor.postprocess(tables, predefined_enumerations)
        return self.store
