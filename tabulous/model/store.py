"""Finalized, read-only output of table postprocessing."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from tabulous.model.define import FieldType, TableFormat

EMPTY_MAPPING: Mapping = MappingProxyType({})


def _empty() -> Any:
    # Python 3.11 dataclasses reject an unhashable mappingproxy as a default
    return field(default_factory=lambda: EMPTY_MAPPING)


def freeze(value: Any) -> Any:
    """Recursively convert dicts to read-only mappings and lists to tuples.

    Parameters
    ----------
    value : Any
        A value built during postprocessing.

    Returns
    -------
    Any
        An equivalent value that cannot be mutated through any reference.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class TableStore:
    """Postprocessed tables for one dataset.

    Every container is a :class:`types.MappingProxyType` or a tuple, so the
    store is safe to share between threads and cannot be changed after it
    is built. Use :class:`tabulous.core.access.TableAccess` for typed reads.

    Attributes
    ----------
    tables : Mapping[str, Any]
        DB-style tables map field name to a tuple with one value per row,
        including the implicit ``name`` field when rows are named.
        ENUM_X_ENUM tables are a tuple of row tuples, ``[row][column]``.
    enumerations : Mapping[str, int]
        Global enumeration space, entity name to row index.
    enumeration_dicts : Mapping[str, Mapping[str, int]]
        Per table (and per predefined enumeration) name to row index.
    enumeration_arrays : Mapping[str, tuple[str, ...]]
        Per table (and per predefined enumeration) row index to name.
    enumeration_owners : Mapping[str, str]
        Entity name to the enumeration that defines it.
    table_formats : Mapping[str, TableFormat]
        Source format of each processed table.
    table_n_rows : Mapping[str, int]
        Row count per DB-style or ENUMERATION table, after mods.
    entity_prefixes : Mapping[str, str]
        Row name prefix per table ("" if none).
    field_types : Mapping[str, Mapping[str, FieldType]]
        Declared type of each field of each DB-style table.
    wiki_lookup : Mapping[str, str]
        Entity name (or lookup key) to localized wiki title.
    precisions : Mapping[str, Mapping[str, tuple[int, ...]]]
        Significant digits per row for the FLOAT fields of DB-style tables.
    grid_axes : Mapping[str, tuple[str, str]]
        Row and column enumeration names of each ENUM_X_ENUM table.
    """

    tables: Mapping[str, Any] = _empty()
    enumerations: Mapping[str, int] = _empty()
    enumeration_dicts: Mapping[str, Mapping[str, int]] = _empty()
    enumeration_arrays: Mapping[str, tuple[str, ...]] = _empty()
    enumeration_owners: Mapping[str, str] = _empty()
    table_formats: Mapping[str, TableFormat] = _empty()
    table_n_rows: Mapping[str, int] = _empty()
    entity_prefixes: Mapping[str, str] = _empty()
    field_types: Mapping[str, Mapping[str, FieldType]] = _empty()
    wiki_lookup: Mapping[str, str] = _empty()
    precisions: Mapping[str, Mapping[str, tuple[int, ...]]] = _empty()
    grid_axes: Mapping[str, tuple[str, str]] = _empty()

    @classmethod
    def build(cls, **containers: Any) -> "TableStore":
        """Create a store from mutable containers, freezing each of them."""
        return cls(**{name: freeze(value) for name, value in containers.items()})
