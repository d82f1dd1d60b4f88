"""
Entity mapping.

Entities are plain dataclasses. Each one is registered against a table
with the ``@table`` decorator (or ``register()``), which records the table
name and primary key in a static registry. Nothing is discovered by
inspecting attributes at query time.

Usage:
    @table("users", key="id")
    @dataclass
    class User:
        id: int | None = None
        name: str = ""
        created_at: str | None = field(default=None, metadata={"computed": True})
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, TypeVar

from banana.exceptions import MappingError

T = TypeVar("T")


@dataclass(frozen=True)
class TableMapping:
    """Declared mapping between an entity class and a table."""

    entity: type
    table: str
    key: str
    auto_key: bool
    columns: tuple[str, ...]
    computed: frozenset[str]

    @property
    def writable_columns(self) -> tuple[str, ...]:
        """Columns written by INSERT and UPDATE (auto keys and computed excluded)."""
        return tuple(
            c
            for c in self.columns
            if c not in self.computed and not (self.auto_key and c == self.key)
        )

    @property
    def update_columns(self) -> tuple[str, ...]:
        return tuple(c for c in self.writable_columns if c != self.key)

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def key_value(self, entity: Any) -> Any:
        return getattr(entity, self.key)

    def values(self, entity: Any, columns: tuple[str, ...] = None) -> dict[str, Any]:
        """Column values of an entity as a dict, for use as named parameters."""
        if not isinstance(entity, self.entity):
            raise MappingError(
                f"Expected {self.entity.__name__}, got {type(entity).__name__}"
            )
        if columns is None:
            columns = self.columns
        return {c: getattr(entity, c) for c in columns}

    def from_row(self, row: dict[str, Any]):
        """Build an entity from a dict row, ignoring undeclared columns."""
        return self.entity(**{c: row[c] for c in self.columns if c in row})


# =============================================================================
# Registry
# =============================================================================

_registry: dict[type, TableMapping] = {}


def register(cls: type, name: str, key: str = "id", auto_key: bool = True) -> TableMapping:
    """
    Register a dataclass as the entity for a table.

    Args:
        cls: Dataclass representing one row
        name: Table name
        key: Primary key column, must be one of the dataclass fields
        auto_key: True if the database generates the key on insert

    Returns:
        The registered TableMapping
    """
    if not dataclasses.is_dataclass(cls):
        raise MappingError(f"{cls.__name__} must be a dataclass to be mapped")
    if not name:
        raise MappingError(f"{cls.__name__} must declare a table name")

    fields = dataclasses.fields(cls)
    columns = tuple(f.name for f in fields)
    if key not in columns:
        raise MappingError(f"{cls.__name__} has no key field '{key}'")

    computed = frozenset(f.name for f in fields if f.metadata.get("computed"))
    if key in computed:
        raise MappingError(f"Key field '{key}' of {cls.__name__} cannot be computed")

    mapping = TableMapping(
        entity=cls,
        table=name,
        key=key,
        auto_key=auto_key,
        columns=columns,
        computed=computed,
    )
    _registry[cls] = mapping
    return mapping


def table(name: str, key: str = "id", auto_key: bool = True):
    """Class decorator form of register()."""

    def decorator(cls: type[T]) -> type[T]:
        register(cls, name, key=key, auto_key=auto_key)
        return cls

    return decorator


def mapping_for(cls: type) -> TableMapping:
    """Look up the mapping for an entity class."""
    try:
        return _registry[cls]
    except KeyError:
        raise MappingError(
            f"{cls.__name__} is not mapped to a table; decorate it with @table"
        ) from None


def is_registered(cls: type) -> bool:
    return cls in _registry
