# nl2sql_api/schema.py
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

SCHEMA_CACHE_SECONDS = 5 * 60
SYSTEM_SCHEMAS = ("mysql", "information_schema", "performance_schema", "sys")

_EXCLUDED = ", ".join(f"'{s}'" for s in SYSTEM_SCHEMAS)

COLUMNS_SQL = f"""
    SELECT TABLE_SCHEMA AS table_schema, TABLE_NAME AS table_name,
           COLUMN_NAME AS column_name, DATA_TYPE AS data_type
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_SCHEMA NOT IN ({_EXCLUDED})
    ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION
"""

ROW_ESTIMATES_SQL = f"""
    SELECT TABLE_SCHEMA AS table_schema, TABLE_NAME AS table_name,
           TABLE_ROWS AS est_rows
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA NOT IN ({_EXCLUDED})
"""


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str


@dataclass(frozen=True)
class TableInfo:
    schema: str
    name: str
    columns: tuple[ColumnInfo, ...]
    est_rows: Optional[int] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def render(self) -> str:
        meta = f" (est_rows ~{self.est_rows})" if self.est_rows is not None else ""
        cols = ", ".join(f"{c.name} ({c.data_type})" for c in self.columns)
        return f"{self.qualified_name}{meta}: {cols}"


@dataclass(frozen=True)
class SchemaSnapshot:
    """
    Immutable description of every user table, used to ground the prompt.
    Example line:
      "shop.orders (est_rows ~1200): order_id (int), customer_id (int), status (varchar)"
    """
    tables: tuple[TableInfo, ...] = ()

    def render(self) -> str:
        return "\n".join(t.render() for t in self.tables)

    def table_names(self) -> list[str]:
        return [t.qualified_name for t in self.tables]

    def __str__(self) -> str:
        return self.render()


def _text(value) -> str:
    # information_schema values come back as bytes on some server versions
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


def build_snapshot(
    column_rows: Iterable[Mapping],
    count_rows: Iterable[Mapping],
) -> SchemaSnapshot:
    """
    Join the column listing with the row-estimate listing by qualified name.
    Table order follows the column listing.
    """
    estimates: dict[str, Optional[int]] = {}
    for row in count_rows:
        key = f"{_text(row['table_schema'])}.{_text(row['table_name'])}"
        est = row.get("est_rows")
        estimates[key] = int(est) if est is not None else None

    grouped: dict[tuple[str, str], list[ColumnInfo]] = {}
    for row in column_rows:
        key = (_text(row["table_schema"]), _text(row["table_name"]))
        grouped.setdefault(key, []).append(
            ColumnInfo(_text(row["column_name"]), _text(row["data_type"]))
        )

    tables = tuple(
        TableInfo(
            schema=schema,
            name=name,
            columns=tuple(cols),
            est_rows=estimates.get(f"{schema}.{name}"),
        )
        for (schema, name), cols in grouped.items()
    )
    return SchemaSnapshot(tables)


class SchemaCache:
    """
    Holds the last SchemaSnapshot for a fixed time window.

    loader: coroutine function producing a fresh snapshot.
    clock:  monotonic time source in seconds (injected in tests).

    Concurrent misses may both call the loader; the last one wins.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[SchemaSnapshot]],
        ttl_seconds: float = SCHEMA_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[SchemaSnapshot] = None
        self._loaded_at = 0.0

    async def get(self) -> SchemaSnapshot:
        now = self._clock()
        if self._snapshot is not None and now - self._loaded_at < self._ttl:
            return self._snapshot

        snapshot = await self._loader()
        self._snapshot = snapshot
        self._loaded_at = now
        logger.info(f"Schema snapshot refreshed: {len(snapshot.tables)} tables")
        return snapshot

    def invalidate(self) -> None:
        self._snapshot = None
        self._loaded_at = 0.0

    def age(self) -> Optional[float]:
        if self._snapshot is None:
            return None
        return self._clock() - self._loaded_at
