"""Keyed access to the check-in item table.

Mirrors the primitives of a key-value store: get / put / update / delete on a
primary key, and ordered range queries over one partition of the table or of
a secondary index. Every write commits on its own. Storage errors roll the
transaction back and propagate; nothing here retries.
"""

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from services.checkin_service.models.keys import Index, IndexKeys, ItemKey
from services.checkin_service.models.table import TableItem
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

Item = dict[str, Any]

_INDEX_COLUMNS = {
    None: (TableItem.pk, TableItem.sk),
    Index.GSI1: (TableItem.gsi1pk, TableItem.gsi1sk),
    Index.GSI2: (TableItem.gsi2pk, TableItem.gsi2sk),
    Index.GSI3: (TableItem.gsi3pk, TableItem.gsi3sk),
}


@dataclass
class ItemUpdate:
    """A sparse change to one item.

    ``set`` overwrites attributes, ``remove`` drops them, ``add`` increments
    numeric attributes, ``map_set`` / ``map_remove`` touch single keys of a
    map attribute without rewriting the rest of it.
    """

    set: dict[str, Any] = field(default_factory=dict)
    remove: list[str] = field(default_factory=list)
    add: dict[str, int] = field(default_factory=dict)
    map_set: dict[str, dict[str, Any]] = field(default_factory=dict)
    map_remove: dict[str, list[str]] = field(default_factory=dict)
    indexes: Optional[IndexKeys] = None

    def is_empty(self) -> bool:
        return not (
            self.set
            or self.remove
            or self.add
            or self.map_set
            or self.map_remove
            or self.indexes
        )

    def apply(self, attrs: Item) -> Item:
        updated = dict(attrs)
        updated.update(self.set)
        for name in self.remove:
            updated.pop(name, None)
        for name, delta in self.add.items():
            updated[name] = (updated.get(name) or 0) + delta
        for name, entries in self.map_set.items():
            current = updated.get(name)
            merged = dict(current) if isinstance(current, dict) else {}
            merged.update(entries)
            updated[name] = merged
        for name, keys in self.map_remove.items():
            current = updated.get(name)
            if isinstance(current, dict):
                updated[name] = {k: v for k, v in current.items() if k not in keys}
        return updated


@dataclass
class Page:
    items: list[Item]
    last_key: Optional[dict[str, str]] = None


class ItemStore:
    """Primary-key and index access to :class:`TableItem` rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # -- reads -------------------------------------------------------------

    async def _get_row(
        self, key: ItemKey, for_update: bool = False
    ) -> Optional[TableItem]:
        query = (
            select(TableItem)
            .where(TableItem.pk == key.pk, TableItem.sk == key.sk)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get(self, key: ItemKey) -> Optional[Item]:
        row = await self._get_row(key)
        return row.to_item() if row else None

    def _range_query(
        self,
        partition: str,
        *,
        index: Optional[Index] = None,
        begins_with: Optional[str] = None,
        equals: Optional[str] = None,
        between: Optional[tuple[str, str]] = None,
        greater_than: Optional[str] = None,
    ):
        partition_col, sort_col = _INDEX_COLUMNS[index]
        conditions = [partition_col == partition]
        if equals is not None:
            conditions.append(sort_col == equals)
        if begins_with is not None:
            conditions.append(sort_col.startswith(begins_with, autoescape=True))
        if between is not None:
            conditions.append(sort_col.between(*between))
        if greater_than is not None:
            conditions.append(sort_col > greater_than)
        return sort_col, conditions

    async def query(
        self,
        partition: str,
        *,
        index: Optional[Index] = None,
        begins_with: Optional[str] = None,
        equals: Optional[str] = None,
        between: Optional[tuple[str, str]] = None,
        greater_than: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Item]:
        """Items of one partition, ordered by sort key."""
        sort_col, conditions = self._range_query(
            partition,
            index=index,
            begins_with=begins_with,
            equals=equals,
            between=between,
            greater_than=greater_than,
        )
        ordering = [sort_col, TableItem.pk, TableItem.sk]
        if descending:
            ordering = [col.desc() for col in ordering]
        query = (
            select(TableItem)
            .where(*conditions)
            .order_by(*ordering)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [row.to_item() for row in result.scalars().all()]

    async def query_page(
        self,
        partition: str,
        *,
        index: Optional[Index] = None,
        begins_with: Optional[str] = None,
        limit: int,
        start_after: Optional[dict[str, str]] = None,
    ) -> Page:
        """Ascending page of one partition, resumable from ``start_after``."""
        sort_col, conditions = self._range_query(
            partition, index=index, begins_with=begins_with
        )
        if start_after:
            sort_value = start_after["sort"]
            conditions.append(
                or_(
                    sort_col > sort_value,
                    and_(sort_col == sort_value, TableItem.pk > start_after["pk"]),
                    and_(
                        sort_col == sort_value,
                        TableItem.pk == start_after["pk"],
                        TableItem.sk > start_after["sk"],
                    ),
                )
            )
        query = (
            select(TableItem)
            .where(*conditions)
            .order_by(sort_col, TableItem.pk, TableItem.sk)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        rows = result.scalars().all()

        last_key = None
        if len(rows) == limit:
            last = rows[-1]
            last_key = {
                "sort": getattr(last, sort_col.key),
                "pk": last.pk,
                "sk": last.sk,
            }
        return Page(items=[row.to_item() for row in rows], last_key=last_key)

    async def count(
        self,
        partition: str,
        *,
        index: Optional[Index] = None,
        begins_with: Optional[str] = None,
    ) -> int:
        _, conditions = self._range_query(
            partition, index=index, begins_with=begins_with
        )
        result = await self.db.execute(
            select(func.count()).select_from(TableItem).where(*conditions)
        )
        return result.scalar_one()

    async def scan(self, entity_type: str, limit: Optional[int] = None) -> list[Item]:
        """Full-table read filtered on the type discriminator."""
        query = (
            select(TableItem)
            .where(TableItem.t == entity_type)
            .order_by(TableItem.sk.desc(), TableItem.pk)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [row.to_item() for row in result.scalars().all()]

    # -- writes ------------------------------------------------------------

    async def put(
        self,
        key: ItemKey,
        entity_type: str,
        attrs: Item,
        indexes: Optional[IndexKeys] = None,
    ) -> Item:
        """Create or fully replace one item."""
        indexes = indexes or IndexKeys()
        stored = {k: v for k, v in attrs.items() if k not in ("pk", "sk", "t")}
        row = TableItem(
            pk=key.pk, sk=key.sk, t=entity_type, attrs=stored, **indexes.as_columns()
        )
        try:
            row = await self.db.merge(row)
            item = row.to_item()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return item

    async def update(self, key: ItemKey, change: ItemUpdate) -> Optional[Item]:
        """Apply a sparse change. Returns ``None`` when the item does not exist."""
        return await self.update_with(key, lambda _item: change)

    async def update_with(
        self, key: ItemKey, build: Callable[[Item], Optional[ItemUpdate]]
    ) -> Optional[Item]:
        """Read-modify-write of one item under a row lock.

        ``build`` receives the current item and returns the change to apply
        (or ``None`` for no change). Exceptions raised by ``build`` abort the
        write and propagate.
        """
        try:
            row = await self._get_row(key, for_update=True)
            if row is None:
                await self.db.rollback()
                return None

            current = row.to_item()
            change = build(current)
            if change is None or change.is_empty():
                await self.db.rollback()
                return current

            row.attrs = change.apply(row.attrs or {})
            if change.indexes:
                for column, value in change.indexes.as_columns().items():
                    if value is not None:
                        setattr(row, column, value)
            item = row.to_item()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return item

    async def delete(self, key: ItemKey) -> bool:
        try:
            result = await self.db.execute(
                delete(TableItem).where(TableItem.pk == key.pk, TableItem.sk == key.sk)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount > 0


def encode_cursor(last_key: Optional[dict[str, str]]) -> Optional[str]:
    """Opaque, URL-safe form of a page's ``last_key``."""
    if not last_key:
        return None
    raw = json.dumps(last_key, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode()


def decode_cursor(cursor: Optional[str]) -> Optional[dict[str, str]]:
    if not cursor:
        return None
    try:
        value = json.loads(base64.urlsafe_b64decode(cursor.encode()))
    except ValueError as exc:
        raise ValueError("Malformed pagination cursor") from exc
    if not isinstance(value, dict) or not {"sort", "pk", "sk"} <= value.keys():
        raise ValueError("Malformed pagination cursor")
    if not all(isinstance(value[k], str) for k in ("sort", "pk", "sk")):
        raise ValueError("Malformed pagination cursor")
    return value
