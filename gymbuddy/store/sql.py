"""
SQLAlchemy-backed directory store.

Documents are rows of the ``documents`` table keyed by (collection, doc_id)
with their fields in a JSON column. Timestamps inside document data are
encoded as ``{"$timestamp": "<iso-8601>"}`` and decoded back to aware
datetimes on read. Filtering and ordering happen in Python after a
collection scan.

Change notification is in-process: subscribers see writes made through the
same store instance.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gymbuddy.models.document import DocumentRow
from gymbuddy.store.base import DirectoryStore, utc_now
from gymbuddy.store.documents import DocumentSnapshot
from gymbuddy.store.errors import AlreadyExists, StoreUnavailable
from gymbuddy.store.rules import AccessPolicy

logger = logging.getLogger(__name__)

_TIMESTAMP_KEY = "$timestamp"


def _aware(value: datetime) -> datetime:
    # SQLite drops the offset; everything the store writes is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_TIMESTAMP_KEY: _aware(value).isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_TIMESTAMP_KEY}:
            return _aware(datetime.fromisoformat(value[_TIMESTAMP_KEY]))
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _to_snapshot(row: DocumentRow) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=row.doc_id,
        collection=row.collection,
        data=_decode(row.data),
        create_time=_aware(row.create_time),
        update_time=_aware(row.update_time),
    )


class SqlDirectoryStore(DirectoryStore):
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utc_now,
        policy: AccessPolicy | None = None,
    ):
        super().__init__(clock=clock, policy=policy)
        self._session_maker = session_maker

    async def _fetch(self, collection: str, doc_id: str) -> DocumentSnapshot:
        try:
            async with self._session_maker() as session:
                row = await session.get(DocumentRow, (collection, doc_id))
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e), path=f"{collection}/{doc_id}") from e

        if row is None:
            return DocumentSnapshot(id=doc_id, collection=collection)
        return _to_snapshot(row)

    async def _scan(self, collection: str) -> list[DocumentSnapshot]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(DocumentRow).where(DocumentRow.collection == collection)
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e), path=collection) from e

        return [_to_snapshot(row) for row in rows]

    async def _write(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        create_time: datetime,
        update_time: datetime,
        *,
        create: bool,
    ) -> None:
        row = DocumentRow(
            collection=collection,
            doc_id=doc_id,
            data=_encode(data),
            create_time=create_time,
            update_time=update_time,
        )
        path = f"{collection}/{doc_id}"
        try:
            async with self._session_maker() as session:
                if create:
                    session.add(row)
                else:
                    await session.merge(row)
                await session.commit()
        except IntegrityError as e:
            # Another writer inserted the same key first
            raise AlreadyExists("Document already exists", path=path) from e
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e), path=path) from e
