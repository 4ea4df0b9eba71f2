"""Document store gateway.

Each resource kind keeps its records in its own collection of the
``documents`` table. Records cross this boundary as plain JSON dicts.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fhirserver.errors import ConflictError, NotFoundError, StoreError
from fhirserver.models.document import Document

logger = logging.getLogger(__name__)


class DocumentRepository:
    """CRUD operations on one collection of the document store."""

    def __init__(self, db: AsyncSession, collection: str):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
            collection: Name of the collection, e.g. 'enrollmentrequests'.
        """
        self.db = db
        self.collection = collection

    async def list(self, limit: int) -> list[dict]:
        """Return up to ``limit`` records in insertion order."""
        query = (
            select(Document.data)
            .where(Document.collection == self.collection)
            .order_by(Document.id)
            .limit(limit)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e
        return list(result.scalars().all())

    async def find(self, resource_id: str) -> dict:
        """Get a single record by id.

        Raises:
            NotFoundError: If no record has this id.
            StoreError: On any other persistence failure.
        """
        query = select(Document.data).where(
            Document.collection == self.collection,
            Document.id == resource_id,
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e

        data = result.scalar_one_or_none()
        if data is None:
            raise NotFoundError()
        return data

    async def insert(self, record: dict) -> dict:
        """Persist a new record under its ``id``.

        Raises:
            ConflictError: If the id is already taken.
            StoreError: On any other persistence failure.
        """
        statement = insert(Document).values(
            collection=self.collection,
            id=record["id"],
            data=record,
        )
        try:
            await self.db.execute(statement)
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(f"duplicate id {record['id']} in {self.collection}") from e
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e
        return record

    async def replace(self, resource_id: str, record: dict) -> dict:
        """Overwrite the whole stored document.

        Raises:
            NotFoundError: If no record has this id.
            StoreError: On any other persistence failure.
        """
        statement = (
            update(Document)
            .where(
                Document.collection == self.collection,
                Document.id == resource_id,
            )
            .values(data=record)
        )
        try:
            result = await self.db.execute(statement)
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e

        if result.rowcount == 0:
            raise NotFoundError()
        return record

    async def remove(self, resource_id: str) -> None:
        """Delete a record.

        Raises:
            NotFoundError: If no record has this id.
            StoreError: On any other persistence failure.
        """
        statement = delete(Document).where(
            Document.collection == self.collection,
            Document.id == resource_id,
        )
        try:
            result = await self.db.execute(statement)
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e

        if result.rowcount == 0:
            raise NotFoundError()

    async def iterate(self, query: Select) -> AsyncIterator[dict]:
        """Yield the records selected by a compiled search query."""
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._store_error(e) from e

        for document in result.scalars():
            yield document.data

    async def _store_error(self, error: SQLAlchemyError) -> StoreError:
        """Roll back the failed session and wrap the driver error."""
        logger.warning("Document store error on %s: %s", self.collection, error)
        await self.db.rollback()
        return StoreError(str(error))
