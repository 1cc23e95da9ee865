"""Shared base for the course entity repositories."""

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from motor.motor_asyncio import AsyncIOMotorClientSession
from pydantic import BaseModel
from pydantic_mongo import AsyncAbstractRepository
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from src.common.errors import UnknownDBServiceError
from src.common.identifiers import new_entity_id, parse_entity_id

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Sort = list[tuple[str, int]]


@asynccontextmanager
async def translate_db_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise driver failures as UnknownDBServiceError after logging them."""
    try:
        yield
    except PyMongoError as e:
        logger.exception("Database call failed during %s", operation)
        raise UnknownDBServiceError(cause=e) from e


class CourseRepository(AsyncAbstractRepository[T]):
    """Session-aware helpers on top of pydantic_mongo's repository.

    Every method accepts the session yielded by `MongoDBClient.transaction()`
    so one engine operation can span several collections atomically.
    """

    @staticmethod
    def _session_kwargs(session: AsyncIOMotorClientSession | None) -> dict[str, Any]:
        return {"session": session} if session is not None else {}

    async def get_by_id(
        self,
        entity_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> T | None:
        """Get a document by its opaque id, or None if absent or malformed."""
        object_id = parse_entity_id(entity_id)
        if object_id is None:
            return None
        async with translate_db_errors("get_by_id"):
            data = await self.get_collection().find_one(
                {"_id": object_id}, **self._session_kwargs(session)
            )
        return None if data is None else self.to_model(data)

    async def find_many(
        self,
        query: dict[str, Any],
        sort: Sort | None = None,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[T]:
        """Find all documents matching `query`, optionally sorted."""
        async with translate_db_errors("find_many"):
            cursor = self.get_collection().find(query, **self._session_kwargs(session))
            if sort:
                cursor = cursor.sort(sort)
            rows = await cursor.to_list(length=None)
        return [self.to_model(row) for row in rows]

    async def find_first(
        self,
        query: dict[str, Any],
        sort: Sort | None = None,
        session: AsyncIOMotorClientSession | None = None,
    ) -> T | None:
        """Find the first document matching `query` under `sort`."""
        rows = await self.find_many(query, sort=sort, session=session)
        return rows[0] if rows else None

    async def count(
        self,
        query: dict[str, Any],
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        """Count documents matching `query`."""
        async with translate_db_errors("count"):
            return await self.get_collection().count_documents(
                query, **self._session_kwargs(session)
            )

    async def insert(
        self,
        doc: T,
        session: AsyncIOMotorClientSession | None = None,
    ) -> T:
        """Insert one document, assigning a fresh id when it has none."""
        inserted = await self.insert_many([doc], session=session)
        return inserted[0]

    async def insert_many(
        self,
        docs: Iterable[T],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[T]:
        """Insert documents in input order, assigning fresh ids."""
        docs = list(docs)
        if not docs:
            return []
        for doc in docs:
            if doc.id is None:  # type: ignore[attr-defined]
                doc.id = new_entity_id()  # type: ignore[attr-defined]
        async with translate_db_errors("insert_many"):
            await self.get_collection().insert_many(
                [self.to_document(doc) for doc in docs],
                ordered=True,
                **self._session_kwargs(session),
            )
        return docs

    async def update_fields(
        self,
        entity_id: str,
        fields: dict[str, Any],
        session: AsyncIOMotorClientSession | None = None,
    ) -> T | None:
        """Set `fields` on one document and return it as updated.

        Returns:
            The updated document, or None if no document has that id.
        """
        object_id = parse_entity_id(entity_id)
        if object_id is None:
            return None
        async with translate_db_errors("update_fields"):
            data = await self.get_collection().find_one_and_update(
                {"_id": object_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
                **self._session_kwargs(session),
            )
        return None if data is None else self.to_model(data)

    async def delete_where(
        self,
        query: dict[str, Any],
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        """Delete every document matching `query`; returns the count removed."""
        async with translate_db_errors("delete_where"):
            result = await self.get_collection().delete_many(
                query, **self._session_kwargs(session)
            )
        return result.deleted_count

    async def delete_by_ids(
        self,
        entity_ids: Iterable[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        """Delete documents by opaque id."""
        object_ids = [oid for oid in map(parse_entity_id, entity_ids) if oid is not None]
        if not object_ids:
            return 0
        return await self.delete_where({"_id": {"$in": object_ids}}, session=session)
