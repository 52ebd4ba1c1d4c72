"""Record operations for the employee collection.

Creates, updates, logically deletes and reads employee documents. Listing
requests go through the query builder; mutations stamp createdAt/updatedAt and
the isDeleted flag here. Driver errors are translated into the typed errors in
``exceptions`` and logged where they are detected.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import UpdateOne
from pymongo.errors import (
    BulkWriteError,
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
)

from .exceptions import (
    ConflictError,
    EmployeeNotFoundError,
    EmployeeRegistryError,
    InvalidArgumentError,
    StorageUnavailableError,
)
from .models import (
    BulkCreateResult,
    BulkUpdateResult,
    CreateResult,
    DeleteResult,
    Employee,
    EmployeeCreate,
    EmployeePage,
    EmployeeQuery,
    EmployeeUpdate,
    InsertOutcome,
    Pagination,
    UpdateResult,
    WriteFailure,
)
from .query_builder import MAX_BSON_INT, build_query, total_pages

logger = logging.getLogger(__name__)

DUPLICATE_KEY_CODE = 11000


def _utcnow() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON stores.

    Two writes to the same record within one millisecond share a timestamp.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def parse_object_id(value: str) -> ObjectId:
    """Convert a 24-hex identifier into an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidArgumentError(f"Invalid employee id: {value!r}")
    return ObjectId(value)


def _duplicate_message(error: Mapping[str, Any] | None) -> str:
    key_value = (error or {}).get("keyValue") or {}
    if "email" in key_value:
        return f"Email already registered: {key_value['email']}"
    return "Duplicate value for a unique field"


class EmployeeRepository:
    """Employee record operations bound to one collection handle."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    @contextmanager
    def _storage_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (ConnectionFailure, ExecutionTimeout) as e:
            logger.error(f"MongoDB unavailable during {operation}: {e}", exc_info=True)
            raise StorageUnavailableError(
                f"Storage unavailable during {operation}"
            ) from e
        except PyMongoError as e:
            logger.error(f"MongoDB error during {operation}: {e}", exc_info=True)
            raise EmployeeRegistryError(f"Storage error during {operation}") from e

    # ========================================================================
    # Create
    # ========================================================================

    @staticmethod
    def _stamp_new(payload: EmployeeCreate, now: datetime) -> dict[str, Any]:
        document = payload.to_document()
        document["_id"] = ObjectId()
        document["createdAt"] = now
        document["updatedAt"] = now
        document["isDeleted"] = False
        return document

    async def create_one(self, payload: EmployeeCreate) -> CreateResult:
        document = self._stamp_new(payload, _utcnow())

        with self._storage_errors("create"):
            try:
                result = await self.collection.insert_one(document)
            except DuplicateKeyError as e:
                message = _duplicate_message(e.details)
                logger.warning(f"Create rejected: {message}")
                raise ConflictError(message) from e

        logger.info(f"Created employee {result.inserted_id}")
        return CreateResult(inserted_id=str(result.inserted_id))

    async def create_many(self, payloads: Sequence[EmployeeCreate]) -> BulkCreateResult:
        """
        Insert all payloads in one unordered insert_many.

        A payload that fails (e.g. duplicate email) does not stop the others;
        every input index gets its own outcome.
        """
        if not payloads:
            raise InvalidArgumentError("At least one employee is required")

        now = _utcnow()
        documents = [self._stamp_new(payload, now) for payload in payloads]
        write_errors: dict[int, Mapping[str, Any]] = {}

        with self._storage_errors("bulk create"):
            try:
                await self.collection.insert_many(documents, ordered=False)
            except BulkWriteError as e:
                for error in e.details.get("writeErrors", []):
                    write_errors[error["index"]] = error
                if e.details.get("writeConcernErrors"):
                    logger.warning(
                        f"Bulk create write concern errors: {e.details['writeConcernErrors']}"
                    )

        outcomes = []
        inserted_ids = []
        for index, document in enumerate(documents):
            error = write_errors.get(index)
            if error is None:
                inserted_ids.append(str(document["_id"]))
                outcomes.append(
                    InsertOutcome(index=index, success=True, id=str(document["_id"]))
                )
                continue

            code = error.get("code")
            message = (
                _duplicate_message(error)
                if code == DUPLICATE_KEY_CODE
                else error.get("errmsg", "Write failed")
            )
            outcomes.append(
                InsertOutcome(index=index, success=False, error=message, code=code)
            )

        result = BulkCreateResult(inserted_ids=inserted_ids, outcomes=outcomes)
        if result.failed_count:
            logger.warning(
                f"Bulk create: {result.inserted_count} inserted, "
                f"{result.failed_count} failed"
            )
        else:
            logger.info(f"Bulk create: {result.inserted_count} inserted")
        return result

    # ========================================================================
    # Update
    # ========================================================================

    @staticmethod
    def _set_document(payload: EmployeeUpdate, now: datetime) -> dict[str, Any]:
        return {"$set": {**payload.changes(), "updatedAt": now}}

    async def update_one(self, payload: EmployeeUpdate) -> UpdateResult:
        """
        Apply a partial update to one record.

        Raises:
            EmployeeNotFoundError: no record has this identifier
            ConflictError: the new email belongs to another record
        """
        object_id = parse_object_id(payload.id)
        update = self._set_document(payload, _utcnow())

        with self._storage_errors("update"):
            try:
                result = await self.collection.update_one({"_id": object_id}, update)
            except DuplicateKeyError as e:
                message = _duplicate_message(e.details)
                logger.warning(f"Update of {object_id} rejected: {message}")
                raise ConflictError(message) from e

        if result.matched_count == 0:
            logger.warning(f"Update target not found: {object_id}")
            raise EmployeeNotFoundError(f"Employee with id {payload.id} not found")

        return UpdateResult(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    async def update_many(self, payloads: Sequence[EmployeeUpdate]) -> BulkUpdateResult:
        """
        Apply independent partial updates in one unordered bulk_write.

        Identifiers that match nothing are not errors; they only lower
        matched_count. Entries with malformed identifiers or write errors are
        listed in ``failures`` while the rest are still applied.
        """
        if not payloads:
            raise InvalidArgumentError("At least one employee update is required")

        now = _utcnow()
        failures: list[WriteFailure] = []
        operations: list[UpdateOne] = []
        positions: list[int] = []  # operation index -> input index

        for index, payload in enumerate(payloads):
            try:
                object_id = parse_object_id(payload.id)
            except InvalidArgumentError as e:
                failures.append(WriteFailure(index=index, id=payload.id, error=str(e)))
                continue
            operations.append(
                UpdateOne({"_id": object_id}, self._set_document(payload, now))
            )
            positions.append(index)

        matched = modified = 0
        if operations:
            with self._storage_errors("bulk update"):
                try:
                    result = await self.collection.bulk_write(operations, ordered=False)
                    matched, modified = result.matched_count, result.modified_count
                except BulkWriteError as e:
                    matched = e.details.get("nMatched", 0)
                    modified = e.details.get("nModified", 0)
                    for error in e.details.get("writeErrors", []):
                        index = positions[error["index"]]
                        code = error.get("code")
                        failures.append(
                            WriteFailure(
                                index=index,
                                id=payloads[index].id,
                                error=(
                                    _duplicate_message(error)
                                    if code == DUPLICATE_KEY_CODE
                                    else error.get("errmsg", "Write failed")
                                ),
                                code=code,
                            )
                        )

        failures.sort(key=lambda failure: failure.index)
        if failures:
            logger.warning(f"Bulk update: {len(failures)} of {len(payloads)} entries failed")
        logger.info(
            f"Bulk update: {len(payloads)} requested, {matched} matched, {modified} modified"
        )
        return BulkUpdateResult(
            requested_count=len(payloads),
            matched_count=matched,
            modified_count=modified,
            failures=failures,
        )

    # ========================================================================
    # Logical delete
    # ========================================================================

    async def delete_many(self, ids: Sequence[str]) -> DeleteResult:
        """
        Flag records as deleted and refresh updatedAt.

        Already deleted records match again and, since updatedAt changes,
        count as deleted too.

        Raises:
            InvalidArgumentError: empty list or malformed identifier
            EmployeeNotFoundError: none of the identifiers exist
        """
        if not ids:
            logger.warning("Delete rejected: empty id list")
            raise InvalidArgumentError("At least one employee id is required")

        object_ids = [parse_object_id(value) for value in ids]

        with self._storage_errors("delete"):
            result = await self.collection.update_many(
                {"_id": {"$in": object_ids}},
                {"$set": {"isDeleted": True, "updatedAt": _utcnow()}},
            )

        if result.matched_count == 0:
            logger.warning(f"Delete matched no employees for {len(ids)} id(s)")
            raise EmployeeNotFoundError("No employees found for the supplied ids")

        logger.info(f"Logically deleted {result.modified_count} employee(s)")
        return DeleteResult(
            matched_count=result.matched_count,
            deleted_count=result.modified_count,
        )

    # ========================================================================
    # Reads
    # ========================================================================

    async def find_by_id(self, employee_id: str) -> Employee:
        object_id = parse_object_id(employee_id)

        with self._storage_errors("find by id"):
            document = await self.collection.find_one(
                {"_id": object_id, "isDeleted": False}
            )

        if document is None:
            raise EmployeeNotFoundError(f"Employee with id {employee_id} not found")
        return Employee.from_document(document)

    async def find_all(
        self,
        query: EmployeeQuery,
        forced: Mapping[str, Any] | None = None,
    ) -> EmployeePage:
        """
        List non-deleted employees matching the query.

        The page read and the total count run concurrently; a write landing
        between them can make ``total`` drift from the page contents.
        """
        spec = build_query(query, forced)

        with self._storage_errors("list"):
            if spec.skip > MAX_BSON_INT:
                # Window starts beyond any offset BSON can encode
                documents = []
                total = await self.collection.count_documents(spec.filter)
            else:
                cursor = (
                    self.collection.find(spec.filter)
                    .sort(spec.sort)
                    .skip(spec.skip)
                    .limit(spec.limit)
                )
                documents, total = await asyncio.gather(
                    cursor.to_list(length=spec.limit),
                    self.collection.count_documents(spec.filter),
                )

        return EmployeePage(
            data=[Employee.from_document(document) for document in documents],
            pagination=Pagination(
                total=total,
                page=spec.page,
                limit=spec.limit,
                pages=total_pages(total, spec.limit),
            ),
        )

    async def find_by_department(
        self, department: str, query: EmployeeQuery
    ) -> EmployeePage:
        """Listing restricted to an exact, case-sensitive department."""
        return await self.find_all(query, forced={"department": department})

    async def find_by_position(self, position: str, query: EmployeeQuery) -> EmployeePage:
        """Listing restricted to an exact, case-sensitive position."""
        return await self.find_all(query, forced={"position": position})

    async def advanced_search(self, query: EmployeeQuery) -> EmployeePage:
        return await self.find_all(query)
