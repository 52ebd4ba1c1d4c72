"""
Test configuration and fixtures
"""

import copy
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import BulkWriteError, DuplicateKeyError

from employee_registry.employees import EmployeeCreate, EmployeeRepository


class FakeCursor:
    """Just enough of a Motor cursor for find().sort().skip().limit().to_list()."""

    def __init__(self, documents):
        self._documents = documents
        self._skip = 0
        self._limit = 0

    def sort(self, keys):
        # Stable sorts applied from the least significant key
        for field, direction in reversed(keys):
            self._documents.sort(
                key=lambda doc: (doc.get(field) is not None, doc.get(field)),
                reverse=direction < 0,
            )
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        end = self._skip + self._limit if self._limit else None
        return [copy.deepcopy(doc) for doc in self._documents[self._skip:end]]


def _matches_condition(value, condition):
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        for operator, operand in condition.items():
            if operator == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if value is None or not re.search(operand, value, flags):
                    return False
            elif operator == "$gte" and not (value is not None and value >= operand):
                return False
            elif operator == "$lte" and not (value is not None and value <= operand):
                return False
            elif operator == "$in" and value not in operand:
                return False
        return True
    return value == condition


def matches(document, query):
    return all(_matches_condition(document.get(field), cond) for field, cond in query.items())


class FakeEmployeeCollection:
    """In-memory stand-in for the employee collection with a unique email index."""

    name = "employees"

    def __init__(self):
        self.documents = []

    def _check_unique(self, document, ignore_id=None):
        for existing in self.documents:
            if existing["_id"] != ignore_id and existing.get("email") == document.get("email"):
                return {
                    "code": 11000,
                    "errmsg": "E11000 duplicate key error",
                    "keyValue": {"email": document.get("email")},
                }
        return None

    async def insert_one(self, document):
        error = self._check_unique(document)
        if error:
            raise DuplicateKeyError(error["errmsg"], code=11000, details=error)
        self.documents.append(copy.deepcopy(document))
        return MagicMock(inserted_id=document["_id"])

    async def insert_many(self, documents, ordered=True):
        write_errors = []
        for index, document in enumerate(documents):
            error = self._check_unique(document)
            if error:
                write_errors.append({"index": index, **error})
                if ordered:
                    break
                continue
            self.documents.append(copy.deepcopy(document))
        if write_errors:
            raise BulkWriteError({"writeErrors": write_errors, "writeConcernErrors": []})
        return MagicMock(inserted_ids=[doc["_id"] for doc in documents])

    def _apply_set(self, document, update):
        changes = update["$set"]
        if "email" in changes:
            error = self._check_unique(changes, ignore_id=document["_id"])
            if error:
                return error, False
        modified = any(document.get(key) != value for key, value in changes.items())
        document.update(copy.deepcopy(changes))
        return None, modified

    async def update_one(self, query, update):
        for document in self.documents:
            if matches(document, query):
                error, modified = self._apply_set(document, update)
                if error:
                    raise DuplicateKeyError(error["errmsg"], code=11000, details=error)
                return MagicMock(matched_count=1, modified_count=int(modified))
        return MagicMock(matched_count=0, modified_count=0)

    async def update_many(self, query, update):
        matched = modified = 0
        for document in self.documents:
            if matches(document, query):
                matched += 1
                _, changed = self._apply_set(document, update)
                modified += int(changed)
        return MagicMock(matched_count=matched, modified_count=modified)

    async def bulk_write(self, operations, ordered=True):
        matched = modified = 0
        write_errors = []
        for index, operation in enumerate(operations):
            for document in self.documents:
                if matches(document, operation._filter):
                    error, changed = self._apply_set(document, operation._doc)
                    if error:
                        write_errors.append({"index": index, **error})
                        break
                    matched += 1
                    modified += int(changed)
                    break
        if write_errors:
            raise BulkWriteError(
                {"writeErrors": write_errors, "nMatched": matched, "nModified": modified}
            )
        return MagicMock(matched_count=matched, modified_count=modified)

    async def find_one(self, query):
        for document in self.documents:
            if matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query):
        return FakeCursor([doc for doc in self.documents if matches(doc, query)])

    async def count_documents(self, query):
        return sum(1 for doc in self.documents if matches(doc, query))


@pytest.fixture
def mock_collection():
    """Create a mock Motor collection."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.insert_many = AsyncMock()
    collection.update_one = AsyncMock()
    collection.update_many = AsyncMock()
    collection.bulk_write = AsyncMock()
    collection.find_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def repository(mock_collection):
    """Repository bound to the mock collection."""
    return EmployeeRepository(mock_collection)


@pytest.fixture
def fake_collection():
    return FakeEmployeeCollection()


@pytest.fixture
def fake_repository(fake_collection):
    """Repository bound to the in-memory collection."""
    return EmployeeRepository(fake_collection)


@pytest.fixture
def sample_employee_data():
    """Sample employee payload"""
    return {
        "name": "Juan",
        "surnames": "Pérez García",
        "age": 30,
        "city": "Madrid",
        "email": "juan@x.com",
        "position": "Senior Developer",
        "department": "Tech",
    }


@pytest.fixture
def make_employee(sample_employee_data):
    """Factory for EmployeeCreate payloads with overrides."""

    def _make(**overrides):
        return EmployeeCreate(**{**sample_employee_data, **overrides})

    return _make
