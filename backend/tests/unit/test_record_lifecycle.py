"""
Behavioral tests against an in-memory employee collection.

Covers the end-to-end record lifecycle: what listing returns, how totals and
pages relate, and how updates, deletes and uniqueness interact.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from bson import ObjectId

from employee_registry.employees import (
    ConflictError,
    EmployeeNotFoundError,
    EmployeeQuery,
    EmployeeUpdate,
)
from employee_registry.employees import repository as repository_module


@pytest.fixture
def clock(monkeypatch):
    """Controllable replacement for the repository clock."""
    state = {"now": datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)}

    def advance(seconds=1):
        state["now"] += timedelta(seconds=seconds)
        return state["now"]

    monkeypatch.setattr(repository_module, "_utcnow", lambda: state["now"])
    return advance


@pytest_asyncio.fixture
async def staff(fake_repository, make_employee):
    """Seed a small workforce and return id by email."""
    people = [
        make_employee(name="Juan", surnames="Pérez", age=30, city="Madrid",
                      email="juan@x.com", position="Developer", department="Tech"),
        make_employee(name="Juana", surnames="López", age=45, city="Madrid",
                      email="juana@x.com", position="Lead Developer", department="Tech"),
        make_employee(name="Ana", surnames="Ruiz", age=22, city="Sevilla",
                      email="ana@x.com", position="Analyst", department="Finance"),
        make_employee(name="Luis", surnames="Martín", age=58, city="Bilbao",
                      email="luis@x.com", position="Director", department="Technology"),
        make_employee(name="Marta", surnames="Gómez", age=37, city="Madrid",
                      email="marta@x.com", position="Analyst", department="tech"),
    ]
    result = await fake_repository.create_many(people)
    return dict(zip((p.email for p in people), result.inserted_ids))


class TestListingProperties:
    @pytest.mark.asyncio
    async def test_every_returned_record_satisfies_all_conditions(
        self, fake_repository, staff
    ):
        page = await fake_repository.find_all(
            EmployeeQuery(city="madrid", min_age=30, max_age=45)
        )

        assert {e.email for e in page.data} == {"juan@x.com", "juana@x.com", "marta@x.com"}
        for employee in page.data:
            assert "madrid" in employee.city.lower()
            assert 30 <= employee.age <= 45
            assert employee.is_deleted is False

    @pytest.mark.asyncio
    async def test_total_is_independent_of_window(self, fake_repository, staff):
        first = await fake_repository.find_all(EmployeeQuery(limit=2, page=1))
        third = await fake_repository.find_all(EmployeeQuery(limit=2, page=3))

        assert first.pagination.total == third.pagination.total == 5
        assert first.pagination.pages == third.pagination.pages == 3
        assert len(first.data) == 2
        assert len(third.data) == 1

    @pytest.mark.asyncio
    async def test_page_beyond_end_is_empty(self, fake_repository, staff):
        page = await fake_repository.find_all(EmployeeQuery(limit=2, page=10))

        assert page.data == []
        assert page.pagination.total == 5
        assert page.pagination.pages == 3

    @pytest.mark.asyncio
    async def test_pages_walk_without_overlap(self, fake_repository, staff):
        seen = []
        for number in (1, 2, 3):
            page = await fake_repository.find_all(EmployeeQuery(limit=2, page=number))
            seen.extend(e.id for e in page.data)

        assert sorted(seen) == sorted(staff.values())
        assert len(seen) == len(set(seen))

    @pytest.mark.asyncio
    async def test_sort_descending_by_age(self, fake_repository, staff):
        page = await fake_repository.find_all(
            EmployeeQuery(sort_by="age", sort_order="desc")
        )
        ages = [e.age for e in page.data]
        assert ages == sorted(ages, reverse=True)

    @pytest.mark.asyncio
    async def test_department_scope_is_exact(self, fake_repository, staff):
        scoped = await fake_repository.find_by_department("Tech", EmployeeQuery())
        partial = await fake_repository.find_all(EmployeeQuery(department="Tech"))

        assert {e.email for e in scoped.data} == {"juan@x.com", "juana@x.com"}
        assert {e.email for e in partial.data} == {
            "juan@x.com",
            "juana@x.com",
            "luis@x.com",
            "marta@x.com",
        }

    @pytest.mark.asyncio
    async def test_position_scope_combines_with_filters(self, fake_repository, staff):
        page = await fake_repository.find_by_position(
            "Analyst", EmployeeQuery(city="sev")
        )
        assert [e.email for e in page.data] == ["ana@x.com"]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_created_record_round_trip(self, fake_repository, make_employee):
        created = await fake_repository.create_one(make_employee())

        employee = await fake_repository.find_by_id(created.inserted_id)

        assert employee.is_deleted is False
        assert employee.created_at == employee.updated_at
        assert employee.email == "juan@x.com"

    @pytest.mark.asyncio
    async def test_update_refreshes_timestamp_only_for_supplied_fields(
        self, fake_repository, make_employee, clock
    ):
        created = await fake_repository.create_one(make_employee())
        before = await fake_repository.find_by_id(created.inserted_id)

        clock(5)
        await fake_repository.update_one(
            EmployeeUpdate(id=created.inserted_id, city="Valencia")
        )
        after = await fake_repository.find_by_id(created.inserted_id)

        assert after.updated_at > before.updated_at
        assert after.created_at == before.created_at
        assert after.city == "Valencia"
        unchanged = before.model_dump(exclude={"city", "updated_at"})
        assert after.model_dump(exclude={"city", "updated_at"}) == unchanged

    @pytest.mark.asyncio
    async def test_deleted_record_is_hidden_but_kept(
        self, fake_repository, fake_collection, make_employee
    ):
        created = await fake_repository.create_one(make_employee())

        await fake_repository.delete_many([created.inserted_id])

        with pytest.raises(EmployeeNotFoundError):
            await fake_repository.find_by_id(created.inserted_id)
        page = await fake_repository.find_all(EmployeeQuery())
        assert page.pagination.total == 0

        stored = fake_collection.documents[0]
        assert stored["isDeleted"] is True
        assert stored["email"] == "juan@x.com"
        assert stored["name"] == "Juan"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts_and_first_survives(
        self, fake_repository, make_employee
    ):
        first = await fake_repository.create_one(make_employee())

        with pytest.raises(ConflictError):
            await fake_repository.create_one(make_employee(name="Otro"))

        employee = await fake_repository.find_by_id(first.inserted_id)
        assert employee.name == "Juan"

    @pytest.mark.asyncio
    async def test_email_stays_reserved_after_delete(
        self, fake_repository, make_employee
    ):
        first = await fake_repository.create_one(make_employee())
        await fake_repository.delete_many([first.inserted_id])

        with pytest.raises(ConflictError):
            await fake_repository.create_one(make_employee())

    @pytest.mark.asyncio
    async def test_end_to_end_example(self, fake_repository, make_employee):
        created = await fake_repository.create_one(
            make_employee(name="Juan", age=30, email="juan@x.com", department="Tech")
        )
        employee = await fake_repository.find_by_id(created.inserted_id)
        assert employee.is_deleted is False

        await fake_repository.delete_many([created.inserted_id])
        with pytest.raises(EmployeeNotFoundError):
            await fake_repository.find_by_id(created.inserted_id)

        page = await fake_repository.find_by_department("Tech", EmployeeQuery())
        assert page.pagination.total == 0


class TestBulkSemantics:
    @pytest.mark.asyncio
    async def test_bulk_create_partial_success(self, fake_repository, make_employee):
        await fake_repository.create_one(make_employee(email="taken@x.com"))

        result = await fake_repository.create_many(
            [
                make_employee(email="a@x.com"),
                make_employee(email="taken@x.com"),
                make_employee(email="b@x.com"),
            ]
        )

        assert [o.success for o in result.outcomes] == [True, False, True]
        assert result.inserted_count == 2
        for inserted_id in result.inserted_ids:
            await fake_repository.find_by_id(inserted_id)

    @pytest.mark.asyncio
    async def test_bulk_update_with_missing_id(
        self, fake_repository, clock, staff
    ):
        juan, ana = staff["juan@x.com"], staff["ana@x.com"]
        before = {i: await fake_repository.find_by_id(i) for i in (juan, ana)}

        clock(10)
        result = await fake_repository.update_many(
            [
                EmployeeUpdate(id=juan, city="Toledo"),
                EmployeeUpdate(id=str(ObjectId()), city="Nowhere"),
                EmployeeUpdate(id=ana, city="Cádiz"),
            ]
        )

        assert result.matched_count == 2
        assert result.modified_count == 2
        assert result.failures == []
        for employee_id in (juan, ana):
            after = await fake_repository.find_by_id(employee_id)
            assert after.updated_at > before[employee_id].updated_at

    @pytest.mark.asyncio
    async def test_bulk_update_duplicate_email_does_not_block_others(
        self, fake_repository, staff
    ):
        result = await fake_repository.update_many(
            [
                EmployeeUpdate(id=staff["juan@x.com"], email="ana@x.com"),
                EmployeeUpdate(id=staff["luis@x.com"], age=59),
            ]
        )

        assert [f.index for f in result.failures] == [0]
        assert result.matched_count == 1
        luis = await fake_repository.find_by_id(staff["luis@x.com"])
        assert luis.age == 59


class TestDeleteCounting:
    @pytest.mark.asyncio
    async def test_fresh_delete_counts_each_record(self, fake_repository, staff):
        result = await fake_repository.delete_many(
            [staff["juan@x.com"], staff["ana@x.com"]]
        )
        assert result.matched_count == 2
        assert result.deleted_count == 2

    @pytest.mark.asyncio
    async def test_redelete_is_counted_not_an_error(
        self, fake_repository, clock, staff
    ):
        await fake_repository.delete_many([staff["juan@x.com"]])

        clock(1)
        result = await fake_repository.delete_many([staff["juan@x.com"]])

        assert result.matched_count == 1
        assert result.deleted_count == 1

    @pytest.mark.asyncio
    async def test_missing_ids_lower_the_count(self, fake_repository, staff):
        result = await fake_repository.delete_many(
            [staff["juan@x.com"], str(ObjectId())]
        )
        assert result.deleted_count == 1

    @pytest.mark.asyncio
    async def test_all_missing_is_not_found(self, fake_repository, staff):
        with pytest.raises(EmployeeNotFoundError):
            await fake_repository.delete_many([str(ObjectId()), str(ObjectId())])
