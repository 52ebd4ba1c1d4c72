"""Employee API routes."""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from employee_registry.employees import (
    EmployeePage,
    EmployeeQuery,
    EmployeeRepository,
    EmployeeCreate,
    EmployeeUpdate,
)
from employee_registry.employees.models import MIN_AGE
from employee_registry.employees.query_builder import DEFAULT_LIMIT, MAX_LIMIT
from employee_registry.storage import get_employee_collection

from .schemas import (
    DeleteEmployeesRequest,
    EmployeesCreateRequest,
    EmployeesUpdateRequest,
)

router = APIRouter(prefix="/employees", tags=["Employees"])


def get_repository() -> EmployeeRepository:
    """FastAPI dependency providing the repository for the employee collection."""
    return EmployeeRepository(get_employee_collection())


def employee_query(
    name: Optional[str] = None,
    surnames: Optional[str] = None,
    city: Optional[str] = None,
    position: Optional[str] = None,
    department: Optional[str] = None,
    min_age: Optional[int] = Query(None, alias="minAge", ge=MIN_AGE),
    max_age: Optional[int] = Query(None, alias="maxAge", ge=MIN_AGE),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> EmployeeQuery:
    return EmployeeQuery(
        name=name,
        surnames=surnames,
        city=city,
        position=position,
        department=department,
        min_age=min_age,
        max_age=max_age,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


def _page_response(page: EmployeePage) -> dict[str, Any]:
    body = page.model_dump(by_alias=True, mode="json")
    return {"success": True, "data": body["data"], "pagination": body["pagination"]}


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Create one employee."""
    result = await repository.create_one(payload)
    return {
        "success": True,
        "message": "Employee created",
        "data": result.model_dump(by_alias=True),
    }


@router.post("/create-bulk", status_code=status.HTTP_201_CREATED)
async def create_employees(
    request: EmployeesCreateRequest,
    response: Response,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Create several employees; responds 207 when only some were inserted."""
    result = await repository.create_many(request.employees)

    if result.failed_count:
        response.status_code = status.HTTP_207_MULTI_STATUS
        message = (
            f"{result.inserted_count} employee(s) created, "
            f"{result.failed_count} failed"
        )
    else:
        message = f"{result.inserted_count} employee(s) created"

    return {
        "success": result.inserted_count > 0,
        "message": message,
        "data": result.model_dump(by_alias=True),
    }


@router.put("/update-by-id")
async def update_employee(
    payload: EmployeeUpdate,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Update one employee by id."""
    result = await repository.update_one(payload)
    return {
        "success": True,
        "message": "Employee updated",
        "data": result.model_dump(by_alias=True),
    }


@router.put("/update-bulk")
async def update_employees(
    request: EmployeesUpdateRequest,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Update several employees; unknown ids are skipped."""
    result = await repository.update_many(request.employees)
    return {
        "success": not result.failures,
        "message": f"{result.modified_count} employee(s) updated",
        "data": result.model_dump(by_alias=True),
    }


@router.delete("/delete")
async def delete_employees(
    request: DeleteEmployeesRequest,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Logically delete one or more employees."""
    result = await repository.delete_many(request.ids)
    return {
        "success": True,
        "message": f"{result.deleted_count} employee(s) logically deleted",
        "data": result.model_dump(by_alias=True),
    }


@router.get("/get-by-id/{employee_id}")
async def get_employee(
    employee_id: str,
    repository: EmployeeRepository = Depends(get_repository),
):
    """Get one non-deleted employee."""
    employee = await repository.find_by_id(employee_id)
    return {"success": True, "data": employee.model_dump(by_alias=True, mode="json")}


@router.get("/get-all")
async def list_employees(
    query: EmployeeQuery = Depends(employee_query),
    repository: EmployeeRepository = Depends(get_repository),
):
    """List employees with optional filtering, sorting and pagination."""
    return _page_response(await repository.find_all(query))


@router.get("/department/{department}")
async def list_by_department(
    department: str,
    query: EmployeeQuery = Depends(employee_query),
    repository: EmployeeRepository = Depends(get_repository),
):
    """List employees of exactly this department."""
    return _page_response(await repository.find_by_department(department, query))


@router.get("/position/{position}")
async def list_by_position(
    position: str,
    query: EmployeeQuery = Depends(employee_query),
    repository: EmployeeRepository = Depends(get_repository),
):
    """List employees holding exactly this position."""
    return _page_response(await repository.find_by_position(position, query))


@router.get("/search/advanced")
async def advanced_search(
    query: EmployeeQuery = Depends(employee_query),
    repository: EmployeeRepository = Depends(get_repository),
):
    """Search combining any of the filter criteria."""
    return _page_response(await repository.advanced_search(query))
