"""Request bodies for the employee routes."""

from pydantic import BaseModel, Field

from employee_registry.employees.models import EmployeeCreate, EmployeeUpdate


class EmployeesCreateRequest(BaseModel):
    employees: list[EmployeeCreate] = Field(min_length=1)


class EmployeesUpdateRequest(BaseModel):
    employees: list[EmployeeUpdate] = Field(min_length=1)


class DeleteEmployeesRequest(BaseModel):
    ids: list[str] = Field(min_length=1)
