"""
Employee and project directories (``payroll_engines.directory``).

Keyed lookups the costing engine reads.  Both directories are read-only
``Mapping`` views for consumers; writes go through ``add``/``update``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import replace
from typing import Any

from payroll_kernel.domain.records import Employee, Project
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.directory")


class EmployeeDirectory(Mapping[str, Employee]):
    """Employees by id."""

    def __init__(self, employees: list[Employee] | None = None) -> None:
        self._employees: dict[str, Employee] = {}
        for employee in employees or ():
            self.add(employee)

    def add(self, employee: Employee) -> Employee:
        """Insert or replace ``employee``."""
        replaced = employee.id in self._employees
        self._employees[employee.id] = employee
        logger.debug(
            "employee_added",
            extra={"employee_id": employee.id, "replaced": replaced},
        )
        return employee

    def update(self, employee_id: str, **changes: Any) -> Employee:
        """
        Replace the employee with a copy carrying ``changes``.

        Raises:
            KeyError: if no employee has ``employee_id``.
            ValueError: if ``changes`` would change the id.
        """
        current = self._employees[employee_id]
        if "id" in changes and changes["id"] != employee_id:
            raise ValueError(f"Cannot change employee id {employee_id!r}")
        updated = replace(current, **changes)
        self._employees[employee_id] = updated
        logger.info(
            "employee_updated",
            extra={"employee_id": employee_id, "fields": sorted(changes)},
        )
        return updated

    def get_employee(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)

    def all(self) -> tuple[Employee, ...]:
        return tuple(self._employees.values())

    def __getitem__(self, employee_id: str) -> Employee:
        return self._employees[employee_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._employees)

    def __len__(self) -> int:
        return len(self._employees)


class ProjectDirectory(Mapping[str, Project]):
    """Projects by id."""

    def __init__(self, projects: list[Project] | None = None) -> None:
        self._projects: dict[str, Project] = {}
        for project in projects or ():
            self.add(project)

    def add(self, project: Project) -> Project:
        self._projects[project.id] = project
        return project

    def all(self) -> tuple[Project, ...]:
        return tuple(self._projects.values())

    def __getitem__(self, project_id: str) -> Project:
        return self._projects[project_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._projects)

    def __len__(self) -> int:
        return len(self._projects)
