"""Tests for the employee and project directories."""

import pytest

from payroll_engines.directory import EmployeeDirectory, ProjectDirectory
from payroll_kernel.domain.records import Employee, EmployeeStatus, Project


@pytest.fixture
def directory() -> EmployeeDirectory:
    return EmployeeDirectory([
        Employee(id="emp-1", name="Ada Lovelace"),
        Employee(id="emp-2", name="Alan Turing"),
    ])


class TestEmployeeDirectory:

    def test_mapping_lookup(self, directory):
        assert directory["emp-1"].name == "Ada Lovelace"
        assert directory.get("emp-9") is None
        assert "emp-2" in directory
        assert len(directory) == 2
        assert list(directory) == ["emp-1", "emp-2"]

    def test_get_employee(self, directory):
        assert directory.get_employee("emp-2").name == "Alan Turing"
        assert directory.get_employee("emp-9") is None

    def test_add_replaces_existing(self, directory):
        directory.add(Employee(id="emp-1", name="Augusta Ada King"))
        assert directory["emp-1"].name == "Augusta Ada King"
        assert len(directory) == 2

    def test_update_returns_new_record(self, directory):
        before = directory["emp-1"]
        updated = directory.update("emp-1", status=EmployeeStatus.INACTIVE, department="R&D")
        assert updated.status is EmployeeStatus.INACTIVE
        assert updated.department == "R&D"
        assert directory["emp-1"] is updated
        assert before.status is EmployeeStatus.ACTIVE

    def test_update_unknown_raises(self, directory):
        with pytest.raises(KeyError):
            directory.update("emp-9", name="Nobody")

    def test_update_cannot_change_id(self, directory):
        with pytest.raises(ValueError):
            directory.update("emp-1", id="emp-7")

    def test_all_in_insertion_order(self, directory):
        assert [e.id for e in directory.all()] == ["emp-1", "emp-2"]


class TestProjectDirectory:

    def test_add_and_lookup(self):
        projects = ProjectDirectory()
        projects.add(Project(id="proj-1", name="Harbor Bridge"))
        assert projects["proj-1"].name == "Harbor Bridge"
        assert projects.get("proj-2") is None
        assert [p.id for p in projects.all()] == ["proj-1"]
