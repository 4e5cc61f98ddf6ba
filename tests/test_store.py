"""
Tests for the in-memory resource store.
"""
import threading

import pytest
import pandas as pd
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from resource_os.data.records import Employee, Project, Assignment
from resource_os.data.store import (
    ResourceStore,
    StoreError,
    RecordNotFoundError,
    InvalidRecordError,
)


@pytest.fixture
def store():
    return ResourceStore.from_records(
        employees=[
            Employee(id="e1", name="Kim", employee_type="billable"),
            Employee(id="e2", name="Lee", employee_type="internal"),
        ],
        projects=[
            Project(id="p1", name="Portal", is_tentative=False),
            Project(id="p2", name="Pilot", is_tentative=True),
        ],
        assignments=[
            Assignment(id="a1", employee_id="e1", project_id="p1",
                       start_date=pd.Timestamp("2025-01-01"), end_date=pd.Timestamp("2025-01-31")),
            Assignment(id="a2", employee_id="e2", project_id="p2",
                       start_date=pd.Timestamp("2025-02-01"), end_date=pd.Timestamp("2025-02-28")),
        ],
    )


class TestReads:
    """Tests for listing and snapshots."""

    def test_lists(self, store):
        assert list(store.list_employees()["id"]) == ["e1", "e2"]
        assert list(store.list_projects()["id"]) == ["p1", "p2"]
        assert list(store.list_assignments()["id"]) == ["a1", "a2"]

    def test_typed_columns(self, store):
        assignments = store.list_assignments()
        assert assignments["non_bill"].dtype == bool
        assert assignments["start_date"].iloc[0] == pd.Timestamp("2025-01-01")

    def test_get_returns_record(self, store):
        employee = store.get("employees", "e1")
        assert isinstance(employee, Employee)
        assert employee.name == "Kim"

    def test_get_unknown_raises(self, store):
        with pytest.raises(RecordNotFoundError):
            store.get("projects", "nope")

    def test_snapshot_is_stable(self, store):
        """A snapshot taken earlier is unaffected by later commands."""
        before = store.snapshot()
        store.add_employee("Park")

        assert len(before.employees) == 2
        assert len(store.snapshot().employees) == 3
        assert store.snapshot().version == before.version + 1

    def test_snapshot_frames_are_copies(self, store):
        """Mutating a snapshot frame leaves the store and other snapshots untouched."""
        earlier = store.snapshot()
        snap = store.snapshot()
        snap.assignments.loc[0, "non_bill"] = True
        snap.employees.loc[0, "name"] = "Changed"

        assert not store.list_assignments()["non_bill"].any()
        assert not earlier.assignments["non_bill"].any()
        assert store.list_employees()["name"].iloc[0] == "Kim"
        assert not store.snapshot().assignments["non_bill"].any()

    def test_from_data_dir_missing_files(self, tmp_path):
        store = ResourceStore.from_data_dir(tmp_path)
        snap = store.snapshot()

        assert len(snap.employees) == 0
        assert len(snap.assignments) == 0


class TestEmployees:
    """Tests for employee commands."""

    def test_add(self, store):
        employee = store.add_employee("Park", employee_type="outsourcing")

        assert employee.employee_type == "outsourcing"
        assert employee.id in set(store.list_employees()["id"])

    def test_add_rejects_unknown_type(self, store):
        with pytest.raises(InvalidRecordError):
            store.add_employee("Park", employee_type="contractor")

    def test_add_requires_name(self, store):
        with pytest.raises(InvalidRecordError):
            store.add_employee("")

    def test_update_type(self, store):
        updated = store.update_employee_type("e2", "billable")

        assert updated.employee_type == "billable"
        assert (store.list_employees()["employee_type"] == "billable").sum() == 2

    def test_update_unknown_field(self, store):
        with pytest.raises(InvalidRecordError):
            store.update_employee("e1", salary=100)

    def test_remove_cascades_assignments(self, store):
        store.remove_employee("e1")

        assert list(store.list_employees()["id"]) == ["e2"]
        assert list(store.list_assignments()["id"]) == ["a2"]

    def test_remove_unknown(self, store):
        with pytest.raises(RecordNotFoundError):
            store.remove_employee("nope")


class TestProjects:
    """Tests for project commands."""

    def test_add_defaults_tentative(self, store):
        project = store.add_project("New bid")

        assert project.is_tentative is True
        assert project.start_date is not None

    def test_update_confirms(self, store):
        store.update_project("p2", is_tentative=False)

        projects = store.list_projects().set_index("id")
        assert bool(projects.loc["p2", "is_tentative"]) is False

    def test_delete_cascades_assignments(self, store):
        store.delete_project("p1")

        assert list(store.list_projects()["id"]) == ["p2"]
        assert list(store.list_assignments()["id"]) == ["a2"]


class TestAssignments:
    """Tests for assignment commands."""

    def test_add(self, store):
        assignment = store.add_assignment("e1", "p2", "2025-03-01", "2025-03-31", non_bill=True)

        row = store.list_assignments().set_index("id").loc[assignment.id]
        assert row["start_date"] == pd.Timestamp("2025-03-01")
        assert bool(row["non_bill"]) is True

    def test_add_rejects_reversed_dates(self, store):
        with pytest.raises(InvalidRecordError):
            store.add_assignment("e1", "p1", "2025-03-31", "2025-03-01")

    def test_add_rejects_missing_dates(self, store):
        with pytest.raises(InvalidRecordError):
            store.add_assignment("e1", "p1", None, "2025-03-01")

    def test_add_rejects_unknown_refs(self, store):
        with pytest.raises(RecordNotFoundError):
            store.add_assignment("ghost", "p1", "2025-03-01", "2025-03-31")
        with pytest.raises(RecordNotFoundError):
            store.add_assignment("e1", "ghost", "2025-03-01", "2025-03-31")

    def test_update_dates_validated(self, store):
        with pytest.raises(InvalidRecordError):
            store.update_assignment("a1", end_date=pd.Timestamp("2024-12-31"))

        updated = store.update_assignment("a1", end_date=pd.Timestamp("2025-02-15"))
        assert updated.end_date == pd.Timestamp("2025-02-15")

    def test_delete(self, store):
        store.delete_assignment("a1")
        assert list(store.list_assignments()["id"]) == ["a2"]

    def test_bulk_delete_ignores_unknown(self, store):
        removed = store.delete_assignments(["a1", "a2", "ghost"])

        assert removed == 2
        assert len(store.list_assignments()) == 0

    def test_bulk_delete_nothing_matched_keeps_version(self, store):
        version = store.version
        assert store.delete_assignments(["ghost"]) == 0
        assert store.version == version

    def test_errors_share_base_class(self):
        assert issubclass(RecordNotFoundError, StoreError)
        assert issubclass(InvalidRecordError, StoreError)


class TestSubscriptions:
    """Tests for change notification."""

    def test_subscriber_gets_fresh_snapshot(self, store):
        seen = []
        store.subscribe(lambda snap: seen.append((snap.version, len(snap.assignments))))

        store.delete_assignment("a1")
        store.add_assignment("e1", "p1", "2025-05-01", "2025-05-31")

        assert seen == [(1, 1), (2, 2)]

    def test_subscriber_can_read_from_another_thread(self, store):
        """Subscribers run after the lock is released, so other threads can read."""
        finished = []

        def read_elsewhere(snap):
            worker = threading.Thread(target=lambda: finished.append(len(store.list_assignments())))
            worker.start()
            worker.join(timeout=2)
            finished.append(worker.is_alive())

        store.subscribe(read_elsewhere)
        store.add_assignment("e1", "p2", "2025-03-01", "2025-03-31")

        assert finished == [3, False]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda snap: seen.append(snap.version))

        store.add_employee("Park")
        unsubscribe()
        store.add_employee("Choi")

        assert seen == [1]

    def test_failing_subscriber_does_not_block_others(self, store, caplog):
        seen = []

        def broken(snap):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(lambda snap: seen.append(snap.version))

        store.add_employee("Park")

        assert seen == [1]
        assert len(store.list_employees()) == 3
        assert "subscriber" in caplog.text

    def test_failed_command_does_not_notify(self, store):
        seen = []
        store.subscribe(lambda snap: seen.append(snap.version))

        with pytest.raises(RecordNotFoundError):
            store.delete_assignment("ghost")

        assert seen == []


def test_from_frames_types_columns():
    store = ResourceStore.from_frames(
        employees=pd.DataFrame({"id": [1], "name": ["Kim"], "employee_type": ["Billable"]}),
        projects=pd.DataFrame({"id": [2], "name": ["Portal"], "is_tentative": ["false"]}),
        assignments=pd.DataFrame({
            "id": [3], "employee_id": [1], "project_id": [2],
            "start_date": ["2025-01-01"], "end_date": ["2025-01-31"], "non_bill": [0],
        }),
    )
    snap = store.snapshot()

    assert snap.employees["employee_type"].iloc[0] == "billable"
    assert bool(snap.projects["is_tentative"].iloc[0]) is False
    assert snap.assignments["employee_id"].iloc[0] == "1"
    assert "task" in snap.assignments.columns
