import os

import pytest

from services.assignments import CustomerAssignmentService


@pytest.fixture
def assignments(file_store):
    return CustomerAssignmentService(file_store)


def test_second_create_for_same_customer_fails(assignments):
    assert assignments.create("c1", "s1") is True
    assert assignments.create("c1", "s2") is False
    assert assignments.get_by_customer("c1").salesperson_id == "s1"
    assert len(assignments.list()) == 1


def test_lookups_and_count(assignments):
    assignments.create("c1", "s1")
    assignments.create("c2", "s1")
    assignments.create("c3", "s2")
    assert {a.customer_id for a in assignments.get_by_salesperson("s1")} == {"c1", "c2"}
    assert assignments.count_by_salesperson("s1") == 2
    assert assignments.count_by_salesperson("nobody") == 0
    assert assignments.get_by_customer("missing") is None


def test_transfer_moves_customer(assignments):
    assignments.create("c1", "s1")
    before = assignments.get_by_customer("c1").assigned_at
    assert assignments.transfer("c1", "s2") is True
    moved = assignments.get_by_customer("c1")
    assert moved.salesperson_id == "s2"
    assert moved.assigned_at >= before


def test_transfer_unknown_customer_leaves_file_unchanged(assignments, file_store):
    assignments.create("c1", "s1")
    path = file_store.path_for("customer_assignments")
    with open(path, "rb") as fh:
        before = fh.read()
    mtime = os.path.getmtime(path)

    assert assignments.transfer("ghost", "s2") is False

    with open(path, "rb") as fh:
        assert fh.read() == before
    assert os.path.getmtime(path) == mtime


def test_remove(assignments):
    assignments.create("c1", "s1")
    assert assignments.remove("c1") is True
    assert assignments.get_by_customer("c1") is None
    assert assignments.remove("c1") is False
