import pytest
from sqlalchemy.exc import IntegrityError

from memory_hole.db.repositories import groups as group_repo
from memory_hole.db.repositories import users as user_repo

pytestmark = pytest.mark.integration


@pytest.fixture
def groups(db):
    return {name: group_repo.create_group(db, name)["group-id"] for name in ("A", "B", "C")}


def test_reconcile_memberships(db, groups):
    user_repo.insert_user_with_belongs_to(db, {"screenname": "alice", "belongs-to": [groups["A"], groups["B"]]})
    result = user_repo.update_or_insert_user_with_belongs_to(
        db, {"screenname": "alice", "belongs-to": [groups["B"], groups["C"]]}
    )
    assert sorted(result["belongs-to"]) == sorted([groups["B"], groups["C"]])
    assert {g["group-name"] for g in group_repo.groups_for_user(db, result["user-id"])} == {"B", "C"}


def test_new_user_gets_requested_groups(db, groups):
    result = user_repo.update_or_insert_user_with_belongs_to(
        db, {"screenname": "bob", "pass": "hash", "member-of": [groups["A"]]}
    )
    assert result["belongs-to"] == [groups["A"]]
    assert user_repo.user_credentials(db, "bob")["pass"] == "hash"


def test_user_without_groups_has_empty_membership(db):
    user = user_repo.insert_user_with_belongs_to(db, {"screenname": "carol"})
    assert user["belongs-to"] == []


def test_screennames_are_case_insensitive(db):
    user_repo.insert_user_with_belongs_to(db, {"screenname": "Dave"})
    assert user_repo.get_user(db, "dave")["screenname"] == "Dave"
    with pytest.raises(IntegrityError):
        user_repo.insert_user_with_belongs_to(db, {"screenname": "DAVE"})
    assert [u["screenname"] for u in user_repo.list_users(db)].count("Dave") == 1


def test_update_user_info_upserts(db):
    inserted = user_repo.update_user_info(db, {"screenname": "erin", "pass": "hash"})
    updated = user_repo.update_user_info(db, {"screenname": "erin", "admin": True})
    assert updated["user-id"] == inserted["user-id"]
    assert updated["admin"] is True
    assert user_repo.user_credentials(db, "erin")["pass"] == "hash"
