import pytest
from sqlalchemy import text

from memory_hole.db.repositories import attachments as attachment_repo
from memory_hole.db.repositories import groups as group_repo
from memory_hole.db.repositories import issues as issue_repo
from memory_hole.db.repositories import tags as tag_repo
from memory_hole.db.repositories import users as user_repo

pytestmark = pytest.mark.integration


@pytest.fixture
def member(db):
    group = group_repo.create_group(db, "network-ops")
    user = user_repo.insert_user_with_belongs_to(
        db, {"screenname": "alice", "pass": "hash", "belongs-to": [group["group-id"]]}
    )
    return user["user-id"], group["group-id"]


def _tags(db, issue_id):
    issue = issue_repo.support_issue(db, issue_id)
    return set(issue["tags"])


def test_member_creates_tagged_issue(db, member):
    user_id, group_id = member
    issue_id = issue_repo.create_issue_with_tags(
        db, {"title": "VPN drops", "group-id": group_id, "user-id": user_id, "tags": ["network", "urgent"]}
    )
    assert isinstance(issue_id, int)
    issue = issue_repo.support_issue(db, issue_id)
    assert set(issue["tags"]) == {"network", "urgent"}
    assert issue["group-name"] == "network-ops"
    assert issue["created-by"] == "alice"
    assert issue["files"] == []
    assert issue["views"] == 1


def test_outsider_creates_nothing(db, member):
    _, group_id = member
    outsider = user_repo.insert_user_with_belongs_to(db, {"screenname": "mallory"})
    before = db.execute(text("SELECT count(*) FROM support_issues")).scalar_one()
    result = issue_repo.create_issue_with_tags(
        db, {"title": "x", "group-id": group_id, "user-id": outsider["user-id"], "tags": ["spam"]}
    )
    assert result is None
    assert db.execute(text("SELECT count(*) FROM support_issues")).scalar_one() == before
    assert "spam" not in {row["tag"] for row in tag_repo.list_tags(db)}


def test_reset_tags_to_exact_set(db, member):
    user_id, group_id = member
    issue_id = issue_repo.create_issue_with_tags(
        db, {"title": "t", "group-id": group_id, "user-id": user_id, "tags": ["x", "y"]}
    )
    tag_repo.reset_issue_tags(db, issue_id, ["y", "z"])
    assert _tags(db, issue_id) == {"y", "z"}


def test_issue_with_files_dedupes_join_rows(db, member):
    user_id, group_id = member
    issue_id = issue_repo.create_issue_with_tags(
        db, {"title": "t", "group-id": group_id, "user-id": user_id, "tags": ["a", "b"]}
    )
    for name in ("one.txt", "two, three.txt"):
        attachment_repo.attach_file(
            db, {"user-id": user_id, "support-issue-id": issue_id, "name": name, "type": "text/plain", "data": b"x"}
        )
    issue = issue_repo.support_issue(db, issue_id)
    assert sorted(issue["tags"]) == ["a", "b"]
    assert sorted(name for _, name in issue["files"]) == ["one.txt", "two, three.txt"]
    assert bytes(attachment_repo.load_file(db, user_id, issue_id, "one.txt")["data"]) == b"x"


def test_delete_issue_with_dependents(db, member):
    user_id, group_id = member
    issue_id = issue_repo.create_issue_with_tags(
        db, {"title": "t", "group-id": group_id, "user-id": user_id, "tags": ["a"]}
    )
    attachment_repo.attach_file(
        db, {"user-id": user_id, "support-issue-id": issue_id, "name": "f", "data": b""}
    )
    assert issue_repo.delete_issue(db, issue_id) == 1
    assert issue_repo.support_issue(db, issue_id) is None


def test_listings_are_scoped_to_membership(db, member):
    user_id, group_id = member
    issue_id = issue_repo.create_issue_with_tags(
        db, {"title": "t", "group-id": group_id, "user-id": user_id, "tags": ["printer"]}
    )
    stranger = user_repo.insert_user_with_belongs_to(db, {"screenname": "zed"})
    assert [row["support-issue-id"] for row in issue_repo.recent_issues(db, user_id)] == [issue_id]
    assert [row["support-issue-id"] for row in issue_repo.issues_by_tag(db, user_id, "printer")] == [issue_id]
    assert issue_repo.recent_issues(db, stranger["user-id"]) == []
    counts = {row["tag"]: row["tag-count"] for row in tag_repo.tags_with_counts(db)}
    assert counts["printer"] == 1


def test_login_time_is_stored_with_millisecond_precision(db, member):
    user_id, _ = member
    assert user_repo.record_login(db, user_id) == 1
    last_login = user_repo.get_user(db, "alice")["last-login"]
    assert last_login is not None
    assert last_login.microsecond % 1000 == 0
