"""
Support issue repository functions.

Creation and update are gated by group membership; the gate runs in the
same transaction as the writes it protects. A denied operation writes
nothing and returns None.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Mapping, Optional, TypeVar, Union

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db import schemas
from memory_hole.db.database import transaction
from memory_hole.db.permissions import user_can_access_group, user_can_access_issue
from memory_hole.db.repositories.tags import reset_issue_tags
from memory_hole.utils.collections import distinct

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _with_distinct_tags(issue: dict) -> dict:
    return {**issue, "tags": distinct(issue.get("tags") or [])}


def support_issue(db: Session, support_issue_id: int) -> Optional[dict]:
    """Load an issue and count the view."""
    params = {"support-issue-id": support_issue_id}
    with transaction(db):
        issue = sql.queries.support_issue_by_id(db, params)
        if not issue:
            return None
        issue = _with_distinct_tags(issue)
        issue["files"] = distinct(issue.get("files") or [])
        issue.update(sql.queries.inc_issue_views(db, params) or {})
        return issue


def create_issue_with_tags(
    db: Session, issue: Union[schemas.SupportIssueCreate, Mapping]
) -> Optional[int]:
    """Insert an issue with its tags; returns the new issue id."""
    issue = schemas.SupportIssueCreate.coerce(issue)
    with transaction(db):
        if not user_can_access_group(db, issue.user_id, issue.group_id):
            logger.debug("create issue denied for user %s in group %s", issue.user_id, issue.group_id)
            return None
        created = sql.queries.add_issue(db, issue.payload(exclude={"tags"}))
        if not created:
            return None
        support_issue_id = created["support-issue-id"]
        reset_issue_tags(db, support_issue_id, issue.tags)
        return support_issue_id


def update_issue_with_tags(
    db: Session, issue: Union[schemas.SupportIssueUpdate, Mapping]
) -> Optional[int]:
    """Replace an issue's tags and fields; returns the updated row count."""
    issue = schemas.SupportIssueUpdate.coerce(issue)
    with transaction(db):
        if not user_can_access_group(db, issue.user_id, issue.group_id):
            logger.debug("update of issue %s denied for user %s", issue.support_issue_id, issue.user_id)
            return None
        reset_issue_tags(db, issue.support_issue_id, issue.tags)
        return sql.queries.update_issue(db, issue.payload(exclude={"tags"}))


def delete_issue(db: Session, support_issue_id: int) -> int:
    """Delete an issue after its files and tag links."""
    params = {"support-issue-id": support_issue_id}
    with transaction(db):
        sql.queries.delete_issue_files(db, params)
        sql.queries.dissoc_tags_from_issue(db, params)
        return sql.queries.delete_issue(db, params)


def run_query_if_user_can_access_issue(
    db: Session, user_id: int, support_issue_id: int, query_fn: Callable[[], T]
) -> Optional[T]:
    """Run ``query_fn`` only when the user can access the issue, else None."""
    with transaction(db):
        if not user_can_access_issue(db, user_id, support_issue_id):
            logger.debug("access to issue %s denied for user %s", support_issue_id, user_id)
            return None
        return query_fn()


def recent_issues(db: Session, user_id: int, limit: int = 20) -> List[dict]:
    rows = sql.queries.recent_issues(db, {"user-id": user_id, "limit": limit})
    return [_with_distinct_tags(row) for row in rows]


def issues_by_tag(db: Session, user_id: int, tag: str) -> List[dict]:
    rows = sql.queries.issues_by_tag(db, {"user-id": user_id, "tag": tag})
    return [_with_distinct_tags(row) for row in rows]
