"""
Access checks evaluated inside the transaction of the operation they guard.

Key helpers:
- user_can_access_group(db, user_id, group_id)
- user_can_access_issue(db, user_id, support_issue_id)
"""
import logging

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db.database import transaction

logger = logging.getLogger(__name__)


def user_can_access_group(db: Session, user_id, group_id) -> bool:
    """True iff ``group_id`` is among the user's group memberships."""
    if user_id is None or group_id is None:
        return False
    with transaction(db):
        memberships = sql.queries.groups_for_user(db, {"user-id": user_id})
    allowed = any(membership.get("group-id") == group_id for membership in memberships)
    if not allowed:
        logger.debug("user %s denied access to group %s", user_id, group_id)
    return allowed


def user_can_access_issue(db: Session, user_id, support_issue_id) -> bool:
    """True iff the user belongs to the group owning the issue."""
    if support_issue_id is None:
        return False
    with transaction(db):
        issue = sql.queries.issue_group(db, {"support-issue-id": support_issue_id})
        if not issue:
            logger.debug("issue %s not found for access check", support_issue_id)
            return False
        return user_can_access_group(db, user_id, issue["group-id"])
