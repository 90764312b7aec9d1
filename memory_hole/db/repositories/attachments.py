"""
Attachment repository functions.

Every operation is gated on access to the owning issue and returns None
when access is denied.
"""
from __future__ import annotations

from typing import List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db import schemas
from memory_hole.db.repositories.issues import run_query_if_user_can_access_issue


def attach_file(db: Session, attachment: Union[schemas.SupportFileCreate, Mapping]) -> Optional[dict]:
    attachment = schemas.SupportFileCreate.coerce(attachment)
    return run_query_if_user_can_access_issue(
        db,
        attachment.user_id,
        attachment.support_issue_id,
        lambda: sql.queries.add_file(db, attachment.payload(exclude={"user_id"})),
    )


def list_files(db: Session, user_id: int, support_issue_id: int) -> Optional[List[dict]]:
    return run_query_if_user_can_access_issue(
        db,
        user_id,
        support_issue_id,
        lambda: sql.queries.files_for_issue(db, {"support-issue-id": support_issue_id}),
    )


def load_file(db: Session, user_id: int, support_issue_id: int, name: str) -> Optional[dict]:
    params = {"support-issue-id": support_issue_id, "name": name}
    return run_query_if_user_can_access_issue(
        db, user_id, support_issue_id, lambda: sql.queries.load_file_data(db, params)
    )


def delete_file(db: Session, user_id: int, support_issue_id: int, name: str) -> Optional[int]:
    params = {"support-issue-id": support_issue_id, "name": name}
    return run_query_if_user_can_access_issue(
        db, user_id, support_issue_id, lambda: sql.queries.delete_file(db, params)
    )
