"""
Tag repository functions.

Tags are created implicitly the first time an issue references them.
"""
from __future__ import annotations

from typing import Iterable, List

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db.database import transaction
from memory_hole.utils.collections import difference


def list_tags(db: Session) -> List[dict]:
    return sql.queries.tags(db)


def tags_with_counts(db: Session) -> List[dict]:
    return sql.queries.tags_with_counts(db)


def create_missing_tags(db: Session, tags: Iterable[str]) -> List[dict]:
    """Insert every label in ``tags`` that is not a known tag yet."""
    with transaction(db):
        known = [row["tag"] for row in sql.queries.tags(db)]
        return [sql.queries.create_tag(db, {"tag": tag}) for tag in difference(tags, known)]


def reset_issue_tags(db: Session, support_issue_id: int, tags: Iterable[str]) -> int:
    """Make the issue's tag associations exactly ``tags``.

    Returns the number of associations written.
    """
    tags = list(tags or ())
    with transaction(db):
        create_missing_tags(db, tags)
        sql.queries.dissoc_tags_from_issue(db, {"support-issue-id": support_issue_id})
        return sql.queries.assoc_tags_with_issue(
            db, {"support-issue-id": support_issue_id, "tags": tags}
        )
