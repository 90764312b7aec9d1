"""Group repository functions."""
from typing import List, Optional

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db.database import transaction


def create_group(db: Session, group_name: str) -> Optional[dict]:
    with transaction(db):
        return sql.queries.create_group(db, {"group-name": group_name})


def list_groups(db: Session) -> List[dict]:
    return sql.queries.groups(db)


def groups_for_user(db: Session, user_id: int) -> List[dict]:
    return sql.queries.groups_for_user(db, {"user-id": user_id})
