"""
User repository functions.

Implements user upserts and group membership reconciliation. Secrets are
opaque here: they arrive already hashed and are only ever written.
"""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Mapping, Optional, Union

from sqlalchemy.orm import Session

from memory_hole.db import queries as sql
from memory_hole.db import schemas
from memory_hole.db.database import transaction
from memory_hole.utils.collections import difference, distinct

# Fields returned by membership reconciliation
USER_FIELDS = ("user-id", "screenname", "admin", "is-active", "last-login", "belongs-to")


def _fields(user: schemas.UserInfo) -> dict:
    return {"screenname": user.screenname, "admin": user.admin, "is-active": user.is_active}


def get_user(db: Session, screenname: str) -> Optional[dict]:
    return sql.queries.user_by_screenname(db, {"screenname": screenname})


def list_users(db: Session):
    return sql.queries.users(db)


def user_credentials(db: Session, screenname: str) -> Optional[dict]:
    """Stored secret and flags for the credential checker."""
    return sql.queries.user_credentials(db, {"screenname": screenname})


def record_login(db: Session, user_id: int, when: Optional[datetime] = None) -> int:
    when = when or datetime.now(UTC).replace(tzinfo=None)
    with transaction(db):
        return sql.queries.update_last_login(db, {"user-id": user_id, "last-login": when})


def update_user_info(db: Session, user: Union[schemas.UserInfo, Mapping]) -> dict:
    """Update the user with this screenname, or insert it when absent."""
    user = schemas.UserInfo.coerce(user)
    with transaction(db):
        existing = get_user(db, user.screenname)
        if existing:
            row = sql.queries.update_user(db, {**_fields(user), "user-id": existing["user-id"]})
        else:
            row = sql.queries.insert_user(db, {**_fields(user), "pass": user.pass_})
        return {**user.payload(exclude={"pass_"}), **(row or {})}


def insert_user_with_belongs_to(db: Session, user: Union[schemas.UserCreate, Mapping]) -> Optional[dict]:
    """Insert a user and add them to the listed groups."""
    user = schemas.UserCreate.coerce(user)
    with transaction(db):
        created = sql.queries.insert_user(db, {**_fields(user), "pass": user.pass_})
        if not created:
            return None
        groups = distinct(user.belongs_to)
        if groups:
            sql.queries.add_user_to_groups(db, {"user-id": created["user-id"], "groups": groups})
        return get_user(db, user.screenname)


def update_or_insert_user_with_belongs_to(
    db: Session, user: Union[schemas.UserMembershipUpdate, Mapping]
) -> Optional[dict]:
    """Upsert a user and reconcile their group memberships.

    ``belongs_to`` and ``member_of`` together form the desired membership
    set. Differences are taken against the memberships read before any
    write, so a newly inserted user never has groups removed.
    """
    user = schemas.UserMembershipUpdate.coerce(user)
    with transaction(db):
        desired = distinct([*user.belongs_to, *user.member_of])
        existing = get_user(db, user.screenname)
        if existing:
            user_id = existing["user-id"]
        else:
            created = sql.queries.insert_user(db, {**_fields(user), "pass": user.pass_})
            if not created:
                return None
            user_id = created["user-id"]

        old_groups = (existing or {}).get("belongs-to") or []
        del_groups = difference(old_groups, desired)
        add_groups = difference(desired, old_groups)

        if existing:
            params = {**_fields(user), "user-id": user_id}
            if user.update_password:
                sql.queries.update_user_with_pass(db, {**params, "pass": user.pass_})
            else:
                sql.queries.update_user(db, params)
        if del_groups:
            sql.queries.remove_user_from_groups(db, {"user-id": user_id, "groups": del_groups})
        if add_groups:
            sql.queries.add_user_to_groups(db, {"user-id": user_id, "groups": add_groups})

        final = get_user(db, user.screenname) or {}
        return {key: final[key] for key in USER_FIELDS if key in final}
