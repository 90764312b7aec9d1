"""
Table definitions for the support issue store.

Core ``Table`` metadata only: statements are written by hand in
``sql/*.sql``. ``create_schema`` bootstraps an empty database (tests and
local development).
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    Table,
    Text,
    func,
    text,
)

from memory_hole.db.types import CIText

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True),
    Column("screenname", CIText(), nullable=False, unique=True),
    Column("pass", Text, nullable=True),
    Column("admin", Boolean, nullable=False, server_default=text("false")),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("last_login", DateTime, nullable=True),
)

groups = Table(
    "groups",
    metadata,
    Column("group_id", Integer, primary_key=True),
    Column("group_name", Text, nullable=False, unique=True),
)

users_groups = Table(
    "users_groups",
    metadata,
    Column("user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.group_id"), primary_key=True),
    Index("idx_users_groups_group_id", "group_id"),
)

tags = Table(
    "tags",
    metadata,
    Column("tag_id", Integer, primary_key=True),
    Column("tag", Text, nullable=False, unique=True),
)

support_issues = Table(
    "support_issues",
    metadata,
    Column("support_issue_id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.group_id"), nullable=False),
    Column("title", Text, nullable=False),
    Column("summary", Text, nullable=True),
    Column("detail", Text, nullable=True),
    Column("views", Integer, nullable=False, server_default=text("0")),
    Column("created_by", Integer, ForeignKey("users.user_id"), nullable=True),
    Column("last_updated_by", Integer, ForeignKey("users.user_id"), nullable=True),
    Column("created", DateTime, nullable=False, server_default=func.now()),
    Column("last_updated", DateTime, nullable=False, server_default=func.now()),
    Index("idx_support_issues_group_id", "group_id"),
)

support_issues_tags = Table(
    "support_issues_tags",
    metadata,
    Column("support_issue_id", Integer, ForeignKey("support_issues.support_issue_id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.tag_id"), primary_key=True),
)

files = Table(
    "files",
    metadata,
    Column("file_id", Integer, primary_key=True),
    Column("support_issue_id", Integer, ForeignKey("support_issues.support_issue_id"), nullable=False),
    Column("name", Text, nullable=False),
    Column("type", Text, nullable=True),
    Column("data", LargeBinary, nullable=True),
    Column("created", DateTime, nullable=False, server_default=func.now()),
    Index("idx_files_support_issue_id", "support_issue_id"),
)


def create_schema(bind) -> None:
    """Enable the citext extension and create missing tables."""
    with bind.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS citext"))
        metadata.create_all(conn)


def drop_schema(bind) -> None:
    with bind.begin() as conn:
        metadata.drop_all(conn)
