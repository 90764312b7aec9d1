"""
Pydantic payloads for the transactional operations, split by domain.
"""

from ._base import PayloadModel
from .issues import SupportIssueBase, SupportIssueCreate, SupportIssueUpdate
from .users import UserInfo, UserCreate, UserMembershipUpdate
from .attachments import SupportFileCreate

__all__ = [
    "PayloadModel",
    "SupportIssueBase",
    "SupportIssueCreate",
    "SupportIssueUpdate",
    "UserInfo",
    "UserCreate",
    "UserMembershipUpdate",
    "SupportFileCreate",
]
