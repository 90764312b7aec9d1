from typing import List

from pydantic import Field, field_validator

from ._base import PayloadModel


class SupportIssueBase(PayloadModel):
    title: str
    summary: str | None = None
    detail: str | None = None
    group_id: int
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _strip_tags(cls, value: List[str]) -> List[str]:
        return [tag.strip() for tag in value if tag and tag.strip()]


class SupportIssueCreate(SupportIssueBase):
    user_id: int


class SupportIssueUpdate(SupportIssueCreate):
    support_issue_id: int
