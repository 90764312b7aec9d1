from ._base import PayloadModel


class SupportFileCreate(PayloadModel):
    user_id: int
    support_issue_id: int
    name: str
    type: str | None = None
    data: bytes
