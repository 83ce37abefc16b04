from datetime import datetime

from beanie import Document, Link
from pydantic import Field

from verifund.models.user import User


class CreditScoreEntry(Document):
    """One scoring event (e.g. a reviewed progress report); written by the scoring process."""
    user: Link[User]
    score: int = Field(ge=0, le=100)
    progress_report_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_credit_scores"
        indexes = [[("user", 1)]]
