from datetime import datetime
from decimal import Decimal
from typing import Literal

from beanie import DecimalAnnotation, Document, Link
from pydantic import Field

from verifund.models.user import User


class Campaign(Document):
    creator: Link[User]
    title: str
    status: Literal["draft", "pending", "active", "on_progress", "completed", "closed"] = "pending"
    current_amount: DecimalAnnotation = Decimal("0")
    minimum_amount: DecimalAnnotation  # operational threshold
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "campaigns"
        indexes = [[("creator", 1), ("created_at", 1)]]
