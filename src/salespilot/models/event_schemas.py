"""Pydantic schemas for change notifications."""

from datetime import date as date_type
from datetime import datetime

from pydantic import BaseModel, Field

from salespilot.models.enums import Cadence, EventTopic
from salespilot.utils.datetime import now_utc


class ChangeEvent(BaseModel):
    """Fire-and-forget notice that a document or override changed."""

    topic: EventTopic
    customer_id: str
    account_id: str | None = None
    cadence: Cadence | None = None
    reference_month: str | None = None
    reference_date: date_type | None = None
    occurred_at: datetime = Field(default_factory=now_utc)
