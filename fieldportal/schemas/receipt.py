from __future__ import annotations
import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from fieldportal.schemas.commessa import CommessaSnapshot


class ReceiptCreate(BaseModel):
    date: dt.date
    amount: float
    text: Optional[str] = None
    image_data: str = Field(..., min_length=1, description="data:image/...;base64,...")
    commessa_id: Optional[int] = None
    participants: List[str] = []


class ReceiptOut(BaseModel):
    id: int
    date: dt.date
    amount: float
    text: Optional[str] = None
    image_data: Optional[str] = None
    image_url: Optional[str] = None
    commessa: Optional[CommessaSnapshot] = None
    participants: List[str] = []
    created_by_id: Optional[int] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptStats(BaseModel):
    total_receipts: int
    total_amount: float
    last_receipt_date: Optional[dt.date] = None
