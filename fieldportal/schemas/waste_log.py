from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from fieldportal.models.waste_log import WasteType, WasteUnit, WasteStatus


class WasteLogOut(BaseModel):
    id: int
    site_id: int
    date_generated: datetime
    waste_type: WasteType
    description: str
    eer_code: str
    quantity: float
    unit: WasteUnit
    storage_location: Optional[str] = None
    image_url: Optional[str] = None
    status: WasteStatus

    model_config = ConfigDict(from_attributes=True)
