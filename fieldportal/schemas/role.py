from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RoleRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RoleCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: Optional[str] = None
