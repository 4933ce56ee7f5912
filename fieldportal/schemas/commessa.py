from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class CommessaCreate(BaseModel):
    code: str = Field(..., min_length=1, description="SAP project code")
    description: str = Field(..., min_length=1)
    wbs_element: Optional[str] = None


class CommessaRead(CommessaCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)


class CommessaImport(BaseModel):
    # Accept both the SAP export headers and the field names
    code: Optional[str] = Field(None, alias="CodiceProgettoSAP")
    description: Optional[str] = Field(None, alias="Descrizione")
    wbs_element: Optional[str] = Field(None, alias="CodiceElementoWBS")

    model_config = ConfigDict(populate_by_name=True)


class CommessaSnapshot(BaseModel):
    id: Optional[int] = None
    code: str
    description: str
    wbs_element: Optional[str] = None
