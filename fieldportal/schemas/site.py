from __future__ import annotations
from datetime import datetime
from typing import Annotated, List, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _check_coordinates(v: List[float]) -> List[float]:
    if len(v) != 2:
        raise ValueError("coordinates must be a [lat, lon] pair")
    lat, lon = v
    if not -90 <= lat <= 90:
        raise ValueError("latitude must be within [-90, 90]")
    if not -180 <= lon <= 180:
        raise ValueError("longitude must be within [-180, 180]")
    return v


Coordinates = Annotated[List[float], AfterValidator(_check_coordinates)]


# --- Sites ---
class SiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    client: Optional[str] = None
    address: Optional[str] = None
    coordinates: Coordinates


class SiteOut(BaseModel):
    id: int
    name: str
    client: Optional[str] = None
    address: Optional[str] = None
    coordinates: List[float]

    model_config = ConfigDict(from_attributes=True)


class SiteSummary(SiteOut):
    total_pzs: int = Field(0, serialization_alias="totalPZs")
    completed_pzs: int = Field(0, serialization_alias="completedPZs")


class NearestSite(BaseModel):
    site: SiteOut
    distance_m: float


# --- Piezometers ---
class PiezometerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    coordinates: Coordinates
    depth: Optional[float] = None


class PiezometerOut(BaseModel):
    id: int
    site_id: int
    name: str
    coordinates: List[float]
    depth: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


# --- Sampling events ---
class Measurements(BaseModel):
    depth_to_water: Optional[float] = None
    ph: Optional[float] = None
    conductivity: Optional[float] = None
    temperature: Optional[float] = None
    redox_potential: Optional[float] = None
    dissolved_oxygen: Optional[float] = None


class SamplingEventCreate(BaseModel):
    date: Optional[datetime] = None  # defaults to now
    measurements: Measurements = Measurements()
    notes: Optional[str] = None


class SamplingEventOut(BaseModel):
    id: int
    piezometer_id: int
    date: datetime
    measurements: Measurements
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
