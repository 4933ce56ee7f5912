from __future__ import annotations
import datetime as dt
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class ScheduleMeta(BaseModel):
    id: int
    year: int
    month: int
    file_name: str
    uploaded_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class ScheduleRead(ScheduleMeta):
    csv_content: str


class ScheduleEntry(BaseModel):
    task: str
    is_start: bool = False


class ParsedSchedule(BaseModel):
    year: int
    month: int
    employees: List[str] = []
    # employee -> ISO date -> entry
    schedules: Dict[str, Dict[dt.date, ScheduleEntry]] = {}


class ScheduleDay(BaseModel):
    date: dt.date
    entry: Optional[ScheduleEntry] = None


class ScheduleWeek(BaseModel):
    employee: str
    start: dt.date
    days: List[ScheduleDay]
