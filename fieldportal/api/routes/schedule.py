from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status
from sqlalchemy.orm import Session

from fieldportal.core.deps import get_current_user, require_roles
from fieldportal.db.session import get_db
from fieldportal.models.role import ADMIN
from fieldportal.models.schedule import ScheduleData
from fieldportal.schemas.schedule import ScheduleMeta, ScheduleRead, ParsedSchedule, ScheduleWeek
from fieldportal.services.schedule_parser import parse_schedule_csv, week_for

logger = logging.getLogger("fieldportal.schedule")

router = APIRouter(prefix="/api/schedule", tags=["schedule"], dependencies=[Depends(get_current_user)])

Year = Annotated[int, Path(ge=2000, le=2100)]
Month = Annotated[int, Path(ge=1, le=12)]


def _get_month(db: Session, year: int, month: int) -> ScheduleData:
    row = (
        db.query(ScheduleData)
        .filter(ScheduleData.year == year, ScheduleData.month == month)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail=f"No schedule uploaded for {year}-{month:02d}.")
    return row


def _decode(raw: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise HTTPException(status_code=400, detail="CSV must be UTF-8 or Windows-1252 encoded.")


@router.post(
    "/upload",
    response_model=ScheduleMeta,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def upload_schedule(
    file: UploadFile = File(...),
    year: int = Form(..., ge=2000, le=2100),
    month: int = Form(..., ge=1, le=12),
    db: Session = Depends(get_db),
):
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    content = _decode(raw)

    # Replace-or-insert keyed by (year, month); concurrent uploads: last write wins
    row = (
        db.query(ScheduleData)
        .filter(ScheduleData.year == year, ScheduleData.month == month)
        .first()
    )
    if row is None:
        row = ScheduleData(year=year, month=month)
        db.add(row)
    row.file_name = file.filename or f"schedule-{year}-{month:02d}.csv"
    row.csv_content = content
    row.uploaded_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(row)
    logger.info("Schedule %s-%02d updated from %s (%d bytes)", year, month, row.file_name, len(raw))
    return row


@router.get("/all", response_model=List[ScheduleRead])
def list_schedules(db: Session = Depends(get_db)):
    return (
        db.query(ScheduleData)
        .order_by(ScheduleData.year.desc(), ScheduleData.month.desc())
        .all()
    )


@router.get("/latest", response_model=ScheduleRead)
def latest_schedule(db: Session = Depends(get_db)):
    row = db.query(ScheduleData).order_by(ScheduleData.uploaded_at.desc(), ScheduleData.id.desc()).first()
    if not row:
        raise HTTPException(status_code=404, detail="No schedule has been uploaded yet.")
    return row


@router.get("/{year}/{month}", response_model=ParsedSchedule)
def parsed_schedule(
    year: Year,
    month: Month,
    weekdays_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    row = _get_month(db, year, month)
    return parse_schedule_csv(row.csv_content, year, month, weekdays_only=weekdays_only)


@router.get("/{year}/{month}/week", response_model=ScheduleWeek)
def employee_week(
    year: Year,
    month: Month,
    employee: str = Query(..., min_length=1),
    start: Optional[date] = Query(None),
    weekdays_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    row = _get_month(db, year, month)
    parsed = parse_schedule_csv(row.csv_content, year, month, weekdays_only=weekdays_only)
    if employee not in parsed.schedules:
        raise HTTPException(status_code=404, detail=f"'{employee}' is not in the {year}-{month:02d} schedule.")
    return week_for(parsed, employee, start or date(year, month, 1))


@router.delete("/{year}/{month}", response_model=ScheduleMeta, dependencies=[Depends(require_roles(ADMIN))])
def delete_schedule(year: Year, month: Month, db: Session = Depends(get_db)):
    row = _get_month(db, year, month)
    out = ScheduleMeta.model_validate(row)
    db.delete(row)
    db.commit()
    return out
