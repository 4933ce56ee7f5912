from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from fieldportal.core.deps import get_current_user
from fieldportal.db.session import get_db
from fieldportal.models.site import Site
from fieldportal.models.waste_log import WasteLog, WasteType, WasteUnit, WasteStatus
from fieldportal.schemas.waste_log import WasteLogOut
from fieldportal.services.storage import IMAGE_MIMES, store_bytes
from fieldportal.utils.strings import norm_str

logger = logging.getLogger("fieldportal.waste")

router = APIRouter(
    prefix="/api/sites/{site_id}/waste-logs",
    tags=["waste-logs"],
    dependencies=[Depends(get_current_user)],
)


def _get_site(db: Session, site_id: int) -> Site:
    site = db.get(Site, site_id)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


@router.get("", response_model=List[WasteLogOut])
def list_waste_logs(site_id: int, db: Session = Depends(get_db)):
    return (
        db.query(WasteLog)
        .filter(WasteLog.site_id == site_id)
        .order_by(WasteLog.date_generated.desc(), WasteLog.id.desc())
        .all()
    )


@router.post("", response_model=WasteLogOut, status_code=status.HTTP_201_CREATED)
async def create_waste_log(
    site_id: int,
    waste_type: WasteType = Form(...),
    description: str = Form(..., min_length=1),
    eer_code: str = Form(..., min_length=1),
    quantity: float = Form(...),
    unit: WasteUnit = Form(...),
    storage_location: Optional[str] = Form(None),
    status_: WasteStatus = Form(WasteStatus.STORED_ON_SITE, alias="status"),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    site = _get_site(db, site_id)

    image_url = None
    if image is not None and image.filename:
        mime = (image.content_type or "").lower()
        if mime not in IMAGE_MIMES:
            raise HTTPException(status_code=400, detail=f"Unsupported MIME type: {mime}")
        blob = await image.read()
        if blob:
            image_url = await store_bytes(blob, mime, subdir=f"waste/{site.id}")

    log = WasteLog(
        site_id=site.id,
        waste_type=waste_type,
        description=description.strip(),
        eer_code=eer_code.strip(),
        quantity=quantity,
        unit=unit,
        storage_location=norm_str(storage_location),
        status=status_,
        image_url=image_url,
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    logger.info("Waste log %s (%s %s %s) for site %s", log.id, log.quantity, log.unit.value, log.eer_code, site.name)
    return log
