from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fieldportal.core.deps import get_current_user
from fieldportal.db.session import get_db
from fieldportal.models.piezometer import Piezometer
from fieldportal.models.sampling_event import SamplingEvent, MEASUREMENT_FIELDS
from fieldportal.models.site import Site
from fieldportal.schemas.site import (
    SiteCreate, SiteOut, SiteSummary, NearestSite,
    PiezometerCreate, PiezometerOut,
    SamplingEventCreate, SamplingEventOut,
)
from fieldportal.services.geodesy import nearest
from fieldportal.utils.strings import norm_str

logger = logging.getLogger("fieldportal.sites")

router = APIRouter(prefix="/api", tags=["sites"], dependencies=[Depends(get_current_user)])


# --- Helpers ---
def _get_site(db: Session, site_id: int) -> Site:
    site = db.get(Site, site_id)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


def _get_piezometer(db: Session, piezometer_id: int) -> Piezometer:
    pz = db.get(Piezometer, piezometer_id)
    if not pz:
        raise HTTPException(status_code=404, detail="Piezometer not found")
    return pz


# --- Sites ---

@router.get("/sites", response_model=List[SiteOut])
def list_sites(db: Session = Depends(get_db)):
    return db.query(Site).order_by(Site.name.asc()).all()


@router.post("/sites", response_model=SiteOut, status_code=status.HTTP_201_CREATED)
def create_site(payload: SiteCreate, db: Session = Depends(get_db)):
    name = payload.name.strip()
    if db.query(Site).filter(Site.name == name).first():
        raise HTTPException(status_code=400, detail=f"Site '{name}' already exists.")
    lat, lon = payload.coordinates
    site = Site(
        name=name,
        client=norm_str(payload.client),
        address=norm_str(payload.address),
        latitude=lat,
        longitude=lon,
    )
    db.add(site)
    db.commit()
    db.refresh(site)
    logger.info("Created site %s (%s)", site.id, site.name)
    return site


@router.get("/sites/summary", response_model=List[SiteSummary])
def sites_summary(db: Session = Depends(get_db)):
    """
    Per site: number of piezometers and how many of them have at least one
    sampling event. Computed on every call.
    """
    sampled = select(SamplingEvent.piezometer_id).distinct().subquery()
    rows = (
        db.query(
            Site,
            func.count(Piezometer.id).label("total_pzs"),
            func.count(sampled.c.piezometer_id).label("completed_pzs"),
        )
        .outerjoin(Piezometer, Piezometer.site_id == Site.id)
        .outerjoin(sampled, sampled.c.piezometer_id == Piezometer.id)
        .group_by(Site.id)
        .order_by(Site.name.asc())
        .all()
    )
    return [
        SiteSummary(
            id=site.id,
            name=site.name,
            client=site.client,
            address=site.address,
            coordinates=site.coordinates,
            total_pzs=total,
            completed_pzs=completed,
        )
        for site, total, completed in rows
    ]


@router.get("/sites/nearest", response_model=NearestSite)
def nearest_site(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    db: Session = Depends(get_db),
):
    found = nearest(lat, lon, db.query(Site).all(), key=lambda s: (s.latitude, s.longitude))
    if not found:
        raise HTTPException(status_code=404, detail="No sites defined")
    site, dist = found
    return NearestSite(site=SiteOut.model_validate(site), distance_m=round(dist, 1))


@router.get("/sites/{site_id}", response_model=SiteOut)
def get_site(site_id: int, db: Session = Depends(get_db)):
    return _get_site(db, site_id)


# --- Piezometers ---

@router.get("/sites/{site_id}/piezometers", response_model=List[PiezometerOut])
def list_piezometers(site_id: int, db: Session = Depends(get_db)):
    return (
        db.query(Piezometer)
        .filter(Piezometer.site_id == site_id)
        .order_by(Piezometer.name.asc())
        .all()
    )


@router.post("/sites/{site_id}/piezometers", response_model=PiezometerOut, status_code=status.HTTP_201_CREATED)
def create_piezometer(site_id: int, payload: PiezometerCreate, db: Session = Depends(get_db)):
    site = _get_site(db, site_id)
    lat, lon = payload.coordinates
    pz = Piezometer(
        site_id=site.id,
        name=payload.name.strip(),
        latitude=lat,
        longitude=lon,
        depth=payload.depth,
    )
    db.add(pz)
    db.commit()
    db.refresh(pz)
    return pz


# --- Sampling events ---

@router.get("/piezometers/{piezometer_id}/sampling-events", response_model=List[SamplingEventOut])
def list_sampling_events(piezometer_id: int, db: Session = Depends(get_db)):
    return (
        db.query(SamplingEvent)
        .filter(SamplingEvent.piezometer_id == piezometer_id)
        .order_by(SamplingEvent.date.desc(), SamplingEvent.id.desc())
        .all()
    )


@router.post(
    "/piezometers/{piezometer_id}/sampling-events",
    response_model=SamplingEventOut,
    status_code=status.HTTP_201_CREATED,
)
def create_sampling_event(piezometer_id: int, payload: SamplingEventCreate, db: Session = Depends(get_db)):
    pz = _get_piezometer(db, piezometer_id)
    values = payload.measurements.model_dump()
    event = SamplingEvent(
        piezometer_id=pz.id,
        notes=norm_str(payload.notes),
        **{f: values.get(f) for f in MEASUREMENT_FIELDS},
    )
    if payload.date is not None:
        event.date = payload.date
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Sampling event %s recorded at %s", event.id, pz.name)
    return event
