from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from sqlalchemy.orm import Session
from typing import List
import json
from pydantic import ValidationError

from fieldportal.core.deps import get_current_user, require_roles
from fieldportal.db.session import get_db
from fieldportal.models.commessa import Commessa
from fieldportal.models.role import ADMIN
from fieldportal.schemas.commessa import CommessaCreate, CommessaRead, CommessaImport
from fieldportal.utils.strings import norm_str

router = APIRouter(prefix="/api/commesse", tags=["commesse"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[CommessaRead])
def list_commesse(db: Session = Depends(get_db)):
    return db.query(Commessa).order_by(Commessa.code.asc()).all()


@router.post("", response_model=CommessaRead, status_code=201, dependencies=[Depends(require_roles(ADMIN))])
def create_commessa(payload: CommessaCreate, db: Session = Depends(get_db)):
    code = payload.code.strip()
    existing = db.query(Commessa).filter(Commessa.code == code).first()
    if existing:
        raise HTTPException(
            status_code=400,
            detail=f"Commessa '{code}' already exists.",
        )

    row = Commessa(
        code=code,
        description=payload.description.strip(),
        wbs_element=norm_str(payload.wbs_element),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# curl -X POST http://127.0.0.1:8000/api/commesse/import -H "Authorization: Bearer $T" -F "file=@commesse.json;type=application/json"
@router.post("/import", dependencies=[Depends(require_roles(ADMIN))])
async def import_commesse(file: UploadFile = File(...), db: Session = Depends(get_db)):
    if file.content_type not in ("application/json", "text/json"):
        raise HTTPException(400, "Please upload a JSON file.")

    raw = await file.read()
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(400, "Invalid JSON.")

    if not isinstance(payload, list):
        raise HTTPException(400, "Top-level JSON must be an array of objects.")

    created = 0
    updated = 0
    errors = []

    for idx, item in enumerate(payload, start=1):
        try:
            row = CommessaImport.model_validate(item)
        except ValidationError as e:
            errors.append({"index": idx, "error": e.errors(include_url=False)})
            continue

        code = norm_str(row.code)
        desc = norm_str(row.description)
        wbs = norm_str(row.wbs_element)
        if not code or not desc:
            errors.append({"index": idx, "error": "code and description are required"})
            continue

        existing = db.query(Commessa).filter(Commessa.code == code).one_or_none()
        if existing:
            changed = False
            if existing.description != desc:
                existing.description = desc
                changed = True
            if wbs is not None and existing.wbs_element != wbs:
                existing.wbs_element = wbs
                changed = True
            if changed:
                updated += 1
        else:
            db.add(Commessa(code=code, description=desc, wbs_element=wbs))
            db.flush()
            created += 1

    db.commit()
    return {"created": created, "updated": updated, "errors": errors, "total": len(payload)}
