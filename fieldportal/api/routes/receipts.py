from __future__ import annotations
import io
import logging
from datetime import date
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from fieldportal.core.config import settings
from fieldportal.core.deps import get_current_user
from fieldportal.db.session import get_db
from fieldportal.models.commessa import Commessa
from fieldportal.models.receipt import Receipt
from fieldportal.models.user import User
from fieldportal.schemas.receipt import ReceiptCreate, ReceiptOut, ReceiptStats
from fieldportal.services import receipt_pdf
from fieldportal.services.storage import decode_data_url, store_bytes, fetch_image_bytes
from fieldportal.utils.strings import norm_str

logger = logging.getLogger("fieldportal.receipts")

router = APIRouter(
    prefix="/api/receipts",
    tags=["receipts"],
    dependencies=[Depends(get_current_user)],
)


# --- Helpers ---
def _get_receipt(db: Session, receipt_id: int) -> Receipt:
    receipt = db.get(Receipt, receipt_id)
    if not receipt:
        raise HTTPException(status_code=404, detail="Receipt not found")
    return receipt


def _in_range(q, start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    if start_date:
        q = q.filter(Receipt.date >= start_date)
    if end_date:
        q = q.filter(Receipt.date <= end_date)
    return q


async def _image_bytes(receipt: Receipt) -> bytes | None:
    if receipt.image_data:
        _, blob = decode_data_url(receipt.image_data)
        return blob
    if receipt.image_url:
        try:
            return await fetch_image_bytes(receipt.image_url)
        except httpx.HTTPError as e:
            logger.warning("Could not fetch image for receipt %s: %s", receipt.id, e)
    return None


def _pdf_response(pdf_bytes: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


# --- Endpoints ---

@router.get("", response_model=List[ReceiptOut])
def list_receipts(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    q = _in_range(db.query(Receipt), start_date, end_date)
    return q.order_by(Receipt.date.asc(), Receipt.id.asc()).all()


@router.post("", response_model=ReceiptOut, status_code=status.HTTP_201_CREATED)
async def create_receipt(
    payload: ReceiptCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # Validate the image before touching anything else
    mime, blob = decode_data_url(payload.image_data)

    snapshot = None
    if payload.commessa_id is not None:
        commessa = db.get(Commessa, payload.commessa_id)
        if not commessa:
            raise HTTPException(status_code=404, detail="Commessa not found")
        snapshot = commessa.snapshot()

    image_data = payload.image_data
    image_url = None
    if settings.blob_enabled:
        image_url = await store_bytes(blob, mime, subdir="receipts")
        image_data = None

    receipt = Receipt(
        date=payload.date,
        amount=payload.amount,
        text=norm_str(payload.text),
        image_data=image_data,
        image_url=image_url,
        commessa=snapshot,
        participants=[p.strip() for p in payload.participants if p and p.strip()],
        created_by_id=user.id,
    )
    db.add(receipt)
    db.commit()
    db.refresh(receipt)
    logger.info("Receipt %s saved by %s (%.2f)", receipt.id, user.email, receipt.amount)
    return receipt


@router.get("/stats", response_model=ReceiptStats)
def receipt_stats(db: Session = Depends(get_db)):
    count, total, last = db.query(
        func.count(Receipt.id),
        func.coalesce(func.sum(Receipt.amount), 0.0),
        func.max(Receipt.date),
    ).one()
    return ReceiptStats(total_receipts=count, total_amount=round(float(total), 2), last_receipt_date=last)


@router.get("/report", response_class=StreamingResponse, summary="Expense report PDF for a date range")
async def receipts_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    receipts = _in_range(db.query(Receipt), start_date, end_date).order_by(Receipt.date.asc(), Receipt.id.asc()).all()
    items = [(r, await _image_bytes(r)) for r in receipts]
    pdf_bytes = receipt_pdf.render_period_report_pdf(items, start_date, end_date)
    return _pdf_response(pdf_bytes, "Expense_Report.pdf")


@router.get("/{receipt_id}", response_model=ReceiptOut)
def get_receipt(receipt_id: int, db: Session = Depends(get_db)):
    return _get_receipt(db, receipt_id)


@router.get("/{receipt_id}/pdf", response_class=StreamingResponse)
async def receipt_pdf_download(receipt_id: int, db: Session = Depends(get_db)):
    receipt = _get_receipt(db, receipt_id)
    pdf_bytes = receipt_pdf.render_receipt_pdf(receipt, await _image_bytes(receipt))
    return _pdf_response(pdf_bytes, f"Receipt_{receipt.id}.pdf")


@router.delete("/{receipt_id}", response_model=ReceiptOut)
def delete_receipt(receipt_id: int, db: Session = Depends(get_db)):
    receipt = _get_receipt(db, receipt_id)
    out = ReceiptOut.model_validate(receipt)
    db.delete(receipt)
    db.commit()
    return out
