import base64

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import PNG_B64, PNG_DATA_URL


@pytest.fixture
def commessa(client, admin_headers):
    r = client.post(
        "/api/commesse",
        json={"code": "P-1001", "description": "Bonifica Rho", "wbs_element": "P-1001.01"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    return r.json()


def _receipt(client, headers, **overrides):
    payload = {"date": "2024-03-05", "amount": 42.5, "text": "Pranzo cantiere", "image_data": PNG_DATA_URL}
    payload.update(overrides)
    return client.post("/api/receipts", json=payload, headers=headers)


def test_create_receipt(client, staff_headers, commessa):
    r = _receipt(client, staff_headers, commessa_id=commessa["id"], participants=["Giulia", " ", "Luca "])
    assert r.status_code == 201
    body = r.json()
    assert body["amount"] == 42.5
    assert body["image_data"] == PNG_DATA_URL
    assert body["image_url"] is None
    assert body["commessa"]["code"] == "P-1001"
    assert body["participants"] == ["Giulia", "Luca"]
    assert body["created_by_id"] is not None


def test_commessa_is_a_snapshot(client, staff_headers, admin_headers, commessa, tmp_path):
    r = _receipt(client, staff_headers, commessa_id=commessa["id"])
    receipt_id = r.json()["id"]

    upload = tmp_path / "commesse.json"
    upload.write_text('[{"CodiceProgettoSAP": "P-1001", "Descrizione": "Renamed"}]')
    with upload.open("rb") as fh:
        r = client.post(
            "/api/commesse/import",
            files={"file": ("commesse.json", fh, "application/json")},
            headers=admin_headers,
        )
    assert r.json()["updated"] == 1

    stored = client.get(f"/api/receipts/{receipt_id}", headers=staff_headers).json()
    assert stored["commessa"]["description"] == "Bonifica Rho"


def test_create_receipt_missing_fields_is_400(client, staff_headers):
    r = client.post("/api/receipts", json={"amount": 10}, headers=staff_headers)
    assert r.status_code == 400


@pytest.mark.parametrize("image", [
    "not-a-data-url",
    "data:application/pdf;base64,JVBERi0=",
    "data:image/png;base64,@@@not-base64@@@",
])
def test_create_receipt_bad_image_is_400(client, staff_headers, image):
    assert _receipt(client, staff_headers, image_data=image).status_code == 400


def test_create_receipt_unknown_commessa_is_404(client, staff_headers):
    assert _receipt(client, staff_headers, commessa_id=999).status_code == 404


def test_list_is_ordered_and_filtered_by_date(client, staff_headers):
    for d in ["2024-03-10", "2024-03-01", "2024-04-02"]:
        _receipt(client, staff_headers, date=d)

    dates = [r["date"] for r in client.get("/api/receipts", headers=staff_headers).json()]
    assert dates == ["2024-03-01", "2024-03-10", "2024-04-02"]

    r = client.get("/api/receipts", params={"start_date": "2024-03-01", "end_date": "2024-03-10"}, headers=staff_headers)
    assert [x["date"] for x in r.json()] == ["2024-03-01", "2024-03-10"]

    r = client.get("/api/receipts", params={"start_date": "2024-04-01", "end_date": "2024-03-01"}, headers=staff_headers)
    assert r.status_code == 400


def test_delete_twice(client, staff_headers):
    receipt_id = _receipt(client, staff_headers).json()["id"]

    r = client.delete(f"/api/receipts/{receipt_id}", headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["id"] == receipt_id

    ids = [x["id"] for x in client.get("/api/receipts", headers=staff_headers).json()]
    assert receipt_id not in ids

    assert client.delete(f"/api/receipts/{receipt_id}", headers=staff_headers).status_code == 404


def test_stats(client, staff_headers):
    empty = client.get("/api/receipts/stats", headers=staff_headers).json()
    assert empty == {"total_receipts": 0, "total_amount": 0.0, "last_receipt_date": None}

    _receipt(client, staff_headers, date="2024-03-01", amount=10.25)
    _receipt(client, staff_headers, date="2024-03-09", amount=5.5)
    stats = client.get("/api/receipts/stats", headers=staff_headers).json()
    assert stats["total_receipts"] == 2
    assert stats["total_amount"] == 15.75
    assert stats["last_receipt_date"] == "2024-03-09"


def test_single_receipt_pdf(client, staff_headers, commessa):
    receipt_id = _receipt(client, staff_headers, commessa_id=commessa["id"]).json()["id"]
    r = client.get(f"/api/receipts/{receipt_id}/pdf", headers=staff_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


def test_receipt_pdf_missing_is_404(client, staff_headers):
    assert client.get("/api/receipts/12345/pdf", headers=staff_headers).status_code == 404


def test_period_report_pdf(client, staff_headers):
    for i in range(6):
        _receipt(client, staff_headers, date=f"2024-05-{i + 1:02d}", amount=i + 1)
    r = client.get(
        "/api/receipts/report",
        params={"start_date": "2024-05-01", "end_date": "2024-05-31"},
        headers=staff_headers,
    )
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")


def test_receipt_image_goes_to_blob_storage_when_configured(client, staff_headers, blob_service):
    r = _receipt(client, staff_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["image_data"] is None
    assert body["image_url"].startswith("https://cdn.example.com/")
    assert body["image_url"].endswith(".png")

    (upload,) = blob_service.requests
    assert upload.method == "PUT"
    assert str(upload.url).startswith("https://blob.example.com/api/receipts/")
    assert upload.headers["authorization"] == "Bearer blob-token"
    assert upload.headers["content-type"] == "image/png"
    assert upload.content == base64.b64decode(PNG_B64)


def test_blob_service_error_is_500_and_nothing_is_saved(client, staff_headers, blob_service):
    blob_service.status_code = 503
    r = _receipt(client, staff_headers)
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Blob upload failed:")
    assert "503" in r.json()["detail"]
    assert client.get("/api/receipts", headers=staff_headers).json() == []


def test_blob_reply_without_url_is_500(client, staff_headers, blob_service):
    blob_service.body = {"stored": True}
    r = _receipt(client, staff_headers)
    assert r.status_code == 500
    assert r.json()["detail"] == "Blob upload failed: no URL in response"


def test_database_error_is_500_with_driver_message(client, staff_headers, monkeypatch):
    from fieldportal.api.routes import receipts

    def _locked(*args, **kwargs):
        raise OperationalError("SELECT * FROM receipts", {}, Exception("database is locked"))

    monkeypatch.setattr(receipts, "_in_range", _locked)
    r = client.get("/api/receipts", headers=staff_headers)
    assert r.status_code == 500
    assert r.json() == {"detail": "database is locked"}


def test_integrity_error_is_400_with_driver_message(client, staff_headers, monkeypatch):
    from fieldportal.api.routes import receipts

    def _duplicate(*args, **kwargs):
        raise IntegrityError("INSERT INTO receipts", {}, Exception("UNIQUE constraint failed: receipts.id"))

    monkeypatch.setattr(receipts, "_in_range", _duplicate)
    r = client.get("/api/receipts", headers=staff_headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "UNIQUE constraint failed: receipts.id"}
