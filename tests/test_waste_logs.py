import base64
import os

from conftest import PNG_B64


def _form(**overrides):
    data = {
        "waste_type": "Contaminated Water",
        "description": "Spurgo PZ1",
        "eer_code": "16 10 02",
        "quantity": "200",
        "unit": "Liters",
        "storage_location": "Cisternetta area nord",
    }
    data.update(overrides)
    return data


def test_create_without_image(client, staff_headers, site):
    r = client.post(f"/api/sites/{site['id']}/waste-logs", data=_form(), headers=staff_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["waste_type"] == "Contaminated Water"
    assert body["unit"] == "Liters"
    assert body["status"] == "Stored On-Site"
    assert body["quantity"] == 200.0
    assert body["image_url"] is None


def test_create_with_image_is_stored_locally(client, staff_headers, site):
    png = base64.b64decode(PNG_B64)
    r = client.post(
        f"/api/sites/{site['id']}/waste-logs",
        data=_form(unit="m³", status="Awaiting Disposal"),
        files={"image": ("drum.png", png, "image/png")},
        headers=staff_headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["unit"] == "m³"
    assert body["status"] == "Awaiting Disposal"
    assert body["image_url"].startswith(f"/uploads/waste/{site['id']}/")
    assert body["image_url"].endswith(".png")

    from fieldportal.core.config import settings
    rel = body["image_url"][len("/uploads/"):]
    assert os.path.exists(os.path.join(settings.upload_dir, rel))


def test_non_image_upload_is_400(client, staff_headers, site):
    r = client.post(
        f"/api/sites/{site['id']}/waste-logs",
        data=_form(),
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=staff_headers,
    )
    assert r.status_code == 400


def test_unknown_enum_value_is_400(client, staff_headers, site):
    r = client.post(f"/api/sites/{site['id']}/waste-logs", data=_form(unit="barrels"), headers=staff_headers)
    assert r.status_code == 400


def test_missing_site_is_404(client, staff_headers):
    assert client.post("/api/sites/999/waste-logs", data=_form(), headers=staff_headers).status_code == 404


def test_list_newest_first(client, staff_headers, site, db):
    from datetime import datetime, timezone
    from fieldportal.models.waste_log import WasteLog

    url = f"/api/sites/{site['id']}/waste-logs"
    first = client.post(url, data=_form(description="first"), headers=staff_headers).json()
    client.post(url, data=_form(description="second"), headers=staff_headers)

    row = db.get(WasteLog, first["id"])
    row.date_generated = datetime(2020, 1, 1, tzinfo=timezone.utc)
    db.commit()

    logs = client.get(url, headers=staff_headers).json()
    assert [x["description"] for x in logs] == ["second", "first"]


def test_create_with_image_goes_to_blob_storage(client, staff_headers, site, blob_service):
    png = base64.b64decode(PNG_B64)
    r = client.post(
        f"/api/sites/{site['id']}/waste-logs",
        data=_form(),
        files={"image": ("drum.png", png, "image/png")},
        headers=staff_headers,
    )
    assert r.status_code == 201
    assert r.json()["image_url"].startswith("https://cdn.example.com/")

    (upload,) = blob_service.requests
    assert f"/api/waste/{site['id']}/" in upload.url.path
    assert upload.content == png


def test_blob_service_error_is_500_and_no_log_is_saved(client, staff_headers, site, blob_service):
    blob_service.status_code = 502
    url = f"/api/sites/{site['id']}/waste-logs"
    r = client.post(
        url,
        data=_form(),
        files={"image": ("drum.png", base64.b64decode(PNG_B64), "image/png")},
        headers=staff_headers,
    )
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Blob upload failed:")
    assert client.get(url, headers=staff_headers).json() == []
