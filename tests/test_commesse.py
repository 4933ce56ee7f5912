import json


def _import(client, headers, rows, content_type="application/json"):
    return client.post(
        "/api/commesse/import",
        files={"file": ("commesse.json", json.dumps(rows).encode("utf-8"), content_type)},
        headers=headers,
    )


def test_list_sorted_by_code(client, admin_headers, staff_headers):
    for code in ["P-300", "P-100", "P-200"]:
        client.post("/api/commesse", json={"code": code, "description": code}, headers=admin_headers)
    codes = [c["code"] for c in client.get("/api/commesse", headers=staff_headers).json()]
    assert codes == ["P-100", "P-200", "P-300"]


def test_create_is_admin_only(client, staff_headers):
    r = client.post("/api/commesse", json={"code": "P-1", "description": "x"}, headers=staff_headers)
    assert r.status_code == 403


def test_duplicate_code_is_400(client, admin_headers):
    client.post("/api/commesse", json={"code": "P-1", "description": "x"}, headers=admin_headers)
    r = client.post("/api/commesse", json={"code": "P-1", "description": "y"}, headers=admin_headers)
    assert r.status_code == 400


def test_import_creates_updates_and_reports_errors(client, admin_headers, staff_headers):
    client.post("/api/commesse", json={"code": "P-1", "description": "Old"}, headers=admin_headers)
    rows = [
        {"CodiceProgettoSAP": "P-1", "Descrizione": "New", "CodiceElementoWBS": "P-1.01"},
        {"code": "P-2", "description": "Second"},
        {"CodiceProgettoSAP": "P-3"},
        {"CodiceProgettoSAP": ["not", "a", "string"], "Descrizione": "bad"},
    ]
    r = _import(client, admin_headers, rows)
    assert r.status_code == 200
    report = r.json()
    assert report["created"] == 1
    assert report["updated"] == 1
    assert report["total"] == 4
    assert [e["index"] for e in report["errors"]] == [3, 4]

    by_code = {c["code"]: c for c in client.get("/api/commesse", headers=staff_headers).json()}
    assert by_code["P-1"]["description"] == "New"
    assert by_code["P-1"]["wbs_element"] == "P-1.01"
    assert "P-2" in by_code


def test_import_rejects_non_json(client, admin_headers):
    r = client.post(
        "/api/commesse/import",
        files={"file": ("c.csv", b"a,b", "text/csv")},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert _import(client, admin_headers, {"not": "a list"}).status_code == 400


def test_import_is_admin_only(client, staff_headers):
    assert _import(client, staff_headers, []).status_code == 403
