def _job_id(client, headers):
    cust = client.post("/api/customers", json={"name": "Mat Owner"}, headers=headers).json()
    return client.post("/api/jobs", json={"customer_id": cust["id"], "title": "Deck"}, headers=headers).json()["id"]


def test_add_and_list_materials(client, auth_headers):
    job_id = _job_id(client, auth_headers)
    r = client.post(f"/api/jobs/{job_id}/materials", json={"item_name": "2x6 boards", "quantity": 40}, headers=auth_headers)
    assert r.status_code == 200, r.text
    mat = r.json()
    assert mat["job_id"] == job_id
    assert mat["unit"] == "each"
    assert mat["purchased"] is False
    assert mat["id"].startswith("mat-")

    client.post(
        f"/api/jobs/{job_id}/materials",
        json={"item_name": "Screws", "quantity": 2, "unit": "box", "purchased": True},
        headers=auth_headers,
    )
    items = client.get(f"/api/jobs/{job_id}/materials", headers=auth_headers).json()
    assert {m["item_name"] for m in items} == {"2x6 boards", "Screws"}


def test_material_validation(client, auth_headers):
    job_id = _job_id(client, auth_headers)
    r = client.post(f"/api/jobs/{job_id}/materials", json={"quantity": 1}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Item name and quantity are required"}
    r = client.post(f"/api/jobs/{job_id}/materials", json={"item_name": "Nails"}, headers=auth_headers)
    assert r.status_code == 400


def test_material_for_missing_job_404(client, auth_headers):
    r = client.post("/api/jobs/job-missing/materials", json={"item_name": "x", "quantity": 1}, headers=auth_headers)
    assert r.status_code == 404
    assert client.get("/api/jobs/job-missing/materials", headers=auth_headers).status_code == 404


def test_update_and_delete_material(client, auth_headers):
    job_id = _job_id(client, auth_headers)
    mat = client.post(
        f"/api/jobs/{job_id}/materials", json={"item_name": "Paint", "quantity": 3, "unit": "gal"}, headers=auth_headers
    ).json()

    r = client.put(
        f"/api/materials/{mat['id']}",
        json={"item_name": "Paint", "quantity": 4, "purchased": True},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["quantity"] == 4
    assert r.json()["purchased"] is True
    assert r.json()["unit"] == "each"

    assert client.delete(f"/api/materials/{mat['id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/materials/{mat['id']}", headers=auth_headers).status_code == 404
    assert client.put(
        f"/api/materials/{mat['id']}", json={"item_name": "x", "quantity": 1}, headers=auth_headers
    ).status_code == 404


def test_deleting_job_removes_materials(client, auth_headers):
    job_id = _job_id(client, auth_headers)
    client.post(f"/api/jobs/{job_id}/materials", json={"item_name": "Tile", "quantity": 100}, headers=auth_headers)
    client.delete(f"/api/jobs/{job_id}", headers=auth_headers)
    assert client.get(f"/api/jobs/{job_id}/materials", headers=auth_headers).status_code == 404
