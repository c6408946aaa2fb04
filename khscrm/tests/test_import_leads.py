from khscrm import crud, models

LEAD = {
    "name": "Kai Nakamura",
    "email": "kai@example.com",
    "phone": "8085550101",
    "street_address": "12 Ala Moana Blvd",
    "city": "Honolulu",
    "zip_code": "96814",
    "subject_line": "Quote request: kitchen cabinets",
    "email_body": "Customer wants shaker cabinets installed.",
    "job_type": "Kitchen",
    "attachments": [{"filename": "plan.pdf"}],
}


def _lead(client, headers, **overrides):
    r = client.post("/api/import-leads", json={**LEAD, **overrides}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_create_and_fetch_lead(client, auth_headers):
    lead = _lead(client, auth_headers)
    assert lead["status"] == "pending"
    assert lead["state"] == "HI"
    assert lead["attachments"] == [{"filename": "plan.pdf"}]

    r = client.get(f"/api/import-leads/{lead['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["email_body"] == LEAD["email_body"]
    assert client.get("/api/import-leads/lead-missing", headers=auth_headers).status_code == 404


def test_create_lead_requires_name(client, auth_headers):
    r = client.post("/api/import-leads", json={"email": "x@example.com"}, headers=auth_headers)
    assert r.status_code == 400


def test_blank_lead_name_rejected(client, auth_headers):
    r = client.post("/api/import-leads", json={**LEAD, "name": "   "}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Name is required"}

    lead = _lead(client, auth_headers)
    r = client.put(f"/api/import-leads/{lead['id']}", json={"name": "\t "}, headers=auth_headers)
    assert r.status_code == 400
    assert client.get(f"/api/import-leads/{lead['id']}", headers=auth_headers).json()["name"] == LEAD["name"]


def test_blank_name_skips_name_address_match(db_session):
    lead = models.ImportLead(name="   ", street_address="12 Ala Moana Blvd")
    assert crud._find_customer_for_lead(db_session, lead) is None


def test_approve_creates_customer_and_job(client, auth_headers, db_session):
    lead = _lead(client, auth_headers)
    r = client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True

    customer = db_session.get(models.Customer, body["customerId"])
    assert customer.name == "Kai Nakamura"
    assert customer.reference == "Supplier Import"
    assert customer.customer_type == "CURRENT"
    assert customer.address == "12 Ala Moana Blvd, Honolulu, HI 96814"

    job = db_session.get(models.Job, body["jobId"])
    assert job.customer_id == customer.id
    assert job.title == "Kitchen"
    assert job.status == "QUOTED"
    assert job.description == LEAD["email_body"]

    stored = client.get(f"/api/import-leads/{lead['id']}", headers=auth_headers).json()
    assert stored["status"] == "approved"
    assert stored["customer_id"] == customer.id
    assert stored["job_id"] == job.id
    assert stored["processed_at"]
    assert stored["processed_by"]

    again = client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers)
    assert again.status_code == 400
    assert again.json() == {"error": "Lead already processed"}


def test_approve_reuses_customer_with_same_email(client, auth_headers, db_session):
    existing = client.post(
        "/api/customers", json={"name": "K. Nakamura", "email": "kai@example.com"}, headers=auth_headers
    ).json()
    lead = _lead(client, auth_headers)
    body = client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers).json()
    assert body["customerId"] == existing["id"]
    assert db_session.query(models.Customer).count() == 1


def test_approve_missing_lead_404(client, auth_headers):
    assert client.post("/api/import-leads/lead-missing/approve", headers=auth_headers).status_code == 404


def test_reject_appends_reason(client, auth_headers):
    lead = _lead(client, auth_headers, notes="Called twice")
    r = client.post(f"/api/import-leads/{lead['id']}/reject", json={"reason": "Out of area"}, headers=auth_headers)
    assert r.status_code == 200
    stored = client.get(f"/api/import-leads/{lead['id']}", headers=auth_headers).json()
    assert stored["status"] == "rejected"
    assert stored["notes"] == "Called twice\nRejection reason: Out of area"

    # Processed leads cannot be edited or rejected again
    assert client.post(f"/api/import-leads/{lead['id']}/reject", json={}, headers=auth_headers).status_code == 404
    assert client.put(f"/api/import-leads/{lead['id']}", json={"name": "x"}, headers=auth_headers).status_code == 404


def test_update_pending_lead(client, auth_headers):
    lead = _lead(client, auth_headers)
    r = client.put(
        f"/api/import-leads/{lead['id']}",
        json={"name": "Kai N.", "city": "Kailua", "job_type": "Bathroom"},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text
    stored = client.get(f"/api/import-leads/{lead['id']}", headers=auth_headers).json()
    assert stored["name"] == "Kai N."
    assert stored["city"] == "Kailua"
    assert stored["job_type"] == "Bathroom"
    assert stored["state"] == "HI"
    # Fields outside the editable set are kept
    assert stored["subject_line"] == LEAD["subject_line"]


def test_list_by_status_and_stats(client, auth_headers):
    a = _lead(client, auth_headers, name="A")
    b = _lead(client, auth_headers, name="B", email="b@example.com")
    _lead(client, auth_headers, name="C", email="c@example.com")
    client.post(f"/api/import-leads/{a['id']}/approve", headers=auth_headers)
    client.post(f"/api/import-leads/{b['id']}/reject", json={"reason": "spam"}, headers=auth_headers)

    pending = client.get("/api/import-leads", headers=auth_headers).json()
    assert [l["name"] for l in pending] == ["C"]
    everything = client.get("/api/import-leads", params={"status": "all"}, headers=auth_headers).json()
    assert len(everything) == 3

    stats = client.get("/api/import-leads/stats/summary", headers=auth_headers).json()
    assert stats == {"total": 3, "pending": 1, "approved": 1, "rejected": 1}


def test_delete_lead(client, auth_headers):
    lead = _lead(client, auth_headers)
    assert client.delete(f"/api/import-leads/{lead['id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/import-leads/{lead['id']}", headers=auth_headers).status_code == 404


def test_approve_matches_by_last_name_and_street(client, auth_headers, db_session):
    existing = client.post(
        "/api/customers", json={"name": "Bob Xay", "address": "1aMain St, Honolulu"}, headers=auth_headers
    ).json()
    lead = _lead(client, auth_headers, name="Ann Xay", email="ann@example.com", street_address="1aMain")
    body = client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers).json()
    assert body["customerId"] == existing["id"]


def test_approve_treats_wildcards_in_lead_literally(client, auth_headers, db_session):
    client.post("/api/customers", json={"name": "Bob Xay", "address": "1aMain St, Honolulu"}, headers=auth_headers)
    lead = _lead(client, auth_headers, name="Ann X_y", email="ann@example.com", street_address="1_Main")
    client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers)
    lead = _lead(client, auth_headers, name="Cy %", email="cy@example.com", street_address="%")
    client.post(f"/api/import-leads/{lead['id']}/approve", headers=auth_headers)
    assert db_session.query(models.Customer).count() == 3
