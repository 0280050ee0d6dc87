from backend.seniors_api.database import Remark


SENIOR_FORM = {
    "firstname": "Carmen",
    "lastname": "Reyes",
    "contact_no": "09171112222",
    "emergency_no": "09173334444",
    "age": "83",
    "gender": "female",
    "barangay": "Poblacion",
    "purok": "Purok 2",
    "pwd": "true",
}


def _register(client, **overrides):
    form = {**SENIOR_FORM, **overrides}
    resp = client.post("/seniors", data=form)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["database"]["primary_db"] == "sqlite"


def test_register_and_fetch_senior(client):
    senior = _register(client)
    assert senior["remark"] == "NEW"
    assert senior["pwd"] is True

    resp = client.get(f"/seniors/{senior['id']}")
    assert resp.json()["firstname"] == "Carmen"
    assert client.get("/seniors", params={"name": "reyes"}).json()[0]["id"] == senior["id"]


def test_validation_errors_are_400(client):
    resp = client.post("/seniors", data={**SENIOR_FORM, "age": "45"})
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Validation error"

    resp = client.put("/benefits/application/status", json={"application_id": 1})
    assert resp.status_code == 400


def test_not_found_body(client):
    resp = client.get("/seniors/999")
    assert resp.status_code == 404
    assert resp.json()["code"] == 404


def test_release_endpoint(client):
    senior = _register(client)

    first = client.post("/seniors/release", json={"seniorId": senior["id"]})
    assert first.status_code == 200
    assert "effectively released" in first.json()["message"]

    assert client.post("/seniors/release", json={"seniorId": senior["id"]}).status_code == 409
    assert client.post("/seniors/release", json={"seniorId": 4040}).status_code == 404
    assert [s["id"] for s in client.get("/seniors/release").json()] == [senior["id"]]
    assert client.get("/seniors/release", params={"effective_only": True}).json() == []


def test_application_workflow(client):
    senior = _register(client)
    benefit = client.post("/benefits", json={"name": "Social Pension", "requirements": ["OSCA ID"]})
    assert benefit.status_code == 201
    benefit_id = benefit.json()["data"]["id"]
    assert client.post("/benefits", json={"name": "Social Pension"}).status_code == 409

    submitted = client.post("/benefits/application",
                            json={"benefit_id": benefit_id, "selected_senior_ids": [senior["id"], senior["id"]]})
    assert submitted.status_code == 201
    assert submitted.json()["created"] == 1
    app_id = submitted.json()["application_ids"][0]

    derived = client.post(f"/benefits/application/{app_id}/derive-category")
    assert derived.json()["data"]["category"] == "Octogenarian (80-89)"

    rejected = client.put("/benefits/application/status",
                          json={"application_id": app_id, "status_id": "REJECT", "rejectionReason": "No ID"})
    assert rejected.json()["data"]["rejection_reason"] == "No ID"

    approved = client.put("/benefits/application/status", json={"application_id": app_id, "status": "APPROVED"})
    assert approved.json()["data"]["status"] == "APPROVED"
    assert approved.json()["data"]["rejection_reason"] == "No ID"

    category = client.put("/categories", json={"application_id": app_id, "category_id": "CENTENARIAN"})
    assert category.json()["data"]["category"] == "Centenarian (100+)"

    listing = client.get("/benefits/application", params={"status": "APPROVED,PENDING"}).json()
    assert [a["id"] for a in listing] == [app_id]
    assert listing[0]["benefit"]["requirements"][0]["name"] == "OSCA ID"

    assert [s["id"] for s in client.get("/benefits/application/status").json()] == ["PENDING", "APPROVED", "REJECT"]
    assert client.delete("/benefits/application", params={"application_id": app_id}).status_code == 200
    assert client.delete("/benefits/application", params={"application_id": app_id}).status_code == 404


def test_fund_history_endpoints(client):
    assert client.get("/government-fund").json()["current_balance"] == 0
    assert client.put("/government-fund", json={"currentBalance": 0}).status_code == 400
    client.put("/government-fund", json={"currentBalance": 1000})

    resp = client.post(
        "/fund-history",
        data={"date": "2025-03-01", "amount": "250", "from": "Provincial Office", "availableBalance": "1000"},
        files={"receipt": ("receipt.pdf", b"%PDF", "application/pdf")},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["history"]["new_balance"] == 1250
    assert data["fund"]["current_balance"] == 1250

    deleted = client.delete("/fund-history", params={"history_id": data["history"]["id"]})
    assert deleted.json()["data"]["fund"]["current_balance"] == 1000


def test_transactions_endpoints(client):
    payload = {"date": "2025-04-01", "benefits": "Social Pension", "amount": 3000,
               "type": "released", "category": "Regular (Below 80)", "seniorName": "Carmen Reyes"}
    created = client.post("/transactions", json=payload)
    assert created.status_code == 201
    assert created.json()["data"]["senior_name"] == "Carmen Reyes"
    assert client.post("/transactions", json={**payload, "amount": 0}).status_code == 400
    assert client.get("/transactions/summary").json()["data"]["released"] == 3000


def test_notification_endpoints(client):
    senior = _register(client)
    client.put(f"/seniors/{senior['id']}", json={"remark": Remark.PENDING.value})

    listing = client.get("/notifications", params={"userId": "admin"}).json()
    assert listing["unreadCount"] == 1
    nid = listing["notifications"][0]["id"]
    assert nid == f"pending-{senior['id']}"

    assert client.post("/notifications/status", json={"userId": "admin"}).status_code == 400
    client.post("/notifications/status", json={"userId": "admin", "notificationId": nid})
    status = client.get("/notifications/status", params={"userId": "admin"}).json()
    assert status[nid]["isRead"] is True

    client.post("/seniors/release", json={"seniorId": senior["id"]})
    assert client.put("/notifications/status", json={"userId": "admin"}).json()["updated"] == 2


def test_archive_and_restore_endpoints(client):
    senior = _register(client)
    assert client.delete(f"/seniors/{senior['id']}").status_code == 200
    assert client.get("/seniors").json() == []
    assert [s["id"] for s in client.get("/seniors/archived").json()] == [senior["id"]]
    assert client.put(f"/seniors/{senior['id']}/restore").status_code == 200
    assert client.delete(f"/seniors/{senior['id']}", params={"permanent": True}).status_code == 200
    assert client.get(f"/seniors/{senior['id']}").status_code == 404


def test_dashboard_and_reports(client):
    _register(client)
    stats = client.get("/dashboard/stats").json()
    assert stats["success"] is True
    assert stats["data"]["total_seniors"] == 1
    assert client.get("/dashboard/categories").json()["success"] is True

    report = client.get("/reports/seniors.csv")
    assert report.status_code == 200
    assert report.headers["content-type"].startswith("text/csv")
    assert "Carmen" in report.text
    assert client.get("/reports/unknown.csv").status_code == 404

    audit = client.get("/audit", params={"entity": "senior"}).json()
    assert audit[0]["action"] == "register"


def test_null_remark_update_is_a_validation_error(client):
    senior = _register(client)

    resp = client.put(f"/seniors/{senior['id']}", json={"remark": None})

    assert resp.status_code == 400
    assert resp.json()["msg"] == "Validation error"
    assert client.get(f"/seniors/{senior['id']}").json()["remark"] == "NEW"
