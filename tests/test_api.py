import smtplib

from conftest import PASSWORD, login
from config import settings
from db import SessionLocal, init_db
from models.user import Account


def _stored_status(email):
    session = SessionLocal()
    try:
        return session.query(Account).filter(Account.email == email).one().status
    finally:
        session.close()


def test_anonymous_api_call_is_refused(client):
    assert client.get("/api/risks").status_code == 401
    assert client.get("/api/risk-matrix").status_code == 200


def test_registration_to_login(client, admin_client):
    resp = client.post(
        "/api/auth/register",
        json={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com", "password": PASSWORD},
    )
    assert resp.status_code == 201
    assert resp.json()["account"]["status"] == "pending"
    account_id = resp.json()["account"]["id"]

    pending = admin_client.get("/api/admin/access-requests").json()
    assert [a["id"] for a in pending] == [account_id]

    resp = admin_client.post(f"/api/admin/access-requests/{account_id}/approve", json={"role": "Risk Owner"})
    assert resp.status_code == 200
    assert resp.json()["granted_sections"] == ["overview", "risk_management", "reports"]

    again = admin_client.post(f"/api/admin/access-requests/{account_id}/approve", json={"role": "Risk Owner"})
    assert again.status_code == 409

    client.get("/api/auth/logout")
    assert login(client, "ada@example.com").status_code == 200
    access = client.get("/api/user/dashboard-access").json()
    assert access["role"] == "Risk Owner"
    assert access["sections"] == ["overview", "risk_management", "reports"]
    assert access["section_details"][0]["display_name"] == "Overview"


def test_pending_account_cannot_sign_in(client, make_account):
    account = make_account()
    assert login(client, account.email).status_code == 403
    assert login(client, account.email, "wrong").status_code == 401


def test_duplicate_registration_names_field(client, make_account):
    make_account(email="taken@example.com")
    resp = client.post(
        "/api/auth/register",
        json={"first_name": "A", "last_name": "B", "email": "taken@example.com", "password": PASSWORD},
    )
    assert resp.status_code == 422
    assert resp.json()["field"] == "email"


def test_section_gate_applies_to_risk_api(client, make_account):
    account = make_account(role="Admin")
    login(client, account.email)
    assert client.get("/api/risks").status_code == 403
    assert client.get("/api/dashboard/overview").status_code == 200


def test_gate_reads_stored_sections_not_session_role(client, db, make_account):
    account = make_account(role="User")
    login(client, account.email)
    assert client.get("/api/risks").status_code == 200

    account.granted_sections = ["overview"]
    db.commit()
    assert client.get("/api/risks").status_code == 403


def test_evaluation_workflow_over_http(client, make_account):
    reporter = make_account(role="User")
    owner = make_account(role="Risk Owner")

    login(client, reporter.email)
    resp = client.post(
        "/api/risks",
        json={"title": "Spill", "description": "Tank overflow near river", "category": "Environmental"},
    )
    assert resp.status_code == 201
    code = resp.json()["code"]
    assert resp.json()["status"] == "Submitted"
    assert resp.json()["score"] is None

    client.get("/api/auth/logout")
    login(client, owner.email)
    assert client.post(f"/api/risks/{code}/review").json()["status"] == "In Review"

    incomplete = client.post(
        f"/api/risks/{code}/evaluate",
        json={"outcome": "Mitigated", "category": "Environmental", "likelihood": 0.2, "impact": 0.5,
              "severity": "Medium"},
    )
    assert incomplete.status_code == 422
    assert incomplete.json()["field"] == "assessment_notes"
    assert client.get(f"/api/risks/{code}").json()["status"] == "In Review"

    resp = client.post(
        f"/api/risks/{code}/evaluate",
        json={"outcome": "Mitigated", "category": "Environmental", "likelihood": 0.2, "impact": 0.5,
              "severity": "Medium", "assessment_notes": "reviewed"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "Mitigated"
    assert float(body["score"]) == 0.1
    assert body["level"] == "Medium"
    assert body["evaluated_by_id"] == owner.id

    assert client.delete(f"/api/risks/{code}").status_code == 409
    assert client.post(f"/api/risks/{code}/evaluate", json={"outcome": "Escalated"}).status_code == 409


def test_self_service_risk_over_http(client, make_account):
    account = make_account(role="User")
    login(client, account.email)
    resp = client.post(
        "/api/risks",
        json={"title": "Late vendor", "description": "Vendor slips", "category": "Time/Schedule",
              "flow": "self_service", "likelihood": 0.4, "impact": 0.9, "review_date": "2026-12-01"},
    )
    assert resp.status_code == 201
    code = resp.json()["code"]
    assert resp.json()["level"] == "Critical"
    assert resp.json()["owner_id"] == account.id

    resp = client.put(f"/api/risks/{code}/assessment", json={"category": "Financial"})
    assert resp.json()["impact"] is None and resp.json()["level"] is None

    assert client.patch(f"/api/risks/{code}/status", json={"status": "resolved"}).json()["status"] == "resolved"
    assert client.patch(f"/api/risks/{code}/status", json={"status": "Mitigated"}).status_code == 422

    listed = client.get("/api/risks", params={"flow": "self_service"}).json()
    assert [r["code"] for r in listed] == [code]

    assert client.delete(f"/api/risks/{code}").json() == {"ok": True}
    assert client.get(f"/api/risks/{code}").status_code == 404


def test_bulk_approve_over_http(admin_client, make_account):
    account = make_account()
    resp = admin_client.post(
        "/api/admin/access-requests/bulk-approve",
        json={"account_ids": [account.id, 9999], "role": "Auditor"},
    )
    assert resp.status_code == 200
    first, second = resp.json()
    assert first["ok"] and first["account"]["role"] == "Auditor"
    assert not second["ok"] and second["error"]["type"] == "NotFoundError"


def test_bulk_reject_and_revocation(admin_client, make_account):
    approved = make_account(role="User")
    pending = make_account()
    resp = admin_client.post(
        "/api/admin/access-requests/bulk-reject", json={"account_ids": [approved.id, pending.id]}
    )
    assert [item["ok"] for item in resp.json()] == [True, True]
    rejected = admin_client.get("/api/admin/access-requests", params={"status": "rejected"}).json()
    assert {a["id"] for a in rejected} == {approved.id, pending.id}
    assert all(a["role"] is None for a in rejected)


def test_custom_role_has_no_default_sections(admin_client, make_account):
    resp = admin_client.post("/api/admin/roles", json={"name": "Contractor"})
    assert resp.status_code == 201
    assert resp.json()["default_sections"] == [] and not resp.json()["in_catalog"]

    roles = {r["name"]: r for r in admin_client.get("/api/admin/roles").json()}
    assert roles["Risk Owner"]["default_sections"] == ["overview", "risk_management", "reports"]

    account = make_account()
    resp = admin_client.post(f"/api/admin/access-requests/{account.id}/approve", json={"role": "Contractor"})
    assert resp.json()["granted_sections"] == []

    revoked = admin_client.post(f"/api/admin/access-requests/{account.id}/reject")
    assert revoked.status_code == 200
    assert admin_client.post("/api/admin/access-requests/4242/reject").status_code == 404


def test_overview_counts(admin_client, make_account):
    make_account()
    admin_client.post("/api/risks", json={"title": "T", "description": "D", "category": "Other"})
    stats = admin_client.get("/api/dashboard/overview").json()
    assert stats["total_risks"] == 1
    assert stats["unscored_risks"] == 1
    assert stats["risks_by_status"] == {"Submitted": 1}
    assert stats["pending_requests"] == 1


def test_approval_email_is_sent_when_mail_is_configured(admin_client, make_account, monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port):
            sent.append((host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            pass

        def login(self, user, password):
            pass

        def sendmail(self, sender, to, message):
            sent.append((sender, to, message))

    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.test")
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    account = make_account(email="mailme@example.com")
    resp = admin_client.post(f"/api/admin/access-requests/{account.id}/approve", json={"role": "User"})
    assert resp.status_code == 200
    assert sent[0] == ("smtp.test", 587)
    assert sent[1][1] == "mailme@example.com"
    assert "approved" in sent[1][2]


def test_mail_failure_does_not_undo_approval(admin_client, make_account, monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.test")
    monkeypatch.setattr(smtplib, "SMTP", broken)

    account = make_account()
    resp = admin_client.post(f"/api/admin/access-requests/{account.id}/approve", json={"role": "User"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert _stored_status(account.email) == "approved"


def test_bootstrap_admin_can_approve_first_registration(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "root@example.com")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "bootstrap-pass")
    init_db()
    init_db()
    session = SessionLocal()
    try:
        assert session.query(Account).count() == 1
    finally:
        session.close()

    resp = client.post(
        "/api/auth/register",
        json={"first_name": "First", "last_name": "User", "email": "first@example.com", "password": PASSWORD},
    )
    first_id = resp.json()["account"]["id"]
    assert login(client, "first@example.com").status_code == 403

    assert login(client, "root@example.com", "bootstrap-pass").status_code == 200
    resp = client.post(f"/api/admin/access-requests/{first_id}/approve", json={"role": "User"})
    assert resp.status_code == 200

    client.get("/api/auth/logout")
    assert login(client, "first@example.com").status_code == 200
