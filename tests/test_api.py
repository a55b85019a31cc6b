import pytest

from rozgar_payroll.config import testing as testing_settings
from rozgar_payroll.container import build_container
from rozgar_payroll.core.enums import PaymentMethod
from rozgar_payroll.main import create_app

EMPLOYER = {"X-User-Id": "emp-1", "X-Email-Verified": "true", "X-User-Email": "owner@example.com"}
WORKER = {"X-User-Id": "wrk-1", "X-Email-Verified": "1", "X-User-Email": "ravi@example.com", "X-User-Name": "Ravi"}
PERIOD = {"worker_id": "wrk-1", "year": 2025, "month": 1}


@pytest.fixture
def http(gateway):
    container = build_container(testing_settings, gateways={PaymentMethod.RAZORPAY: gateway})
    app = create_app(testing_settings, container=container)
    return app.test_client()


def _open_month(http):
    return http.get("/api/attendance/wrk-1/2025/1?daily_rate=500&job_title=Mason", headers=EMPLOYER)


def _mark(http, day, status="present", **extra):
    return http.post("/api/attendance/wrk-1/2025/1/days", json={"date": day, "status": status, **extra}, headers=EMPLOYER)


def test_attendance_month_and_marking(http):
    resp = _open_month(http)
    assert resp.status_code == 200
    record = resp.get_json()["record"]
    assert record["id"] == "emp-1_wrk-1_2025_1"
    assert record["attendance"] == {}
    assert record["summary"] == {"workDays": 0, "totalAmount": 0, "payable": False}

    _mark(http, "2025-01-02")
    resp = _mark(http, "2025-01-03")

    record = resp.get_json()["record"]
    assert record["attendance"] == {"2025-01-02": "present", "2025-01-03": "present"}
    assert record["summary"]["totalAmount"] == 1000
    assert record["markers"]["2025-01-02"]["marker"] == "green"


def test_stale_version_conflicts(http):
    version = _open_month(http).get_json()["record"]["version"]
    _mark(http, "2025-01-02")

    resp = _mark(http, "2025-01-02", "absent", expected_version=version)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "concurrent_update"


def test_future_date_is_bad_request(http):
    http.get("/api/attendance/wrk-1/2099/1?daily_rate=500", headers=EMPLOYER)

    resp = http.post("/api/attendance/wrk-1/2099/1/days", json={"date": "2099-01-05", "status": "present"}, headers=EMPLOYER)

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_underscore_ids_cannot_reach_another_employers_period(http):
    owner = {"X-User-Id": "a_b", "X-Email-Verified": "true"}
    other = {"X-User-Id": "a", "X-Email-Verified": "true"}

    created = http.get("/api/attendance/c/2025/1?daily_rate=900", headers=owner)
    resp = http.get("/api/attendance/b_c/2025/1?daily_rate=500", headers=other)

    assert created.status_code == 400
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_unverified_and_anonymous_callers(http):
    unverified = {"X-User-Id": "emp-1", "X-Email-Verified": "false"}

    assert http.get("/api/attendance/wrk-1/2025/1?daily_rate=500", headers=unverified).get_json()["error"] == "verify_account"
    assert http.get("/api/attendance/wrk-1/2025/1?daily_rate=500").status_code == 401


def test_pay_period_via_client_checkout(http, gateway):
    _open_month(http)
    _mark(http, "2025-01-02")
    _mark(http, "2025-01-03")

    resp = http.post("/api/payments/orders", json={**PERIOD, "method": "razorpay", "worker_name": "Ravi"}, headers=EMPLOYER)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["order"]["id"] == "order_1"
    assert body["order"]["amount"] == 1000
    assert body["workDays"] == 2
    assert body["workPeriod"] == "January 2025"

    resp = http.post(
        "/api/payments/confirm",
        json={**PERIOD, "order_id": "order_1", "proof": {"payment_id": "pay_1"}},
        headers=EMPLOYER,
    )
    assert resp.status_code == 200
    payment = resp.get_json()["payment"]
    assert payment["amount"] == 1000
    assert payment["workPeriod"] == "January 2025"

    again = http.post("/api/payments/orders", json={**PERIOD, "method": "razorpay"}, headers=EMPLOYER)
    assert again.status_code == 409
    assert again.get_json()["error"] == "duplicate_payment"
    assert len(gateway.orders) == 1

    history = http.get("/api/payments/history", headers=EMPLOYER).get_json()
    assert history["total"] == 1000
    earned = http.get("/api/payments/history?as=worker", headers=WORKER).get_json()
    assert [p["periodKey"] for p in earned["payments"]] == ["emp-1_wrk-1_2025_1"]

    assert http.get("/api/payments/audit", headers=EMPLOYER).get_json()["issues"] == []


def test_nothing_to_pay(http, gateway):
    _open_month(http)

    resp = http.post("/api/payments/orders", json={**PERIOD, "method": "razorpay"}, headers=EMPLOYER)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "nothing_to_pay"
    assert gateway.orders == []


def test_rejected_confirmation_is_payment_required(http):
    _open_month(http)
    _mark(http, "2025-01-02")
    http.post("/api/payments/orders", json={**PERIOD, "method": "razorpay"}, headers=EMPLOYER)

    resp = http.post("/api/payments/confirm", json={**PERIOD, "order_id": "order_1", "proof": {}}, headers=EMPLOYER)

    assert resp.status_code == 402
    assert resp.get_json()["success"] is False


def test_reconcile_without_attempt_is_not_found(http):
    _open_month(http)

    resp = http.post("/api/payments/reconcile", json=PERIOD, headers=EMPLOYER)

    assert resp.status_code == 404


def test_application_workflow(http):
    resp = http.post(
        "/api/applications",
        json={"job_id": "job-1", "employer_id": "emp-1", "job_title": "Mason", "employer_email": "owner@example.com"},
        headers=WORKER,
    )
    assert resp.status_code == 201
    application_id = resp.get_json()["application"]["id"]

    accepted = http.post(f"/api/applications/{application_id}/accept", headers=EMPLOYER)
    assert accepted.get_json()["application"]["status"] == "accepted"

    again = http.post(f"/api/applications/{application_id}/reject", headers=EMPLOYER)
    assert again.status_code == 409

    mine = http.get("/api/applications?current=1", headers=WORKER).get_json()["applications"]
    assert [a["id"] for a in mine] == [application_id]

    assert http.post(f"/api/applications/{application_id}/promote", headers=EMPLOYER).status_code == 404
    assert http.get(f"/api/applications/{application_id}", headers={"X-User-Id": "x", "X-Email-Verified": "1"}).status_code == 403


def test_unknown_route_is_json(http):
    resp = http.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
