from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container
from ..core.exceptions import ValidationError
from ..identity.guard import require_verified
from .model import CustomerInfo


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    payments = container.payment_service
    reports = container.payroll_report_service

    def identity():
        return container.identity_provider.resolve(request.headers)

    def period(data: dict):
        try:
            year, month = int(data.get("year")), int(data.get("month"))
        except (TypeError, ValueError):
            raise ValidationError("year and month are required")
        return str(data.get("worker_id") or ""), year, month

    def proof_of(data: dict) -> dict:
        proof = data.get("proof") or {}
        if not isinstance(proof, dict):
            raise ValidationError("proof must be an object")
        return proof

    @app.route("/api/payments/orders", methods=["POST"], endpoint="payment_order")
    def payment_order():
        data = json_body()
        caller = identity()
        worker_id, year, month = period(data)
        record = attendance.get(caller, worker_id, year, month)
        summary = attendance.compute_summary(record)
        customer = data.get("customer") or {}

        attempt, order = payments.open_order(
            caller,
            summary,
            method=str(data.get("method") or ""),
            worker_name=data.get("worker_name"),
            employer_name=data.get("employer_name"),
            customer=CustomerInfo(
                name=customer.get("name"),
                email=customer.get("email"),
                phone=customer.get("phone"),
                worker_name=data.get("worker_name"),
            ),
        )
        return jsonify(
            {
                "success": True,
                "order": {
                    "id": order.order_id,
                    "method": order.method.value,
                    "amount": order.amount,
                    "currency": order.currency,
                    "receipt": order.receipt,
                    "status": order.status,
                    "redirectUrl": order.redirect_url,
                },
                "workDays": attempt.work_days,
                "workPeriod": attempt.work_period,
            }
        ), 201

    @app.route("/api/payments/confirm", methods=["POST"], endpoint="payment_confirm")
    def payment_confirm():
        data = json_body()
        caller = require_verified(identity())
        worker_id, year, month = period(data)
        key = attendance.period_key(caller, worker_id, year, month)
        result = payments.confirm(caller, key, order_id=str(data.get("order_id") or ""), proof=proof_of(data))
        return jsonify(result.to_dict()), 200 if result.success else 402

    @app.route("/api/payments/reconcile", methods=["POST"], endpoint="payment_reconcile")
    def payment_reconcile():
        data = json_body()
        caller = require_verified(identity())
        worker_id, year, month = period(data)
        key = attendance.period_key(caller, worker_id, year, month)
        result = payments.reconcile(caller, key)
        return jsonify(result.to_dict()), 200 if result.success else 402

    @app.route("/api/payments/history", methods=["GET"], endpoint="payment_history")
    def payment_history():
        history = reports.history(identity(), as_role=request.args.get("as", "employer"))
        return jsonify({"success": True, "payments": [p.to_dict() for p in history.payments], "total": history.total})

    @app.route("/api/payments/audit", methods=["GET"], endpoint="payment_audit")
    def payment_audit():
        issues = reports.audit_employer(identity())
        return jsonify(
            {
                "success": True,
                "issues": [
                    {"paymentId": i.payment_record_id, "periodKey": i.period_key, "problem": i.problem} for i in issues
                ],
            }
        )
