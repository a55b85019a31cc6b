from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AttendanceRecord, AttendanceSummary


def record_view(record: AttendanceRecord, summary: AttendanceSummary, markers: dict) -> dict:
    return {
        "id": record.key.doc_id,
        "employerId": record.employer_id,
        "workerId": record.worker_id,
        "year": record.key.year,
        "month": record.key.month,
        "jobTitle": record.job_title,
        "dailyRate": record.daily_rate,
        "attendance": {day: status.value for day, status in sorted(record.attendance.items())},
        "version": record.version,
        "createdAt": record.created_at.isoformat() if record.created_at else None,
        "updatedAt": record.updated_at.isoformat() if record.updated_at else None,
        "summary": {
            "workDays": summary.work_days,
            "totalAmount": summary.total_amount,
            "payable": summary.payable,
        },
        "markers": markers,
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def identity():
        return container.identity_provider.resolve(request.headers)

    def respond(record: AttendanceRecord):
        summary = service.compute_summary(record)
        return jsonify({"success": True, "record": record_view(record, summary, service.calendar_markers(record))})

    @app.route("/api/attendance/<worker_id>/<int:year>/<int:month>", methods=["GET"], endpoint="attendance_month")
    def attendance_month(worker_id: str, year: int, month: int):
        record = service.load_or_create(
            identity(),
            worker_id=worker_id,
            year=year,
            month=month,
            daily_rate=request.args.get("daily_rate", ""),
            job_title=request.args.get("job_title", ""),
        )
        return respond(record)

    @app.route("/api/attendance/<worker_id>/<int:year>/<int:month>/days", methods=["POST"], endpoint="attendance_mark")
    def attendance_mark(worker_id: str, year: int, month: int):
        data = json_body()
        caller = identity()
        record = service.get(caller, worker_id, year, month)
        expected = data.get("expected_version")
        if expected is not None and not str(expected).isdigit():
            raise ValidationError("expected_version must be a whole number")
        updated = service.mark_day(
            caller,
            record,
            str(data.get("date") or ""),
            str(data.get("status") or ""),
            expected_version=int(expected) if expected is not None else None,
        )
        return respond(updated)
