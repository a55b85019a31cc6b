from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.application_service

    def identity():
        return container.identity_provider.resolve(request.headers)

    @app.route("/api/applications", methods=["POST"], endpoint="application_create")
    def application_create():
        data = json_body()
        application = service.apply(
            identity(),
            job_id=str(data.get("job_id") or ""),
            employer_id=str(data.get("employer_id") or ""),
            job_title=str(data.get("job_title") or ""),
            employer_email=data.get("employer_email"),
        )
        return jsonify({"success": True, "application": application.to_dict()}), 201

    @app.route("/api/applications", methods=["GET"], endpoint="application_list")
    def application_list():
        job_id = request.args.get("job_id")
        if job_id:
            items = service.list_for_job(identity(), job_id)
        else:
            items = service.list_mine(identity(), current_only=request.args.get("current") == "1")
        return jsonify({"success": True, "applications": [a.to_dict() for a in items]})

    @app.route("/api/applications/<application_id>", methods=["GET"], endpoint="application_detail")
    def application_detail(application_id: str):
        return jsonify({"success": True, "application": service.get(identity(), application_id).to_dict()})

    @app.route("/api/applications/<application_id>/<action>", methods=["POST"], endpoint="application_action")
    def application_action(application_id: str, action: str):
        handlers = {
            "accept": service.accept,
            "reject": service.reject,
            "leave": service.leave,
        }
        handler = handlers.get(action)
        if handler is None:
            return jsonify({"success": False, "error": "not_found", "message": f"Unknown action {action!r}"}), 404
        application = handler(identity(), application_id)
        return jsonify({"success": True, "application": application.to_dict()})
