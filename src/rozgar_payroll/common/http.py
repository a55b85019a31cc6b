from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConcurrentUpdateError,
    DomainError,
    DuplicatePaymentError,
    InvalidTransitionError,
    NotFoundError,
    PaymentOutcomeUnknownError,
    PaymentRecordingError,
    ReconciliationRequiredError,
    TransientError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrentUpdateError, 409),
    (DuplicatePaymentError, 409),
    (ReconciliationRequiredError, 409),
    (PaymentOutcomeUnknownError, 202),
    (TransientError, 503),
    (PaymentRecordingError, 500),
)


def status_for(exc: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        body: dict[str, Any] = {"success": False, "error": exc.code, "message": str(exc)}
        if isinstance(exc, PaymentOutcomeUnknownError):
            body["orderId"] = exc.order_id
        if isinstance(exc, PaymentRecordingError):
            logger.error("payment recording failed: %s", exc)
            body["orderId"] = exc.capture.attempt.order_id
            body["paymentId"] = exc.capture.capture.payment_id
        return jsonify(body), status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code
