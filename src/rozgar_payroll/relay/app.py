from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from ..core.constants import DEFAULT_CURRENCY, PAISE_PER_RUPEE
from ..payments.gateway.signature import verify_razorpay_signature
from .razorpay_client import RazorpayApiClient, RazorpayApiError

logger = logging.getLogger(__name__)


def _payment_view(payment: dict) -> dict:
    return {
        "id": payment.get("id"),
        "amount": payment.get("amount"),
        "status": payment.get("status"),
        "method": payment.get("method"),
        "created_at": payment.get("created_at"),
        "description": payment.get("description"),
    }


def create_relay_app(client: Optional[RazorpayApiClient] = None, *, key_secret: Optional[str] = None) -> Flask:
    """Relay between the mobile app and Razorpay; the only holder of the API secret."""

    load_dotenv(override=False)
    if key_secret is None:
        key_secret = os.getenv("RAZORPAY_KEY_SECRET", "")
    if client is None:
        client = RazorpayApiClient(os.getenv("RAZORPAY_KEY_ID", ""), key_secret)

    app = Flask(__name__)

    @app.route("/create-order", methods=["POST"])
    def create_order():
        data = request.get_json(silent=True) or {}
        amount = data.get("amount")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            return jsonify({"success": False, "error": "Amount is required and must be greater than 0"}), 400

        options = {
            "amount": int(round(amount * PAISE_PER_RUPEE)),
            "currency": data.get("currency") or DEFAULT_CURRENCY,
            "receipt": data.get("receipt") or f"receipt_{int(time.time() * 1000)}",
            "notes": data.get("notes") or {},
        }
        try:
            order = client.create_order(**options)
        except RazorpayApiError as exc:
            logger.error("order creation failed: %s", exc)
            return jsonify({"success": False, "error": str(exc) or "Failed to create order"}), 500

        logger.info("order %s created (%s paise)", order.get("id"), options["amount"])
        return jsonify(
            {
                "success": True,
                "order": {
                    "id": order.get("id"),
                    "amount": order.get("amount"),
                    "currency": order.get("currency"),
                    "receipt": order.get("receipt"),
                    "status": order.get("status"),
                },
            }
        )

    @app.route("/verify-payment", methods=["POST"])
    def verify_payment():
        data = request.get_json(silent=True) or {}
        order_id = data.get("order_id") or data.get("razorpay_order_id")
        payment_id = data.get("payment_id") or data.get("razorpay_payment_id")
        signature = data.get("signature") or data.get("razorpay_signature")
        if not order_id or not payment_id or not signature:
            return jsonify({"success": False, "message": "Missing required payment verification parameters"}), 400

        if not verify_razorpay_signature(str(order_id), str(payment_id), str(signature), key_secret):
            logger.warning("invalid signature for order %s", order_id)
            return jsonify({"success": False, "message": "Invalid payment signature"}), 400

        try:
            payment = client.fetch_payment(str(payment_id))
        except RazorpayApiError as exc:
            logger.warning("payment %s verified but details fetch failed: %s", payment_id, exc)
            return jsonify({"success": True, "message": "Payment verified successfully (details fetch failed)"})

        return jsonify({"success": True, "message": "Payment verified successfully", "payment": _payment_view(payment)})

    @app.route("/payment/<payment_id>", methods=["GET"])
    def get_payment(payment_id: str):
        try:
            payment = client.fetch_payment(payment_id)
        except RazorpayApiError as exc:
            return jsonify({"success": False, "error": str(exc)}), 500
        return jsonify({"success": True, "payment": _payment_view(payment)})

    @app.route("/order/<order_id>/payments", methods=["GET"])
    def order_payments(order_id: str):
        try:
            payments = client.order_payments(order_id)
        except RazorpayApiError as exc:
            return jsonify({"success": False, "error": str(exc)}), 500
        return jsonify({"success": True, "payments": [_payment_view(p) for p in payments]})

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify(
            {
                "success": True,
                "message": "Razorpay relay is running",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    return app
