from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from ...core.constants import DEFAULT_CURRENCY, DEFAULT_GATEWAY_TIMEOUT_SECONDS
from ...core.enums import CaptureState, PaymentMethod
from ...core.exceptions import PaymentOutcomeUnknownError, TransientError
from ..model import CaptureResult, CustomerInfo, GatewayOrder
from .base import CheckoutHandler, PaymentGateway, response_json

logger = logging.getLogger(__name__)


class RazorpayRelayGateway(PaymentGateway):
    """Razorpay through the relay server, which holds the API secret."""

    method = PaymentMethod.RAZORPAY

    def __init__(
        self,
        relay_url: str,
        *,
        timeout: float = DEFAULT_GATEWAY_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        checkout: Optional[CheckoutHandler] = None,
    ):
        super().__init__(checkout=checkout)
        self._relay_url = relay_url.rstrip("/")
        self._timeout = float(timeout)
        self._http = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self._relay_url}{path}"

    def create_order(
        self,
        amount: int,
        *,
        receipt: str,
        notes: Optional[Mapping[str, str]] = None,
        customer: Optional[CustomerInfo] = None,
    ) -> GatewayOrder:
        body = {
            "amount": int(amount),
            "currency": DEFAULT_CURRENCY,
            "receipt": receipt,
            "notes": dict(notes or {}),
        }
        try:
            resp = self._http.post(self._url("/create-order"), json=body, timeout=self._timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise TransientError("Payment server is unreachable, try again later") from exc

        data = response_json(resp)
        if resp.status_code >= 500:
            raise TransientError(data.get("error") or "Payment server error")
        if not data.get("success") or not data.get("order"):
            raise TransientError(data.get("error") or "Failed to create order")

        order = data["order"]
        logger.info("razorpay order %s created for receipt %s", order["id"], receipt)
        return GatewayOrder(
            method=self.method,
            order_id=str(order["id"]),
            amount=int(amount),
            currency=str(order.get("currency") or DEFAULT_CURRENCY),
            receipt=str(order.get("receipt") or receipt),
            status=str(order.get("status") or "created"),
        )

    def _verify(self, order_id: str, payment_id: str, signature: str) -> tuple[bool, dict]:
        body = {"order_id": order_id, "payment_id": payment_id, "signature": signature}
        try:
            resp = self._http.post(self._url("/verify-payment"), json=body, timeout=self._timeout)
        except requests.Timeout as exc:
            raise PaymentOutcomeUnknownError("Payment verification timed out", order_id=order_id) from exc
        except requests.ConnectionError as exc:
            raise PaymentOutcomeUnknownError("Payment server unreachable during verification", order_id=order_id) from exc

        data = response_json(resp)
        if resp.status_code >= 500:
            raise PaymentOutcomeUnknownError(data.get("message") or "Payment verification failed", order_id=order_id)
        return bool(data.get("success")), data

    def confirm(self, order: GatewayOrder, proof: Mapping[str, Any]) -> CaptureResult:
        payment_id = str(proof.get("payment_id") or proof.get("razorpay_payment_id") or "")
        signature = str(proof.get("signature") or proof.get("razorpay_signature") or "")
        if not payment_id or not signature:
            return CaptureResult(
                state=CaptureState.VERIFIED_FAILURE,
                order_id=order.order_id,
                message="Missing payment id or signature",
            )

        ok, data = self._verify(order.order_id, payment_id, signature)
        if not ok:
            logger.warning("razorpay signature rejected for order %s", order.order_id)
            return CaptureResult(
                state=CaptureState.VERIFIED_FAILURE,
                order_id=order.order_id,
                payment_id=payment_id,
                message=data.get("message") or "Invalid payment signature",
            )
        return CaptureResult(
            state=CaptureState.VERIFIED_SUCCESS,
            order_id=order.order_id,
            payment_id=payment_id,
            message=data.get("message") or "Payment verified successfully",
            details=data.get("payment") or {},
        )

    def fetch_status(self, order: GatewayOrder) -> CaptureResult:
        try:
            resp = self._http.get(self._url(f"/order/{order.order_id}/payments"), timeout=self._timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise PaymentOutcomeUnknownError("Payment status lookup failed", order_id=order.order_id) from exc

        data = response_json(resp)
        if resp.status_code >= 400 or not data.get("success"):
            raise PaymentOutcomeUnknownError(data.get("error") or "Payment status lookup failed", order_id=order.order_id)

        payments = data.get("payments") or []
        for p in payments:
            if p.get("status") == "captured":
                return CaptureResult(
                    state=CaptureState.VERIFIED_SUCCESS,
                    order_id=order.order_id,
                    payment_id=str(p["id"]),
                    details=p,
                )
        if any(p.get("status") in {"created", "authorized"} for p in payments):
            return CaptureResult(state=CaptureState.UNKNOWN, order_id=order.order_id, message="Payment not settled yet")
        return CaptureResult(
            state=CaptureState.VERIFIED_FAILURE,
            order_id=order.order_id,
            message="No captured payment for this order",
        )

    def verify_callback(self, payload: Mapping[str, Any]) -> bool:
        order_id = str(payload.get("order_id") or payload.get("razorpay_order_id") or "")
        payment_id = str(payload.get("payment_id") or payload.get("razorpay_payment_id") or "")
        signature = str(payload.get("signature") or payload.get("razorpay_signature") or "")
        if not (order_id and payment_id and signature):
            return False
        ok, _ = self._verify(order_id, payment_id, signature)
        return ok
