from __future__ import annotations

import base64
import json
import logging
from typing import Any, Mapping, Optional

import requests

from ...core.constants import DEFAULT_CURRENCY, DEFAULT_GATEWAY_TIMEOUT_SECONDS, PAISE_PER_RUPEE
from ...core.enums import CaptureState, PaymentMethod
from ...core.exceptions import PaymentOutcomeUnknownError, TransientError
from ..model import CaptureResult, CustomerInfo, GatewayOrder
from .base import CheckoutHandler, PaymentGateway, response_json
from .signature import phonepe_checksum, verify_phonepe_checksum

logger = logging.getLogger(__name__)

PAY_ENDPOINT = "/pg/v1/pay"
SUCCESS_CODES = {"PAYMENT_SUCCESS"}
PENDING_CODES = {"PAYMENT_PENDING", "INTERNAL_SERVER_ERROR"}


class PhonePeGateway(PaymentGateway):
    """PhonePe standard checkout (pay page + server-side status check)."""

    method = PaymentMethod.PHONEPE

    def __init__(
        self,
        *,
        merchant_id: str,
        salt_key: str,
        salt_index: int = 1,
        base_url: str = "https://api-preprod.phonepe.com/apis/pg-sandbox",
        redirect_url: str = "",
        callback_url: str = "",
        timeout: float = DEFAULT_GATEWAY_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        checkout: Optional[CheckoutHandler] = None,
    ):
        super().__init__(checkout=checkout)
        self._merchant_id = merchant_id
        self._salt_key = salt_key
        self._salt_index = int(salt_index)
        self._base_url = base_url.rstrip("/")
        self._redirect_url = redirect_url
        self._callback_url = callback_url
        self._timeout = float(timeout)
        self._http = session or requests.Session()

    def _headers(self, checksum: str) -> dict:
        return {
            "Content-Type": "application/json",
            "X-VERIFY": checksum,
            "X-MERCHANT-ID": self._merchant_id,
        }

    def create_order(
        self,
        amount: int,
        *,
        receipt: str,
        notes: Optional[Mapping[str, str]] = None,
        customer: Optional[CustomerInfo] = None,
    ) -> GatewayOrder:
        payload = {
            "merchantId": self._merchant_id,
            "merchantTransactionId": receipt,
            "merchantUserId": (notes or {}).get("employer_id", "employer"),
            "amount": int(amount) * PAISE_PER_RUPEE,
            "redirectUrl": self._redirect_url,
            "redirectMode": "POST",
            "callbackUrl": self._callback_url,
            "paymentInstrument": {"type": "PAY_PAGE"},
        }
        if customer and customer.phone:
            payload["mobileNumber"] = customer.phone

        encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
        checksum = phonepe_checksum(encoded, self._salt_key, self._salt_index, endpoint=PAY_ENDPOINT)
        try:
            resp = self._http.post(
                f"{self._base_url}{PAY_ENDPOINT}",
                json={"request": encoded},
                headers=self._headers(checksum),
                timeout=self._timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise TransientError("PhonePe is unreachable, try again later") from exc

        data = response_json(resp)
        if not data.get("success"):
            raise TransientError(data.get("message") or "PhonePe payment initiation failed")

        redirect = (((data.get("data") or {}).get("instrumentResponse") or {}).get("redirectInfo") or {}).get("url")
        logger.info("phonepe transaction %s initiated", receipt)
        return GatewayOrder(
            method=self.method,
            order_id=receipt,
            amount=int(amount),
            currency=DEFAULT_CURRENCY,
            receipt=receipt,
            status=str(data.get("code") or "PAYMENT_INITIATED"),
            redirect_url=redirect,
        )

    def fetch_status(self, order: GatewayOrder) -> CaptureResult:
        path = f"/pg/v1/status/{self._merchant_id}/{order.order_id}"
        checksum = phonepe_checksum("", self._salt_key, self._salt_index, endpoint=path)
        try:
            resp = self._http.get(f"{self._base_url}{path}", headers=self._headers(checksum), timeout=self._timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise PaymentOutcomeUnknownError("PhonePe status check failed", order_id=order.order_id) from exc

        data = response_json(resp)
        code = str(data.get("code") or "")
        details = data.get("data") or {}
        if code in SUCCESS_CODES:
            return CaptureResult(
                state=CaptureState.VERIFIED_SUCCESS,
                order_id=order.order_id,
                payment_id=str(details.get("transactionId") or order.order_id),
                message=data.get("message") or "",
                details=details,
            )
        if code in PENDING_CODES or not code:
            return CaptureResult(state=CaptureState.UNKNOWN, order_id=order.order_id, message=data.get("message") or "")
        return CaptureResult(
            state=CaptureState.VERIFIED_FAILURE,
            order_id=order.order_id,
            message=data.get("message") or code,
            details=details,
        )

    def confirm(self, order: GatewayOrder, proof: Mapping[str, Any]) -> CaptureResult:
        # The redirect payload is only a hint; the status API is authoritative.
        if proof.get("response") and not self.verify_callback(proof):
            return CaptureResult(
                state=CaptureState.VERIFIED_FAILURE,
                order_id=order.order_id,
                message="Invalid callback checksum",
            )
        return self.fetch_status(order)

    def verify_callback(self, payload: Mapping[str, Any]) -> bool:
        return verify_phonepe_checksum(
            str(payload.get("response") or ""),
            str(payload.get("checksum") or payload.get("x_verify") or ""),
            self._salt_key,
            self._salt_index,
        )
