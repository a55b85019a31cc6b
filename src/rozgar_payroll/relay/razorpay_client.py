from __future__ import annotations

from typing import Any, Mapping, Optional

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError

from ..core.constants import DEFAULT_GATEWAY_TIMEOUT_SECONDS


class RazorpayApiError(Exception):
    def __init__(self, message: str, *, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class RazorpayApiClient:
    """Razorpay REST API through the official SDK (basic auth with key id/secret)."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        *,
        timeout: float = DEFAULT_GATEWAY_TIMEOUT_SECONDS,
        client: Optional[razorpay.Client] = None,
    ):
        self._client = client or razorpay.Client(auth=(key_id, key_secret))
        self._timeout = float(timeout)

    def _call(self, fn, *args, **kwargs) -> dict:
        try:
            data = fn(*args, timeout=self._timeout, **kwargs)
        except BadRequestError as exc:
            raise RazorpayApiError(str(exc) or "Razorpay rejected the request", status_code=400) from exc
        except (ServerError, GatewayError) as exc:
            raise RazorpayApiError(str(exc) or "Razorpay error", status_code=502) from exc
        except requests.RequestException as exc:
            raise RazorpayApiError(f"Razorpay unreachable: {exc}", status_code=504) from exc
        return data if isinstance(data, dict) else {}

    def create_order(self, *, amount: int, currency: str, receipt: str, notes: Mapping[str, Any]) -> dict:
        """amount is in paise."""
        return self._call(
            self._client.order.create,
            data={"amount": int(amount), "currency": currency, "receipt": receipt, "notes": dict(notes)},
        )

    def fetch_payment(self, payment_id: str) -> dict:
        return self._call(self._client.payment.fetch, payment_id)

    def order_payments(self, order_id: str) -> list[dict]:
        return list(self._call(self._client.order.payments, order_id).get("items") or [])
