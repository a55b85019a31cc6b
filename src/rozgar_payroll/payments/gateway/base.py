from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from ...core.enums import CaptureState, PaymentMethod
from ...core.exceptions import ValidationError
from ..model import CaptureResult, CustomerInfo, GatewayOrder

# Client-side checkout bridge: returns the gateway's proof of payment, or None when
# the customer cancelled.
CheckoutHandler = Callable[[GatewayOrder, CustomerInfo], Optional[Mapping[str, Any]]]


class PaymentGateway(ABC):
    """Capability interface shared by all gateways.

    Raise TransientError when nothing can have happened yet (order creation), and
    PaymentOutcomeUnknownError once the customer may have paid but we could not
    find out.
    """

    method: PaymentMethod

    def __init__(self, *, checkout: Optional[CheckoutHandler] = None):
        self._checkout = checkout

    @abstractmethod
    def create_order(
        self,
        amount: int,
        *,
        receipt: str,
        notes: Optional[Mapping[str, str]] = None,
        customer: Optional[CustomerInfo] = None,
    ) -> GatewayOrder:
        raise NotImplementedError

    @abstractmethod
    def confirm(self, order: GatewayOrder, proof: Mapping[str, Any]) -> CaptureResult:
        """Verify the proof returned by checkout."""

        raise NotImplementedError

    @abstractmethod
    def fetch_status(self, order: GatewayOrder) -> CaptureResult:
        """Ask the gateway what happened to an order."""

        raise NotImplementedError

    @abstractmethod
    def verify_callback(self, payload: Mapping[str, Any]) -> bool:
        """Out-of-band signature check for gateway callbacks."""

        raise NotImplementedError

    @property
    def has_checkout(self) -> bool:
        return self._checkout is not None

    def capture(self, order: GatewayOrder, customer: CustomerInfo) -> CaptureResult:
        if self._checkout is None:
            raise ValidationError(f"{self.method.value} has no checkout bridge, confirm the order instead")

        proof = self._checkout(order, customer)
        if proof is None:
            return CaptureResult(state=CaptureState.CANCELLED, order_id=order.order_id, message="Payment cancelled")
        return self.confirm(order, proof)


def response_json(resp) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
