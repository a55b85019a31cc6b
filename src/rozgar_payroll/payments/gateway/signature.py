from __future__ import annotations

import hashlib
import hmac


def razorpay_signature(order_id: str, payment_id: str, secret: str) -> str:
    """HMAC-SHA256 of "order_id|payment_id" keyed with the API secret (hex)."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_razorpay_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    if not (order_id and payment_id and signature and secret):
        return False
    expected = razorpay_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, str(signature))


def phonepe_checksum(payload: str, salt_key: str, salt_index: int, *, endpoint: str = "") -> str:
    """X-VERIFY header value: sha256(payload + endpoint + salt) + '###' + index."""
    digest = hashlib.sha256(f"{payload}{endpoint}{salt_key}".encode("utf-8")).hexdigest()
    return f"{digest}###{int(salt_index)}"


def verify_phonepe_checksum(payload: str, checksum: str, salt_key: str, salt_index: int) -> bool:
    if not (payload and checksum):
        return False
    return hmac.compare_digest(phonepe_checksum(payload, salt_key, salt_index), str(checksum))
