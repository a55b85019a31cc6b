from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account type used for authorization."""

    EMPLOYER = "employer"
    WORKER = "worker"


class AttendanceMark(str, Enum):
    """Day status stored in an attendance map."""

    PRESENT = "present"
    ABSENT = "absent"


class ApplicationStatus(str, Enum):
    """Job application workflow states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    LEFT = "left"


class PaymentMethod(str, Enum):
    """Supported payment gateways."""

    RAZORPAY = "razorpay"
    PHONEPE = "phonepe"


class PaymentStatus(str, Enum):
    """Only completed payments are persisted."""

    COMPLETED = "completed"


class CaptureState(str, Enum):
    """Lifecycle of a single payment attempt."""

    IDLE = "idle"
    CAPTURING = "capturing"
    VERIFIED_SUCCESS = "verified_success"
    VERIFIED_FAILURE = "verified_failure"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
