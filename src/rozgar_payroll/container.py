from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .applications.memory_application_repository import InMemoryApplicationRepository
from .applications.mysql_application_repository import MySQLApplicationRepository
from .applications.repository import ApplicationRepository
from .applications.service import ApplicationService
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.enums import PaymentMethod
from .database.connection import DatabaseConnection, DBConfig
from .identity.provider import HeaderIdentityProvider
from .notifications.notifier import LoggingNotifier, Notifier, SmtpNotifier
from .payments.gateway.base import PaymentGateway
from .payments.gateway.phonepe_gateway import PhonePeGateway
from .payments.gateway.razorpay_gateway import RazorpayRelayGateway
from .payments.memory_payment_repository import InMemoryPaymentRepository
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.repository import PaymentRepository
from .payments.service import PaymentService
from .payroll.calculator.daily_rate_calculator import DailyRateCalculator
from .payroll.service import PayrollReportService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    attendance_repo: AttendanceRepository
    payments_repo: PaymentRepository
    applications_repo: ApplicationRepository

    identity_provider: HeaderIdentityProvider
    gateways: Mapping[PaymentMethod, PaymentGateway]
    notifier: Notifier

    attendance_service: AttendanceService
    payment_service: PaymentService
    payroll_report_service: PayrollReportService
    application_service: ApplicationService


def build_gateways(settings: Any) -> dict[PaymentMethod, PaymentGateway]:
    timeout = float(getattr(settings, "GATEWAY_TIMEOUT_SECONDS", 15))
    gateways: dict[PaymentMethod, PaymentGateway] = {}

    relay_url = getattr(settings, "RAZORPAY_RELAY_URL", "")
    if relay_url:
        gateways[PaymentMethod.RAZORPAY] = RazorpayRelayGateway(relay_url, timeout=timeout)

    merchant_id = getattr(settings, "PHONEPE_MERCHANT_ID", "")
    salt_key = getattr(settings, "PHONEPE_SALT_KEY", "")
    if merchant_id and salt_key:
        gateways[PaymentMethod.PHONEPE] = PhonePeGateway(
            merchant_id=merchant_id,
            salt_key=salt_key,
            salt_index=int(getattr(settings, "PHONEPE_SALT_INDEX", 1)),
            base_url=getattr(settings, "PHONEPE_BASE_URL", ""),
            redirect_url=getattr(settings, "PHONEPE_REDIRECT_URL", ""),
            callback_url=getattr(settings, "PHONEPE_CALLBACK_URL", ""),
            timeout=timeout,
        )
    return gateways


def build_notifier(settings: Any) -> Notifier:
    if getattr(settings, "NOTIFIER", "log") == "smtp":
        return SmtpNotifier(
            host=getattr(settings, "SMTP_HOST", "localhost"),
            port=int(getattr(settings, "SMTP_PORT", 587)),
            username=getattr(settings, "SMTP_USERNAME", ""),
            password=getattr(settings, "SMTP_PASSWORD", ""),
            from_email=getattr(settings, "SMTP_FROM", ""),
        )
    return LoggingNotifier()


def build_container(
    settings: Any,
    *,
    gateways: Optional[Mapping[PaymentMethod, PaymentGateway]] = None,
    notifier: Optional[Notifier] = None,
) -> Container:
    backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()

    conn: Optional[DatabaseConnection] = None
    if backend == "memory":
        attendance_repo = InMemoryAttendanceRepository()
        payments_repo = InMemoryPaymentRepository()
        applications_repo = InMemoryApplicationRepository()
    else:
        conn = DatabaseConnection(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))
        attendance_repo = MySQLAttendanceRepository(conn)
        payments_repo = MySQLPaymentRepository(conn)
        applications_repo = MySQLApplicationRepository(conn)

    gateways = dict(gateways) if gateways is not None else build_gateways(settings)
    notifier = notifier or build_notifier(settings)

    attendance_service = AttendanceService(attendance_repo, calculator=DailyRateCalculator())
    payment_service = PaymentService(payments_repo, attendance_repo, gateways)
    payroll_report_service = PayrollReportService(payments_repo, attendance_repo)
    application_service = ApplicationService(applications_repo, notifier=notifier)

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        payments_repo=payments_repo,
        applications_repo=applications_repo,
        identity_provider=HeaderIdentityProvider(),
        gateways=gateways,
        notifier=notifier,
        attendance_service=attendance_service,
        payment_service=payment_service,
        payroll_report_service=payroll_report_service,
        application_service=application_service,
    )
