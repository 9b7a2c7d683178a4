"""SQLAlchemy ORM models."""

from cohesio_payroll.models.base import Base, TimestampMixin
from cohesio_payroll.models.payroll import PayPeriodRecord, PayrollRunRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "PayPeriodRecord",
    "PayrollRunRecord",
]
