"""
Fee resolution and payment status.

Pure functions shared by enrollment creation, custom fee re-sync, the
fees overview, dashboard stats, CSV exports and payment reminders.
Nothing here touches the database; callers load the course, the custom
fee candidates and the payment amounts first.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Union

ZERO = Decimal("0")

# (custom fee attribute, course attribute)
FEE_FIELDS = (
    ("custom_full_fee", "full_fee"),
    ("custom_installment_fee", "installment_fee"),
    ("custom_installment1", "installment1"),
    ("custom_installment2", "installment2"),
)


class PaymentStatus(str, Enum):
    paid = "paid"
    partial = "partial"
    pending = "pending"
    overdue = "overdue"


@dataclass(frozen=True)
class EffectiveFees:
    full_fee: Decimal
    installment_fee: Decimal
    installment1: Decimal
    installment2: Decimal


@dataclass(frozen=True)
class PaymentSummary:
    status: PaymentStatus
    paid_amount: Decimal
    balance: Decimal


def to_decimal(value: Any) -> Decimal:
    """Money value as Decimal; None counts as zero"""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from turning into binary noise
    return Decimal(str(value))


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def resolve_effective_fees(course: Any, custom_fee: Optional[Any] = None) -> EffectiveFees:
    """
    Effective fee figures for one student.

    Each figure falls back independently: a custom value wins whenever it
    is set (0 included), otherwise the course default applies.

    Args:
        course: Object with full_fee, installment_fee, installment1, installment2
        custom_fee: Matching override or None

    Returns:
        EffectiveFees
    """
    resolved = {}
    for custom_attr, course_attr in FEE_FIELDS:
        value = getattr(custom_fee, custom_attr, None) if custom_fee is not None else None
        if not _is_present(value):
            value = getattr(course, course_attr)
        resolved[course_attr] = to_decimal(value)

    return EffectiveFees(**resolved)


def is_matching_custom_fee(
    custom_fee: Any, student_name: str, contact_no: str, course_id: int
) -> bool:
    """Active override for exactly this student and course (case-sensitive)"""
    return (
        bool(custom_fee.is_active)
        and custom_fee.student_name == student_name
        and custom_fee.contact_no == contact_no
        and custom_fee.course_id == course_id
    )


def select_custom_fee(
    candidates: Iterable[Any], student_name: str, contact_no: str, course_id: int
) -> Optional[Any]:
    """First matching override in iteration order, or None"""
    for custom_fee in candidates:
        if is_matching_custom_fee(custom_fee, student_name, contact_no, course_id):
            return custom_fee
    return None


def snapshot_total_fee(effective: EffectiveFees, fee_plan: str) -> Decimal:
    """The amount owed under the chosen plan, frozen into Enrollment.total_fee"""
    plan = getattr(fee_plan, "value", fee_plan)
    if plan == "full":
        return effective.full_fee
    if plan == "installments":
        return effective.installment_fee
    raise ValueError(f"Unknown fee plan: {fee_plan}")


def payment_due_instant(start_date: date, now: Union[date, datetime], grace_days: int) -> datetime:
    """Midnight at the start of start_date + grace_days, in now's timezone"""
    due_date = start_date + timedelta(days=grace_days)
    tzinfo = now.tzinfo if isinstance(now, datetime) else None
    return datetime.combine(due_date, time.min, tzinfo=tzinfo)


def summarize_payments(
    total_fee: Any,
    amounts: Iterable[Any],
    start_date: date,
    now: Union[date, datetime],
    detect_overdue: bool = True,
    grace_days: int = 30,
) -> PaymentSummary:
    """
    Paid amount, balance and status of an enrollment.

    Precedence: paid off (balance <= 0, overpayment included), then
    partial (something paid), then overdue (nothing paid and past the
    grace window, only when detect_overdue), else pending.
    """
    paid_amount = sum((to_decimal(amount) for amount in amounts), ZERO)
    balance = to_decimal(total_fee) - paid_amount

    if balance <= 0:
        status = PaymentStatus.paid
    elif paid_amount > 0:
        status = PaymentStatus.partial
    elif detect_overdue and _as_datetime(now) > payment_due_instant(
        start_date, now, grace_days
    ):
        status = PaymentStatus.overdue
    else:
        status = PaymentStatus.pending

    return PaymentSummary(status=status, paid_amount=paid_amount, balance=balance)


def _as_datetime(now: Union[date, datetime]) -> datetime:
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)
