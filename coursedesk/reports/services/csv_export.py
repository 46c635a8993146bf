"""CSV report generation"""
import csv
import logging
from datetime import date, datetime
from enum import Enum
from io import StringIO
from typing import List

from coursedesk.core.validations import BATCHES
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.fees.services.fee_engine import summarize_payments

logger = logging.getLogger(__name__)

BATCH_NAMES = {batch["id"]: batch["name"] for batch in BATCHES}


class ReportType(str, Enum):
    enrollment = "enrollment"
    payments = "payments"
    students = "students"


ENROLLMENT_HEADERS = [
    "Student Name",
    "Course",
    "Contact",
    "Father Name",
    "Father Contact",
    "Email",
    "Address",
    "Start Date",
    "End Date",
    "Fee Plan",
    "Total Fee",
    "Paid Amount",
    "Balance",
]

PAYMENT_HEADERS = [
    "Student Name",
    "Course",
    "Payment Date",
    "Amount",
    "Payment Mode",
    "Transaction ID",
]

STUDENT_HEADERS = [
    "Student Name",
    "Email",
    "Contact",
    "Father Name",
    "Father Contact",
    "Course",
    "Batch",
    "Start Date",
    "End Date",
    "Fee Plan",
    "Total Fee",
    "Paid Amount",
    "Pending Amount",
    "Payment Status",
    "Education",
    "Address",
]


def report_filename(report_type: ReportType, today: date = None) -> str:
    today = today or date.today()
    return f"{report_type.value}_report_{today.isoformat()}.csv"


def _summary(enrollment: Enrollment, now):
    # Listing and export screens use the status without overdue detection
    return summarize_payments(
        enrollment.total_fee,
        [payment.amount for payment in enrollment.payments],
        enrollment.start_date,
        now,
        detect_overdue=False,
    )


def _enrollment_rows(enrollments: List[Enrollment], now) -> List[list]:
    rows = []
    for enrollment in enrollments:
        summary = _summary(enrollment, now)
        rows.append([
            enrollment.student_name,
            enrollment.course.name,
            enrollment.contact_no,
            enrollment.father_name,
            enrollment.father_contact_no,
            enrollment.student_email,
            enrollment.student_address,
            enrollment.start_date.isoformat(),
            enrollment.end_date.isoformat(),
            enrollment.fee_plan,
            enrollment.total_fee,
            summary.paid_amount,
            summary.balance,
        ])
    return rows


def _payment_rows(enrollments: List[Enrollment], now) -> List[list]:
    rows = []
    for enrollment in enrollments:
        for payment in enrollment.payments:
            rows.append([
                enrollment.student_name,
                enrollment.course.name,
                payment.payment_date.isoformat(),
                payment.amount,
                payment.payment_mode.value,
                payment.transaction_id or "N/A",
            ])
    return rows


def _student_rows(enrollments: List[Enrollment], now) -> List[list]:
    rows = []
    for enrollment in enrollments:
        summary = _summary(enrollment, now)
        rows.append([
            enrollment.student_name,
            enrollment.student_email,
            enrollment.contact_no,
            enrollment.father_name,
            enrollment.father_contact_no,
            enrollment.course.name if enrollment.course else "N/A",
            BATCH_NAMES.get(enrollment.batch_id, enrollment.batch_id),
            enrollment.start_date.isoformat(),
            enrollment.end_date.isoformat(),
            enrollment.fee_plan,
            enrollment.total_fee,
            summary.paid_amount,
            summary.balance,
            summary.status.value.capitalize(),
            enrollment.student_education,
            enrollment.student_address,
        ])
    return rows


REPORTS = {
    ReportType.enrollment: (ENROLLMENT_HEADERS, _enrollment_rows),
    ReportType.payments: (PAYMENT_HEADERS, _payment_rows),
    ReportType.students: (STUDENT_HEADERS, _student_rows),
}


def build_report(
    report_type: ReportType, enrollments: List[Enrollment], now: datetime = None
) -> str:
    """
    Render a report as CSV text.

    Args:
        report_type: enrollment, payments or students
        enrollments: Enrollments with course and payments loaded

    Returns:
        CSV content with a header row
    """
    now = now or datetime.now()
    headers, build_rows = REPORTS[report_type]

    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(headers)
    rows = build_rows(enrollments, now)
    writer.writerows(rows)

    logger.info(f"Built {report_type.value} report with {len(rows)} row(s)")
    return output.getvalue()
