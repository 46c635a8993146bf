from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from coursedesk.fees.services.fee_engine import (
    EffectiveFees,
    PaymentStatus,
    resolve_effective_fees,
    select_custom_fee,
    snapshot_total_fee,
    summarize_payments,
    to_decimal,
)


def make_course(**overrides):
    fields = {
        "full_fee": Decimal("15000"),
        "installment_fee": Decimal("16000"),
        "installment1": Decimal("8000"),
        "installment2": Decimal("8000"),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_custom_fee(**overrides):
    fields = {
        "student_name": "Asha Patil",
        "contact_no": "9876543210",
        "course_id": 1,
        "is_active": True,
        "custom_full_fee": None,
        "custom_installment_fee": None,
        "custom_installment1": None,
        "custom_installment2": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


NOW = datetime(2026, 3, 15, 10, 0)


class TestResolveEffectiveFees:
    def test_each_field_falls_back_independently(self):
        course = make_course()
        custom_fee = make_custom_fee(custom_full_fee=Decimal("10000"))

        effective = resolve_effective_fees(course, custom_fee)

        assert effective.full_fee == Decimal("10000")
        assert effective.installment_fee == Decimal("16000")
        assert effective.installment1 == course.installment1
        assert effective.installment2 == course.installment2

    def test_without_custom_fee_returns_course_defaults(self):
        course = make_course(installment1=Decimal("7000"), installment2=Decimal("9000"))

        assert resolve_effective_fees(course) == EffectiveFees(
            full_fee=Decimal("15000"),
            installment_fee=Decimal("16000"),
            installment1=Decimal("7000"),
            installment2=Decimal("9000"),
        )

    def test_zero_override_wins(self):
        effective = resolve_effective_fees(make_course(), make_custom_fee(custom_full_fee=Decimal("0")))
        assert effective.full_fee == Decimal("0")

    def test_empty_string_counts_as_unset(self):
        effective = resolve_effective_fees(make_course(), make_custom_fee(custom_installment_fee=""))
        assert effective.installment_fee == Decimal("16000")

    def test_missing_course_installments_resolve_to_zero(self):
        effective = resolve_effective_fees(make_course(installment1=None, installment2=None))
        assert effective.installment1 == Decimal("0")
        assert effective.installment2 == Decimal("0")


class TestSelectCustomFee:
    def test_matches_exact_student_and_course(self):
        other_course = make_custom_fee(course_id=2)
        match = make_custom_fee()

        assert select_custom_fee([other_course, match], "Asha Patil", "9876543210", 1) is match

    def test_inactive_and_case_mismatch_are_ignored(self):
        candidates = [
            make_custom_fee(is_active=False),
            make_custom_fee(student_name="asha patil"),
        ]
        assert select_custom_fee(candidates, "Asha Patil", "9876543210", 1) is None

    def test_first_match_wins(self):
        first = make_custom_fee(custom_full_fee=Decimal("9000"))
        second = make_custom_fee(custom_full_fee=Decimal("8000"))

        assert select_custom_fee([first, second], "Asha Patil", "9876543210", 1) is first


class TestSnapshotTotalFee:
    def test_plan_picks_the_figure(self):
        effective = resolve_effective_fees(make_course())

        assert snapshot_total_fee(effective, "full") == Decimal("15000")
        assert snapshot_total_fee(effective, "installments") == Decimal("16000")

    def test_unknown_plan_is_rejected(self):
        with pytest.raises(ValueError):
            snapshot_total_fee(resolve_effective_fees(make_course()), "monthly")


class TestSummarizePayments:
    @pytest.mark.parametrize(
        "amounts, start_days_ago, expected",
        [
            (["10000"], 0, PaymentStatus.paid),
            (["4000", "6000"], 90, PaymentStatus.paid),
            (["5000"], 0, PaymentStatus.partial),
            (["5000"], 90, PaymentStatus.partial),
            ([], 31, PaymentStatus.overdue),
            ([], 10, PaymentStatus.pending),
        ],
    )
    def test_status_boundaries(self, amounts, start_days_ago, expected):
        start = NOW.date() - timedelta(days=start_days_ago)

        summary = summarize_payments(Decimal("10000"), amounts, start, NOW)

        assert summary.status == expected

    def test_paid_exactly_has_zero_balance(self):
        summary = summarize_payments(Decimal("10000"), [Decimal("10000")], NOW.date(), NOW)

        assert summary.balance == Decimal("0")
        assert summary.status == PaymentStatus.paid

    def test_overpayment_keeps_negative_balance(self):
        summary = summarize_payments(Decimal("10000"), [Decimal("12000")], NOW.date(), NOW)

        assert summary.status == PaymentStatus.paid
        assert summary.paid_amount == Decimal("12000")
        assert summary.balance == Decimal("-2000")

    def test_overdue_starts_after_midnight_of_grace_day(self):
        start = date(2026, 1, 1)
        grace_deadline = datetime(2026, 1, 31, 0, 0)

        at_deadline = summarize_payments(Decimal("500"), [], start, grace_deadline)
        just_after = summarize_payments(
            Decimal("500"), [], start, grace_deadline + timedelta(seconds=1)
        )

        assert at_deadline.status == PaymentStatus.pending
        assert just_after.status == PaymentStatus.overdue

    def test_overdue_detection_can_be_disabled(self):
        start = NOW.date() - timedelta(days=60)

        summary = summarize_payments(Decimal("10000"), [], start, NOW, detect_overdue=False)

        assert summary.status == PaymentStatus.pending

    def test_custom_grace_period(self):
        start = NOW.date() - timedelta(days=10)

        summary = summarize_payments(Decimal("10000"), [], start, NOW, grace_days=7)

        assert summary.status == PaymentStatus.overdue

    def test_zero_total_is_paid(self):
        summary = summarize_payments(Decimal("0"), [], NOW.date() - timedelta(days=90), NOW)
        assert summary.status == PaymentStatus.paid

    def test_same_inputs_give_same_summary(self):
        start = NOW.date() - timedelta(days=40)
        amounts = [Decimal("2500.50"), "1000"]

        first = summarize_payments(Decimal("10000"), amounts, start, NOW)
        second = summarize_payments(Decimal("10000"), amounts, start, NOW)

        assert first == second
        assert first.paid_amount == Decimal("3500.50")


def test_to_decimal_handles_floats_and_blanks():
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("") == Decimal("0")
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12000.50") == Decimal("12000.50")
