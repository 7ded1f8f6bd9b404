"""
Admin authentication, dashboard summaries, masking and record rendering.
Run from project root: python -m pytest tests/test_presentation.py -v
"""
import unittest
from datetime import datetime, timedelta, timezone

from exceptions import AuthenticationError
from schemas.loan_request import LoanRecord, LoanStatus
from services.auth import AdminCredentials, authenticate
from services.presenter import render_record
from services.summary import admin_summary, applicant_summary
from utils.masking import mask_aadhaar, mask_mobile, mask_pan

T0 = datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc)
EXPECTED = AdminCredentials(email="Admin@LoanDesk.local", password="s3cret")


def _record(status, amount, mobile="9876543210", updated_at=T0):
    return LoanRecord(
        id=f"req-{status.value}-{amount}",
        applicant_name="Asha Verma",
        mobile_number=mobile,
        pan_number="ABCDE1234F",
        aadhaar_number="123456789012",
        amount=amount,
        status=status,
        created_at=T0,
        updated_at=updated_at,
    )


class TestAuthenticate(unittest.TestCase):
    def test_accepts_trimmed_case_insensitive_email(self):
        authenticate("  admin@loandesk.LOCAL ", "s3cret", EXPECTED)

    def test_wrong_password(self):
        with self.assertRaises(AuthenticationError) as ctx:
            authenticate("admin@loandesk.local", "S3cret", EXPECTED)
        self.assertEqual(ctx.exception.reason, AuthenticationError.INVALID_PASSWORD)

    def test_unknown_email(self):
        with self.assertRaises(AuthenticationError) as ctx:
            authenticate("someone@else.com", "s3cret", EXPECTED)
        self.assertEqual(ctx.exception.reason, AuthenticationError.UNAUTHORIZED)

    def test_empty_input(self):
        with self.assertRaises(AuthenticationError):
            authenticate("", "", EXPECTED)


class TestSummaries(unittest.TestCase):
    def setUp(self):
        self.records = [
            _record(LoanStatus.PENDING, 0),
            _record(LoanStatus.PENDING, 200),
            _record(LoanStatus.APPROVED, 300),
            _record(LoanStatus.DISBURSED, 500),
            _record(LoanStatus.COMPLETED, 1000),
            _record(LoanStatus.REJECTED, 50),
        ]

    def test_admin_summary(self):
        summary = admin_summary(self.records)
        self.assertEqual(summary.total, 6)
        self.assertEqual(summary.pending, 2)
        self.assertEqual(summary.approved, 1)
        self.assertEqual(summary.disbursed, 1)
        self.assertEqual(summary.completed, 1)
        self.assertEqual(summary.rejected, 1)
        self.assertEqual(summary.total_amount, 2050)
        self.assertEqual(summary.disbursed_amount, 1500)

    def test_applicant_summary(self):
        summary = applicant_summary(self.records)
        self.assertEqual(summary.total_applied, 2050)
        self.assertEqual(summary.total_disbursed, 500)

    def test_empty(self):
        self.assertEqual(admin_summary([]).total, 0)
        self.assertEqual(applicant_summary([]).total_applied, 0)


class TestMasking(unittest.TestCase):
    def test_masks(self):
        self.assertEqual(mask_mobile("9876543210"), "****3210")
        self.assertEqual(mask_pan("ABCDE1234F"), "AB******4F")
        self.assertEqual(mask_aadhaar("123456789012"), "********9012")
        self.assertEqual(mask_mobile("12"), "****")


class TestRenderRecord(unittest.TestCase):
    def test_disbursed_has_countdown(self):
        record = _record(LoanStatus.DISBURSED, 500)
        view = render_record(record, T0 + timedelta(days=1, minutes=30), for_admin=True)
        self.assertEqual(view.time_remaining.model_dump(), {"days": 1, "hours": 23, "minutes": 30})
        self.assertEqual(view.repayment_amount, 510)
        self.assertEqual(view.allowed_actions, ["mark-completed"])
        self.assertEqual(view.masked_mobile, "****3210")
        self.assertEqual(view.pan_number, "ABCDE1234F")

    def test_other_statuses_have_no_countdown(self):
        for status in (LoanStatus.PENDING, LoanStatus.APPROVED, LoanStatus.COMPLETED, LoanStatus.REJECTED):
            with self.subTest(status=status.value):
                view = render_record(_record(status, 100), T0, for_admin=True)
                self.assertIsNone(view.time_remaining)

    def test_applicant_view_masks_identity(self):
        view = render_record(_record(LoanStatus.PENDING, 100), T0, for_admin=False)
        self.assertEqual(view.pan_number, "AB******4F")
        self.assertEqual(view.aadhaar_number, "********9012")
        self.assertIsNone(view.masked_mobile)
        self.assertEqual(view.allowed_actions, [])

    def test_camel_case_dump(self):
        view = render_record(_record(LoanStatus.DISBURSED, 100), T0, for_admin=True)
        data = view.model_dump(mode="json", by_alias=True)
        self.assertIn("repaymentAmount", data)
        self.assertIn("timeRemaining", data)
        self.assertIn("allowedActions", data)
        self.assertEqual(data["status"], "disbursed")


if __name__ == "__main__":
    unittest.main()
