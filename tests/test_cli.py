import unittest
from datetime import date
from unittest.mock import MagicMock, patch

from shorelux_backoffice import cli
from shorelux_backoffice.api_client import BackOfficeClient
from shorelux_backoffice.errors import AuthenticationError


class TestCli(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock(spec=BackOfficeClient)
        patcher = patch("shorelux_backoffice.cli._client", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)

    @patch("builtins.input")
    def test_edit_sale_with_otp(self, mock_input):
        self.client.list_records.return_value = [
            {"id": 5, "date": date.today().isoformat(), "amount": 100, "description": "Tea", "category": "Cafeteria"}
        ]
        self.client.request_otp.return_value = {"message": "OTP sent"}
        self.client.verify_otp.return_value = {"verified": True}
        self.client.update_record.return_value = {}
        # OTP, then amount, then keep description
        mock_input.side_effect = ["654321", "150", ""]

        code = cli.main(["edit", "sales", "5"])

        self.assertEqual(code, 0)
        self.client.request_otp.assert_called_once_with("sales_income_edit", 5, None)
        self.client.update_record.assert_called_once_with(
            "update-sales-income", 5, {"amount": 150.0, "description": "Tea", "category": "Cafeteria"}, None)
        self.client.close.assert_called_once()

    @patch("builtins.input")
    def test_blank_otp_cancels(self, mock_input):
        self.client.list_records.return_value = [
            {"id": 5, "date": date.today().isoformat(), "amount": 100, "description": "Tea"}
        ]
        self.client.request_otp.return_value = {}
        mock_input.side_effect = [""]

        self.assertEqual(cli.main(["edit", "other-income", "5"]), 1)
        self.client.verify_otp.assert_not_called()
        self.client.update_record.assert_not_called()

    def test_edit_unknown_record(self):
        self.client.list_records.return_value = []
        self.assertEqual(cli.main(["edit", "expenses", "99"]), 1)
        self.client.request_otp.assert_not_called()

    def test_daybook_prints_rows(self):
        self.client.daybook_entries.return_value = [
            {"id": 1, "date": "2024-06-10", "description": "Room", "credit": 100, "debit": 0},
        ]
        self.assertEqual(cli.main(["daybook", "--date", "2024-06-10"]), 0)
        self.client.daybook_entries.assert_called_once_with("2024-06-10")

    def test_auth_error_is_reported_not_raised(self):
        self.client.list_records.side_effect = AuthenticationError("Authentication failed. Please login again.")
        self.assertEqual(cli.main(["list", "bookings"]), 1)

    def test_add_sale_validates_before_sending(self):
        self.assertEqual(cli.main(["add", "sales", "--amount", "0", "--description", "Tea"]), 1)
        self.client.create_record.assert_not_called()

        self.assertEqual(cli.main(["add", "sales", "--amount", "40", "--description", "Tea"]), 0)
        path, payload = self.client.create_record.call_args.args
        self.assertEqual(path, "sales-income")
        self.assertEqual(payload["category"], "Cafeteria")
        self.assertEqual(payload["amount"], 40.0)

    @patch("shorelux_backoffice.cli.export_expense_report_pdf")
    @patch("shorelux_backoffice.cli.export_expense_report")
    def test_expense_report_filters_and_exports(self, mock_xlsx, mock_pdf):
        self.client.list_records.return_value = [
            {"id": 1, "category": "Laundry", "description": "Sheets", "amount": 250, "date": "2024-06-03"},
            {"id": 2, "category": "Mess", "description": "Rice", "amount": 90, "date": "2024-06-04"},
        ]

        code = cli.main(["expense-report", "--category", "Laundry", "--from", "2024-06-01", "--export", "--pdf"])

        self.assertEqual(code, 0)
        self.client.list_records.assert_called_once_with("list-expenses")
        rows = mock_xlsx.call_args.args[0]
        self.assertEqual([r["description"] for r in rows], ["Sheets"])
        self.assertEqual(mock_xlsx.call_args.args[1:4], ("Laundry", "2024-06-01", None))
        self.assertTrue(mock_pdf.call_args.args[4].endswith(".pdf"))

    def test_income_report_reads_unified_income(self):
        self.client.unified_income.return_value = [
            {"id": 5, "type": "Booking", "description": "Room 101", "amount": 2500, "date": "2024-06-10"},
        ]
        self.assertEqual(cli.main(["income-report", "--type", "Booking"]), 0)
        self.client.unified_income.assert_called_once()

    def test_add_booking_fills_pending_and_invoice(self):
        self.client.booking_types.return_value = [{"id": 2, "name": "Deluxe", "default_price": 2500, "gst_percentage": 12}]
        self.client.next_invoice_number.return_value = "INV-0042"
        self.client.create_record.return_value = {"data": {"id": 77}}

        code = cli.main(["add-booking", "--guest-name", "Asha", "--room-no", "101", "--booking-type", "2",
                         "--check-in", "2024-06-10", "--check-out", "2024-06-11", "--paid", "1000",
                         "--booking-date", "2024-06-10"])

        self.assertEqual(code, 0)
        path, payload = self.client.create_record.call_args.args
        self.assertEqual(path, "create-booking")
        self.assertEqual(payload["booking_type"], 2)
        self.assertEqual(payload["booking_price"], 2500.0)
        self.assertEqual(payload["pending_amount"], 1500.0)
        self.assertEqual(payload["checkin_date"], "2024-06-10T12:00")
        self.assertEqual(payload["checkout_date"], "2024-06-11T11:00")
        self.assertEqual(payload["invoice_number"], "INV-0042")
        self.assertEqual(payload["gst_percentage"], 12)

    def test_add_booking_rejects_unknown_type_before_posting(self):
        self.client.booking_types.return_value = []
        code = cli.main(["add-booking", "--guest-name", "Asha", "--room-no", "101", "--booking-type", "9",
                         "--check-in", "2024-06-10", "--check-out", "2024-06-11", "--paid", "1000"])
        self.assertEqual(code, 1)
        self.client.create_record.assert_not_called()


if __name__ == "__main__":
    unittest.main()
