"""
Record kinds that go through the OTP edit flow.

Each EditableResource knows its endpoints, its verification_type, how to take
a snapshot of a listed record, how to validate the edit form and how to turn
it into an update request. The workflow itself is the same for all of them.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .validation import validate_booking_form, validate_financial_form


@dataclass(frozen=True)
class Attachment:
    """A local file chosen for upload (as opposed to a server-side file reference string)."""
    path: str

    def as_upload(self) -> Tuple[str, bytes]:
        return os.path.basename(self.path), Path(self.path).read_bytes()


Payload = Dict
Files = Optional[Dict[str, Tuple[str, bytes]]]


@dataclass
class EditableResource(ABC):
    name: str
    label: str
    verification_type: str
    list_path: str
    update_path: str
    date_field: str
    editable_fields: List[str]
    category: Optional[str] = None
    category_from_record: bool = False
    # expense-like kinds share one update family, so request-otp needs the category
    otp_sends_category: bool = False
    create_path: Optional[str] = None
    validator: Callable[[Dict], Dict] = field(default=validate_financial_form, repr=False)

    def otp_category(self, record: Dict) -> Optional[str]:
        if not self.otp_sends_category:
            return None
        if self.category_from_record:
            return record.get("category")
        return self.category

    def snapshot(self, record: Dict) -> Dict:
        """Copy of the record taken when Edit is clicked."""
        snap = {"id": record.get("id"), self.date_field: record.get(self.date_field)}
        for name in self.editable_fields:
            value = record.get(name)
            snap[name] = "" if value is None and name not in ("bill_file", "voucher_file") else value
        if self.category_from_record or self.category is not None:
            snap["category"] = record.get("category") or self.category
        return snap

    def validate(self, form: Dict) -> Dict:
        return self.validator(form)

    @abstractmethod
    def build_update(self, form: Dict) -> Tuple[Payload, Files]:
        """Request body for update-*; ``form`` must already be validated.

        Returns ``(payload, files)``; ``files`` is None for a JSON body.
        """


class BookingResource(EditableResource):
    def build_update(self, form):
        return {
            "paid_amount": float(form["paid_amount"]),
            "pending_amount": float(form["pending_amount"]),
        }, None


class IncomeResource(EditableResource):
    def build_update(self, form):
        return {
            "amount": float(form["amount"]),
            "description": form["description"],
            "category": form.get("category") or self.category,
        }, None


class ExpenseResource(EditableResource):
    """Expenses and salary expenses: multipart, optional bill / voucher upload."""

    def validate(self, form):
        needs_staff_code = self.category == "Salary" or form.get("category") == "Salary"
        return validate_financial_form(form, require_staff_code=needs_staff_code)

    def build_update(self, form):
        category = form.get("category") or self.category
        payload = {
            "amount": float(form["amount"]),
            "description": form["description"],
            "date": form.get(self.date_field),
        }
        if self.category_from_record:
            payload["category"] = category
        if category == "Salary" and form.get("staff_code"):
            payload["staff_code"] = form["staff_code"]

        files = {}
        bill = form.get("bill_file")
        voucher = form.get("voucher_file")
        if isinstance(bill, Attachment):
            files["bill_file"] = bill.as_upload()
        if isinstance(voucher, Attachment):
            files["voucher_file"] = voucher.as_upload()
            payload["voucher_no"] = form.get("voucher_no") or ""
        elif form.get("voucher_no"):
            # keep the number in sync even when the file itself is unchanged
            payload["voucher_no"] = form["voucher_no"]
        return payload, files


BOOKINGS = BookingResource(
    name="bookings",
    label="Booking",
    verification_type="booking_edit",
    list_path="list-bookings",
    update_path="update-booking",
    date_field="booking_date",
    editable_fields=["paid_amount", "pending_amount"],
    validator=validate_booking_form,
)

EXPENSES = ExpenseResource(
    name="expenses",
    label="Expense",
    verification_type="expense_edit",
    list_path="list-expenses",
    update_path="update-expense",
    create_path="add-expense",
    date_field="date",
    editable_fields=["amount", "description", "staff_code", "bill_file", "voucher_file", "voucher_no"],
    category_from_record=True,
    otp_sends_category=True,
)

SALARY_EXPENSES = ExpenseResource(
    name="salary-expenses",
    label="Salary expense",
    verification_type="expense_edit",
    list_path="list-salary-expenses",
    update_path="update-salary-expense",
    create_path="add-salary-expense",
    date_field="date",
    editable_fields=["amount", "description", "staff_code", "bill_file", "voucher_file", "voucher_no"],
    category="Salary",
    otp_sends_category=True,
)

SALES_INCOME = IncomeResource(
    name="sales",
    label="Sale",
    verification_type="sales_income_edit",
    list_path="list-sales-income",
    update_path="update-sales-income",
    create_path="sales-income",
    date_field="date",
    editable_fields=["amount", "description"],
    category_from_record=True,
)

OTHER_INCOME = IncomeResource(
    name="other-income",
    label="Other income",
    verification_type="other_income_edit",
    list_path="list-other-income",
    update_path="update-other-income",
    create_path="other-income",
    date_field="date",
    editable_fields=["amount", "description"],
    category_from_record=True,
)

RESOURCES: Dict[str, EditableResource] = {
    r.name: r for r in (BOOKINGS, EXPENSES, SALARY_EXPENSES, SALES_INCOME, OTHER_INCOME)
}


def get_resource(name: str) -> EditableResource:
    try:
        return RESOURCES[name]
    except KeyError:
        raise ValueError(f"Unknown resource '{name}'. Choose from: {', '.join(RESOURCES)}")
