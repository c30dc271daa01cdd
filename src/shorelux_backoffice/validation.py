"""
Client-side form rules for the add / edit forms.

Each check raises FormValidationError with the message shown to the user.
Nothing here talks to the API.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from .errors import FormValidationError


def parse_amount(value: Any) -> Optional[float]:
    """Amount typed into a form, or None when blank / not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def validate_financial_form(form: Dict, require_staff_code: bool = False) -> Dict:
    """Validate amount / description (and staff code, voucher number when relevant).

    Returns a cleaned copy with the amount as float and trimmed text fields.
    """
    if require_staff_code and not _text(form.get("staff_code")):
        raise FormValidationError("Staff code is required for Salary expenses")

    # a typed-in but blank (whitespace) voucher number counts as present
    voucher_typed = form.get("voucher_no") not in (None, "")
    if (form.get("voucher_file") or voucher_typed) and not _text(form.get("voucher_no")):
        raise FormValidationError("Voucher number required when voucher file exists.")

    amount = parse_amount(form.get("amount"))
    description = _text(form.get("description"))
    if amount is None or amount <= 0 or not description:
        raise FormValidationError("Fill amount (> 0) and description.")

    cleaned = dict(form)
    cleaned["amount"] = amount
    cleaned["description"] = description
    if "staff_code" in cleaned:
        cleaned["staff_code"] = _text(cleaned.get("staff_code"))
    if "voucher_no" in cleaned:
        cleaned["voucher_no"] = _text(cleaned.get("voucher_no"))
    return cleaned


def validate_booking_form(form: Dict) -> Dict:
    paid = parse_amount(form.get("paid_amount"))
    pending = parse_amount(form.get("pending_amount"))
    if paid is None or pending is None:
        raise FormValidationError("Paid and pending amounts are required.")
    if paid <= 0:
        raise FormValidationError("Paid amount must be greater than 0.")
    if pending < 0:
        raise FormValidationError("Pending amount cannot be negative.")
    return {"paid_amount": paid, "pending_amount": pending}


def validate_new_expense(form: Dict) -> Dict:
    """Add-expense form: category and a bill or voucher file are mandatory too."""
    if not _text(form.get("category")) or not (form.get("bill_file") or form.get("voucher_file")):
        raise FormValidationError("Please fill all required fields including bill or voucher file")
    if form.get("voucher_file") and not _text(form.get("voucher_no")):
        raise FormValidationError("Voucher number required when uploading voucher")
    return validate_financial_form(form, require_staff_code=_text(form.get("category")) == "Salary")


BOOKING_REQUIRED = ("guest_name", "room_no", "checkin_date", "checkin_time",
                    "checkout_date", "checkout_time", "booking_type")


def validate_new_booking(form: Dict) -> Dict:
    """Create-booking form.

    Price must equal paid + pending (to the paisa) and check-out must come after
    check-in. Check-in / check-out come back joined as ``YYYY-MM-DDTHH:MM``.
    """
    price = parse_amount(form.get("booking_price"))
    paid = parse_amount(form.get("paid_amount"))
    pending = parse_amount(form.get("pending_amount"))
    if any(not _text(form.get(name)) for name in BOOKING_REQUIRED) or None in (price, paid, pending):
        raise FormValidationError("Please fill all required fields and select a Booking Type.")

    if abs(price - (paid + pending)) > 0.01:
        raise FormValidationError("Total Price must equal Paid Amount + Pending Amount.")

    checkin = f"{_text(form['checkin_date'])}T{_text(form['checkin_time'])}"
    checkout = f"{_text(form['checkout_date'])}T{_text(form['checkout_time'])}"
    try:
        checkin_at = datetime.fromisoformat(checkin)
        checkout_at = datetime.fromisoformat(checkout)
    except ValueError:
        raise FormValidationError("Check-in and check-out need a YYYY-MM-DD date and HH:MM time.")
    if checkout_at <= checkin_at:
        raise FormValidationError("Check-out must be after check-in.")

    return {
        "guest_name": _text(form["guest_name"]),
        "phone_number": _text(form.get("phone_number")) or None,
        "booking_type": _text(form["booking_type"]),
        "room_no": _text(form["room_no"]),
        "checkin_date": checkin,
        "checkout_date": checkout,
        "booking_price": price,
        "paid_amount": paid,
        "pending_amount": pending,
    }
