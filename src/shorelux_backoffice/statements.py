"""
Expense and income report views over already-fetched rows.

Rows are numbered 1..n in the order the server sent them, then filtered by
category (or income type), free-text search and an inclusive date range,
then optionally sorted.
"""

import json
from datetime import date
from typing import Dict, Iterable, List, Optional

from .editability import DateLike, to_date

EXPENSE_CATEGORIES = [
    "Laundry",
    "Cleaning",
    "Cafeteria",
    "Mess",
    "Rental",
    "Salary",
    "Miscellaneous",
    "Maintenance",
    "Capital",
    "Other Expenses",
]

# values of the "type" field on unified-income rows
INCOME_TYPES = ["Booking", "Sales Income", "Other Income"]

REPORT_SORTS = ("date_newest", "date_oldest", "amount_low", "amount_high")


def _amount(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _amount_text(amount: float) -> str:
    return str(int(amount)) if amount.is_integer() else str(amount)


def _in_range(row: Dict, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from is None and date_to is None:
        return True
    d = to_date(row["date"])
    if d is None:
        return False
    if date_from is not None and d < date_from:
        return False
    if date_to is not None and d > date_to:
        return False
    return True


def _sort(rows: List[Dict], sort_option: str) -> List[Dict]:
    if sort_option in ("date_newest", "date_oldest"):
        return sorted(rows, key=lambda r: to_date(r["date"]) or date.min,
                      reverse=sort_option == "date_newest")
    if sort_option in ("amount_low", "amount_high"):
        return sorted(rows, key=lambda r: r["amount"], reverse=sort_option == "amount_high")
    return rows


def _filter(rows: List[Dict], label_key: str, label: str, search: str,
            date_from: DateLike, date_to: DateLike, sort_option: str) -> List[Dict]:
    if label:
        rows = [r for r in rows if r[label_key] == label]

    needle = search.strip().lower()
    if needle:
        def hit(r):
            haystack = [str(r["id"]), r["description"], r[label_key], _amount_text(r["amount"])]
            if r.get("details"):
                haystack.append(json.dumps(r["details"]))
            return any(needle in str(text).lower() for text in haystack)
        rows = [r for r in rows if hit(r)]

    start, end = to_date(date_from), to_date(date_to)
    rows = [r for r in rows if _in_range(r, start, end)]
    return _sort(rows, sort_option)


def expense_report(raw: Iterable[Dict], category: str = "", search: str = "",
                   date_from: DateLike = None, date_to: DateLike = None,
                   sort_option: str = "") -> List[Dict]:
    """Rows of list-expenses narrowed down for the expenses report.

    Args:
        raw: list-expenses ``data`` rows
        category: exact category, empty for all
        search: matched against row number, description, category and amount
        date_from / date_to: inclusive bounds, either may be omitted
        sort_option: one of REPORT_SORTS, empty keeps server order
    """
    rows = [{
        "id": i + 1,
        "record_id": e.get("id"),
        "category": e.get("category") or "",
        "description": e.get("description") or "",
        "amount": _amount(e.get("amount")),
        "date": e.get("date") or "",
    } for i, e in enumerate(raw)]
    return _filter(rows, "category", category, search, date_from, date_to, sort_option)


def income_report(raw: Iterable[Dict], source_type: str = "All", search: str = "",
                  date_from: DateLike = None, date_to: DateLike = None,
                  sort_option: str = "") -> List[Dict]:
    """Rows of unified-income for the income report; search also looks inside ``details``."""
    rows = [{
        "id": i + 1,
        "record_id": e.get("id"),
        "source_type": e.get("type") or "",
        "description": e.get("description") or "",
        "amount": _amount(e.get("amount")),
        "date": e.get("date") or "",
        "details": e.get("details") or {},
    } for i, e in enumerate(raw)]
    label = "" if source_type in ("", "All") else source_type
    return _filter(rows, "source_type", label, search, date_from, date_to, sort_option)


def report_total(rows: List[Dict]) -> float:
    return sum(r["amount"] for r in rows)
