"""
Day-book and monthly-ledger views built from already-fetched rows.

Running balances are always folded in chronological order and then attached
to the rows, so re-sorting the view by amount does not change them. Passing
``balance_mode="display"`` folds in display order instead, which is what the
old dashboard showed.
"""

import calendar
from datetime import date
from typing import Dict, Iterable, List, Optional

from .editability import to_date

LEDGER_ACCOUNTS = {
    "salesincome": "Sales Income",
    "otherincome": "Other Income",
    "booking": "Booking Income",
    "laundryexpense": "Laundry Expense",
    "cleaningexpense": "Cleaning Expense",
    "messexpense": "Mess Expense",
    "cafeteriaexpense": "Cafeteria Expense",
    "rentalexpense": "Rental Expense",
    "salaryexpense": "Salary Expense",
    "miscellaneousexpense": "Miscellaneous Expense",
    "maintenanceexpense": "Maintenance Expense",
    "capitalexpense": "Capital Expense",
    "otherexpense": "Other Expense",
}

DAYBOOK_SORTS = {
    "income_low": ("income", False),
    "income_high": ("income", True),
    "expense_low": ("expense", False),
    "expense_high": ("expense", True),
    "balance_low": ("balance", False),
    "balance_high": ("balance", True),
}

LEDGER_SORTS = {
    "credit_low": ("credit", False),
    "credit_high": ("credit", True),
    "debit_low": ("debit", False),
    "debit_high": ("debit", True),
    "balance_low": ("net", False),
    "balance_high": ("net", True),
}


def _num(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def running_balances(entries: Iterable[Dict], credit_key: str = "credit", debit_key: str = "debit") -> List[float]:
    """balance[i] = balance[i-1] + credit[i] - debit[i], starting from 0."""
    balances = []
    balance = 0.0
    for e in entries:
        balance += _num(e.get(credit_key)) - _num(e.get(debit_key))
        balances.append(balance)
    return balances


def _sort_rows(rows: List[Dict], sort_option: str, table: Dict) -> List[Dict]:
    if sort_option not in table:
        return rows
    key, reverse = table[sort_option]
    return sorted(rows, key=lambda r: r[key], reverse=reverse)


def daybook_rows(raw: Iterable[Dict], search: str = "", sort_option: str = "",
                 balance_mode: str = "chronological") -> List[Dict]:
    """Day-book entries with income / expense / balance columns.

    Args:
        raw: ``{id, date, description, credit, debit}`` rows from daybook-entries
        search: matched against description (case-insensitive) and date
        sort_option: one of DAYBOOK_SORTS, empty keeps chronological order
        balance_mode: "chronological" or "display"
    """
    rows = []
    for i, e in enumerate(raw):
        rows.append({
            "id": e.get("id"),
            "date": e.get("date") or "",
            "description": e.get("description") or "",
            "income": _num(e.get("credit")),
            "expense": _num(e.get("debit")),
            "seq": i,
        })

    # stable: same-day entries keep the order the server sent them in
    rows.sort(key=lambda r: (to_date(r["date"]) or date.min, r["seq"]))
    for seq, row in enumerate(rows):
        row["seq"] = seq

    if balance_mode == "chronological":
        for row, bal in zip(rows, running_balances(rows, "income", "expense")):
            row["balance"] = bal

    lower = search.lower()
    shown = [r for r in rows if lower in r["description"].lower() or search in str(r["date"])]

    if balance_mode == "display":
        # balance sorts are meaningless here, so only sort by the amount columns
        shown = _sort_rows(shown, sort_option, {k: v for k, v in DAYBOOK_SORTS.items() if v[0] != "balance"})
        for seq, (row, bal) in enumerate(zip(shown, running_balances(shown, "income", "expense"))):
            row["balance"] = bal
            row["seq"] = seq
        return shown
    return _sort_rows(shown, sort_option, DAYBOOK_SORTS)


def month_number(month) -> Optional[int]:
    """1-12 from "3", "March" or "Mar"; None when unknown."""
    text = str(month or "").strip()
    if text.isdigit():
        n = int(text)
        return n if 1 <= n <= 12 else None
    lower = text.lower()
    for n in range(1, 13):
        if lower in (calendar.month_name[n].lower(), calendar.month_abbr[n].lower()):
            return n
    return None


def ledger_rows(raw: Iterable[Dict], search: str = "", sort_option: str = "") -> List[Dict]:
    """Monthly ledger summary rows with net and a running balance in month order."""
    rows = []
    for i, e in enumerate(raw):
        credit = _num(e.get("credit"))
        debit = _num(e.get("debit"))
        rows.append({
            "month": str(e.get("month") or ""),
            "year": e.get("year"),
            "credit": credit,
            "debit": debit,
            "net": credit - debit,
            "seq": i,
        })

    rows.sort(key=lambda r: (_num(r["year"]), month_number(r["month"]) or 13, r["seq"]))
    for seq, row in enumerate(rows):
        row["seq"] = seq
    for row, bal in zip(rows, running_balances(rows)):
        row["balance"] = bal

    lower = search.lower()
    shown = [r for r in rows if lower in r["month"].lower() or search in str(r["year"])]
    return _sort_rows(shown, sort_option, LEDGER_SORTS)


def totals(rows: List[Dict]) -> Dict[str, float]:
    """Column totals for day-book rows (income/expense) or ledger rows (credit/debit)."""
    credit_key = "income" if rows and "income" in rows[0] else "credit"
    debit_key = "expense" if credit_key == "income" else "debit"
    total_credit = sum(r.get(credit_key, 0.0) for r in rows)
    total_debit = sum(r.get(debit_key, 0.0) for r in rows)
    last = max(rows, key=lambda r: r["seq"]) if rows else None
    return {
        "total_credit": total_credit,
        "total_debit": total_debit,
        "net": total_credit - total_debit,
        "final_balance": last["balance"] if last else 0.0,
    }
