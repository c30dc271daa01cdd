import os
from datetime import datetime
from typing import Dict, List

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import LongTable, Paragraph, SimpleDocTemplate, Spacer, TableStyle

from .ledger import LEDGER_ACCOUNTS, totals
from .statements import report_total


def _write_sheet(path: str, sheet_name: str, title_lines: List[str], df: pd.DataFrame) -> str:
    """Title block on top, then the table."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, startrow=len(title_lines) + 1, index=False)
        ws = writer.sheets[sheet_name]
        for i, line in enumerate(title_lines, start=1):
            ws.cell(row=i, column=1, value=line)
    print(f"📊 Excel exported: {path}")
    return path


def _totals_row(columns: List[str], label_col: str, values: Dict[str, float], label: str = "TOTAL") -> pd.DataFrame:
    row = {c: "" for c in columns}
    row[label_col] = label
    row.update(values)
    return pd.DataFrame([row], columns=columns)


def export_daybook(rows: List[Dict], date: str, path: str) -> str:
    columns = ["#", "Date", "Description", "Income (₹)", "Expense (₹)", "Balance (₹)"]
    df = pd.DataFrame(
        [[i + 1, r["date"], r["description"], round(r["income"], 2), round(r["expense"], 2), round(r["balance"], 2)]
         for i, r in enumerate(rows)],
        columns=columns,
    )
    t = totals(rows)
    df = pd.concat([df, _totals_row(columns, "Description", {
        "Income (₹)": round(t["total_credit"], 2),
        "Expense (₹)": round(t["total_debit"], 2),
        "Balance (₹)": round(t["final_balance"], 2),
    })], ignore_index=True)
    title = ["DAYBOOK REPORT", f"Date: {date}", f"Generated: {datetime.now():%Y-%m-%d}"]
    return _write_sheet(path, "DayBook", title, df)


def export_ledger(rows: List[Dict], account: str, year: str, path: str) -> str:
    columns = ["#", "Month", "Year", "Credit (₹)", "Debit (₹)", "Net (₹)", "Balance (₹)"]
    df = pd.DataFrame(
        [[i + 1, r["month"], r["year"], r["credit"], r["debit"], r["net"], r["balance"]]
         for i, r in enumerate(rows)],
        columns=columns,
    )
    t = totals(rows)
    df = pd.concat([df, _totals_row(columns, "Month", {
        "Credit (₹)": t["total_credit"],
        "Debit (₹)": t["total_debit"],
        "Net (₹)": t["net"],
    })], ignore_index=True)
    title = [
        "MONTHLY LEDGER SUMMARY",
        f"Account: {LEDGER_ACCOUNTS.get(account, account)}",
        f"Year: {year}",
        f"Generated: {datetime.now():%Y-%m-%d}",
    ]
    return _write_sheet(path, "Ledger", title, df)


def export_bookings(bookings: List[Dict], path: str) -> str:
    data = [{
        "Invoice #": b.get("invoice_no") or "N/A",
        "Guest Name": b.get("guest_name") or "N/A",
        "Phone": b.get("phone_number") or "N/A",
        "Room No": b.get("room_no") or "N/A",
        "GST %": f"{b.get('gst_percentage') or 0}%",
        "Check In": b.get("checkin_date") or "",
        "Check Out": b.get("checkout_date") or "",
        "Price (₹)": float(b.get("booking_price") or 0),
        "Paid (₹)": float(b.get("paid_amount") or 0),
        "Pending (₹)": float(b.get("pending_amount") or 0),
        "Booking Date": b.get("booking_date") or "",
    } for b in bookings]
    df = pd.DataFrame(data)
    title = ["BOOKINGS", f"Generated: {datetime.now():%Y-%m-%d}"]
    return _write_sheet(path, "Bookings", title, df)


def _range_line(date_from, date_to) -> str:
    return f"Date Range: {date_from or 'All'} to {date_to or 'All'}"


def _statement_frame(rows: List[Dict], label_key: str, label_title: str, total_label: str) -> pd.DataFrame:
    columns = ["ID", label_title, "Description", "Amount (₹)", "Date"]
    df = pd.DataFrame(
        [[r["id"], r[label_key], r["description"], r["amount"], r["date"]] for r in rows],
        columns=columns,
    )
    total = _totals_row(columns, "Description", {"Amount (₹)": report_total(rows)}, total_label)
    return pd.concat([df, total], ignore_index=True)


def _expense_title(category, date_from, date_to) -> List[str]:
    return [
        "EXPENSES REPORT",
        f"Category: {category or 'All'}",
        _range_line(date_from, date_to),
        f"Generated: {datetime.now():%Y-%m-%d}",
    ]


def _income_title(source_type, date_from, date_to) -> List[str]:
    return [
        "INCOME REPORT",
        f"Type: {source_type or 'All'}",
        _range_line(date_from, date_to),
        f"Generated: {datetime.now():%Y-%m-%d}",
    ]


def export_expense_report(rows: List[Dict], category: str, date_from, date_to, path: str) -> str:
    title = _expense_title(category, date_from, date_to)
    df = _statement_frame(rows, "category", "Category", "TOTAL EXPENSES")
    return _write_sheet(path, "Expenses", title, df)


def export_income_report(rows: List[Dict], source_type: str, date_from, date_to, path: str) -> str:
    title = _income_title(source_type, date_from, date_to)
    df = _statement_frame(rows, "source_type", "Type", "TOTAL INCOME")
    return _write_sheet(path, "Income", title, df)


def _statement_pdf(rows: List[Dict], title_lines: List[str], label_key: str, label_title: str,
                   path: str) -> str:
    """Expense / income report as a one-table PDF with the total on the last row."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    styles = getSampleStyleSheet()
    elements = [Paragraph(title_lines[0], styles["Title"])]
    for line in title_lines[1:]:
        elements.append(Paragraph(line, styles["Normal"]))
    elements.append(Spacer(1, 12))

    # the base PDF fonts have no rupee glyph
    data = [["ID", label_title, "Description", "Amount (Rs.)", "Date"]]
    for r in rows:
        data.append([str(r["id"]), r[label_key], r["description"], f"{r['amount']:,.2f}", str(r["date"])])
    data.append(["", "", "TOTAL", f"{report_total(rows):,.2f}", ""])

    table = LongTable(data, colWidths=[35, 90, 200, 90, 80], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.darkblue),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (3, 1), (3, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("BACKGROUND", (0, -1), (-1, -1), colors.lightgrey),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))
    elements.append(table)
    SimpleDocTemplate(path, pagesize=A4).build(elements)
    print(f"📄 PDF exported: {path}")
    return path


def export_expense_report_pdf(rows: List[Dict], category: str, date_from, date_to, path: str) -> str:
    return _statement_pdf(rows, _expense_title(category, date_from, date_to), "category", "Category", path)


def export_income_report_pdf(rows: List[Dict], source_type: str, date_from, date_to, path: str) -> str:
    return _statement_pdf(rows, _income_title(source_type, date_from, date_to), "source_type", "Type", path)
