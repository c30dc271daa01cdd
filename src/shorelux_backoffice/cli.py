#!/usr/bin/env python
"""
Shorelux back-office command line.

    shorelux-backoffice login --username admin
    shorelux-backoffice list expenses
    shorelux-backoffice edit expenses 42
    shorelux-backoffice daybook --date 2024-06-10 --export
    shorelux-backoffice expense-report --category Laundry --from 2024-06-01 --pdf
"""

import argparse
import getpass
import os
import sys
from datetime import date
from typing import Dict, List, Optional

from .api_client import BackOfficeClient
from .config_loader import load_config
from .edit_workflow import EditAuthorizationWorkflow, EditState
from .editability import is_editable
from .errors import BackOfficeError
from .ledger import DAYBOOK_SORTS, LEDGER_ACCOUNTS, LEDGER_SORTS, daybook_rows, ledger_rows, totals
from .notifier import ConsoleNotifier
from .reports import (
    export_bookings,
    export_daybook,
    export_expense_report,
    export_expense_report_pdf,
    export_income_report,
    export_income_report_pdf,
    export_ledger,
)
from .resources import RESOURCES, Attachment, get_resource
from .session import Session, forget, login
from .statements import EXPENSE_CATEGORIES, INCOME_TYPES, REPORT_SORTS, expense_report, income_report, report_total
from .validation import validate_financial_form, validate_new_booking, validate_new_expense

FILE_FIELDS = ("bill_file", "voucher_file")

DEFAULT_CATEGORIES = {
    "sales": "Cafeteria",
    "other-income": "Other Income",
    "salary-expenses": "Salary",
}


def _client(cfg: Dict) -> BackOfficeClient:
    session = Session.load(cfg["session"]["file"])
    return BackOfficeClient(cfg["api"]["base_url"], session, timeout=cfg["api"]["timeout"])


def _money(value) -> str:
    try:
        return f"₹{float(value or 0):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def _print_records(resource, records: List[Dict], window_days: int):
    if not records:
        print("⚠️ No records")
        return
    for r in records:
        record_date = r.get(resource.date_field)
        flag = "✏️ " if is_editable(record_date, window_days=window_days) else "🔒"
        if resource.name == "bookings":
            line = (f"{r.get('guest_name', '')} room {r.get('room_no', '')} "
                    f"paid {_money(r.get('paid_amount'))} pending {_money(r.get('pending_amount'))}")
        else:
            line = f"{_money(r.get('amount'))} {r.get('category', '')} {r.get('description', '')}"
        print(f"  {flag} [{r.get('id')}] {record_date} {line}")
    print(f"  {len(records)} record(s)")


def _prompt_changes(resource, form: Dict) -> Dict:
    """Ask for each editable field; Enter keeps the current value."""
    changes = {}
    for name in resource.editable_fields:
        current = form.get(name)
        if name in FILE_FIELDS:
            answer = input(f"  {name} [{current or '-'}] new file path (Enter keeps): ").strip()
            if answer:
                changes[name] = Attachment(answer)
            continue
        answer = input(f"  {name} [{current}]: ").strip()
        if answer:
            changes[name] = answer
    return changes


def cmd_login(args, cfg) -> int:
    password = args.password or getpass.getpass("Password: ")
    session = login(cfg["api"]["base_url"], args.username, password, args.staff_code, cfg["api"]["timeout"])
    session.save(cfg["session"]["file"])
    print(f"✅ Welcome {session.username} ({session.role})")
    return 0


def cmd_logout(args, cfg) -> int:
    session = Session.load(cfg["session"]["file"])
    session.logout()
    forget(cfg["session"]["file"])
    print("👋 Logged out")
    return 0


def cmd_list(args, cfg) -> int:
    resource = get_resource(args.resource)
    client = _client(cfg)
    records = client.list_records(resource.list_path)
    _print_records(resource, records, cfg["editing"]["window_days"])
    return 0


def cmd_edit(args, cfg) -> int:
    resource = get_resource(args.resource)
    notifier = ConsoleNotifier(cfg["notifications"]["enabled"])
    workflow = EditAuthorizationWorkflow(_client(cfg), resource, notifier,
                                         window_days=cfg["editing"]["window_days"])
    try:
        records = workflow.refresh()
        record = next((r for r in records if str(r.get("id")) == str(args.id)), None)
        if record is None:
            notifier.error("Error: Record not found.")
            return 1

        if not workflow.begin(record).ok:
            return 1

        print("🔐 Enter OTP sent to admin (expires in 10 min). Blank input cancels.")
        while workflow.state == EditState.OTP_PENDING_ENTRY:
            code = input("OTP: ").strip()
            if not code:
                workflow.cancel()
                print("🚫 Edit cancelled")
                return 1
            workflow.submit_otp(code)

        while workflow.state == EditState.EDIT_UNLOCKED:
            print(f"📝 Editing {resource.label.lower()} #{record.get('id')}")
            result = workflow.save(_prompt_changes(resource, workflow.form))
            if result.ok:
                return 0
            if input("Retry? [y/N]: ").strip().lower() != "y":
                workflow.cancel()
                print("🚫 Edit cancelled")
                return 1
        return 1
    except (KeyboardInterrupt, EOFError):
        workflow.cancel()
        print("\n🚫 Edit cancelled")
        return 1
    finally:
        workflow.close()


def cmd_add(args, cfg) -> int:
    resource = get_resource(args.resource)
    if not resource.create_path:
        print(f"❌ {resource.label} records cannot be added from here")
        return 1

    form = {
        "date": args.date or date.today().isoformat(),
        "amount": args.amount,
        "description": args.description,
        "category": args.category or DEFAULT_CATEGORIES.get(resource.name, ""),
    }
    if args.staff_code:
        form["staff_code"] = args.staff_code
    if args.bill_file:
        form["bill_file"] = Attachment(args.bill_file)
    if args.voucher_file:
        form["voucher_file"] = Attachment(args.voucher_file)
        form["voucher_no"] = args.voucher_no or ""

    client = _client(cfg)
    if resource.name in ("expenses", "salary-expenses"):
        cleaned = validate_new_expense(form)
        payload = {k: cleaned[k] for k in ("date", "amount", "description", "category")}
        if resource.name == "salary-expenses":
            del payload["category"]
        if cleaned.get("staff_code"):
            payload["staff_code"] = cleaned["staff_code"]
        files = {}
        for name in FILE_FIELDS:
            if isinstance(cleaned.get(name), Attachment):
                files[name] = cleaned[name].as_upload()
        if "voucher_file" in files:
            payload["voucher_no"] = cleaned["voucher_no"]
        client.create_record(resource.create_path, payload, files)
    else:
        cleaned = validate_financial_form(form)
        payload = {k: cleaned[k] for k in ("date", "amount", "description", "category")}
        client.create_record(resource.create_path, payload)

    print(f"✅ {resource.label} added successfully!")
    return 0


def cmd_delete_booking(args, cfg) -> int:
    if not args.yes:
        answer = input(f"Delete booking #{args.id}? This cannot be undone. [y/N]: ").strip().lower()
        if answer != "y":
            print("🚫 Cancelled")
            return 1
    _client(cfg).delete_booking(args.id)
    print("✅ Booking deleted successfully!")
    return 0


def cmd_daybook(args, cfg) -> int:
    day = args.date or date.today().isoformat()
    entries = _client(cfg).daybook_entries(day)
    rows = daybook_rows(entries, args.search, args.sort or "", args.balance_mode)
    print(f"📒 DayBook {day}: {len(rows)} entries")
    for r in rows:
        print(f"  {r['date']}  {r['description'][:40]:40}  +{_money(r['income'])}  -{_money(r['expense'])}  = {_money(r['balance'])}")
    t = totals(rows)
    print(f"  TOTAL income {_money(t['total_credit'])} expense {_money(t['total_debit'])} balance {_money(t['final_balance'])}")
    if args.export:
        export_daybook(rows, day, os.path.join(cfg["export"]["directory"], f"DayBook_{day}.xlsx"))
    return 0


def cmd_ledger(args, cfg) -> int:
    year = str(args.year or date.today().year)
    entries = _client(cfg).monthly_ledger_summary(args.account, year)
    rows = ledger_rows(entries, args.search, args.sort or "")
    print(f"📚 {LEDGER_ACCOUNTS.get(args.account, args.account)} {year}: {len(rows)} months")
    for r in rows:
        print(f"  {r['month']:10} {r['year']}  Cr {_money(r['credit'])}  Dr {_money(r['debit'])}  Net {_money(r['net'])}")
    t = totals(rows)
    print(f"  TOTAL Cr {_money(t['total_credit'])} Dr {_money(t['total_debit'])} Net {_money(t['net'])}")
    if args.export:
        export_ledger(rows, args.account, year,
                      os.path.join(cfg["export"]["directory"], f"Ledger_{args.account}_{year}.xlsx"))
    return 0


def cmd_export_bookings(args, cfg) -> int:
    bookings = _client(cfg).list_records(RESOURCES["bookings"].list_path)
    path = args.output or os.path.join(cfg["export"]["directory"], f"ShoreLux_Bookings_{date.today().isoformat()}.xlsx")
    export_bookings(bookings, path)
    return 0


def cmd_add_booking(args, cfg) -> int:
    client = _client(cfg)
    types = client.booking_types()
    booking_type = next((t for t in types if str(t.get("id")) == str(args.booking_type)), None)
    if booking_type is None:
        print(f"❌ Unknown booking type {args.booking_type}")
        for t in types:
            print(f"  [{t.get('id')}] {t.get('name')} {_money(t.get('default_price'))} GST {t.get('gst_percentage', 0)}%")
        return 1

    price = args.price if args.price is not None else booking_type.get("default_price")
    pending = args.pending
    if pending is None:
        pending = f"{max(0.0, float(price or 0) - float(args.paid or 0)):.2f}"
    cleaned = validate_new_booking({
        "guest_name": args.guest_name,
        "phone_number": args.phone,
        "booking_type": args.booking_type,
        "room_no": args.room_no,
        "checkin_date": args.check_in,
        "checkin_time": args.check_in_time,
        "checkout_date": args.check_out,
        "checkout_time": args.check_out_time,
        "booking_price": price,
        "paid_amount": args.paid,
        "pending_amount": pending,
    })

    invoice_no = client.next_invoice_number()
    payload = dict(cleaned)
    payload.update({
        "booking_type": int(cleaned["booking_type"]),
        "booking_date": args.booking_date or date.today().isoformat(),
        "invoice_number": invoice_no,
        "gst_percentage": booking_type.get("gst_percentage") or 0,
    })
    result = client.create_record("create-booking", payload)
    booking_id = (result.get("data") or {}).get("id", "?")
    print(f"✅ Booking {booking_id} (Invoice: {invoice_no or 'N/A'}) added successfully!")
    return 0


def _report_export_path(cfg, prefix: str, label: str, extension: str) -> str:
    return os.path.join(cfg["export"]["directory"],
                        f"{prefix}_{label or 'All'}_{date.today().isoformat()}.{extension}")


def _print_report(rows: List[Dict], label_key: str, heading: str):
    print(f"{heading}: {len(rows)} records")
    for r in rows:
        print(f"  {r['id']:>4}  {str(r['date'])[:10]}  {r[label_key]:14}  {r['description'][:40]:40}  {_money(r['amount'])}")
    print(f"  TOTAL {_money(report_total(rows))}")


def cmd_expense_report(args, cfg) -> int:
    raw = _client(cfg).list_records(RESOURCES["expenses"].list_path)
    rows = expense_report(raw, args.category or "", args.search, args.date_from, args.date_to, args.sort or "")
    _print_report(rows, "category", f"🧾 Expenses ({args.category or 'All'})")
    if args.export:
        export_expense_report(rows, args.category, args.date_from, args.date_to,
                              _report_export_path(cfg, "ExpensesReport", args.category, "xlsx"))
    if args.pdf:
        export_expense_report_pdf(rows, args.category, args.date_from, args.date_to,
                                  _report_export_path(cfg, "ExpensesReport", args.category, "pdf"))
    return 0


def cmd_income_report(args, cfg) -> int:
    raw = _client(cfg).unified_income()
    rows = income_report(raw, args.type, args.search, args.date_from, args.date_to, args.sort or "")
    _print_report(rows, "source_type", f"💰 Income ({args.type})")
    label = "" if args.type == "All" else args.type.replace(" ", "")
    if args.export:
        export_income_report(rows, args.type, args.date_from, args.date_to,
                             _report_export_path(cfg, "IncomeReport", label, "xlsx"))
    if args.pdf:
        export_income_report_pdf(rows, args.type, args.date_from, args.date_to,
                                 _report_export_path(cfg, "IncomeReport", label, "pdf"))
    return 0


def _report_arguments(p: argparse.ArgumentParser):
    p.add_argument("--search", default="")
    p.add_argument("--from", dest="date_from", help="YYYY-MM-DD, inclusive")
    p.add_argument("--to", dest="date_to", help="YYYY-MM-DD, inclusive")
    p.add_argument("--sort", choices=REPORT_SORTS)
    p.add_argument("--export", action="store_true", help="write an .xlsx file")
    p.add_argument("--pdf", action="store_true", help="write a .pdf file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shorelux-backoffice",
        description="Shorelux hotel back-office client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="log in and store the session")
    p.add_argument("--username", required=True)
    p.add_argument("--password", help="prompted when omitted")
    p.add_argument("--staff-code", help="log in as STAFF with this staff id")
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("logout", help="forget the stored session")
    p.set_defaults(func=cmd_logout)

    p = sub.add_parser("list", help="list records")
    p.add_argument("resource", choices=sorted(RESOURCES))
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("edit", help="edit a record (needs admin OTP)")
    p.add_argument("resource", choices=sorted(RESOURCES))
    p.add_argument("id")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("add", help="add an expense / income record")
    p.add_argument("resource", choices=sorted(r for r in RESOURCES if RESOURCES[r].create_path))
    p.add_argument("--amount", required=True)
    p.add_argument("--description", required=True)
    p.add_argument("--category")
    p.add_argument("--date", help="YYYY-MM-DD, default today")
    p.add_argument("--staff-code")
    p.add_argument("--bill-file")
    p.add_argument("--voucher-file")
    p.add_argument("--voucher-no")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("delete-booking", help="delete a booking")
    p.add_argument("id")
    p.add_argument("--yes", action="store_true", help="do not ask for confirmation")
    p.set_defaults(func=cmd_delete_booking)

    p = sub.add_parser("daybook", help="show the day book")
    p.add_argument("--date", help="YYYY-MM-DD, default today")
    p.add_argument("--search", default="")
    p.add_argument("--sort", choices=sorted(DAYBOOK_SORTS))
    p.add_argument("--balance-mode", choices=["chronological", "display"], default="chronological")
    p.add_argument("--export", action="store_true", help="write an .xlsx file")
    p.set_defaults(func=cmd_daybook)

    p = sub.add_parser("ledger", help="show the monthly ledger summary")
    p.add_argument("account", choices=sorted(LEDGER_ACCOUNTS))
    p.add_argument("--year")
    p.add_argument("--search", default="")
    p.add_argument("--sort", choices=sorted(LEDGER_SORTS))
    p.add_argument("--export", action="store_true", help="write an .xlsx file")
    p.set_defaults(func=cmd_ledger)

    p = sub.add_parser("add-booking", help="create a booking")
    p.add_argument("--guest-name", required=True)
    p.add_argument("--phone")
    p.add_argument("--room-no", required=True)
    p.add_argument("--booking-type", required=True, help="booking type id")
    p.add_argument("--check-in", required=True, help="YYYY-MM-DD")
    p.add_argument("--check-in-time", default="12:00")
    p.add_argument("--check-out", required=True, help="YYYY-MM-DD")
    p.add_argument("--check-out-time", default="11:00")
    p.add_argument("--price", help="default: the booking type's price")
    p.add_argument("--paid", required=True)
    p.add_argument("--pending", help="default: price - paid")
    p.add_argument("--booking-date", help="YYYY-MM-DD, default today")
    p.set_defaults(func=cmd_add_booking)

    p = sub.add_parser("expense-report", help="filter and export expenses")
    p.add_argument("--category", choices=EXPENSE_CATEGORIES)
    _report_arguments(p)
    p.set_defaults(func=cmd_expense_report)

    p = sub.add_parser("income-report", help="filter and export unified income")
    p.add_argument("--type", choices=["All"] + INCOME_TYPES, default="All")
    _report_arguments(p)
    p.set_defaults(func=cmd_income_report)

    p = sub.add_parser("export-bookings", help="export all bookings to .xlsx")
    p.add_argument("--output")
    p.set_defaults(func=cmd_export_bookings)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config()
    try:
        return args.func(args, cfg)
    except BackOfficeError as e:
        print(f"❌ {e.message}")
        return 1
    except (ValueError, OSError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
