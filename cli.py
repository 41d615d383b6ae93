# cli.py
import argparse
import asyncio
import sys
from datetime import date

import matplotlib.pyplot as plt
import structlog

from analysis import ALL, LedgerFilter, summarize
from assistant import analyze_finances
from codec import decode_document, export_filename, get_locale, read_import_file, write_export_file
from errors import InterchangeError, ValidationError
from forms import build_draft, parse_type
from ledger import open_file_ledger
from logs import configure_logging
from settings import get_settings
from viz import plot_category_pie, plot_time_series

log = structlog.get_logger(__name__)


def confirm(args, question):
    if getattr(args, "yes", False):
        return True
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def money(value):
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def cmd_add(ledger, locale, args):
    try:
        draft = build_draft(
            date=args.date or date.today().isoformat(),
            amount=args.amount,
            tx_type=args.type,
            category=args.category,
            project_id=args.project,
            description=args.description,
        )
    except ValidationError as e:
        print(f"Cannot save: {e}", file=sys.stderr)
        return 1
    tx = ledger.create_transaction(draft)
    print(f"Saved: {tx.id} {tx.date} {locale.type_label(tx.type)} {money(tx.amount)}")
    return 0


def cmd_delete(ledger, locale, args):
    tx = ledger.find_transaction(args.id)
    if tx is None:
        print(f"No transaction with id {args.id}")
        return 0
    if not confirm(args, f"Delete {tx.date} {tx.description or tx.category} {money(tx.amount)}? This cannot be undone."):
        print("Cancelled.")
        return 0
    ledger.delete_transaction(args.id)
    print("Deleted.")
    return 0


def cmd_list(ledger, locale, args):
    txs = ledger.recent_transactions()
    if args.project:
        txs = [t for t in txs if t.project_id == args.project]
    if not txs:
        print("No transactions yet.")
        return 0
    for t in txs[: args.limit]:
        sign = "+" if t.is_income else "-"
        print(
            f"{t.id}  {t.date}  {sign}{money(t.amount):>14}  {t.category:<28}"
            f"  {ledger.project_name(t.project_id, locale.no_project):<22}  {t.description}"
        )
    return 0


def cmd_totals(ledger, locale, args):
    totals = ledger.totals()
    print(f"Income:  {money(totals.total_income)}")
    print(f"Expense: {money(totals.total_expense)}")
    print(f"Balance: {money(totals.balance)}")
    return 0


def build_filter(args):
    return LedgerFilter(
        project=args.project or ALL,
        expense_category=args.expense_category or ALL,
        income_category=args.income_category or ALL,
    )


def cmd_summary(ledger, locale, args):
    summary = summarize(ledger.transactions, build_filter(args))
    print(f"Income {money(summary.totals.total_income)}  Expense {money(summary.totals.total_expense)}  "
          f"Balance {money(summary.totals.balance)}")
    for label, breakdown in (("Expenses", summary.expense_by_category), ("Income", summary.income_by_category)):
        print(f"\n{label} by category:")
        if not breakdown:
            print("  (none)")
        for name, total in sorted(breakdown.items(), key=lambda kv: -kv[1]):
            print(f"  {name:<30} {money(total):>14}")
    print("\nBy date:")
    for row in summary.time_series.itertuples(index=False):
        print(f"  {row.date:<12} +{money(row.income):>13} -{money(row.expense):>13}")
    return 0


def cmd_chart(ledger, locale, args):
    summary = summarize(ledger.transactions, build_filter(args))
    if summary.time_series.empty:
        print("No transactions match the filter.")
        return 0
    plot_time_series(summary.time_series)
    plot_category_pie(summary.expense_by_category, title="Expenses by category")
    plot_category_pie(summary.income_by_category, title="Income by category")
    plt.show()
    return 0


def cmd_project(ledger, locale, args):
    if args.action == "add":
        project_id = ledger.create_project(args.name)
        print(f"Created project {project_id}: {args.name}")
    elif args.action == "delete":
        project = ledger.find_project(args.name)
        if project is None:
            print(f"No project with id {args.name}")
            return 0
        if not confirm(args, f"Delete project '{project.name}'? Its records will be left without a project."):
            print("Cancelled.")
            return 0
        ledger.delete_project(project.id)
        print("Deleted.")
    else:
        for p in ledger.projects:
            print(f"{p.id:<28} {p.name}")
    return 0


def cmd_category(ledger, locale, args):
    tx_type = parse_type(args.type)
    if args.action == "add":
        ledger.create_category(args.name, tx_type)
        print(f"Added {locale.type_label(tx_type).lower()} category '{args.name}'")
    elif args.action == "delete":
        if not confirm(args, f"Delete category '{args.name}'?"):
            print("Cancelled.")
            return 0
        ledger.delete_category(args.name, tx_type)
        print("Deleted.")
    else:
        for name in ledger.categories(tx_type):
            print(name)
    return 0


def cmd_export(ledger, locale, args):
    path = args.output or export_filename()
    count = write_export_file(path, ledger.to_document(), locale)
    print(f"Exported {count} records to {path}")
    return 0


def cmd_import(ledger, locale, args):
    try:
        document = decode_document(read_import_file(args.path), locale)
    except InterchangeError as e:
        log.warning("import_failed", path=args.path, error=str(e))
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    if not confirm(args, f"Replace all current data with {len(document.transactions)} imported records?"):
        print("Cancelled.")
        return 0
    ledger.replace_all(document)
    print(f"Imported {len(document.transactions)} records successfully.")
    return 0


def cmd_analyze(ledger, locale, args):
    print(asyncio.run(analyze_finances(ledger.transactions, ledger.projects)))
    return 0


COMMANDS = {
    "add": cmd_add,
    "delete": cmd_delete,
    "list": cmd_list,
    "totals": cmd_totals,
    "summary": cmd_summary,
    "chart": cmd_chart,
    "project": cmd_project,
    "category": cmd_category,
    "export": cmd_export,
    "import": cmd_import,
    "analyze": cmd_analyze,
}


def add_filter_args(p):
    p.add_argument("--project", default=None, help="Project id (default: all)")
    p.add_argument("--expense-category", default=None, help="Only this expense category")
    p.add_argument("--income-category", default=None, help="Only this income category")


def build_parser():
    p = argparse.ArgumentParser("woodframe-books")
    p.add_argument("--data-dir", default=None, help="Directory of the persisted ledger")
    sub = p.add_subparsers(dest="cmd")

    a = sub.add_parser("add", help="Record a transaction")
    a.add_argument("type", help="income or expense")
    a.add_argument("amount", help="Amount (positive number)")
    a.add_argument("category", help="Category name")
    a.add_argument("project", help="Project id")
    a.add_argument("--date", default=None, help="ISO date, e.g. 2024-01-31 (default: today)")
    a.add_argument("--description", default="", help="Optional description")

    d = sub.add_parser("delete", help="Delete a transaction")
    d.add_argument("id")
    d.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    l = sub.add_parser("list", help="Show transactions, most recent first")
    l.add_argument("--project", default=None)
    l.add_argument("--limit", type=int, default=50)

    sub.add_parser("totals", help="Show income, expense and balance")

    s = sub.add_parser("summary", help="Breakdowns for a filter")
    add_filter_args(s)
    c = sub.add_parser("chart", help="Plot breakdowns for a filter")
    add_filter_args(c)

    pr = sub.add_parser("project", help="Manage projects")
    pr.add_argument("action", choices=["add", "delete", "list"])
    pr.add_argument("name", nargs="?", default=None, help="Project name (add) or id (delete)")
    pr.add_argument("--yes", action="store_true")

    ca = sub.add_parser("category", help="Manage categories")
    ca.add_argument("action", choices=["add", "delete", "list"])
    ca.add_argument("type", help="income or expense")
    ca.add_argument("name", nargs="?", default=None)
    ca.add_argument("--yes", action="store_true")

    e = sub.add_parser("export", help="Write all records as CSV")
    e.add_argument("--output", default=None)

    i = sub.add_parser("import", help="Replace all records with a CSV export")
    i.add_argument("path")
    i.add_argument("--yes", action="store_true")

    sub.add_parser("analyze", help="Ask Gemini for a financial diagnosis")
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd not in COMMANDS:
        parser.print_help()
        return 0
    if args.cmd in ("project", "category") and args.action != "list" and not args.name:
        parser.error(f"{args.cmd} {args.action} needs a name")

    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    ledger = open_file_ledger(args.data_dir or settings.data_dir, settings.storage_key)
    try:
        return COMMANDS[args.cmd](ledger, get_locale(settings.locale), args)
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
