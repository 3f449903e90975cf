#!/usr/bin/env python3
"""
Operator commands for the Heraclion back office.

Usage:
    python3 scripts/heraclion_admin.py init-db
    python3 scripts/heraclion_admin.py balance
    python3 scripts/heraclion_admin.py archive-month 2024 2
    python3 scripts/heraclion_admin.py list-cash --type SORTIE --amount-min -50000
    python3 scripts/heraclion_admin.py record-payroll --date 2024-03-01 --agent Alice --amount 12345
    python3 scripts/heraclion_admin.py next-number FAC [2024]
    python3 scripts/heraclion_admin.py trash-list [--table caisse] [--page 1]
    python3 scripts/heraclion_admin.py trash-restore 12

    # Custom configuration / database
    python3 scripts/heraclion_admin.py --config deploy.yaml balance
    python3 scripts/heraclion_admin.py --db-url sqlite:///heraclion.db balance

Errors are printed as ``CODE: message`` and exit with status 1.
"""

import argparse
import json
import sys
from dataclasses import asdict, replace
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from heraclion_config import HeraclionConfig, get_active_config  # noqa: E402
from heraclion_kernel.exceptions import HeraclionError  # noqa: E402
from heraclion_kernel.logging_config import configure_logging  # noqa: E402
from heraclion_services import (  # noqa: E402
    CashLedger,
    DocumentNumbering,
    PayrollCashSynchronizer,
    Trash,
    build_storage,
)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


# =============================================================================
# Commands
# =============================================================================


def cmd_init_db(storage, config: HeraclionConfig, args) -> int:
    storage.create_tables()
    print("Tables created.")
    return 0


def cmd_balance(storage, config: HeraclionConfig, args) -> int:
    print(CashLedger(storage).balance())
    return 0


def cmd_archive_month(storage, config: HeraclionConfig, args) -> int:
    count = CashLedger(storage).archive_month(args.year, args.month)
    print(f"{count} movement(s) archived for {args.year}-{args.month:02d}.")
    return 0


def cmd_list_cash(storage, config: HeraclionConfig, args) -> int:
    query = {
        "date_from": args.date_from,
        "date_to": args.date_to,
        "kind": args.kind,
        "category": args.category,
        "amount_min": args.amount_min,
        "amount_max": args.amount_max,
        "label_contains": args.label,
    }
    movements = CashLedger(storage).list({k: v for k, v in query.items() if v is not None})
    for m in movements:
        flag = " [archived]" if m.archived else ""
        print(f"{m.id:>6}  {m.date_operation}  {m.kind.value:<6}  {m.amount:>14}  {m.label}{flag}")
    print(f"{len(movements)} movement(s).")
    return 0


def cmd_record_payroll(storage, config: HeraclionConfig, args) -> int:
    entry = {"date": args.date, "agent": args.agent, "amount": args.amount}
    if args.comment:
        entry["comment"] = args.comment
    if args.currency:
        entry["currency"] = args.currency
    record = PayrollCashSynchronizer(storage, config.payroll).record_payroll(entry)
    _print_json(asdict(record))
    return 0


def cmd_next_number(storage, config: HeraclionConfig, args) -> int:
    print(DocumentNumbering(storage, config.numbering).allocate(args.prefix, args.year))
    return 0


def cmd_trash_list(storage, config: HeraclionConfig, args) -> int:
    page = Trash(storage).list(args.table, page=args.page, limit=args.limit)
    for item in page.items:
        print(
            f"{item.id:>6}  {item.source_table:<8}  {item.deleted_at}  "
            f"{item.deleted_by or '-':<12}  id={item.payload.get('id')}"
        )
    print(f"page {page.page}/{max(page.total_pages, 1)} ({page.total} item(s))")
    return 0


def cmd_trash_restore(storage, config: HeraclionConfig, args) -> int:
    _print_json(Trash(storage).restore(args.trash_id))
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Heraclion back-office administration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None, help="Deployment YAML file")
    parser.add_argument("--db-url", type=str, default=None, help="Override database.url")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables").set_defaults(func=cmd_init_db)
    sub.add_parser("balance", help="Print the cash register balance").set_defaults(
        func=cmd_balance
    )

    p = sub.add_parser("archive-month", help="Archive one calendar month of cash movements")
    p.add_argument("year", type=int)
    p.add_argument("month", type=int)
    p.set_defaults(func=cmd_archive_month)

    p = sub.add_parser("list-cash", help="List cash movements")
    p.add_argument("--from", dest="date_from")
    p.add_argument("--to", dest="date_to")
    p.add_argument("--type", dest="kind", choices=["ENTREE", "SORTIE"])
    p.add_argument("--category")
    p.add_argument("--amount-min")
    p.add_argument("--amount-max")
    p.add_argument("--label")
    p.set_defaults(func=cmd_list_cash)

    p = sub.add_parser("record-payroll", help="Record a payroll entry and its cash outflow")
    p.add_argument("--date", required=True)
    p.add_argument("--agent", required=True)
    p.add_argument("--amount", required=True)
    p.add_argument("--comment")
    p.add_argument("--currency")
    p.set_defaults(func=cmd_record_payroll)

    p = sub.add_parser("next-number", help="Allocate the next document number")
    p.add_argument("prefix")
    p.add_argument("year", type=int, nargs="?")
    p.set_defaults(func=cmd_next_number)

    p = sub.add_parser("trash-list", help="List trashed records")
    p.add_argument("--table", choices=["caisse", "paie"])
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=cmd_trash_list)

    p = sub.add_parser("trash-restore", help="Restore a trashed record")
    p.add_argument("trash_id", type=int)
    p.set_defaults(func=cmd_trash_restore)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"CONFIG_ERROR: {exc}", file=sys.stderr)
        return 1
    if args.db_url:
        config = replace(config, database=replace(config.database, url=args.db_url))

    configure_logging(level=config.logging.level)

    storage = build_storage(config)
    try:
        return args.func(storage, config, args)
    except HeraclionError as exc:
        print(f"{exc.code}: {exc.message}", file=sys.stderr)
        return 1
    finally:
        storage.dispose()


if __name__ == "__main__":
    sys.exit(main())
