"""
Operational commands.

    python run.py --process-overdue [--date 2024-03-06]
    python run.py --migrate-markers
"""
import argparse
import json
from datetime import datetime

from .billing import SQLAlchemyBillingStore, process_overdue_payments


def process_overdue(app, run_date=None):
    with app.app_context():
        return process_overdue_payments(
            SQLAlchemyBillingStore(),
            run_date=run_date,
            default_daily_rate=app.config.get("DEFAULT_DAILY_LATE_FEE"),
        )


def migrate_markers(app):
    with app.app_context():
        return SQLAlchemyBillingStore().migrate_legacy_markers()


def build_parser():
    parser = argparse.ArgumentParser(description="FleetCore billing backend")
    parser.add_argument("--process-overdue", action="store_true",
                        help="assess this month's late fee for unpaid active agreements")
    parser.add_argument("--date", type=datetime.fromisoformat, default=None,
                        help="run date for --process-overdue (ISO 8601, default: now)")
    parser.add_argument("--migrate-markers", action="store_true",
                        help="copy legacy description markers into the flag columns")
    parser.add_argument("--port", type=int, default=None)
    return parser


def main(app, argv=None):
    args = build_parser().parse_args(argv)
    if args.process_overdue:
        print(json.dumps(process_overdue(app, args.date), indent=2))
    elif args.migrate_markers:
        print(json.dumps(migrate_markers(app), indent=2))
    else:
        app.run(host="0.0.0.0", port=args.port or int(app.config.get("PORT", 5000)), debug=False)
