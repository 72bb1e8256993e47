"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py reconcile                # Fail stale pending orders
    python src/manage.py reconcile --older-than 60
"""

import argparse
import sys


def _storefront():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    storefront = _storefront()
    print("Creating storefront database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    storefront = _storefront()
    print("Dropping storefront database schema...")
    drop_db(storefront)
    print("Done.")


def reconcile(older_than=None):
    from storefront.payment.reconciliation import reconcile_stale_orders

    storefront = _storefront()
    with storefront.domain_context():
        reconciled = reconcile_stale_orders(older_than_seconds=older_than)

    print(f"Reconciled {len(reconciled)} stale order(s).")
    for order_id in reconciled:
        print(f"  {order_id}")


def main():
    from storefront.utils.logging import configure_logging

    configure_logging()

    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    reconcile_parser = subparsers.add_parser("reconcile", help="Fail orders left pending too long")
    reconcile_parser.add_argument(
        "--older-than",
        type=int,
        default=None,
        help="Age in seconds after which a pending order is stale (default: stale_order_seconds setting)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "reconcile":
        reconcile(args.older_than)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
