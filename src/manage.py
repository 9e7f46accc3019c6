"""Marketstream management CLI.

Creates and drops the database schema and runs the notification
dispatcher once.

Usage:
    python src/manage.py setup-db               # Create all tables
    python src/manage.py drop-db                # Drop all tables
    python src/manage.py dispatch-notifications # Send queued notifications
"""

import argparse
import sys


def _domain():
    from marketplace.domain import marketplace

    print("Initializing marketplace domain...")
    marketplace.init()
    return marketplace


def setup_database():
    """Create the database schema for the marketplace domain."""
    from marketplace.utils.db import setup_db

    domain = _domain()
    print("Creating marketplace database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    """Drop the database schema for the marketplace domain."""
    from marketplace.utils.db import drop_db

    domain = _domain()
    print("Dropping marketplace database schema...")
    drop_db(domain)
    print("Done.")


def dispatch_notifications(limit: int):
    """Deliver one batch of queued notifications."""
    from marketplace.notification.dispatch import DispatchNotifications
    from marketplace.utils.logging import add_context

    domain = _domain()
    add_context(worker="dispatch-notifications", limit=limit)
    with domain.domain_context():
        result = domain.process(DispatchNotifications(limit=limit), asynchronous=False)
    print(f"Sent {result['sent']}, failed {result['failed']}.")


def main():
    parser = argparse.ArgumentParser(description="Marketstream management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    dispatch_parser = subparsers.add_parser("dispatch-notifications", help="Send queued notifications")
    dispatch_parser.add_argument("--limit", type=int, default=100, help="Maximum notifications to send")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "dispatch-notifications":
        dispatch_notifications(args.limit)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
