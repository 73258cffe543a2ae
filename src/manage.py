"""AgroMarket management CLI.

Usage:
    python src/manage.py setup-db          # Create all tables
    python src/manage.py drop-db           # Drop all tables
    python src/manage.py create-admin --name "Admin" --email admin@example.com --password secret123
"""

import argparse
import sys


def setup_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    touched = setup_db(marketplace)
    if touched:
        print(f"  Schema ready for: {', '.join(touched)}")
    else:
        print("  No SQL providers configured; nothing to create.")
    print("Done.")


def drop_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    touched = drop_db(marketplace)
    if touched:
        print(f"  Schema dropped for: {', '.join(touched)}")
    else:
        print("  No SQL providers configured; nothing to drop.")
    print("Done.")


def create_admin(name, email, password):
    from marketplace.domain import marketplace
    from marketplace.user.registration import CreateAdmin

    marketplace.init()
    with marketplace.domain_context():
        user_id = marketplace.process(CreateAdmin(name=name, email=email, password=password), asynchronous=False)
    print(f"Admin {email} created with id {user_id}.")


def main():
    parser = argparse.ArgumentParser(description="AgroMarket management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--name", required=True)
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--password", required=True)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "create-admin":
        create_admin(args.name, args.email, args.password)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
