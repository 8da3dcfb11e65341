#!/usr/bin/env python3
"""
Provision a login. There is no public sign-up; operators create users here.

    stockdb-create-user --email owner@example.com --password 'S3cret-pass' --name "Ana Pérez" --bootstrap-org
"""

import argparse
import getpass
import sys
from typing import List, Optional

from fastapi import HTTPException

from stockdb.database import WriteSessionLocal
from stockdb.apps.accounts import services as account_services


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an inventory dashboard user.")
    parser.add_argument("--email", required=True, help="Login email (stored lower-case).")
    parser.add_argument(
        "--password",
        help="Plaintext password; prompted for when omitted.",
    )
    parser.add_argument("--name", dest="full_name", help="Display name.")
    parser.add_argument(
        "--unconfirmed",
        action="store_true",
        help="Create the user with an unconfirmed email (sign-in is refused).",
    )
    parser.add_argument(
        "--bootstrap-org",
        action="store_true",
        help="Also provision the user's organization and owner membership now.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    password = args.password or getpass.getpass("Password: ")

    session = WriteSessionLocal()
    try:
        user = account_services.create_user(
            session,
            email=args.email,
            password=password,
            full_name=args.full_name,
            email_confirmed=not args.unconfirmed,
        )
        org_id = None
        if args.bootstrap_org:
            membership, _ = account_services.bootstrap_org_if_needed(session, user=user)
            org_id = membership.org_id
        session.commit()
    except HTTPException as exc:
        session.rollback()
        print(f"error: {exc.detail}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"Created {user.email} ({user.id})" + (f" in org {org_id}" if org_id else ""))
    return 0


if __name__ == "__main__":
    sys.exit(main())
