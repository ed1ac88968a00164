"""
XabzedIn administrative commands.

Usage:
    xabzedin create-referral-codes --count 5
    xabzedin create-referral-codes --count 2 --owner admin@xabzedin.org
    xabzedin archive-expired-jobs
"""

import argparse
import asyncio
import sys

from xabzedin.database import SessionLocal
from xabzedin.services.auth import get_user_by_email
from xabzedin.services.jobs import archive_expired_jobs
from xabzedin.services.referrals import issue_referral_codes


async def create_referral_codes(count: int, owner_email: str | None = None) -> list[str]:
    async with SessionLocal() as db:
        owner_id = None
        if owner_email:
            user = await get_user_by_email(db, owner_email)
            if user is None:
                raise LookupError(f"No account registered for {owner_email}")
            owner_id = user.id
        codes = await issue_referral_codes(db, count, owner_id=owner_id)
        await db.commit()
        return [c.code for c in codes]


async def run_archive() -> int:
    async with SessionLocal() as db:
        archived = await archive_expired_jobs(db)
        await db.commit()
        return archived


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xabzedin",
        description="XabzedIn administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    codes_parser = subparsers.add_parser("create-referral-codes", help="Issue bootstrap referral codes")
    codes_parser.add_argument("--count", "-n", type=int, default=1, help="Number of codes to create")
    codes_parser.add_argument("--owner", help="Email of the account that will own the codes")

    subparsers.add_parser("archive-expired-jobs", help="Archive listings past their expiry date")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "create-referral-codes":
        if args.count < 1:
            parser.error("--count must be at least 1")
        try:
            codes = asyncio.run(create_referral_codes(args.count, args.owner))
        except LookupError as exc:
            print(exc, file=sys.stderr)
            return 1
        for code in codes:
            print(code)
        return 0

    if args.command == "archive-expired-jobs":
        archived = asyncio.run(run_archive())
        print(f"Archived {archived} expired jobs")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
